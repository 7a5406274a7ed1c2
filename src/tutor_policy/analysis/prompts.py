"""Prompts for the two error detection passes."""

BASIC_ERRORS_SYSTEM_PROMPT = (
    "You are a language error detection system. Always respond with valid JSON."
)

BASIC_ERRORS_PROMPT = """\
Analyze this user input for basic errors in spelling, grammar, capitalization, \
and syntax. Look for:

1. Spelling mistakes (hawo -> how, LIOKE -> like)
2. Incorrect capitalization (aRE -> are)
3. Grammar errors (IS DIFFICULT FOR MY -> it's difficult for me)
4. Wrong word usage (YOU NOW -> you know)
5. Missing words or articles
6. Incorrect verb forms

User input: "{text}"
Target language: {language}

If you find basic errors, respond with JSON format:
{{
    "hasErrors": true,
    "errors": [
        {{"wrong": "exact error from input", "correct": "corrected version"}}
    ],
    "correctedSentence": "complete corrected sentence"
}}

If the input has no basic errors, respond:
{{
    "hasErrors": false,
    "errors": [],
    "correctedSentence": null
}}

Focus on obvious mistakes that any native speaker would immediately notice. \
Do not comment on style.
"""

CONSTRUCTIONS_SYSTEM_PROMPT = (
    "You are an expert linguistics teacher who helps students sound more natural "
    "and fluent. Detect artificial constructions that make speech sound robotic "
    "or translated."
)

CONSTRUCTIONS_PROMPT = """\
Analyze this user input for artificial/robotic constructions that don't sound \
natural to native speakers. Look for:

1. Overly literal translations from other languages
2. Formal/textbook constructions instead of natural speech
3. Word-for-word translations that create unnatural flow
4. Missing articles, prepositions, or natural contractions
5. Artificial verb tenses or constructions
6. Expressions that sound translated rather than naturally thought in the target language

User input: "{text}"
Target language: {language}

If you find artificial constructions, respond with JSON format:
{{
    "hasErrors": true,
    "errors": [
        {{"wrong": "exact artificial phrase from input",
          "correct": "natural alternative that native speakers would use"}}
    ]
}}

If the input sounds natural to native speakers, respond:
{{
    "hasErrors": false,
    "errors": []
}}

Focus only on making speech sound natural and fluent, not on spelling or \
grammar mistakes.
"""


def build_basic_errors_prompt(text: str, language: str) -> str:
    return BASIC_ERRORS_PROMPT.format(text=text, language=language)


def build_constructions_prompt(text: str, language: str) -> str:
    return CONSTRUCTIONS_PROMPT.format(text=text, language=language)
