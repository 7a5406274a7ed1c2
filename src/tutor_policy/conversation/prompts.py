"""System prompts for the reply stage, pinned to the session's active language."""

from tutor_policy.models.analysis import UtteranceAnalysis
from tutor_policy.models.language import Language

TUTOR_NAME = "Clara"

BASE_PROMPT = """\
You are {name}, an expert and empathetic language teacher who helps students \
improve their conversational skills.

Critical language rule:
- Always respond exclusively in {language_name}
- Never switch languages, whatever language the user speaks
- Never invite the user to change languages or ask which language they want to practice
- Even if the input contains errors or mixes languages, keep your response in {language_name}

Personality:
- Warm, patient and encouraging
- Put corrections at the beginning of your response
- Answer with at most 1-2 sentences after correcting
- Avoid long explanations and extended examples

Correction behavior:
- When there are real errors, quote what the user wrote, give the complete \
corrected version, explain each error briefly, add positive reinforcement and \
invite the user to try again
- If the input is correct, respond naturally without any correction format
- Never use emojis, decorative symbols, bold text or markdown
"""

FINDINGS_ADDITION = """\
Corrections detected for the user's last message (mention them in {language_name}):
{findings}"""


def build_system_prompt(language: Language, analysis: UtteranceAnalysis | None = None) -> str:
    """Build the reply-stage system prompt for a language.

    Args:
        language: Language the reply must be written in.
        analysis: Findings for the current utterance, if any.
    """
    parts = [BASE_PROMPT.format(name=TUTOR_NAME, language_name=language.display_name)]
    if analysis is not None and analysis.has_findings:
        lines = [f'- "{f.wrong}" -> "{f.correct}"' for f in analysis.findings]
        if analysis.corrected_sentence:
            lines.append(f"Full corrected sentence: {analysis.corrected_sentence}")
        parts.append(
            FINDINGS_ADDITION.format(
                language_name=language.display_name, findings="\n".join(lines)
            )
        )
    return "\n".join(parts)
