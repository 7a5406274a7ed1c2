"""Error detection models."""

from pydantic import BaseModel, ConfigDict, Field


class ErrorFinding(BaseModel):
    """A defect in an utterance, as a wrong/correct span pair."""

    wrong: str
    correct: str


class BasicErrorJudgment(BaseModel):
    """Structured answer of the spelling/grammar/syntax classifier."""

    model_config = ConfigDict(populate_by_name=True)

    has_errors: bool = Field(default=False, alias="hasErrors")
    errors: list[ErrorFinding] = Field(default_factory=list)
    corrected_sentence: str | None = Field(default=None, alias="correctedSentence")


class ConstructionJudgment(BaseModel):
    """Structured answer of the naturalness classifier."""

    model_config = ConfigDict(populate_by_name=True)

    has_errors: bool = Field(default=False, alias="hasErrors")
    errors: list[ErrorFinding] = Field(default_factory=list)


class UtteranceAnalysis(BaseModel):
    """Both detection passes over one utterance."""

    basic_errors: list[ErrorFinding] = Field(default_factory=list)
    artificial_constructions: list[ErrorFinding] = Field(default_factory=list)
    corrected_sentence: str | None = None

    @property
    def findings(self) -> list[ErrorFinding]:
        """Basic errors first, then naturalness findings."""
        return self.basic_errors + self.artificial_constructions

    @property
    def has_findings(self) -> bool:
        return bool(self.basic_errors or self.artificial_constructions)
