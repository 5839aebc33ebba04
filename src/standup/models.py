"""Pydantic models for standup report extraction."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

NONE_SENTINEL = "None"


class RawInput(BaseModel):
    """The user's unstructured text for one report."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    accomplishments: str = Field(description="Free-form update, dictated or typed")
    in_progress: str = Field(default="", alias="inProgress", description="Legacy field")
    blockers: str = Field(default="", description="Legacy field")
    notes: str = Field(default="", description="Legacy field")

    def combined_text(self) -> str:
        """Fold every non-empty field into one block, accomplishments first."""
        parts = [self.accomplishments, self.in_progress, self.blockers, self.notes]
        return "\n".join(p.strip() for p in parts if p and p.strip())


class Segment(BaseModel):
    """A clause split out of the raw input."""

    text: str
    ticket_ids: list[str] = Field(default_factory=list)
    duration_phrase: str | None = None


class Classification(str, Enum):
    """Category assigned to a segment by the rule-based classifier."""

    COMPLETED = "Completed"
    IN_PROGRESS = "InProgress"
    AMBIGUOUS = "Ambiguous"


ExtractionMethod = Literal["generated", "rule-based"]


def _bullets_or_sentinel(value: list[str]) -> list[str]:
    bullets = [b.strip() for b in value if b and b.strip()]
    bullets = [b for b in bullets if b != NONE_SENTINEL]
    return bullets or [NONE_SENTINEL]


class ParsedSections(BaseModel):
    """The structured report: three sections, "None" when a section is empty."""

    model_config = ConfigDict(frozen=True)

    completed: list[str] = Field(default_factory=lambda: [NONE_SENTINEL])
    in_progress: list[str] = Field(default_factory=lambda: [NONE_SENTINEL])
    support: str = Field(default=NONE_SENTINEL, description="Single duration phrase")

    @field_validator("completed", "in_progress", mode="before")
    @classmethod
    def _normalize_bullets(cls, value):
        if value is None or value == NONE_SENTINEL:
            return [NONE_SENTINEL]
        if isinstance(value, str):
            value = [value]
        return _bullets_or_sentinel(list(value))

    @field_validator("support", mode="before")
    @classmethod
    def _normalize_support(cls, value):
        if value is None:
            return NONE_SENTINEL
        value = str(value).strip()
        return value or NONE_SENTINEL

    @property
    def has_completed(self) -> bool:
        return self.completed != [NONE_SENTINEL]

    @property
    def has_in_progress(self) -> bool:
        return self.in_progress != [NONE_SENTINEL]

    @property
    def has_support(self) -> bool:
        return self.support != NONE_SENTINEL


class ExtractionResult(BaseModel):
    """Sections plus how they were produced."""

    sections: ParsedSections
    method: ExtractionMethod
    raw_generated_text: str | None = None
    fallback_reason: str | None = None
    model: str = ""


class Report(BaseModel):
    """A report ready to be handed to the persistence collaborator."""

    title: str
    date: datetime = Field(default_factory=datetime.now)
    raw_inputs: RawInput
    formatted_report: str
    completed: list[str]
    in_progress: list[str]
    support: str
    llm_model: str
    status: Literal["draft", "completed", "archived"] = "completed"
    method: ExtractionMethod
