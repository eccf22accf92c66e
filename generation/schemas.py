"""
Pydantic schemas for the question generation pipeline.

Layer 1 (internal):  QuestionCandidate → accepted Question (id minted once)
Layer 2 (API):       BatchRequest / OfflineRequest → GeneratedBatch / OfflineSelection
"""

import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from generation.fingerprint import fingerprint as _fingerprint


OPTION_LABELS = ("A", "B", "C", "D")

Difficulty = Literal["easy", "medium", "hard"]
Source = Literal["generated", "local-bank"]

DIFFICULTY_LEVELS = {"easy": 1, "medium": 3, "hard": 5}


# ─── Question records ──────────────────────────────────────────────────────────

class MCQOption(BaseModel):
    """One MCQ option."""
    model_config = ConfigDict(frozen=True)

    label: str   # "A", "B", "C", "D"
    text: str


class QuestionCandidate(BaseModel):
    """A structurally valid question that has not been accepted into a batch yet."""
    model_config = ConfigDict(frozen=True)

    text: str
    options: List[MCQOption]
    correct_option: Literal["A", "B", "C", "D"]
    explanation: str
    subject: str
    objective: Optional[str] = None
    difficulty_level: int = Field(3, ge=1, le=5)

    @field_validator("options")
    @classmethod
    def _four_labelled_options(cls, options: List[MCQOption]) -> List[MCQOption]:
        if [o.label for o in options] != list(OPTION_LABELS):
            raise ValueError("options must be exactly four entries labelled A, B, C, D")
        return options

    @model_validator(mode="after")
    def _correct_option_non_empty(self) -> "QuestionCandidate":
        if not self.option_text(self.correct_option).strip():
            raise ValueError(f"correct option {self.correct_option} has no text")
        return self

    def option_text(self, label: str) -> str:
        for opt in self.options:
            if opt.label == label:
                return opt.text
        return ""

    def fingerprint(self, prefix_length: int = 40) -> str:
        return _fingerprint(self.text, self.correct_option, prefix_length)


class Question(QuestionCandidate):
    """A question accepted into a batch. Immutable once created."""
    id: str
    source: Source


def accept(candidate: QuestionCandidate, source: Source) -> Question:
    """Promote a candidate into a batch record. The only place ids are minted."""
    return Question(id=str(uuid.uuid4()), source=source, **candidate.model_dump())


# ─── API request/response ──────────────────────────────────────────────────────

class BatchRequest(BaseModel):
    """Inbound batch-generation request."""
    subject: str = Field(..., min_length=1, description="Subject to generate questions for")
    count: int = Field(..., ge=1, description="Number of questions (N)")
    objective: Optional[str] = Field(None, description="Unit objective to bias generation")
    difficulty: Difficulty = "medium"
    session_id: Optional[str] = Field(None, description="Exam session for usage tracking")

    @field_validator("subject")
    @classmethod
    def _strip_subject(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("subject is required")
        return v


class OfflineRequest(BaseModel):
    """Inbound offline-selection request."""
    subject: Optional[str] = None
    objective: Optional[str] = None
    count: int = Field(..., ge=1)


class GeneratedBatch(BaseModel):
    questions: List[Question]
    source: Source
    warning: Optional[str] = None


class OfflineSelection(BaseModel):
    questions: List[Question]
    warning: Optional[str] = None
