"""
Static offline question bank.

Read-only, loaded once per process from question_bank/data/bank.json.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from generation.prompt_composer import canonical_subject
from generation.schemas import OPTION_LABELS, MCQOption, QuestionCandidate

BANK_PATH = Path(__file__).parent / "data" / "bank.json"


class BankQuestion(BaseModel):
    """One stored question, in the flat option_a..option_d shape of the bank file."""
    id: str
    subject: str
    objective: Optional[str] = None
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: str
    explanation: str = ""
    difficulty_level: int = Field(3, ge=1, le=5)

    def matches_objective(self, objective: str) -> bool:
        needle = objective.strip().lower()
        return needle in self.question_text.lower() or needle in (self.objective or "").lower()

    def to_candidate(self) -> QuestionCandidate:
        texts = (self.option_a, self.option_b, self.option_c, self.option_d)
        return QuestionCandidate(
            text=self.question_text,
            options=[MCQOption(label=l, text=t) for l, t in zip(OPTION_LABELS, texts)],
            correct_option=self.correct_answer.strip().upper()[:1],
            explanation=self.explanation or "No explanation was provided for this question.",
            subject=self.subject,
            objective=self.objective,
            difficulty_level=self.difficulty_level,
        )


class QuestionBank:
    def __init__(self, questions: List[BankQuestion]):
        self._questions = tuple(questions)

    def __len__(self) -> int:
        return len(self._questions)

    def all(self) -> Tuple[BankQuestion, ...]:
        return self._questions

    def by_subject(self, subject: str) -> List[BankQuestion]:
        key = canonical_subject(subject)
        return [q for q in self._questions if canonical_subject(q.subject) == key]

    def subjects(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for q in self._questions:
            counts[q.subject] = counts.get(q.subject, 0) + 1
        return counts


@lru_cache(maxsize=1)
def load_bank() -> QuestionBank:
    with open(BANK_PATH, encoding="utf-8") as f:
        raw = json.load(f)
    return QuestionBank([BankQuestion(**item) for item in raw])
