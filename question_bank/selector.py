"""
Offline Selector

Serves questions from the static bank when no generation provider is
reachable. Narrow by subject and objective, widen just enough when the
narrowed pool is too small, shuffle, then re-key so that ids stay unique
across repeated selections.
"""

import logging
import random
import time
from typing import List, Optional

from generation.errors import BatchValidationError
from generation.schemas import OfflineSelection, Question
from question_bank.bank import BankQuestion, QuestionBank, load_bank

log = logging.getLogger("generation.pipeline")


def _widen(
    selected: List[BankQuestion],
    candidates: List[BankQuestion],
    count: int,
    rng: random.Random,
) -> List[BankQuestion]:
    """Randomly pick just enough not-yet-selected candidates to reach count."""
    taken = {q.id for q in selected}
    extras = [q for q in candidates if q.id not in taken]
    need = count - len(selected)
    return rng.sample(extras, min(need, len(extras)))


def select(
    subject: Optional[str] = None,
    objective: Optional[str] = None,
    count: int = 10,
    bank: Optional[QuestionBank] = None,
    rng: Optional[random.Random] = None,
    now: Optional[float] = None,
) -> OfflineSelection:
    """
    Select up to `count` questions from the offline bank.

    Returns min(count, bank size) questions. A warning is attached whenever
    the pool had to be widened beyond the requested subject/objective.

    Raises:
        BatchValidationError: count < 1
    """
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise BatchValidationError("count must be a positive integer")

    bank = bank if bank is not None else load_bank()
    rng = rng or random.Random()
    subject = (subject or "").strip() or None
    objective = (objective or "").strip() or None

    pool = bank.by_subject(subject) if subject else list(bank.all())
    selected = [q for q in pool if q.matches_objective(objective)] if objective else list(pool)
    notes: List[str] = []

    # Tier 1: drop the objective, keep the subject
    if objective and len(selected) < count:
        matched = len(selected)
        added = _widen(selected, pool, count, rng)
        if added:
            selected.extend(added)
            scope = f"{subject} questions" if subject else "questions from the bank"
            notes.append(
                f"Only {matched} questions match the objective '{objective}'; "
                f"added {len(added)} other {scope}."
            )

    # Tier 2: other subjects
    if subject and len(selected) < count:
        added = _widen(selected, list(bank.all()), count, rng)
        if added:
            selected.extend(added)
            notes.append(f"Added {len(added)} questions from other subjects to reach the requested count.")

    if len(selected) < count:
        notes.append(
            f"Only {len(selected)} questions are available in the offline bank; using all of them."
        )

    rng.shuffle(selected)
    chosen = selected[:count]

    stamp = int((now if now is not None else time.time()) * 1000)
    questions = [
        Question(id=f"{q.id}-{stamp}-{i}", source="local-bank", **q.to_candidate().model_dump())
        for i, q in enumerate(chosen)
    ]

    warning = " ".join(notes) or None
    if warning:
        log.warning(f"[OFFLINE] {warning}")
    log.info(f"[OFFLINE] Selected {len(questions)}/{count} (subject={subject}, objective={objective!r})")
    return OfflineSelection(questions=questions, warning=warning)
