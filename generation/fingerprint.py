"""
Duplicate detection helpers.

fingerprint()          cheap identity key: normalised stem prefix + answer letter
find_duplicate()       first collision with an accepted question, as a reason string
is_duplicate()         same check, as a bool
similarity()           bag-of-words Jaccard ratio between two text blobs
objective_alignment()  share of an objective's words present in a question
"""

import re
from typing import Iterable, Optional, Set

_WORD = re.compile(r"\w+", re.UNICODE)
_WS = re.compile(r"\s+")

MIN_TOKEN_LENGTH = 3   # only words longer than this count


def fingerprint(text: str, correct_answer: str, prefix_length: int = 40) -> str:
    stem = _WS.sub(" ", (text or "").strip().lower())[:prefix_length]
    return f"{stem}|{(correct_answer or '').strip().upper()[:1]}"


def _tokens(text: str) -> Set[str]:
    return {w for w in _WORD.findall((text or "").lower()) if len(w) > MIN_TOKEN_LENGTH}


def similarity(a: str, b: str) -> float:
    ta, tb = _tokens(a), _tokens(b)
    if not ta or not tb:
        return 0.0
    return len(ta & tb) / len(ta | tb)


def objective_alignment(text: str, objective: Optional[str]) -> float:
    """
    Fraction of the objective's tokens that appear in the question text.

    Objectives are short phrases, so a union-based ratio against a full
    question stem would sit near zero; coverage of the objective is used
    instead. Returns 1.0 when the objective has no scoring tokens.
    """
    goal = _tokens(objective or "")
    if not goal:
        return 1.0
    return len(goal & _tokens(text)) / len(goal)


def find_duplicate(
    text: str,
    correct_answer: str,
    accepted: Iterable,
    threshold: float = 0.4,
    prefix_length: int = 40,
) -> Optional[str]:
    """
    Compare a candidate against accepted questions.

    Returns a human-readable reason for the first collision, or None.
    `accepted` items need `.text` and `.correct_option`.
    """
    key = fingerprint(text, correct_answer, prefix_length)
    for other in accepted:
        if fingerprint(other.text, other.correct_option, prefix_length) == key:
            return f"fingerprint match with '{other.text[:50]}'"
        sim = similarity(text, other.text)
        if sim > threshold:
            return f"similarity={sim:.2f} with '{other.text[:50]}'"
    return None


def is_duplicate(candidate, accepted: Iterable, threshold: float = 0.4, prefix_length: int = 40) -> bool:
    return find_duplicate(candidate.text, candidate.correct_option, accepted, threshold, prefix_length) is not None
