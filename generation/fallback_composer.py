"""
Fallback Composer

Deterministic, never-failing source of questions for slots that generation
could not fill. Selection is library[attempt_index % len]; every full wrap
around the library produces a relabelled "review set" so that wrapped
selections keep distinct fingerprints.
"""

from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from generation.fallback_library import FALLBACK_LIBRARY, GENERIC_TEMPLATE
from generation.prompt_composer import canonical_subject
from generation.schemas import OPTION_LABELS, MCQOption, QuestionCandidate


@lru_cache(maxsize=1)
def _library() -> Dict[str, Tuple[dict, ...]]:
    return {subject: tuple(entries) for subject, entries in FALLBACK_LIBRARY.items()}


class FallbackComposer:
    """Selects and relabels curated questions per (subject, attempt_index)."""

    def __init__(self, library: Optional[Dict[str, List[dict]]] = None):
        self._entries = {k: tuple(v) for k, v in library.items()} if library is not None else _library()

    def has_library(self) -> bool:
        return bool(self._entries)

    def subjects(self) -> Dict[str, int]:
        return {subject: len(entries) for subject, entries in self._entries.items()}

    def compose(
        self,
        subject: str,
        objective: Optional[str] = None,
        attempt_index: int = 0,
        difficulty_level: int = 3,
    ) -> QuestionCandidate:
        entries = self._entries.get(canonical_subject(subject))
        if entries:
            entry = entries[attempt_index % len(entries)]
            cycle = attempt_index // len(entries)
            text = entry["text"]
        else:
            entry = GENERIC_TEMPLATE
            cycle = attempt_index
            objective_part = f" (focus: {objective})" if objective else ""
            text = entry["text"].format(subject=subject, objective_part=objective_part)

        return _relabel(entry, text, cycle, subject, objective, difficulty_level)


def _relabel(
    entry: dict,
    text: str,
    cycle: int,
    subject: str,
    objective: Optional[str],
    difficulty_level: int,
) -> QuestionCandidate:
    """Rotate options by `cycle` and mark the stem so wrapped picks stay distinct."""
    options = list(entry["options"])
    correct_idx = OPTION_LABELS.index(entry["correct"])
    shift = cycle % len(OPTION_LABELS)
    if shift:
        options = options[-shift:] + options[:-shift]
        correct_idx = (correct_idx + shift) % len(OPTION_LABELS)
    if cycle:
        text = f"Review set {cycle + 1}: {text}"

    return QuestionCandidate(
        text=text,
        options=[MCQOption(label=l, text=t) for l, t in zip(OPTION_LABELS, options)],
        correct_option=OPTION_LABELS[correct_idx],
        explanation=entry["explanation"],
        subject=subject,
        objective=objective,
        difficulty_level=difficulty_level,
    )
