"""
Response Parser / Repairer

Turns free-form provider text into a QuestionCandidate:
  1. strip markdown fences, take the longest {...} block
  2. strict json.loads
  3. on failure: json_repair (bare keys, single quotes, trailing commas)
  4. still no usable object → MalformedResponseError (caller moves on)

Missing fields are back-filled with placeholders instead of discarding the
whole response.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import json_repair
from pydantic import ValidationError

from generation.errors import MalformedResponseError
from generation.schemas import OPTION_LABELS, MCQOption, QuestionCandidate

log = logging.getLogger("generation.pipeline")


PLACEHOLDER_TEXT = "Question text was not provided by the generator."
PLACEHOLDER_OPTION = "Option {label}"
PLACEHOLDER_EXPLANATION = "No explanation was provided for this question."

_TEXT_KEYS = ("question_text", "question", "text", "stem")
_ANSWER_KEYS = ("correct_answer", "correct_option", "answer_key", "answer", "correct")
_EXPLANATION_KEYS = ("explanation", "rationale", "reason")


# ─── JSON extraction ───────────────────────────────────────────────────────────

def _strip_fences(raw: str) -> str:
    raw = (raw or "").strip()
    raw = re.sub(r"^```(?:json)?\s*", "", raw, flags=re.MULTILINE)
    raw = re.sub(r"\s*```$", "", raw, flags=re.MULTILINE)
    return raw


def _json_candidate(raw: str) -> str:
    """Longest brace-delimited substring: first '{' to last '}'."""
    start = raw.find("{")
    end = raw.rfind("}") + 1
    if start == -1 or end <= start:
        raise MalformedResponseError(f"No JSON object found: {raw[:200]!r}")
    return raw[start:end]


# ─── Repairs ───────────────────────────────────────────────────────────────────

def extract_json_obj(raw: str) -> Dict[str, Any]:
    """Strict parse first; near-JSON (bare keys, single quotes, trailing commas) goes through json_repair."""
    block = _json_candidate(_strip_fences(raw))
    try:
        data = json.loads(block)
    except json.JSONDecodeError as e:
        data = json_repair.loads(block)
        if not data:
            raise MalformedResponseError(f"Unparseable after repair ({e.msg}): {block[:200]!r}") from e
        log.info("[PARSE] Recovered near-JSON output after repair")
    if not isinstance(data, dict):
        raise MalformedResponseError(f"Expected JSON object, got {type(data).__name__}")
    return data


# ─── Field normalisation ───────────────────────────────────────────────────────

def _first_str(data: Dict[str, Any], keys) -> str:
    for key in keys:
        val = data.get(key)
        if val is not None and str(val).strip():
            return str(val).strip()
    return ""


def _options_from(data: Dict[str, Any]) -> List[str]:
    """Collect option texts in A–D order from whichever shape the provider used."""
    texts = ["", "", "", ""]

    for i, label in enumerate(OPTION_LABELS):
        val = data.get(f"option_{label.lower()}") or data.get(f"option_{label}")
        if val is not None:
            texts[i] = str(val).strip()

    opts = data.get("options") or data.get("choices")
    if isinstance(opts, dict):
        for i, label in enumerate(OPTION_LABELS):
            val = opts.get(label) or opts.get(label.lower())
            if val is not None and not texts[i]:
                texts[i] = str(val).strip()
    elif isinstance(opts, list):
        for i, item in enumerate(opts[:4]):
            if isinstance(item, dict):
                label = str(item.get("label", "")).strip().upper()[:1]
                val = str(item.get("text", "")).strip()
                idx = OPTION_LABELS.index(label) if label in OPTION_LABELS else i
            else:
                idx, val = i, str(item).strip()
            if val and not texts[idx]:
                texts[idx] = val

    return texts


_ANSWER_PREFIX = re.compile(
    r"^\W*(?:(?:(?:the\s+)?(?:correct\s+)?(?:answer|option|choice)|correct)(?:\s+is)?\b)?\W*",
    re.IGNORECASE,
)
_ANSWER_LETTER = re.compile(r"^([A-Da-d])(?![A-Za-z0-9])")


def normalise_answer(raw_answer: str, option_texts: List[str]) -> str:
    """
    Reduce a provider's answer to a single option letter.

    "c", "C)", "(C)", "Option C" and "Answer: C" all give "C". An answer that
    repeats an option's text maps to that option's label. An absent answer is
    back-filled as "A".

    Raises:
        MalformedResponseError: an answer was given but names no option
    """
    answer = (raw_answer or "").strip()
    if not answer:
        return "A"

    low = answer.lower()
    for label, text in zip(OPTION_LABELS, option_texts):
        if text.strip().lower() == low:
            return label

    match = _ANSWER_LETTER.match(_ANSWER_PREFIX.sub("", answer, count=1))
    if match:
        return match.group(1).upper()
    raise MalformedResponseError(f"Answer {answer[:40]!r} does not name an option")


# ─── Main entry ────────────────────────────────────────────────────────────────

def parse_candidate(
    raw: str,
    subject: str,
    objective: Optional[str] = None,
    difficulty_level: int = 3,
) -> QuestionCandidate:
    """
    Parse provider text into a QuestionCandidate.

    Raises:
        MalformedResponseError: no JSON object could be recovered, or the
            answer names no option
    """
    data = extract_json_obj(raw)

    text = _first_str(data, _TEXT_KEYS)
    option_texts = _options_from(data)
    raw_answer = _first_str(data, _ANSWER_KEYS)
    answer = normalise_answer(raw_answer, option_texts)
    explanation = _first_str(data, _EXPLANATION_KEYS)

    missing = [] if raw_answer else ["correct_answer"]
    if not text:
        text = PLACEHOLDER_TEXT
        missing.append("text")
    for i, label in enumerate(OPTION_LABELS):
        if not option_texts[i]:
            option_texts[i] = PLACEHOLDER_OPTION.format(label=label)
            missing.append(f"option_{label.lower()}")
    if not explanation:
        explanation = PLACEHOLDER_EXPLANATION
        missing.append("explanation")
    if missing:
        log.info(f"[PARSE] Back-filled missing fields: {', '.join(missing)}")

    try:
        return QuestionCandidate(
            text=text,
            options=[MCQOption(label=l, text=t) for l, t in zip(OPTION_LABELS, option_texts)],
            correct_option=answer,
            explanation=explanation,
            subject=subject,
            objective=objective,
            difficulty_level=difficulty_level,
        )
    except ValidationError as e:
        raise MalformedResponseError(f"Candidate failed validation: {e}") from e
