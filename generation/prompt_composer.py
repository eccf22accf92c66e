"""
Prompt Composer

Builds one generation instruction per attempt. Repeated calls for the same
subject are varied on two axes:
  - archetype   → ARCHETYPES[attempt_index % len(ARCHETYPES)]
  - context     → random pick from CONTEXTS on every call

The output schema embedded here is the one response_parser.py expects.
"""

import random
from typing import Optional, Sequence


SYSTEM_PROMPT = (
    "You are an expert national-exam question setter. "
    "Output only the JSON object that is asked for."
)


# ─── Archetype rotation ────────────────────────────────────────────────────────

ARCHETYPES = [
    ("scenario-based",
     "Open with a short realistic scenario and ask the learner to apply a concept to it."),
    ("multi-step calculation",
     "Require at least two dependent reasoning or calculation steps before the answer is reachable."),
    ("conceptual trap",
     "Target a concept students commonly confuse; the most tempting distractor must encode that confusion."),
    ("comparison",
     "Ask the learner to compare two related processes, quantities or ideas and identify the decisive difference."),
    ("prediction",
     "Describe a change to a system and ask what happens next, or what the outcome will be."),
    ("error-spotting",
     "Present a short worked solution or claim containing one mistake and ask which step or statement is wrong."),
    ("data interpretation",
     "Give a small table, set of measurements or described graph and ask what can be concluded from it."),
    ("reverse reasoning",
     "Give the result or observation and ask which cause, condition or starting value produced it."),
]


# ─── Context rotation ──────────────────────────────────────────────────────────

CONTEXTS = [
    "a school laboratory experiment",
    "an everyday situation at home or in the market",
    "a farming or agricultural setting",
    "a public health campaign",
    "a construction or engineering project",
    "a historical discovery and the scientist behind it",
    "a sports or athletics event",
    "an environmental field study",
    "a small business keeping its accounts",
    "a transport or travel journey",
    "a medical clinic or hospital",
    "a space exploration mission",
]


# ─── Difficulty and subject guidance ───────────────────────────────────────────

DIFFICULTY_GUIDELINES = {
    "easy": "Test direct understanding of the objective; answer choices should be clear but still plausible.",
    "medium": "Require applying the concept to a slightly unfamiliar situation; some analysis should be needed.",
    "hard": "Require deep understanding and several connected ideas; it should challenge strong students.",
}

SUBJECT_FORMATTING = {
    "math": "Use LaTeX between $ signs for all mathematical expressions, e.g. $\\frac{a}{b}$, $\\sqrt{x}$.",
    "physics": "Use LaTeX between $ signs for formulas and always include SI units, e.g. $F = ma$.",
    "chemistry": "Use proper chemical notation with subscripts and states, e.g. 2H₂(g) + O₂(g) → 2H₂O(l).",
    "biology": "Use precise biological terminology; describe any structure that would normally be shown in a diagram.",
    "english": "Keep grammar and vocabulary items unambiguous; quote any passage the question depends on.",
    "history": "Include the relevant dates, events and figures, and keep every option historically plausible.",
    "geography": "Describe any map or region in words and use correct physical and human geography terms.",
}

SUBJECT_ALIASES = {
    "mathematics": "math",
    "maths": "math",
    "bio": "biology",
    "chem": "chemistry",
}


def canonical_subject(subject: str) -> str:
    key = (subject or "").strip().lower()
    return SUBJECT_ALIASES.get(key, key)


# ─── Template ──────────────────────────────────────────────────────────────────

QUESTION_PROMPT = """Generate exactly ONE challenging multiple-choice question.

SPECIFICATIONS:
- Subject: {subject}
- Unit objective: {objective}
- Difficulty: {difficulty} ({difficulty_guideline})
- Archetype: {archetype} ({archetype_instruction})
- Context: frame the question around {context}
{formatting}
AUTHORING RULES:
1. Exactly ONE option must be unambiguously correct.
2. The three distractors must be plausible and grounded in common misconceptions.
3. The question must be structurally different from typical textbook questions and from any listed below.
4. Do NOT use "All of the above" or "None of the above".
5. The stem must be complete and self-sufficient.
{avoid_block}
OUTPUT FORMAT — respond with ONLY a valid JSON object, no markdown, no extra text:
{{
  "question_text": "<the complete question>",
  "option_a": "<first option>",
  "option_b": "<second option>",
  "option_c": "<third option>",
  "option_d": "<fourth option>",
  "correct_answer": "<A|B|C|D>",
  "explanation": "<why the correct answer is right and the others are wrong>"
}}
"""


def compose_prompt(
    subject: str,
    objective: Optional[str],
    attempt_index: int,
    difficulty: str = "medium",
    avoid: Sequence[str] = (),
    rng: Optional[random.Random] = None,
) -> str:
    """
    Build the generation instruction for one attempt.

    Args:
        subject:        Subject name as requested
        objective:      Optional unit objective
        attempt_index:  Selects the archetype; callers offset it for replacements
        difficulty:     easy | medium | hard
        avoid:          Stems already in the batch; the five most recent are listed
        rng:            Source of the context pick (module RNG when None)
    """
    rng = rng or random
    name, instruction = ARCHETYPES[attempt_index % len(ARCHETYPES)]
    context = rng.choice(CONTEXTS)

    difficulty = (difficulty or "medium").lower()
    guideline = DIFFICULTY_GUIDELINES.get(difficulty, DIFFICULTY_GUIDELINES["medium"])

    fmt = SUBJECT_FORMATTING.get(canonical_subject(subject))
    formatting = f"- Formatting: {fmt}\n" if fmt else ""

    recent = [s.strip()[:120] for s in avoid if s and s.strip()][-5:]
    if recent:
        avoid_block = "\nQUESTIONS ALREADY USED (do not repeat or paraphrase):\n" + "\n".join(
            f"- {s}" for s in recent
        ) + "\n"
    else:
        avoid_block = ""

    return QUESTION_PROMPT.format(
        subject=subject,
        objective=objective or "any core topic of the subject",
        difficulty=difficulty,
        difficulty_guideline=guideline,
        archetype=name,
        archetype_instruction=instruction,
        context=context,
        formatting=formatting,
        avoid_block=avoid_block,
    )
