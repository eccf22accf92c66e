"""
Generation Orchestrator

Produces exactly N unique questions for (subject, objective, difficulty).

Per slot:
  Requesting → Validating → Accepted | Rejected (duplicate / off-topic / malformed)
             → Retry (next pass, attempt_index + offset) | Fallback | Done

  - slots run concurrently, launch staggered by stagger_seconds
  - pass p uses attempt_index = slot + p * replacement_offset  (+10, +20)
  - providers are tried in order (or raced) until one returns a parseable question
  - check-then-accept runs under one asyncio.Lock per batch
  - after max_passes (or the slot deadline) the slot is filled from the
    Fallback Composer, which always succeeds unless misconfigured
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from generation.errors import (
    BatchValidationError,
    DuplicateCandidateError,
    ExhaustionError,
    MalformedResponseError,
    OffTopicCandidateError,
    TransportError,
)
from generation.fallback_composer import FallbackComposer
from generation.fingerprint import find_duplicate, is_duplicate, objective_alignment
from generation.prompt_composer import compose_prompt
from generation.provider_client import ProviderClient
from generation.response_parser import parse_candidate
from generation.schemas import (
    DIFFICULTY_LEVELS,
    GeneratedBatch,
    Question,
    QuestionCandidate,
    accept,
)
from generation.settings import GenerationSettings, get_settings

log = logging.getLogger("generation.pipeline")


@dataclass
class _BatchState:
    """Everything shared between the slots of one batch."""
    count: int
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    accepted: List[Question] = field(default_factory=list)
    slots: List[Optional[Question]] = field(default_factory=list)
    fallback_slots: Set[int] = field(default_factory=set)

    def __post_init__(self):
        self.slots = [None] * self.count


def _discard_late_result(task: asyncio.Future) -> None:
    # Abandoned provider call finished after its deadline; drop whatever it produced.
    if not task.cancelled() and task.exception() is not None:
        log.debug(f"[LATE] Discarded late provider error: {task.exception()}")


class GenerationOrchestrator:
    """Fan-out, validate, deduplicate and fall back, one batch at a time."""

    def __init__(
        self,
        providers: Sequence[ProviderClient],
        settings: Optional[GenerationSettings] = None,
        fallback: Optional[FallbackComposer] = None,
        rng: Optional[random.Random] = None,
    ):
        self.providers = list(providers)
        self.settings = settings or get_settings()
        self.fallback = fallback or FallbackComposer()
        self.rng = rng or random.Random()

    # ─── Public entry ─────────────────────────────────────────────────────────

    async def generate(
        self,
        subject: str,
        count: int,
        objective: Optional[str] = None,
        difficulty: Optional[str] = "medium",
    ) -> GeneratedBatch:
        """
        Generate a batch of exactly `count` questions with distinct fingerprints.

        Raises:
            BatchValidationError: missing subject, bad count or difficulty
            ExhaustionError:      the fallback library could not fill a slot
        """
        subject, difficulty = self._validate(subject, count, difficulty)
        objective = (objective or "").strip() or None
        level = DIFFICULTY_LEVELS[difficulty]

        log.info(
            f"[BATCH START] subject={subject}, count={count}, objective={objective!r}, "
            f"difficulty={difficulty}, providers={[p.name for p in self.providers]}"
        )
        if not self.providers:
            log.warning("[BATCH] No providers configured; every slot will use the fallback library")

        state = _BatchState(count=count)
        tasks = [
            asyncio.ensure_future(self._fill_slot(state, slot, subject, objective, difficulty, level))
            for slot in range(count)
        ]
        try:
            await asyncio.gather(*tasks)
        except ExhaustionError:
            for t in tasks:
                t.cancel()
            raise

        questions = [q for q in state.slots if q is not None]
        if len(questions) != count:
            raise ExhaustionError(
                f"Only {len(questions)} of {count} slots could be filled. "
                "Please retry or narrow the request."
            )

        fell_back = len(state.fallback_slots)
        source = "local-bank" if fell_back == count else "generated"
        warning = None
        if fell_back:
            warning = (
                f"{fell_back} of {count} questions came from the curated question library "
                "because generation was unavailable or kept producing duplicates."
            )
        log.info(f"[BATCH DONE] {count - fell_back} generated, {fell_back} fallback, source={source}")
        return GeneratedBatch(questions=questions, source=source, warning=warning)

    def _validate(self, subject: str, count: int, difficulty: Optional[str]):
        subject = (subject or "").strip()
        if not subject:
            raise BatchValidationError("subject is required")
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise BatchValidationError("count must be a positive integer")
        if count > self.settings.max_batch_size:
            raise BatchValidationError(
                f"count must not exceed {self.settings.max_batch_size}"
            )
        difficulty = (difficulty or "medium").strip().lower()
        if difficulty not in DIFFICULTY_LEVELS:
            raise BatchValidationError("difficulty must be one of: easy, medium, hard")
        return subject, difficulty

    # ─── Slot state machine ───────────────────────────────────────────────────

    async def _fill_slot(
        self,
        state: _BatchState,
        slot: int,
        subject: str,
        objective: Optional[str],
        difficulty: str,
        level: int,
    ) -> Question:
        cfg = self.settings
        tag = f"[SLOT {slot}]"
        if slot and cfg.stagger_seconds:
            await asyncio.sleep(slot * cfg.stagger_seconds)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + cfg.slot_deadline_seconds

        for pass_no in range(cfg.max_passes if self.providers else 0):
            if loop.time() >= deadline:
                log.warning(f"{tag} Deadline reached after {pass_no} pass(es)")
                break

            attempt_index = slot + pass_no * cfg.replacement_offset
            prompt = compose_prompt(
                subject,
                objective,
                attempt_index,
                difficulty=difficulty,
                avoid=[q.text for q in state.accepted],
                rng=self.rng,
            )
            candidate = await self._request_candidate(prompt, subject, objective, level, deadline, tag)

            if candidate is None:
                log.warning(f"{tag} All providers failed on pass {pass_no + 1}/{cfg.max_passes}")
                if pass_no < cfg.max_passes - 1 and cfg.retry_backoff_seconds:
                    pause = min(cfg.retry_backoff_seconds * (pass_no + 1), max(0.0, deadline - loop.time()))
                    await asyncio.sleep(pause)
                continue

            try:
                async with state.lock:
                    question = self._accept_generated(state, slot, candidate, objective)
            except DuplicateCandidateError as e:
                next_index = slot + (pass_no + 1) * cfg.replacement_offset
                log.info(f"{tag} Rejected ({e.reason}); next attempt_index={next_index}")
                continue

            log.info(f"{tag} Accepted on pass {pass_no + 1}: '{question.text[:60]}'")
            return question

        async with state.lock:
            question = self._accept_fallback(state, slot, subject, objective, level)
        log.info(f"{tag} Filled from fallback library: '{question.text[:60]}'")
        return question

    # ─── Critical section (caller holds state.lock) ───────────────────────────

    def _accept_generated(
        self,
        state: _BatchState,
        slot: int,
        candidate: QuestionCandidate,
        objective: Optional[str],
    ) -> Question:
        cfg = self.settings
        if objective:
            score = objective_alignment(candidate.text, objective)
            if score < cfg.objective_alignment_threshold:
                raise OffTopicCandidateError(f"off-topic, alignment={score:.2f}")

        reason = find_duplicate(
            candidate.text,
            candidate.correct_option,
            state.accepted,
            threshold=cfg.duplicate_threshold,
            prefix_length=cfg.fingerprint_prefix_length,
        )
        if reason:
            raise DuplicateCandidateError(f"duplicate, {reason}")

        question = accept(candidate, "generated")
        state.accepted.append(question)
        state.slots[slot] = question
        return question

    def _accept_fallback(
        self,
        state: _BatchState,
        slot: int,
        subject: str,
        objective: Optional[str],
        level: int,
    ) -> Question:
        # Slot i probes i, i+N, i+2N, ... so no two slots ever pick the same entry.
        # Relabelled library picks only need distinct fingerprints among themselves;
        # generated questions are also held to the similarity threshold.
        cfg = self.settings
        prefix = cfg.fingerprint_prefix_length
        taken = {q.fingerprint(prefix) for q in state.accepted}
        generated = [q for q in state.accepted if q.source == "generated"]
        attempt_index = slot
        for _ in range(cfg.fallback_probe_limit):
            candidate = self.fallback.compose(subject, objective, attempt_index, level)
            if candidate.fingerprint(prefix) not in taken and not is_duplicate(
                candidate, generated, threshold=cfg.duplicate_threshold, prefix_length=prefix
            ):
                question = accept(candidate, "local-bank")
                state.accepted.append(question)
                state.slots[slot] = question
                state.fallback_slots.add(slot)
                return question
            log.debug(f"[SLOT {slot}] Fallback index {attempt_index} collides with an accepted question")
            attempt_index += state.count

        raise ExhaustionError(
            f"Fallback library could not produce a unique question for slot {slot} "
            f"({subject}). Please retry or narrow the request."
        )

    # ─── Provider fan-out ─────────────────────────────────────────────────────

    async def _request_candidate(
        self,
        prompt: str,
        subject: str,
        objective: Optional[str],
        level: int,
        deadline: float,
        tag: str,
    ) -> Optional[QuestionCandidate]:
        """One pass over the providers; the first parseable response wins."""
        if self.settings.race_providers and len(self.providers) > 1:
            return await self._race(prompt, subject, objective, level, deadline, tag)

        for provider in self.providers:
            candidate = await self._try_provider(provider, prompt, subject, objective, level, deadline, tag)
            if candidate is not None:
                return candidate
        return None

    async def _race(self, prompt, subject, objective, level, deadline, tag) -> Optional[QuestionCandidate]:
        pending = {
            asyncio.ensure_future(self._try_provider(p, prompt, subject, objective, level, deadline, tag))
            for p in self.providers
        }
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for fut in done:
                candidate = fut.result()
                if candidate is not None:
                    # Losers keep running; their results are never read.
                    return candidate
        return None

    async def _try_provider(
        self,
        provider: ProviderClient,
        prompt: str,
        subject: str,
        objective: Optional[str],
        level: int,
        deadline: float,
        tag: str,
    ) -> Optional[QuestionCandidate]:
        """Call one provider and parse; any transport or parse failure yields None."""
        loop = asyncio.get_running_loop()
        timeout = min(self.settings.provider_timeout_seconds, deadline - loop.time())
        try:
            if timeout <= 0:
                raise TransportError(provider.name, "slot deadline already passed")
            raw = await self._call_provider(provider, prompt, timeout)
            return parse_candidate(raw, subject, objective, level)
        except TransportError as e:
            log.warning(f"{tag} Provider failed: {e}")
        except MalformedResponseError as e:
            log.warning(f"{tag} Malformed response from {provider.name}: {e}")
        return None

    async def _call_provider(self, provider: ProviderClient, prompt: str, timeout: float) -> str:
        """
        Await a provider call for at most `timeout` seconds.

        A call that overruns is abandoned rather than cancelled: the request
        finishes in the background and its result is discarded.
        """
        task = asyncio.ensure_future(provider.complete(prompt))
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            task.add_done_callback(_discard_late_result)
            raise TransportError(provider.name, f"timed out after {timeout:.1f}s")
        return task.result()
