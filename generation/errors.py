"""
Error taxonomy for the question generation pipeline.

Only BatchValidationError and ExhaustionError ever reach a caller.
The rest are recovered inside the orchestrator.
"""

from typing import Optional


class GenerationError(Exception):
    """Base class for all pipeline errors."""


class TransportError(GenerationError):
    """Provider unreachable, timed out, or answered with a non-2xx status."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"[{provider}] {message}")
        self.provider = provider
        self.status_code = status_code


class MalformedResponseError(GenerationError, ValueError):
    """Provider text could not be parsed into a question, even after repair."""


class DuplicateCandidateError(GenerationError):
    """A candidate collided with an already-accepted question in the batch."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class BatchValidationError(GenerationError, ValueError):
    """The batch request itself is invalid (missing subject, bad count, ...)."""


class ExhaustionError(GenerationError, RuntimeError):
    """Neither generation nor the fallback library could fill a slot."""


class OffTopicCandidateError(DuplicateCandidateError):
    """A candidate did not cover enough of the requested objective; replaced like a duplicate."""
