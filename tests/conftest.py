import asyncio
import json
import random

import pytest

from generation.errors import TransportError
from generation.provider_client import ProviderClient
from generation.settings import GenerationSettings


class FakeProvider(ProviderClient):
    """Scripted provider: pops one response per call; exceptions in the script are raised."""

    def __init__(self, responses=(), name="fake", delay=0.0):
        self.name = name
        self.responses = list(responses)
        self.delay = delay
        self.prompts = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        item = self.responses.pop(0) if self.responses else TransportError(self.name, "script exhausted")
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(item, Exception):
            raise item
        return item


def mcq_json(text, answer="A", options=("alpha", "beta", "gamma", "delta"), explanation="Because."):
    return json.dumps({
        "question_text": text,
        "option_a": options[0],
        "option_b": options[1],
        "option_c": options[2],
        "option_d": options[3],
        "correct_answer": answer,
        "explanation": explanation,
    })


@pytest.fixture
def settings():
    return GenerationSettings(
        providers=[],
        provider_timeout_seconds=1.0,
        slot_deadline_seconds=5.0,
        stagger_seconds=0,
        retry_backoff_seconds=0,
    )


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def failing_provider():
    return FakeProvider(name="down")
