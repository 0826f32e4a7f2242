"""
Pytest configuration and fixtures for Pulse tests.
"""

import asyncio
import os

import pytest

# Set test environment before importing pulse modules
os.environ["PULSE_ENV"] = "development"
os.environ["PULSE_LOG_PROMPTS"] = "false"
os.environ.pop("OPENAI_API_KEY", None)

from interests.engine import SelectionEngine
from interests.follow_ups import FollowUpResult, GeneratedQuestion
from interests.store import InMemoryStorage, PreferenceStore
from interests.taxonomy import get_taxonomy


def run(coro):
    """Run a coroutine to completion (no pytest-asyncio needed)."""
    return asyncio.run(coro)


class FakeProvider:
    """
    Scripted follow-up provider.

    Returns `questions` for every call unless `result` or `error` is set.
    Records each call as (category_label, tag_labels).
    """

    def __init__(self, questions=None, result=None, error=None):
        self.questions = questions if questions is not None else [
            "Which matches do you want alerts for?",
            "Do you prefer scores or analysis?",
        ]
        self.result = result
        self.error = error
        self.calls: list[tuple[str, list[str]]] = []

    async def __call__(self, category_label: str, tag_labels: list[str]) -> FollowUpResult:
        self.calls.append((category_label, list(tag_labels)))
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return FollowUpResult.from_questions(
            [GeneratedQuestion(id=f"q{i}", question=text) for i, text in enumerate(self.questions)]
        )


class GatedProvider:
    """
    Provider whose calls block until released, for ordering tests.

    Each call gets its own gate; `release(i, questions)` completes call i.
    """

    def __init__(self):
        self.gates: list[asyncio.Future] = []
        self.calls: list[tuple[str, list[str]]] = []

    async def __call__(self, category_label: str, tag_labels: list[str]) -> FollowUpResult:
        self.calls.append((category_label, list(tag_labels)))
        gate = asyncio.get_running_loop().create_future()
        self.gates.append(gate)
        return await gate

    def release(self, index: int, *questions: str) -> None:
        self.gates[index].set_result(
            FollowUpResult.from_questions(
                [GeneratedQuestion(id=f"r{index}_{i}", question=q) for i, q in enumerate(questions)]
            )
        )


@pytest.fixture
def taxonomy():
    return get_taxonomy()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage):
    return PreferenceStore(storage)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def engine(store, taxonomy, provider):
    return SelectionEngine(store, taxonomy=taxonomy, provider=provider)
