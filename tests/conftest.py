"""Test configuration for the teaching plan backend."""

import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from lessonplan.extraction.sources import ExtractionSource
from lessonplan.paths import set_value
from lessonplan.persistence import InMemoryDocumentStore
from lessonplan.schema import TeachingPlan, default_document


class FakeExtractor:
    """Deterministic extraction collaborator used in tests to avoid real API calls."""

    def __init__(self, replies: Optional[Sequence[Any]] = None) -> None:
        self.replies: List[Any] = list(replies or [])
        self.sources: List[ExtractionSource] = []
        self.gate = None  # set to an asyncio.Event to hold calls until it is set

    def queue(self, reply: Any) -> None:
        """Queue a JSON value to return, or an exception to raise."""
        self.replies.append(reply)

    async def extract(self, source: ExtractionSource) -> Any:
        self.sources.append(source)
        if self.gate is not None:
            await self.gate.wait()
        if not self.replies:
            raise AssertionError("FakeExtractor expected a queued reply but none remain")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture()
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture()
def filled_plan() -> TeachingPlan:
    """A plan with text in every section, one game and two steps."""
    doc = default_document(2)
    edits = {
        "basic.level": "1",
        "basic.unit": "7",
        "basic.lessonNo": "1",
        "basic.className": "Sunflower",
        "objectives.vocab.core": "apple, banana",
        "objectives.patterns.core": "What is this? It's a ...",
        "objectives.expansion.culture": "Harvest festival",
        "materials.cards": "Fruit cards",
        "steps.0.step": "Warm-up",
        "steps.0.duration": "5",
        "steps.1.step": "Presentation",
        "steps.1.blackboard": "apple\nbanana",
        "games.0.name": "Simon Says",
        "connection.homework": "Draw three fruits",
        "feedback.parent.content": "Praised participation",
    }
    for path, value in edits.items():
        doc = set_value(doc, path, value)
    return doc


__all__ = ["FakeExtractor", "fake_extractor", "store", "filled_plan"]
