"""Test fixtures and helpers.

This module provides:
- An in-memory AnnotationStore per test, with the services built on it
- A fixed clock so created_at values are predictable
- MockEntityExtractor, which returns preset candidates or fails on demand
- Factory and assertion helpers for entities and token marks
"""

from datetime import datetime, timezone
from typing import Sequence

import pytest

from tokspan.annotation import EntityAnnotator, LabelRegistry
from tokspan.clock import FixedClock
from tokspan.editing import DocumentEditor
from tokspan.entity import EntityCandidate, EntityItem
from tokspan.errors import ExtractionError
from tokspan.pipeline.interfaces import EntityExtractorInterface
from tokspan.storage.memory import InMemoryAnnotationStore
from tokspan.sync import TokenEntitySynchronizer

FIXED_TIME = datetime(2025, 10, 1, 9, 30, tzinfo=timezone.utc)


class MockEntityExtractor(EntityExtractorInterface):
    """Extractor returning a preset list of candidates.

    Records every text it was asked to process. When ``error`` is set the
    extractor raises ExtractionError instead, like a failed service call.
    """

    def __init__(self, candidates: Sequence[EntityCandidate] = (), error: str | None = None) -> None:
        self.candidates = list(candidates)
        self.error = error
        self.calls: list[str] = []

    async def extract(self, text: str) -> list[EntityCandidate]:
        self.calls.append(text)
        if self.error is not None:
            raise ExtractionError(self.error)
        return list(self.candidates)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(instant=FIXED_TIME)


@pytest.fixture
def store() -> InMemoryAnnotationStore:
    """Provide a fresh in-memory store; each test starts empty."""
    return InMemoryAnnotationStore()


@pytest.fixture
def editor(store: InMemoryAnnotationStore, clock: FixedClock) -> DocumentEditor:
    return DocumentEditor(store, clock=clock)


@pytest.fixture
def annotator(store: InMemoryAnnotationStore, clock: FixedClock) -> EntityAnnotator:
    return EntityAnnotator(store, clock=clock)


@pytest.fixture
def labels(store: InMemoryAnnotationStore, clock: FixedClock) -> LabelRegistry:
    return LabelRegistry(store, clock=clock)


@pytest.fixture
def synchronizer(store: InMemoryAnnotationStore) -> TokenEntitySynchronizer:
    return TokenEntitySynchronizer(store)


def make_entity(
    document_id: str | None,
    token_start: int | None,
    token_end: int | None,
    text: str = "",
    entity_id: str | None = None,
    label_id: str | None = None,
) -> EntityItem:
    """Create an EntityItem with sensible defaults; a fresh id unless one is given."""
    fields: dict = {
        "document_id": document_id,
        "token_start": token_start,
        "token_end": token_end,
        "text": text,
        "label_id": label_id,
    }
    if entity_id is not None:
        fields["entity_id"] = entity_id
    return EntityItem(**fields)


async def marks(store: InMemoryAnnotationStore, document_id: str) -> list[str | None]:
    """Return each token's entity_id (None when unmarked), in token order."""
    tokens = await store.tokens.get_by_document(document_id)
    return [t.entity_id if t.is_entity else None for t in tokens]


async def assert_marks_consistent(store: InMemoryAnnotationStore, document_id: str) -> None:
    """Every token is marked iff some entity covers it, with a covering entity's id."""
    tokens = await store.tokens.get_by_document(document_id)
    entities = await store.entities.get_by_document(document_id)
    for token in tokens:
        covering = {e.entity_id for e in entities if e.token_start <= token.token_index <= e.token_end}
        if covering:
            assert token.is_entity, f"token {token.token_index} should be marked"
            assert token.entity_id in covering, f"token {token.token_index} marked by non-covering entity"
        else:
            assert not token.is_entity, f"token {token.token_index} should not be marked"
            assert token.entity_id is None
