"""Tests for token/entity mark synchronization.

This module verifies:
- Span validation rules
- Exact-duplicate span detection
- Full resync from the stored entities, with last-processed-wins on overlap
- Incremental mark/unmark, including release of stale marks
- The consistency check
"""

import pytest

from tokspan.editing import DocumentEditor
from tokspan.errors import ConflictError, ValidationError
from tokspan.storage.memory import InMemoryAnnotationStore
from tokspan.sync import TokenEntitySynchronizer, validate_span

from tests.conftest import make_entity, marks


class TestValidateSpan:
    @pytest.mark.parametrize(
        ("document_id", "start", "end"),
        [
            (None, 0, 1),
            ("", 0, 1),
            ("doc", None, 1),
            ("doc", 0, None),
            ("doc", -1, 1),
            ("doc", 0, -1),
            ("doc", 3, 2),
        ],
    )
    def test_rejects_invalid_spans(self, document_id, start, end) -> None:
        with pytest.raises(ValidationError):
            validate_span(make_entity(document_id, start, end))

    @pytest.mark.parametrize(("start", "end"), [(0, 0), (2, 5)])
    def test_accepts_valid_spans(self, start: int, end: int) -> None:
        validate_span(make_entity("doc", start, end))


class TestSynchronizer:
    """Marks written directly against the store, bypassing the annotator."""

    @pytest.fixture
    async def document_id(self, editor: DocumentEditor) -> str:
        document = await editor.create("ABCDEFGH")
        return document.document_id

    async def test_mark_covers_span(
        self,
        store: InMemoryAnnotationStore,
        synchronizer: TokenEntitySynchronizer,
        document_id: str,
    ) -> None:
        entity = make_entity(document_id, 2, 4, entity_id="e1")
        await store.entities.add(entity)

        changed = await synchronizer.mark(entity)

        assert changed == 3
        assert await marks(store, document_id) == [None, None, "e1", "e1", "e1", None, None, None]

    async def test_mark_releases_marks_outside_moved_span(
        self,
        store: InMemoryAnnotationStore,
        synchronizer: TokenEntitySynchronizer,
        document_id: str,
    ) -> None:
        entity = make_entity(document_id, 0, 3, entity_id="e1")
        await store.entities.add(entity)
        await synchronizer.mark(entity)

        moved = entity.model_copy(update={"token_start": 2, "token_end": 5})
        await store.entities.update(moved)
        await synchronizer.mark(moved)

        assert await marks(store, document_id) == [None, None, "e1", "e1", "e1", "e1", None, None]

    async def test_shrinking_hands_tokens_to_overlapping_entity(
        self,
        store: InMemoryAnnotationStore,
        synchronizer: TokenEntitySynchronizer,
        document_id: str,
    ) -> None:
        first = make_entity(document_id, 0, 2, entity_id="e1")
        second = make_entity(document_id, 1, 5, entity_id="e2")
        for entity in (first, second):
            await store.entities.add(entity)
            await synchronizer.mark(entity)
        assert await marks(store, document_id) == ["e1", "e2", "e2", "e2", "e2", "e2", None, None]

        shrunk = second.model_copy(update={"token_start": 4, "token_end": 5})
        await store.entities.update(shrunk)
        await synchronizer.mark(shrunk)

        assert await marks(store, document_id) == ["e1", "e1", "e1", None, "e2", "e2", None, None]
        assert await synchronizer.is_consistent(document_id)

    async def test_unmark_clears_only_that_entity(
        self,
        store: InMemoryAnnotationStore,
        synchronizer: TokenEntitySynchronizer,
        document_id: str,
    ) -> None:
        first = make_entity(document_id, 0, 1, entity_id="e1")
        second = make_entity(document_id, 5, 6, entity_id="e2")
        for entity in (first, second):
            await store.entities.add(entity)
            await synchronizer.mark(entity)

        await store.entities.delete("e1")
        changed = await synchronizer.unmark("e1", document_id)

        assert changed == 2
        assert await marks(store, document_id) == [None, None, None, None, None, "e2", "e2", None]

    async def test_unmark_unknown_entity_changes_nothing(
        self,
        synchronizer: TokenEntitySynchronizer,
        document_id: str,
    ) -> None:
        assert await synchronizer.unmark("missing", document_id) == 0

    async def test_resync_last_processed_wins(
        self,
        store: InMemoryAnnotationStore,
        synchronizer: TokenEntitySynchronizer,
        document_id: str,
    ) -> None:
        await store.entities.add(make_entity(document_id, 0, 3, entity_id="e1"))
        await store.entities.add(make_entity(document_id, 2, 5, entity_id="e2"))

        await synchronizer.resync(document_id)

        assert await marks(store, document_id) == ["e1", "e1", "e2", "e2", "e2", "e2", None, None]
        assert await synchronizer.is_consistent(document_id)

    async def test_resync_clears_stale_marks(
        self,
        store: InMemoryAnnotationStore,
        synchronizer: TokenEntitySynchronizer,
        document_id: str,
    ) -> None:
        entity = make_entity(document_id, 0, 7, entity_id="e1")
        await store.entities.add(entity)
        await synchronizer.mark(entity)
        await store.entities.delete("e1")
        assert not await synchronizer.is_consistent(document_id)

        await synchronizer.resync(document_id)

        assert await marks(store, document_id) == [None] * 8
        assert await synchronizer.is_consistent(document_id)

    async def test_check_duplicate_span(
        self,
        store: InMemoryAnnotationStore,
        synchronizer: TokenEntitySynchronizer,
        document_id: str,
    ) -> None:
        existing = make_entity(document_id, 1, 3, entity_id="e1")
        await store.entities.add(existing)

        with pytest.raises(ConflictError):
            await synchronizer.check_duplicate_span(make_entity(document_id, 1, 3))
        # The entity itself, an overlapping span, and another document are fine.
        await synchronizer.check_duplicate_span(existing)
        await synchronizer.check_duplicate_span(make_entity(document_id, 1, 4))
        await synchronizer.check_duplicate_span(make_entity("other", 1, 3))
