"""Keep token entity marks consistent with entity spans.

A token is marked (``is_entity=True``, ``entity_id`` set) exactly when some
entity of its document covers its index. When several entities cover the
same token, the one processed last wins: entities are processed in storage
order during a full resync, and the most recently created or updated entity
wins during incremental marking. Overlap is allowed; only exact duplicate
spans are rejected.
"""

from tokspan.entity import EntityItem
from tokspan.errors import ConflictError, ValidationError
from tokspan.logging import setup_logging
from tokspan.storage.interfaces import AnnotationStore
from tokspan.token import DocumentToken

logger = setup_logging()


def validate_span(entity: EntityItem) -> None:
    """Check the span bounds of an entity before it is written.

    Raises:
        ValidationError: If the document id is missing, a bound is missing
            or negative, or ``token_start > token_end``.
    """
    if not entity.document_id:
        raise ValidationError("document_id is required")
    if entity.token_start is None or entity.token_end is None:
        raise ValidationError("token_start and token_end are required")
    if entity.token_start < 0 or entity.token_end < 0:
        raise ValidationError("token_start and token_end must be non-negative")
    if entity.token_start > entity.token_end:
        raise ValidationError(f"token_start ({entity.token_start}) must not exceed token_end ({entity.token_end})")


class TokenEntitySynchronizer:
    """Rewrites token marks from the entity spans held in an AnnotationStore.

    Methods write only the tokens whose marks actually change. They do not
    open a unit of work themselves; callers run them inside
    ``store.transaction()`` together with the entity writes they follow.
    """

    def __init__(self, store: AnnotationStore):
        self.store = store

    async def check_duplicate_span(self, entity: EntityItem) -> None:
        """Reject a span that another entity of the same document already has.

        Raises:
            ConflictError: If a different entity has exactly the same
                ``(token_start, token_end)``.
        """
        existing = await self.store.entities.find_by_span(
            entity.document_id,  # type: ignore[arg-type]
            entity.token_start,  # type: ignore[arg-type]
            entity.token_end,  # type: ignore[arg-type]
        )
        if existing is not None and existing.entity_id != entity.entity_id:
            raise ConflictError(
                f"Span ({entity.token_start}, {entity.token_end}) of document {entity.document_id!r} "
                f"is already annotated by entity {existing.entity_id!r}"
            )

    async def _write_changed(self, before: list[DocumentToken], after: list[DocumentToken]) -> int:
        changed = 0
        for old, new in zip(before, after):
            if old != new:
                await self.store.tokens.update(new)
                changed += 1
        return changed

    async def _cover_map(self, document_id: str, exclude: str | None = None) -> dict[int, str]:
        """Map token index -> last entity (in storage order) covering it."""
        marks: dict[int, str] = {}
        for entity in await self.store.entities.get_by_document(document_id):
            if entity.entity_id == exclude:
                continue
            for index in range(entity.token_start, entity.token_end + 1):  # type: ignore[arg-type, operator]
                marks[index] = entity.entity_id
        return marks

    @staticmethod
    def _release(token: DocumentToken, others: dict[int, str]) -> DocumentToken:
        # Hand the token to another covering entity, if any.
        if token.token_index in others:
            return token.marked(others[token.token_index])
        return token.cleared()

    async def resync(self, document_id: str) -> int:
        """Recompute every token mark of a document from scratch.

        Returns the number of tokens whose marks changed.
        """
        tokens = await self.store.tokens.get_by_document(document_id)
        marks = await self._cover_map(document_id)
        updated = [t.marked(marks[t.token_index]) if t.token_index in marks else t.cleared() for t in tokens]
        changed = await self._write_changed(tokens, updated)
        logger.debug(f"Resynced document {document_id}: {len(set(marks.values()))} entities marked, {changed} token marks changed")
        return changed

    async def mark(self, entity: EntityItem) -> int:
        """Mark the tokens an entity covers and release its stale marks.

        Tokens outside the span that still reference this entity (left over
        from before the span shrank or moved) are cleared, or handed to
        another entity that still covers them.
        """
        tokens = await self.store.tokens.get_by_document(entity.document_id)  # type: ignore[arg-type]
        others: dict[int, str] | None = None
        updated: list[DocumentToken] = []
        for token in tokens:
            if entity.covers(token.token_index):
                updated.append(token.marked(entity.entity_id))
            elif token.is_entity and token.entity_id == entity.entity_id:
                if others is None:
                    others = await self._cover_map(entity.document_id, exclude=entity.entity_id)  # type: ignore[arg-type]
                updated.append(self._release(token, others))
            else:
                updated.append(token)
        return await self._write_changed(tokens, updated)

    async def unmark(self, entity_id: str, document_id: str) -> int:
        """Release every token mark that references an entity.

        Tokens still covered by another entity of the document are marked
        with that entity instead of being cleared.
        """
        tokens = await self.store.tokens.get_by_document(document_id)
        if not any(t.entity_id == entity_id for t in tokens):
            return 0
        others = await self._cover_map(document_id, exclude=entity_id)
        updated = [self._release(t, others) if t.entity_id == entity_id else t for t in tokens]
        return await self._write_changed(tokens, updated)

    async def is_consistent(self, document_id: str) -> bool:
        """Check that token marks agree with the document's entity spans.

        Every covered token must be marked with one of the entities covering
        it, and every uncovered token must be unmarked.
        """
        tokens = await self.store.tokens.get_by_document(document_id)
        entities = await self.store.entities.get_by_document(document_id)
        for token in tokens:
            covering = {e.entity_id for e in entities if e.covers(token.token_index)}
            if covering:
                if not token.is_entity or token.entity_id not in covering:
                    return False
            elif token.is_entity or token.entity_id is not None:
                return False
        return True
