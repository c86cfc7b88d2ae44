"""Recompute entity spans after a document's content changes."""

from typing import Sequence

from pydantic import BaseModel

from tokspan.alignment import align
from tokspan.entity import EntityItem


class RealignmentResult(BaseModel):
    """Entities that survived an edit (with their new spans) and entities whose text vanished."""

    model_config = {"frozen": True}

    updated: tuple[EntityItem, ...] = ()
    deleted: tuple[EntityItem, ...] = ()


def realign_span(entity: EntityItem, old_to_new: dict[int, int]) -> tuple[int, int] | None:
    """Map an entity's span through an alignment.

    The new span is the bounding hull (min..max) of the surviving tokens.
    Interior tokens that changed are therefore still covered when
    characters on both sides of them survive. Returns None when no token of
    the span survived.
    """
    mapped = [old_to_new[i] for i in range(entity.token_start, entity.token_end + 1) if i in old_to_new]  # type: ignore[arg-type, operator]
    if not mapped:
        return None
    return min(mapped), max(mapped)


def realign_spans(
    old_tokens: Sequence[str],
    new_tokens: Sequence[str],
    entities: Sequence[EntityItem],
) -> RealignmentResult:
    """Realign every entity of a document from ``old_tokens`` to ``new_tokens``.

    Entity ``text`` is left as it was: it is the display copy captured at
    annotation time.
    """
    old_to_new = align(old_tokens, new_tokens)
    updated: list[EntityItem] = []
    deleted: list[EntityItem] = []
    for entity in entities:
        span = realign_span(entity, old_to_new)
        if span is None:
            deleted.append(entity)
        else:
            updated.append(entity.model_copy(update={"token_start": span[0], "token_end": span[1]}))
    return RealignmentResult(updated=tuple(updated), deleted=tuple(deleted))
