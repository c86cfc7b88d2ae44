"""In-memory storage implementations for testing and development.

Dictionary-based implementations of the storage interfaces. Data lives for
the lifetime of the process. ``InMemoryAnnotationStore`` groups the four
stores and provides the unit of work: it serializes transactions with an
``asyncio.Lock`` and restores a snapshot of every store when the body of a
transaction raises.

For production use, implement the storage interfaces against a database
and map ``transaction()`` onto a database transaction.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

from tokspan.document import Document
from tokspan.entity import EntityItem, EntityLabel, normalize_label_name
from tokspan.storage.interfaces import (
    AnnotationStore,
    DocumentStorageInterface,
    EntityItemStorageInterface,
    EntityLabelStorageInterface,
    TokenStorageInterface,
)
from tokspan.token import DocumentToken


class InMemoryDocumentStorage(DocumentStorageInterface):
    """In-memory document storage keyed by document_id.

    Example:
        ```python
        storage = InMemoryDocumentStorage()
        await storage.add(document)
        doc = await storage.get(document.document_id)
        ```
    """

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}

    async def add(self, document: Document) -> str:
        """Adds a document, overwriting any document with the same ID."""
        self._documents[document.document_id] = document
        return document.document_id

    async def get(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    async def update(self, document: Document) -> bool:
        if document.document_id not in self._documents:
            return False
        self._documents[document.document_id] = document
        return True

    async def delete(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None

    async def list_all(self) -> list[Document]:
        return list(self._documents.values())

    def snapshot(self) -> Any:
        return dict(self._documents)

    def restore(self, state: Any) -> None:
        self._documents = state


class InMemoryTokenStorage(TokenStorageInterface):
    """In-memory token storage: one ``{token_index: token}`` dict per document.

    Tokens are frozen models, so snapshots only need to copy the dicts.
    """

    def __init__(self) -> None:
        self._tokens: dict[str, dict[int, DocumentToken]] = {}

    async def get_by_document(self, document_id: str) -> list[DocumentToken]:
        by_index = self._tokens.get(document_id, {})
        return [by_index[i] for i in sorted(by_index)]

    async def add(self, token: DocumentToken) -> None:
        self._tokens.setdefault(token.document_id, {})[token.token_index] = token

    async def add_batch(self, tokens: Sequence[DocumentToken]) -> int:
        for token in tokens:
            await self.add(token)
        return len(tokens)

    async def update(self, token: DocumentToken) -> bool:
        by_index = self._tokens.get(token.document_id)
        if by_index is None or token.token_index not in by_index:
            return False
        by_index[token.token_index] = token
        return True

    async def delete_by_document(self, document_id: str) -> int:
        return len(self._tokens.pop(document_id, {}))

    def snapshot(self) -> Any:
        return {doc_id: dict(by_index) for doc_id, by_index in self._tokens.items()}

    def restore(self, state: Any) -> None:
        self._tokens = state


class InMemoryEntityItemStorage(EntityItemStorageInterface):
    """In-memory entity storage keyed by entity_id.

    Per-document lookups scan all entities and return them in insertion
    order. Updating an entity keeps its position.
    """

    def __init__(self) -> None:
        self._entities: dict[str, EntityItem] = {}

    async def get(self, entity_id: str) -> EntityItem | None:
        return self._entities.get(entity_id)

    async def get_by_document(self, document_id: str) -> list[EntityItem]:
        return [e for e in self._entities.values() if e.document_id == document_id]

    async def find_by_span(
        self,
        document_id: str,
        token_start: int,
        token_end: int,
    ) -> EntityItem | None:
        for entity in self._entities.values():
            if entity.document_id == document_id and entity.token_start == token_start and entity.token_end == token_end:
                return entity
        return None

    async def add(self, entity: EntityItem) -> str:
        self._entities[entity.entity_id] = entity
        return entity.entity_id

    async def update(self, entity: EntityItem) -> bool:
        if entity.entity_id not in self._entities:
            return False
        self._entities[entity.entity_id] = entity
        return True

    async def delete(self, entity_id: str) -> bool:
        return self._entities.pop(entity_id, None) is not None

    def snapshot(self) -> Any:
        return dict(self._entities)

    def restore(self, state: Any) -> None:
        self._entities = state


class InMemoryEntityLabelStorage(EntityLabelStorageInterface):
    """In-memory label storage with an index on the normalized label name.

    When two labels normalize to the same name the first one stays indexed.
    """

    def __init__(self) -> None:
        self._labels: dict[str, EntityLabel] = {}
        self._by_name: dict[str, str] = {}

    async def get(self, label_id: str) -> EntityLabel | None:
        return self._labels.get(label_id)

    async def find_by_name(self, name: str) -> EntityLabel | None:
        label_id = self._by_name.get(normalize_label_name(name))
        return self._labels.get(label_id) if label_id is not None else None

    async def add(self, label: EntityLabel) -> str:
        self._labels[label.label_id] = label
        self._by_name.setdefault(label.normalized_name, label.label_id)
        return label.label_id

    async def list_all(self) -> list[EntityLabel]:
        return list(self._labels.values())

    async def delete(self, label_id: str) -> bool:
        label = self._labels.pop(label_id, None)
        if label is None:
            return False
        if self._by_name.get(label.normalized_name) == label_id:
            del self._by_name[label.normalized_name]
        return True

    def snapshot(self) -> Any:
        return dict(self._labels), dict(self._by_name)

    def restore(self, state: Any) -> None:
        self._labels, self._by_name = state


class InMemoryAnnotationStore(AnnotationStore):
    """All four in-memory stores behind one serialized, rollback-capable unit of work.

    Example:
        ```python
        store = InMemoryAnnotationStore()
        async with store.transaction():
            await store.documents.add(document)
            await store.tokens.add_batch(tokens)
        ```
    """

    def __init__(self) -> None:
        self.documents = InMemoryDocumentStorage()
        self.tokens = InMemoryTokenStorage()
        self.entities = InMemoryEntityItemStorage()
        self.labels = InMemoryEntityLabelStorage()
        self._lock = asyncio.Lock()
        self._owner: asyncio.Task | None = None

    def _stores(self) -> tuple[Any, ...]:
        return (self.documents, self.tokens, self.entities, self.labels)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        task = asyncio.current_task()
        if self._owner is not None and self._owner is task:
            yield
            return
        async with self._lock:
            self._owner = task
            snapshots = [store.snapshot() for store in self._stores()]
            try:
                yield
            except BaseException:
                for store, state in zip(self._stores(), snapshots):
                    store.restore(state)
                raise
            finally:
                self._owner = None
