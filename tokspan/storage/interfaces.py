"""Storage interface definitions for documents, tokens, entities and labels."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Sequence

from tokspan.document import Document
from tokspan.entity import EntityItem, EntityLabel
from tokspan.token import DocumentToken


class DocumentStorageInterface(ABC):
    """Abstract interface for document storage operations."""

    @abstractmethod
    async def add(self, document: Document) -> str:
        """Store a document and return its ID."""

    @abstractmethod
    async def get(self, document_id: str) -> Document | None:
        """Retrieve a document by ID, or None if not found."""

    @abstractmethod
    async def update(self, document: Document) -> bool:
        """Replace a stored document. Returns False if it does not exist."""

    @abstractmethod
    async def delete(self, document_id: str) -> bool:
        """Delete a document by ID. Returns True if found and deleted."""

    @abstractmethod
    async def list_all(self) -> list[Document]:
        """Return every stored document."""


class TokenStorageInterface(ABC):
    """Abstract interface for per-document token storage.

    Tokens are addressed by ``(document_id, token_index)``.
    """

    @abstractmethod
    async def get_by_document(self, document_id: str) -> list[DocumentToken]:
        """Return a document's tokens ordered by token_index."""

    @abstractmethod
    async def add(self, token: DocumentToken) -> None:
        """Insert a single token."""

    @abstractmethod
    async def add_batch(self, tokens: Sequence[DocumentToken]) -> int:
        """Insert many tokens and return how many were stored."""

    @abstractmethod
    async def update(self, token: DocumentToken) -> bool:
        """Replace the token at the same position. Returns False if absent."""

    @abstractmethod
    async def delete_by_document(self, document_id: str) -> int:
        """Delete all tokens of a document and return how many were removed."""


class EntityItemStorageInterface(ABC):
    """Abstract interface for entity span storage."""

    @abstractmethod
    async def get(self, entity_id: str) -> EntityItem | None:
        """Retrieve an entity by ID, or None if not found."""

    @abstractmethod
    async def get_by_document(self, document_id: str) -> list[EntityItem]:
        """Return a document's entities in insertion order."""

    @abstractmethod
    async def find_by_span(
        self,
        document_id: str,
        token_start: int,
        token_end: int,
    ) -> EntityItem | None:
        """Find the entity with exactly this span in the document, if any."""

    @abstractmethod
    async def add(self, entity: EntityItem) -> str:
        """Store an entity and return its ID."""

    @abstractmethod
    async def update(self, entity: EntityItem) -> bool:
        """Replace a stored entity. Returns False if it does not exist."""

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """Delete an entity by ID. Returns True if found and deleted."""


class EntityLabelStorageInterface(ABC):
    """Abstract interface for entity label storage."""

    @abstractmethod
    async def get(self, label_id: str) -> EntityLabel | None:
        """Retrieve a label by ID, or None if not found."""

    @abstractmethod
    async def find_by_name(self, name: str) -> EntityLabel | None:
        """Find a label by case-insensitive name.

        Implementations should answer from an index on the normalized name
        rather than scanning all labels.
        """

    @abstractmethod
    async def add(self, label: EntityLabel) -> str:
        """Store a label and return its ID."""

    @abstractmethod
    async def list_all(self) -> list[EntityLabel]:
        """Return every stored label."""

    @abstractmethod
    async def delete(self, label_id: str) -> bool:
        """Delete a label by ID. Returns True if found and deleted."""


class AnnotationStore(ABC):
    """The four stores a document annotation workflow touches, plus a unit of work.

    Services run each document edit and each entity create/update/delete
    inside ``transaction()``. Either every write made inside it persists,
    or none do, and no other unit of work observes its intermediate state.
    """

    documents: DocumentStorageInterface
    tokens: TokenStorageInterface
    entities: EntityItemStorageInterface
    labels: EntityLabelStorageInterface

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Return an async context manager scoping one unit of work.

        Nested use from the same task joins the outer unit of work.
        """
