"""Document lifecycle: create, edit and delete documents with their tokens.

A content edit runs the realignment pipeline in one unit of work:

    1. Tokenize the new content
    2. Align old and new token texts with an LCS
    3. Move every entity span through the alignment, deleting entities
       whose text disappeared entirely
    4. Rebuild the token table from the new tokenization
    5. Recompute every token mark from the surviving entities

Nothing of a half-applied edit is ever visible: if any step raises, the
unit of work restores the previous documents, tokens and entities.
"""

from pydantic import BaseModel

from tokspan.clock import Clock
from tokspan.document import Document
from tokspan.errors import ConflictError, NotFoundError, StaleVersionError
from tokspan.logging import setup_logging
from tokspan.realign import realign_spans
from tokspan.storage.interfaces import AnnotationStore
from tokspan.sync import TokenEntitySynchronizer
from tokspan.token import DocumentToken
from tokspan.tokenizer import build_tokens

logger = setup_logging()


class EditResult(BaseModel):
    """Outcome of a content edit.

    Attributes:
        document: The stored document after the edit.
        entities_updated: IDs of entities that survived, with new spans.
        entities_deleted: IDs of entities removed because none of their
            characters survived.
    """

    model_config = {"frozen": True}

    document: Document
    entities_updated: tuple[str, ...] = ()
    entities_deleted: tuple[str, ...] = ()


class DocumentEditor:
    """Creates, edits and deletes documents, keeping tokens and entities aligned."""

    def __init__(self, store: AnnotationStore, clock: Clock | None = None):
        self.store = store
        self.synchronizer = TokenEntitySynchronizer(store)
        self.clock = clock or Clock()

    async def get(self, document_id: str) -> Document:
        document = await self.store.documents.get(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id!r} not found")
        return document

    async def list_all(self) -> list[Document]:
        return await self.store.documents.list_all()

    async def tokens(self, document_id: str) -> list[DocumentToken]:
        await self.get(document_id)
        return await self.store.tokens.get_by_document(document_id)

    async def _rebuild_tokens(self, document: Document) -> int:
        await self.store.tokens.delete_by_document(document.document_id)
        tokens = build_tokens(document.document_id, document.content)
        if tokens:
            await self.store.tokens.add_batch(tokens)
        return len(tokens)

    async def create(
        self,
        content: str,
        title: str | None = None,
        document_id: str | None = None,
    ) -> Document:
        """Store a new document and its unmarked tokens.

        Raises:
            ConflictError: If a document with ``document_id`` already exists.
        """
        fields: dict = {"title": title, "content": content or "", "created_at": self.clock.now()}
        if document_id is not None:
            fields["document_id"] = document_id
        document = Document(**fields)
        async with self.store.transaction():
            if await self.store.documents.get(document.document_id) is not None:
                raise ConflictError(f"Document {document.document_id!r} already exists")
            await self.store.documents.add(document)
            count = await self._rebuild_tokens(document)
        logger.info(f"Created document {document.document_id} with {count} tokens")
        return document

    async def update(
        self,
        document_id: str,
        content: str,
        title: str | None = None,
        expected_version: int | None = None,
    ) -> EditResult:
        """Replace a document's content and realign its entities.

        Args:
            document_id: Document to edit.
            content: The complete new content.
            title: New title; the current title is kept when None.
            expected_version: The version the caller based the edit on.
                When given and different from the stored version the edit
                is rejected. When None no check is made.

        Raises:
            NotFoundError: If the document does not exist.
            StaleVersionError: If ``expected_version`` is stale.
        """
        async with self.store.transaction():
            current = await self.get(document_id)
            if expected_version is not None and expected_version != current.version:
                raise StaleVersionError(document_id, expected_version, current.version)

            old_tokens = [t.token_text for t in await self.store.tokens.get_by_document(document_id)]
            new_tokens = build_tokens(document_id, content)
            entities = await self.store.entities.get_by_document(document_id)
            realigned = realign_spans(old_tokens, [t.token_text for t in new_tokens], entities)

            document = current.model_copy(
                update={
                    "content": content or "",
                    "title": current.title if title is None else title,
                    "version": current.version + 1,
                }
            )
            await self.store.documents.update(document)

            for entity in realigned.deleted:
                await self.store.entities.delete(entity.entity_id)
                logger.debug(f"Entity {entity.entity_id} '{entity.text}' lost all its tokens, deleted")
            for entity in realigned.updated:
                await self.store.entities.update(entity)

            await self._rebuild_tokens(document)
            await self.synchronizer.resync(document_id)

        logger.info(
            f"Updated document {document_id} to version {document.version}: "
            f"{len(old_tokens)} -> {len(new_tokens)} tokens, "
            f"{len(realigned.updated)} entities realigned, {len(realigned.deleted)} deleted"
        )
        return EditResult(
            document=document,
            entities_updated=tuple(e.entity_id for e in realigned.updated),
            entities_deleted=tuple(e.entity_id for e in realigned.deleted),
        )

    async def delete(self, document_id: str) -> None:
        """Delete a document together with its tokens and entities.

        Raises:
            NotFoundError: If the document does not exist.
        """
        async with self.store.transaction():
            await self.get(document_id)
            await self.store.tokens.delete_by_document(document_id)
            entities = await self.store.entities.get_by_document(document_id)
            for entity in entities:
                await self.store.entities.delete(entity.entity_id)
            await self.store.documents.delete(document_id)
        logger.info(f"Deleted document {document_id} and {len(entities)} entities")
