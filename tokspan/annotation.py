"""Entity span annotation and label management.

Every write runs in one unit of work of the AnnotationStore: the entity
row and the token marks it implies are committed together or not at all.
"""

from tokspan.clock import Clock
from tokspan.entity import EntityItem, EntityLabel
from tokspan.errors import ConflictError, NotFoundError, ValidationError
from tokspan.logging import setup_logging
from tokspan.storage.interfaces import AnnotationStore
from tokspan.sync import TokenEntitySynchronizer, validate_span

logger = setup_logging()


class EntityAnnotator:
    """Create, update and delete entity spans on documents.

    Attributes:
        store: Storage for documents, tokens, entities and labels.
        synchronizer: Rewrites token marks after each change.
        clock: Source of ``created_at`` for new entities.
    """

    def __init__(self, store: AnnotationStore, clock: Clock | None = None):
        self.store = store
        self.synchronizer = TokenEntitySynchronizer(store)
        self.clock = clock or Clock()

    async def _check(self, entity: EntityItem) -> None:
        validate_span(entity)
        document = await self.store.documents.get(entity.document_id)  # type: ignore[arg-type]
        if document is None:
            raise NotFoundError(f"Document {entity.document_id!r} not found")
        if entity.token_end >= len(document.content):  # type: ignore[operator]
            raise ValidationError(
                f"token_end ({entity.token_end}) is outside document {document.document_id!r} "
                f"with {len(document.content)} tokens"
            )
        await self.synchronizer.check_duplicate_span(entity)

    async def get(self, entity_id: str) -> EntityItem:
        entity = await self.store.entities.get(entity_id)
        if entity is None:
            raise NotFoundError(f"Entity {entity_id!r} not found")
        return entity

    async def list_by_document(self, document_id: str) -> list[EntityItem]:
        return await self.store.entities.get_by_document(document_id)

    async def create(self, entity: EntityItem) -> EntityItem:
        """Store a new entity span and mark its tokens.

        Raises:
            ValidationError: If the span is missing, negative, inverted or
                beyond the end of the document.
            NotFoundError: If the document does not exist.
            ConflictError: If an entity with this entity_id already exists,
                or the document already has an entity with exactly this span.
        """
        async with self.store.transaction():
            if await self.store.entities.get(entity.entity_id) is not None:
                raise ConflictError(f"Entity {entity.entity_id!r} already exists")
            await self._check(entity)
            if entity.created_at is None:
                entity = entity.model_copy(update={"created_at": self.clock.now()})
            await self.store.entities.add(entity)
            marked = await self.synchronizer.mark(entity)
        logger.info(f"Created entity {entity.entity_id} '{entity.text}' at {entity.span}, {marked} tokens marked")
        return entity

    async def update(self, entity: EntityItem) -> EntityItem:
        """Replace an existing entity and move its token marks.

        Marks left by the entity's previous span are released.

        Raises:
            NotFoundError: If the entity or its document does not exist.
            ValidationError: As for ``create``.
            ConflictError: If another entity of the document has exactly
                the new span.
        """
        async with self.store.transaction():
            existing = await self.get(entity.entity_id)
            await self._check(entity)
            if entity.document_id != existing.document_id:
                # Moving between documents: release the old document's marks first.
                await self.synchronizer.unmark(existing.entity_id, existing.document_id)  # type: ignore[arg-type]
            await self.store.entities.update(entity)
            marked = await self.synchronizer.mark(entity)
        logger.info(f"Updated entity {entity.entity_id} from {existing.span} to {entity.span}, {marked} token marks changed")
        return entity

    async def delete(self, entity_id: str) -> EntityItem:
        """Delete an entity and release every token mark that referenced it.

        Raises:
            NotFoundError: If the entity does not exist.
        """
        async with self.store.transaction():
            entity = await self.get(entity_id)
            await self.store.entities.delete(entity_id)
            await self.synchronizer.unmark(entity_id, entity.document_id)  # type: ignore[arg-type]
        logger.info(f"Deleted entity {entity_id} '{entity.text}'")
        return entity


class LabelRegistry:
    """Entity labels, looked up by case-insensitive name."""

    def __init__(self, store: AnnotationStore, clock: Clock | None = None):
        self.store = store
        self.clock = clock or Clock()

    async def get(self, label_id: str) -> EntityLabel:
        label = await self.store.labels.get(label_id)
        if label is None:
            raise NotFoundError(f"Label {label_id!r} not found")
        return label

    async def list_all(self) -> list[EntityLabel]:
        return await self.store.labels.list_all()

    async def create(self, name: str, description: str | None = None) -> EntityLabel:
        """Create a label.

        Raises:
            ValidationError: If the name is blank.
            ConflictError: If a label with the same name (ignoring case)
                already exists.
        """
        if not name or not name.strip():
            raise ValidationError("label name is required")
        async with self.store.transaction():
            if await self.store.labels.find_by_name(name) is not None:
                raise ConflictError(f"Label {name!r} already exists")
            label = EntityLabel(label_name=name.strip(), description=description, created_at=self.clock.now())
            await self.store.labels.add(label)
        return label

    async def find_or_create(self, name: str, description: str | None = None) -> tuple[EntityLabel, bool]:
        """Return the label with this name, creating it if needed.

        Returns:
            The label and whether it was created by this call.
        """
        async with self.store.transaction():
            label = await self.store.labels.find_by_name(name)
            if label is not None:
                return label, False
            label = await self.create(name, description)
        logger.debug(f"Created label '{label.label_name}'")
        return label, True

    async def delete(self, label_id: str) -> None:
        """Delete a label. Entities referencing it keep their dangling label_id."""
        async with self.store.transaction():
            if not await self.store.labels.delete(label_id):
                raise NotFoundError(f"Label {label_id!r} not found")
