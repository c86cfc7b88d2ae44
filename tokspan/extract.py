"""Automatic annotation of a document from external extraction candidates.

For one document the orchestrator:
    1. Loads the document and asks the extractor for candidates
    2. Loads the document's current tokens
    3. For each candidate, finds or creates its label, locates the
       candidate text in the tokens, and creates an entity for the span

Each entity is created in its own unit of work. A candidate that cannot be
located, or whose span is rejected (duplicate span, invalid bounds), is
skipped and recorded; the remaining candidates are still processed.

Example usage:
    ```python
    orchestrator = ExtractionOrchestrator(
        store=store,
        extractor=ChatCompletionEntityExtractor(load_config()),
    )
    result = await orchestrator.auto_extract(document_id)
    print(f"Created {result.entities_created} entities")
    ```
"""

from pydantic import BaseModel, ConfigDict, PrivateAttr

from tokspan.annotation import EntityAnnotator, LabelRegistry
from tokspan.clock import Clock
from tokspan.entity import EntityCandidate, EntityItem
from tokspan.errors import ConflictError, ExtractionError, NotFoundError, ValidationError
from tokspan.locator import locate
from tokspan.logging import setup_logging
from tokspan.pipeline.interfaces import EntityExtractorInterface
from tokspan.storage.interfaces import AnnotationStore
from tokspan.token import DocumentToken

logger = setup_logging()


class ExtractionResult(BaseModel):
    """Result of automatically annotating one document.

    Attributes:
        document_id: The annotated document.
        candidates_total: Candidates returned by the extractor.
        entities_created: Entities stored from located candidates.
        candidates_skipped: Candidates not located or rejected.
        labels_created: Labels that did not exist before this run.
        created_entity_ids: IDs of the stored entities, in candidate order.
        errors: One message per skipped candidate or extractor failure.
    """

    model_config = {"frozen": True}

    document_id: str
    candidates_total: int = 0
    entities_created: int = 0
    candidates_skipped: int = 0
    labels_created: int = 0
    created_entity_ids: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()


class ExtractionOrchestrator(BaseModel):
    """Turns extractor candidates into located entity spans.

    Attributes:
        store: Storage for documents, tokens, entities and labels.
        extractor: The external extraction service.
        clock: Source of timestamps for new labels and entities.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    store: AnnotationStore
    extractor: EntityExtractorInterface
    clock: Clock = Clock()

    _annotator: EntityAnnotator = PrivateAttr()
    _labels: LabelRegistry = PrivateAttr()

    def model_post_init(self, __context) -> None:
        self._annotator = EntityAnnotator(self.store, clock=self.clock)
        self._labels = LabelRegistry(self.store, clock=self.clock)

    async def _annotate_candidate(
        self,
        document_id: str,
        tokens: list[DocumentToken],
        candidate: EntityCandidate,
    ) -> tuple[EntityItem | None, bool, str | None]:
        """Returns (created entity or None, whether a label was created, skip reason)."""
        try:
            label, label_created = await self._labels.find_or_create(candidate.label, candidate.description)
        except ValidationError as e:
            return None, False, f"Skipped '{candidate.text}': {e}"
        span = locate(tokens, candidate.text)
        if span is None:
            return None, label_created, f"Could not locate '{candidate.text}' in document tokens"
        item = EntityItem(
            document_id=document_id,
            label_id=label.label_id,
            text=candidate.text,
            token_start=span[0],
            token_end=span[1],
        )
        try:
            entity = await self._annotator.create(item)
        except (ConflictError, ValidationError) as e:
            return None, label_created, f"Skipped '{candidate.text}': {e}"
        return entity, label_created, None

    async def auto_extract(self, document_id: str) -> ExtractionResult:
        """Extract, locate and store entities for a document.

        Raises:
            NotFoundError: If the document does not exist.
        """
        document = await self.store.documents.get(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id!r} not found")
        if not document.content:
            logger.warning(f"Document {document_id} has no content, nothing to extract")
            return ExtractionResult(document_id=document_id)

        try:
            candidates = await self.extractor.extract(document.content)
        except ExtractionError as e:
            logger.error(f"Extraction failed for document {document_id}: {e}")
            return ExtractionResult(document_id=document_id, errors=(str(e),))
        logger.info(f"Extractor proposed {len(candidates)} candidates for document {document_id}")

        tokens = await self.store.tokens.get_by_document(document_id)
        created: list[str] = []
        errors: list[str] = []
        labels_created = 0
        for candidate in candidates:
            entity, label_created, reason = await self._annotate_candidate(document_id, tokens, candidate)
            labels_created += int(label_created)
            if entity is None:
                logger.warning(reason)
                errors.append(reason)  # type: ignore[arg-type]
            else:
                created.append(entity.entity_id)

        result = ExtractionResult(
            document_id=document_id,
            candidates_total=len(candidates),
            entities_created=len(created),
            candidates_skipped=len(candidates) - len(created),
            labels_created=labels_created,
            created_entity_ids=tuple(created),
            errors=tuple(errors),
        )
        logger.info(result)
        return result
