"""Character-level document annotation with span realignment.

Documents are tokenized one character per token. Entity spans over those
tokens survive content edits through an LCS alignment of the old and new
token sequences, token marks are kept consistent with the spans, and
free-text mentions from an extraction service are located in the tokens.

    from tokspan import DocumentEditor, EntityAnnotator, InMemoryAnnotationStore

    store = InMemoryAnnotationStore()
    document = await DocumentEditor(store).create("ABCDE")
"""

from tokspan.alignment import align
from tokspan.annotation import EntityAnnotator, LabelRegistry
from tokspan.document import Document
from tokspan.editing import DocumentEditor, EditResult
from tokspan.entity import EntityCandidate, EntityItem, EntityLabel
from tokspan.errors import (
    AnnotationError,
    ConflictError,
    ExtractionError,
    NotFoundError,
    StaleVersionError,
    ValidationError,
)
from tokspan.extract import ExtractionOrchestrator, ExtractionResult
from tokspan.locator import locate
from tokspan.realign import RealignmentResult, realign_spans
from tokspan.storage import AnnotationStore, InMemoryAnnotationStore
from tokspan.sync import TokenEntitySynchronizer
from tokspan.token import DocumentToken
from tokspan.tokenizer import tokenize

__all__ = [
    "align",
    "locate",
    "realign_spans",
    "tokenize",
    "AnnotationError",
    "AnnotationStore",
    "ConflictError",
    "Document",
    "DocumentEditor",
    "DocumentToken",
    "EditResult",
    "EntityAnnotator",
    "EntityCandidate",
    "EntityItem",
    "EntityLabel",
    "ExtractionError",
    "ExtractionOrchestrator",
    "ExtractionResult",
    "InMemoryAnnotationStore",
    "LabelRegistry",
    "NotFoundError",
    "RealignmentResult",
    "StaleVersionError",
    "TokenEntitySynchronizer",
    "ValidationError",
]

__version__ = "0.1.0"
