"""Error taxonomy for annotation operations.

Every error is raised before any mutation is made, or inside a unit of
work that rolls back on the way out. Storage failures are not wrapped.
A mention that cannot be located is not an error: the locator returns
``None``.
"""


class AnnotationError(Exception):
    """Base class for errors raised by tokspan services."""


class ValidationError(AnnotationError, ValueError):
    """Missing, negative, inverted or out-of-range span bounds, or a missing document id."""


class ConflictError(AnnotationError):
    """An entity with the exact same span already exists in the document."""


class StaleVersionError(ConflictError):
    """A document edit was based on a version that is no longer current."""

    def __init__(self, document_id: str, expected: int, actual: int):
        super().__init__(f"Document {document_id!r} is at version {actual}, edit was based on version {expected}")
        self.document_id = document_id
        self.expected = expected
        self.actual = actual


class NotFoundError(AnnotationError, LookupError):
    """A referenced document, entity or label does not exist."""


class ExtractionError(AnnotationError):
    """The external extraction service failed or returned an unusable response."""
