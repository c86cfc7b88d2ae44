"""Entity spans, labels and extraction candidates."""

from datetime import datetime

from pydantic import BaseModel, Field

from tokspan.document import new_id


class EntityLabel(BaseModel, frozen=True):
    """A named entity category such as "person" or "organization".

    Label names are matched case-insensitively.
    """

    label_id: str = Field(default_factory=new_id)
    label_name: str = Field(min_length=1, description="Display name of the label.")
    description: str | None = Field(
        default=None,
        description="What entities with this label represent.",
    )
    created_at: datetime

    @property
    def normalized_name(self) -> str:
        return normalize_label_name(self.label_name)


def normalize_label_name(name: str) -> str:
    """Key used for case-insensitive label lookup."""
    return name.strip().casefold()


class EntityItem(BaseModel):
    """An annotated span over a document's token sequence.

    Bounds are inclusive token indices. Range checks are done by the
    synchronizer rather than by field constraints, so that a span coming
    from a caller can be rejected with a ``ValidationError`` carrying a
    readable message.
    """

    model_config = {"frozen": True}

    entity_id: str = Field(default_factory=new_id)
    document_id: str | None = Field(
        default=None,
        description="Document the span refers to.",
    )
    label_id: str | None = Field(
        default=None,
        description="Reference to an EntityLabel.",
    )
    text: str = Field(
        default="",
        description="Copy of the spanned text at annotation time, for display.",
    )
    token_start: int | None = Field(default=None, description="First token index, inclusive.")
    token_end: int | None = Field(default=None, description="Last token index, inclusive.")
    created_at: datetime | None = None

    @property
    def span(self) -> tuple[int, int]:
        return (self.token_start, self.token_end)  # type: ignore[return-value]

    def covers(self, token_index: int) -> bool:
        return self.token_start <= token_index <= self.token_end  # type: ignore[operator]


class EntityCandidate(BaseModel, frozen=True):
    """A raw entity proposed by the external extraction service.

    ``text`` should be a contiguous piece of the document; it is located in
    the token sequence before an EntityItem is created from it.
    """

    text: str
    label: str
    description: str | None = None
