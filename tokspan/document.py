"""Document representation."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


def new_id() -> str:
    return uuid.uuid4().hex


class Document(BaseModel):
    """A text document whose content is tokenized per character.

    The token sequence is derived from ``content`` and is never edited
    directly. ``version`` increases by one on every content update and is
    used to reject edits based on a stale read.
    """

    model_config = {"frozen": True}

    document_id: str = Field(
        default_factory=new_id,
        description="Unique identifier for this document.",
    )
    title: str | None = Field(
        default=None,
        description="Document title if available.",
    )
    content: str = Field(
        default="",
        description="Full text content of the document.",
    )
    created_at: datetime = Field(
        description="When the document was added to the system.",
    )
    version: int = Field(
        default=0,
        ge=0,
        description="Edit counter for optimistic concurrency checks.",
    )
