"""Per-character document tokens."""

from pydantic import BaseModel, Field, field_validator


class DocumentToken(BaseModel):
    """One character of a document's content.

    ``is_entity`` and ``entity_id`` are derived from the document's entity
    spans and are written only by the token/entity synchronizer.
    """

    model_config = {"frozen": True}

    document_id: str = Field(description="Document this token belongs to.")
    token_index: int = Field(ge=0, description="0-based position in the document.")
    token_text: str = Field(description="Exactly one character.")
    is_entity: bool = Field(
        default=False,
        description="Whether some entity span covers this token.",
    )
    entity_id: str | None = Field(
        default=None,
        description="An entity whose span covers this token.",
    )

    @field_validator("token_text")
    @classmethod
    def token_text_is_one_character(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError(f"token_text must be exactly one character, got {value!r}")
        return value

    def marked(self, entity_id: str) -> "DocumentToken":
        return self.model_copy(update={"is_entity": True, "entity_id": entity_id})

    def cleared(self) -> "DocumentToken":
        return self.model_copy(update={"is_entity": False, "entity_id": None})
