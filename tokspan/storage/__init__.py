"""Storage interfaces and implementations for annotated documents."""

from tokspan.storage.interfaces import (
    AnnotationStore,
    DocumentStorageInterface,
    EntityItemStorageInterface,
    EntityLabelStorageInterface,
    TokenStorageInterface,
)
from tokspan.storage.memory import (
    InMemoryAnnotationStore,
    InMemoryDocumentStorage,
    InMemoryEntityItemStorage,
    InMemoryEntityLabelStorage,
    InMemoryTokenStorage,
)

__all__ = [
    "AnnotationStore",
    "DocumentStorageInterface",
    "TokenStorageInterface",
    "EntityItemStorageInterface",
    "EntityLabelStorageInterface",
    "InMemoryAnnotationStore",
    "InMemoryDocumentStorage",
    "InMemoryTokenStorage",
    "InMemoryEntityItemStorage",
    "InMemoryEntityLabelStorage",
]
