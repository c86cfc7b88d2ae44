"""Pipeline interfaces and clients for entity extraction."""

from tokspan.pipeline.chat_extractor import ChatCompletionEntityExtractor
from tokspan.pipeline.interfaces import EntityExtractorInterface

__all__ = [
    "EntityExtractorInterface",
    "ChatCompletionEntityExtractor",
]
