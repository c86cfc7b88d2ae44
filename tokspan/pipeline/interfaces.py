"""Interface to the external entity extraction service.

The service reads raw document text and proposes entities as
``(text, label, description)`` candidates. Candidates carry no positions:
each one is located in the document's token sequence afterwards, and
candidates that cannot be located are skipped.
"""

from abc import ABC, abstractmethod

from tokspan.entity import EntityCandidate


class EntityExtractorInterface(ABC):
    """Propose entity candidates for a document's text.

    Implementations may call a language model, a NER model, or apply rules.
    """

    @abstractmethod
    async def extract(self, text: str) -> list[EntityCandidate]:
        """Extract entity candidates from document text.

        Args:
            text: Full document content.

        Returns:
            Candidates in the order the service proposed them. An empty
            list when nothing was found.

        Raises:
            ExtractionError: If the service fails or its response cannot be
                understood.
        """
