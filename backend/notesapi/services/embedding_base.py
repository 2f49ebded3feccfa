"""
Notes API — Abstract Embedding Service Interface
=================================================

What:  Abstract base class defining the contract for text embedding providers.
Why:   Semantic search only needs "text in, vector out"; the provider can be
       swapped (Gemini → OpenAI → a local model) without touching callers.
How:   Concrete implementations inherit from EmbeddingService and implement
       the enabled property and embed().
Who:   Called by NoteService (IndexNote, embed-on-write) and SearchService.

Design Decision:
    Vectors produced for notes and for queries must come from the same model,
    otherwise similarity scores are meaningless. Every caller therefore goes
    through one shared instance (`gemini_service.embedding_service`).
"""

from abc import ABC, abstractmethod
from typing import List


class EmbeddingService(ABC):
    """
    Abstract interface for text embedding.

    Contract:
        - embed() returns a non-empty list of floats for non-empty text
        - All provider errors are wrapped in ExternalServiceError
        - A provider without credentials reports enabled == False and raises
          ExternalServiceError from embed()
    """

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Whether the provider is configured and may be called."""
        ...

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """
        Compute the embedding vector of `text`.

        Raises:
            ExternalServiceError: provider disabled, unreachable, or returned
                no vector. No retry is attempted.
        """
        ...
