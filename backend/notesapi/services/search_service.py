"""
Notes API — Semantic Search Service
====================================

What:  Ranks the caller's notes by meaning rather than by literal text.
How:   Embeds the query with the shared EmbeddingService, then asks the
       repository for the nearest stored note embeddings. Only notes that
       have been indexed (POST /notes/{id}/embedding, or EMBED_ON_WRITE)
       can appear in results.
"""

import logging
from typing import Optional

from notesapi.exceptions import UnauthorizedError, ValidationError
from notesapi.repositories.base import NoteRepository
from notesapi.schemas.note import ScoredNote, SemanticSearchResponse
from notesapi.services.embedding_base import EmbeddingService
from notesapi.services.gemini_service import embedding_service

logger = logging.getLogger(__name__)


class SearchService:

    def __init__(self, embedder: EmbeddingService = embedding_service):
        self.embedder = embedder

    async def semantic_search(
        self,
        repo: NoteRepository,
        owner_id: Optional[str],
        query: Optional[str],
        limit: int = 5,
    ) -> SemanticSearchResponse:
        """
        Raises:
            UnauthorizedError: no caller identity
            ValidationError: empty query
            ExternalServiceError: provider disabled or failing

        An empty result list is a normal outcome.
        """
        if not owner_id:
            raise UnauthorizedError()
        if not query or not query.strip():
            raise ValidationError(message="Search query is required", field="query")

        vector = await self.embedder.embed(query.strip())
        matches = await repo.vector_search(owner_id, vector, limit)
        logger.info("Semantic search for owner %s returned %d notes", owner_id, len(matches))
        return SemanticSearchResponse(
            results=[ScoredNote(note=note, score=score) for note, score in matches]
        )


search_service = SearchService()
