"""
Notes API — Google Gemini Embedding Service
============================================

What:  Concrete embedding service using the Gemini embeddings API.
Why:   Powers semantic search over a user's notes.
How:   Calls `genai.embed_content` with the configured embedding model. The SDK
       call is blocking, so it runs in a worker thread via asyncio.to_thread.
Who:   Instantiated once at import time as `embedding_service`.

Failure Policy:
    A single attempt per request. Any SDK error is logged with a short call
    id and surfaced as ExternalServiceError (HTTP 500); the client may retry.
"""

import asyncio
import logging
import time
import uuid
from typing import List

import google.generativeai as genai

from notesapi.config import settings
from notesapi.exceptions import ExternalServiceError
from notesapi.services.embedding_base import EmbeddingService

logger = logging.getLogger(__name__)


class GeminiEmbeddingService(EmbeddingService):
    """
    Gemini text-embedding implementation.

    The API key is configured once on construction; an instance created
    without a key stays disabled and never touches the network.
    """

    def __init__(self, api_key: str = "", model: str = "models/text-embedding-004"):
        self.model = model
        self._enabled = bool(api_key)
        if self._enabled:
            # The SDK keeps auth in module-level state
            genai.configure(api_key=api_key)
        logger.info(
            "GeminiEmbeddingService initialized with model=%s, enabled=%s",
            model,
            self._enabled,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def embed(self, text: str) -> List[float]:
        if not self._enabled:
            raise ExternalServiceError(
                message="Semantic search is not configured",
                context={"provider": "gemini"},
            )

        call_id = str(uuid.uuid4())[:8]
        start_time = time.time()
        try:
            response = await asyncio.to_thread(
                genai.embed_content, model=self.model, content=text
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "[%s] Gemini embedding failed after %.0fms: %s",
                call_id,
                duration_ms,
                str(e),
            )
            raise ExternalServiceError(
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

        vector = response.get("embedding") if isinstance(response, dict) else None
        if not vector:
            logger.error("[%s] Gemini returned no embedding", call_id)
            raise ExternalServiceError(context={"call_id": call_id})

        logger.debug(
            "[%s] Gemini embedding completed in %.0fms (%d dimensions)",
            call_id,
            (time.time() - start_time) * 1000,
            len(vector),
        )
        return [float(x) for x in vector]


# Singleton instance shared by indexing and querying
embedding_service = GeminiEmbeddingService(
    api_key=settings.gemini_api_key if settings.embeddings_enabled else "",
    model=settings.gemini_embedding_model,
)
