"""Query-time retrieval: embed the question, search the collection."""

from __future__ import annotations

import logging

from src.models.news import RetrievedDoc
from src.services.embedding_client import EmbeddingClient, EmbeddingServiceError
from src.services.vector_store import VectorStore

logger = logging.getLogger(__name__)


class Retriever:
    """Best-effort context lookup. Never raises for store or embedding failures."""

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStore | None,
        collection: str,
        *,
        top_k: int = 5,
        score_threshold: float | None = None,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.collection = collection
        self.top_k = top_k
        self.score_threshold = score_threshold

    async def retrieve(
        self, query: str, top_k: int | None = None
    ) -> list[RetrievedDoc]:
        limit = self.top_k if top_k is None else top_k
        logger.info("RAG search: query=%r limit=%d", query, limit)
        if self.store is None:
            logger.info("No vector store configured; answering without context")
            return []

        try:
            vector = await self.embedder.embed(query)
        except EmbeddingServiceError as e:
            logger.warning("Query embedding failed, using no context: %s", e.message)
            return []

        docs = await self.store.search(
            self.collection, vector, limit, score_threshold=self.score_threshold
        )
        logger.info("Retrieved %d docs for query", len(docs))
        return docs
