"""Service handles built from settings, opened at startup and closed on shutdown."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from src.config import Settings
from src.services.answer_streamer import AnswerStreamer
from src.services.embedding_client import EmbeddingClient
from src.services.feed_fetcher import FeedFetcher
from src.services.generation import GeminiGenerator, create_generator
from src.services.ingestion import IngestionPipeline
from src.services.retriever import Retriever
from src.services.vector_store import VectorStore, create_qdrant_client

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    embedder: EmbeddingClient
    store: VectorStore
    generator: GeminiGenerator | None
    retriever: Retriever
    streamer: AnswerStreamer

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        store: VectorStore | None = None,
        embedder: EmbeddingClient | None = None,
        generator: GeminiGenerator | None = None,
    ) -> ServiceContainer:
        if embedder is None:
            embedder = EmbeddingClient(
                settings.embedding_url,
                settings.embedding_api_key,
                settings.embedding_model,
                settings.embedding_dimensions,
                timeout=settings.request_timeout_seconds,
            )
        if store is None:
            store = VectorStore(
                create_qdrant_client(
                    settings.qdrant_url,
                    settings.qdrant_api_key,
                    settings.request_timeout_seconds,
                )
            )
        if generator is None:
            generator = create_generator(settings)
        retriever = Retriever(
            embedder,
            store,
            settings.qdrant_collection,
            top_k=settings.retrieval_top_k,
            score_threshold=settings.score_threshold,
        )
        streamer = AnswerStreamer(
            retriever,
            generator,
            top_k=settings.retrieval_top_k,
            max_sources=settings.max_sources,
            fallback_delay=settings.fallback_token_delay,
        )
        return cls(
            settings=settings,
            embedder=embedder,
            store=store,
            generator=generator,
            retriever=retriever,
            streamer=streamer,
        )

    def ingestion_pipeline(
        self, fetcher: FeedFetcher | None = None
    ) -> IngestionPipeline:
        s = self.settings
        fetcher = fetcher or FeedFetcher(
            max_entries=s.feed_max_entries,
            min_content_chars=s.min_content_chars,
            timeout=s.request_timeout_seconds,
        )
        return IngestionPipeline(
            fetcher,
            self.embedder,
            self.store,
            collection=s.qdrant_collection,
            dimension=s.embedding_dimensions,
            distance=s.qdrant_distance,
            feed_urls=s.feed_urls,
            max_words=s.chunk_max_words,
            batch_size=s.upsert_batch_size,
            stable_ids=s.stable_point_ids,
        )

    async def aclose(self) -> None:
        await self.embedder.aclose()
        await self.store.aclose()
        logger.info("Service handles closed")


def get_services(request: Request) -> ServiceContainer:
    """Dependency for FastAPI routes to get the app's service handles."""
    return request.app.state.services
