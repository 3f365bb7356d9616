"""Batch ingestion: feeds -> dedup -> chunks -> embeddings -> Qdrant."""

from __future__ import annotations

import logging

from src.models.news import Article, IndexedPoint, IngestionReport, ItemResult
from src.services.chunker import DEFAULT_MAX_WORDS, chunk_article
from src.services.embedding_client import EmbeddingClient, EmbeddingServiceError
from src.services.feed_fetcher import FeedFetcher, FeedFetchError
from src.services.normalizer import deduplicate
from src.services.vector_store import DEFAULT_BATCH_SIZE, VectorStore

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 10


class IngestionPipeline:
    """One run fetches every configured feed and indexes what it finds.

    Failures are contained per feed, per article and per upsert batch and
    show up in the returned IngestionReport. Only collection initialization
    failures (and anything unexpected) propagate.

    Point ids are random per run unless ``stable_ids`` is set, so re-running
    against the same feeds duplicates points across runs by default.
    """

    def __init__(
        self,
        fetcher: FeedFetcher,
        embedder: EmbeddingClient,
        store: VectorStore,
        *,
        collection: str,
        dimension: int,
        feed_urls: list[str],
        distance: str = "cosine",
        max_words: int = DEFAULT_MAX_WORDS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        stable_ids: bool = False,
    ) -> None:
        self.fetcher = fetcher
        self.embedder = embedder
        self.store = store
        self.collection = collection
        self.dimension = dimension
        self.distance = distance
        self.feed_urls = feed_urls
        self.max_words = max_words
        self.batch_size = batch_size
        self.stable_ids = stable_ids

    async def run(self) -> IngestionReport:
        logger.info("Starting news ingestion (%d feeds)", len(self.feed_urls))
        await self.store.ensure_collection(
            self.collection, self.dimension, self.distance
        )

        report = IngestionReport(feeds_total=len(self.feed_urls))

        all_articles: list[Article] = []
        for url in self.feed_urls:
            result, articles = await self._fetch(url)
            report.feed_results.append(result)
            all_articles.extend(articles)
        report.feeds_failed = sum(not r.ok for r in report.feed_results)
        report.articles_fetched = len(all_articles)
        logger.info("Total articles collected: %d", len(all_articles))

        unique = deduplicate(all_articles)
        report.articles_unique = len(unique)

        points: list[IndexedPoint] = []
        for i, article in enumerate(unique, start=1):
            result, article_points = await self._index_article(article)
            report.article_results.append(result)
            points.extend(article_points)
            if i % PROGRESS_EVERY == 0:
                logger.info("Processed %d/%d articles", i, len(unique))
        report.articles_indexed = sum(r.ok for r in report.article_results)
        report.articles_failed = sum(not r.ok for r in report.article_results)
        report.chunks_created = len(points)
        logger.info("Total chunks created: %d", len(points))

        report.batch_results = await self.store.upsert_batches(
            self.collection, points, self.batch_size
        )
        report.batches_total = len(report.batch_results)
        report.batches_failed = sum(not r.ok for r in report.batch_results)
        report.points_upserted = sum(r.count for r in report.batch_results if r.ok)

        logger.info(
            "Ingestion finished: %d/%d feeds ok, %d/%d articles indexed, "
            "%d points upserted, %d failed batches",
            report.feeds_total - report.feeds_failed,
            report.feeds_total,
            report.articles_indexed,
            report.articles_unique,
            report.points_upserted,
            report.batches_failed,
        )
        return report

    async def _fetch(self, url: str) -> tuple[ItemResult, list[Article]]:
        try:
            articles = await self.fetcher.load_feed(url)
        except FeedFetchError as e:
            logger.error("Failed to fetch from %s: %s", url, e.message)
            return ItemResult(key=url, ok=False, error=e.message), []
        return ItemResult(key=url, ok=True, count=len(articles)), articles

    async def _index_article(
        self, article: Article
    ) -> tuple[ItemResult, list[IndexedPoint]]:
        """Chunk and embed one article. An embedding failure drops the article."""
        chunks = chunk_article(article, self.max_words, stable_ids=self.stable_ids)
        points = []
        for chunk in chunks:
            try:
                vector = await self.embedder.embed(chunk.text)
            except EmbeddingServiceError as e:
                logger.error(
                    "Error processing article %r (chunk %d/%d): %s",
                    article.title,
                    chunk.chunk_index + 1,
                    chunk.total_chunks,
                    e.message,
                )
                return ItemResult(key=article.guid, ok=False, error=e.message), []
            points.append(
                IndexedPoint(id=chunk.id, vector=vector, payload=chunk.to_payload())
            )
        return ItemResult(key=article.guid, ok=True, count=len(points)), points
