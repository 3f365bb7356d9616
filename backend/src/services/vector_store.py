"""Qdrant adapter: collection management, batched upsert and vector search."""

from __future__ import annotations

import logging

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Distance, PointStruct, VectorParams

from src.models.news import IndexedPoint, ItemResult, RetrievedDoc

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


class StoreWriteError(Exception):
    """Raised when a collection cannot be created or points cannot be written."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class CollectionSchemaError(StoreWriteError):
    """Existing collection has a vector size or distance we cannot write to."""


class StoreReadError(Exception):
    """Raised when a search against the store fails."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


def _distance(name: str) -> Distance:
    try:
        return Distance(name.capitalize())
    except ValueError:
        raise ValueError(f"Unknown distance metric: {name!r}") from None


def _field(payload: dict, key: str) -> str:
    # Points written by other tools may carry nulls or non-string values
    value = payload.get(key)
    return "" if value is None else str(value)


def create_qdrant_client(
    url: str, api_key: str = "", timeout: float = 30.0
) -> AsyncQdrantClient:
    """Build the async Qdrant client, including api_key if set."""
    if url == ":memory:":
        return AsyncQdrantClient(location=":memory:")
    kwargs: dict = {"url": url, "timeout": int(timeout)}
    if api_key:
        kwargs["api_key"] = api_key
    return AsyncQdrantClient(**kwargs)


class VectorStore:
    """Named collections of (id, vector, payload) points in Qdrant."""

    def __init__(self, client: AsyncQdrantClient) -> None:
        self.client = client

    async def ensure_collection(
        self, name: str, dimension: int, distance: str = "cosine"
    ) -> None:
        """Create the collection if absent, otherwise verify its vector schema."""
        metric = _distance(distance)
        try:
            exists = await self.client.collection_exists(name)
            if not exists:
                await self.client.create_collection(
                    collection_name=name,
                    vectors_config=VectorParams(size=dimension, distance=metric),
                )
                logger.info(
                    "Created Qdrant collection '%s' (size=%d, distance=%s)",
                    name,
                    dimension,
                    metric.value,
                )
                return
            info = await self.client.get_collection(name)
        except Exception as e:
            raise StoreWriteError(
                code="COLLECTION_INIT_FAILED",
                message=f"Could not initialize collection '{name}': {e}",
            ) from e

        params = info.config.params.vectors
        if not isinstance(params, VectorParams):
            raise CollectionSchemaError(
                code="SCHEMA_MISMATCH",
                message=f"Collection '{name}' uses named vectors; expected one "
                "unnamed vector",
            )
        if params.size != dimension or params.distance != metric:
            raise CollectionSchemaError(
                code="SCHEMA_MISMATCH",
                message=f"Collection '{name}' has size={params.size} "
                f"distance={params.distance.value}; expected size={dimension} "
                f"distance={metric.value}",
            )
        logger.info("Qdrant collection '%s' already exists", name)

    async def upsert(self, name: str, points: list[IndexedPoint]) -> None:
        """Write one batch. Re-upserting an id overwrites its vector and payload."""
        structs = [
            PointStruct(id=p.id, vector=p.vector, payload=p.payload) for p in points
        ]
        try:
            await self.client.upsert(collection_name=name, points=structs)
        except Exception as e:
            raise StoreWriteError(
                code="UPSERT_FAILED",
                message=f"Upsert of {len(points)} points into '{name}' failed: {e}",
            ) from e
        logger.debug("Upserted %d points into '%s'", len(points), name)

    async def upsert_batches(
        self,
        name: str,
        points: list[IndexedPoint],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> list[ItemResult]:
        """Upsert in batches of at most batch_size; a failed batch is recorded."""
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        total = (len(points) + batch_size - 1) // batch_size
        results: list[ItemResult] = []
        for n, start in enumerate(range(0, len(points), batch_size), start=1):
            batch = points[start : start + batch_size]
            key = f"batch {n}/{total}"
            try:
                await self.upsert(name, batch)
            except StoreWriteError as e:
                logger.error("Error storing %s: %s", key, e.message)
                results.append(ItemResult(key=key, ok=False, error=e.message))
                continue
            logger.info("Stored %s (%d points)", key, len(batch))
            results.append(ItemResult(key=key, ok=True, count=len(batch)))
        return results

    async def _query(
        self,
        name: str,
        vector: list[float],
        limit: int,
        score_threshold: float | None,
    ) -> list[RetrievedDoc]:
        try:
            response = await self.client.query_points(
                collection_name=name,
                query=vector,
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
            )
        except Exception as e:
            raise StoreReadError(
                code="SEARCH_FAILED",
                message=f"Search in '{name}' failed: {e}",
            ) from e

        docs = []
        for point in response.points:
            payload = point.payload or {}
            docs.append(
                RetrievedDoc(
                    text=_field(payload, "text"),
                    title=_field(payload, "title"),
                    date=_field(payload, "date"),
                    source=_field(payload, "source"),
                    url=_field(payload, "url"),
                    score=point.score,
                )
            )
        docs.sort(key=lambda d: d.score, reverse=True)
        return docs[:limit]

    async def search(
        self,
        name: str,
        vector: list[float],
        limit: int = 5,
        score_threshold: float | None = None,
    ) -> list[RetrievedDoc]:
        """Nearest-neighbour search. Absent or unreachable store gives []."""
        try:
            docs = await self._query(name, vector, limit, score_threshold)
        except StoreReadError as e:
            logger.warning("Vector search degraded to no context: %s", e.message)
            return []
        for idx, d in enumerate(docs, start=1):
            logger.debug(
                "  Result [%d] score=%.3f title=%r source=%r",
                idx,
                d.score,
                d.title,
                d.source,
            )
        return docs

    async def count(self, name: str) -> int:
        result = await self.client.count(collection_name=name, exact=True)
        return result.count

    async def health(self) -> bool:
        """Check if Qdrant is reachable. Returns False on any error."""
        try:
            collections = await self.client.get_collections()
        except Exception as e:
            logger.debug("Qdrant health check failed: %s", e)
            return False
        logger.debug(
            "Qdrant health check OK, collections: %s",
            [c.name for c in collections.collections],
        )
        return True

    async def aclose(self) -> None:
        await self.client.close()
