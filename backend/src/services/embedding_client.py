"""Embedding client for an OpenAI-style embeddings endpoint."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class EmbeddingServiceError(Exception):
    """Raised when the embedding service fails or returns an unusable body."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class EmbeddingClient:
    """Turns text into a fixed-length vector. No retries, no caching."""

    def __init__(
        self,
        url: str,
        api_key: str,
        model: str,
        dimensions: int,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.model = model
        self.dimensions = dimensions
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def embed(self, text: str) -> list[float]:
        """Embed a single text. Raises EmbeddingServiceError on any failure."""
        logger.debug(
            "Embedding text (%d chars): %r",
            len(text),
            text[:100] + ("..." if len(text) > 100 else ""),
        )
        try:
            resp = await self._client.post(
                self.url,
                headers=self._headers,
                json={"model": self.model, "input": text},
            )
        except httpx.HTTPError as e:
            raise EmbeddingServiceError(
                code="NETWORK_ERROR",
                message=f"Embedding request to {self.url} failed: {e}",
            ) from e

        if not resp.is_success:
            raise EmbeddingServiceError(
                code="HTTP_ERROR",
                message=f"Embedding service returned {resp.status_code}: "
                f"{resp.text[:200]}",
            )

        try:
            vector = resp.json()["data"][0]["embedding"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise EmbeddingServiceError(
                code="MALFORMED_RESPONSE",
                message=f"Embedding response missing vector data: {e!r}",
            ) from e

        if not isinstance(vector, list) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in vector
        ):
            raise EmbeddingServiceError(
                code="MALFORMED_RESPONSE",
                message="Embedding response vector is not a list of numbers",
            )
        if len(vector) != self.dimensions:
            raise EmbeddingServiceError(
                code="DIMENSION_MISMATCH",
                message=f"Expected {self.dimensions}-dim vector, got {len(vector)}",
            )

        logger.debug("Embedded text -> %d-dim vector", len(vector))
        return [float(v) for v in vector]

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
