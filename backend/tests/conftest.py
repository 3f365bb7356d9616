"""Test fixtures and configuration."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient
from qdrant_client import AsyncQdrantClient

from src.config import settings
from src.dependencies import ServiceContainer
from src.main import app
from src.models.news import Article
from src.services.embedding_client import EmbeddingServiceError
from src.services.generation import GenerationError
from src.services.vector_store import VectorStore

DIM = 4
COLLECTION = "news_articles"


class FakeEmbedder:
    """Deterministic embedder: every text maps to the same unit vector.

    Texts containing a substring in ``fail_on`` raise EmbeddingServiceError.
    """

    def __init__(self, vector: list[float] | None = None, fail_on: str | None = None):
        self.vector = vector or [1.0, 0.0, 0.0, 0.0]
        self.fail_on = fail_on
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on and self.fail_on in text:
            raise EmbeddingServiceError(code="HTTP_ERROR", message="503 from embedder")
        return list(self.vector)

    async def aclose(self) -> None:
        pass


class FakeGenerator:
    """Streams fixed fragments; optionally fails after `fail_after` of them."""

    def __init__(self, fragments: list[str], fail_after: int | None = None) -> None:
        self.fragments = fragments
        self.fail_after = fail_after
        self.prompts: list[str] = []
        self.opened = 0
        self.closed = 0

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail_after is not None:
            raise GenerationError(code="GENERATION_FAILED", message="quota exceeded")
        return "".join(self.fragments)

    @asynccontextmanager
    async def stream(self, prompt: str):
        self.prompts.append(prompt)
        self.opened += 1
        try:
            yield self._iterate()
        finally:
            self.closed += 1

    async def _iterate(self) -> AsyncIterator[str]:
        for i, fragment in enumerate(self.fragments):
            if self.fail_after is not None and i == self.fail_after:
                raise GenerationError(code="GENERATION_FAILED", message="stream reset")
            yield fragment


def make_article(
    title: str = "Central bank holds interest rates steady",
    content: str = (
        "The central bank kept its benchmark rate unchanged on Tuesday, "
        "citing easing inflation and a cooling labour market."
    ),
    guid: str | None = None,
    source: str = "Test Wire",
) -> Article:
    return Article(
        title=title,
        content=content,
        full_text=f"{title}. {content}",
        url=f"https://news.test/{guid or title.lower().replace(' ', '-')}",
        date="2024-10-14T09:30:00+00:00",
        source=source,
        guid=guid or f"guid-{title.lower().replace(' ', '-')}",
    )


@pytest.fixture
async def qdrant() -> AsyncIterator[AsyncQdrantClient]:
    """Use in-memory Qdrant for tests."""
    client = AsyncQdrantClient(":memory:")
    yield client
    await client.close()


@pytest.fixture
def store(qdrant: AsyncQdrantClient) -> VectorStore:
    return VectorStore(qdrant)


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def test_settings():
    return settings.model_copy(
        update={
            "qdrant_collection": COLLECTION,
            "embedding_dimensions": DIM,
            "google_api_key": "",
            "use_vertexai": False,
            "fallback_token_delay": 0.0,
        }
    )


@pytest.fixture
def services(
    test_settings, store: VectorStore, embedder: FakeEmbedder
) -> ServiceContainer:
    return ServiceContainer.from_settings(test_settings, store=store, embedder=embedder)


@pytest.fixture
async def client(services: ServiceContainer) -> AsyncIterator[AsyncClient]:
    # ASGITransport does not run the lifespan, so wire the handles directly
    app.state.services = services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
