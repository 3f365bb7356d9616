"""Pydantic models for news ingestion, retrieval and the streaming protocol."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# --- Ingestion ---


class Article(BaseModel):
    """One cleaned feed entry. Discarded once chunked."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    full_text: str
    url: str
    date: str
    source: str
    guid: str


class ArticleRef(BaseModel):
    """The article fields carried on every chunk for citation."""

    title: str
    url: str
    date: str
    source: str
    guid: str

    @classmethod
    def from_article(cls, article: Article) -> ArticleRef:
        return cls(
            title=article.title,
            url=article.url,
            date=article.date,
            source=article.source,
            guid=article.guid,
        )


class ArticleChunk(BaseModel):
    """A bounded slice of an article's text: the unit that gets embedded."""

    id: str
    text: str
    source_article: ArticleRef
    chunk_index: int
    total_chunks: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "title": self.source_article.title,
            "url": self.source_article.url,
            "date": self.source_article.date,
            "source": self.source_article.source,
            "guid": self.source_article.guid,
            "chunk_index": self.chunk_index,
            "total_chunks": self.total_chunks,
        }


class IndexedPoint(BaseModel):
    id: str
    vector: list[float]
    payload: dict[str, Any]


class ItemResult(BaseModel):
    """Outcome of one unit (feed, article, batch) of a batch operation."""

    key: str
    ok: bool
    count: int = 0
    error: str | None = None


class IngestionReport(BaseModel):
    feeds_total: int = 0
    feeds_failed: int = 0
    articles_fetched: int = 0
    articles_unique: int = 0
    articles_indexed: int = 0
    articles_failed: int = 0
    chunks_created: int = 0
    batches_total: int = 0
    batches_failed: int = 0
    points_upserted: int = 0
    feed_results: list[ItemResult] = []
    article_results: list[ItemResult] = []
    batch_results: list[ItemResult] = []

    @property
    def succeeded(self) -> int:
        return sum(
            r.ok for r in self.feed_results + self.article_results + self.batch_results
        )

    @property
    def failed(self) -> int:
        return sum(
            not r.ok
            for r in self.feed_results + self.article_results + self.batch_results
        )


# --- Retrieval ---


class RetrievedDoc(BaseModel):
    """A search hit projected out of a stored point, with its cosine score."""

    text: str
    title: str
    date: str
    source: str
    url: str
    score: float


class SourceCitation(BaseModel):
    title: str
    date: str
    url: str


class ChatAnswer(BaseModel):
    message: str
    sources: list[SourceCitation]


# --- Streaming protocol ---


class ChunkEvent(BaseModel):
    type: Literal["chunk"] = "chunk"
    content: str


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    sources: list[SourceCitation]


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[
    Union[ChunkEvent, CompleteEvent, ErrorEvent], Field(discriminator="type")
]
