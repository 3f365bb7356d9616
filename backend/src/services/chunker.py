"""Word-window chunker for article text."""

from __future__ import annotations

import uuid

from src.models.news import Article, ArticleChunk, ArticleRef

DEFAULT_MAX_WORDS = 300
# Runs this short or shorter are noise
MIN_CHUNK_CHARS = 50


def chunk_text(text: str, max_words: int = DEFAULT_MAX_WORDS) -> list[str]:
    """Split text into contiguous, non-overlapping runs of up to max_words words.

    Runs of 50 characters or fewer are dropped. If that would leave nothing,
    the whole input comes back as a single chunk so an article is never lost.
    """
    if max_words < 1:
        raise ValueError("max_words must be positive")
    if not text:
        return []

    words = text.split()
    chunks = []
    for start in range(0, len(words), max_words):
        chunk = " ".join(words[start : start + max_words]).strip()
        if len(chunk) > MIN_CHUNK_CHARS:
            chunks.append(chunk)

    return chunks or [text]


def point_id(guid: str, chunk_index: int, *, stable: bool = False) -> str:
    """Fresh random id, or a deterministic one from guid + chunk index."""
    if stable:
        return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{guid}:{chunk_index}"))
    return str(uuid.uuid4())


def chunk_article(
    article: Article,
    max_words: int = DEFAULT_MAX_WORDS,
    *,
    stable_ids: bool = False,
) -> list[ArticleChunk]:
    ref = ArticleRef.from_article(article)
    texts = chunk_text(article.full_text, max_words)
    total = len(texts)
    return [
        ArticleChunk(
            id=point_id(article.guid, idx, stable=stable_ids),
            text=text,
            source_article=ref,
            chunk_index=idx,
            total_chunks=total,
        )
        for idx, text in enumerate(texts)
    ]
