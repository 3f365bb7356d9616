"""Text cleaning and title-based article deduplication."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from src.models.news import Article

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^\w\s.,!?-]", re.ASCII)
_NON_WORD = re.compile(r"\W", re.ASCII)

# Keys this short ("ai", "update") are too generic to dedupe on
MIN_KEY_LENGTH = 11


def clean_text(text: str) -> str:
    """Collapse whitespace, keep only ASCII word chars and .,!?- then trim."""
    text = _WHITESPACE.sub(" ", text)
    text = _DISALLOWED.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def dedup_key(title: str) -> str:
    return _NON_WORD.sub("", title.lower())


def deduplicate(articles: Iterable[Article]) -> list[Article]:
    """Keep the first article per title key, in input order.

    Articles whose key is shorter than MIN_KEY_LENGTH are dropped rather than
    compared against anything.
    """
    seen: set[str] = set()
    unique: list[Article] = []
    total = 0
    for article in articles:
        total += 1
        key = dedup_key(article.title)
        if len(key) < MIN_KEY_LENGTH or key in seen:
            continue
        seen.add(key)
        unique.append(article)
    logger.info("Deduplicated %d articles -> %d unique", total, len(unique))
    return unique
