"""RSS/Atom feed fetching and parsing into Article records."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import feedparser
import httpx
from bs4 import BeautifulSoup
from dateutil.parser import ParserError
from dateutil.parser import parse as parse_date

from src.models.news import Article
from src.services.normalizer import clean_text

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50
DEFAULT_MIN_CONTENT_CHARS = 50

# Timezone abbreviations for date parsing
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
}

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class FeedFetchError(Exception):
    """Raised when a feed cannot be downloaded or parsed."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


def parse_published(entry) -> datetime | None:
    """Extract and parse the published date from a feed entry."""
    published = entry.get("published") or entry.get("updated")
    if not published:
        return None
    try:
        dt = parse_date(published, tzinfos=TZINFOS)
    except (ParserError, ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _entry_body(entry) -> str:
    """Plain text of the entry body (summary, falling back to content)."""
    html = entry.get("summary") or ""
    if not html and entry.get("content"):
        html = entry["content"][0].get("value", "")
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text(" ")


class FeedFetcher:
    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        min_content_chars: int = DEFAULT_MIN_CONTENT_CHARS,
        timeout: float = 30.0,
    ) -> None:
        self.max_entries = max_entries
        self.min_content_chars = min_content_chars
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": "news-rag-ingest/1.0 (RSS reader)"},
        )

    async def load_feed(self, url: str) -> list[Article]:
        """Download and parse one feed. Raises FeedFetchError on failure."""
        logger.info("Fetching from: %s", url)
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
        except httpx.InvalidURL as e:
            raise FeedFetchError(
                code="INVALID_URL", message=f"Bad feed URL {url!r}: {e}"
            ) from e
        except httpx.HTTPError as e:
            raise FeedFetchError(
                code="NETWORK_ERROR", message=f"Failed to fetch {url}: {e}"
            ) from e

        feed = feedparser.parse(resp.content)
        if feed.bozo and not feed.entries:
            raise FeedFetchError(
                code="PARSE_ERROR",
                message=f"Failed to parse {url}: {feed.get('bozo_exception')}",
            )

        source = feed.feed.get("title") or "Unknown Source"
        dated = [(parse_published(entry), entry) for entry in feed.entries]
        # Most recent first; undated entries keep feed order after dated ones
        dated.sort(key=lambda pair: pair[0] or _OLDEST, reverse=True)

        articles = []
        for published, entry in dated[: self.max_entries]:
            article = self._to_article(entry, source, published)
            if article is not None:
                articles.append(article)

        logger.info("Fetched %d articles from %s", len(articles), url)
        return articles

    async def fetch_feed(self, url: str) -> list[Article]:
        """Like load_feed, but a failing feed yields [] instead of raising."""
        try:
            return await self.load_feed(url)
        except FeedFetchError as e:
            logger.error("Skipping feed %s: %s", url, e.message)
            return []

    def _to_article(
        self, entry, source: str, published: datetime | None
    ) -> Article | None:
        raw_title = entry.get("title")
        raw_body = _entry_body(entry)
        if not raw_title or not raw_body:
            return None

        content = clean_text(raw_body)
        if len(content) < self.min_content_chars:
            return None
        title = clean_text(raw_title)

        url = entry.get("link", "")
        date = (published or datetime.now(timezone.utc)).isoformat()
        return Article(
            title=title,
            content=content,
            full_text=f"{title}. {content}",
            url=url,
            date=date,
            source=source,
            guid=entry.get("id") or url,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
