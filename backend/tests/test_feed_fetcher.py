"""Tests for feed fetching and entry filtering."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from src.services.feed_fetcher import FeedFetcher, FeedFetchError, parse_published

FEED_URL = "https://feeds.test/world.rss"

LONG_BODY = (
    "Markets <b>rallied</b> on Monday after the central bank signalled it would "
    "hold rates steady through the end of the year."
)

SAMPLE_RSS = f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test World News</title>
    <link>https://news.test</link>
    <item>
      <title>Markets rally as central bank holds</title>
      <link>https://news.test/markets-rally</link>
      <guid>https://news.test/guid/1</guid>
      <pubDate>Mon, 14 Oct 2024 09:30:00 GMT</pubDate>
      <description><![CDATA[<p>{LONG_BODY}</p>]]></description>
    </item>
    <item>
      <link>https://news.test/untitled</link>
      <description>An entry without any title is useless for citations and gets dropped.</description>
    </item>
    <item>
      <title>Too short</title>
      <link>https://news.test/short</link>
      <description>Brief.</description>
    </item>
    <item>
      <title>No body at all</title>
      <link>https://news.test/no-body</link>
    </item>
  </channel>
</rss>
"""


def _rss_with_items(count: int) -> str:
    start = datetime(2024, 10, 1, tzinfo=timezone.utc)
    items = []
    for i in range(count):
        published = (start + timedelta(hours=i)).strftime("%a, %d %b %Y %H:%M:%S GMT")
        items.append(
            f"<item><title>Story number {i}</title>"
            f"<link>https://news.test/{i}</link>"
            f"<pubDate>{published}</pubDate>"
            f"<description>Story {i} has a body long enough to clear the "
            f"minimum content length filter.</description></item>"
        )
    return (
        '<?xml version="1.0"?><rss version="2.0"><channel><title>Bulk</title>'
        + "".join(items)
        + "</channel></rss>"
    )


def _fetcher(handler, **kwargs) -> FeedFetcher:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FeedFetcher(http_client=http, **kwargs)


def _serve(body: str, status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text=body)

    return handler


class TestLoadFeed:
    async def test_parses_and_filters_entries(self) -> None:
        articles = await _fetcher(_serve(SAMPLE_RSS)).load_feed(FEED_URL)

        assert len(articles) == 1
        article = articles[0]
        assert article.title == "Markets rally as central bank holds"
        assert article.content.startswith("Markets rallied on Monday")
        assert "<" not in article.content
        assert article.full_text == f"{article.title}. {article.content}"
        assert article.url == "https://news.test/markets-rally"
        assert article.guid == "https://news.test/guid/1"
        assert article.source == "Test World News"
        assert article.date == "2024-10-14T09:30:00+00:00"

    async def test_keeps_at_most_max_entries_most_recent_first(self) -> None:
        articles = await _fetcher(_serve(_rss_with_items(60))).load_feed(FEED_URL)

        assert len(articles) == 50
        assert articles[0].title == "Story number 59"
        assert articles[-1].title == "Story number 10"

    async def test_unknown_source_when_feed_has_no_title(self) -> None:
        rss = SAMPLE_RSS.replace("<title>Test World News</title>", "")
        articles = await _fetcher(_serve(rss)).load_feed(FEED_URL)
        assert articles[0].source == "Unknown Source"

    async def test_guid_falls_back_to_link(self) -> None:
        rss = SAMPLE_RSS.replace("<guid>https://news.test/guid/1</guid>", "")
        articles = await _fetcher(_serve(rss)).load_feed(FEED_URL)
        assert articles[0].guid == "https://news.test/markets-rally"

    async def test_http_error_raises(self) -> None:
        with pytest.raises(FeedFetchError) as exc:
            await _fetcher(_serve("gone", status=404)).load_feed(FEED_URL)
        assert exc.value.code == "NETWORK_ERROR"

    async def test_invalid_url_raises(self) -> None:
        with pytest.raises(FeedFetchError) as exc:
            await _fetcher(_serve(SAMPLE_RSS)).load_feed("https://news.test/\x7ffeed")
        assert exc.value.code == "INVALID_URL"

    async def test_unparseable_feed_raises(self) -> None:
        with pytest.raises(FeedFetchError) as exc:
            await _fetcher(_serve("this is not a feed <<<")).load_feed(FEED_URL)
        assert exc.value.code == "PARSE_ERROR"


class TestFetchFeed:
    async def test_network_failure_returns_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("dns failure", request=request)

        assert await _fetcher(handler).fetch_feed(FEED_URL) == []

    async def test_invalid_url_returns_empty(self) -> None:
        fetcher = _fetcher(_serve(SAMPLE_RSS))
        assert await fetcher.fetch_feed("https://news.test/feed\x00.xml") == []

    async def test_success_passes_through(self) -> None:
        articles = await _fetcher(_serve(SAMPLE_RSS)).fetch_feed(FEED_URL)
        assert len(articles) == 1


class TestParsePublished:
    def test_timezone_abbreviation(self) -> None:
        dt = parse_published({"published": "Mon, 14 Oct 2024 09:30:00 EDT"})
        assert dt == datetime(2024, 10, 14, 13, 30, tzinfo=timezone.utc)

    def test_falls_back_to_updated(self) -> None:
        dt = parse_published({"updated": "2024-10-14T09:30:00Z"})
        assert dt == datetime(2024, 10, 14, 9, 30, tzinfo=timezone.utc)

    def test_missing_or_garbage(self) -> None:
        assert parse_published({}) is None
        assert parse_published({"published": "not a date"}) is None
