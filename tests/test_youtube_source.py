"""Tests for the YouTube channel source."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from feed_monitor.adapters.sources import YouTubeSource
from feed_monitor.adapters.sources.youtube_source import (
    extract_channel_id,
    extract_initial_data,
    extract_videos,
    parse_relative_time,
    thumbnail_for,
    video_to_item,
)
from feed_monitor.core import Channel, SourceError, SourceKind

CHANNEL_ID = "UCabcdefghijklmnopqrstuv"

ATOM = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Some Channel</title>
  <entry>
    <id>yt:video:abc123DEF45</id>
    <title>From the feed</title>
    <link rel="alternate" href="https://www.youtube.com/watch?v=abc123DEF45"/>
    <published>2024-05-02T12:00:00+00:00</published>
  </entry>
</feed>
"""


def renderer(video_id: str, title: str, published: str = "2 days ago", snippet: str = "") -> dict:
    node = {
        "videoId": video_id,
        "title": {"runs": [{"text": title}]},
        "publishedTimeText": {"simpleText": published},
    }
    if snippet:
        node["descriptionSnippet"] = {"runs": [{"text": snippet}]}
    return node


def initial_data() -> dict:
    return {
        "contents": {"twoColumnBrowseResultsRenderer": {"tabs": [{"tabRenderer": {"content": {
            "richGridRenderer": {"contents": [
                {"richItemRenderer": {"content": {"videoRenderer": renderer("aaaaaaaaaaa", "First", snippet="a #shorts clip")}}},
                {"richItemRenderer": {"content": {"videoRenderer": renderer("bbbbbbbbbbb", "Second")}}},
                {"gridVideoRenderer": renderer("aaaaaaaaaaa", "First again")},
                {"richItemRenderer": {"content": {"adSlotRenderer": {}}}},
                {"gridVideoRenderer": renderer("ccccccccccc", "Third", published="Streamed 1 week ago")},
            ]},
        }}}]}},
        "metadata": {"channelMetadataRenderer": {"title": "Cat Channel"}},
    }


def page(data: dict, head: str = "") -> str:
    return (
        f"<html><head>{head}</head><body>"
        f"<script>var ytInitialData = {json.dumps(data)};</script>"
        "</body></html>"
    )


def make_channel(feed_url: str) -> Channel:
    return Channel(id="c", owner_id="o", name="n", url=feed_url, feed_url=feed_url)


def test_extract_channel_id_from_meta() -> None:
    html = f'<html><head><meta itemprop="channelId" content="{CHANNEL_ID}"></head></html>'
    assert extract_channel_id(html) == CHANNEL_ID


def test_extract_channel_id_from_canonical() -> None:
    html = f'<html><head><link rel="canonical" href="https://www.youtube.com/channel/{CHANNEL_ID}"></head></html>'
    assert extract_channel_id(html) == CHANNEL_ID


def test_extract_channel_id_from_page_state() -> None:
    html = f'<html><script>var x = {{"externalId":"{CHANNEL_ID}","other":1}};</script></html>'
    assert extract_channel_id(html) == CHANNEL_ID


def test_extract_channel_id_missing() -> None:
    assert extract_channel_id("<html><body>nothing</body></html>") is None


def test_extract_videos_dedups_in_order() -> None:
    videos = extract_videos(extract_initial_data(page(initial_data())))

    assert [v["videoId"] for v in videos] == ["aaaaaaaaaaa", "bbbbbbbbbbb", "ccccccccccc"]


def test_extract_initial_data_missing_or_broken() -> None:
    assert extract_initial_data("<html></html>") is None
    assert extract_initial_data("<script>var ytInitialData = {broken;</script>") is None


def test_video_to_item() -> None:
    now = datetime(2024, 5, 10, tzinfo=timezone.utc)
    item = video_to_item(renderer("aaaaaaaaaaa", "First", snippet="a #shorts clip"), now)

    assert item.source_id == "aaaaaaaaaaa"
    assert item.title == "First"
    assert item.link == "https://www.youtube.com/watch?v=aaaaaaaaaaa"
    assert item.source_kind == SourceKind.YOUTUBE
    assert item.published_at == now - timedelta(days=2)
    assert item.content_snippet == "a #shorts clip"
    assert item.thumbnail == "https://i.ytimg.com/vi/aaaaaaaaaaa/hqdefault.jpg"


def test_parse_relative_time() -> None:
    now = datetime(2024, 5, 10, tzinfo=timezone.utc)

    assert parse_relative_time("3 hours ago", now) == now - timedelta(hours=3)
    assert parse_relative_time("Streamed 1 week ago", now) == now - timedelta(weeks=1)
    assert parse_relative_time("Premieres tomorrow", now) is None
    assert parse_relative_time("", now) is None


def test_thumbnail_for() -> None:
    assert thumbnail_for("xyz") == "https://i.ytimg.com/vi/xyz/hqdefault.jpg"


@pytest.mark.asyncio
async def test_normalize_feed_url() -> None:
    source = YouTubeSource()
    feed = f"https://www.youtube.com/feeds/videos.xml?channel_id={CHANNEL_ID}"

    assert await source.normalize_feed_url(feed) == f"https://www.youtube.com/channel/{CHANNEL_ID}"
    assert await source.normalize_feed_url("https://www.youtube.com/@cats") == "https://www.youtube.com/@cats"


@pytest.mark.asyncio
async def test_fetch_items_from_videos_page() -> None:
    source = YouTubeSource()
    source._fetch_page = AsyncMock(return_value=page(initial_data()))

    items = [i async for i in source.fetch_items(make_channel("https://www.youtube.com/@cats/"), 2)]

    assert [i.source_id for i in items] == ["aaaaaaaaaaa", "bbbbbbbbbbb"]
    source._fetch_page.assert_called_once_with("https://www.youtube.com/@cats/videos")


@pytest.mark.asyncio
async def test_fetch_items_falls_back_to_atom() -> None:
    source = YouTubeSource()
    head = f'<meta itemprop="channelId" content="{CHANNEL_ID}">'
    source._fetch_page = AsyncMock(return_value=f"<html><head>{head}</head><body></body></html>")
    source.rss.fetch_feed = AsyncMock(return_value=ATOM)

    items = [i async for i in source.fetch_items(make_channel("https://www.youtube.com/@cats"), 5)]

    assert [i.source_id for i in items] == ["abc123DEF45"]
    assert items[0].source_kind == SourceKind.YOUTUBE
    assert items[0].thumbnail == "https://i.ytimg.com/vi/abc123DEF45/hqdefault.jpg"
    source.rss.fetch_feed.assert_called_once_with(
        f"https://www.youtube.com/feeds/videos.xml?channel_id={CHANNEL_ID}"
    )


@pytest.mark.asyncio
async def test_fetch_items_without_channel_id_raises() -> None:
    source = YouTubeSource()
    source._fetch_page = AsyncMock(return_value="<html></html>")

    with pytest.raises(SourceError):
        [i async for i in source.fetch_items(make_channel("https://www.youtube.com/@cats"), 5)]


@pytest.mark.asyncio
async def test_resolve_handle_url() -> None:
    source = YouTubeSource()
    head = f'<meta itemprop="channelId" content="{CHANNEL_ID}">'
    source._fetch_page = AsyncMock(return_value=page(initial_data(), head))

    feed_url, name = await source.resolve("www.youtube.com/@cats")

    assert feed_url == f"https://www.youtube.com/channel/{CHANNEL_ID}"
    assert name == "Cat Channel"
    source._fetch_page.assert_called_once_with("https://www.youtube.com/@cats")


@pytest.mark.asyncio
async def test_resolve_channel_url_skips_page() -> None:
    source = YouTubeSource()
    source._fetch_page = AsyncMock()
    source.rss.fetch_title = AsyncMock(return_value="Some Channel")

    feed_url, name = await source.resolve(f"https://www.youtube.com/channel/{CHANNEL_ID}")

    assert feed_url == f"https://www.youtube.com/channel/{CHANNEL_ID}"
    assert name == "Some Channel"
    source._fetch_page.assert_not_called()
