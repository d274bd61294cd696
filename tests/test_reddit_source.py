"""Tests for the Reddit subreddit source."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from feed_monitor.adapters.sources import RedditSource
from feed_monitor.adapters.sources.reddit_source import post_thumbnail, post_to_item
from feed_monitor.core import Channel, SourceError, SourceKind


def post(**overrides) -> dict:
    data = {
        "id": "xyz",
        "title": "A question about asyncio",
        "permalink": "/r/python/comments/xyz/a_question_about_asyncio/",
        "selftext": "How do I cancel a task?",
        "created_utc": 1714564800.0,
        "thumbnail": "self",
    }
    data.update(overrides)
    return data


@pytest.fixture
def channel() -> Channel:
    return Channel(
        id="c", owner_id="o", name="r/python",
        url="https://www.reddit.com/r/python", feed_url="https://www.reddit.com/r/python/",
    )


def test_thumbnail_direct_url() -> None:
    assert post_thumbnail(post(thumbnail="https://b.thumbs.redditmedia.com/x.jpg")) == \
        "https://b.thumbs.redditmedia.com/x.jpg"


def test_thumbnail_falls_back_to_preview() -> None:
    """Placeholder values like "self" fall back to the preview image, entity-decoded."""
    data = post(preview={"images": [{"source": {"url": "https://preview.redd.it/a.jpg?width=640&amp;s=abc"}}]})

    assert post_thumbnail(data) == "https://preview.redd.it/a.jpg?width=640&s=abc"


def test_thumbnail_missing() -> None:
    assert post_thumbnail(post(thumbnail="default")) == ""
    assert post_thumbnail(post(thumbnail=None, preview={"images": []})) == ""


def test_post_to_item() -> None:
    item = post_to_item(post())

    assert item.source_id == "xyz"
    assert item.link == "https://www.reddit.com/r/python/comments/xyz/a_question_about_asyncio/"
    assert item.source_kind == SourceKind.REDDIT
    assert item.published_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert item.content_snippet == "How do I cancel a task?"


def test_post_to_item_link_post_uses_title_as_snippet() -> None:
    assert post_to_item(post(selftext="")).content_snippet == "A question about asyncio"


def test_post_to_item_incomplete() -> None:
    assert post_to_item(post(permalink=None)) is None
    assert post_to_item("not a post") is None


def test_requires_user_agent() -> None:
    with pytest.raises(ValueError):
        RedditSource(user_agent="")


@pytest.mark.asyncio
async def test_fetch_items(channel: Channel) -> None:
    source = RedditSource(user_agent="test-agent/1.0")
    listing = {"data": {"children": [
        {"kind": "t3", "data": post(id="p1", permalink="/r/python/comments/p1/")},
        {"kind": "t3", "data": {"id": "broken"}},
        {"kind": "t3", "data": post(id="p2", permalink="/r/python/comments/p2/")},
        {"kind": "t3", "data": post(id="p3", permalink="/r/python/comments/p3/")},
    ]}}

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = listing

        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.get.return_value = mock_response
        mock_client_class.return_value = mock_client

        items = [i async for i in source.fetch_items(channel, 2)]

        assert [i.source_id for i in items] == ["p1", "p2"]
        call_args = mock_client.get.call_args
        assert call_args.args[0] == "https://www.reddit.com/r/python/new.json"
        assert call_args.kwargs["params"] == {"limit": 2}
        assert mock_client_class.call_args.kwargs["headers"]["User-Agent"] == "test-agent/1.0"


@pytest.mark.asyncio
async def test_fetch_items_http_error(channel: Channel) -> None:
    source = RedditSource()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_response = MagicMock()
        mock_response.status_code = 429

        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.get.return_value = mock_response
        mock_client_class.return_value = mock_client

        with pytest.raises(SourceError, match="429"):
            [i async for i in source.fetch_items(channel, 5)]


@pytest.mark.asyncio
async def test_resolve() -> None:
    source = RedditSource()

    assert await source.resolve("https://old.reddit.com/r/python/top") == (
        "https://www.reddit.com/r/python", "r/python",
    )
    with pytest.raises(SourceError):
        await source.resolve("https://example.com")
