"""Generic RSS/Atom feed source."""

import calendar
import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

import feedparser
import httpx

from feed_monitor.config import DEFAULT_USER_AGENT
from feed_monitor.core import Channel, FeedItem, ItemSource, SourceError, SourceKind

log = logging.getLogger(__name__)


def _entry_datetime(entry: Any) -> Optional[datetime]:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)


def _entry_snippet(entry: Any) -> str:
    content = entry.get("content")
    if content and isinstance(content, list):
        value = content[0].get("value")
        if value:
            return value
    return entry.get("summary") or entry.get("description") or ""


def _entry_thumbnail(entry: Any) -> str:
    thumbs = entry.get("media_thumbnail")
    if thumbs and isinstance(thumbs, list):
        return thumbs[0].get("url") or ""
    return ""


class RSSSource(ItemSource):
    """Fetch items from any RSS 2.0 or Atom feed."""

    emoji = "📰"
    name = "RSS"

    def __init__(self, timeout: float = 20.0, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    def matches(self, url: str) -> bool:
        return url.startswith(("http://", "https://"))

    async def fetch_items(self, channel: Channel, limit: int) -> AsyncIterator[FeedItem]:
        """Fetch and normalize entries from the channel's feed URL."""
        xml_content = await self.fetch_feed(channel.feed_url)
        for item in self._parse_feed(xml_content, SourceKind.RSS)[:limit]:
            yield item

    async def fetch_feed(self, url: str) -> str:
        """Download a feed document."""
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/atom+xml,application/rss+xml,application/xml;q=0.9,*/*;q=0.8",
        }
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True, headers=headers) as client:
            response = await client.get(url)
            if response.status_code != 200:
                raise SourceError(f"HTTP {response.status_code} for {url}")
            return response.text

    async def resolve(self, url: str) -> tuple[str, str]:
        return url, await self.fetch_title(url) or url

    async def fetch_title(self, url: str) -> str:
        """Return the feed's own title, used to name new channels."""
        parsed = feedparser.parse(await self.fetch_feed(url))
        return parsed.feed.get("title") or ""

    def _parse_feed(self, xml_content: str, source_kind: SourceKind) -> list[FeedItem]:
        """Parse an RSS/Atom document into normalized items."""
        if not xml_content:
            return []

        parsed = feedparser.parse(xml_content)
        if parsed.bozo and not parsed.entries:
            raise SourceError(f"Unparseable feed: {parsed.get('bozo_exception')}")

        items: list[FeedItem] = []
        for entry in parsed.entries:
            raw_id = entry.get("id") or entry.get("link") or ""
            # "yt:video:<id>" style ids keep only their last segment
            source_id = raw_id.split(":")[-1] if raw_id else ""
            link = entry.get("link") or ""
            if not source_id or not link:
                log.debug("Skipping feed entry without id or link: %r", entry.get("title"))
                continue

            items.append(FeedItem(
                source_id=source_id,
                title=entry.get("title") or "",
                link=link,
                source_kind=source_kind,
                published_at=_entry_datetime(entry),
                content_snippet=_entry_snippet(entry),
                thumbnail=_entry_thumbnail(entry),
            ))

        return items
