"""YouTube channel source: videos-page scrape with Atom feed fallback."""

import json
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Optional

import httpx
from bs4 import BeautifulSoup

from feed_monitor.adapters.sources.filters import (
    YOUTUBE_CHANNEL_RE,
    YOUTUBE_FEED_RE,
    is_youtube_url,
)
from feed_monitor.adapters.sources.payload import dig, dig_str, walk
from feed_monitor.adapters.sources.rss_source import RSSSource
from feed_monitor.config import DEFAULT_USER_AGENT
from feed_monitor.core import Channel, FeedItem, ItemSource, SourceError, SourceKind

log = logging.getLogger(__name__)

FEED_URL = "https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}"
CHANNEL_URL = "https://www.youtube.com/channel/{channel_id}"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
THUMBNAIL_URL = "https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"

INITIAL_DATA_RE = re.compile(r"var ytInitialData\s*=\s*(\{.*?\});\s*</script>", re.DOTALL)
EXTERNAL_ID_RE = re.compile(r'"externalId":"(UC[a-zA-Z0-9_-]{22})"')
RELATIVE_TIME_RE = re.compile(r"(\d+)\s+(second|minute|hour|day|week|month|year)s?\s+ago")

RENDERER_KEYS = ("gridVideoRenderer", "videoRenderer", "richItemRenderer")

_UNIT_SECONDS = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
    "week": 7 * 86400,
    "month": 30 * 86400,
    "year": 365 * 86400,
}


def thumbnail_for(video_id: str) -> str:
    return THUMBNAIL_URL.format(video_id=video_id)


def parse_relative_time(text: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Turn "3 days ago" (optionally "Streamed 3 days ago") into an approximate timestamp."""
    match = RELATIVE_TIME_RE.search(text or "")
    if not match:
        return None
    now = now or datetime.now(timezone.utc)
    amount, unit = int(match.group(1)), match.group(2)
    return now - timedelta(seconds=amount * _UNIT_SECONDS[unit])


def extract_channel_id(html: str) -> Optional[str]:
    """Locate the channel id: meta tag, then canonical link, then raw page regex."""
    soup = BeautifulSoup(html, "html.parser")

    meta = soup.find("meta", attrs={"itemprop": "channelId"})
    if meta and meta.get("content"):
        return meta["content"]

    canonical = soup.find("link", attrs={"rel": "canonical"})
    if canonical and canonical.get("href"):
        match = YOUTUBE_CHANNEL_RE.search(canonical["href"])
        if match:
            return match.group(1)

    match = EXTERNAL_ID_RE.search(html)
    if match:
        return match.group(1)

    return None


def extract_initial_data(html: str) -> Optional[dict]:
    match = INITIAL_DATA_RE.search(html or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def extract_videos(data: Any) -> list[dict]:
    """Collect video-renderer nodes, deduplicated by video id in first-seen order."""
    videos: list[dict] = []
    seen: set[str] = set()

    for key, value in walk(data):
        if key not in RENDERER_KEYS or not isinstance(value, dict):
            continue
        renderer = dig(value, "content", "videoRenderer")
        if not isinstance(renderer, dict):
            renderer = value if value.get("videoId") else None
        if not renderer:
            continue
        video_id = renderer.get("videoId")
        if not isinstance(video_id, str) or video_id in seen:
            continue
        seen.add(video_id)
        videos.append(renderer)

    return videos


def video_to_item(renderer: dict, now: Optional[datetime] = None) -> Optional[FeedItem]:
    video_id = renderer.get("videoId")
    if not video_id:
        return None

    title = dig_str(renderer, "title", "runs", 0, "text") or dig_str(renderer, "title", "simpleText")
    snippet_runs = dig(renderer, "descriptionSnippet", "runs") or []
    snippet = "".join(dig_str(run, "text") for run in snippet_runs if isinstance(run, dict))

    return FeedItem(
        source_id=video_id,
        title=title,
        link=WATCH_URL.format(video_id=video_id),
        source_kind=SourceKind.YOUTUBE,
        published_at=parse_relative_time(dig_str(renderer, "publishedTimeText", "simpleText"), now),
        content_snippet=snippet,
        thumbnail=thumbnail_for(video_id),
    )


class YouTubeSource(ItemSource):
    """Fetch recent uploads of a YouTube channel."""

    emoji = "📺"
    name = "YouTube"

    def __init__(self, timeout: float = 20.0, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.rss = RSSSource(timeout=timeout, user_agent=user_agent)

    def matches(self, url: str) -> bool:
        return is_youtube_url(url)

    async def normalize_feed_url(self, url: str) -> str:
        """Rewrite a legacy feeds URL into the channel URL the scraper uses."""
        match = YOUTUBE_FEED_RE.search(url)
        if match:
            return CHANNEL_URL.format(channel_id=match.group(1))
        return url

    async def fetch_items(self, channel: Channel, limit: int) -> AsyncIterator[FeedItem]:
        url = channel.feed_url

        feed_match = YOUTUBE_FEED_RE.search(url)
        if feed_match:
            for item in await self._fetch_atom(feed_match.group(1), limit):
                yield item
            return

        html = await self._fetch_page(self._videos_url(url))
        videos = extract_videos(extract_initial_data(html))
        if videos:
            now = datetime.now(timezone.utc)
            for renderer in videos[:limit]:
                item = video_to_item(renderer, now)
                if item:
                    yield item
            return

        log.info("No embedded video data for %s, falling back to Atom feed", url)
        channel_id = self._channel_id_from_url(url) or extract_channel_id(html)
        if not channel_id:
            raise SourceError(f"Could not resolve YouTube channel id for {url}")
        for item in await self._fetch_atom(channel_id, limit):
            yield item

    async def resolve(self, url: str) -> tuple[str, str]:
        """Return (feed URL, channel title) for a user-supplied channel URL."""
        if not url.startswith("http"):
            url = "https://" + url

        channel_id = self._channel_id_from_url(url)
        title = ""
        if not channel_id:
            html = await self._fetch_page(url)
            channel_id = extract_channel_id(html)
            title = dig_str(extract_initial_data(html), "metadata", "channelMetadataRenderer", "title")
        if not channel_id:
            raise SourceError(f"Could not find a YouTube channel id on {url}")

        if not title:
            title = await self.rss.fetch_title(FEED_URL.format(channel_id=channel_id))
        return CHANNEL_URL.format(channel_id=channel_id), title

    async def _fetch_atom(self, channel_id: str, limit: int) -> list[FeedItem]:
        xml_content = await self.rss.fetch_feed(FEED_URL.format(channel_id=channel_id))
        items = self.rss._parse_feed(xml_content, SourceKind.YOUTUBE)[:limit]
        for item in items:
            if not item.thumbnail:
                item.thumbnail = thumbnail_for(item.source_id)
        return items

    async def _fetch_page(self, url: str) -> str:
        headers = {
            "User-Agent": self.user_agent,
            "Accept-Language": "en-US,en;q=0.5",
        }
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True, headers=headers) as client:
            response = await client.get(url)
            if response.status_code != 200:
                raise SourceError(f"HTTP {response.status_code} for {url}")
            return response.text

    def _channel_id_from_url(self, url: str) -> Optional[str]:
        match = YOUTUBE_FEED_RE.search(url) or YOUTUBE_CHANNEL_RE.search(url)
        return match.group(1) if match else None

    def _videos_url(self, url: str) -> str:
        base = url.split("?")[0].rstrip("/")
        if base.endswith("/videos"):
            return base
        return f"{base}/videos"
