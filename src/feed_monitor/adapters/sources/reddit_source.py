"""Reddit subreddit source via the public JSON listing."""

from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

import httpx

from feed_monitor.adapters.sources.filters import extract_subreddit
from feed_monitor.adapters.sources.payload import dig, dig_str
from feed_monitor.core import Channel, FeedItem, ItemSource, SourceError, SourceKind


def post_thumbnail(post: dict) -> str:
    """Thumbnail URL, falling back to the first preview image; "" if neither."""
    thumbnail = post.get("thumbnail")
    if isinstance(thumbnail, str) and thumbnail.startswith("http"):
        return thumbnail

    preview = dig_str(post, "preview", "images", 0, "source", "url")
    if preview:
        return preview.replace("&amp;", "&")
    return ""


def post_to_item(post: Any) -> Optional[FeedItem]:
    if not isinstance(post, dict):
        return None
    post_id = post.get("id")
    permalink = post.get("permalink")
    if not post_id or not permalink:
        return None

    created = post.get("created_utc")
    published_at = None
    if isinstance(created, (int, float)):
        published_at = datetime.fromtimestamp(created, tz=timezone.utc)

    title = post.get("title") or ""
    return FeedItem(
        source_id=str(post_id),
        title=title,
        link=f"https://www.reddit.com{permalink}",
        source_kind=SourceKind.REDDIT,
        published_at=published_at,
        content_snippet=post.get("selftext") or title,
        thumbnail=post_thumbnail(post),
    )


class RedditSource(ItemSource):
    """Fetch the newest posts of a subreddit."""

    emoji = "📝"
    name = "Reddit"

    def __init__(self, timeout: float = 20.0, user_agent: str = "feed-monitor/0.1") -> None:
        if not user_agent:
            raise ValueError("Reddit requires a non-empty User-Agent")
        self.timeout = timeout
        self.user_agent = user_agent

    def matches(self, url: str) -> bool:
        return extract_subreddit(url) is not None

    async def fetch_items(self, channel: Channel, limit: int) -> AsyncIterator[FeedItem]:
        listing = await self.fetch_listing(channel.feed_url, limit)
        children = dig(listing, "data", "children") or []

        count = 0
        for child in children:
            if count >= limit:
                break
            item = post_to_item(dig(child, "data"))
            if item:
                count += 1
                yield item

    async def fetch_listing(self, url: str, limit: int) -> Any:
        subreddit = extract_subreddit(url)
        if not subreddit:
            raise SourceError(f"Not a subreddit URL: {url}")

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
        ) as client:
            response = await client.get(
                f"https://www.reddit.com/r/{subreddit}/new.json",
                params={"limit": limit},
            )
            if response.status_code != 200:
                raise SourceError(f"HTTP {response.status_code} for r/{subreddit}")
            return response.json()

    async def resolve(self, url: str) -> tuple[str, str]:
        subreddit = extract_subreddit(url)
        if not subreddit:
            raise SourceError(f"Not a subreddit URL: {url}")
        return f"https://www.reddit.com/r/{subreddit}", f"r/{subreddit}"
