"""Best-effort transcript and post-body fetcher."""

import asyncio
import logging

from bs4 import BeautifulSoup
from youtube_transcript_api import YouTubeTranscriptApi

from feed_monitor.adapters.sources.filters import extract_video_id, is_youtube_watch_url, source_kind_for_link
from feed_monitor.core import ContentFetcher, FeedItem, SourceKind

log = logging.getLogger(__name__)


def strip_html(text: str) -> str:
    """Drop markup from a post body, keeping its text."""
    if not text or "<" not in text:
        return text or ""
    return BeautifulSoup(text, "html.parser").get_text(" ", strip=True)


class TranscriptFetcher(ContentFetcher):
    """Fetch YouTube caption text; reuse Reddit self-text. Never raises."""

    def __init__(self, timeout: float = 20.0, api: YouTubeTranscriptApi | None = None) -> None:
        self.timeout = timeout
        self.api = api or YouTubeTranscriptApi()

    async def fetch_content(self, item: FeedItem) -> str:
        if item.source_kind == SourceKind.REDDIT:
            return strip_html(item.content_snippet)
        if item.source_kind == SourceKind.YOUTUBE or is_youtube_watch_url(item.link):
            return await self.fetch_transcript(item.link)
        return ""

    async def content_for_link(self, link: str) -> str:
        """Content for an already stored item, known only by its link."""
        if source_kind_for_link(link) == SourceKind.REDDIT:
            return ""
        return await self.fetch_transcript(link)

    async def fetch_transcript(self, url: str) -> str:
        video_id = extract_video_id(url)
        if not video_id:
            return ""
        try:
            transcript = await asyncio.wait_for(
                asyncio.to_thread(self.api.fetch, video_id),
                timeout=self.timeout,
            )
            return " ".join(snippet.text for snippet in transcript)
        except Exception as e:
            log.warning("Could not fetch transcript for %s: %s", url, e)
            return ""
