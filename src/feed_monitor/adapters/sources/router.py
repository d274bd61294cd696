"""Pick the source adapter for a channel by its feed URL."""

from typing import Optional

from feed_monitor.adapters.sources.reddit_source import RedditSource
from feed_monitor.adapters.sources.rss_source import RSSSource
from feed_monitor.adapters.sources.youtube_source import YouTubeSource
from feed_monitor.config import Settings
from feed_monitor.core import ItemSource, SourceError


class SourceRouter:
    """Ordered list of sources; the first one whose pattern matches wins."""

    def __init__(self, sources: list[ItemSource]) -> None:
        self.sources = sources

    @classmethod
    def from_settings(cls, settings: Settings) -> "SourceRouter":
        polling = settings.polling
        return cls([
            RedditSource(timeout=polling.fetch_timeout, user_agent=polling.reddit_user_agent),
            YouTubeSource(timeout=polling.fetch_timeout, user_agent=polling.user_agent),
            RSSSource(timeout=polling.fetch_timeout, user_agent=polling.user_agent),
        ])

    def find(self, url: str) -> Optional[ItemSource]:
        for source in self.sources:
            if source.matches(url):
                return source
        return None

    def source_for(self, url: str) -> ItemSource:
        source = self.find(url)
        if source is None:
            raise SourceError(f"No source handles {url!r}")
        return source
