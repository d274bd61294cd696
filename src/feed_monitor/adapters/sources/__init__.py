"""Source adapters for fetching items."""

from feed_monitor.adapters.sources.reddit_source import RedditSource
from feed_monitor.adapters.sources.router import SourceRouter
from feed_monitor.adapters.sources.rss_source import RSSSource
from feed_monitor.adapters.sources.youtube_source import YouTubeSource

__all__ = ["RSSSource", "RedditSource", "SourceRouter", "YouTubeSource"]
