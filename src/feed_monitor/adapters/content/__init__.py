"""Long-form content retrieval."""

from feed_monitor.adapters.content.transcript_fetcher import TranscriptFetcher

__all__ = ["TranscriptFetcher"]
