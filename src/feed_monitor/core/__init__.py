"""Core domain layer."""

from feed_monitor.core.entities import (
    Channel,
    ContentKind,
    FeedItem,
    InboundMessage,
    MessagingConfig,
    NotifyResult,
    PollReport,
    SourceKind,
    StoredItem,
)
from feed_monitor.core.errors import (
    FeedMonitorError,
    LLMError,
    LLMQuotaError,
    SourceError,
    is_quota_error,
)
from feed_monitor.core.interfaces import (
    ContentFetcher,
    ItemSource,
    LLMClient,
    Notifier,
    Repository,
)

__all__ = [
    "Channel",
    "ContentKind",
    "FeedItem",
    "InboundMessage",
    "MessagingConfig",
    "NotifyResult",
    "PollReport",
    "SourceKind",
    "StoredItem",
    "FeedMonitorError",
    "LLMError",
    "LLMQuotaError",
    "SourceError",
    "is_quota_error",
    "ContentFetcher",
    "ItemSource",
    "LLMClient",
    "Notifier",
    "Repository",
]
