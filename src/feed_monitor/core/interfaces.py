"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, AsyncIterator, Optional

from feed_monitor.core.entities import (
    Channel,
    FeedItem,
    MessagingConfig,
    NotifyResult,
    StoredItem,
)


class ItemSource(ABC):
    """Interface for fetching normalized items for one channel."""

    emoji = "•"
    name = "Source"

    @abstractmethod
    def matches(self, url: str) -> bool:
        """Whether this source handles the given feed URL."""
        pass

    @abstractmethod
    def fetch_items(self, channel: Channel, limit: int) -> AsyncIterator[FeedItem]:
        """Yield at most ``limit`` normalized items for the channel."""
        pass

    async def normalize_feed_url(self, url: str) -> str:
        """Rewrite a stored feed URL into the form this source prefers."""
        return url

    async def resolve(self, url: str) -> tuple[str, str]:
        """Return (feed URL, display name) for a URL a user wants to track."""
        return url, url


class ContentFetcher(ABC):
    """Interface for best-effort long-form content retrieval."""

    @abstractmethod
    async def fetch_content(self, item: FeedItem) -> str:
        """Return transcript/body text, or an empty string."""
        pass

    @abstractmethod
    async def content_for_link(self, link: str) -> str:
        """Same as ``fetch_content`` for an item known only by its link."""
        pass


class Notifier(ABC):
    """Interface for the messaging endpoint."""

    @abstractmethod
    async def notify(self, config: Optional[MessagingConfig], item: StoredItem) -> NotifyResult:
        """Announce a newly ingested item."""
        pass

    @abstractmethod
    async def send_text(
        self,
        bot_token: str,
        chat_id: str,
        text: str,
        reply_to_message_id: Optional[int] = None,
    ) -> NotifyResult:
        """Send a plain text message."""
        pass


class LLMClient(ABC):
    """Interface for LLM operations."""

    @abstractmethod
    async def generate(self, prompt: str, api_key: Optional[str] = None) -> str:
        """Single-turn text generation."""
        pass

    @abstractmethod
    async def answer_question(
        self,
        item: StoredItem,
        content: str,
        question: str,
        api_key: Optional[str] = None,
    ) -> str:
        """Answer a question grounded strictly in the item's content."""
        pass


class Repository(ABC):
    """Interface for the relational store."""

    @abstractmethod
    async def list_channels(self) -> list[Channel]:
        pass

    @abstractmethod
    async def get_channel(self, channel_id: str) -> Optional[Channel]:
        pass

    @abstractmethod
    async def create_channel(self, owner_id: str, name: str, url: str, feed_url: str) -> Channel:
        pass

    @abstractmethod
    async def update_channel(
        self,
        channel_id: str,
        last_checked: Optional[datetime] = None,
        feed_url: Optional[str] = None,
    ) -> None:
        pass

    @abstractmethod
    async def existing_source_ids(self, channel_id: str, source_ids: list[str]) -> set[str]:
        """Return the subset of ``source_ids`` already stored for the channel."""
        pass

    @abstractmethod
    async def insert_item(self, row: dict[str, Any]) -> Optional[StoredItem]:
        """Insert-or-ignore on (channel_id, source_id); None if it already existed."""
        pass

    @abstractmethod
    async def insert_items(self, rows: list[dict[str, Any]]) -> int:
        """Bulk insert-or-ignore; returns the number of rows sent."""
        pass

    @abstractmethod
    async def get_item(self, item_id: str) -> Optional[StoredItem]:
        pass

    @abstractmethod
    async def mark_notified(self, item_id: str) -> None:
        pass

    @abstractmethod
    async def update_item(
        self,
        item_id: str,
        content: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> None:
        pass

    @abstractmethod
    async def find_item_by_link(self, link: str) -> Optional[StoredItem]:
        pass

    @abstractmethod
    async def find_item_by_link_prefix(self, prefix: str) -> Optional[StoredItem]:
        pass

    @abstractmethod
    async def get_messaging_config(self, owner_id: str) -> Optional[MessagingConfig]:
        pass

    @abstractmethod
    async def get_messaging_config_by_chat(self, chat_id: str) -> Optional[MessagingConfig]:
        pass

    @abstractmethod
    async def list_messaging_configs(self) -> list[MessagingConfig]:
        pass

    @abstractmethod
    async def upsert_messaging_config(self, config: MessagingConfig) -> None:
        pass
