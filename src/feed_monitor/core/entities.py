"""Core domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ContentKind(str, Enum):
    """Coarse classification of a discovered item."""

    SHORT = "short"
    LONGFORM = "longform"


class SourceKind(str, Enum):
    """Kind of feed an item was discovered in."""

    RSS = "rss"
    YOUTUBE = "youtube"
    REDDIT = "reddit"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as stored by the database."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class FeedItem:
    """Item normalized from any source adapter."""

    source_id: str
    title: str
    link: str
    source_kind: SourceKind
    published_at: Optional[datetime] = None
    content_snippet: str = ""
    thumbnail: str = ""
    content_kind: Optional[ContentKind] = None

    def __post_init__(self) -> None:
        if not self.source_id:
            raise ValueError("Source id cannot be empty")
        if not self.link:
            raise ValueError("Link cannot be empty")


@dataclass
class Channel:
    """A tracked feed source owned by an account."""

    id: str
    owner_id: str
    name: str
    url: str
    feed_url: str
    last_checked: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Channel":
        return cls(
            id=str(row["id"]),
            owner_id=str(row.get("owner_id") or ""),
            name=row.get("name") or "",
            url=row.get("url") or "",
            feed_url=row.get("feed_url") or row.get("url") or "",
            last_checked=parse_timestamp(row.get("last_checked")),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass
class StoredItem:
    """An item persisted for a channel."""

    id: str
    channel_id: str
    source_id: str
    title: str
    link: str
    published_at: Optional[datetime] = None
    content: str = ""
    summary: str = ""
    content_kind: ContentKind = ContentKind.LONGFORM
    notified: bool = False
    thumbnail: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "StoredItem":
        kind = row.get("content_kind") or ContentKind.LONGFORM.value
        try:
            content_kind = ContentKind(kind)
        except ValueError:
            content_kind = ContentKind.LONGFORM
        return cls(
            id=str(row["id"]),
            channel_id=str(row.get("channel_id") or ""),
            source_id=row.get("source_id") or "",
            title=row.get("title") or "",
            link=row.get("link") or "",
            published_at=parse_timestamp(row.get("published_at")),
            content=row.get("content") or "",
            summary=row.get("summary") or "",
            content_kind=content_kind,
            notified=bool(row.get("notified")),
            thumbnail=row.get("thumbnail") or "",
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass
class MessagingConfig:
    """Per-account messaging and LLM credentials."""

    owner_id: str
    bot_token: str = ""
    chat_id: str = ""
    llm_api_key: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "MessagingConfig":
        return cls(
            owner_id=str(row["owner_id"]),
            bot_token=row.get("bot_token") or "",
            chat_id=str(row.get("chat_id") or ""),
            llm_api_key=row.get("llm_api_key") or "",
        )


@dataclass
class NotifyResult:
    """Outcome of a single delivery attempt."""

    success: bool
    error: Optional[str] = None


@dataclass
class InboundMessage:
    """Message delivered to the bot webhook."""

    chat_id: str
    text: str
    message_id: Optional[int] = None
    reply_to_text: str = ""

    @classmethod
    def from_update(cls, payload: Any) -> Optional["InboundMessage"]:
        """Extract the message from a Telegram update, tolerating missing fields."""
        if not isinstance(payload, dict):
            return None
        message = payload.get("message") or payload.get("edited_message")
        if not isinstance(message, dict):
            return None

        chat = message.get("chat")
        chat_id = chat.get("id") if isinstance(chat, dict) else None
        if chat_id is None:
            return None

        parent = message.get("reply_to_message")
        reply_to_text = ""
        if isinstance(parent, dict):
            reply_to_text = parent.get("text") or parent.get("caption") or ""

        message_id = message.get("message_id")
        return cls(
            chat_id=str(chat_id),
            text=message.get("text") or "",
            message_id=message_id if isinstance(message_id, int) else None,
            reply_to_text=reply_to_text,
        )


@dataclass
class PollReport:
    """Counters collected over one poll cycle."""

    channels_checked: int = 0
    channels_failed: int = 0
    new_items: int = 0
    notified: int = 0
    errors: list[str] = field(default_factory=list)

    def merge(self, other: "PollReport") -> None:
        self.channels_checked += other.channels_checked
        self.channels_failed += other.channels_failed
        self.new_items += other.new_items
        self.notified += other.notified
        self.errors.extend(other.errors)
