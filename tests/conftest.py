"""Shared fixtures: an in-memory repository and simple adapter fakes."""

import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

import pytest

from feed_monitor.core import (
    Channel,
    ContentFetcher,
    FeedItem,
    ItemSource,
    MessagingConfig,
    Repository,
    SourceKind,
    StoredItem,
)


class InMemoryRepository(Repository):
    """Dict-backed repository enforcing the (channel_id, source_id) key."""

    def __init__(self) -> None:
        self.channels: dict[str, Channel] = {}
        self.items: dict[str, dict[str, Any]] = {}
        self.configs: dict[str, MessagingConfig] = {}

    def add_channel(self, channel: Channel) -> Channel:
        self.channels[channel.id] = channel
        return channel

    def add_item(self, **row: Any) -> StoredItem:
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("notified", False)
        self.items[row["id"]] = row
        return StoredItem.from_row(row)

    def items_for(self, channel_id: str) -> list[StoredItem]:
        return [StoredItem.from_row(r) for r in self.items.values() if r["channel_id"] == channel_id]

    async def list_channels(self) -> list[Channel]:
        return list(self.channels.values())

    async def get_channel(self, channel_id: str) -> Optional[Channel]:
        return self.channels.get(channel_id)

    async def create_channel(self, owner_id: str, name: str, url: str, feed_url: str) -> Channel:
        return self.add_channel(Channel(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=name,
            url=url,
            feed_url=feed_url,
            created_at=datetime.now(timezone.utc),
        ))

    async def update_channel(
        self,
        channel_id: str,
        last_checked: Optional[datetime] = None,
        feed_url: Optional[str] = None,
    ) -> None:
        channel = self.channels[channel_id]
        if last_checked is not None:
            channel.last_checked = last_checked
        if feed_url is not None:
            channel.feed_url = feed_url

    async def existing_source_ids(self, channel_id: str, source_ids: list[str]) -> set[str]:
        stored = {r["source_id"] for r in self.items.values() if r["channel_id"] == channel_id}
        return stored & set(source_ids)

    async def insert_item(self, row: dict[str, Any]) -> Optional[StoredItem]:
        for existing in self.items.values():
            if existing["channel_id"] == row["channel_id"] and existing["source_id"] == row["source_id"]:
                return None
        return self.add_item(**dict(row))

    async def insert_items(self, rows: list[dict[str, Any]]) -> int:
        for row in rows:
            await self.insert_item(row)
        return len(rows)

    async def get_item(self, item_id: str) -> Optional[StoredItem]:
        row = self.items.get(item_id)
        return StoredItem.from_row(row) if row else None

    async def mark_notified(self, item_id: str) -> None:
        self.items[item_id]["notified"] = True

    async def update_item(
        self,
        item_id: str,
        content: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> None:
        if content is not None:
            self.items[item_id]["content"] = content
        if summary is not None:
            self.items[item_id]["summary"] = summary

    async def find_item_by_link(self, link: str) -> Optional[StoredItem]:
        for row in self.items.values():
            if row.get("link") == link:
                return StoredItem.from_row(row)
        return None

    async def find_item_by_link_prefix(self, prefix: str) -> Optional[StoredItem]:
        for row in self.items.values():
            if (row.get("link") or "").startswith(prefix):
                return StoredItem.from_row(row)
        return None

    async def get_messaging_config(self, owner_id: str) -> Optional[MessagingConfig]:
        return self.configs.get(owner_id)

    async def get_messaging_config_by_chat(self, chat_id: str) -> Optional[MessagingConfig]:
        return next((c for c in self.configs.values() if c.chat_id == chat_id), None)

    async def list_messaging_configs(self) -> list[MessagingConfig]:
        return list(self.configs.values())

    async def upsert_messaging_config(self, config: MessagingConfig) -> None:
        self.configs[config.owner_id] = config


class StaticSource(ItemSource):
    """Source returning a fixed list of items, or raising a fixed error."""

    name = "Static"

    def __init__(self, items: list[FeedItem], error: Optional[Exception] = None, prefix: str = "") -> None:
        self.items = items
        self.error = error
        self.prefix = prefix
        self.calls: list[int] = []

    def matches(self, url: str) -> bool:
        return url.startswith(self.prefix)

    async def fetch_items(self, channel: Channel, limit: int) -> AsyncIterator[FeedItem]:
        self.calls.append(limit)
        if self.error:
            raise self.error
        for item in self.items[:limit]:
            yield item


class StaticContentFetcher(ContentFetcher):
    def __init__(self, content: str = "") -> None:
        self.content = content
        self.links: list[str] = []

    async def fetch_content(self, item: FeedItem) -> str:
        return self.content

    async def content_for_link(self, link: str) -> str:
        self.links.append(link)
        return self.content


def make_feed_item(source_id: str, title: str = "", snippet: str = "", link: str = "") -> FeedItem:
    return FeedItem(
        source_id=source_id,
        title=title or f"Item {source_id}",
        link=link or f"https://example.com/posts/{source_id}",
        source_kind=SourceKind.RSS,
        published_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        content_snippet=snippet,
    )


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def owner_id() -> str:
    return "11111111-aaaa-bbbb-cccc-222222222222"


@pytest.fixture
def channel(repository: InMemoryRepository, owner_id: str) -> Channel:
    return repository.add_channel(Channel(
        id="channel-a",
        owner_id=owner_id,
        name="Channel A",
        url="https://example.com/feed.xml",
        feed_url="https://example.com/feed.xml",
    ))
