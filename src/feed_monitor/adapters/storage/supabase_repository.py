"""Supabase (PostgREST) implementation of the repository."""

import asyncio
from datetime import datetime
from typing import Any, Callable, Optional

from supabase import Client, create_client

from feed_monitor.config import Settings
from feed_monitor.core import Channel, MessagingConfig, Repository, StoredItem

ITEM_CONFLICT = "channel_id,source_id"


class SupabaseRepository(Repository):
    """Repository backed by the Supabase tables in ``schema.sql``.

    supabase-py is synchronous, so every query runs in a worker thread.
    """

    def __init__(self, client: Client) -> None:
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseRepository":
        if not settings.supabase_url or not settings.supabase_key:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        return cls(create_client(settings.supabase_url, settings.supabase_key))

    async def _run(self, query: Callable[[], Any]) -> list[dict]:
        response = await asyncio.to_thread(query)
        return response.data or []

    async def list_channels(self) -> list[Channel]:
        rows = await self._run(lambda: self.client.table("channels").select("*").execute())
        return [Channel.from_row(row) for row in rows]

    async def get_channel(self, channel_id: str) -> Optional[Channel]:
        rows = await self._run(
            lambda: self.client.table("channels").select("*").eq("id", channel_id).limit(1).execute()
        )
        return Channel.from_row(rows[0]) if rows else None

    async def create_channel(self, owner_id: str, name: str, url: str, feed_url: str) -> Channel:
        rows = await self._run(lambda: self.client.table("channels").insert({
            "owner_id": owner_id,
            "name": name,
            "url": url,
            "feed_url": feed_url,
        }).execute())
        return Channel.from_row(rows[0])

    async def update_channel(
        self,
        channel_id: str,
        last_checked: Optional[datetime] = None,
        feed_url: Optional[str] = None,
    ) -> None:
        values: dict[str, Any] = {}
        if last_checked is not None:
            values["last_checked"] = last_checked.isoformat()
        if feed_url is not None:
            values["feed_url"] = feed_url
        if not values:
            return
        await self._run(lambda: self.client.table("channels").update(values).eq("id", channel_id).execute())

    async def existing_source_ids(self, channel_id: str, source_ids: list[str]) -> set[str]:
        if not source_ids:
            return set()
        rows = await self._run(
            lambda: self.client.table("items")
            .select("source_id")
            .eq("channel_id", channel_id)
            .in_("source_id", source_ids)
            .execute()
        )
        return {row["source_id"] for row in rows}

    async def insert_item(self, row: dict[str, Any]) -> Optional[StoredItem]:
        rows = await self._run(
            lambda: self.client.table("items")
            .upsert(row, on_conflict=ITEM_CONFLICT, ignore_duplicates=True)
            .execute()
        )
        return StoredItem.from_row(rows[0]) if rows else None

    async def insert_items(self, rows: list[dict[str, Any]]) -> int:
        if not rows:
            return 0
        await self._run(
            lambda: self.client.table("items")
            .upsert(rows, on_conflict=ITEM_CONFLICT, ignore_duplicates=True)
            .execute()
        )
        return len(rows)

    async def get_item(self, item_id: str) -> Optional[StoredItem]:
        rows = await self._run(
            lambda: self.client.table("items").select("*").eq("id", item_id).limit(1).execute()
        )
        return StoredItem.from_row(rows[0]) if rows else None

    async def mark_notified(self, item_id: str) -> None:
        await self._run(
            lambda: self.client.table("items").update({"notified": True}).eq("id", item_id).execute()
        )

    async def update_item(
        self,
        item_id: str,
        content: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> None:
        values: dict[str, Any] = {}
        if content is not None:
            values["content"] = content
        if summary is not None:
            values["summary"] = summary
        if not values:
            return
        await self._run(lambda: self.client.table("items").update(values).eq("id", item_id).execute())

    async def find_item_by_link(self, link: str) -> Optional[StoredItem]:
        rows = await self._run(
            lambda: self.client.table("items")
            .select("*")
            .eq("link", link)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return StoredItem.from_row(rows[0]) if rows else None

    async def find_item_by_link_prefix(self, prefix: str) -> Optional[StoredItem]:
        rows = await self._run(
            lambda: self.client.table("items")
            .select("*")
            .like("link", f"{prefix}%")
            .order("created_at", desc=True)
            .limit(10)
            .execute()
        )
        # LIKE treats "_" as a wildcard; confirm the literal prefix
        for row in rows:
            if (row.get("link") or "").startswith(prefix):
                return StoredItem.from_row(row)
        return None

    async def get_messaging_config(self, owner_id: str) -> Optional[MessagingConfig]:
        rows = await self._run(
            lambda: self.client.table("account_messaging_config")
            .select("*")
            .eq("owner_id", owner_id)
            .limit(1)
            .execute()
        )
        return MessagingConfig.from_row(rows[0]) if rows else None

    async def get_messaging_config_by_chat(self, chat_id: str) -> Optional[MessagingConfig]:
        rows = await self._run(
            lambda: self.client.table("account_messaging_config")
            .select("*")
            .eq("chat_id", chat_id)
            .limit(1)
            .execute()
        )
        return MessagingConfig.from_row(rows[0]) if rows else None

    async def list_messaging_configs(self) -> list[MessagingConfig]:
        rows = await self._run(lambda: self.client.table("account_messaging_config").select("*").execute())
        return [MessagingConfig.from_row(row) for row in rows]

    async def upsert_messaging_config(self, config: MessagingConfig) -> None:
        await self._run(lambda: self.client.table("account_messaging_config").upsert({
            "owner_id": config.owner_id,
            "bot_token": config.bot_token or None,
            "chat_id": config.chat_id or None,
            "llm_api_key": config.llm_api_key or None,
        }, on_conflict="owner_id").execute())
