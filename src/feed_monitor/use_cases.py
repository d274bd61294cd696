"""Business logic use cases."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from feed_monitor.adapters.sources.filters import classify_content_kind, extract_item_link
from feed_monitor.adapters.sources.router import SourceRouter
from feed_monitor.core import (
    Channel,
    ContentFetcher,
    FeedItem,
    InboundMessage,
    ItemSource,
    LLMClient,
    LLMQuotaError,
    MessagingConfig,
    Notifier,
    NotifyResult,
    PollReport,
    Repository,
    StoredItem,
    is_quota_error,
)

log = logging.getLogger(__name__)

TELEGRAM_CHUNK = 4000

WELCOME_MESSAGE = (
    "✅ This chat is now linked to your feed monitor account. "
    "You'll get a message here whenever a tracked channel publishes something new. "
    "Reply to any alert with a question to ask about that video or post."
)
START_USAGE_MESSAGE = "Send /start <account id> to link this chat to your account."
INVALID_ACCOUNT_MESSAGE = "That doesn't look like a valid account id. Copy it from your settings page."
ITEM_NOT_FOUND_MESSAGE = "Sorry, I couldn't find that item in your feed history: {link}"
NO_CONTENT_MESSAGE = "There is no transcript or text available for this item, so I can't answer questions about it."
RATE_LIMIT_MESSAGE = "⏳ The AI quota has been exhausted for now. Please try again in a few minutes."
GENERIC_ERROR_MESSAGE = "⚠️ Something went wrong while answering your question. Please try again later."
TEST_TITLE = "Test Notification"
TEST_LINK = "https://example.com"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def chunk_text(text: str, size: int = TELEGRAM_CHUNK) -> list[str]:
    return [text[i:i + size] for i in range(0, len(text), size)]


class IngestionService:
    """Poll channels, store unseen items and notify their owners."""

    def __init__(
        self,
        repository: Repository,
        router: SourceRouter,
        content_fetcher: ContentFetcher,
        notifier: Notifier,
        poll_limit: int = 15,
        backfill_limit: int = 5,
        fetch_timeout: float = 20.0,
        max_concurrent_channels: int = 4,
    ) -> None:
        self.repository = repository
        self.router = router
        self.content_fetcher = content_fetcher
        self.notifier = notifier
        self.poll_limit = poll_limit
        self.backfill_limit = backfill_limit
        self.fetch_timeout = fetch_timeout
        self.max_concurrent_channels = max(1, max_concurrent_channels)

    async def run_poll_cycle(self) -> PollReport:
        """Poll every channel once. Per-channel failures are logged and skipped."""
        log.info("Checking feeds...")
        channels = await self.repository.list_channels()
        configs = {c.owner_id: c for c in await self.repository.list_messaging_configs()}

        semaphore = asyncio.Semaphore(self.max_concurrent_channels)

        async def guarded(channel: Channel) -> PollReport:
            async with semaphore:
                return await self._poll_channel_safely(channel, configs.get(channel.owner_id))

        report = PollReport()
        for channel_report in await asyncio.gather(*(guarded(c) for c in channels)):
            report.merge(channel_report)

        log.info(
            "Poll cycle finished: %d channels, %d failed, %d new items, %d notified",
            report.channels_checked, report.channels_failed, report.new_items, report.notified,
        )
        return report

    async def _poll_channel_safely(self, channel: Channel, config: Optional[MessagingConfig]) -> PollReport:
        try:
            return await self.poll_channel(channel, config)
        except asyncio.TimeoutError:
            reason = f"feed fetch timed out after {self.fetch_timeout:g}s"
        except Exception as e:
            reason = str(e) or repr(e)
        log.warning("Error checking feed for %s: %s", channel.name or channel.id, reason)
        return PollReport(channels_failed=1, errors=[f"{channel.name or channel.id}: {reason}"])

    async def poll_channel(self, channel: Channel, config: Optional[MessagingConfig]) -> PollReport:
        """Ingest new items of one channel and notify for each of them."""
        source = self.router.source_for(channel.feed_url)
        channel = await self._normalize_channel(channel, source)
        items = await self._collect(source, channel, self.poll_limit)

        existing = await self.repository.existing_source_ids(channel.id, [i.source_id for i in items])
        report = PollReport(channels_checked=1)

        for item in items:
            if item.source_id in existing:
                continue
            existing.add(item.source_id)

            stored = await self.repository.insert_item(await self._build_row(channel, item, notified=False))
            if stored is None:
                # another poll inserted it first
                continue

            log.info("New item found for channel %s: %s", channel.name, stored.title)
            report.new_items += 1

            result = await self.notifier.notify(config, stored)
            if result.success:
                await self.repository.mark_notified(stored.id)
                report.notified += 1
            else:
                log.info("Item %s left unnotified: %s", stored.id, result.error)

        await self.repository.update_channel(channel.id, last_checked=_utc_now())
        return report

    async def run_backfill(self, channel: Channel) -> int:
        """Store a channel's recent items as already notified. Returns rows inserted."""
        try:
            source = self.router.source_for(channel.feed_url)
            channel = await self._normalize_channel(channel, source)
            items = await self._collect(source, channel, self.backfill_limit)

            existing = await self.repository.existing_source_ids(channel.id, [i.source_id for i in items])
            rows = []
            for item in items:
                if item.source_id in existing:
                    continue
                existing.add(item.source_id)
                rows.append(await self._build_row(channel, item, notified=True))

            await self.repository.insert_items(rows)
            await self.repository.update_channel(channel.id, last_checked=_utc_now())
            log.info("Backfilled %d items for channel %s", len(rows), channel.id)
            return len(rows)
        except Exception as e:
            log.warning("Error backfilling items for channel %s: %s", channel.id, e)
            return 0

    async def register_channel(self, owner_id: str, url: str) -> Channel:
        """Resolve a user-supplied URL into a channel, store it and backfill it."""
        source = self.router.source_for(url)
        feed_url, name = await source.resolve(url)
        channel = await self.repository.create_channel(
            owner_id=owner_id,
            name=name or "Unknown Channel",
            url=url,
            feed_url=feed_url,
        )
        await self.run_backfill(channel)
        return channel

    async def save_summary(self, item_id: str, summary: str) -> Optional[NotifyResult]:
        """Store an externally produced summary and notify if the item never was."""
        await self.repository.update_item(item_id, summary=summary)
        item = await self.repository.get_item(item_id)
        if item is None:
            raise LookupError(f"Item {item_id} not found")
        if item.notified:
            return None

        channel = await self.repository.get_channel(item.channel_id)
        config = await self.repository.get_messaging_config(channel.owner_id) if channel else None
        result = await self.notifier.notify(config, item)
        if result.success:
            await self.repository.mark_notified(item.id)
        return result

    async def send_test_notification(self, owner_id: str) -> NotifyResult:
        config = await self.repository.get_messaging_config(owner_id)
        if config is None or not config.is_configured:
            return NotifyResult(success=False, error="Telegram settings not configured")
        sample = StoredItem(id="test", channel_id="", source_id="test", title=TEST_TITLE, link=TEST_LINK)
        return await self.notifier.notify(config, sample)

    async def _normalize_channel(self, channel: Channel, source: ItemSource) -> Channel:
        feed_url = await source.normalize_feed_url(channel.feed_url)
        if feed_url != channel.feed_url:
            log.info("Rewriting feed URL of %s: %s -> %s", channel.name, channel.feed_url, feed_url)
            await self.repository.update_channel(channel.id, feed_url=feed_url)
            channel.feed_url = feed_url
        return channel

    async def _collect(self, source: ItemSource, channel: Channel, limit: int) -> list[FeedItem]:
        async def drain() -> list[FeedItem]:
            return [item async for item in source.fetch_items(channel, limit)]

        return await asyncio.wait_for(drain(), timeout=self.fetch_timeout)

    async def _build_row(self, channel: Channel, item: FeedItem, notified: bool) -> dict[str, Any]:
        content = await self.content_fetcher.fetch_content(item)
        kind = item.content_kind or classify_content_kind(item.title, item.content_snippet)
        return {
            "channel_id": channel.id,
            "source_id": item.source_id,
            "title": item.title,
            "link": item.link,
            "published_at": item.published_at.isoformat() if item.published_at else None,
            "content": content,
            "summary": "",
            "content_kind": kind.value,
            "thumbnail": item.thumbnail,
            "notified": notified,
        }


class ReplyService:
    """Handle messages sent to the bot: account linking and questions about items."""

    def __init__(
        self,
        repository: Repository,
        notifier: Notifier,
        llm_client: LLMClient,
        content_fetcher: ContentFetcher,
        bot_token: str = "",
    ) -> None:
        self.repository = repository
        self.notifier = notifier
        self.llm_client = llm_client
        self.content_fetcher = content_fetcher
        self.bot_token = bot_token

    async def handle_inbound_message(self, payload: Any) -> None:
        """Process one webhook update. Never raises."""
        try:
            message = InboundMessage.from_update(payload)
            if message is None:
                return

            text = message.text.strip()
            command, _, argument = text.partition(" ")
            # group chats address commands as /start@BotName
            if command.split("@", 1)[0] == "/start":
                await self.link_account(message, argument.strip())
                return

            link = extract_item_link(message.reply_to_text)
            if link and text:
                await self.answer_question(message, link, text)
        except Exception:
            log.exception("Webhook handler failed")

    async def link_account(self, message: InboundMessage, account_token: str) -> None:
        if not account_token:
            await self.notifier.send_text(self.bot_token, message.chat_id, START_USAGE_MESSAGE)
            return
        try:
            owner_id = str(uuid.UUID(account_token))
        except ValueError:
            await self.notifier.send_text(self.bot_token, message.chat_id, INVALID_ACCOUNT_MESSAGE)
            return

        existing = await self.repository.get_messaging_config(owner_id)
        config = MessagingConfig(
            owner_id=owner_id,
            bot_token=(existing.bot_token if existing else "") or self.bot_token,
            chat_id=message.chat_id,
            llm_api_key=existing.llm_api_key if existing else "",
        )
        await self.repository.upsert_messaging_config(config)
        log.info("Linked chat %s to account %s", message.chat_id, owner_id)

        await self.notifier.send_text(config.bot_token, config.chat_id, WELCOME_MESSAGE)

    async def answer_question(self, message: InboundMessage, link: str, question: str) -> None:
        config = await self.repository.get_messaging_config_by_chat(message.chat_id)
        bot_token = (config.bot_token if config else "") or self.bot_token

        async def reply(text: str) -> None:
            await self.notifier.send_text(bot_token, message.chat_id, text, message.message_id)

        item = await self.repository.find_item_by_link(link)
        if item is None:
            item = await self.repository.find_item_by_link_prefix(link)
        if item is None:
            log.info("Reply references unknown link %s", link)
            await reply(ITEM_NOT_FOUND_MESSAGE.format(link=link))
            return

        content = item.content
        if not content:
            content = await self.content_fetcher.content_for_link(item.link)
            if content:
                await self.repository.update_item(item.id, content=content)

        if not content:
            await reply(NO_CONTENT_MESSAGE)
            return

        if question.lower() == "total":
            for chunk in chunk_text(content):
                await reply(chunk)
            return

        api_key = (config.llm_api_key if config else "") or None
        try:
            answer = await self.llm_client.answer_question(item, content, question, api_key=api_key)
        except Exception as e:
            if isinstance(e, LLMQuotaError) or is_quota_error(str(e)):
                log.warning("LLM quota exhausted: %s", e)
                await reply(RATE_LIMIT_MESSAGE)
            else:
                log.warning("LLM call failed: %s", e)
                await reply(GENERIC_ERROR_MESSAGE)
            return

        await reply(answer)
