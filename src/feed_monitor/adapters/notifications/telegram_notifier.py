"""Telegram Bot API notification adapter."""

import logging
from typing import Optional

import httpx

from feed_monitor.adapters.sources.filters import is_reddit_url
from feed_monitor.core import MessagingConfig, Notifier, NotifyResult, StoredItem

log = logging.getLogger(__name__)

RULE = "━━━━━━━━━━━━━━━━━━━━━"


def escape_html(text: str) -> str:
    """Escape the characters Telegram's HTML parse mode treats as markup."""
    return (text or "").replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def format_item_message(title: str, link: str) -> str:
    """Build the announcement for a new item; posts and videos are framed differently."""
    if is_reddit_url(link):
        emoji, prefix = "📝", "New Reddit Post"
    else:
        emoji, prefix = "📺", "New Video Alert"

    return (
        f"{RULE}\n"
        f"{emoji} <b>{prefix}!</b>\n\n"
        f"📌 <b>Title:</b> {escape_html(title)}\n\n"
        f"🔗 <b>Link:</b> {link}\n"
        f"{RULE}"
    )


class TelegramNotifier(Notifier):
    """Send messages through the Telegram Bot API."""

    def __init__(self, api_base: str = "https://api.telegram.org", timeout: float = 15.0) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    async def notify(self, config: Optional[MessagingConfig], item: StoredItem) -> NotifyResult:
        """Announce an item; a missing config is reported, not raised."""
        if config is None or not config.is_configured:
            log.info("No Telegram settings configured for item %s. Skipping.", item.id)
            return NotifyResult(success=False, error="No Telegram settings configured")

        message = format_item_message(item.title, item.link)
        return await self._send(config.bot_token, config.chat_id, message, parse_mode="HTML")

    async def send_text(
        self,
        bot_token: str,
        chat_id: str,
        text: str,
        reply_to_message_id: Optional[int] = None,
    ) -> NotifyResult:
        if not bot_token or not chat_id:
            return NotifyResult(success=False, error="No Telegram settings configured")
        return await self._send(bot_token, chat_id, escape_html(text), "HTML", reply_to_message_id)

    async def _send(
        self,
        bot_token: str,
        chat_id: str,
        text: str,
        parse_mode: str,
        reply_to_message_id: Optional[int] = None,
    ) -> NotifyResult:
        payload: dict = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": parse_mode,
        }
        if reply_to_message_id is not None:
            payload["reply_to_message_id"] = reply_to_message_id

        url = f"{self.api_base}/bot{bot_token}/sendMessage"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(url, json=payload)
            # InvalidURL (e.g. a token pasted with a newline) is not an HTTPError
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                log.warning("Failed to send Telegram notification: %s", e)
                return NotifyResult(success=False, error=str(e))

        if response.status_code == 200:
            log.info("Telegram notification sent to chat %s", chat_id)
            return NotifyResult(success=True)

        error_text = response.text
        log.warning("Telegram failed (HTTP %s): %s", response.status_code, error_text)
        return NotifyResult(success=False, error=error_text)
