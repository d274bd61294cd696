"""Notification adapters."""

from feed_monitor.adapters.notifications.telegram_notifier import TelegramNotifier, format_item_message

__all__ = ["TelegramNotifier", "format_item_message"]
