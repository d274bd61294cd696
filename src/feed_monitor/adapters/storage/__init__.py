"""Persistence adapters."""

from feed_monitor.adapters.storage.supabase_repository import SupabaseRepository

__all__ = ["SupabaseRepository"]
