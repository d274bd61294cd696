"""LLM adapters."""

from feed_monitor.adapters.llm.gemini_client import GeminiClient

__all__ = ["GeminiClient"]
