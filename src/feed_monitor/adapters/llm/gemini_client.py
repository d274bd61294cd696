"""Gemini API client for grounded question answering."""

import logging
from typing import Optional

import httpx

from feed_monitor.config import Settings
from feed_monitor.core import LLMClient, LLMError, LLMQuotaError, StoredItem, is_quota_error

log = logging.getLogger(__name__)


class GeminiClient(LLMClient):
    """Gemini generateContent client; one shared instance, key chosen per call."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.api_key = settings.gemini_api_key
        self.model = settings.gemini.model
        self.base_url = settings.gemini.base_url.rstrip("/")
        self.temperature = settings.gemini.temperature
        self.max_output_tokens = settings.gemini.max_output_tokens
        self.timeout = settings.gemini.timeout
        self.max_content_chars = settings.gemini.max_content_chars

    async def answer_question(
        self,
        item: StoredItem,
        content: str,
        question: str,
        api_key: Optional[str] = None,
    ) -> str:
        prompts = self.settings.prompts
        prompt = prompts.question_answering.format(
            not_found=prompts.not_found,
            title=item.title,
            link=item.link,
            content=content[:self.max_content_chars],
            question=question,
        )
        return await self.generate(prompt, api_key=api_key)

    async def generate(self, prompt: str, api_key: Optional[str] = None) -> str:
        """Call generateContent once; raise LLMQuotaError / LLMError on failure."""
        key = api_key or self.api_key
        if not key:
            raise LLMError("No Gemini API key configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/models/{self.model}:generateContent",
                    headers={
                        "x-goog-api-key": key,
                        "content-type": "application/json",
                    },
                    json={
                        "contents": [
                            {"role": "user", "parts": [{"text": prompt}]}
                        ],
                        "generationConfig": {
                            "temperature": self.temperature,
                            "maxOutputTokens": self.max_output_tokens,
                        },
                    },
                )
        except httpx.RequestError as e:
            raise LLMError(f"Network error calling Gemini: {e}") from e

        if response.status_code == 200:
            return self._extract_text(response.json())

        body = response.text
        log.warning("Gemini request failed (HTTP %s)", response.status_code)
        if response.status_code == 429 or is_quota_error(body):
            raise LLMQuotaError(body)
        raise LLMError(f"Gemini HTTP {response.status_code}: {body}")

    def _extract_text(self, data: dict) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback") or {}
            raise LLMError(f"Gemini returned no candidates: {feedback.get('blockReason', 'unknown')}")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if not text.strip():
            raise LLMError("Gemini returned an empty answer")
        return text.strip()
