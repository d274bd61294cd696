"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)


@dataclass
class TelegramConfig:
    """Telegram Bot API settings."""
    api_base: str = "https://api.telegram.org"
    timeout: float = 15.0


@dataclass
class GeminiConfig:
    """Gemini API settings."""
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    temperature: float = 0.2
    max_output_tokens: int = 2048
    timeout: float = 60.0
    max_content_chars: int = 30000


@dataclass
class PollingConfig:
    """Feed polling settings."""
    poll_limit: int = 15
    backfill_limit: int = 5
    fetch_timeout: float = 20.0
    max_concurrent_channels: int = 4
    user_agent: str = DEFAULT_USER_AGENT
    reddit_user_agent: str = "feed-monitor/0.1"


@dataclass
class SchedulerConfig:
    """Periodic poll settings."""
    interval_minutes: float = 45.0
    startup_delay_seconds: float = 5.0
    skip_if_running: bool = True


@dataclass
class ServerConfig:
    """HTTP host settings."""
    host: str = "0.0.0.0"
    port: int = 3000
    run_scheduler: bool = True


@dataclass
class PromptsConfig:
    """Prompts for LLM."""
    question_answering: str = (
        "You are an assistant that answers questions about a single piece of content.\n"
        "Answer ONLY using the content below. Do not use outside knowledge.\n"
        "If the content does not contain the answer, reply exactly with: {not_found}\n\n"
        "Title: {title}\n"
        "Link: {link}\n\n"
        "Content:\n{content}\n\n"
        "Question: {question}"
    )
    not_found: str = "I couldn't find the answer to that in this content."


@dataclass
class Settings:
    """Application settings."""

    # Secrets (from environment only)
    telegram_bot_token: str = ""
    gemini_api_key: str = ""
    supabase_url: str = ""
    supabase_key: str = ""

    # Config sections
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    prompts: PromptsConfig = field(default_factory=PromptsConfig)

    @property
    def poll_limit(self) -> int:
        return self.polling.poll_limit

    @property
    def backfill_limit(self) -> int:
        return self.polling.backfill_limit

    @property
    def fetch_timeout(self) -> float:
        return self.polling.fetch_timeout

    @property
    def poll_interval_seconds(self) -> float:
        return self.scheduler.interval_minutes * 60


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        supabase_url=os.getenv("SUPABASE_URL", ""),
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY", ""),
    )

    sections = {
        "telegram": settings.telegram,
        "gemini": settings.gemini,
        "polling": settings.polling,
        "scheduler": settings.scheduler,
        "server": settings.server,
        "prompts": settings.prompts,
    }
    for name, section in sections.items():
        for key, value in (config.get(name) or {}).items():
            if not hasattr(section, key):
                raise ValueError(f"Unknown setting {name}.{key}")
            setattr(section, key, value)

    return settings
