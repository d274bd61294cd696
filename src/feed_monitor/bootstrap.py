"""Wire adapters and services together from settings."""

from dataclasses import dataclass
from typing import Optional

from feed_monitor.adapters.content import TranscriptFetcher
from feed_monitor.adapters.llm import GeminiClient
from feed_monitor.adapters.notifications import TelegramNotifier
from feed_monitor.adapters.sources import SourceRouter
from feed_monitor.adapters.storage import SupabaseRepository
from feed_monitor.config import Settings
from feed_monitor.core import Repository
from feed_monitor.scheduler import PollScheduler
from feed_monitor.use_cases import IngestionService, ReplyService


@dataclass
class Services:
    """Shared instances owned by the host process."""

    settings: Settings
    repository: Repository
    ingestion: IngestionService
    replies: ReplyService
    scheduler: PollScheduler


def build_services(settings: Settings, repository: Optional[Repository] = None) -> Services:
    repository = repository or SupabaseRepository.from_settings(settings)
    content_fetcher = TranscriptFetcher(timeout=settings.fetch_timeout)
    notifier = TelegramNotifier(api_base=settings.telegram.api_base, timeout=settings.telegram.timeout)

    ingestion = IngestionService(
        repository=repository,
        router=SourceRouter.from_settings(settings),
        content_fetcher=content_fetcher,
        notifier=notifier,
        poll_limit=settings.poll_limit,
        backfill_limit=settings.backfill_limit,
        fetch_timeout=settings.fetch_timeout,
        max_concurrent_channels=settings.polling.max_concurrent_channels,
    )
    replies = ReplyService(
        repository=repository,
        notifier=notifier,
        llm_client=GeminiClient(settings),
        content_fetcher=content_fetcher,
        bot_token=settings.telegram_bot_token,
    )
    scheduler = PollScheduler(
        ingestion,
        interval_seconds=settings.poll_interval_seconds,
        startup_delay_seconds=settings.scheduler.startup_delay_seconds,
        skip_if_running=settings.scheduler.skip_if_running,
    )
    return Services(
        settings=settings,
        repository=repository,
        ingestion=ingestion,
        replies=replies,
        scheduler=scheduler,
    )
