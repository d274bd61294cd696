"""CLI entry point for feed monitor."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from feed_monitor.bootstrap import build_services
from feed_monitor.config import Settings, get_settings

app = typer.Typer(help="Poll feeds and send Telegram alerts for new items.")


def _setup(config: Path, debug: bool) -> Settings:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    return get_settings(config)


def _print_header(title: str, settings: Settings) -> None:
    print("\n" + "=" * 70)
    print(f"📡  FEED MONITOR - {title}")
    print("=" * 70)

    print("\n🔑 Credentials:")
    print(f"  {'✓' if settings.supabase_url and settings.supabase_key else '✗'} SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY")
    print(f"  {'✓' if settings.telegram_bot_token else '⚠️ '} TELEGRAM_BOT_TOKEN (needed for /start and replies)")
    print(f"  {'✓' if settings.gemini_api_key else '⚠️ '} GEMINI_API_KEY (fallback when an account has no key)")


@app.command()
def poll(
    config: Path = typer.Option(Path("config.yaml"), help="YAML config file"),
    debug: bool = False,
) -> None:
    """Run a single poll cycle over all channels."""
    settings = _setup(config, debug)
    _print_header("POLL", settings)
    print(f"\n⚙️  Window: {settings.poll_limit} items per channel, timeout {settings.fetch_timeout:.0f}s")

    services = build_services(settings)
    print("\n📡 Sources:")
    for source in services.ingestion.router.sources:
        print(f"  {source.emoji} {source.name}")

    report = asyncio.run(services.ingestion.run_poll_cycle())

    print("\n" + "=" * 70)
    print("✅ DONE")
    print("=" * 70)
    print(f"  • Channels checked: {report.channels_checked}")
    print(f"  • Channels failed: {report.channels_failed}")
    print(f"  • New items: {report.new_items}")
    print(f"  • Notified: {report.notified}")
    for error in report.errors:
        print(f"  ⚠️  {error}")
    print()


@app.command()
def backfill(
    channel_id: Optional[str] = typer.Option(None, help="Backfill an existing channel"),
    owner_id: Optional[str] = typer.Option(None, help="Account that will own a new channel"),
    url: Optional[str] = typer.Option(None, help="Channel/subreddit/feed URL to register"),
    config: Path = typer.Option(Path("config.yaml"), help="YAML config file"),
    debug: bool = False,
) -> None:
    """Register a channel (or reuse one) and store its recent items without notifying."""
    settings = _setup(config, debug)
    services = build_services(settings)

    async def run() -> None:
        if channel_id:
            channel = await services.repository.get_channel(channel_id)
            if channel is None:
                raise typer.BadParameter(f"Channel {channel_id} not found")
            inserted = await services.ingestion.run_backfill(channel)
            print(f"✓ Backfilled {inserted} items for {channel.name}")
        elif owner_id and url:
            channel = await services.ingestion.register_channel(owner_id, url)
            print(f"✓ Registered {channel.name} ({channel.feed_url})")
        else:
            raise typer.BadParameter("Pass --channel-id, or both --owner-id and --url")

    asyncio.run(run())


@app.command("test-notification")
def test_notification(
    owner_id: str,
    config: Path = typer.Option(Path("config.yaml"), help="YAML config file"),
) -> None:
    """Send a test alert through an account's Telegram settings."""
    settings = _setup(config, False)
    services = build_services(settings)
    result = asyncio.run(services.ingestion.send_test_notification(owner_id))
    if result.success:
        print("✓ Test notification sent")
    else:
        print(f"⚠️  Failed: {result.error}")
        raise typer.Exit(code=1)


@app.command()
def serve(
    config: Path = typer.Option(Path("config.yaml"), help="YAML config file"),
    host: Optional[str] = None,
    port: Optional[int] = None,
    no_scheduler: bool = typer.Option(False, "--no-scheduler", help="Only serve the webhook and triggers"),
    debug: bool = False,
) -> None:
    """Serve the Telegram webhook and run the periodic scheduler."""
    import uvicorn

    from feed_monitor.server import create_app

    settings = _setup(config, debug)
    _print_header("SERVER", settings)
    services = build_services(settings)
    run_scheduler = settings.server.run_scheduler and not no_scheduler
    print(f"\n⏱️  Poll interval: {settings.scheduler.interval_minutes:.0f} min ({'on' if run_scheduler else 'off'})\n")

    uvicorn.run(
        create_app(services, run_scheduler=run_scheduler),
        host=host or settings.server.host,
        port=port or settings.server.port,
    )


if __name__ == "__main__":
    app()
