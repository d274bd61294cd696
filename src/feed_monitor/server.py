"""HTTP host: Telegram webhook plus poll triggers."""

import contextlib
import logging
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from feed_monitor.bootstrap import Services

log = logging.getLogger(__name__)


class SummaryIn(BaseModel):
    summary: str


class TestNotificationIn(BaseModel):
    owner_id: str


def create_app(services: Services, run_scheduler: bool = True) -> FastAPI:
    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if run_scheduler:
            services.scheduler.start()
        yield
        await services.scheduler.stop()

    app = FastAPI(title="feed-monitor", lifespan=lifespan)

    async def run_cycle() -> Any:
        try:
            report = await services.scheduler.run_once()
        except Exception as e:
            log.error("Manual poll failed: %s", e)
            return JSONResponse({"error": str(e)}, status_code=500)
        if report is None:
            return {"success": True, "skipped": True}
        return {
            "success": True,
            "channels_checked": report.channels_checked,
            "channels_failed": report.channels_failed,
            "new_items": report.new_items,
            "notified": report.notified,
        }

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"ok": True, "polling": services.scheduler.is_running}

    @app.post("/api/telegram/webhook")
    async def telegram_webhook(request: Request) -> dict:
        # Telegram retries non-2xx deliveries, so this always answers 200.
        try:
            payload = await request.json()
        except Exception as e:
            log.warning("Ignoring undecodable webhook body: %s", e)
            return {"ok": True}
        try:
            await services.replies.handle_inbound_message(payload)
        except Exception:
            log.exception("Webhook handler failed")
        return {"ok": True}

    @app.post("/api/refresh")
    async def refresh() -> Any:
        return await run_cycle()

    @app.get("/api/cron")
    async def cron() -> Any:
        log.info("Cron trigger received")
        return await run_cycle()

    @app.post("/api/channels/{channel_id}/backfill")
    async def backfill(channel_id: str) -> dict:
        channel = await services.repository.get_channel(channel_id)
        if channel is None:
            raise HTTPException(status_code=404, detail="Channel not found")
        inserted = await services.ingestion.run_backfill(channel)
        return {"success": True, "inserted": inserted}

    @app.post("/api/items/{item_id}/summary")
    async def save_summary(item_id: str, body: SummaryIn) -> dict:
        if not body.summary:
            raise HTTPException(status_code=400, detail="Summary is required")
        try:
            result = await services.ingestion.save_summary(item_id, body.summary)
        except LookupError:
            raise HTTPException(status_code=404, detail="Item not found")
        return {"success": True, "notified": bool(result and result.success)}

    @app.post("/api/test-notification")
    async def test_notification(body: TestNotificationIn) -> Any:
        result = await services.ingestion.send_test_notification(body.owner_id)
        if result.success:
            return {"success": True}
        return JSONResponse({"error": result.error or "Failed to send notification"}, status_code=500)

    return app
