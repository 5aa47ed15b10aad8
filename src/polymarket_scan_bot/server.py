from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .service import ScanOrchestrator

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "Polymarket Alert Bot is running."


async def _interval_loop(orchestrator: ScanOrchestrator, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await orchestrator.run_scan()
        except Exception as exc:
            logger.exception("Scheduled scan failed: %s", exc)
        orchestrator.log_health()


def create_app(
    orchestrator: ScanOrchestrator,
    settings: Settings,
    scan_on_startup: bool = True,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        tasks: list[asyncio.Task] = []
        if scan_on_startup:
            tasks.append(asyncio.create_task(orchestrator.run_scan()))
        if settings.scan_interval_seconds > 0:
            tasks.append(
                asyncio.create_task(_interval_loop(orchestrator, settings.scan_interval_seconds))
            )
        logger.info("scan bot started (interval=%ds)", settings.scan_interval_seconds)
        try:
            yield
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await orchestrator.close()
            logger.info("scan bot stopped")

    app = FastAPI(title="Polymarket Scan Bot", lifespan=lifespan)

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and wrong methods both read as "not found".
        if exc.status_code in (404, 405):
            return JSONResponse({"error": "Not Found"}, status_code=404)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.get("/", response_class=PlainTextResponse)
    async def liveness() -> str:
        return LIVENESS_TEXT

    @app.post("/post-on-ping")
    async def run_scan_now() -> dict:
        result = await orchestrator.run_scan()
        return {
            "status": "scan complete",
            "alerts_sent": result.alerts_sent,
            "alerts_failed": result.alerts_failed,
        }

    return app
