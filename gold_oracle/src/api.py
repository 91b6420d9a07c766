"""HTTP API for the gold price oracle.

Routes:
    GET  /health          service status and configuration summary
    GET  /prices          prices currently stored on-chain
    POST /update-prices   run one update cycle (requires X-API-Key)
    GET  /api/gold-price  live quote from the feed, without touching the ledger

Every response uses the envelope ``{"success": bool, "data" | "error", "message"?}``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from .errors import OracleError

if TYPE_CHECKING:
    from .GoldOracle import GoldOracle

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def error_response(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    """Build an error envelope.

    :param status_code: HTTP status code.
    :param error: Short error description.
    :param message: Optional detail (e.g., the exception message).
    :returns: JSONResponse with ``success: false``.
    """
    content: dict[str, Any] = {"success": False, "error": error}
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """Log exceptions from background tasks nobody awaited, without exiting."""
    exc = context.get("exception")
    logger.error(f"Unhandled background error: {context.get('message')}", exc_info=exc)


def log_task_exit(task: asyncio.Task) -> None:
    """Log the end of the periodic update task if it died with an error."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Periodic updater stopped with an error", exc_info=exc)


def create_app(oracle: GoldOracle, run_scheduler: bool = True) -> FastAPI:
    """Create the FastAPI application bound to an oracle instance.

    :param oracle: Service context used by the routes.
    :param run_scheduler: Start the periodic updater with the app (default: True).
    :returns: Configured FastAPI app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        asyncio.get_running_loop().set_exception_handler(log_loop_exception)

        updater: asyncio.Task | None = None
        if run_scheduler:
            updater = asyncio.create_task(oracle.run(), name="gold-oracle-updater")
            updater.add_done_callback(log_task_exit)
        try:
            yield
        finally:
            if updater is not None:
                updater.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await updater
            await oracle.close()

    app = FastAPI(title="Gold Oracle API", version=API_VERSION, lifespan=lifespan)

    async def verify_api_key(x_api_key: str | None = Header(default=None)) -> None:
        expected = oracle.settings.api_key
        if not expected or x_api_key is None or not secrets.compare_digest(
            x_api_key, expected
        ):
            logger.warning("Rejected request with invalid or missing API key")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized - Invalid or missing API key",
            )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail))

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "success": True,
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "config": {
                "updateIntervalMinutes": oracle.settings.update_interval_minutes,
                "contractAddress": oracle.settings.contract_address,
            },
        }

    @app.get("/prices")
    async def get_prices():
        try:
            record = await oracle.read_record()
            stale = await oracle.is_stale()
        except OracleError as e:
            logger.error(f"Failed to get prices: {e}")
            return error_response(500, "Failed to fetch prices from contract", str(e))
        except Exception as e:
            logger.exception("Unexpected error while reading prices")
            return error_response(500, "Failed to fetch prices from contract", str(e))

        raw = {key: str(value) for key, value in record.prices.to_dict().items()}
        human = record.prices.human_readable()
        human["lastUpdated"] = record.last_updated_iso()
        return {
            "success": True,
            "data": {**raw, "lastUpdated": str(record.last_updated_at), "isStale": stale},
            "humanReadable": human,
        }

    @app.post("/update-prices", dependencies=[Depends(verify_api_key)])
    async def update_prices():
        logger.info("Manual price update triggered")
        try:
            result = await oracle.run_cycle()
        except OracleError as e:
            logger.error(f"Manual price update failed: {e}")
            return error_response(500, "Failed to update prices", str(e))
        except Exception as e:
            logger.exception("Manual price update failed unexpectedly")
            return error_response(500, "Failed to update prices", str(e))
        return {"success": True, "data": result.to_dict()}

    @app.get("/api/gold-price")
    async def gold_price():
        try:
            prices = await oracle.fetch_prices()
        except OracleError as e:
            logger.error(f"Failed to fetch gold price from API: {e}")
            return error_response(500, "Failed to fetch gold price", str(e))
        except Exception as e:
            logger.exception("Unexpected error while fetching gold price")
            return error_response(500, "Failed to fetch gold price", str(e))
        return {
            "success": True,
            "data": prices.to_dict(),
            "humanReadable": prices.human_readable(),
        }

    return app
