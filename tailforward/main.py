"""FastAPI application entry point.

Start with:
    uvicorn tailforward.main:app --host 0.0.0.0 --port 33010

The app skeleton has:
- A lifespan that loads settings and secrets once and owns the shared
  httpx client used for Telegram
- Router includes for the webhook and the liveness probe
- A logged 404 fallback for unknown routes
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import httpx
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tailforward.config import get_settings, load_secrets
from tailforward.core.telegram_client import TelegramClient

assert sys.version_info >= (3, 12), "Tailforward requires Python 3.12+"

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Lifespan: startup / shutdown
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize and tear down shared resources."""
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.effective_log_level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # httpx logs each request URL at INFO; Telegram URLs carry the bot token.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)
    logger.info("Tailforward starting up")

    # Raises ConfigurationError and aborts startup if a secret is missing.
    secrets = load_secrets(settings)

    http_client = httpx.AsyncClient(timeout=settings.telegram_timeout_seconds)
    logger.info("Created HTTP client", extra={"timeout": settings.telegram_timeout_seconds})

    app.state.secrets = secrets
    app.state.telegram = TelegramClient(
        http_client,
        bot_token=secrets.bot_token,
        chat_id=settings.chat_id,
        api_base=settings.telegram_api_base,
    )

    try:
        yield
    finally:
        logger.info("Tailforward shutting down")
        await http_client.aclose()


# ---------------------------------------------------------------------------
#  FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Tailforward",
    description="Relays signed Tailscale webhooks to a Telegram chat",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


@app.exception_handler(StarletteHTTPException)
async def fallback(request: Request, exc: StarletteHTTPException):
    """Log unknown routes; pass every other HTTP error through unchanged."""
    if exc.status_code == 404:
        logger.warning(
            "Failed to serve",
            extra={"status": exc.status_code, "uri": str(request.url.path)},
        )
        return PlainTextResponse(f"No route {request.url.path}", status_code=404)

    return await http_exception_handler(request, exc)


# ---------------------------------------------------------------------------
#  Router Registration
# ---------------------------------------------------------------------------

from tailforward.api.webhooks import router as webhook_router  # noqa: E402
from tailforward.api.health import router as health_router  # noqa: E402

app.include_router(webhook_router)
app.include_router(health_router)
