"""
Health endpoint.

Returns uptime, version, bot status and the number of in-flight relay
jobs. Lightweight and requires no authentication.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

# Start time for uptime calculation
_start_time: float = time.monotonic()


def set_start_time() -> None:
    """Reset the start time (called during app startup)."""
    global _start_time
    _start_time = time.monotonic()


def get_uptime_seconds() -> float:
    """Return seconds since the process started."""
    return time.monotonic() - _start_time


def _get_version() -> str:
    """Get the application version string."""
    try:
        from ..version import __version__

        return __version__
    except Exception:
        return "unknown"


def build_health(state: Any) -> Dict[str, Any]:
    """Build the health payload from the application state.

    ``state`` is ``app.state``; the bot and job runner are absent when
    the lifespan could not create them.
    """
    telegram_bot = getattr(state, "telegram_bot", None)
    job_runner = getattr(state, "job_runner", None)
    bot_initialized = bool(telegram_bot and telegram_bot.initialized)

    return {
        "status": "ok" if bot_initialized and job_runner else "degraded",
        "service": "media-relay",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": _get_version(),
        "uptime_seconds": round(get_uptime_seconds(), 2),
        "bot_initialized": bot_initialized,
        "active_jobs": job_runner.active_jobs if job_runner else 0,
    }


def create_health_router() -> APIRouter:
    """Create and return the health check router."""
    router = APIRouter()

    @router.get("/health")
    async def health_endpoint(request: Request) -> Dict[str, Any]:
        """Health check endpoint (no auth required)."""
        return build_health(request.app.state)

    return router
