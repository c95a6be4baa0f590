"""
Global middleware.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)


def register_middleware(app: FastAPI) -> None:
    """Attach any app-level middleware."""

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        # set by the auth guard on protected routes; never the token itself
        principal = getattr(request.state, "principal", None)
        logger.debug(
            "%s %s %d principal=%s — %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            principal.principal_id if principal else "-",
            elapsed,
        )
        return response
