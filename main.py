"""
Task API — application entry point.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_exception_handlers
from api.middleware import register_middleware
from auth.jwt import get_token_signer
from auth.routes import router as auth_router
from auth.service import warm_dummy_hash
from config.settings import config
from database.session import create_tables
from tasks.routes import router as tasks_router

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("sqlalchemy.engine", "asyncio"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fails fast with MissingSigningSecret when JWT_SECRET is unset.
    get_token_signer()
    await warm_dummy_hash()
    await create_tables()
    logger.info("Application ready to accept requests.")
    yield


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Task API",
        version="1.0.0",
        description="Owner-scoped task management.",
        lifespan=lifespan if use_lifespan else None,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(auth_router, prefix="/api/v1/auth")
    app.include_router(tasks_router, prefix="/api/v1/tasks")

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
