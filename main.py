"""
OTP auth service — application entry point.

Run with ``python main.py`` or ``uvicorn main:create_app --factory``; the app
(and its database engine and Redis client) is only built when asked for.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_error_handlers, register_middleware
from auth.routes import router as auth_router
from config.settings import config
from core.context import AuthContext, build_context

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("sqlalchemy.engine", "asyncio", "redis"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(context: Optional[AuthContext] = None) -> FastAPI:
    """Build the app around *context*, or one wired from the global settings."""
    ctx = context if context is not None else build_context(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application ready to accept requests.")
        yield
        await ctx.aclose()
        logger.info("Auth context closed.")

    app = FastAPI(
        title="OTP Auth Service",
        version="1.0.0",
        description="Email OTP registration, Argon2id passwords and JWT sessions.",
        lifespan=lifespan,
    )
    app.state.auth = ctx

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ctx.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_error_handlers(app)

    # Routes
    app.include_router(auth_router, prefix="/auth")

    return app


if __name__ == "__main__":
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
