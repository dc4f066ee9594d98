"""FastAPI application -- chartlint entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

import chartlint.deps as deps
from chartlint.api.lint import router as lint_router
from chartlint.config import dev_mode, load_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: load settings on startup, drop them on shutdown."""
    log_level = logging.DEBUG if dev_mode() else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    deps._settings = load_settings()
    logger.info("chartlint starting with settings: %s", deps._settings.model_dump())

    yield

    deps._settings = None


app = FastAPI(
    title="chartlint",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(lint_router)
