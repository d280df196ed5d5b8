from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.fetcher import build_default_fetcher
from services.history import build_default_service


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    fetcher = build_default_fetcher()
    try:
        yield
    finally:
        await fetcher.aclose()
        build_default_fetcher.cache_clear()
        build_default_service.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Weather History",
        description="Validated, aligned historical sensor channels with CSV export.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
