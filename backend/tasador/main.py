from __future__ import annotations

import logging
from collections.abc import AsyncGenerator  # noqa: TC003
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tasador.config import settings
from tasador.logging_config import setup_logging
from tasador.routers import health, valuation

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info(
        "%s ready (provider=%s, prefix=%s)",
        settings.app_name,
        settings.llm_provider,
        settings.api_prefix,
    )
    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(valuation.router, prefix=settings.api_prefix, tags=["valuation"])
