from __future__ import annotations  # FastAPI server exposing interview session operations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import integration_router, router
from config.settings import settings
from storage.migrate import migrate

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:  # Ensure the schema exists before serving
    migrate(settings.DB_PATH)
    logger.info("database ready at %s", settings.DB_PATH)
    yield


app = FastAPI(title="Interview Session API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CLIENT_ORIGIN],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)
app.include_router(integration_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
