"""FastAPI application entry point."""

from __future__ import annotations

import datetime
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import settings
from src.dependencies import ServiceContainer, get_services
from src.logging_config import configure_logging
from src.models.schemas import HealthResponse
from src.routers.chat import router as chat_router
from src.services.vector_store import CollectionSchemaError, StoreWriteError

configure_logging(settings.debug)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    services = ServiceContainer.from_settings(settings)
    # Fail fast when the collection's vector size disagrees with the embedder
    try:
        await services.store.ensure_collection(
            settings.qdrant_collection,
            settings.embedding_dimensions,
            settings.qdrant_distance,
        )
    except CollectionSchemaError:
        await services.aclose()
        raise
    except StoreWriteError as e:
        logger.warning("Vector store unavailable at startup: %s", e.message)
    app.state.services = services
    yield
    await services.aclose()


app = FastAPI(
    title="News RAG Chat",
    description="Retrieval-augmented chat over recent news articles",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_credentials=True,
    allow_headers=["*"],
)

app.include_router(chat_router)


@app.get("/health", response_model=HealthResponse)
async def health_check(
    services: ServiceContainer = Depends(get_services),
) -> HealthResponse:
    """Health check endpoint."""
    connected = await services.store.health()
    return HealthResponse(
        status="ok",
        timestamp=datetime.datetime.now(datetime.UTC),
        vector_store="connected" if connected else "disconnected",
    )
