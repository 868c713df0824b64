from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from datastore.history import build_default_history
from datastore.houses import build_default_house_store
from logging_config import configure_logging
from services.pipeline import build_default_pipeline
from services.thresholds import build_default_threshold_provider
from settings import get_settings
from storage.blob_store import build_default_store
from transport.mqtt import build_default_subscriber

logger = logging.getLogger(__name__)


def _clear_factories() -> None:
    for factory in (
        build_default_pipeline,
        build_default_threshold_provider,
        build_default_history,
        build_default_house_store,
        build_default_store,
    ):
        factory.cache_clear()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    pipeline = build_default_pipeline()
    subscriber = None
    if get_settings().mqtt_enabled:
        subscriber = build_default_subscriber(pipeline.handle)
        if not subscriber.connect():
            logger.error("Telemetry subscription unavailable, continuing without it")
    try:
        yield
    finally:
        if subscriber is not None:
            subscriber.disconnect()
        pipeline.store.close()
        _clear_factories()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="House Bin Monitor",
        description="Compost and trash bin status derived from MQTT telemetry.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
