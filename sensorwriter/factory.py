from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from sensorwriter.api.router import api_router
from sensorwriter.core.config import Settings, load_settings
from sensorwriter.core.logging import configure_logging
from sensorwriter.db.influx import create_influx_client
from sensorwriter.services.aggregates import KeyedLock


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.influx_client = create_influx_client(settings)
        yield
        app.state.influx_client.close()

    docs_enabled = settings.docs_enabled and not settings.is_production
    app = FastAPI(
        title="Sensor Reading Writer",
        version="0.1.0",
        debug=settings.debug,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.aggregate_locks = KeyedLock()

    @app.get("/", tags=["meta"])
    def root():
        return {"name": "sensor-writer", "status": "ok"}

    app.include_router(api_router)
    return app
