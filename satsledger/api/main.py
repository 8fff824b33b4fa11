"""
FastAPI application factory.

Run with: uvicorn satsledger.api.main:create_app --factory
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from satsledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from satsledger.api.v1 import deductions, payments, prices
from satsledger.infrastructure.database.models import Base
from satsledger.infrastructure.database.session import engine
from satsledger.infrastructure.observability.logging import setup_logging
from satsledger.config import settings

setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Launch-time run, like opening the app
    if settings.run_deductions_on_startup:
        await deductions.run_launch_deductions()
    yield


def create_app(create_tables: bool = True) -> FastAPI:
    """Create and configure FastAPI application"""
    if create_tables:
        Base.metadata.create_all(bind=engine)

    app = FastAPI(
        title="satsledger",
        description="Card billing cycles and monthly auto-deductions",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name, "unlocked": bool(settings.encryption_key)}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(deductions.router, prefix="/v1", tags=["deductions"])
    app.include_router(prices.router, prefix="/v1", tags=["prices"])

    return app
