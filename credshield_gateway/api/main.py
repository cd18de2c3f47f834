"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from credshield_gateway.api.errors import register_exception_handlers
from credshield_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from credshield_gateway.api.v1 import bnpl, collateral, credit, loans, pool
from credshield_gateway.infrastructure.database.session import init_db
from credshield_gateway.infrastructure.observability.logging import setup_logging
from credshield_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.database_auto_create:
        init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="CredShield Gateway",
        description="On-chain credit scoring and collateralized installment lending",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(credit.router, prefix="/v1", tags=["credit"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])
    app.include_router(collateral.router, prefix="/v1", tags=["collateral"])
    app.include_router(pool.router, prefix="/v1", tags=["pool"])
    app.include_router(bnpl.router, prefix="/v1", tags=["bnpl"])

    return app


app = create_app()
