"""
FastAPI application entry point for DispatchFlow.

Order fulfilment workflow tracking and vehicle dispatch API.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dispatchflow.core.config import settings
from dispatchflow.core.exceptions import DispatchError
from dispatchflow.api.v1 import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    # Note: schema is managed by Alembic migrations
    logging.basicConfig(level=settings.log_level)
    yield
    # Shutdown
    pass


async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    """Translate domain errors into HTTP responses with a machine-readable reason."""
    logger.info(f"{request.method} {request.url.path} rejected: {exc.reason}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.to_detail()},
    )


def create_application() -> FastAPI:
    """Create and configure FastAPI application."""

    app = FastAPI(
        title=settings.app_name,
        description="""
        ## DispatchFlow

        Order fulfilment workflow tracking and vehicle dispatch:

        - **Workflow Tracking**: Seven-stage record per order (pending, packed,
          storage, assigned, loaded, in_transit, delivered)
        - **Reconciliation**: Idempotent repair of tracking records from the
          authoritative order status
        - **Dispatch**: Vehicle suggestion and vehicle/driver assignment under
          volume, weight, package and driver-load limits

        ### Error Responses

        Domain errors return `{"detail": {"reason": ..., "message": ...}}`:

        | Status | Reasons |
        |--------|---------|
        | 404 | order not found, vehicle not found, driver not found |
        | 409 | capacity exceeded, driver at capacity |
        | 400 | invalid stage transition |
        """,
        version=settings.app_version,
        openapi_url=f"{settings.api_v1_prefix}/openapi.json",
        docs_url=f"{settings.api_v1_prefix}/docs",
        redoc_url=f"{settings.api_v1_prefix}/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure properly in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DispatchError, dispatch_error_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


# Create application instance
app = create_application()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": f"{settings.api_v1_prefix}/docs",
        "openapi": f"{settings.api_v1_prefix}/openapi.json",
    }
