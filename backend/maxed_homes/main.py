"""Maxed Homes booking backend — FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from maxed_homes.api.v1.bookings import router as bookings_router
from maxed_homes.api.v1.internal import router as internal_router
from maxed_homes.api.v1.payment_config import router as payment_config_router
from maxed_homes.bookings.config import EngineConfig
from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.bookings.exceptions import (
    BookingError,
    CapacityExceeded,
    InvalidInput,
    InvalidTransition,
    NotFound,
    Unavailable,
)
from maxed_homes.config import settings

# Configure root logger so all maxed_homes.* loggers output to stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

# ConcurrentModification is an InvalidTransition, so it maps to 409 as well.
ERROR_STATUS_CODES: dict[type[BookingError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidInput: status.HTTP_422_UNPROCESSABLE_ENTITY,
    CapacityExceeded: status.HTTP_422_UNPROCESSABLE_ENTITY,
    Unavailable: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
}


def status_code_for(exc: BookingError) -> int:
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    yield
    # Shutdown: dispose engine connections
    from maxed_homes.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Booking lifecycle and payment confirmation for the Maxed Homes rental marketplace.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.booking_engine = BookingEngine(EngineConfig.from_settings(settings))

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(bookings_router)
app.include_router(internal_router)
app.include_router(payment_config_router)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Serialise domain errors as ``{"code", "message", ...}`` with a matching status."""
    status_code = status_code_for(exc)
    logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, exc.code)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
