"""FastAPI application for the khilonjiya marketplace backend."""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .api.deps import limiter
from .api.routes import auth_router, router
from .core.config import Settings, get_settings
from .core.exceptions import (
    ConfigurationError,
    InitializationError,
    NotInitializedError,
    SupabaseServiceError,
)
from .core.logging import log_error, log_request, log_response, logger, setup_logging
from .db.client import SupabaseService

_UNAVAILABLE_ERRORS = (ConfigurationError, InitializationError, NotInitializedError)


def create_app(
    service: SupabaseService | None = None, settings: Settings | None = None
) -> FastAPI:
    """Build the app. The lifespan owns the SupabaseService for the process."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting khilonjiya API...")
        supabase = service or SupabaseService(settings)
        app.state.supabase = supabase
        try:
            await supabase.initialize()
        except SupabaseServiceError as e:
            # Keep serving; /health reports the failure
            log_error("Supabase unavailable at startup", reason=e.message)
        yield
        logger.info("Shutting down...")
        await supabase.dispose()

    app = FastAPI(
        title="khilonjiya.com API",
        description="Backend bootstrap and auth for the khilonjiya.com marketplace",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(SupabaseServiceError)
    async def supabase_error_handler(request: Request, exc: SupabaseServiceError):
        if isinstance(exc, _UNAVAILABLE_ERRORS):
            log_error("Backend unavailable", path=request.url.path, reason=exc.message)
            return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable"})
        log_error("Backend error", exc, path=request.url.path)
        return JSONResponse(status_code=502, content={"detail": exc.message})

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        log_request(request.method, request.url.path)

        response = await call_next(request)

        duration_ms = (time.time() - start) * 1000
        log_response(request.method, request.url.path, response.status_code, duration_ms)
        return response

    app.include_router(router)
    app.include_router(auth_router, prefix="/api")
    return app


app = create_app()
