import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .routers import conversions, rates
from .services.rates.base import RateProvider
from .services.rates.cache_service import CachedRateProvider
from .services.rates.errors import RateResolutionError
from .services.rates.providers import make_rate_provider


def build_rate_provider(settings: Settings) -> RateProvider:
    provider = make_rate_provider(settings)
    if settings.rates_cache_ttl_seconds > 0:
        provider = CachedRateProvider(provider, settings.rates_cache_ttl_seconds)
    return provider


def create_app(settings_override: Settings | None = None) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., static provider). Falls back to cached get_settings().
    """
    settings = settings_override or get_settings()
    if settings_override is not None:
        settings.init_post_load()
    # Initialize logging early
    init_logging(debug=settings.debug)

    provider = build_rate_provider(settings)
    if not provider.configured:
        logging.getLogger("expense_fx").warning(
            "currency API key not configured; rates must be entered manually"
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await provider.aclose()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_provider = provider

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(RateResolutionError, errors.rate_resolution_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(rates.router)
    app.include_router(conversions.router)

    @app.get("/")
    async def root():
        return {"message": "Expense FX API", "version": settings.version}

    return app


app = create_app()
