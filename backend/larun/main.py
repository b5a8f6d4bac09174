"""
LARUN.SPACE - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import activity_router, chat_router, conversations_router, data_router
from .config import Settings, settings
from .core.cache import TTLCache
from .core.errors import LarunError
from .core.gateway import CompletionGateway
from .core.logging_config import setup_logging
from .core.session import SessionRegistry
from .llm.factory import create_llm_provider
from .middleware import RequestLoggingMiddleware
from .storage import ActivityLog, LocalStorage
from .tools.mast_client import MASTClient
from .utils.auth import ANONYMOUS_ID_HEADER

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)

# Added by hand where a response bypasses CORSMiddleware (unhandled errors)
CORS_FALLBACK_HEADERS = {"Access-Control-Allow-Origin": "*"}


def _error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def create_app(config: Settings = settings) -> FastAPI:
    """Build the application for the given settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(config)

        storage = LocalStorage(config.local_storage_path)
        provider = create_llm_provider(
            provider=config.llm_provider,
            api_key=config.resolve_llm_api_key(),
            model=config.llm_model,
            base_url=config.llm_base_url,
            timeout=config.llm_timeout_seconds,
        )
        gateway = CompletionGateway(
            provider,
            timeout=config.llm_timeout_seconds,
            context_messages=config.llm_context_messages,
        )
        activity = ActivityLog(storage)
        cache = TTLCache(ttl=config.data_cache_ttl_seconds, max_entries=config.data_cache_max_entries)

        app.state.gateway = gateway
        app.state.activity = activity
        app.state.sessions = SessionRegistry(
            storage, gateway, activity, conversations_filename=config.conversations_filename
        )
        app.state.mast = MASTClient(
            cache,
            base_url=config.mast_base_url,
            archive_url=config.exoplanet_archive_url,
            timeout=config.mast_timeout_seconds,
        )

        logger.info(f"Starting {config.app_name} v{config.app_version}")
        logger.info(f"Storage path: {config.local_storage_path}")
        if provider is None:
            logger.warning("No LLM API key configured, chat will use built-in responses")
        else:
            logger.info(f"LLM provider: {provider.name} ({provider.model})")
        yield
        app.state.sessions.close_all()
        cache.clear()
        logger.info(f"Shutting down {config.app_name}")

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="Exoplanet analysis chat backend",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials="*" not in config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Response-Source", ANONYMOUS_ID_HEADER],
    )
    if config.log_api_requests:
        app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(LarunError)
    async def larun_error_handler(request: Request, exc: LarunError):
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'invalid request')}" if location else "Invalid request"
        return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Internal server error",
            headers=CORS_FALLBACK_HEADERS,
        )

    app.include_router(chat_router)
    app.include_router(conversations_router)
    app.include_router(data_router)
    app.include_router(activity_router)

    @app.options("/{path:path}", include_in_schema=False)
    async def preflight(path: str):
        """Bare OPTIONS requests (without CORS preflight headers) still get 200."""
        return PlainTextResponse("ok")

    @app.get("/")
    async def root():
        return {
            "app": config.app_name,
            "version": config.app_version,
            "status": "running",
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "llm": "remote" if app.state.gateway.has_remote else "fallback",
            "version": config.app_version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "larun.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
