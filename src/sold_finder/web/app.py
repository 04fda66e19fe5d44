"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from sold_finder.config import Settings
from sold_finder.logging import configure_logging, get_logger
from sold_finder.pipeline import PropertySearch

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Application settings. Loaded from env if not provided.
    """
    if settings is None:
        settings = Settings()

    configure_logging(json_output=settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # One connection pool for the process; no fetched data lives here.
        # Each fetch passes its own per-request timeout.
        async with httpx.AsyncClient(timeout=None) as client:
            app.state.settings = settings
            app.state.search = PropertySearch.from_settings(settings, client=client)
            logger.info(
                "web_server_started",
                epc_enabled=settings.has_epc_credentials,
                port=settings.web_port,
            )
            yield
        logger.info("web_server_stopped")

    app = FastAPI(title="Sold Finder", lifespan=lifespan)

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    from sold_finder.web.routes import router

    app.include_router(router)

    return app
