"""
FastAPI application entry point for the backend.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from tactoe_api.config import MAJOR_VERSION, MINOR_VERSION, Settings, get_settings
from tactoe_api.demo_routes import router as demo_router
from tactoe_api.errors import ApiError
from tactoe_api.routes import router
from tactoe_api.services import Services

logger = logging.getLogger(__name__)


def _build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned: Services | None = None
        if getattr(app.state, "services", None) is None:
            owned = Services.from_settings(settings)
            # A failed ping aborts startup; no traffic is accepted before it.
            try:
                await run_in_threadpool(owned.connect)
            except Exception:
                await run_in_threadpool(owned.close)
                raise
            app.state.services = owned
        try:
            yield
        finally:
            if owned is not None:
                app.state.services = None
                await run_in_threadpool(owned.close)
                logger.info("Database connection closed")

    return lifespan


async def _api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    # A known path with the wrong method counts as unmatched.
    if exc.status_code in (404, 405):
        return PlainTextResponse("404 - Not Found", status_code=404)
    return await http_exception_handler(request, exc)


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return PlainTextResponse("500 - Server Error", status_code=500)


def create_app(
    settings: Settings | None = None, services: Services | None = None
) -> FastAPI:
    """
    Build the app. Passing ``services`` skips the startup connection and
    uses them as-is (the caller owns their lifecycle).
    """
    settings = settings or get_settings()
    app = FastAPI(
        title="Tic-Tac-Toe Backend",
        version=f"{MAJOR_VERSION}.{MINOR_VERSION}",
        lifespan=_build_lifespan(settings),
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        allow_credentials=True,
    )
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(demo_router)

    if os.path.isdir(settings.static_dir):
        app.mount(
            "/", StaticFiles(directory=settings.static_dir, html=True), name="static"
        )
    return app


app = create_app()
