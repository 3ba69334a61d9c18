"""
FastAPI application for the Upokari result service.

Provides the REST endpoints defined in :mod:`upokari.portal.routes` and
maps every error to a ``{"message": ...}`` JSON body:
  - HTTP errors raised by routes keep their status code
  - request validation failures become 400
  - anything unexpected becomes a logged 500
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from upokari.config import Config, get_config
from upokari.database.db_manager import DatabaseManager
from upokari.portal.routes import router
from upokari.utils.logger import get_logger

log = get_logger(__name__)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())[1:])
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"message": "; ".join(problems) or "Invalid request"})


async def _server_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Server Error"})


def create_app(config: Optional[Config] = None, db: Optional[DatabaseManager] = None) -> FastAPI:
    """Factory function to create and configure the FastAPI app.

    Args:
        config: Optional Config instance. If None, uses singleton.
        db: Optional DatabaseManager. If None, one is built from ``config.DATABASE_URL``.

    Returns:
        Configured FastAPI app instance.
    """
    config = config or get_config()
    db = db or DatabaseManager(config.DATABASE_URL)
    db.init_db()

    app = FastAPI(title="Upokari Result API", version="1.0.0")
    app.state.config = config
    app.state.db = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _server_error)
    app.include_router(router)
    return app


def launch_portal(config: Optional[Config] = None) -> None:
    """Launch the FastAPI portal using uvicorn."""
    import uvicorn

    config = config or get_config()
    log.info("Starting web portal on %s:%d", config.PORTAL_HOST, config.PORTAL_PORT)
    uvicorn.run(
        create_app(config),
        host=config.PORTAL_HOST,
        port=config.PORTAL_PORT,
        log_level=config.LOG_LEVEL.lower(),
    )
