"""
FastAPI app factory exposing the todo service as a JSON/HTTP gateway.
Run with `python -m todo_backend serve` or `uvicorn todo_backend.api:create_app --factory`.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import Settings, load_settings
from .db import Database
from .errors import InvalidArgumentError, TodoServiceError
from .logs import setup_logger
from .middleware import RequestLoggingMiddleware
from .routes import base as base_routes
from .routes import todo as todo_routes
from .services.todo_svc import TodoService


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "invalid request -> " + "; ".join(parts)


def register_error_handlers(app: FastAPI, logger: logging.Logger):
    @app.exception_handler(TodoServiceError)
    async def service_error(request: Request, exc: TodoServiceError):
        if exc.kind.http_status >= 500:
            logger.error("service error", extra={"kind": exc.kind.label, "error": exc.message})
        return JSONResponse(status_code=exc.kind.http_status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        err = InvalidArgumentError(_describe_validation(exc))
        return JSONResponse(status_code=err.kind.http_status, content=err.to_dict())


def create_app(settings: Settings | None = None, logger: logging.Logger | None = None) -> FastAPI:
    settings = settings or load_settings()
    logger = logger or setup_logger(settings.log_level, settings.log_time_format)
    db = Database.from_settings(settings)
    service = TodoService(db, logger)

    app = FastAPI(title=base_routes.APP_NAME, version=base_routes.APP_VERSION)
    app.state.settings = settings
    app.state.logger = logger
    app.state.todo_service = service

    app.add_middleware(RequestLoggingMiddleware, logger=logger)
    register_error_handlers(app, logger)

    @app.on_event("startup")
    def on_startup():
        service.ensure_schema()
        logger.info("todo service ready", extra={"db-path": settings.db_path})

    @app.on_event("shutdown")
    def on_shutdown():
        db.dispose()

    app.include_router(base_routes.router)
    app.include_router(todo_routes.router)
    return app
