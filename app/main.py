"""
Standalone FastAPI app wiring for ContentCore.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import contentcore.config as config
from contentcore.db import DB, init_db
from contentcore.errors import ContainerNotFound, ContentValidationError, SaveAborted, ValidationIssue
from app.middleware import configure_middleware
from app.routes.content import router as content_router
from app.routes.health import router as health_router
from app.routes.root import router as root_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    init_db()
    try:
        yield
    finally:
        if DB.engine:
            DB.engine.dispose()


app = FastAPI(title="ContentCore", redirect_slashes=False, lifespan=lifespan)
configure_middleware(app)


def _error_payload(message: str, error_type: str, field: str | None = None, errors: dict | None = None) -> dict:
    payload = {
        "status": "error",
        "error_type": error_type,
        "message": message,
    }
    if field is not None:
        payload["field"] = field
    if errors:
        payload["errors"] = errors
    return payload


@app.exception_handler(ValidationIssue)
async def validation_issue_handler(request: Request, exc: ValidationIssue):
    errors = exc.errors if isinstance(exc, ContentValidationError) else None
    return JSONResponse(
        status_code=422,
        content=_error_payload(str(exc), "validation_error", exc.field, errors),
    )


@app.exception_handler(SaveAborted)
async def save_aborted_handler(request: Request, exc: SaveAborted):
    config.logger.info("content_save_aborted", extra={"reason": exc.reason})
    return JSONResponse(
        status_code=422,
        content=_error_payload(str(exc), "save_aborted", errors=exc.errors),
    )


@app.exception_handler(ContainerNotFound)
async def container_not_found_handler(request: Request, exc: ContainerNotFound):
    return JSONResponse(
        status_code=404,
        content=_error_payload(str(exc), "not_found", "container"),
    )


# Health and root endpoints
app.include_router(health_router)
app.include_router(root_router)

# Content envelope endpoints
app.include_router(content_router)
