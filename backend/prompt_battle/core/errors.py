"""
Domain errors and their JSON rendering
"""

import logging
from typing import Any, Dict, Optional
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class BattleError(Exception):
    """Base error, carries the HTTP status it maps to"""
    status_code = 400

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_http(self) -> HTTPException:
        detail: Any = self.message
        if self.extra:
            detail = {"error": self.message, **self.extra}
        return HTTPException(status_code=self.status_code, detail=detail)


class BadRequestError(BattleError):
    status_code = 400


class ForbiddenError(BattleError):
    status_code = 403


class NotFoundError(BattleError):
    status_code = 404


class ConflictError(BattleError):
    status_code = 409


class ScoringError(BattleError):
    """The scoring model failed or answered with something unusable"""
    status_code = 500


def _error_body(detail: Any) -> Dict[str, Any]:
    if isinstance(detail, dict) and "error" in detail:
        return detail
    return {"error": detail}


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"⚠️ Invalid request body for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled error on {request.url.path}: {exc!r}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_error_handlers(app: FastAPI):
    """Render every error as an {"error": ...} body"""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
