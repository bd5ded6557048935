"""FastAPI exception handlers producing structured ErrorResponse bodies."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from docspace.errors.exceptions import AuthorizationError, DocspaceError
from docspace.models.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(request: Request, status_code: int, code: str, message: str, details=None) -> JSONResponse:
    trace_id = getattr(request.state, "trace_id", "trc_unknown")
    error_response = ErrorResponse(
        error=ErrorDetail(
            code=code,
            message=message,
            details=details,
            trace_id=trace_id,
        ),
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app."""

    @app.exception_handler(DocspaceError)
    async def docspace_error_handler(request: Request, exc: DocspaceError):
        if isinstance(exc, AuthorizationError):
            user = getattr(request.state, "user", {}) or {}
            logger.warning(
                "access_denied",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "user_sub": user.get("sub", "anonymous"),
                    "user_role": user.get("role"),
                    "reason": str(exc),
                },
            )
        elif exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error_response(request, exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error_response(
            request,
            400,
            "VALIDATION_ERROR",
            "Request validation failed",
            details=[{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()],
        )

