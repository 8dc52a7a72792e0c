"""
MedStock error types and their HTTP rendering.

Every failure the function endpoints surface, malformed request bodies
included, renders as ``{"error": message}``. Only authentication failures
get a non-500 status.
"""

import structlog
from fastapi import Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger()

# Routes whose request-validation failures use the error envelope.
ENVELOPE_ROUTE_PREFIXES = ("/api/v1/functions",)


class MedStockError(Exception):
    """Base class for errors rendered as an ``{"error": ...}`` envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Unknown error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(MedStockError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NoActiveModel(MedStockError):
    default_message = "No active model found"


class NoItemsFound(MedStockError):
    default_message = "No items found"


class InvalidOptimizationInput(MedStockError):
    """Item fields that would divide by zero in the cost formulas."""

    default_message = "Invalid optimization input"


class StorePersistenceFailure(MedStockError):
    default_message = "Failed to persist results"


def error_response(exc: Exception) -> JSONResponse:
    """Render any exception as the uniform error envelope."""
    if isinstance(exc, MedStockError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
    message = str(exc) or "Unknown error occurred"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": message})


async def medstock_exception_handler(request: Request, exc: MedStockError) -> JSONResponse:
    logger.warning(
        "request.failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return error_response(exc)


def validation_message(exc: RequestValidationError) -> str:
    """First validation error as ``field.path: message``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first['msg']}" if location else first["msg"]


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Function routes answer malformed bodies with a 500 envelope; other routes keep FastAPI's 422."""
    if not request.url.path.startswith(ENVELOPE_ROUTE_PREFIXES):
        return await request_validation_exception_handler(request, exc)

    message = validation_message(exc)
    logger.warning("request.invalid", path=request.url.path, error=message)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": message})
