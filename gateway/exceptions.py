"""
Custom exceptions and error handlers
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from gateway.services.errors import InvalidSecretError


class NotFoundError(HTTPException):
    """Not found error exception"""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class UpstreamError(HTTPException):
    """Generic server error for unanticipated origin/parse failures"""

    def __init__(self, detail: str = "Failed to fetch content"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
        )


async def invalid_secret_handler(
    request: Request, exc: InvalidSecretError
) -> JSONResponse:
    logger.warning(f"Rejected revalidation request to {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"revalidated": False, "error": str(exc)},
    )


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the gateway's JSON error renderers to an app."""
    app.add_exception_handler(InvalidSecretError, invalid_secret_handler)  # type: ignore[arg-type]
    app.add_exception_handler(UpstreamError, upstream_error_handler)  # type: ignore[arg-type]
