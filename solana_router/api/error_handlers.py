"""
Error handlers for the API
"""
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from solana_router.utils.errors import ErrorCode, RouterError, UnknownToolError

# Setup logger
logger = structlog.get_logger("api.errors")


def register_error_handlers(app: FastAPI) -> None:
    """Register global error handlers for the application"""

    @app.exception_handler(RouterError)
    async def router_error_handler(request: Request, exc: RouterError):
        """Handle router errors with their own status code"""
        log = logger.error if isinstance(exc, UnknownToolError) or exc.status_code >= 500 else logger.info
        log(
            "Router error",
            code=exc.code.value,
            message=exc.message,
            status_code=exc.status_code,
            path=request.url.path
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle malformed request bodies"""
        logger.info("Request validation failed", path=request.url.path)
        return JSONResponse(
            status_code=400,
            content={"error": {
                "code": ErrorCode.INVALID_INPUT.value,
                "message": "Invalid request body",
                "details": {"errors": exc.errors()},
            }}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions"""
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": "HTTP_ERROR", "message": str(exc.detail), "details": {}}}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all uncaught exceptions"""
        logger.exception(
            "Uncaught exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method
        )
        return JSONResponse(
            status_code=500,
            content={"error": {
                "code": ErrorCode.UNKNOWN_ERROR.value,
                "message": str(exc) if app.debug else "An unexpected error occurred",
                "details": {},
            }}
        )
