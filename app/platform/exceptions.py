from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.features.waitlist.exceptions import SignupValidationError, WaitlistError
from app.middlewares.cors import CORS_HEADERS
from app.platform.logger import get_logger
from app.platform.response import error_response

logger = get_logger(__name__)

HTTP_ERROR_MESSAGES = {
    status.HTTP_404_NOT_FOUND: "Not found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed",
}


def add_exception_handlers(app):
    @app.exception_handler(WaitlistError)
    async def waitlist_exception_handler(request: Request, exc: WaitlistError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return error_response(exc.message, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = HTTP_ERROR_MESSAGES.get(exc.status_code) or str(exc.detail) or "Error"
        return error_response(message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected request body on {request.url.path}: {exc.errors()}")
        return error_response(SignupValidationError.message, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        # Rendered outside the middleware stack, so CORS headers go on here.
        return error_response(
            "Something went wrong. Please try again.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            headers=CORS_HEADERS,
        )
