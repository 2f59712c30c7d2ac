"""Error taxonomy shared by the services and mapped to HTTP in one place."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger("parcel")


class ParcelError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(ParcelError):
    status_code = 404
    default_message = "Not found"


class Gone(ParcelError):
    """The resource existed and is now terminally unavailable."""

    status_code = 410
    default_message = "No longer available"


class AlreadyExhausted(Gone):
    default_message = "Download limit reached"


class Forbidden(ParcelError):
    status_code = 403
    default_message = "Forbidden"


class Unauthorized(ParcelError):
    status_code = 401
    default_message = "Authentication required"


class InvalidCredentials(ParcelError):
    status_code = 401
    default_message = "Invalid credentials"


class Conflict(ParcelError):
    status_code = 409
    default_message = "Conflict"


class BadRequest(ParcelError):
    status_code = 400
    default_message = "Bad request"


class PayloadTooLarge(ParcelError):
    status_code = 413
    default_message = "File too large"


class InternalError(ParcelError):
    status_code = 500


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ParcelError)
    async def parcel_error_handler(request: Request, exc: ParcelError):
        if isinstance(exc, InternalError):
            logger.error(
                "event=internal_error path=%s detail=%s", request.url.path, exc.message,
                exc_info=exc,
            )
            return JSONResponse({"detail": InternalError.default_message}, status_code=500)
        return JSONResponse({"detail": exc.message}, status_code=exc.status_code)

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("event=store_error path=%s", request.url.path, exc_info=exc)
        return JSONResponse({"detail": InternalError.default_message}, status_code=500)
