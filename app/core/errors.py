"""
Typed errors for the streaming and ordering flows.

Every failure the services raise is an AppError subclass with a stable code and
an HTTP status. register_exception_handlers() turns them into
{"error": {"code", "message", "details"}} responses; stack traces are never
returned to clients.
"""
import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, Response

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error with consistent error shape."""

    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.headers = headers or {}

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# ----- identity -----


class Unauthenticated(AppError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredential(Unauthenticated):
    code = "invalid_credential"

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


# ----- catalog / orders -----


class VideoNotFound(AppError):
    code = "video_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, video_id: int):
        super().__init__("Video not found", details={"video_id": video_id})
        self.video_id = video_id


class OrderNotFound(AppError):
    code = "order_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, order_id: str):
        super().__init__("Order not found", details={"order_id": order_id})


class AccessDenied(AppError):
    code = "payment_required"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, video_id: int):
        super().__init__("Payment required", details={"video_id": video_id})


class InvalidAmount(AppError):
    code = "invalid_amount"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, amount: int):
        super().__init__("Video price cannot be charged", details={"amount": amount})


class MissingReference(AppError):
    code = "missing_payment_reference"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self) -> None:
        super().__init__("payment id & video_id required")


class InvalidPaymentSignature(AppError):
    code = "invalid_payment_signature"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Payment signature verification failed"):
        super().__init__(message)


class DuplicatePaymentReference(AppError):
    code = "duplicate_payment_reference"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, payment_ref: str):
        super().__init__(
            "Payment reference already used for another purchase",
            details={"payment_ref": payment_ref},
        )


class OrderMismatch(AppError):
    """The gateway order being confirmed was issued for another user or video."""

    code = "order_mismatch"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, gateway_order_id: str, message: str = "Payment does not match this purchase"):
        super().__init__(message, details={"gateway_order_id": gateway_order_id})


class GatewayError(AppError):
    code = "gateway_error"
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details=details)


# ----- streaming -----


class RangeNotSatisfiable(AppError):
    code = "range_not_satisfiable"
    status_code = status.HTTP_416_RANGE_NOT_SATISFIABLE

    def __init__(self, total_length: int, reason: str = "out of bounds"):
        super().__init__(
            "Requested range not satisfiable",
            details={"total_length": total_length, "reason": reason},
            headers={
                "Content-Range": f"bytes */{total_length}",
                "Accept-Ranges": "bytes",
            },
        )
        self.total_length = total_length


class RangeNotImplemented(AppError):
    code = "multiple_ranges_not_supported"
    status_code = status.HTTP_501_NOT_IMPLEMENTED

    def __init__(self) -> None:
        super().__init__("Multiple byte ranges are not supported")


class StorageIntegrityError(AppError):
    """The video record exists but its blob is missing or shorter than declared."""

    code = "storage_missing"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, storage_key: str, message: str = "File not found"):
        super().__init__(message, details={"storage_key": storage_key})
        self.storage_key = storage_key


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> Response:
        if exc.status_code >= 500:
            logger.error(
                "app_error",
                extra={"code": exc.code, "path": request.url.path, "error": exc.message},
            )
        # 416 responses carry no body
        if isinstance(exc, RangeNotSatisfiable):
            return Response(status_code=exc.status_code, headers=exc.headers)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=exc.headers or None,
        )
