"""
Application errors and their HTTP mapping.

Services raise AppError subclasses; routes convert them with
app_error_to_http(). Unexpected failures go through
create_http_exception(), which hides the underlying exception text in
production.
"""

import logging
from enum import Enum
from typing import Any, Optional

from fastapi import HTTPException, status

from .config import get_settings

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable codes returned in the `detail.code` field"""

    CYCLE_IN_PROGRESS = "CYCLE_IN_PROGRESS"
    REDIS_UNAVAILABLE = "REDIS_UNAVAILABLE"
    TRADER_NOT_FOUND = "TRADER_NOT_FOUND"


class AppError(Exception):
    """
    Error with a code, a client-safe message and an HTTP status.

    details are only returned outside production.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class CycleInProgressError(AppError):
    """Another cycle (scheduled or manual) holds the cycle lock"""

    def __init__(self, holder: Optional[str] = None):
        super().__init__(
            code=ErrorCode.CYCLE_IN_PROGRESS,
            message="A trade cycle is already running",
            status_code=status.HTTP_409_CONFLICT,
            details={"holder": holder} if holder else None,
        )


class TraderNotFoundError(AppError):
    def __init__(self, trader_id: Any):
        super().__init__(
            code=ErrorCode.TRADER_NOT_FOUND,
            message="Trader not found",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"trader_id": str(trader_id)},
        )


def create_http_exception(
    code: ErrorCode,
    user_message: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    internal_error: Optional[Exception] = None,
) -> HTTPException:
    """
    HTTPException for an unexpected failure.

    The internal error is always logged with its traceback; it only
    reaches the client outside production.
    """
    if internal_error is not None:
        logger.error(f"[{code.value}] {user_message}: {internal_error}", exc_info=internal_error)
    else:
        logger.error(f"[{code.value}] {user_message}")

    detail = user_message
    if internal_error is not None and get_settings().environment != "production":
        detail = f"{user_message}: {internal_error}"

    return HTTPException(
        status_code=status_code,
        detail={"code": code.value, "message": detail},
    )


def app_error_to_http(error: AppError) -> HTTPException:
    detail: dict[str, Any] = {"code": error.code.value, "message": error.message}
    if error.details and get_settings().environment != "production":
        detail["details"] = error.details
    return HTTPException(status_code=error.status_code, detail=detail)
