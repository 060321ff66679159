"""Core module - configuration, errors and logging"""

from .config import Settings, get_settings
from .errors import AppError, CycleInProgressError, ErrorCode

__all__ = [
    "AppError",
    "CycleInProgressError",
    "ErrorCode",
    "Settings",
    "get_settings",
]
