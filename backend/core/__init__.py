"""Core configuration, error and logging helpers."""

from .config import Settings, settings
from .errors import ErrorKind, ServiceError, render_error
from .log_config import configure_logging

__all__ = [
    "Settings",
    "settings",
    "ErrorKind",
    "ServiceError",
    "render_error",
    "configure_logging",
]
