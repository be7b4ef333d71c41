"""Common utilities and shared functionality."""

from .exceptions import (
    EstablishFailedError,
    ErrorKind,
    InvalidDataError,
    NotFoundError,
    PermissionDeniedError,
    UnavailableError,
    VpnBridgeError,
)
from .logging import get_logger, setup_logging
from .utils import (
    PLACEHOLDER_CREDENTIAL,
    default_if_blank,
    mask_sensitive_data,
    sanitize_log_data,
)

__all__ = [
    # Exceptions
    "ErrorKind",
    "VpnBridgeError",
    "PermissionDeniedError",
    "EstablishFailedError",
    "UnavailableError",
    "NotFoundError",
    "InvalidDataError",
    # Logging
    "get_logger",
    "setup_logging",
    # Utils
    "mask_sensitive_data",
    "sanitize_log_data",
    "default_if_blank",
    "PLACEHOLDER_CREDENTIAL",
]
