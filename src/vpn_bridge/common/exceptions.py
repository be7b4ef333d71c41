"""Custom exceptions for the VPN bridge."""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure kinds surfaced to channel callers."""

    PERMISSION_DENIED = "PERMISSION_DENIED"
    ESTABLISH_FAILED = "ESTABLISH_FAILED"
    UNAVAILABLE = "UNAVAILABLE"
    NOT_FOUND = "NOT_FOUND"
    INVALID = "INVALID"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"


class VpnBridgeError(Exception):
    """Base exception for all VPN bridge errors."""

    kind: ErrorKind = ErrorKind.UNAVAILABLE


class PermissionDeniedError(VpnBridgeError):
    """Raised when the platform declines tunnel permission."""

    kind = ErrorKind.PERMISSION_DENIED


class EstablishFailedError(VpnBridgeError):
    """Raised when the tunnel interface could not be established."""

    kind = ErrorKind.ESTABLISH_FAILED


class UnavailableError(VpnBridgeError):
    """Raised when a settings surface or service cannot be reached."""

    kind = ErrorKind.UNAVAILABLE


class NotFoundError(VpnBridgeError):
    """Raised when a catalog lookup has no match."""

    kind = ErrorKind.NOT_FOUND


class InvalidDataError(VpnBridgeError):
    """Raised when backing catalog data cannot be parsed."""

    kind = ErrorKind.INVALID
