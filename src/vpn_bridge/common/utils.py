"""Utility functions for the VPN bridge."""

from typing import Any

PLACEHOLDER_CREDENTIAL = "vpn"


def mask_sensitive_data(
    value: str | None, mask_char: str = "*", show_chars: int = 2
) -> str:
    """Mask sensitive data for logging while preserving some characters for debugging.

    Args:
        value: Sensitive string to mask (e.g., password, shared secret)
        mask_char: Character to use for masking
        show_chars: Number of characters to show at the end

    Returns:
        Masked string safe for logging
    """
    if not value:
        return "<None>"

    if len(value) <= show_chars:
        return mask_char * len(value)

    masked_length = len(value) - show_chars
    return mask_char * masked_length + value[-show_chars:]


def sanitize_log_data(data: dict[str, Any]) -> dict[str, Any]:
    """Sanitize dictionary data for safe logging by masking sensitive fields.

    Args:
        data: Dictionary potentially containing sensitive data

    Returns:
        Sanitized dictionary safe for logging
    """
    sensitive_fields = {
        "password",
        "secret",
        "sharedkey",
        "token",
        "config",
    }

    sanitized = {}
    for key, value in data.items():
        if any(sensitive_field in key.lower() for sensitive_field in sensitive_fields):
            sanitized[key] = mask_sensitive_data(str(value) if value else None)
        else:
            sanitized[key] = value

    return sanitized


def default_if_blank(value: str | None, default: str = PLACEHOLDER_CREDENTIAL) -> str:
    """Return ``default`` when value is missing or only whitespace."""
    if value is None or not str(value).strip():
        return default
    return str(value)
