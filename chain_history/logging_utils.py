"""
Logging utilities.

Loggers are passed explicitly through constructors; nothing here holds
process-wide logger state. Credentials in request parameters are masked
before they reach a log record.
"""

import logging
from typing import Any, Optional


# Parameter names that should be masked
SENSITIVE_PARAMS = {
    "apikey",
    "api_key",
    "secret",
    "token",
    "access_token",
}


def mask_value(value: str, show_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only first few chars.

    Args:
        value: Value to mask
        show_chars: Number of chars to show at start

    Returns:
        Masked value
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def mask_params(params: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Return a copy of request parameters with credentials masked."""
    if not params:
        return {}

    masked = {}
    for key, value in params.items():
        if key.lower() in SENSITIVE_PARAMS:
            masked[key] = mask_value(str(value)) if value else value
        else:
            masked[key] = value
    return masked


def get_component_logger(
    logger: Optional[logging.Logger],
    component: str,
    default_name: str,
) -> logging.Logger:
    """
    Resolve the logger for a component.

    With an injected logger, returns its child named after the component,
    so the caller's handlers and levels apply. Without one, falls back to
    the module logger `default_name`.
    """
    if logger is None:
        return logging.getLogger(default_name)
    return logger.getChild(component)
