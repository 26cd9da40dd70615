"""
Warden - Discord Error Utilities
================================

Logging helpers for failed Discord API calls.
"""

from typing import Any, Optional

import discord

from src.core.logger import logger


# HTTP status code descriptions for logging
HTTP_STATUS_DESCRIPTIONS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    429: "Rate Limited",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


def log_http_error(
    e: discord.HTTPException,
    operation: str,
    context: Optional[list[tuple[str, Any]]] = None,
) -> None:
    """
    Log a Discord HTTPException with status details.

    Args:
        e: The HTTPException that occurred
        operation: What failed (e.g., "Ban User", "Set Channel Permissions")
        context: Additional (key, value) pairs for the log entry
    """
    status_desc = HTTP_STATUS_DESCRIPTIONS.get(e.status, "Unknown")
    retry_after = getattr(e, "retry_after", None)

    log_items: list[tuple[str, Any]] = [
        ("Status", f"{e.status} ({status_desc})"),
        ("Error", str(e.text) if getattr(e, "text", None) else str(e)),
    ]

    if retry_after:
        log_items.append(("Retry After", f"{retry_after:.1f}s"))

    if context:
        log_items.extend(context)

    # Rate limits, missing permissions and unknown targets are recoverable
    if e.status in (403, 404, 429):
        logger.warning(f"{operation} {status_desc}", log_items)
    else:
        logger.error(f"{operation} Failed", log_items)


__all__ = ["log_http_error", "HTTP_STATUS_DESCRIPTIONS"]
