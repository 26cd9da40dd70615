"""
Warden - Utilities Package
==========================

Helpers shared by commands and Discord gateways.
"""

from src.utils.discord_errors import log_http_error, HTTP_STATUS_DESCRIPTIONS
from src.utils.permissions import has_permission, highest_role_level

__all__ = [
    "log_http_error",
    "HTTP_STATUS_DESCRIPTIONS",
    "has_permission",
    "highest_role_level",
]
