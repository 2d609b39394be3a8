"""Shared helpers used across dapm-provision.

- Authorization headers
- Logging setup
"""

from .auth import auth_headers
from .logging import configure_logging, get_logger, level_for_verbosity

__all__ = [
    # Auth
    "auth_headers",
    # Logging
    "configure_logging",
    "get_logger",
    "level_for_verbosity",
]
