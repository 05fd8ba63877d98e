"""Shared modules for knit.

This module provides functionality used by every command:
- Logging (structlog setup)
- Paths (~/.knit/ layout)
"""

from .logging import configure_logging, get_logger
from .paths import CONFIG_FILE, KNIT_DIR, ensure_dirs, get_log_file

__all__ = [
    # Paths
    "KNIT_DIR",
    "CONFIG_FILE",
    "ensure_dirs",
    "get_log_file",
    # Logging
    "configure_logging",
    "get_logger",
]
