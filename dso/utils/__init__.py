"""Utility module for DSO."""

from dso.utils.logging import (
    generate_request_id,
    get_console,
    get_logger,
    setup_logging,
    setup_task_logging,
)

__all__ = [
    "generate_request_id",
    "get_console",
    "get_logger",
    "setup_logging",
    "setup_task_logging",
]
