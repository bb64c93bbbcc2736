"""Logging utilities for the transcript worker."""

from .logging_decorator import (
    setup_logging,
    log_function,
    log_with_timer,
    default_log_file,
)

__all__ = [
    "setup_logging",
    "log_function",
    "log_with_timer",
    "default_log_file",
]
