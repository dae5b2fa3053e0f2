"""Shared modules for moodle-plugin-ci."""

from .logging import configure_logging, get_logger, resolve_level, run_context

__all__ = [
    "configure_logging",
    "get_logger",
    "resolve_level",
    "run_context",
]
