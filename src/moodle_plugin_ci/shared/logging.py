"""Logging configuration for moodle-plugin-ci.

structlog on top of standard logging. Diagnostics go to stderr or a log file,
never to stdout, where the Behat output is streamed. Events emitted while a
plugin is being processed carry its component through the contextvars
binding set up by run_context().
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

LOG_LEVELS = ["debug", "info", "warning", "error", "critical"]


def resolve_level(log_level: str | None, verbose: int, default: str = "warning") -> str:
    """Pick the effective level from --log-level, -v count and the configured default.

    An explicit level wins; -v means info and -vv (or more) means debug.
    """
    if log_level:
        return log_level
    if verbose >= 2:
        return "debug"
    if verbose == 1:
        return "info"
    return default


def _processors(json_output: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def configure_logging(
    level: str = "warning",
    log_file: str | Path | None = None,
    json_output: bool = False,
) -> None:
    """Configure standard logging and structlog.

    Called once from the CLI group.

    Args:
        level: Log level (debug, info, warning, error, critical)
        log_file: Write to this file instead of stderr
        json_output: Render JSON lines instead of key=value text
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    handler: logging.Handler
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(str(log_file), encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)

    logging.basicConfig(level=log_level, handlers=[handler], format="%(message)s", force=True)

    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def run_context(**values: str) -> Iterator[None]:
    """Attach values (e.g. component=mod_forum) to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
