"""Print Behat failure dumps.

Moodle writes an HTML snapshot of the page for every failed step into
$CFG->behat_faildump_path. On CI the only way to see them is to echo them
into the job log.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import click

from ..shared.logging import get_logger

logger = get_logger(__name__)

DUMP_SUFFIX = ".html"


def dump_delimiter(name: str) -> str:
    return f"===== {name} ====="


def dump_failures(
    directory: str | Path | None,
    write: Callable[[str], None] = click.echo,
) -> int:
    """Write every HTML failure dump in a directory, each wrapped in delimiters.

    A missing directory is not an error: a fully passing run leaves none.

    Args:
        directory: Failure dump directory, or None when Moodle does not set one.
        write: Line writer (default: click.echo).

    Returns:
        Number of dumps written.
    """
    if not directory:
        return 0
    dump_dir = Path(directory)
    if not dump_dir.is_dir():
        logger.debug("faildump_missing", directory=str(dump_dir))
        return 0

    count = 0
    for path in dump_dir.rglob(f"*{DUMP_SUFFIX}"):
        if not path.is_file():
            continue
        write(dump_delimiter(path.name))
        write(path.read_text(encoding="utf-8", errors="replace"))
        write(dump_delimiter(path.name))
        count += 1

    logger.info("faildump_written", directory=str(dump_dir), files=count)
    return count
