"""CLI main entry point."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from .commands.behat import behat
from .config import load_config
from .errors import ConfigurationError
from .shared.logging import LOG_LEVELS, configure_logging, resolve_level

err_console = Console(stderr=True)


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug)")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS),
    default=None,
    help="Log level (overrides -v and the config file)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write logs to this file instead of stderr",
)
@click.option("--json-logs", is_flag=True, help="Write logs as JSON lines")
@click.version_option(package_name="moodle-plugin-ci")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: int,
    log_level: str | None,
    log_file: Path | None,
    json_logs: bool,
) -> None:
    """Continuous integration helpers for Moodle plugins."""
    ctx.ensure_object(dict)
    try:
        config = load_config()
    except ConfigurationError as e:
        err_console.print(f"[red]Error:[/red] {escape(e.message)}")
        sys.exit(1)

    configure_logging(
        level=resolve_level(log_level, verbose, config.log_level),
        log_file=log_file,
        json_output=json_logs,
    )
    ctx.obj["config"] = config


cli.add_command(behat)


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
