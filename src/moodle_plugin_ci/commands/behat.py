"""Behat command for running a plugin's acceptance tests.

This module provides the `moodle-plugin-ci behat` command which runs the
plugin's Behat features inside a Moodle checkout, optionally starting
Selenium and the PHP web server around the run.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from ..behat import BehatRunner, ServerManager
from ..behat.types import DEFAULT_AUTO_RERUN, DEFAULT_PROFILE, DEFAULT_SUITE
from ..config import CLIConfig, HostEnvironment, build_run_configuration, load_config
from ..errors import PluginCIError
from ..moodle import Moodle, MoodlePlugin
from ..shared.logging import get_logger, run_context

logger = get_logger(__name__)

console = Console()
err_console = Console(stderr=True)


def _stdout_supports_color() -> bool:
    """Whether Behat should colour its output, checked against stdout as it is now."""
    return Console().color_system is not None


@click.command()
@click.argument(
    "plugin",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--moodle",
    "-m",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Path to Moodle (default: $MOODLE_DIR or current directory)",
)
@click.option("--profile", "-p", default=DEFAULT_PROFILE, help="Behat profile option to use")
@click.option("--suite", default=DEFAULT_SUITE, help="Behat suite option to use (Moodle theme)")
@click.option(
    "--tags",
    default="",
    help="Behat tags option to use. If not set, defaults to the component name",
)
@click.option("--name", default="", help="Behat name option to use")
@click.option("--start-servers", is_flag=True, help="Start Selenium and PHP servers")
@click.option(
    "--auto-rerun",
    type=click.IntRange(min=0),
    default=DEFAULT_AUTO_RERUN,
    show_default=True,
    help="Number of times to rerun failures",
)
@click.option("--selenium", default="", help="Selenium Docker image")
@click.option("--dump", is_flag=True, help="Print contents of Behat failure HTML files")
@click.option("--scss-deprecations", is_flag=True, help="Enable SCSS deprecation checks")
@click.pass_context
def behat(
    ctx: click.Context,
    plugin: Path,
    moodle: Path | None,
    profile: str,
    suite: str,
    tags: str,
    name: str,
    start_servers: bool,
    auto_rerun: int,
    selenium: str,
    dump: bool,
    scss_deprecations: bool,
) -> None:
    """Run Behat on a plugin.

    Exits 0 when all features pass or the plugin has none, 1 otherwise.

    Examples:

        # Run against servers that are already up
        moodle-plugin-ci behat ./plugin -m ./moodle

        # Start Selenium (docker) and the PHP web server, dump failures
        moodle-plugin-ci behat ./plugin -m ./moodle --start-servers --dump

        # Chrome, no reruns, only scenarios named "Add a post"
        moodle-plugin-ci behat ./plugin -p chrome --auto-rerun 0 --name "Add a post"
    """
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    host = HostEnvironment.from_environ()

    try:
        settings: CLIConfig = obj.get("config") or load_config()
        moodle_dir = moodle or Path(host.moodle_dir or ".")
        moodle_checkout = Moodle(moodle_dir)
        moodle_plugin = MoodlePlugin(plugin)

        component = moodle_plugin.component
        console.rule(f"Behat features for {escape(component)}")
        logger.debug(
            "settings_loaded",
            selenium_wait_time=settings.selenium_wait_time,
            selenium_wait_time_source=settings.get_source("selenium_wait_time"),
        )

        run_config = build_run_configuration(
            host,
            profile=profile,
            suite=suite,
            tags=tags,
            name=name,
            auto_rerun=auto_rerun,
            start_servers=start_servers,
            selenium=selenium,
            dump=dump,
            scss_deprecations=scss_deprecations,
            colors=_stdout_supports_color(),
        )

        servers = ServerManager(moodle_checkout, selenium_wait_time=settings.selenium_wait_time)
        runner = BehatRunner(moodle_plugin, moodle_checkout, servers=servers)
        with run_context(component=component):
            outcome = runner.run(run_config)
    except PluginCIError as e:
        err_console.print(f"[red]Error:[/red] {escape(e.message)}")
        sys.exit(1)

    if outcome.skipped:
        console.print("[yellow]No Behat features to run, free pass![/yellow]")
    sys.exit(outcome.exit_code)
