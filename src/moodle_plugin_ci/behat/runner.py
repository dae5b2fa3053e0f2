"""Behat run orchestration.

Builds the Moodle Behat command line, brings the test servers up and down
around it, and reduces everything to a single RunOutcome.
"""

from __future__ import annotations

from collections.abc import Callable

import click

from ..moodle import Moodle, MoodlePlugin
from ..process import ProcessRunner
from ..shared.logging import get_logger
from .faildump import dump_failures
from .servers import ServerManager
from .types import RunConfiguration, RunOutcome

logger = get_logger(__name__)

BEHAT_RUN_SCRIPT = "admin/tool/behat/cli/run.php"
BEHAT_UTIL_SINGLE_RUN_SCRIPT = "admin/tool/behat/cli/util_single_run.php"
FAILDUMP_CONFIG = "behat_faildump_path"


class BehatRunner:
    """Run a plugin's Behat features inside a Moodle checkout."""

    def __init__(
        self,
        plugin: MoodlePlugin,
        moodle: Moodle,
        process: ProcessRunner | None = None,
        servers: ServerManager | None = None,
        write: Callable[[str], None] = click.echo,
    ):
        """Initialize Behat runner.

        Args:
            plugin: Plugin whose features are run.
            moodle: Moodle checkout the plugin is installed in.
            process: Process runner for the Behat commands.
            servers: Server manager (default: one sharing the process runner).
            write: Line writer for failure dumps.
        """
        self.plugin = plugin
        self.moodle = moodle
        self.process = process or ProcessRunner()
        self.servers = servers or ServerManager(moodle, self.process)
        self.write = write

    def build_command(self, config: RunConfiguration) -> list[str]:
        """Behat command line for a configuration."""
        cmd = [
            "php",
            BEHAT_RUN_SCRIPT,
            f"--profile={config.profile}",
            f"--suite={config.suite}",
            f"--tags={config.tags or '@' + self.plugin.component}",
            f"--auto-rerun={config.auto_rerun}",
            "--verbose",
            "-vvv",
        ]
        if config.name:
            cmd.append(f"--name='{config.name}'")
        if config.colors:
            cmd.append("--colors")
        return cmd

    def scss_deprecations_command(self) -> list[str]:
        return [
            "php",
            BEHAT_UTIL_SINGLE_RUN_SCRIPT,
            "--enable",
            "--add-core-features-to-theme",
            "--scss-deprecations",
        ]

    def run(self, config: RunConfiguration) -> RunOutcome:
        """Run Behat, managing servers and failure dumps as configured.

        Returns:
            RunOutcome with exit code 0 on success or skip, 1 on test failure.

        Raises:
            ToolUnavailableError: If servers are requested and docker is missing.
            ConfigurationError: If required Moodle or plugin metadata is unreadable.
            TeardownError: If the servers could not be stopped.
        """
        if not self.plugin.has_behat_features():
            logger.info("behat_skipped", plugin=str(self.plugin.directory))
            return RunOutcome.skip()

        cmd = self.build_command(config)

        try:
            if config.start_servers:
                self.servers.start(config)
                self.servers.tests_running()

            if config.scss_deprecations:
                self.process.run_streaming(self.scss_deprecations_command(), self.moodle.directory)

            logger.info("behat_command", argv=cmd)
            result = self.process.run_streaming(cmd, self.moodle.directory)
        finally:
            if config.start_servers:
                self.servers.stop()

        if config.dump:
            dump_failures(self.moodle.get_config(FAILDUMP_CONFIG), self.write)

        logger.info("behat_finished", exit_code=result.exit_code)
        return RunOutcome(
            exit_code=0 if result.successful else 1,
            successful=result.successful,
            stdout=result.stdout,
        )
