"""Selenium and PHP web server lifecycle for Behat runs.

The two servers are owned differently:

- The Selenium container is started detached under a fixed name and is only
  ever addressed by that name. Docker can find and stop it even if this
  process has lost all its state.
- The PHP built-in web server is a child process held in a ManagedProcess
  handle. Only this manager starts, reads or stops it.

There is no readiness probe for Selenium: start() sleeps for a fixed grace
period. Early scenario failures caused by a slow container are left to
Behat's --auto-rerun.
"""

from __future__ import annotations

import time
from enum import Enum

from ..errors import PluginCIError, TeardownError, ToolFailureError, ToolUnavailableError
from ..moodle import Moodle
from ..process import ManagedProcess, ProcessRunner
from ..shared.logging import get_logger
from .image import needs_legacy_check, resolve_target
from .legacy import uses_legacy_webdriver
from .types import BackendTarget, OSFamily, RunConfiguration

logger = get_logger(__name__)

CONTAINER_NAME = "selenium"

# Seconds to wait for Selenium to accept connections
DEFAULT_SELENIUM_WAIT_TIME = 5.0


class ServerState(Enum):
    """Lifecycle state of the test servers."""

    IDLE = "idle"
    BACKEND_STARTING = "backend_starting"
    BACKEND_READY = "backend_ready"
    TESTS_RUNNING = "tests_running"
    TEARING_DOWN = "tearing_down"


class ServerManager:
    """Start and stop the Selenium container and the PHP web server."""

    def __init__(
        self,
        moodle: Moodle,
        process: ProcessRunner | None = None,
        os_family: OSFamily | None = None,
        selenium_wait_time: float = DEFAULT_SELENIUM_WAIT_TIME,
    ):
        """Initialize server manager.

        Args:
            moodle: Moodle checkout served by the web server and mounted into Selenium.
            process: Process runner used for docker commands.
            os_family: Host OS family (default: detected).
            selenium_wait_time: Grace period after startup, in seconds.
        """
        self.moodle = moodle
        self.process = process or ProcessRunner()
        self.os_family = os_family or OSFamily.detect()
        self.selenium_wait_time = selenium_wait_time

        self._state = ServerState.IDLE
        self._container_started = False
        self._webserver: ManagedProcess | None = None

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def is_webserver_running(self) -> bool:
        return self._webserver is not None and self._webserver.is_running

    def start(self, config: RunConfiguration) -> BackendTarget:
        """Start Selenium and the web server, then wait for Selenium to come up.

        Args:
            config: Run configuration selecting the browser and image.

        Returns:
            The resolved BackendTarget.

        Raises:
            ToolUnavailableError: If docker is not available. Nothing is started.
            ConfigurationError: If composer.lock is needed but unreadable.
            ToolFailureError: If the Selenium container fails to start.
        """
        if self._state is not ServerState.IDLE:
            raise RuntimeError(f"Test servers already active (state: {self._state.value})")

        self._check_docker()
        target = resolve_target(config, self.os_family, self._legacy_mode(config))

        self._state = ServerState.BACKEND_STARTING
        self._start_selenium(target)

        try:
            self._start_webserver(target)
        except PluginCIError:
            self._state = ServerState.TEARING_DOWN
            try:
                self._stop_container()
            finally:
                self._state = ServerState.IDLE
            raise

        logger.debug("selenium_wait", seconds=self.selenium_wait_time)
        time.sleep(self.selenium_wait_time)
        self._state = ServerState.BACKEND_READY
        return target

    def tests_running(self) -> None:
        """Record that the test run has begun against the started servers."""
        if self._state is ServerState.BACKEND_READY:
            self._state = ServerState.TESTS_RUNNING

    def stop(self) -> None:
        """Stop the Selenium container and the web server.

        Both are always attempted. A no-op when nothing was started.

        Raises:
            TeardownError: If docker failed to stop the container. Raised
                after the web server has been stopped.
        """
        if self._state is ServerState.IDLE:
            return

        self._state = ServerState.TEARING_DOWN
        try:
            self._stop_container()
        finally:
            try:
                self._stop_webserver()
            finally:
                self._state = ServerState.IDLE

    def _check_docker(self) -> None:
        result = self.process.run(["docker", "-v"])
        if not result.successful:
            logger.error("docker_unavailable", exit_code=result.exit_code, stderr=result.stderr)
            raise ToolUnavailableError(
                message="Docker is not available, can't start Selenium server",
                tool="docker",
            )

    def _legacy_mode(self, config: RunConfiguration) -> bool:
        if config.legacy_mode is not None:
            return config.legacy_mode
        if not needs_legacy_check(config):
            return False
        return uses_legacy_webdriver(self.moodle.composer_lock)

    def _start_selenium(self, target: BackendTarget) -> None:
        directory = str(self.moodle.directory)
        cmd = [
            "docker",
            "run",
            "-d",
            "--rm",
            f"--name={CONTAINER_NAME}",
            target.network,
            "--shm-size=2g",
            "-v",
            f"{directory}:{directory}",
            target.image,
        ]
        logger.info("selenium_starting", image=target.image, network=target.network)
        result = self.process.run_streaming(cmd)
        if not result.successful:
            self._state = ServerState.IDLE
            raise ToolFailureError(
                message="Can't start Selenium server",
                command=cmd,
                exit_code=result.exit_code,
                output=result.stdout,
            )
        self._container_started = True

    def _start_webserver(self, target: BackendTarget) -> None:
        webserver = ManagedProcess(["php", "-S", target.webserver_host], cwd=self.moodle.directory)
        webserver.start()
        self._webserver = webserver
        logger.info("webserver_started", host=target.webserver_host, pid=webserver.pid)

    def _stop_container(self) -> None:
        if not self._container_started:
            return
        # Started with --rm, so stopping also removes the container
        self._container_started = False
        try:
            self.process.run_or_fail(["docker", "stop", CONTAINER_NAME])
        except ToolFailureError as e:
            logger.error("selenium_stop_failed", container=CONTAINER_NAME, exit_code=e.exit_code)
            raise TeardownError(
                f"Failed to stop Selenium container '{CONTAINER_NAME}': {e.message}"
            ) from e
        logger.info("selenium_stopped", container=CONTAINER_NAME)

    def _stop_webserver(self) -> None:
        if self._webserver is None:
            return
        webserver, self._webserver = self._webserver, None
        webserver.stop()
        logger.info("webserver_stopped", pid=webserver.pid)
