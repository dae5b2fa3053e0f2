"""Behat acceptance test runner.

This package provides the `moodle-plugin-ci behat` internals:
1. Selects a Selenium image for the browser and host OS
2. Starts Selenium (docker) and the PHP built-in web server
3. Runs Moodle's Behat CLI with auto-rerun
4. Tears both servers down, even when the run fails
5. Optionally prints the HTML failure dumps
"""

from .faildump import dump_failures
from .image import needs_legacy_check, resolve_browser, resolve_image, resolve_target
from .legacy import uses_legacy_webdriver
from .runner import BehatRunner
from .servers import CONTAINER_NAME, ServerManager, ServerState
from .types import BackendTarget, OSFamily, RunConfiguration, RunOutcome

__all__ = [
    # Image selection
    "resolve_browser",
    "resolve_image",
    "resolve_target",
    "needs_legacy_check",
    "uses_legacy_webdriver",
    # Server lifecycle
    "CONTAINER_NAME",
    "ServerManager",
    "ServerState",
    # Orchestration
    "BehatRunner",
    "dump_failures",
    # Types
    "BackendTarget",
    "OSFamily",
    "RunConfiguration",
    "RunOutcome",
]
