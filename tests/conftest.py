"""Shared test fixtures for moodle-plugin-ci tests.

This module provides fixtures for testing the Behat runner without docker,
php or a real Moodle checkout:
- FakeProcessRunner: Records every command and answers with scripted results
- FakeManagedProcess: Stands in for the PHP web server handle
- moodle_dir / plugin_dir: Minimal Moodle and plugin trees on disk
"""

from collections.abc import Callable, Generator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from moodle_plugin_ci.errors import ToolFailureError
from moodle_plugin_ci.process import ProcessResult, ProcessRunner

# =============================================================================
# Fake process runner - records commands instead of running them
# =============================================================================


@dataclass
class ProcessCall:
    """One recorded command invocation."""

    kind: str  # run, run_streaming or run_or_fail
    argv: list[str]
    cwd: Any = None


@dataclass
class FakeProcessRunner(ProcessRunner):
    """ProcessRunner that records calls and returns scripted results.

    Results are looked up by the longest matching argv prefix; anything
    unscripted succeeds with empty output.
    """

    results: dict[tuple[str, ...], ProcessResult] = field(default_factory=dict)
    calls: list[ProcessCall] = field(default_factory=list)

    def script(self, argv_prefix: Sequence[str], exit_code: int = 0, stdout: str = "") -> None:
        self.results[tuple(argv_prefix)] = ProcessResult(exit_code, stdout)

    def _result_for(self, argv: Sequence[str]) -> ProcessResult:
        best: ProcessResult | None = None
        best_len = -1
        for prefix, result in self.results.items():
            if tuple(argv[: len(prefix)]) == prefix and len(prefix) > best_len:
                best, best_len = result, len(prefix)
        return best or ProcessResult(0)

    def run(self, argv, cwd=None) -> ProcessResult:
        self.calls.append(ProcessCall("run", list(argv), cwd))
        return self._result_for(argv)

    def run_streaming(self, argv, cwd=None, write: Callable[[str], None] | None = None):
        self.calls.append(ProcessCall("run_streaming", list(argv), cwd))
        result = self._result_for(argv)
        if write and result.stdout:
            write(result.stdout)
        return result

    def run_or_fail(self, argv, cwd=None) -> str:
        self.calls.append(ProcessCall("run_or_fail", list(argv), cwd))
        result = self._result_for(argv)
        if not result.successful:
            raise ToolFailureError(
                message=f"Command failed ({result.exit_code}): {' '.join(argv)}",
                command=list(argv),
                exit_code=result.exit_code,
            )
        return result.stdout

    def commands(self) -> list[list[str]]:
        return [call.argv for call in self.calls]

    def find(self, *argv_prefix: str) -> list[ProcessCall]:
        return [c for c in self.calls if tuple(c.argv[: len(argv_prefix)]) == argv_prefix]


@pytest.fixture
def fake_process() -> FakeProcessRunner:
    """Process runner where every command succeeds unless scripted otherwise."""
    return FakeProcessRunner()


# =============================================================================
# Fake web server handle
# =============================================================================


class FakeManagedProcess:
    """Records start/stop of the PHP web server."""

    instances: list["FakeManagedProcess"] = []

    def __init__(self, argv, cwd=None):
        self.argv = list(argv)
        self.cwd = cwd
        self.started = False
        self.stopped = False
        self.pid = 4242
        FakeManagedProcess.instances.append(self)

    @property
    def is_running(self) -> bool:
        return self.started and not self.stopped

    def start(self) -> None:
        self.started = True

    def stop(self, timeout: float = 10.0) -> int | None:
        self.stopped = True
        return 0


@pytest.fixture
def no_sleep() -> Generator[MagicMock, None, None]:
    """Skip the Selenium startup grace period."""
    with patch("moodle_plugin_ci.behat.servers.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def fake_webserver(no_sleep) -> Generator[type[FakeManagedProcess], None, None]:
    """Patch the PHP web server handle."""
    FakeManagedProcess.instances = []
    with patch("moodle_plugin_ci.behat.servers.ManagedProcess", FakeManagedProcess):
        yield FakeManagedProcess


# =============================================================================
# Moodle and plugin trees
# =============================================================================

COMPOSER_LOCK = """{
    "packages": [
        {"name": "behat/mink", "version": "v1.10.0"},
        {"name": "oleg-andreyev/mink-phpwebdriver", "version": "v1.2.1"}
    ]
}
"""

LEGACY_COMPOSER_LOCK = """{
    "packages": [
        {"name": "behat/mink", "version": "v1.7.1"},
        {"name": "instaclick/php-webdriver", "version": "1.4.16"}
    ]
}
"""


@pytest.fixture
def moodle_dir(tmp_path: Path) -> Path:
    """Moodle checkout with config.php and a modern composer.lock."""
    moodle = tmp_path / "moodle"
    moodle.mkdir()
    faildump = tmp_path / "faildump"
    (moodle / "config.php").write_text(
        "<?php\n"
        "unset($CFG);\n"
        "global $CFG;\n"
        "$CFG = new stdClass();\n"
        "$CFG->wwwroot = 'http://localhost/moodle';\n"
        f"$CFG->behat_faildump_path = '{faildump}';\n"
        "require_once(__DIR__ . '/lib/setup.php');\n"
    )
    (moodle / "composer.lock").write_text(COMPOSER_LOCK)
    return moodle


@pytest.fixture
def faildump_dir(tmp_path: Path) -> Path:
    """The failure dump directory configured in moodle_dir's config.php (not created)."""
    return tmp_path / "faildump"


def write_plugin(directory: Path, component: str = "local_demo", features: int = 1) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "version.php").write_text(
        "<?php\n"
        "defined('MOODLE_INTERNAL') || die();\n"
        f"$plugin->component = '{component}';\n"
        "$plugin->version = 2024010100;\n"
    )
    if features:
        behat = directory / "tests" / "behat"
        behat.mkdir(parents=True)
        for i in range(features):
            (behat / f"scenario_{i}.feature").write_text(
                f"@{component}\nFeature: Demo {i}\n  Scenario: Works\n    Given I log in as \"admin\"\n"
            )
    return directory


@pytest.fixture
def plugin_dir(tmp_path: Path) -> Path:
    """Plugin local_demo with one Behat feature."""
    return write_plugin(tmp_path / "plugin")


@pytest.fixture
def plugin_without_features(tmp_path: Path) -> Path:
    """Plugin local_nofeatures with no tests/behat directory."""
    return write_plugin(tmp_path / "plugin_nofeatures", component="local_nofeatures", features=0)


@pytest.fixture
def make_plugin(tmp_path: Path) -> Callable[..., Path]:
    """Factory for plugin trees: make_plugin(name, component=..., features=...)."""

    def _make(name: str, component: str = "local_demo", features: int = 1) -> Path:
        return write_plugin(tmp_path / name, component=component, features=features)

    return _make


@pytest.fixture
def legacy_moodle_dir(moodle_dir: Path) -> Path:
    """Moodle checkout whose composer.lock still uses instaclick/php-webdriver."""
    (moodle_dir / "composer.lock").write_text(LEGACY_COMPOSER_LOCK)
    return moodle_dir
