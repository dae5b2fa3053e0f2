"""CLI configuration management.

Two kinds of configuration feed a run:

- Host environment signals set by CI (MOODLE_START_BEHAT_SERVERS, MOODLE_APP, ...),
  read once into HostEnvironment.
- Persistent CLI settings stored in ~/.moodle-plugin-ci/config.yaml, with
  environment variable overrides.

Both are folded into a RunConfiguration by build_run_configuration so nothing
below the CLI reads os.environ.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .behat.servers import DEFAULT_SELENIUM_WAIT_TIME
from .behat.types import DEFAULT_AUTO_RERUN, RunConfiguration
from .errors import ConfigurationError

# Default values
DEFAULT_LOG_LEVEL = "warning"

# Environment variable mappings for persistent settings
ENV_VARS = {
    "selenium_wait_time": "MOODLE_PLUGIN_CI_SELENIUM_WAIT_TIME",
    "log_level": "MOODLE_PLUGIN_CI_LOG_LEVEL",
}


@dataclass(frozen=True)
class HostEnvironment:
    """Signals the CI host passes through environment variables."""

    start_servers: bool = False
    default_browser: str = ""
    selenium_image: str = ""
    mobile_app: bool = False
    moodle_dir: str = ""

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "HostEnvironment":
        env = os.environ if environ is None else environ
        return cls(
            # Set during install, forces server startup
            start_servers=env.get("MOODLE_START_BEHAT_SERVERS", "") == "YES",
            default_browser=env.get("MOODLE_BEHAT_DEFAULT_BROWSER", ""),
            selenium_image=env.get("MOODLE_BEHAT_SELENIUM_IMAGE", ""),
            # Empty and "0" are false, as PHP reads the variable
            mobile_app=env.get("MOODLE_APP", "") not in ("", "0"),
            moodle_dir=env.get("MOODLE_DIR", ""),
        )


@dataclass
class CLIConfig:
    """Persistent CLI settings."""

    selenium_wait_time: float = DEFAULT_SELENIUM_WAIT_TIME
    log_level: str = DEFAULT_LOG_LEVEL

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")


def get_config_path() -> Path:
    """Get the CLI config file path.

    Returns:
        Path to ~/.moodle-plugin-ci/config.yaml
    """
    return Path.home() / ".moodle-plugin-ci" / "config.yaml"


def _parse_wait_time(value: Any, source: str) -> float:
    try:
        wait_time = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid selenium_wait_time {value!r} in {source}: expected a number"
        ) from e
    if wait_time < 0:
        raise ConfigurationError(f"Invalid selenium_wait_time {value!r} in {source}: must be >= 0")
    return wait_time


def load_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> CLIConfig:
    """Load CLI configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (~/.moodle-plugin-ci/config.yaml)
    3. Defaults

    Raises:
        ConfigurationError: If the config file or an override is malformed.
    """
    env = os.environ if environ is None else environ
    config = CLIConfig()
    sources: dict[str, str] = {key: "default" for key in ENV_VARS}

    config_path = config_path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path) as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        if "selenium_wait_time" in file_config:
            config.selenium_wait_time = _parse_wait_time(
                file_config["selenium_wait_time"], str(config_path)
            )
            sources["selenium_wait_time"] = "config file"
        if "log_level" in file_config:
            config.log_level = str(file_config["log_level"])
            sources["log_level"] = "config file"

    if env.get(ENV_VARS["selenium_wait_time"]):
        config.selenium_wait_time = _parse_wait_time(
            env[ENV_VARS["selenium_wait_time"]], ENV_VARS["selenium_wait_time"]
        )
        sources["selenium_wait_time"] = "environment"
    if env.get(ENV_VARS["log_level"]):
        config.log_level = env[ENV_VARS["log_level"]]
        sources["log_level"] = "environment"

    config._sources = sources
    return config


def build_run_configuration(
    host: HostEnvironment,
    *,
    profile: str,
    suite: str,
    tags: str = "",
    name: str = "",
    auto_rerun: int = DEFAULT_AUTO_RERUN,
    start_servers: bool = False,
    selenium: str = "",
    dump: bool = False,
    scss_deprecations: bool = False,
    colors: bool = False,
) -> RunConfiguration:
    """Fold CLI options and host signals into one immutable RunConfiguration.

    Raises:
        ConfigurationError: If auto_rerun is negative.
    """
    if auto_rerun < 0:
        raise ConfigurationError(f"--auto-rerun must be zero or more, got {auto_rerun}")

    return RunConfiguration(
        profile=profile,
        suite=suite,
        tags=tags or "",
        name=name or "",
        auto_rerun=auto_rerun,
        colors=colors,
        selenium_image=selenium or host.selenium_image,
        start_servers=host.start_servers or start_servers,
        dump=dump,
        scss_deprecations=scss_deprecations,
        preferred_browser=host.default_browser,
        mobile_app=host.mobile_app,
    )
