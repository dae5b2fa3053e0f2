"""Detect Moodle checkouts that still use the legacy PHP WebDriver."""

from __future__ import annotations

from pathlib import Path

from ..errors import ConfigurationError

# Requires the old Firefox Selenium image
LEGACY_WEBDRIVER_PACKAGE = "instaclick/php-webdriver"


def uses_legacy_webdriver(lockfile: str | Path) -> bool:
    """Check whether composer.lock pulls in the legacy WebDriver package.

    Raises:
        ConfigurationError: If the lock file cannot be read.
    """
    path = Path(lockfile)
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read {path} to detect the PHP WebDriver in use: {e.strerror or e}"
        ) from e
    return LEGACY_WEBDRIVER_PACKAGE in content
