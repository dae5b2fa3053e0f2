"""Moodle checkout and plugin metadata.

Reads the few facts the Behat command needs straight from the PHP sources:
the plugin's frankenstyle component from version.php, its Behat feature
files, and string settings from Moodle's config.php.
"""

from __future__ import annotations

import re
from pathlib import Path

from .errors import ConfigurationError

_COMPONENT_RE = re.compile(r"""\$plugin->component\s*=\s*['"]([a-z0-9_]+)['"]\s*;""")


def _read_text(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ConfigurationError(f"Cannot read {what} {path}: {e.strerror or e}") from e


class MoodlePlugin:
    """A Moodle plugin source tree."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory).resolve()
        self._component: str | None = None

    @property
    def component(self) -> str:
        """Frankenstyle component name, e.g. mod_forum.

        Raises:
            ConfigurationError: If version.php is missing or declares no component.
        """
        if self._component is None:
            version_file = self.directory / "version.php"
            match = _COMPONENT_RE.search(_read_text(version_file, "plugin version file"))
            if not match:
                raise ConfigurationError(f"Failed to find $plugin->component in {version_file}")
            self._component = match.group(1)
        return self._component

    def behat_features(self) -> list[Path]:
        """Feature files under tests/behat."""
        behat_dir = self.directory / "tests" / "behat"
        if not behat_dir.is_dir():
            return []
        return sorted(behat_dir.rglob("*.feature"))

    def has_behat_features(self) -> bool:
        return bool(self.behat_features())


class Moodle:
    """A Moodle checkout the plugin is installed into."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory).resolve()
        self._config: str | None = None

    @property
    def composer_lock(self) -> Path:
        return self.directory / "composer.lock"

    def get_config(self, name: str) -> str | None:
        """Read a string $CFG setting from config.php.

        Only literal assignments like ``$CFG->name = 'value';`` are understood.

        Returns:
            The value, or None if config.php does not set it.

        Raises:
            ConfigurationError: If config.php cannot be read.
        """
        if self._config is None:
            self._config = _read_text(self.directory / "config.php", "Moodle config")

        pattern = re.compile(
            r"\$CFG->" + re.escape(name) + r"""\s*=\s*(['"])(.*?)\1\s*;""",
        )
        match = pattern.search(self._config)
        return match.group(2) if match else None
