"""moodle-plugin-ci - Continuous integration helpers for Moodle plugins."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("moodle-plugin-ci")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for editable installs without metadata

from .main import main

__all__ = ["main", "__version__"]
