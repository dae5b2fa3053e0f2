"""Allow running as python -m moodle_plugin_ci."""

from .main import main

main()
