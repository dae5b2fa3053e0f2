"""Error taxonomy for moodle-plugin-ci.

Fatal conditions are raised as PluginCIError subclasses and reported by the
CLI with a single message. A failing Behat run is not an error: it is a
failed RunOutcome mapped to exit code 1.
"""

from dataclasses import dataclass, field


@dataclass
class PluginCIError(Exception):
    """Base error class for moodle-plugin-ci errors."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class ToolUnavailableError(PluginCIError):
    """A required external executable is missing or not responding."""

    message: str = "Required tool is not available"
    tool: str = ""


@dataclass
class ConfigurationError(PluginCIError):
    """Input needed for a decision is unreadable or malformed."""

    message: str = "Invalid configuration"


@dataclass
class ToolFailureError(PluginCIError):
    """An external command that had to succeed exited non-zero."""

    message: str = "Command failed"
    command: list[str] = field(default_factory=list)
    exit_code: int = 1
    output: str = ""


@dataclass
class TeardownError(PluginCIError):
    """Stopping a test server failed, leaving the environment dirty."""

    message: str = "Failed to stop test servers"
