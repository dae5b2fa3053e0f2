"""Value types shared by the Behat runner components."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from enum import Enum

DEFAULT_PROFILE = "default"
DEFAULT_SUITE = "default"
DEFAULT_AUTO_RERUN = 2


class OSFamily(Enum):
    """Host operating system family, as far as Docker networking cares."""

    LINUX = "linux"
    WINDOWS = "windows"
    DARWIN = "darwin"

    @classmethod
    def detect(cls, system: str | None = None) -> OSFamily:
        """Map platform.system() to an OS family.

        Anything that is not Windows or macOS runs Docker natively and is
        treated like Linux.
        """
        system = system if system is not None else platform.system()
        if system == "Windows":
            return cls.WINDOWS
        if system == "Darwin":
            return cls.DARWIN
        return cls.LINUX

    @property
    def uses_docker_desktop(self) -> bool:
        return self in (OSFamily.WINDOWS, OSFamily.DARWIN)


@dataclass(frozen=True)
class RunConfiguration:
    """Everything one `behat` invocation needs, assembled once at the top level."""

    profile: str = DEFAULT_PROFILE
    suite: str = DEFAULT_SUITE
    tags: str = ""
    name: str = ""
    auto_rerun: int = DEFAULT_AUTO_RERUN
    colors: bool = False
    selenium_image: str = ""
    # None means "detect from composer.lock when it matters"
    legacy_mode: bool | None = None
    start_servers: bool = False
    dump: bool = False
    scss_deprecations: bool = False
    preferred_browser: str = ""
    mobile_app: bool = False


@dataclass(frozen=True)
class BackendTarget:
    """Resolved Selenium image plus the networking it needs on this host."""

    image: str
    network: str
    webserver_host: str


@dataclass(frozen=True)
class RunOutcome:
    """Final result of a Behat run."""

    exit_code: int
    successful: bool
    stdout: str = ""
    skipped: bool = False

    @classmethod
    def skip(cls) -> RunOutcome:
        return cls(exit_code=0, successful=True, skipped=True)
