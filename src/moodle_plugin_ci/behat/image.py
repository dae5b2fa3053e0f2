"""Selenium image selection.

Pure functions with no environment, file or network access. Everything that
influences the choice arrives as an argument.

Precedence, highest first:

1. an explicit image (``--selenium`` or MOODLE_BEHAT_SELENIUM_IMAGE)
2. the chrome browser: pinned chrome image, newer for the Moodle App
3. any other browser: firefox, the old 2.53.1 image in legacy mode
"""

from __future__ import annotations

from .types import BackendTarget, OSFamily, RunConfiguration

CHROME = "chrome"
FIREFOX = "firefox"

CHROME_IMAGE = "selenium/standalone-chrome:3"
CHROME_APP_IMAGE = "selenium/standalone-chrome:120.0"
FIREFOX_IMAGE = "selenium/standalone-firefox:3"
FIREFOX_LEGACY_IMAGE = "selenium/standalone-firefox:2.53.1"

SELENIUM_PORT = 4444
WEBSERVER_PORT = 8000


def resolve_browser(profile: str, preferred_browser: str = "", mobile_app: bool = False) -> str:
    """Browser a Behat profile runs against.

    Only the ``default`` profile looks at the preferred browser; the Moodle App
    needs chrome when nothing else is asked for.
    """
    if profile != "default":
        return profile
    if preferred_browser:
        return preferred_browser
    return CHROME if mobile_app else FIREFOX


def resolve_image(
    profile: str,
    override: str = "",
    legacy_mode: bool = False,
    *,
    preferred_browser: str = "",
    mobile_app: bool = False,
) -> str:
    """Selenium image to run for a profile."""
    if override:
        return override

    browser = resolve_browser(profile, preferred_browser, mobile_app)
    if browser == CHROME:
        return CHROME_APP_IMAGE if mobile_app else CHROME_IMAGE

    if legacy_mode:
        return FIREFOX_LEGACY_IMAGE
    return FIREFOX_IMAGE


def needs_legacy_check(config: RunConfiguration) -> bool:
    """Whether legacy mode can change the image for this configuration."""
    if config.selenium_image:
        return False
    browser = resolve_browser(config.profile, config.preferred_browser, config.mobile_app)
    return browser != CHROME


def resolve_target(
    config: RunConfiguration,
    os_family: OSFamily,
    legacy_mode: bool = False,
) -> BackendTarget:
    """Image, docker networking and PHP server bind address for this host.

    Docker Desktop (Windows, macOS) cannot share the host network, so the
    Selenium port is published and the web server listens on all interfaces.
    """
    image = resolve_image(
        config.profile,
        config.selenium_image,
        legacy_mode,
        preferred_browser=config.preferred_browser,
        mobile_app=config.mobile_app,
    )
    if os_family.uses_docker_desktop:
        return BackendTarget(
            image=image,
            network=f"--publish={SELENIUM_PORT}:{SELENIUM_PORT}",
            webserver_host=f"0.0.0.0:{WEBSERVER_PORT}",
        )
    return BackendTarget(
        image=image,
        network="--network=host",
        webserver_host=f"localhost:{WEBSERVER_PORT}",
    )
