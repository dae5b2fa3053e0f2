"""Unit tests for Selenium image selection."""

from __future__ import annotations

import itertools

import pytest

from moodle_plugin_ci.behat import (
    BackendTarget,
    OSFamily,
    RunConfiguration,
    needs_legacy_check,
    resolve_browser,
    resolve_image,
    resolve_target,
)
from moodle_plugin_ci.behat.image import (
    CHROME_APP_IMAGE,
    CHROME_IMAGE,
    FIREFOX_IMAGE,
    FIREFOX_LEGACY_IMAGE,
)

PROFILES = ["default", "chrome", "firefox", "headlessfirefox"]
OVERRIDES = ["", "selenium/standalone-edge:4"]
BOOLS = [False, True]
BROWSERS = ["", "chrome", "firefox"]


@pytest.mark.cli_unit
class TestResolveBrowser:
    """Tests for resolve_browser."""

    def test_default_profile_falls_back_to_firefox(self):
        assert resolve_browser("default") == "firefox"

    def test_default_profile_uses_chrome_for_moodle_app(self):
        assert resolve_browser("default", mobile_app=True) == "chrome"

    def test_default_profile_prefers_configured_browser(self):
        assert resolve_browser("default", preferred_browser="chrome") == "chrome"
        assert resolve_browser("default", "firefox", mobile_app=True) == "firefox"

    def test_named_profile_is_returned_unchanged(self):
        assert resolve_browser("chrome", preferred_browser="firefox") == "chrome"
        assert resolve_browser("headlessfirefox", mobile_app=True) == "headlessfirefox"


@pytest.mark.cli_unit
class TestResolveImage:
    """Tests for resolve_image precedence."""

    @pytest.mark.parametrize(
        "profile, legacy, preferred, mobile_app, expected",
        [
            ("default", False, "", False, FIREFOX_IMAGE),
            ("default", True, "", False, FIREFOX_LEGACY_IMAGE),
            ("default", False, "", True, CHROME_APP_IMAGE),
            ("default", True, "", True, CHROME_APP_IMAGE),
            ("default", True, "chrome", False, CHROME_IMAGE),
            ("default", True, "firefox", True, FIREFOX_LEGACY_IMAGE),
            ("chrome", False, "", False, CHROME_IMAGE),
            ("chrome", False, "", True, CHROME_APP_IMAGE),
            ("firefox", False, "", False, FIREFOX_IMAGE),
            ("firefox", True, "", False, FIREFOX_LEGACY_IMAGE),
            ("headlessfirefox", True, "chrome", False, FIREFOX_LEGACY_IMAGE),
        ],
    )
    def test_precedence_table(self, profile, legacy, preferred, mobile_app, expected):
        image = resolve_image(
            profile, "", legacy, preferred_browser=preferred, mobile_app=mobile_app
        )
        assert image == expected

    def test_override_always_wins(self):
        """An explicit image is returned whatever the other inputs are."""
        for profile, legacy, preferred, mobile_app in itertools.product(
            PROFILES, BOOLS, BROWSERS, BOOLS
        ):
            image = resolve_image(
                profile,
                "registry.example/selenium:custom",
                legacy,
                preferred_browser=preferred,
                mobile_app=mobile_app,
            )
            assert image == "registry.example/selenium:custom"

    def test_chrome_profile_ignores_legacy_and_preferred_browser(self):
        for legacy, preferred in itertools.product(BOOLS, BROWSERS):
            assert resolve_image("chrome", "", legacy, preferred_browser=preferred) == CHROME_IMAGE

    def test_same_inputs_same_image(self):
        for profile, override, legacy, preferred, mobile_app in itertools.product(
            PROFILES, OVERRIDES, BOOLS, BROWSERS, BOOLS
        ):
            kwargs = {"preferred_browser": preferred, "mobile_app": mobile_app}
            first = resolve_image(profile, override, legacy, **kwargs)
            second = resolve_image(profile, override, legacy, **kwargs)
            assert first == second


@pytest.mark.cli_unit
class TestResolveTarget:
    """Tests for resolve_target networking."""

    def test_linux_uses_host_network(self):
        target = resolve_target(RunConfiguration(), OSFamily.LINUX)
        assert target == BackendTarget(
            image=FIREFOX_IMAGE,
            network="--network=host",
            webserver_host="localhost:8000",
        )

    @pytest.mark.parametrize("os_family", [OSFamily.WINDOWS, OSFamily.DARWIN])
    def test_docker_desktop_publishes_port(self, os_family):
        target = resolve_target(RunConfiguration(profile="chrome"), os_family)
        assert target.image == CHROME_IMAGE
        assert target.network == "--publish=4444:4444"
        assert target.webserver_host == "0.0.0.0:8000"

    def test_legacy_mode_passed_through(self):
        target = resolve_target(RunConfiguration(), OSFamily.LINUX, legacy_mode=True)
        assert target.image == FIREFOX_LEGACY_IMAGE

    def test_os_family_does_not_change_image(self):
        config = RunConfiguration(mobile_app=True)
        images = {resolve_target(config, family).image for family in OSFamily}
        assert images == {CHROME_APP_IMAGE}


@pytest.mark.cli_unit
class TestOSFamily:
    """Tests for OSFamily.detect."""

    @pytest.mark.parametrize(
        "system, expected",
        [
            ("Linux", OSFamily.LINUX),
            ("Windows", OSFamily.WINDOWS),
            ("Darwin", OSFamily.DARWIN),
            ("FreeBSD", OSFamily.LINUX),
        ],
    )
    def test_detect(self, system, expected):
        assert OSFamily.detect(system) is expected


@pytest.mark.cli_unit
class TestNeedsLegacyCheck:
    """Tests for needs_legacy_check."""

    def test_firefox_needs_check(self):
        assert needs_legacy_check(RunConfiguration()) is True

    def test_override_skips_check(self):
        assert needs_legacy_check(RunConfiguration(selenium_image="x/y:1")) is False

    def test_chrome_skips_check(self):
        assert needs_legacy_check(RunConfiguration(profile="chrome")) is False
        assert needs_legacy_check(RunConfiguration(mobile_app=True)) is False
