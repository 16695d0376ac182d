from __future__ import annotations

from flashdeck.core.version import APP_VERSION, UNKNOWN_VERSION, resolve_version


def test_app_version_comes_from_distribution_metadata() -> None:
    assert APP_VERSION == resolve_version()
    assert APP_VERSION.count(".") >= 2


def test_unknown_distribution_falls_back_to_placeholder() -> None:
    assert resolve_version("flashdeck-backend-not-installed") == UNKNOWN_VERSION
