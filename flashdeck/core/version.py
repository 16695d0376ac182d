"""Version of the installed flashdeck distribution."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from typing import Final

DISTRIBUTION_NAME: Final[str] = "flashdeck-backend"
UNKNOWN_VERSION: Final[str] = "0.0.0"


def resolve_version(distribution: str = DISTRIBUTION_NAME) -> str:
    """Installed version, or ``0.0.0`` when running from an uninstalled checkout."""
    try:
        return version(distribution)
    except PackageNotFoundError:
        return UNKNOWN_VERSION


APP_VERSION: Final[str] = resolve_version()

__all__ = ["APP_VERSION", "resolve_version"]
