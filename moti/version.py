"""Application version from the package's own version string."""

from __future__ import annotations

from collections.abc import Iterable

try:
    from moti import __version__ as _PACKAGE_VERSION
except ImportError:
    _PACKAGE_VERSION = None

_REVISION_PREFIX = 7
_DEVEL = "(devel)"


def system() -> str:
    """Return the application version, or "(unknown)" when it is not known."""
    main_version, settings = _build_info()
    if main_version is None:
        return "(unknown)"

    ver = _build_version(settings)
    if not ver or main_version != _DEVEL:
        return main_version
    return ver


def build_setting(settings: Iterable[tuple[str, str]], key: str) -> str:
    """Return the value of the first setting named ``key``, or ""."""
    return next((value for name, value in settings if name == key), "")


def _build_info() -> tuple[str | None, list[tuple[str, str]]]:
    if not _PACKAGE_VERSION:
        return None, []
    return str(_PACKAGE_VERSION), []


def _build_version(settings: list[tuple[str, str]]) -> str:
    revision = build_setting(settings, "vcs.revision")
    modified = build_setting(settings, "vcs.modified")
    time = build_setting(settings, "vcs.time")

    if not revision:
        return time
    revision = revision[:_REVISION_PREFIX]
    if modified != "false":
        revision += "-modified"
    return f"{revision} {time}" if time else revision