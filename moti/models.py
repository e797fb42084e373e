"""Domain models shared across moti: modules, revisions, lock entries and errors."""

from __future__ import annotations

import string
from dataclasses import dataclass, field

_HEX_DIGITS = frozenset(string.hexdigits)
_MIN_HEX_LENGTH = 7
_COMMIT_HASH_LENGTH = 40


class MotiError(Exception):
    """Base class for errors raised by moti."""

    default_message = "moti error"

    def __init__(self, *args: object) -> None:
        super().__init__(*(args or (self.default_message,)))


class VersionNotFoundError(MotiError):
    """The requested version does not exist in the repository."""

    default_message = "version not found"


class ModuleFileNotFoundError(MotiError):
    """A file requested from a module's repository does not exist."""

    default_message = "file not found"


class ModuleNotInstalledError(MotiError):
    """The module is not installed in the local storage."""

    default_message = "module not installed"


class ModuleNotFoundInLockFileError(MotiError):
    """The lock file holds no entry for the module."""

    default_message = "module not found in lock file"


class RequestedVersion(str):
    """A version of a dependency as written in the configuration."""

    __slots__ = ()

    def is_generated(self) -> bool:
        """Return True if the version looks like a commit hash."""
        return self.is_hex()

    def is_hex(self) -> bool:
        """Return True for a hex string of at least seven characters."""
        return len(self) >= _MIN_HEX_LENGTH and all(c in _HEX_DIGITS for c in self)

    def is_commit_hash(self) -> bool:
        """Return True for a full, 40-character commit hash."""
        return len(self) == _COMMIT_HASH_LENGTH and self.is_hex()

    def is_omitted(self) -> bool:
        """Return True if no version was given."""
        return self == OMITTED


OMITTED = RequestedVersion("")


@dataclass(frozen=True)
class Module:
    """A requested dependency: its full remote path and its version."""

    name: str
    version: RequestedVersion = OMITTED

    def __post_init__(self) -> None:
        if not isinstance(self.version, RequestedVersion):
            object.__setattr__(self, "version", RequestedVersion(self.version))


def new_module(dependency: str) -> Module:
    """Parse ``name@version`` (the version being optional) into a Module."""
    parts = dependency.split("@")
    version = RequestedVersion(parts[1]) if len(parts) > 1 else OMITTED
    return Module(name=parts[0], version=version)


@dataclass(frozen=True)
class GeneratedVersionParts:
    """Parts from which a version is generated when a commit has no tag."""

    commit_hash: str

    def version_string(self) -> str:
        """Return the generated version."""
        return self.commit_hash


@dataclass(frozen=True)
class CacheDownloadPaths:
    """Paths of a downloaded module inside the cache."""

    cache_download_dir: str = ""
    archive_file: str = ""
    archive_hash_file: str = ""
    module_info_file: str = ""


@dataclass(frozen=True)
class LockFileInfo:
    """One entry of the lock file."""

    name: str
    version: str
    hash: str


@dataclass
class ModuleConfig:
    """Configuration found inside a module's repository."""

    directories: list[str] = field(default_factory=list)
    dependencies: list[Module] = field(default_factory=list)


@dataclass(frozen=True)
class Revision:
    """A resolved commit of a module and its version."""

    commit_hash: str = ""
    version: str = ""