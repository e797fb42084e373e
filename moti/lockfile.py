"""The moti.lock file: installed module versions and their hashes."""

from __future__ import annotations

from typing import IO, NamedTuple, Protocol

from moti.config import LOCK_FILE_NAME
from moti.fs import DirWalker
from moti.models import LockFileInfo, ModuleNotFoundInLockFileError


class _FileSource(Protocol):
    def open(self, name: str) -> IO[str]: ...

    def create(self, name: str) -> IO[str]: ...


class _Entry(NamedTuple):
    version: str
    hash: str


class LockFile:
    """Lock file contents, loaded once and rewritten on every change."""

    def __init__(self, dir_walker: _FileSource) -> None:
        self._dir_walker = dir_walker
        self._entries: dict[str, _Entry] = {}

        try:
            handle = dir_walker.open(LOCK_FILE_NAME)
        except FileNotFoundError:
            return

        with handle:
            for line in handle:
                parts = line.split()
                if len(parts) != 3:
                    continue
                name, version, digest = parts
                self._entries[name] = _Entry(version, digest)

    def read(self, module_name: str) -> LockFileInfo:
        """Return the entry for a module."""
        entry = self._entries.get(module_name)
        if entry is None:
            raise ModuleNotFoundInLockFileError(f"module not found in lock file: {module_name}")
        return LockFileInfo(name=module_name, version=entry.version, hash=entry.hash)

    def write(self, module_name: str, revision_version: str, installed_package_hash: str) -> None:
        """Record a module and rewrite the lock file sorted by module name."""
        with self._dir_walker.create(LOCK_FILE_NAME) as handle:
            self._entries[module_name] = _Entry(revision_version, installed_package_hash)
            handle.writelines(
                f"{name} {entry.version} {entry.hash}\n" for name, entry in sorted(self._entries.items())
            )


def open_lock_file(workdir: str) -> LockFile:
    """Load the lock file from a working directory."""
    return LockFile(DirWalker(workdir, "."))