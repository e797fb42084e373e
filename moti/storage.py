"""Local storage of downloaded and installed modules."""

from __future__ import annotations

import base64
import hashlib
import logging
import os
import posixpath
import shutil
import tarfile
import zipfile
from collections.abc import Callable
from typing import IO, Optional, Protocol

from moti.helpers import sanitize_path
from moti.models import (
    CacheDownloadPaths,
    LockFileInfo,
    Module,
    ModuleConfig,
    ModuleNotFoundInLockFileError,
    ModuleNotInstalledError,
    MotiError,
    RequestedVersion,
    Revision,
)

logger = logging.getLogger(__name__)

DIR_PERM = 0o755
_CACHE_DIR = "cache"
_CACHE_DOWNLOAD_DIR = "download"
_INSTALLED_DIR = "mod"

Renamer = Callable[[str], str]


class _LockFileReader(Protocol):
    def read(self, module_name: str) -> LockFileInfo: ...


def _slash_join(*parts: str) -> str:
    joined = "/".join(part for part in parts if part)
    return posixpath.normpath(joined) if joined else ""


def _os_join(*parts: str) -> str:
    present = [part for part in parts if part]
    return os.path.normpath(os.path.join(*present)) if present else ""


def make_renamer(module_config: ModuleConfig) -> Renamer:
    """Return a function stripping the first matching module directory from a path."""

    def rename(file: str) -> str:
        for directory in module_config.directories:
            prefix = directory + "/"
            if file.startswith(prefix):
                return file[len(prefix):]
        return file

    return rename


def is_versions_matched(requested_version: str, lock_file_version: str) -> bool:
    """Return True if the versions match or no version was requested."""
    return RequestedVersion(requested_version).is_omitted() or requested_version == lock_file_version


def hash_dir(directory: str, prefix: str = "") -> str:
    """Return the ``h1:`` hash of every file below ``directory``.

    File names are slash-separated, relative to ``directory`` and joined to
    ``prefix``. Raises FileNotFoundError if the directory does not exist.
    """
    os.stat(directory)

    walk_errors: list[OSError] = []
    files: dict[str, str] = {}
    for dirpath, _dirnames, filenames in os.walk(directory, onerror=walk_errors.append):
        for filename in filenames:
            full = os.path.join(dirpath, filename)
            rel = os.path.relpath(full, directory).replace(os.sep, "/")
            files[_slash_join(prefix, rel)] = full
    if walk_errors:
        raise walk_errors[0]

    summary = hashlib.sha256()
    for name in sorted(files):
        if "\n" in name:
            raise MotiError(f"dirhash: filenames with newlines are not supported: {name!r}")
        file_digest = hashlib.sha256()
        with open(files[name], "rb") as handle:
            for chunk in iter(lambda: handle.read(65536), b""):
                file_digest.update(chunk)
        summary.update(f"{file_digest.hexdigest()}  {name}\n".encode())

    return "h1:" + base64.b64encode(summary.digest()).decode("ascii")


def _safe_target(dest: str, name: str) -> str:
    root = os.path.abspath(dest)
    target = os.path.normpath(os.path.join(root, name)) if name else root
    if target != root and not target.startswith(root + os.sep):
        raise MotiError(f"archive entry escapes destination: {name}")
    return target


def _write_file(source: IO[bytes], target: str) -> None:
    os.makedirs(os.path.dirname(target), DIR_PERM, exist_ok=True)
    with open(target, "wb") as out:
        shutil.copyfileobj(source, out)


def _extract_archive(archive_file: str, dest: str, renamer: Renamer) -> None:
    with open(archive_file, "rb") as handle:
        if zipfile.is_zipfile(handle):
            handle.seek(0)
            with zipfile.ZipFile(handle) as archive:
                for info in archive.infolist():
                    target = _safe_target(dest, renamer(info.filename))
                    if info.is_dir():
                        os.makedirs(target, DIR_PERM, exist_ok=True)
                        continue
                    with archive.open(info) as source:
                        _write_file(source, target)
            return

        handle.seek(0)
        if tarfile.is_tarfile(handle):
            handle.seek(0)
            with tarfile.open(fileobj=handle) as archive:
                for member in archive:
                    target = _safe_target(dest, renamer(member.name))
                    if member.isdir():
                        os.makedirs(target, DIR_PERM, exist_ok=True)
                    elif member.isfile():
                        source = archive.extractfile(member)
                        if source is not None:
                            with source:
                                _write_file(source, target)
            return

    raise MotiError(f"unsupported archive format: {archive_file}")


class Storage:
    """Directories of the module cache and of installed modules."""

    def __init__(self, root_dir: str, lock_file: Optional[_LockFileReader] = None) -> None:
        self.root_dir = root_dir
        self.lock_file = lock_file

    def create_cache_download_dir(self, cache_download_paths: CacheDownloadPaths) -> None:
        """Create the directory that receives a module's downloaded archive."""
        os.makedirs(cache_download_paths.cache_download_dir, DIR_PERM, exist_ok=True)

    def create_cache_repository_dir(self, name: str) -> str:
        """Create and return the cache directory of a repository."""
        digest = hashlib.sha256(name.encode()).hexdigest()
        path = _os_join(self.root_dir, _CACHE_DIR, digest)
        os.makedirs(path, DIR_PERM, exist_ok=True)
        return path

    def cache_download_paths(self, module: Module, revision: Revision) -> CacheDownloadPaths:
        """Return the paths of a module's downloaded archive and metadata."""
        download_dir = _os_join(self.root_dir, _CACHE_DIR, _CACHE_DOWNLOAD_DIR, module.name)
        base = _os_join(download_dir, sanitize_path(revision.version))
        return CacheDownloadPaths(
            cache_download_dir=download_dir,
            archive_file=base + ".zip",
            archive_hash_file=base + ".ziphash",
            module_info_file=base + ".info",
        )

    def install_dir(self, module_name: str, version: str) -> str:
        """Return the directory a module version is installed in."""
        return _slash_join(self.root_dir, _INSTALLED_DIR, module_name, sanitize_path(version))

    def installed_module_hash(self, module_name: str, revision_version: str) -> str:
        """Return the hash of an installed module's directory."""
        try:
            return hash_dir(self.install_dir(module_name, revision_version), "")
        except FileNotFoundError as exc:
            raise ModuleNotInstalledError(f"module not installed: {module_name}") from exc

    def install(
        self,
        cache_download_paths: CacheDownloadPaths,
        module: Module,
        revision: Revision,
        module_config: ModuleConfig,
    ) -> str:
        """Extract a downloaded archive into the install directory and return its hash."""
        logger.info(
            "Install package %s version %s commit %s",
            module.name,
            revision.version,
            revision.commit_hash,
        )
        installed_dir = self.install_dir(module.name, sanitize_path(revision.version))
        os.makedirs(installed_dir, DIR_PERM, exist_ok=True)

        logger.debug("Starting extract into %s", installed_dir)
        _extract_archive(cache_download_paths.archive_file, installed_dir, make_renamer(module_config))

        return hash_dir(installed_dir, "")

    def is_module_installed(self, module: Module) -> bool:
        """Return True if the module is in the lock file and installed unchanged."""
        if self.lock_file is None:
            raise MotiError("storage has no lock file")

        try:
            info = self.lock_file.read(module.name)
        except ModuleNotFoundInLockFileError:
            return False

        if not is_versions_matched(module.version, info.version):
            return False

        try:
            module_hash = self.installed_module_hash(module.name, info.version)
        except ModuleNotInstalledError:
            return False

        if module_hash != info.hash:
            logger.warning(
                "Hashes are not matched: lock file %s, installed module %s",
                info.hash,
                module_hash,
            )
            return False

        return True