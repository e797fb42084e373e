"""The ``install`` command: installs Go binaries and proto dependencies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from moti.config import DEFAULT_CONFIG_FILE_PATH, GOBIN_PREFIX, GoBin
from moti.console import BinaryNotFoundError, Console
from moti.env import Env, production_env
from moti.git import new_git_repo
from moti.models import Module, MotiError, Revision, VersionNotFoundError, new_module
from moti.repository import Repo

logger = logging.getLogger(__name__)

LATEST_VERSION = "latest"

_COMMAND_ERRORS = (MotiError, OSError)


class _RepoFactory(Protocol):
    def new(self, remote: str, cache_dir: str, console: Console) -> Repo: ...


class GitRepoFactory:
    """Creates git-backed repositories cached on disk."""

    def new(self, remote: str, cache_dir: str, console: Console) -> Repo:
        """Return a repository for ``remote`` cached in ``cache_dir``."""
        return new_git_repo(remote, cache_dir, console)


@dataclass
class InstallCore:
    """Installs configured binaries and dependencies with their own dependencies."""

    env: Env
    repo_factory: Optional[_RepoFactory] = None

    def _factory(self) -> _RepoFactory:
        if self.repo_factory is None:
            self.repo_factory = GitRepoFactory()
        return self.repo_factory

    def install(self) -> None:
        """Install every configured Go binary, then every dependency."""
        self._factory()
        config = self.env.moti_config

        for entry in config.binaries.install:
            go_bin = entry.go
            if not go_bin.module:
                continue

            module = new_module(go_bin.module)
            version = str(module.version) or LATEST_VERSION

            if self._is_go_binary_version_installed(go_bin, module, version):
                logger.info("module %s version %s already installed", go_bin.module, version)
                continue

            logger.info("module %s version %s is not installed. Installing...", go_bin.module, version)
            self._install_go_bin(go_bin, module, version)

        for dep in config.deps:
            self.install_package(new_module(dep))

    def install_package(self, requested_module: Module) -> None:
        """Install a module and its dependencies unless it is installed already."""
        storage = self.env.storage
        if storage.is_module_installed(requested_module):
            return

        repo, revision = self._fetch_and_read_revision(requested_module)

        module_config = self.env.module_config.read_from_repo(repo, revision)
        self._install_dependencies(module_config.dependencies)

        paths = storage.cache_download_paths(requested_module, revision)
        storage.create_cache_download_dir(paths)

        repo.archive(revision, paths)

        module_hash = storage.install(paths, requested_module, revision, module_config)
        logger.debug("Hash for module %s: %s", requested_module.name, module_hash)

        self.env.lock_file.write(requested_module.name, revision.version, module_hash)

    def _fetch_and_read_revision(self, requested_module: Module) -> tuple[Repo, Revision]:
        cache_dir = self.env.storage.create_cache_repository_dir(requested_module.name)
        repo = self._factory().new(requested_module.name, cache_dir, self.env.console)
        revision = repo.read_revision(requested_module.version)
        repo.fetch(revision)
        return repo, revision

    def _install_dependencies(self, dependencies: list[Module]) -> None:
        for dependency in dependencies:
            try:
                self.install_package(dependency)
            except VersionNotFoundError:
                logger.error("Version not found for dependency %s", dependency)
                raise

    def _install_go_bin(self, go_bin: GoBin, module: Module, version: str) -> None:
        logger.info("Installing go binary %s", go_bin.module)

        command = f"go install {module.name}@{version}"
        bin_dir = self.env.moti_config.binaries.bin_dir
        if bin_dir:
            command = f"{GOBIN_PREFIX}{bin_dir} {command}"

        try:
            self.env.console.run_cmd(self.env.work_dir, command)
        except _COMMAND_ERRORS as exc:
            raise MotiError(f"error installing go binary: {exc}") from exc

    def _is_go_binary_version_installed(self, go_bin: GoBin, module: Module, expected_version: str) -> bool:
        gobin = self.env.moti_config.build_gobin(self.env.work_dir)[len(GOBIN_PREFIX):]
        binary = module.name.rsplit("/", 1)[-1]
        binary_name = f"{gobin}/{binary}" if gobin else binary

        args = [go_bin.version_check_args] if go_bin.version_check_args else []
        try:
            output = self.env.console.run_cmd(self.env.work_dir, binary_name, *args)
        except BinaryNotFoundError:
            return False
        except _COMMAND_ERRORS as exc:
            raise MotiError(f"error checking binary version: {exc}") from exc

        if expected_version != LATEST_VERSION and expected_version not in output:
            raise MotiError(
                f"version check failed: output {output} does not contain version {expected_version}"
            )
        return True


def install_command(config_path: str = DEFAULT_CONFIG_FILE_PATH) -> None:
    """Install everything the configuration asks for."""
    InstallCore(env=production_env(config_path)).install()