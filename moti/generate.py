"""The ``generate`` command: runs protoc over local and installed proto files."""

from __future__ import annotations

import logging
import os
import posixpath
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Optional, Protocol

from moti.config import DEFAULT_CONFIG_FILE_PATH, Input, Plugin
from moti.console import RunError
from moti.env import Env, production_env
from moti.fs import FsWalker
from moti.models import ModuleNotInstalledError, MotiError, new_module
from moti.storage import DIR_PERM

logger = logging.getLogger(__name__)

PROTOC_BIN = "protoc"

_FILE_NOT_FOUND_BANNER = """
|============================================|
|You received "File Not found" error         |
|Most likely you messed your imports.        |
|Read proper import techniques in the readme |
|============================================|
Error itself:
"""

_MISSING_GO_PACKAGE_BANNER = """
|================================|
| Missing Go package path.       |
| Pass it with go_package option |
|================================|
Error itself:
"""


class FileNotFoundOrHadErrors(MotiError):
    """protoc could not find a file, most likely because of wrong imports."""

    def __init__(self, desc: str) -> None:
        self.desc = desc
        super().__init__(str(self))

    def __str__(self) -> str:
        return _FILE_NOT_FOUND_BANNER + self.desc


class MissingGoImportPathError(MotiError):
    """A proto file has no go_package option."""

    def __init__(self, desc: str) -> None:
        self.desc = desc
        super().__init__(str(self))

    def __str__(self) -> str:
        return _MISSING_GO_PACKAGE_BANNER + self.desc


def parse_error(error: BaseException) -> BaseException:
    """Turn a known protoc failure into a more helpful error; pass others through."""
    if not isinstance(error, RunError):
        return error
    if "File not found" in error.stderr:
        return FileNotFoundOrHadErrors(error.stderr)
    if "unable to determine Go import path for" in error.stderr:
        return MissingGoImportPathError(error.stderr)
    return error


def remove_doubles(items: Iterable[str]) -> list[str]:
    """Return the items without repeats, keeping first occurrences in order."""
    return list(dict.fromkeys(items))


def _extension(path: str) -> str:
    base = path.replace("\\", "/").rsplit("/", 1)[-1]
    index = base.rfind(".")
    return base[index:] if index >= 0 else ""


def is_containing_proto(path: str, error: Optional[BaseException]) -> bool:
    """Return True for a ``.proto`` path; re-raise a walk error if one is given."""
    if error is not None:
        raise error
    return _extension(path) == ".proto"


def _fs_join(*parts: str) -> str:
    present = [part for part in parts if part]
    return os.path.normpath(os.path.join(*present)) if present else ""


def _slash_join(*parts: str) -> str:
    joined = "/".join(part for part in parts if part)
    return posixpath.normpath(joined) if joined else ""


@dataclass
class ProtocQuery:
    """Arguments of one protoc run."""

    imports: list[str] = field(default_factory=list)
    plugins: list[Plugin] = field(default_factory=list)
    files: list[str] = field(default_factory=list)

    def build(self) -> tuple[str, list[str]]:
        """Return the protoc command and its arguments."""
        args = [f"-I {imp}" for imp in remove_doubles(self.imports)]
        args.extend(self._plugin_args())
        args.extend(self.files)
        return PROTOC_BIN, args

    def _plugin_args(self) -> list[str]:
        args = []
        for plugin in self.plugins:
            arg = f"--{plugin.name}_out="
            opts = [f"{key}={value}" if value else key for key, value in plugin.opts.items()]
            if opts:
                arg += ",".join(opts) + ":"
            args.append(arg + plugin.out)
        return args


WalkCallback = Callable[[str, Optional[BaseException]], object]


class _Walker(Protocol):
    def walk_dir(self, root: str, callback: WalkCallback) -> None: ...


def _mkdir_for_plugins_out(plugins: Iterable[Plugin]) -> None:
    for plugin in plugins:
        if os.path.isabs(plugin.out):
            continue
        os.makedirs(plugin.out, DIR_PERM, exist_ok=True)


@dataclass
class GenerateCore:
    """Builds and runs protoc for every configured generation input."""

    env: Env
    walker: _Walker = field(default_factory=FsWalker)

    def generate(self) -> None:
        """Run protoc for every input of every generate entry."""
        config = self.env.moti_config
        for gen_cfg in config.generate:
            _mkdir_for_plugins_out(gen_cfg.plugins)

            for inp in gen_cfg.inputs:
                root = self._first_input(inp)
                query = ProtocQuery(imports=[root], plugins=list(gen_cfg.plugins))

                for dep in config.deps:
                    module_path = self._module_path(dep)
                    # Do not import what the root already imports.
                    if not module_path.startswith(root):
                        query.imports.append(module_path)

                if not inp.git_repo.url:
                    self._generate_from_local_fs(query, inp)
                else:
                    self._generate_from_git_repo(query, inp)

                self._run(query)

    def _run(self, query: ProtocQuery) -> None:
        command, args = query.build()
        custom_path = self.env.moti_config.build_path(self.env.work_dir)

        log_prefix = custom_path + "\n\t" if custom_path else ""
        logger.info("%s%s %s", log_prefix, command, " \\\n           ".join(args))

        if custom_path:
            command = f"{custom_path} {command}"
        try:
            self.env.console.run_cmd(self.env.work_dir, command, *args)
        except RunError as exc:
            parsed = parse_error(exc)
            if parsed is exc:
                raise
            raise parsed from exc

    def _generate_from_local_fs(self, query: ProtocQuery, inp: Input) -> None:
        cache_path = self.env.moti_config.cache_path

        def visit(path: str, error: Optional[BaseException]) -> None:
            if cache_path and path.startswith(cache_path):
                return
            if is_containing_proto(path, error):
                query.files.append(_fs_join(inp.directory, path))

        self.walker.walk_dir(inp.directory, visit)

    def _generate_from_git_repo(self, query: ProtocQuery, inp: Input) -> None:
        module = new_module(inp.git_repo.url)
        if not self.env.storage.is_module_installed(module):
            raise ModuleNotInstalledError(f"module not installed: {module.name}")

        module_path = _slash_join(self._module_path(module.name), inp.git_repo.sub_directory)

        def visit(path: str, error: Optional[BaseException]) -> None:
            if not is_containing_proto(path, error):
                return
            module_proto_path = _fs_join(module_path, path)
            if not module_path.startswith(query.imports[0]):
                query.imports.append(os.path.dirname(module_proto_path) or ".")
                query.files.append(module_proto_path)
            else:
                query.files.append(path)

        self.walker.walk_dir(module_path, visit)

    def _module_path(self, requested_dependency: str) -> str:
        module = new_module(requested_dependency)
        if not self.env.storage.is_module_installed(module):
            raise ModuleNotInstalledError(f"module not installed: {module.name}")
        info = self.env.lock_file.read(module.name)
        return self.env.storage.install_dir(module.name, info.version)

    def _first_input(self, inp: Input) -> str:
        if not inp.git_repo.url:
            return inp.directory or "."
        return _slash_join(self._module_path(inp.git_repo.url), inp.git_repo.sub_directory)


def generate_command(config_path: str = DEFAULT_CONFIG_FILE_PATH) -> None:
    """Run code generation as configured; generation failures are logged."""
    core = GenerateCore(env=production_env(config_path), walker=FsWalker())
    try:
        core.generate()
    except (MotiError, OSError) as exc:
        logger.error("%s", exc)