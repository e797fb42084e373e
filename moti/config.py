"""The moti.yaml configuration file."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Any

import yaml

from moti.models import MotiError

DEFAULT_CONFIG_FILE_PATH = "moti.yaml"
LOCK_FILE_NAME = "moti.lock"
CONFIG_FLAG = "cfg"
GOBIN_PREFIX = "GOBIN="
PATH_PREFIX = "PATH="
DEFAULT_CACHE_PATH = "proto_modules"


class ConfigError(MotiError):
    """The configuration file cannot be read or parsed."""

    default_message = "invalid config file"


class ConfigFileNotFoundError(ConfigError):
    """The configuration file does not exist."""

    default_message = "config file not found"


def _mapping(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{what} must be a mapping")
    return value


def _sequence(value: Any, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{what} must be a list")
    return value


def _string(value: Any, what: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigError(f"{what} must be a string")


def _boolean(value: Any, what: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"{what} must be a boolean")
    return value


def _join(*parts: str) -> str:
    joined = "/".join(part for part in parts if part)
    return posixpath.normpath(joined) if joined else ""


@dataclass
class GoBin:
    """A Go binary to install with ``go install``."""

    module: str = ""
    version_check_args: str = ""

    @classmethod
    def _parse(cls, data: Any) -> GoBin:
        data = _mapping(data, "go")
        return cls(
            module=_string(data.get("module"), "module"),
            version_check_args=_string(data.get("version_check_args"), "version_check_args"),
        )


@dataclass
class BinaryInstall:
    """One entry of ``binaries.install``."""

    go: GoBin = field(default_factory=GoBin)

    @classmethod
    def _parse(cls, data: Any) -> BinaryInstall:
        data = _mapping(data, "install entry")
        return cls(go=GoBin._parse(data.get("go")))


@dataclass
class Binaries:
    """Where binaries live and which ones to install."""

    bin_dir: str = ""
    allow_custom: bool = False
    install: list[BinaryInstall] = field(default_factory=list)

    @classmethod
    def _parse(cls, data: Any) -> Binaries:
        data = _mapping(data, "binaries")
        return cls(
            bin_dir=_string(data.get("bin_dir"), "bin_dir"),
            allow_custom=_boolean(data.get("allow_custom"), "allow_custom"),
            install=[BinaryInstall._parse(item) for item in _sequence(data.get("install"), "install")],
        )


@dataclass
class Plugin:
    """A protoc plugin with its output directory and options."""

    name: str = ""
    out: str = ""
    opts: dict[str, str] = field(default_factory=dict)

    @classmethod
    def _parse(cls, data: Any) -> Plugin:
        data = _mapping(data, "plugin")
        opts = _mapping(data.get("opts"), "opts")
        return cls(
            name=_string(data.get("name"), "name"),
            out=_string(data.get("out"), "out"),
            opts={_string(k, "opt name"): _string(v, "opt value") for k, v in opts.items()},
        )


@dataclass
class InputGitRepo:
    """A git repository used as generation input."""

    url: str = ""
    sub_directory: str = ""
    out: str = ""

    @classmethod
    def _parse(cls, data: Any) -> InputGitRepo:
        data = _mapping(data, "git_repo")
        return cls(
            url=_string(data.get("url"), "url"),
            sub_directory=_string(data.get("sub_directory"), "sub_directory"),
            out=_string(data.get("out"), "out"),
        )


@dataclass
class Input:
    """A source of proto files: a local directory or a git repository."""

    directory: str = ""
    git_repo: InputGitRepo = field(default_factory=InputGitRepo)

    @classmethod
    def _parse(cls, data: Any) -> Input:
        data = _mapping(data, "input")
        return cls(
            directory=_string(data.get("directory"), "directory"),
            git_repo=InputGitRepo._parse(data.get("git_repo")),
        )


@dataclass
class Generate:
    """One code generation run: inputs and plugins."""

    inputs: list[Input] = field(default_factory=list)
    plugins: list[Plugin] = field(default_factory=list)

    @classmethod
    def _parse(cls, data: Any) -> Generate:
        data = _mapping(data, "generate entry")
        return cls(
            inputs=[Input._parse(item) for item in _sequence(data.get("inputs"), "inputs")],
            plugins=[Plugin._parse(item) for item in _sequence(data.get("plugins"), "plugins")],
        )


@dataclass
class Config:
    """The whole moti configuration."""

    cache_path: str = ""
    deps: list[str] = field(default_factory=list)
    binaries: Binaries = field(default_factory=Binaries)
    generate: list[Generate] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        """Build a Config from decoded YAML data."""
        data = _mapping(data, "config")
        return cls(
            cache_path=_string(data.get("cache_path"), "cache_path"),
            deps=[_string(dep, "dep") for dep in _sequence(data.get("deps"), "deps")],
            binaries=Binaries._parse(data.get("binaries")),
            generate=[Generate._parse(item) for item in _sequence(data.get("generate"), "generate")],
        )

    def build_path(self, work_dir: str) -> str:
        """Return a ``PATH=`` assignment with the bin dir prepended, or ""."""
        if not self.binaries.bin_dir:
            return ""
        return PATH_PREFIX + _join(work_dir, self.binaries.bin_dir) + ":$PATH"

    def build_gobin(self, work_dir: str) -> str:
        """Return a ``GOBIN=`` assignment pointing at the bin dir, or ""."""
        if not self.binaries.bin_dir:
            return ""
        return GOBIN_PREFIX + _join(work_dir, self.binaries.bin_dir)


def read_config(filepath: str) -> Config:
    """Read and parse a configuration file."""
    try:
        with open(filepath, encoding="utf-8") as handle:
            text = handle.read()
    except FileNotFoundError as exc:
        raise ConfigFileNotFoundError(f"config file not found: {filepath}") from exc
    except OSError as exc:
        raise ConfigError(f"error opening config file: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"error parsing config file from yaml: {exc}") from exc

    config = Config.from_dict(data)
    config.cache_path = config.cache_path or DEFAULT_CACHE_PATH
    return config