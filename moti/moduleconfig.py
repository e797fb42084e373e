"""Reading the configuration stored inside a module's repository."""

from __future__ import annotations

import logging
from typing import Any

import yaml

from moti.config import DEFAULT_CONFIG_FILE_PATH, ConfigError
from moti.models import Module, ModuleConfig, ModuleFileNotFoundError, Revision, new_module
from moti.repository import Repo

logger = logging.getLogger(__name__)

BUF_WORK_FILE = "buf.work.yaml"


def _decode_first_document(content: str, what: str) -> dict:
    loader = yaml.SafeLoader(content)
    try:
        if not loader.check_data():
            raise ConfigError(f"error decoding {what}: no YAML document")
        data: Any = loader.get_data()
    except yaml.YAMLError as exc:
        raise ConfigError(f"error decoding {what}: {exc}") from exc
    finally:
        loader.dispose()

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"error decoding {what}: expected a mapping")
    return data


def _string_list(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{what} must be a list")
    items = []
    for item in value:
        if isinstance(item, (dict, list)):
            raise ConfigError(f"{what} must hold strings")
        items.append("" if item is None else str(item))
    return items


def read_buf_work(repo: Repo, revision: Revision) -> list[str]:
    """Return the directories listed in the repository's buf.work.yaml."""
    try:
        content = repo.read_file(revision, BUF_WORK_FILE)
    except ModuleFileNotFoundError:
        logger.debug("buf config not found")
        return []

    data = _decode_first_document(content, BUF_WORK_FILE)
    return _string_list(data.get("directories"), "directories")


def read_moti(repo: Repo, revision: Revision) -> list[Module]:
    """Return the dependencies listed in the repository's moti.yaml."""
    try:
        content = repo.read_file(revision, DEFAULT_CONFIG_FILE_PATH)
    except ModuleFileNotFoundError:
        logger.debug("moti config not found")
        return []

    data = _decode_first_document(content, DEFAULT_CONFIG_FILE_PATH)
    return [new_module(dep) for dep in _string_list(data.get("deps"), "deps")]


class ModuleConfigReader:
    """Reads a module's proto directories and dependencies from its repository."""

    def read_from_repo(self, repo: Repo, revision: Revision) -> ModuleConfig:
        """Return the module configuration found at ``revision``."""
        return ModuleConfig(
            directories=read_buf_work(repo, revision),
            dependencies=read_moti(repo, revision),
        )