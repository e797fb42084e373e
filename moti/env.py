"""The environment a command runs in: configuration and adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from moti.config import DEFAULT_CONFIG_FILE_PATH, Config, read_config
from moti.console import Console, new_console
from moti.fs import working_dir
from moti.lockfile import LockFile, open_lock_file
from moti.moduleconfig import ModuleConfigReader
from moti.storage import Storage


@dataclass
class Env:
    """Everything a command needs: where it runs, its config and its adapters."""

    work_dir: str = ""
    moti_config: Config = field(default_factory=Config)
    console: Optional[Console] = None
    storage: Optional[Storage | Any] = None
    module_config: Optional[ModuleConfigReader | Any] = None
    lock_file: Optional[LockFile | Any] = None


def production_env(config_path: str = DEFAULT_CONFIG_FILE_PATH) -> Env:
    """Build the environment from the working directory and a config file.

    Raises ConfigError when the configuration cannot be read.
    """
    work_dir = working_dir()
    moti_config = read_config(config_path)
    lock_file = open_lock_file(work_dir)
    return Env(
        work_dir=work_dir,
        moti_config=moti_config,
        console=new_console(),
        storage=Storage(moti_config.cache_path, lock_file),
        module_config=ModuleConfigReader(),
        lock_file=lock_file,
    )