"""Running external commands."""

from __future__ import annotations

import abc
import os
import subprocess
from collections.abc import Sequence

from moti.models import MotiError


class RunError(MotiError):
    """An external command failed."""

    def __init__(
        self,
        command: str,
        command_params: Sequence[str] = (),
        directory: str = "",
        err: object = None,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.command_params = list(command_params)
        self.directory = directory
        self.err = err
        self.stderr = stderr
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Err: {self.err}; Stderr: {self.stderr}"


class BinaryNotFoundError(RunError):
    """The shell could not find the requested binary."""

    def __str__(self) -> str:
        return "Binary not found"


def _exit_description(returncode: int) -> str:
    if returncode < 0:
        return f"signal: {-returncode}"
    return f"exit status {returncode}"


class Console(abc.ABC):
    """Something that runs external commands."""

    @abc.abstractmethod
    def run_cmd(self, directory: str, command: str, *args: str) -> str:
        """Run ``command`` with ``args`` in ``directory`` and return its stdout."""


class BashConsole(Console):
    """Runs commands through ``bash -c``."""

    def run_cmd(self, directory: str, command: str, *args: str) -> str:
        line = " ".join((command, *args))
        try:
            proc = subprocess.run(
                ["bash", "-c", line],
                cwd=directory or None,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise RunError(command, args, directory, exc, "") from exc

        if proc.returncode != 0:
            err = _exit_description(proc.returncode)
            if "command not found" in proc.stderr:
                raise BinaryNotFoundError(command, args, directory, err, proc.stderr)
            raise RunError(command, args, directory, err, proc.stderr)

        return proc.stdout


class PowerShellConsole(Console):
    """Runs commands directly, without a shell."""

    def run_cmd(self, directory: str, command: str, *args: str) -> str:
        try:
            proc = subprocess.run(
                [command, *args],
                cwd=directory or None,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise RunError(command, args, directory, exc, "") from exc

        if proc.returncode != 0:
            raise RunError(command, args, directory, _exit_description(proc.returncode), proc.stderr)

        return proc.stdout


def new_console() -> Console:
    """Return the console suited to the current platform."""
    if os.name == "nt":
        return PowerShellConsole()
    return BashConsole()