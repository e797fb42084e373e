"""Filesystem access rooted at a directory."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import IO, Optional

WalkCallback = Callable[[str, Optional[BaseException]], object]


class DirWalker:
    """Opens, creates and walks files below a root directory.

    Paths handed to callbacks are relative to the root and slash-separated.
    """

    def __init__(self, root: str | os.PathLike[str], path: str = ".") -> None:
        self.root = os.fspath(root)
        self.path = path or "."

    def _resolve(self, name: str) -> str:
        return os.path.join(self.root, name)

    def open(self, name: str) -> IO[str]:
        """Open a file below the root for reading."""
        return open(self._resolve(name), encoding="utf-8")

    def create(self, name: str) -> IO[str]:
        """Create or truncate a file below the root for writing."""
        return open(self._resolve(name), "w", encoding="utf-8")

    def walk_dir(self, callback: WalkCallback) -> None:
        """Call ``callback(path, error)`` for every entry, in lexical order.

        Exceptions raised by the callback stop the walk and propagate.
        """
        top = self._resolve(self.path)
        try:
            is_dir = os.path.isdir(top) if os.path.lexists(top) else os.stat(top) and False
        except OSError as exc:
            callback(self.path, exc)
            return

        callback(self.path, None)
        if is_dir:
            self._walk_children(self.path, top, callback)

    def _walk_children(self, rel: str, full: str, callback: WalkCallback) -> None:
        try:
            with os.scandir(full) as entries:
                children = sorted(entries, key=lambda entry: entry.name)
        except OSError as exc:
            callback(rel, exc)
            return

        for entry in children:
            child = entry.name if rel == "." else f"{rel}/{entry.name}"
            callback(child, None)
            if entry.is_dir(follow_symlinks=False):
                self._walk_children(child, entry.path, callback)


class FsWalker:
    """Walks arbitrary directories on disk."""

    def walk_dir(self, root: str, callback: WalkCallback) -> None:
        """Walk everything below ``root``; paths are relative to it."""
        DirWalker(root, "").walk_dir(callback)


def working_dir() -> str:
    """Return the current working directory."""
    return os.getcwd()