"""The interface of a module's source repository."""

from __future__ import annotations

import abc

from moti.models import CacheDownloadPaths, RequestedVersion, Revision


class Repo(abc.ABC):
    """A remote repository holding a module's proto files."""

    @abc.abstractmethod
    def read_file(self, revision: Revision, file_name: str) -> str:
        """Return a file's content at ``revision``.

        Raises ModuleFileNotFoundError when the file does not exist.
        """

    @abc.abstractmethod
    def archive(self, revision: Revision, cache_download_paths: CacheDownloadPaths) -> None:
        """Write the revision's files to ``cache_download_paths.archive_file``."""

    @abc.abstractmethod
    def read_revision(self, requested_version: RequestedVersion) -> Revision:
        """Resolve a requested version; an omitted version means the latest commit."""

    @abc.abstractmethod
    def fetch(self, revision: Revision) -> None:
        """Fetch the revision from the remote repository."""