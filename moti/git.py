"""A module repository backed by a bare git clone in the cache."""

from __future__ import annotations

import logging
import os
import urllib.error
import urllib.request
from dataclasses import dataclass
from html.parser import HTMLParser

from moti.console import Console
from moti.models import (
    CacheDownloadPaths,
    GeneratedVersionParts,
    ModuleFileNotFoundError,
    MotiError,
    RequestedVersion,
    Revision,
    VersionNotFoundError,
)
from moti.repository import Repo

logger = logging.getLogger(__name__)

# HEAD is the git keyword used when no version is requested.
GIT_LATEST_VERSION_REF = "HEAD"
GIT_REFS_TAG_PREFIX = "refs/tags/"

_CONSOLE_ERRORS = (MotiError, OSError)


class _GoImportParser(HTMLParser):
    """Collects the repository root from ``<meta name="go-import">`` tags."""

    def __init__(self, remote_url: str) -> None:
        super().__init__(convert_charrefs=True)
        self.remote_url = remote_url

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag != "meta":
            return
        meta_name = ""
        content = ""
        for key, value in attrs:
            value = value or ""
            if key == "name" and value == "go-import":
                meta_name = value
            if key == "content":
                content = value
        if meta_name == "go-import" and content:
            parts = content.split()
            if len(parts) == 3:
                self.remote_url = parts[2]


def get_remote(remote_url: str) -> str:
    """Resolve a module path to its repository URL via the go-import meta tag.

    A URL without scheme gets ``https://``. If the page has no go-import tag,
    the URL itself is returned.
    """
    if not remote_url.startswith("http"):
        remote_url = "https://" + remote_url

    try:
        with urllib.request.urlopen(remote_url) as response:
            body = response.read()
    except urllib.error.HTTPError as exc:
        body = exc.read()
        exc.close()
    except (urllib.error.URLError, ValueError, OSError) as exc:
        raise MotiError(f"reading page: {exc}") from exc

    parser = _GoImportParser(remote_url)
    parser.feed(body.decode("utf-8", errors="replace"))
    parser.close()
    return parser.remote_url


def _split_lines(output: str) -> list[list[str]]:
    return [fields for fields in (line.split() for line in output.split("\n")) if len(fields) == 2]


@dataclass
class GitRepo(Repo):
    """A module repository driven by the git command line."""

    console: Console
    cache_dir: str = ""
    remote_url: str = ""

    def _git(self, *args: str) -> str:
        return self.console.run_cmd(self.cache_dir, "git", *args)

    def archive(self, revision: Revision, cache_download_paths: CacheDownloadPaths) -> None:
        """Write the revision's proto files to the archive path as a zip."""
        abs_path = os.path.abspath(cache_download_paths.archive_file)
        try:
            self._git("archive", "--format=zip", revision.commit_hash, "-o", abs_path, "*.proto")
        except _CONSOLE_ERRORS as exc:
            raise MotiError(f"utils.RunCmd: {exc}") from exc

    def fetch(self, revision: Revision) -> None:
        """Fetch the revision's commit from origin."""
        try:
            self._git("fetch", "-f", "origin", "--depth=1", revision.commit_hash)
        except _CONSOLE_ERRORS as exc:
            raise MotiError(f"adapters.RunCmd (fetch): {exc}") from exc

    def read_file(self, revision: Revision, file_name: str) -> str:
        """Return a file's content at the revision's commit."""
        try:
            return self._git("cat-file", "-p", f"{revision.commit_hash}:{file_name}")
        except _CONSOLE_ERRORS as exc:
            # git's stderr is too varied to parse; any failure means no such file.
            raise ModuleFileNotFoundError(f"file not found: {file_name}") from exc

    def read_revision(self, requested_version: RequestedVersion) -> Revision:
        """Resolve a requested version to a commit and a version name."""
        requested_version = RequestedVersion(requested_version)
        if requested_version.is_generated() or requested_version.is_commit_hash():
            revision = self._revision_by_commit_hash(requested_version)
        elif requested_version.is_omitted():
            revision = self._revision_for_latest_commit()
        else:
            revision = self._revision_by_tag(requested_version)

        if not revision.commit_hash:
            raise VersionNotFoundError(f"version not found: {requested_version}")

        logger.debug("Revision %s", revision)
        return revision

    def _revision_by_tag(self, requested_version: RequestedVersion) -> Revision:
        tag = str(requested_version)
        try:
            output = self._git("ls-remote", "origin", tag)
        except _CONSOLE_ERRORS as exc:
            raise VersionNotFoundError(f"version not found: {tag}") from exc

        commit_hash = next(
            (
                commit
                for commit, ref in _split_lines(output)
                if ref.startswith(GIT_REFS_TAG_PREFIX) and ref[len(GIT_REFS_TAG_PREFIX):] == tag
            ),
            "",
        )
        return Revision(commit_hash=commit_hash, version=tag)

    def _revision_for_latest_commit(self) -> Revision:
        try:
            head_info = self._git("ls-remote", "origin", GIT_LATEST_VERSION_REF)
        except _CONSOLE_ERRORS as exc:
            raise VersionNotFoundError("version not found: latest") from exc

        parts = head_info.split("\n")[0].split()
        if len(parts) != 2:
            raise MotiError(f"invalid parts of git info: {head_info}")

        return self._revision_for_commit(parts[0])

    def _revision_by_commit_hash(self, requested_version: RequestedVersion) -> Revision:
        commit_hash = str(requested_version)
        try:
            self._git("fetch", "-f", "origin", "--depth=1", commit_hash)
        except _CONSOLE_ERRORS as exc:
            raise VersionNotFoundError(f"version not found: {commit_hash}") from exc

        return self._revision_for_commit(commit_hash)

    def _revision_for_commit(self, commit_hash: str) -> Revision:
        version = self._tag_for_commit(commit_hash)
        if not version:
            version = GeneratedVersionParts(commit_hash=commit_hash).version_string()
        return Revision(commit_hash=commit_hash, version=version)

    def _tag_for_commit(self, commit_hash: str) -> str:
        try:
            output = self._git("ls-remote", "origin")
        except _CONSOLE_ERRORS as exc:
            raise MotiError(f"getTagForCommit: adapters.RunCmd (ls-remote tagInfo): {exc}") from exc

        return next(
            (
                ref[len(GIT_REFS_TAG_PREFIX):]
                for commit, ref in _split_lines(output)
                if commit == commit_hash and ref.startswith(GIT_REFS_TAG_PREFIX)
            ),
            "",
        )


def new_git_repo(remote: str, cache_dir: str, console: Console) -> GitRepo:
    """Return a repository cached in ``cache_dir``, initialising it if needed."""
    repo = GitRepo(console=console, cache_dir=cache_dir)
    repo.remote_url = get_remote(remote)

    if os.path.exists(os.path.join(cache_dir, "objects")):
        return repo

    try:
        console.run_cmd(cache_dir, "git", "init", "--bare")
    except _CONSOLE_ERRORS as exc:
        raise MotiError(f"adapters.RunCmd (init): {exc}") from exc

    try:
        console.run_cmd(cache_dir, "git", "remote", "add", "origin", repo.remote_url)
    except _CONSOLE_ERRORS as exc:
        raise MotiError(f"adapters.RunCmd (add origin): {exc}") from exc

    return repo