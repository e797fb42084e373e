import pytest

from moti.config import ConfigError
from moti.models import Module, ModuleFileNotFoundError, RequestedVersion, Revision
from moti.moduleconfig import ModuleConfigReader, read_buf_work, read_moti
from moti.repository import Repo

REVISION = Revision(commit_hash="hash")


class FakeRepo(Repo):
    def __init__(self, files, error=None):
        self.files = files
        self.error = error

    def read_file(self, revision, file_name):
        if self.error is not None:
            raise self.error
        try:
            return self.files[file_name]
        except KeyError:
            raise ModuleFileNotFoundError() from None

    def archive(self, revision, cache_download_paths):
        return None

    def read_revision(self, requested_version):
        return Revision()

    def fetch(self, revision):
        return None


def test_read_from_repo_with_both_configs():
    repo = FakeRepo(
        {
            "buf.work.yaml": "directories:\n  - proto\n  - api\n",
            "moti.yaml": "deps:\n  - github.com/user/repo@v1.0.0\n",
        }
    )
    result = ModuleConfigReader().read_from_repo(repo, REVISION)
    assert result.directories == ["proto", "api"]
    assert len(result.dependencies) == 1
    assert result.dependencies[0].name == "github.com/user/repo"
    assert result.dependencies[0].version == RequestedVersion("v1.0.0")


def test_read_from_repo_without_configs():
    result = ModuleConfigReader().read_from_repo(FakeRepo({}), REVISION)
    assert result.directories == []
    assert result.dependencies == []


def test_read_from_repo_invalid_yaml():
    repo = FakeRepo({"moti.yaml": "invalid: yaml: :"})
    with pytest.raises(ConfigError):
        ModuleConfigReader().read_from_repo(repo, REVISION)


def test_read_buf_work_empty_document_is_an_error():
    with pytest.raises(ConfigError):
        read_buf_work(FakeRepo({"buf.work.yaml": ""}), REVISION)


def test_read_moti_dependency_without_version():
    repo = FakeRepo({"moti.yaml": "deps:\n  - github.com/a/b\n  - github.com/c/d@v2\n"})
    assert read_moti(repo, REVISION) == [
        Module("github.com/a/b"),
        Module("github.com/c/d", RequestedVersion("v2")),
    ]


def test_read_buf_work_rejects_non_list():
    with pytest.raises(ConfigError):
        read_buf_work(FakeRepo({"buf.work.yaml": "directories: proto\n"}), REVISION)


def test_other_repository_errors_propagate():
    repo = FakeRepo({}, error=RuntimeError("boom"))
    with pytest.raises(RuntimeError, match="boom"):
        ModuleConfigReader().read_from_repo(repo, REVISION)