import os
import zipfile

import pytest

from moti.models import (
    CacheDownloadPaths,
    LockFileInfo,
    Module,
    ModuleConfig,
    ModuleNotFoundInLockFileError,
    ModuleNotInstalledError,
    OMITTED,
    RequestedVersion,
    Revision,
)
from moti.storage import Storage, hash_dir, is_versions_matched, make_renamer


class FakeLockFile:
    def __init__(self, info=None):
        self.info = info

    def read(self, module_name):
        if self.info is None:
            raise ModuleNotFoundInLockFileError()
        return self.info


@pytest.mark.parametrize(
    ("directories", "passed", "expected"),
    [
        ([], "proto/file.proto", "proto/file.proto"),
        (["proto/protovalidate"], "proto/protovalidate/buf/validate/validate.proto", "buf/validate/validate.proto"),
        (
            ["proto/protovalidate", "proto/protovalidate-testing"],
            "proto/protovalidate/buf/validate/validate.proto",
            "buf/validate/validate.proto",
        ),
    ],
)
def test_make_renamer(directories, passed, expected):
    renamer = make_renamer(ModuleConfig(directories=directories))
    assert renamer(passed) == expected


@pytest.mark.parametrize(
    ("requested", "locked", "expected"),
    [
        (OMITTED, "anything", True),
        (RequestedVersion("v1.2.3"), "v1.2.3", True),
        (RequestedVersion("v1.2.3-1"), "v1.2.3", False),
    ],
)
def test_is_versions_matched(requested, locked, expected):
    assert is_versions_matched(requested, locked) is expected


def test_install_dir():
    storage = Storage("/tmp/moti")
    assert storage.install_dir("github.com/user/repo", "v1.0.0") == "/tmp/moti/mod/github.com/user/repo/v1.0.0"
    assert storage.install_dir("github.com/user/repo", "v1/2/3") == "/tmp/moti/mod/github.com/user/repo/v1-2-3"


def test_cache_download_paths():
    storage = Storage("/tmp/moti")
    paths = storage.cache_download_paths(Module("github.com/user/repo"), Revision(version="v1.0.0"))
    assert paths.cache_download_dir == "/tmp/moti/cache/download/github.com/user/repo"
    assert paths.archive_file == "/tmp/moti/cache/download/github.com/user/repo/v1.0.0.zip"
    assert paths.archive_hash_file == "/tmp/moti/cache/download/github.com/user/repo/v1.0.0.ziphash"
    assert paths.module_info_file == "/tmp/moti/cache/download/github.com/user/repo/v1.0.0.info"


def test_create_cache_repository_dir(tmp_path):
    storage = Storage(str(tmp_path))
    path = storage.create_cache_repository_dir("repo1")
    assert path.startswith(str(tmp_path))
    assert os.path.isdir(path)
    assert storage.create_cache_repository_dir("repo1") == path
    assert storage.create_cache_repository_dir("repo2") != path


def test_create_cache_download_dir(tmp_path):
    storage = Storage(str(tmp_path))
    target = tmp_path / "download"
    storage.create_cache_download_dir(CacheDownloadPaths(cache_download_dir=str(target)))
    assert target.is_dir()


def test_hash_dir_properties(tmp_path):
    (tmp_path / "a.proto").write_text("syntax = \"proto3\";")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.proto").write_text("message B {}")
    first = hash_dir(str(tmp_path), "")
    assert first.startswith("h1:")
    assert hash_dir(str(tmp_path), "") == first
    assert hash_dir(str(tmp_path), "prefix") != first
    (tmp_path / "sub" / "b.proto").write_text("message C {}")
    assert hash_dir(str(tmp_path), "") != first


def test_hash_dir_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        hash_dir(str(tmp_path / "missing"), "")


def test_installed_module_hash_not_installed(tmp_path):
    with pytest.raises(ModuleNotInstalledError):
        Storage(str(tmp_path)).installed_module_hash("github.com/user/repo", "v1.0.0")


def test_is_module_installed_not_in_lock_file(tmp_path):
    storage = Storage(str(tmp_path), FakeLockFile())
    assert storage.is_module_installed(Module("m1")) is False


def _install_fixture(tmp_path, name, version):
    install_dir = tmp_path / "mod" / name / version
    install_dir.mkdir(parents=True)
    (install_dir / "file.proto").write_text('syntax = "proto3";')
    return install_dir


def test_is_module_installed_matches(tmp_path):
    name, version = "github.com/user/repo", "v1.0.0"
    _install_fixture(tmp_path, name, version)
    module_hash = Storage(str(tmp_path)).installed_module_hash(name, version)
    storage = Storage(str(tmp_path), FakeLockFile(LockFileInfo(name, version, module_hash)))
    assert storage.is_module_installed(Module(name, RequestedVersion(version))) is True
    assert storage.is_module_installed(Module(name)) is True


def test_is_module_installed_version_mismatch(tmp_path):
    name, version = "github.com/user/repo", "v1.0.0"
    _install_fixture(tmp_path, name, version)
    module_hash = Storage(str(tmp_path)).installed_module_hash(name, version)
    storage = Storage(str(tmp_path), FakeLockFile(LockFileInfo(name, version, module_hash)))
    assert storage.is_module_installed(Module(name, RequestedVersion("v2.0.0"))) is False


def test_is_module_installed_hash_mismatch(tmp_path):
    name, version = "github.com/user/repo", "v1.0.0"
    _install_fixture(tmp_path, name, version)
    storage = Storage(str(tmp_path), FakeLockFile(LockFileInfo(name, version, "h1:other")))
    assert storage.is_module_installed(Module(name, RequestedVersion(version))) is False


def test_is_module_installed_missing_dir(tmp_path):
    storage = Storage(str(tmp_path), FakeLockFile(LockFileInfo("m", "v1", "h1:x")))
    assert storage.is_module_installed(Module("m")) is False


def test_install_extracts_with_renamer(tmp_path):
    root = tmp_path / "root"
    archive = tmp_path / "archive.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("proto/api/", "")
        zf.writestr("proto/api/service.proto", "service S {}")
        zf.writestr("other/x.proto", "message X {}")

    storage = Storage(str(root))
    module = Module("github.com/user/repo")
    revision = Revision(commit_hash="abc", version="v1/0")
    result = storage.install(
        CacheDownloadPaths(archive_file=str(archive)),
        module,
        revision,
        ModuleConfig(directories=["proto/api"]),
    )

    install_dir = storage.install_dir(module.name, revision.version)
    assert install_dir.endswith("v1-0")
    assert (root / "mod" / "github.com/user/repo" / "v1-0" / "service.proto").read_text() == "service S {}"
    assert os.path.isfile(os.path.join(install_dir, "other", "x.proto"))
    assert result == storage.installed_module_hash(module.name, revision.version)


def test_install_missing_archive(tmp_path):
    storage = Storage(str(tmp_path))
    with pytest.raises(FileNotFoundError):
        storage.install(
            CacheDownloadPaths(archive_file=str(tmp_path / "missing.zip")),
            Module("m"),
            Revision(version="v1"),
            ModuleConfig(),
        )