import pytest

from moti.models import (
    OMITTED,
    GeneratedVersionParts,
    ModuleFileNotFoundError,
    Module,
    ModuleNotFoundInLockFileError,
    ModuleNotInstalledError,
    MotiError,
    RequestedVersion,
    VersionNotFoundError,
    new_module,
)


@pytest.mark.parametrize(
    "dependency, expected",
    [
        (
            "github.com/company/repository@v1.2.3",
            Module(name="github.com/company/repository", version=RequestedVersion("v1.2.3")),
        ),
        (
            "github.com/company/repository",
            Module(name="github.com/company/repository", version=OMITTED),
        ),
    ],
)
def test_new_module(dependency, expected):
    assert new_module(dependency) == expected


def test_new_module_version_is_requested_version():
    module = new_module("github.com/company/repository@v1.2.3")
    assert module.version.is_omitted() is False


@pytest.mark.parametrize(
    "version, expected",
    [
        (RequestedVersion("v1.2.3"), False),
        (RequestedVersion("some_tag"), False),
        (RequestedVersion("v1.2.3-rc"), False),
        (RequestedVersion("v1.2.3-rc-111222"), False),
        (OMITTED, False),
        (RequestedVersion("v0.0.0-20240222234643-814bf88cf225"), False),
        (RequestedVersion("220e0db758f9ce96d9b1f457234616284530622b"), True),
    ],
)
def test_is_generated(version, expected):
    assert version.is_generated() is expected


@pytest.mark.parametrize(
    "version, expected",
    [
        (RequestedVersion("v1.2.3"), False),
        (RequestedVersion("v0.0.0-20240222234643-814bf88cf225"), False),
        (RequestedVersion("220e0db758f9ce96d9b1f457234616284530622b"), True),
        (RequestedVersion("220e0db"), False),
        (RequestedVersion("220e0db758f9ce96d9b1f457234616284530622g"), False),
    ],
)
def test_is_commit_hash(version, expected):
    assert version.is_commit_hash() is expected


def test_short_hash_is_hex_but_not_commit_hash():
    version = RequestedVersion("220e0db")
    assert version.is_hex() is True
    assert version.is_commit_hash() is False


@pytest.mark.parametrize(
    "version, expected",
    [
        (RequestedVersion("v1.2.3"), False),
        (OMITTED, True),
    ],
)
def test_is_omitted(version, expected):
    assert version.is_omitted() is expected


@pytest.mark.parametrize(
    "parts, expected",
    [
        (GeneratedVersionParts(commit_hash="814bf88cf225"), "814bf88cf225"),
        (GeneratedVersionParts(commit_hash="914af88cf235"), "914af88cf235"),
    ],
)
def test_generated_version_string(parts, expected):
    assert parts.version_string() == expected


@pytest.mark.parametrize(
    "error_class, message",
    [
        (VersionNotFoundError, "version not found"),
        (ModuleFileNotFoundError, "file not found"),
        (ModuleNotInstalledError, "module not installed"),
        (ModuleNotFoundInLockFileError, "module not found in lock file"),
    ],
)
def test_errors_have_default_messages(error_class, message):
    error = error_class()
    assert str(error) == message
    assert issubclass(error_class, MotiError)


def test_module_coerces_plain_string_version():
    module = Module("github.com/company/repository", "v1.2.3")
    assert module.version.is_generated() is False
    assert module.version == "v1.2.3"