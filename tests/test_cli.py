import pytest

from moti.cli import build_parser, main


def test_alias_selects_install():
    args = build_parser().parse_args(["i"])
    assert args.command == "install"
    assert args.cfg == "moti.yaml"


def test_alias_selects_generate_with_default_path():
    args = build_parser().parse_args(["g"])
    assert args.command == "generate"
    assert args.path == "."


@pytest.mark.parametrize(
    "argv",
    [
        ["--cfg", "custom.yaml", "install"],
        ["install", "--cfg", "custom.yaml"],
        ["generate", "--cfg", "custom.yaml"],
    ],
)
def test_config_flag_anywhere(argv):
    args = build_parser().parse_args(argv)
    assert args.cfg == "custom.yaml"


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "install" in out
    assert "generate" in out


def test_version_exits_successfully():
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0


@pytest.mark.parametrize("command", ["install", "generate"])
def test_missing_config_fails(tmp_path, command):
    missing = tmp_path / "missing.yaml"
    assert main(["--cfg", str(missing), command]) == 1


@pytest.mark.parametrize("command", ["install", "generate"])
def test_empty_config_succeeds(tmp_path, monkeypatch, command):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "moti.yaml").write_text("deps: []\n")

    assert main([command]) == 0
    assert not (tmp_path / "moti.lock").exists()