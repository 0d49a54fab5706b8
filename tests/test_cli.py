import os

import pytest

from skyctl.cli import _parse_options, build_parser, expand_path, load_config, main
from skyctl.completion import completion_script


@pytest.fixture
def no_config(tmp_path):
    return ["--config", str(tmp_path / "missing.yml")]


def test_expand_path_expands_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert expand_path("~/.skywalking.yml") == os.path.join(str(tmp_path), ".skywalking.yml")


def test_expand_path_keeps_plain_path(tmp_path):
    path = str(tmp_path / "conf.yml")
    assert expand_path(path) == path


def test_load_config_missing_file_is_empty(tmp_path):
    assert load_config(str(tmp_path / "nope.yml")) == {}


def test_load_config_reads_yaml(tmp_path):
    path = tmp_path / "conf.yml"
    path.write_text("base-url: http://localhost:12800/graphql\ndebug: true\n")
    assert load_config(str(path)) == {
        "base-url": "http://localhost:12800/graphql",
        "debug": True,
    }


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "conf.yml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_parser_defaults():
    options = build_parser().parse_args([])
    assert options.base_url == "http://127.0.0.1:12800/graphql"
    assert options.grpc_addr == "127.0.0.1:11800"
    assert options.config == "~/.skywalking.yml"
    assert options.debug is False
    assert options.command is None


def test_config_file_fills_omitted_options(tmp_path):
    path = tmp_path / "conf.yml"
    path.write_text("grpc-addr: localhost:9000\ndisplay: json\n")
    options = _parse_options(["--config", str(path), "--display", "yaml"])
    assert options.grpc_addr == "localhost:9000"
    assert options.display == "yaml"
    assert options.config == str(path)


def test_completion_command_prints_script(capsys, no_config):
    assert main([*no_config, "completion", "bash"]) == 0
    assert capsys.readouterr().out == completion_script("bash")


def test_completion_alias(capsys, no_config):
    assert main([*no_config, "completion", "p"]) == 0
    assert capsys.readouterr().out == completion_script("powershell")


def test_auto_complete_top_level(capsys):
    assert main(["--auto_complete"]) == 0
    assert capsys.readouterr().out.split() == ["completion"]


def test_auto_complete_subcommands(capsys):
    assert main(["completion", "--auto_complete"]) == 0
    assert capsys.readouterr().out.split() == ["bash", "powershell"]


def test_auto_complete_flags(capsys):
    assert main(["--", "--auto_complete"]) == 0
    out = capsys.readouterr().out.split()
    assert "--base-url" in out and "--config" in out


def test_invalid_config_fails(tmp_path, capsys):
    path = tmp_path / "conf.yml"
    path.write_text("key: [unclosed\n")
    assert main(["--config", str(path), "completion", "bash"]) == 1
    assert capsys.readouterr().out == ""