"""
Console entry point tests.
"""
import json
import os

import pytest

from colortags.cli import build_parser, run
from colortags.core.locator import ServiceLocator
from colortags.tags.codec import TagStoreCodec


@pytest.fixture
def workspace(tmp_path):
    files = tmp_path / "files"
    files.mkdir()
    for name in ("a.txt", "b.txt", "c.txt"):
        (files / name).write_text(name, encoding="utf-8")

    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "storage": {"path": str(tmp_path / "tags.json")},
        "general": {"log_dir": str(tmp_path / "logs")},
    }), encoding="utf-8")
    return tmp_path


@pytest.fixture(autouse=True)
def fresh_locator():
    ServiceLocator().reset()
    yield
    ServiceLocator().reset()


def cli(workspace, *args):
    ServiceLocator().reset()
    return run(["--config", str(workspace / "config.json"), *args])


def test_no_command_prints_help(capsys):
    assert run([]) == 1
    assert "usage" in capsys.readouterr().out

def test_parser_commands():
    args = build_parser().parse_args(["tag", "red", "x", "y"])
    assert (args.command, args.color, args.files) == ("tag", "red", ["x", "y"])

def test_tag_show_untag(workspace, capsys):
    files = workspace / "files"

    assert cli(workspace, "tag", "red", str(files / "a.txt"), str(files / "b.txt")) == 0
    assert "Tagged 2 file(s) red" in capsys.readouterr().out

    saved = TagStoreCodec().load(str(workspace / "tags.json"))
    assert saved.ids_with_color("red") == {str(files / "a.txt"), str(files / "b.txt")}

    assert cli(workspace, "show", "red") == 0
    out = capsys.readouterr().out
    assert "red (2)" in out
    assert str(files / "a.txt") in out

    assert cli(workspace, "untag", str(files / "a.txt")) == 0
    saved = TagStoreCodec().load(str(workspace / "tags.json"))
    assert saved.ids_with_color("red") == {str(files / "b.txt")}

def test_colors(workspace, capsys):
    files = workspace / "files"
    cli(workspace, "tag", "blue", str(files / "c.txt"))
    capsys.readouterr()

    assert cli(workspace, "colors") == 0
    assert capsys.readouterr().out.strip() == "blue\t1"

def test_show_without_tags(workspace, capsys):
    assert cli(workspace, "show") == 0
    assert "No tagged files" in capsys.readouterr().out
