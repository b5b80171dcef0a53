"""
Tests for the dotinstall command line.

These drive the Typer app end to end against a temporary install root.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from dotinstall.cli.main_cli import main_app
from dotinstall.core.config import Settings

runner = CliRunner()


@pytest.fixture
def root(tmp_path):
    root = tmp_path / "install"
    tag_dir = root / ".tags"
    tag_dir.mkdir(parents=True)
    (tag_dir / "editors").write_text("emacs\nnano\nvim\n")
    (tag_dir / "cli").write_text("git\nnano\nvim\n")
    (tag_dir / "fonts").write_text("fira\n")
    return root


def invoke(root, *args):
    return runner.invoke(main_app, ["--root", str(root), *args])


def lines(result):
    return result.stdout.splitlines()


def test_query_and(root):
    result = invoke(root, "tags", "query", "editors", "cli")
    assert result.exit_code == 0
    assert lines(result) == ["nano", "vim"]
    assert (root / ".tags" / ".query").read_text() == "nano\nvim\n"


def test_query_with_or_flag(root):
    result = invoke(root, "tags", "query", "cli", "-o", "fonts")
    assert result.exit_code == 0
    assert lines(result) == ["fira", "git", "nano", "vim"]


def test_query_without_operands_lists_universe(root):
    result = invoke(root, "tags", "query", "--no-save")
    assert result.exit_code == 0
    assert lines(result) == ["emacs", "fira", "git", "nano", "vim"]
    assert not (root / ".tags" / ".query").exists()


def test_malformed_query_exits_2(root):
    result = invoke(root, "tags", "query", "editors", "--or")
    assert result.exit_code == 2


@pytest.mark.parametrize(
    "args",
    [["tags", "query", "editors"], ["tags", "list"], ["tags", "show", "editors"], ["tags", "check"]],
)
def test_read_commands_require_existing_root(tmp_path, args):
    missing = tmp_path / "typo"
    result = invoke(missing, *args)
    assert result.exit_code == 1
    assert not missing.exists()


def test_query_writes_log_file(root):
    invoke(root, "tags", "query", "brand-new-tag")
    assert (root / ".tags" / "brand-new-tag").exists()
    assert "brand-new-tag" in (root / ".log").read_text()


def test_add_show_remove(root):
    (root / "vim").mkdir()
    result = invoke(root, "tags", "add", "favorites", "vim", "git")
    assert result.exit_code == 0

    result = invoke(root, "tags", "show", "favorites")
    assert lines(result) == ["git", "vim"]
    assert (root / "vim" / ".tags").read_text() == "favorites\n"

    result = invoke(root, "tags", "remove", "favorites", "git")
    assert result.exit_code == 0
    assert (root / ".tags" / "favorites").read_text() == "vim\n"


def test_list_tags(root):
    result = invoke(root, "tags", "list")
    assert result.exit_code == 0
    assert "editors" in result.stdout and "fonts" in result.stdout


def test_check(root):
    result = invoke(root, "tags", "check")
    assert result.exit_code == 0
    assert result.stdout.startswith("OK")

    (root / ".tags" / "cli").write_text("vim\ngit\n")
    result = invoke(root, "tags", "check")
    assert result.exit_code == 1
    assert "unsorted" in result.stdout


def test_pkg_add_and_deps(root):
    result = invoke(root, "pkg", "add", "app", "-t", "cli", "-d", "lib", "-c", "main app")
    assert result.exit_code == 0
    assert invoke(root, "pkg", "add", "lib", "-d", "base").exit_code == 0

    result = invoke(root, "deps", "walk", "app")
    assert result.exit_code == 0
    assert lines(result) == ["base", "lib"]

    result = invoke(root, "deps", "walk", "app", "--shallow", "--depths")
    assert lines(result) == ["1 lib", "3 base"]

    result = invoke(root, "deps", "order", "app")
    assert lines(result) == ["base", "lib", "app"]

    result = invoke(root, "pkg", "show", "app")
    assert result.exit_code == 0
    assert "lib" in result.stdout
    assert "main app" in result.stdout


def test_walk_missing_package_fails(root):
    result = invoke(root, "deps", "walk", "missing")
    assert result.exit_code == 1


def test_pkg_show_missing(root):
    assert invoke(root, "pkg", "show", "missing").exit_code == 1


def test_harvest(tmp_path, root):
    script = tmp_path / "setup.sh"
    script.write_text("sudo dnf install vim git\nsudo dnf install git\n")
    out = tmp_path / "out.txt"

    result = invoke(root, "harvest", str(script), "--unique", "--outfile", str(out))
    assert result.exit_code == 0
    assert lines(result) == ["vim", "git"]
    assert out.read_text() == "vim\ngit\n"


def test_harvest_missing_script(tmp_path, root):
    assert invoke(root, "harvest", str(tmp_path / "nope.sh")).exit_code == 1


def test_settings_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("DOTINSTALL_INSTALL_ROOT", str(tmp_path))
    monkeypatch.setenv("DOTINSTALL_UPSTREAM_DIRNAME", "needs")
    config = Settings()
    assert config.root == Path(tmp_path)
    assert config.tag_dir == Path(tmp_path) / ".tags"
    assert config.upstream_dirname == "needs"
