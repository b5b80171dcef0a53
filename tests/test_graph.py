"""Tests for LinkGraph, link() and PackageEditor."""

import os

import pytest

from dotinstall.core.exceptions import PackageNotFoundError
from dotinstall.deps.graph import LinkGraph, link
from dotinstall.deps.packages import PackageEditor
from dotinstall.deps.walker import DependencyWalker
from dotinstall.tags.store import TagStore


@pytest.fixture
def root(tmp_path):
    for name in ("app", "lib", "base", "tool"):
        (tmp_path / name).mkdir()
    link(tmp_path, "app", "lib")
    link(tmp_path, "lib", "base")
    link(tmp_path, "tool", "base")
    return tmp_path


def test_link_creates_symlink_pair(root):
    up = root / "app" / "upstream" / "lib"
    down = root / "lib" / "downstream" / "app"
    assert up.is_symlink() and down.is_symlink()
    assert os.readlink(up) == os.path.join("..", "..", "lib")
    assert up.resolve() == (root / "lib").resolve()
    assert down.resolve() == (root / "app").resolve()


def test_link_is_idempotent(root):
    link(root, "app", "lib")
    assert os.listdir(root / "app" / "upstream") == ["lib"]


def test_link_rejects_self_and_missing(root):
    with pytest.raises(ValueError):
        link(root, "app", "app")
    with pytest.raises(PackageNotFoundError):
        link(root, "app", "missing")


def test_scan_builds_adjacency(root):
    graph = LinkGraph.scan(root)
    assert graph.nodes == ["app", "base", "lib", "tool"]
    assert graph.dependencies("app") == ["lib"]
    assert graph.dependencies("app", transitive=True) == ["base", "lib"]
    assert graph.dependents("base") == ["lib", "tool"]


def test_scan_uses_downstream_entries(tmp_path):
    # Only the downstream half of a link exists
    (tmp_path / "lib" / "downstream" / "app").mkdir(parents=True)
    graph = LinkGraph.scan(tmp_path)
    assert graph.dependencies("app") == ["lib"]


def test_scan_missing_root(tmp_path):
    assert LinkGraph.scan(tmp_path / "nope").nodes == []


def test_install_order_puts_dependencies_first(root):
    result = LinkGraph.scan(root).install_order()
    order = result.order
    assert result.cycles == []
    assert sorted(order) == ["app", "base", "lib", "tool"]
    assert order.index("base") < order.index("lib") < order.index("app")
    assert order.index("base") < order.index("tool")


def test_install_order_for_subset(root):
    result = LinkGraph.scan(root).install_order(["app"])
    assert result.order == ["base", "lib", "app"]


def test_install_order_reports_cycles():
    graph = LinkGraph({"a": ["b"], "b": ["a"], "c": ["a"], "d": []})
    result = graph.install_order()
    assert result.cycles == [["a", "b"]]
    assert result.order == ["d", "a", "b", "c"]


def test_self_loop_is_a_cycle():
    result = LinkGraph({"a": ["a"]}).install_order()
    assert result.cycles == [["a"]]


def test_packages_behind_a_cycle_keep_dependency_order():
    # a -> x -> (m <-> n): x and a only depend on the cycle, they are not in it
    graph = LinkGraph({"a": ["x"], "x": ["m"], "m": ["n"], "n": ["m"]})
    result = graph.install_order()
    assert result.cycles == [["m", "n"]]
    assert result.order == ["m", "n", "x", "a"]


def test_cycle_behind_another_cycle():
    graph = LinkGraph({"p": ["q"], "q": ["p", "b"], "b": ["c"], "c": ["b"], "z": ["p"]})
    result = graph.install_order()
    assert result.cycles == [["b", "c"], ["p", "q"]]
    assert result.order == ["b", "c", "p", "q", "z"]


def test_install_order_does_not_change_graph(root):
    graph = LinkGraph.scan(root)
    result = graph.install_order(["app", "unknown"])
    assert result.order == ["base", "lib", "app", "unknown"]
    assert "unknown" not in graph.nodes


class TestPackageEditor:
    """Creating packages with tags, comments and links."""

    def test_add_package(self, tmp_path):
        editor = PackageEditor(TagStore(tmp_path))
        pkg_dir = editor.add(
            "nvim",
            tags=["editors"],
            upstream=["lua"],
            downstream=["nvim-plugins"],
            comments=["built from source"],
        )

        assert pkg_dir == tmp_path / "nvim"
        assert editor.comments("nvim") == ["built from source"]
        assert editor.store.members("editors") == ["nvim"]
        assert editor.store.package_tags("nvim") == ["editors"]
        assert (tmp_path / "nvim" / "upstream" / "lua").is_symlink()
        assert (tmp_path / "nvim-plugins" / "upstream" / "nvim").is_symlink()

        walk = DependencyWalker().walk(tmp_path / "nvim-plugins")
        assert walk.names == ["lua", "nvim"]

    def test_add_rejects_bad_names(self, tmp_path):
        editor = PackageEditor(TagStore(tmp_path))
        with pytest.raises(ValueError):
            editor.add("../etc")

    @pytest.mark.parametrize(
        "options",
        [
            {"tags": ["ok", "bad/tag"]},
            {"upstream": [".hidden"]},
            {"downstream": ["nvim"]},
        ],
    )
    def test_invalid_add_writes_nothing(self, tmp_path, options):
        editor = PackageEditor(TagStore(tmp_path))
        with pytest.raises(ValueError):
            editor.add("nvim", comments=["note"], **options)
        assert list(tmp_path.iterdir()) == []
