"""Tests for query parsing and evaluation against a tag store."""

import fcntl

import pytest

from dotinstall.core.exceptions import InstallRootNotFoundError, MalformedOperandError
from dotinstall.tags.query import QueryEvaluator, parse_query
from dotinstall.tags.schemas import Operand, Operator
from dotinstall.tags.store import TagStore

AND, OR = Operator.AND, Operator.OR


@pytest.fixture
def store(tmp_path):
    store = TagStore(tmp_path)
    store.tag_dir.mkdir()
    (store.tag_dir / "editors").write_text("emacs\nnano\nvim\n")
    (store.tag_dir / "cli").write_text("git\nnano\nvim\n")
    (store.tag_dir / "fonts").write_text("fira\nnoto\n")
    return store


def ops(*pairs):
    return [Operand(operator=op, tag=tag) for op, tag in pairs]


class TestParseQuery:

    def test_default_operator_is_and(self):
        assert parse_query(["editors", "cli"]) == ops((AND, "editors"), (AND, "cli"))

    def test_operator_switches_persist(self):
        tokens = ["editors", "-o", "fonts", "cli", "--and", "x"]
        assert parse_query(tokens) == ops(
            (AND, "editors"), (OR, "fonts"), (OR, "cli"), (AND, "x")
        )

    def test_symbol_operators(self):
        assert parse_query(["|", "a", "&", "b"]) == ops((OR, "a"), (AND, "b"))

    def test_signed_tokens_do_not_switch(self):
        assert parse_query(["-o", "a", "&b", "c", "|d"]) == ops(
            (OR, "a"), (AND, "b"), (OR, "c"), (OR, "d")
        )

    def test_empty_query(self):
        assert parse_query([]) == []

    @pytest.mark.parametrize("tokens", [["-o"], ["a", "--and"], ["a/b"], ["|.query"], ["&"], [""]])
    def test_malformed(self, tokens):
        with pytest.raises(MalformedOperandError):
            parse_query(tokens)


def test_empty_query_returns_universe(store):
    result = QueryEvaluator(store).evaluate([])
    assert result.members == store.universe()
    assert result.members == ["emacs", "fira", "git", "nano", "noto", "vim"]


def test_and_intersects(store):
    result = QueryEvaluator(store).evaluate(ops((AND, "editors"), (AND, "cli")))
    assert result.members == ["nano", "vim"]
    assert result.warnings == []


def test_or_widens_after_and(store):
    result = QueryEvaluator(store).evaluate(ops((AND, "editors"), (OR, "fonts")))
    assert result.members == ["emacs", "fira", "nano", "noto", "vim"]


def test_or_is_union_when_tags_cover_universe(tmp_path):
    store = TagStore(tmp_path)
    store.add_members("a", ["1", "3"])
    store.add_members("b", ["2", "3"])
    result = QueryEvaluator(store).evaluate(ops((OR, "a"), (OR, "b")))
    assert result.members == ["1", "2", "3"]


def test_missing_tag_is_created_empty(store):
    result = QueryEvaluator(store).evaluate(ops((AND, "typo")))
    assert result.members == []
    assert (store.tag_dir / "typo").read_text() == ""
    assert "typo" in store.list_tags()


def test_duplicate_lines_do_not_duplicate_results(store):
    (store.tag_dir / "cli").write_text("vim\nvim\ngit\n")
    result = QueryEvaluator(store).evaluate(ops((AND, "cli")))
    assert result.members == ["git", "vim"]


def test_unreadable_tag_is_empty_with_warning(store, monkeypatch):
    real_members = store.members

    def members(tag):
        if tag == "cli":
            raise PermissionError("denied")
        return real_members(tag)

    monkeypatch.setattr(store, "members", members)
    result = QueryEvaluator(store).evaluate(ops((AND, "editors"), (AND, "cli")))
    assert result.members == []
    assert any("cli" in warning for warning in result.warnings)


def test_repeat_runs_are_identical(store):
    evaluator = QueryEvaluator(store)
    first = evaluator.run(["editors", "-o", "fonts"])
    first_bytes = store.query_file.read_bytes()
    second = evaluator.run(["editors", "-o", "fonts"])
    assert first.members == second.members
    assert store.query_file.read_bytes() == first_bytes


def test_run_saves_query_file(store):
    QueryEvaluator(store).run(["editors", "cli"])
    assert store.query_file.read_text() == "nano\nvim\n"


def test_run_without_save(store):
    QueryEvaluator(store).run(["editors"], save=False)
    assert not store.query_file.exists()


def test_query_does_not_modify_tag_files(store):
    before = {tag: (store.tag_dir / tag).read_text() for tag in store.list_tags()}
    QueryEvaluator(store).run(["-o", "editors", "&cli"])
    after = {tag: (store.tag_dir / tag).read_text() for tag in before}
    assert before == after


def test_missing_root_is_an_error_and_not_created(tmp_path):
    root = tmp_path / "no-such-root"
    with pytest.raises(InstallRootNotFoundError):
        QueryEvaluator(TagStore(root)).evaluate([])
    assert not root.exists()


def test_run_reads_shared_and_writes_exclusive(store, monkeypatch):
    calls = []

    def flock(fd, operation):
        calls.append((operation, store.query_file.exists()))

    monkeypatch.setattr(fcntl, "flock", flock)
    QueryEvaluator(store).run(["editors"])
    assert calls == [
        (fcntl.LOCK_SH, False),
        (fcntl.LOCK_UN, False),
        (fcntl.LOCK_EX, False),
        (fcntl.LOCK_UN, True),
    ]
