"""Tests for the kvlet command line."""

import shutil
import tempfile
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from kvlet.kv.disk import Disk
from kvlet.cli import main, parse_checkout
from kvlet.repository import CheckoutBranch, CheckoutCommitFile, CheckoutFile


@pytest.fixture
def workdir():
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def run(workdir):
    runner = CliRunner(env={"KVLET_LOG_LEVEL": "WARNING"})

    def invoke(*args: str):
        return runner.invoke(main, ["-C", str(workdir), *args])

    return invoke


@pytest.fixture
def initialized(run):
    result = run("init")
    assert result.exit_code == 0, result.output
    return run


class TestParseCheckout:
    def test_file(self):
        assert parse_checkout(["--", "a.txt"]) == CheckoutFile("a.txt")

    def test_commit_file(self):
        assert parse_checkout(["abc123", "--", "a.txt"]) == CheckoutCommitFile(
            "abc123", "a.txt"
        )

    def test_branch(self):
        assert parse_checkout(["dev"]) == CheckoutBranch("dev")

    @pytest.mark.parametrize(
        "operands", [[], ["--"], ["a", "b"], ["abc", "++", "a.txt"], ["a", "--", "b", "c"]]
    )
    def test_incorrect(self, operands):
        with pytest.raises(click.UsageError, match="Incorrect operands"):
            parse_checkout(operands)


class TestCliBasics:
    def test_init(self, run, workdir):
        result = run("init")
        assert result.exit_code == 0
        assert (workdir / ".kvlet").is_dir()

    def test_init_twice(self, initialized):
        result = initialized("init")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_backend_closed_after_command(self, initialized, monkeypatch):
        closed = []
        original = Disk.close

        def close(self):
            closed.append(self)
            original(self)

        monkeypatch.setattr(Disk, "close", close)
        assert initialized("status").exit_code == 0
        assert len(closed) == 1

    def test_not_initialized(self, run):
        result = run("log")
        assert result.exit_code == 1
        assert "Not in an initialized kvlet directory." in result.output

    def test_add_commit_log(self, initialized, workdir):
        (workdir / "a.txt").write_text("hello")
        assert initialized("add", "a.txt").exit_code == 0
        assert initialized("commit", "add a").exit_code == 0

        result = initialized("log")
        assert result.exit_code == 0
        assert result.output.count("===") == 2
        assert "add a" in result.output
        assert "initial commit" in result.output
        assert "Date: Thu Jan 1 00:00:00 1970 +0000" in result.output

    def test_errors_are_reported(self, initialized):
        result = initialized("commit", "nothing staged")
        assert result.exit_code == 1
        assert "No changes added to the commit." in result.output

    def test_add_missing(self, initialized):
        result = initialized("add", "nope.txt")
        assert result.exit_code == 1
        assert "File does not exist." in result.output

    def test_find(self, initialized, workdir):
        (workdir / "a.txt").write_text("hello")
        initialized("add", "a.txt")
        initialized("commit", "findme")
        result = initialized("find", "findme")
        assert result.exit_code == 0
        assert len(result.output.split()) == 1

    def test_status(self, initialized, workdir):
        (workdir / "a.txt").write_text("hello")
        (workdir / "junk.txt").write_text("?")
        initialized("add", "a.txt")
        result = initialized("status")
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[:2] == ["=== Branches ===", "*master"]
        assert "=== Staged Files ===" in lines
        assert lines[lines.index("=== Staged Files ===") + 1] == "a.txt"
        assert lines[lines.index("=== Untracked Files ===") + 1] == "junk.txt"


class TestCliCheckout:
    def test_checkout_file(self, initialized, workdir):
        (workdir / "a.txt").write_text("committed")
        initialized("add", "a.txt")
        initialized("commit", "add a")
        (workdir / "a.txt").write_text("scribbled")

        result = initialized("checkout", "--", "a.txt")
        assert result.exit_code == 0, result.output
        assert (workdir / "a.txt").read_text() == "committed"

    def test_checkout_commit_file(self, initialized, workdir):
        (workdir / "a.txt").write_text("v1")
        initialized("add", "a.txt")
        initialized("commit", "v1")
        commit_id = initialized("find", "v1").output.strip()
        (workdir / "a.txt").write_text("v2")
        initialized("add", "a.txt")
        initialized("commit", "v2")

        result = initialized("checkout", commit_id[:8], "--", "a.txt")
        assert result.exit_code == 0, result.output
        assert (workdir / "a.txt").read_text() == "v1"

    def test_checkout_branch(self, initialized):
        initialized("branch", "dev")
        assert initialized("checkout", "dev").exit_code == 0
        assert "*dev" in initialized("status").output

    def test_checkout_bad_operands(self, initialized):
        result = initialized("checkout", "a", "b")
        assert result.exit_code == 2
        assert "Incorrect operands" in result.output


class TestCliBranchesAndMerge:
    def test_rm_branch(self, initialized):
        initialized("branch", "dev")
        assert initialized("rm-branch", "dev").exit_code == 0
        result = initialized("rm-branch", "dev")
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_merge_conflict(self, initialized, workdir):
        (workdir / "f.txt").write_text("base\n")
        initialized("add", "f.txt")
        initialized("commit", "base")
        initialized("branch", "other")
        (workdir / "f.txt").write_text("mine\n")
        initialized("add", "f.txt")
        initialized("commit", "mine")
        initialized("checkout", "other")
        (workdir / "f.txt").write_text("theirs\n")
        initialized("add", "f.txt")
        initialized("commit", "theirs")
        initialized("checkout", "master")

        result = initialized("merge", "other")
        assert result.exit_code == 0, result.output
        assert "Encountered a merge conflict." in result.output
        assert (workdir / "f.txt").read_text() == (
            "<<<<<<< HEAD\nmine\n=======\ntheirs\n>>>>>>>\n"
        )
        assert "Merge:" in initialized("log").output

    def test_merge_fast_forward(self, initialized, workdir):
        initialized("branch", "other")
        initialized("checkout", "other")
        (workdir / "a.txt").write_text("a")
        initialized("add", "a.txt")
        initialized("commit", "on other")
        initialized("checkout", "master")
        result = initialized("merge", "other")
        assert "Current branch fast-forwarded." in result.output
        assert (workdir / "a.txt").read_text() == "a"

    def test_merge_ancestor(self, initialized, workdir):
        initialized("branch", "other")
        (workdir / "a.txt").write_text("a")
        initialized("add", "a.txt")
        initialized("commit", "on master")
        result = initialized("merge", "other")
        assert result.exit_code == 0
        assert "Given branch is an ancestor of the current branch." in result.output

    def test_reset(self, initialized, workdir):
        (workdir / "a.txt").write_text("v1")
        initialized("add", "a.txt")
        initialized("commit", "v1")
        commit_id = initialized("find", "v1").output.strip()
        (workdir / "a.txt").write_text("v2")
        initialized("add", "a.txt")
        initialized("commit", "v2")
        assert initialized("reset", commit_id[:7]).exit_code == 0
        assert (workdir / "a.txt").read_text() == "v1"

    def test_rm(self, initialized, workdir):
        (workdir / "a.txt").write_text("v1")
        initialized("add", "a.txt")
        initialized("commit", "v1")
        assert initialized("rm", "a.txt").exit_code == 0
        assert not (workdir / "a.txt").exists()
        assert "=== Removed Files ===\na.txt" in initialized("status").output
