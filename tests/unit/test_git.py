"""Unit tests for the Git probe."""

from __future__ import annotations

import pytest

from revstamp.git import GitProbe, parse_branch_listing
from revstamp.process import CommandError
from tests.helpers.fakes import FakeCommandRunner, git_responses
from tests.helpers.log_capture import capture_module_logs


class TestParseBranchListing:
    """Tests for parse_branch_listing."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("master", ["master"]),
            ("* master", ["master"]),
            ("* master\nbranch", ["master", "branch"]),
            ("* (HEAD detached at 6f9a90e36e6)\nmaster\n", ["master"]),
            ("  feature/x\n* main\n", ["feature/x", "main"]),
            ("\n\n", []),
            ("* (HEAD detached from origin/main)", []),
        ],
    )
    def test_listing(self, text: str, expected: list[str]) -> None:
        """Markers and detached-HEAD lines are removed."""
        assert parse_branch_listing(text) == expected


class TestIsGit:
    """Tests for GitProbe.is_git."""

    @pytest.mark.parametrize(
        ("stdout", "expected"),
        [("true\n", True), ("false\n", False), ("", False)],
    )
    def test_work_tree_check(self, stdout: str, *, expected: bool) -> None:
        """Only output trimming to exactly "true" marks a work tree."""
        runner = FakeCommandRunner(
            {("git", "rev-parse", "--is-inside-work-tree"): stdout}
        )

        assert GitProbe(runner=runner).is_git() is expected

    def test_command_failure_means_not_git(self) -> None:
        """A failing git command is not an error."""
        runner = FakeCommandRunner(
            {
                ("git", "rev-parse", "--is-inside-work-tree"): CommandError.exit_status(
                    "git rev-parse --is-inside-work-tree", 128, "not a git repository"
                )
            }
        )

        assert GitProbe(runner=runner).is_git() is False


class TestHeadTimestamp:
    """Tests for GitProbe.head_timestamp."""

    def test_returns_committer_time(self) -> None:
        """The committer time is returned trimmed."""
        runner = FakeCommandRunner(git_responses("* main", "1552231634000"))

        assert GitProbe(runner=runner).head_timestamp() == "1552231634000"

    def test_none_outside_git(self) -> None:
        """No work tree means no log query."""
        runner = FakeCommandRunner()

        assert GitProbe(runner=runner).head_timestamp() is None
        assert runner.calls == [("git", "rev-parse", "--is-inside-work-tree")]

    def test_timestamp_alias(self) -> None:
        """The timestamp source alias returns the HEAD timestamp."""
        runner = FakeCommandRunner(git_responses("* main", "1552231634000"))

        assert GitProbe(runner=runner).timestamp() == "1552231634000"


class TestGuessBranch:
    """Tests for GitProbe.guess_branch."""

    def test_single_branch(self) -> None:
        """A single containing branch is returned."""
        runner = FakeCommandRunner(git_responses("* master\n"))

        assert GitProbe(runner=runner).guess_branch() == "master"

    def test_detached_head_is_ignored(self) -> None:
        """The detached-HEAD placeholder does not count as a branch."""
        runner = FakeCommandRunner(
            git_responses("* (HEAD detached at 6f9a90e36e6)\nmaster\n")
        )

        assert GitProbe(runner=runner).guess_branch() == "master"

    def test_ambiguous_listing_yields_none(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Several containing branches are ambiguous."""
        capture = capture_module_logs(monkeypatch, "revstamp.git")
        runner = FakeCommandRunner(git_responses("* master\nbranch\n"))

        assert GitProbe(runner=runner).guess_branch() is None
        assert any("master, branch" in message for message in capture.messages())

    def test_empty_listing_yields_none(self) -> None:
        """No containing branch yields None."""
        runner = FakeCommandRunner(git_responses("* (HEAD detached at 6f9a90e)\n"))

        assert GitProbe(runner=runner).guess_branch() is None

    def test_none_outside_git(self) -> None:
        """No work tree means no guess."""
        assert GitProbe(runner=FakeCommandRunner()).guess_branch() is None

    def test_branch_alias(self) -> None:
        """The branch source alias delegates to the heuristic."""
        runner = FakeCommandRunner(git_responses("* develop"))

        assert GitProbe(runner=runner).branch() == "develop"
