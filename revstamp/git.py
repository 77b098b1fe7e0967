"""Branch and timestamp detection for Git work trees."""

from __future__ import annotations

import re
import typing as typ

from revstamp.logging import get_logger, log_debug, log_info
from revstamp.process import CommandError, CommandRunner, run_command

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = get_logger(__name__)

_CURRENT_MARKER = re.compile(r"^\s*[*]\s*")
_DETACHED_HEAD = "HEAD detached"


def parse_branch_listing(branch_text: str) -> list[str]:
    """Return branch names from ``git branch`` output.

    The ``*`` marker for the current branch is stripped, and detached-HEAD
    placeholders and blank lines are dropped.
    """
    names = (_CURRENT_MARKER.sub("", line.strip()) for line in branch_text.splitlines())
    return [name for name in names if name and _DETACHED_HEAD not in name]


class GitProbe:
    """Read branch and timestamp information from a Git work tree."""

    def __init__(
        self,
        *,
        runner: CommandRunner = run_command,
        cwd: Path | None = None,
    ) -> None:
        """Initialise with a command runner and optional working directory."""
        self._runner = runner
        self._cwd = cwd

    def _git(self, *args: str) -> str | None:
        """Run git and return stdout, or ``None`` if the command failed."""
        log_debug(logger, "Running git %s", " ".join(args))
        try:
            return self._runner("git", args, cwd=self._cwd)
        except CommandError as exc:
            log_debug(logger, "%s", exc)
            return None

    def is_git(self) -> bool:
        """Return whether the working directory is inside a Git work tree."""
        stdout = self._git("rev-parse", "--is-inside-work-tree")
        if stdout is not None and stdout.strip() == "true":
            log_debug(logger, "Current directory is in git")
            return True
        log_debug(logger, "Current directory is not in git")
        return False

    def head_timestamp(self) -> str | None:
        """Return the committer time of HEAD as ``"<epoch-seconds>000"``."""
        if not self.is_git():
            return None
        stdout = self._git("--no-pager", "log", "-n1", "--format=%ct000")
        if stdout is None:
            return None
        return stdout.strip() or None

    def timestamp(self) -> str | None:
        """Alias of :meth:`head_timestamp` for the timestamp source protocol."""
        return self.head_timestamp()

    def guess_branch(self) -> str | None:
        """Guess the branch from the local branches containing HEAD.

        A commit can belong to many branches, so a name is returned only when
        exactly one local branch contains HEAD.
        """
        if not self.is_git():
            return None
        stdout = self._git("branch", "--contains")
        if stdout is None:
            return None

        branches = parse_branch_listing(stdout)
        if not branches:
            log_info(
                logger, "Found no branches in the Git repo that contain the HEAD commit"
            )
            return None
        if len(branches) > 1:
            log_info(
                logger,
                "Found more than one branch in the Git repo that contains the "
                "HEAD commit: %s",
                ", ".join(branches),
            )
            return None
        log_info(
            logger,
            "Found exactly one branch in the Git repo that contains the HEAD "
            "commit: %s",
            branches[0],
        )
        return branches[0]

    def branch(self) -> str | None:
        """Alias of :meth:`guess_branch` for the branch source protocol."""
        return self.guess_branch()


__all__ = ["GitProbe", "parse_branch_listing"]
