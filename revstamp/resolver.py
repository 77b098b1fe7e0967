"""Combine the branch and timestamp sources in a fixed priority order.

Branch: the SVN working copy, then ``SVN_URL``, then the branch variables set
by CI systems, then the Git branch-membership heuristic. CI variables come
before Git because a commit may belong to several branches.

Timestamp: SVN, then Git, then the TFS REST lookup, which is tried last as the
only source that needs the network.

Each source is consulted only until one returns a value.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from revstamp.environment import EnvironmentReader
from revstamp.git import GitProbe
from revstamp.logging import get_logger, log_error, log_info
from revstamp.process import CommandRunner, run_command
from revstamp.svn import SvnProbe
from revstamp.tfs import TfsChangesetClient, TfsError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from revstamp.sources import TimestampSource

logger = get_logger(__name__)

BRANCH_VARIABLES: tuple[str, ...] = (
    # common names
    "BRANCH",
    "branch",
    "GIT_BRANCH",
    # TeamCity
    "build_branch",
    "BUILD_BRANCH",
    # Jenkins
    "BRANCH_NAME",
    # Azure DevOps/TFS
    "BUILD_SOURCEBRANCHNAME",
    # CircleCI
    "CIRCLE_BRANCH",
    # Travis CI
    "TRAVIS_BRANCH",
    # Bitbucket Pipelines
    "BITBUCKET_BRANCH",
    # GitLab CI
    "CI_MERGE_REQUEST_SOURCE_BRANCH_NAME",
    "CI_COMMIT_REF_NAME",
    # AppVeyor
    "APPVEYOR_PULL_REQUEST_HEAD_REPO_BRANCH",
    "APPVEYOR_REPO_BRANCH",
)


class ResolutionError(Exception):
    """Raised when every source has been exhausted without a value."""


class BranchNotFoundError(ResolutionError):
    """Raised when no source could determine the branch."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__("Couldn't resolve the branch")


class TimestampNotFoundError(ResolutionError):
    """Raised when no source could determine the timestamp."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__("Couldn't resolve the timestamp")


@dataclasses.dataclass(frozen=True, slots=True)
class ResolvedIdentity:
    """Branch and epoch-millisecond timestamp for an upload."""

    branch: str
    timestamp: str

    def __str__(self) -> str:
        """Render as the ``branch:timestamp`` token."""
        return f"{self.branch}:{self.timestamp}"


class Resolver:
    """Determine branch and timestamp from every available source.

    Parameters
    ----------
    environment
        Reader used for every environment variable lookup.
    personal_token
        Optional TFS personal access token.
    runner
        Command runner handed to the SVN and Git probes.
    cwd
        Working copy to inspect; defaults to the current directory.
    svn, git, tfs
        Pre-built sources, mainly for tests. Defaults are built from the
        arguments above.

    """

    def __init__(  # noqa: PLR0913
        self,
        environment: EnvironmentReader | None = None,
        *,
        personal_token: str | None = None,
        runner: CommandRunner = run_command,
        cwd: Path | None = None,
        svn: SvnProbe | None = None,
        git: GitProbe | None = None,
        tfs: TimestampSource | None = None,
    ) -> None:
        """Initialise the resolver and its sources."""
        self._environment = environment or EnvironmentReader()
        self._personal_token = personal_token
        self._svn = svn or SvnProbe(self._environment, runner=runner, cwd=cwd)
        self._git = git or GitProbe(runner=runner, cwd=cwd)
        self._tfs = tfs

    def branch_from_svn(self) -> str | None:
        """Return the branch from the SVN working copy or ``SVN_URL``."""
        log_info(logger, "Trying to guess branch name from SVN")
        branch = self._svn.branch() or self._svn.branch_from_environment()
        if branch is None:
            log_info(logger, "Found no SVN branch")
        else:
            log_info(logger, "Found SVN branch %s", branch)
        return branch

    def branch_from_environment(self) -> str | None:
        """Return the first branch variable set by a CI system."""
        log_info(logger, "Trying to guess branch name from environment variables")
        branch = self._environment.first(BRANCH_VARIABLES)
        if branch is None:
            log_info(logger, "Found no branch in environment")
        else:
            log_info(logger, "Found branch %s in environment", branch)
        return branch

    def guess_branch_from_git(self) -> str | None:
        """Return the only local Git branch containing HEAD, if unique."""
        log_info(logger, "Trying to guess branch name from Git")
        return self._git.guess_branch()

    def guess_branch(self) -> str | None:
        """Return the branch from the first source that knows it."""
        log_info(logger, "Trying to determine branch")
        return (
            self.branch_from_svn()
            or self.branch_from_environment()
            or self.guess_branch_from_git()
        )

    def timestamp_from_svn(self) -> str | None:
        """Return the SVN last-changed timestamp."""
        timestamp = self._svn.timestamp()
        if timestamp is None:
            log_info(logger, "Found no SVN timestamp")
        else:
            log_info(logger, "Found SVN timestamp %s", timestamp)
        return timestamp

    def timestamp_from_git(self) -> str | None:
        """Return the Git HEAD committer timestamp."""
        timestamp = self._git.head_timestamp()
        if timestamp is None:
            log_info(logger, "Found no Git timestamp")
        else:
            log_info(logger, "Found Git timestamp %s", timestamp)
        return timestamp

    def timestamp_from_tfs(self) -> str | None:
        """Return the TFVC changeset timestamp; lookup failures yield ``None``."""
        if self._tfs is not None:
            return self._query_tfs(self._tfs)
        with TfsChangesetClient(
            self._environment, personal_token=self._personal_token
        ) as client:
            return self._query_tfs(client)

    def _query_tfs(self, source: TimestampSource) -> str | None:
        try:
            timestamp = source.timestamp()
        except TfsError as exc:
            log_error(logger, "TFVC timestamp lookup failed [%s]: %s", exc.kind, exc)
            return None
        if timestamp is None:
            log_info(logger, "Found no TFVC timestamp")
        else:
            log_info(logger, "Found TFVC timestamp %s", timestamp)
        return timestamp

    def guess_timestamp(self) -> str | None:
        """Return the timestamp from the first source that knows it."""
        log_info(logger, "Trying to determine timestamp")
        return (
            self.timestamp_from_svn()
            or self.timestamp_from_git()
            or self.timestamp_from_tfs()
        )

    def resolve(self, branch_override: str | None = None) -> ResolvedIdentity:
        """Resolve branch and timestamp.

        Parameters
        ----------
        branch_override
            Branch supplied by the operator; skips branch detection.

        Raises
        ------
        BranchNotFoundError
            If no source yields a branch.
        TimestampNotFoundError
            If no source yields a timestamp.

        """
        branch = branch_override or self.guess_branch()
        if branch is None:
            raise BranchNotFoundError
        timestamp = self.guess_timestamp()
        if timestamp is None:
            raise TimestampNotFoundError
        return ResolvedIdentity(branch=branch, timestamp=timestamp)


__all__ = [
    "BRANCH_VARIABLES",
    "BranchNotFoundError",
    "ResolutionError",
    "ResolvedIdentity",
    "Resolver",
    "TimestampNotFoundError",
]
