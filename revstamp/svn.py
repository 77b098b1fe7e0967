"""Branch and timestamp detection for SVN working copies."""

from __future__ import annotations

import re
import typing as typ

from revstamp.logging import get_logger, log_debug, log_info, log_warning
from revstamp.process import CommandError, CommandRunner, run_command
from revstamp.timestamps import (
    TimestampParseError,
    epoch_seconds_as_millis,
    parse_rfc3339,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

    from revstamp.environment import EnvironmentReader

logger = get_logger(__name__)

SVN_URL_VARIABLE = "SVN_URL"

_BRANCH_PATTERN = re.compile(
    r"/(branches|tags)/(?P<branch>[^/]+)|/(?P<trunk>trunk)(/|$)"
)

# Force untranslated "URL:" labels in `svn info` output; LC_ALL beats LANG
_SVN_ENV = {"LANG": "C", "LC_ALL": "C"}


def extract_branch_from_url(url: str) -> str | None:
    """Return the branch encoded in an SVN URL.

    ``.../branches/<name>/...`` and ``.../tags/<name>/...`` yield ``<name>``;
    a ``trunk`` path segment yields ``"trunk"``. Any other URL yields
    ``None``.
    """
    match = _BRANCH_PATTERN.search(url.strip())
    if match is None:
        return None
    if match["branch"]:
        return match["branch"]
    if match["trunk"]:
        return "trunk"
    return None


class SvnProbe:
    """Read branch and timestamp information from an SVN working copy."""

    def __init__(
        self,
        environment: EnvironmentReader,
        *,
        runner: CommandRunner = run_command,
        cwd: Path | None = None,
    ) -> None:
        """Initialise with an environment reader and command runner."""
        self._environment = environment
        self._runner = runner
        self._cwd = cwd

    def _svn(self, *args: str) -> str | None:
        """Run svn and return stdout, or ``None`` if the command failed."""
        log_debug(logger, "Running svn %s", " ".join(args))
        try:
            return self._runner("svn", args, cwd=self._cwd, env_overrides=_SVN_ENV)
        except CommandError as exc:
            log_debug(logger, "%s", exc)
            return None

    def is_svn(self) -> bool:
        """Return whether the working directory is inside an SVN checkout."""
        stdout = self._svn("info")
        if stdout is not None and "URL:" in stdout:
            log_debug(logger, "Current directory is in SVN")
            return True
        log_debug(logger, "Current directory is not in SVN")
        return False

    def branch(self) -> str | None:
        """Extract the branch from the URL of the current working copy."""
        if not self.is_svn():
            return None
        url = self._svn("info", "--show-item", "url")
        if url is None:
            return None
        log_debug(logger, "Trying to parse SVN URL: %s", url.strip())
        return extract_branch_from_url(url)

    def branch_from_environment(self) -> str | None:
        """Extract the branch from ``SVN_URL`` for agents without a checkout."""
        url = self._environment.get(SVN_URL_VARIABLE)
        if url is None:
            return None
        return extract_branch_from_url(url)

    def timestamp(self) -> str | None:
        """Return the last-changed date of the working copy.

        SVN reports microseconds; only whole seconds are kept, rendered as
        ``"<seconds>000"``.
        """
        if not self.is_svn():
            return None
        stdout = self._svn("info", "--show-item", "last-changed-date")
        if stdout is None:
            return None
        date_string = stdout.strip()
        log_info(logger, "Read date %s from SVN", date_string)
        try:
            moment = parse_rfc3339(date_string)
        except TimestampParseError as exc:
            log_warning(logger, "Ignoring SVN last-changed-date: %s", exc)
            return None
        return epoch_seconds_as_millis(moment)


__all__ = ["SVN_URL_VARIABLE", "SvnProbe", "extract_branch_from_url"]
