"""Calling conventions shared by the branch and timestamp sources.

The SVN, Git and TFS backends share no logic; they only agree on returning
``None`` when they have no opinion.
"""

from __future__ import annotations

import typing as typ


class BranchSource(typ.Protocol):
    """A source that may know the branch of the working copy."""

    def branch(self) -> str | None:
        """Return the branch name, or ``None`` when unknown."""
        ...


class TimestampSource(typ.Protocol):
    """A source that may know the commit timestamp of the working copy."""

    def timestamp(self) -> str | None:
        """Return epoch milliseconds as a decimal string, or ``None``."""
        ...


__all__ = ["BranchSource", "TimestampSource"]
