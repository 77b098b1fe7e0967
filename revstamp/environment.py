"""Environment variable access with per-lookup diagnostics.

Detection failures are usually explained by which variables a build agent did
or did not set, so every lookup is logged, including the ones that find
nothing. The lookup function is injected so tests can supply a plain mapping
instead of touching the process environment.
"""

from __future__ import annotations

import collections.abc as cabc
import os
import typing as typ

from revstamp.logging import get_logger, log_debug

logger = get_logger(__name__)

VariableLookup = cabc.Callable[[str], str | None]

_MASK = "***"


class EnvironmentReader:
    """Read named variables through an injectable lookup function."""

    def __init__(self, lookup: VariableLookup | None = None) -> None:
        """Initialise with ``lookup``, defaulting to ``os.environ.get``."""
        self._lookup: VariableLookup = lookup or os.environ.get

    @classmethod
    def from_mapping(cls, values: cabc.Mapping[str, str]) -> EnvironmentReader:
        """Build a reader backed by a fixed mapping."""
        return cls(dict(values).get)

    def get(self, name: str, *, secret: bool = False) -> str | None:
        """Return the value of ``name``, or ``None`` when unset or blank.

        The lookup is logged exactly once. Values read with ``secret=True``
        are masked in the log.
        """
        raw = self._lookup(name)
        value = raw.strip() if raw is not None else ""
        shown = _MASK if secret and value else value
        log_debug(logger, "$%s=%s", name, shown)
        return value or None

    def first(self, names: cabc.Iterable[str]) -> str | None:
        """Return the first present value among ``names``, in order."""
        for name in names:
            value = self.get(name)
            if value is not None:
                return value
        return None


__all__ = ["EnvironmentReader", "VariableLookup"]
