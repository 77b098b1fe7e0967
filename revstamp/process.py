"""Run version-control executables and capture their output.

The probes call external tools (``svn``, ``git``) through :func:`run_command`
or any callable with the same shape, so tests can replace the subprocess
layer with canned output.
"""

from __future__ import annotations

import collections.abc as cabc
import enum
import os
import subprocess
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

# Default timeout for version-control subprocess calls (seconds)
_COMMAND_TIMEOUT_S = 60.0

_STDERR_PREVIEW_LIMIT = 200


class CommandFailure(enum.StrEnum):
    """Ways an external command can fail."""

    NOT_FOUND = "not_found"
    TIMED_OUT = "timed_out"
    EXIT_STATUS = "exit_status"


class CommandError(Exception):
    """Raised when an external command cannot be run or exits non-zero."""

    def __init__(
        self,
        message: str,
        *,
        kind: CommandFailure,
        returncode: int | None = None,
    ) -> None:
        """Initialise with a message, failure kind and optional exit code."""
        self.kind = kind
        self.returncode = returncode
        super().__init__(message)

    @classmethod
    def not_found(cls, command: str, detail: str) -> CommandError:
        """Return an error for an executable that could not be started."""
        return cls(
            f"Could not run {command}: {detail}", kind=CommandFailure.NOT_FOUND
        )

    @classmethod
    def timed_out(cls, command: str, timeout: float) -> CommandError:
        """Return an error for a command that exceeded its timeout."""
        return cls(
            f"{command} timed out after {timeout:g}s",
            kind=CommandFailure.TIMED_OUT,
        )

    @classmethod
    def exit_status(cls, command: str, returncode: int, stderr: str) -> CommandError:
        """Return an error for a non-zero exit status."""
        detail = stderr.strip()
        if len(detail) > _STDERR_PREVIEW_LIMIT:
            detail = detail[:_STDERR_PREVIEW_LIMIT] + "..."
        message = f"{command} exited with status {returncode}"
        if detail:
            message = f"{message}: {detail}"
        return cls(message, kind=CommandFailure.EXIT_STATUS, returncode=returncode)


class CommandRunner(typ.Protocol):
    """Callable that runs ``program`` with ``args`` and returns stdout."""

    def __call__(
        self,
        program: str,
        args: cabc.Sequence[str],
        *,
        cwd: Path | None = None,
        env_overrides: cabc.Mapping[str, str] | None = None,
    ) -> str: ...


def run_command(
    program: str,
    args: cabc.Sequence[str],
    *,
    cwd: Path | None = None,
    env_overrides: cabc.Mapping[str, str] | None = None,
    timeout: float = _COMMAND_TIMEOUT_S,
) -> str:
    """Run ``program`` with ``args`` and return its captured stdout.

    Parameters
    ----------
    program : str
        Executable name, resolved through ``PATH``.
    args : Sequence[str]
        Arguments passed to the executable.
    cwd : Path | None, optional
        Working directory; defaults to the current directory.
    env_overrides : Mapping[str, str] | None, optional
        Variables layered over a copy of the process environment.
    timeout : float, optional
        Seconds to wait before giving up on the command.

    Returns
    -------
    str
        Standard output decoded as UTF-8, with undecodable bytes replaced.

    Raises
    ------
    CommandError
        If the executable cannot be started, times out or exits non-zero.

    """
    command = " ".join([program, *args])
    env = None
    if env_overrides:
        env = dict(os.environ)
        env.update(env_overrides)
    try:
        result = subprocess.run(  # noqa: S603
            # shell=False; program comes from a fixed set of VCS tools
            [program, *args],
            capture_output=True,
            # branch names and paths are arbitrary bytes
            encoding="utf-8",
            errors="replace",
            cwd=cwd,
            env=env,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise CommandError.timed_out(command, timeout) from exc
    except OSError as exc:
        raise CommandError.not_found(command, str(exc)) from exc

    if result.returncode != 0:
        raise CommandError.exit_status(command, result.returncode, result.stderr)
    return result.stdout


__all__ = ["CommandError", "CommandFailure", "CommandRunner", "run_command"]
