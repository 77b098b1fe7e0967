"""Command-line entry point for revstamp.

Run from inside a working copy:

    revstamp                     # prints e.g. "trunk:1565100814000"
    revstamp --branch main       # skip branch detection
    revstamp --verbose           # log every command and variable checked

Environment variables:
    REVSTAMP_LOG_LEVEL - Overrides the log level chosen by --verbose
    REVSTAMP_TFS_PAT   - Personal access token for TFS/Azure DevOps
"""

from __future__ import annotations

import os
import sys
import typing as typ
from pathlib import Path

from cyclopts import App, Parameter

from revstamp import __version__
from revstamp.environment import EnvironmentReader
from revstamp.logging import configure_logging, get_logger, log_error, log_warning
from revstamp.resolver import ResolutionError, Resolver

if typ.TYPE_CHECKING:
    from revstamp.resolver import ResolvedIdentity

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_UNRESOLVED = 1
EXIT_WRITE_FAILED = 2

_LOG_LEVEL_VARIABLE = "REVSTAMP_LOG_LEVEL"

app = App(
    name="revstamp",
    help=(
        "Determine the branch:timestamp value used when uploading external "
        "analysis data. Run from within the working directory of your version "
        "control checkout."
    ),
    version=__version__,
)


def _setup_logging(*, verbose: bool) -> None:
    requested = os.environ.get(_LOG_LEVEL_VARIABLE)
    level = requested or ("DEBUG" if verbose else "WARNING")
    _, invalid = configure_logging(level)
    if requested and invalid:
        log_warning(
            logger, "Invalid %s value %r; using WARNING", _LOG_LEVEL_VARIABLE, requested
        )


def write_revision_file(path: Path, identity: ResolvedIdentity) -> None:
    """Write ``timestamp: <branch>:<timestamp>`` to ``path``.

    Raises
    ------
    OSError
        If the file cannot be written.

    """
    path.write_text(f"timestamp: {identity}", encoding="utf-8")


def execute(
    resolver: Resolver,
    *,
    branch: str | None = None,
    revision_file: Path | None = None,
) -> int:
    """Resolve the identity, print it and optionally write the revision file.

    Returns
    -------
    int
        ``EXIT_OK`` on success, ``EXIT_UNRESOLVED`` when branch or timestamp
        cannot be determined, ``EXIT_WRITE_FAILED`` when the revision file
        cannot be written.

    """
    try:
        identity = resolver.resolve(branch_override=branch)
    except ResolutionError as exc:
        print(
            f"{exc}. Pass the branch explicitly with --branch, or run with "
            "--verbose to see which sources were checked.",
            file=sys.stderr,
        )
        return EXIT_UNRESOLVED

    print(identity)
    if revision_file is not None:
        try:
            write_revision_file(revision_file, identity)
        except OSError as exc:
            log_error(logger, "Failed to write %s: %s", revision_file, exc)
            print(f"Could not write {revision_file}: {exc}", file=sys.stderr)
            return EXIT_WRITE_FAILED
    return EXIT_OK


@app.default
def resolve(
    *,
    branch: typ.Annotated[str | None, Parameter(name=["--branch", "-b"])] = None,
    verbose: typ.Annotated[bool, Parameter(name=["--verbose", "-v"])] = False,
    tfs_pat: typ.Annotated[
        str | None, Parameter(env_var="REVSTAMP_TFS_PAT")
    ] = None,
    revision_file: Path | None = None,
    directory: Path | None = None,
) -> int:
    """Print the branch:timestamp value for the current working copy.

    Args:
        branch: Branch name to use for the upload (e.g. master or Main). Use
            this if automatic detection of the branch does not work.
        verbose: Enable verbose output to debug what the tool is doing.
        tfs_pat: Personal access token for TFS/Azure DevOps. Defaults to the
            pipeline OAuth token in SYSTEM_ACCESSTOKEN.
        revision_file: Also write "timestamp: <branch>:<timestamp>" to this
            file.
        directory: Working copy to inspect (default: current directory).

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    _setup_logging(verbose=verbose)
    resolver = Resolver(
        EnvironmentReader(),
        personal_token=tfs_pat,
        cwd=directory,
    )
    return execute(resolver, branch=branch, revision_file=revision_file)


def main() -> int:
    """Entry point for the CLI."""
    return app()


if __name__ == "__main__":
    sys.exit(main())
