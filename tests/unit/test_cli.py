"""CLI behaviour tests."""

from __future__ import annotations

import os
import subprocess
import sys
import typing as typ
from pathlib import Path  # noqa: TC003

import pytest

from revstamp import __version__
from revstamp.cli import (
    EXIT_OK,
    EXIT_UNRESOLVED,
    EXIT_WRITE_FAILED,
    execute,
    write_revision_file,
)
from revstamp.environment import EnvironmentReader
from revstamp.resolver import BranchNotFoundError, ResolvedIdentity, Resolver
from tests.helpers.fakes import FakeCommandRunner, StubTimestampSource, git_responses

_IDENTITY = ResolvedIdentity(branch="master", timestamp="1552231634000")


class _FixedResolver:
    """Resolver stand-in returning a fixed identity."""

    def __init__(self, identity: ResolvedIdentity | None = None) -> None:
        self.identity = identity
        self.overrides: list[str | None] = []

    def resolve(self, branch_override: str | None = None) -> ResolvedIdentity:
        self.overrides.append(branch_override)
        if self.identity is None:
            raise BranchNotFoundError
        return self.identity


def _execute(resolver: _FixedResolver, **kwargs: typ.Any) -> int:  # noqa: ANN401
    return execute(typ.cast("Resolver", resolver), **kwargs)


class TestExecute:
    """Tests for the execute helper."""

    def test_prints_identity(self, capsys: pytest.CaptureFixture[str]) -> None:
        """A resolved identity is printed on its own line."""
        exit_code = _execute(_FixedResolver(_IDENTITY))

        assert exit_code == EXIT_OK
        assert capsys.readouterr().out == "master:1552231634000\n"

    def test_branch_is_forwarded(self) -> None:
        """--branch is passed to the resolver as an override."""
        resolver = _FixedResolver(_IDENTITY)

        _execute(resolver, branch="release")

        assert resolver.overrides == ["release"]

    def test_unresolved_exits_with_hint(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Resolution failures explain how to proceed on stderr."""
        exit_code = _execute(_FixedResolver())

        captured = capsys.readouterr()
        assert exit_code == EXIT_UNRESOLVED
        assert captured.out == ""
        assert "Couldn't resolve the branch" in captured.err
        assert "--branch" in captured.err
        assert "--verbose" in captured.err

    def test_writes_revision_file(self, tmp_path: Path) -> None:
        """--revision-file receives the timestamp line."""
        target = tmp_path / "revision.txt"

        exit_code = _execute(_FixedResolver(_IDENTITY), revision_file=target)

        assert exit_code == EXIT_OK
        assert target.read_text(encoding="utf-8") == (
            "timestamp: master:1552231634000"
        )

    def test_unwritable_revision_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A revision file that cannot be written is a distinct failure."""
        target = tmp_path / "missing" / "revision.txt"

        exit_code = _execute(_FixedResolver(_IDENTITY), revision_file=target)

        captured = capsys.readouterr()
        assert exit_code == EXIT_WRITE_FAILED
        assert captured.out == "master:1552231634000\n"
        assert str(target) in captured.err

    def test_with_real_resolver(self, capsys: pytest.CaptureFixture[str]) -> None:
        """execute works with a resolver backed by fake commands."""
        resolver = Resolver(
            EnvironmentReader.from_mapping({}),
            runner=FakeCommandRunner(git_responses("* main", "1552231634000")),
            tfs=StubTimestampSource(),
        )

        assert execute(resolver) == EXIT_OK
        assert capsys.readouterr().out == "main:1552231634000\n"


def test_write_revision_file_overwrites(tmp_path: Path) -> None:
    """An existing revision file is replaced."""
    target = tmp_path / "revision.txt"
    target.write_text("stale", encoding="utf-8")

    write_revision_file(target, _IDENTITY)

    assert target.read_text(encoding="utf-8") == "timestamp: master:1552231634000"


def _run_cli(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    env = {
        "PATH": os.environ.get("PATH", ""),
        "GIT_CEILING_DIRECTORIES": str(cwd.parent),
        "PYTHONPATH": os.pathsep.join(sys.path),
    }
    return subprocess.run(  # noqa: S603 - fixed argv
        [sys.executable, "-m", "revstamp", *args],
        cwd=cwd,
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


def test_cli_version(tmp_path: Path) -> None:
    """--version prints the package version."""
    result = _run_cli(["--version"], cwd=tmp_path)

    assert result.returncode == 0, result.stderr
    assert __version__ in result.stdout


def test_cli_outside_any_checkout(tmp_path: Path) -> None:
    """Without VCS or CI variables the timestamp cannot be resolved."""
    result = _run_cli(["--branch", "main"], cwd=tmp_path)

    assert result.returncode == EXIT_UNRESOLVED
    assert result.stdout == ""
    assert "Couldn't resolve the timestamp" in result.stderr
