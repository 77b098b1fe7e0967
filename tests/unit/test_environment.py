"""Unit tests for the environment reader."""

from __future__ import annotations

import typing as typ

from revstamp.environment import EnvironmentReader
from tests.helpers.log_capture import capture_module_logs

if typ.TYPE_CHECKING:
    import pytest


class TestGet:
    """Tests for EnvironmentReader.get."""

    def test_returns_value_when_set(self) -> None:
        """A set variable is returned."""
        reader = EnvironmentReader.from_mapping({"BRANCH": "main"})

        assert reader.get("BRANCH") == "main"

    def test_returns_none_when_unset(self) -> None:
        """An unset variable is absent."""
        reader = EnvironmentReader.from_mapping({})

        assert reader.get("BRANCH") is None

    def test_blank_value_is_absent(self) -> None:
        """Empty and whitespace-only values count as unset."""
        reader = EnvironmentReader.from_mapping({"BRANCH": "  "})

        assert reader.get("BRANCH") is None

    def test_value_is_stripped(self) -> None:
        """Surrounding whitespace is removed."""
        reader = EnvironmentReader.from_mapping({"BRANCH": " main\n"})

        assert reader.get("BRANCH") == "main"

    def test_uses_injected_lookup(self) -> None:
        """The lookup callable receives the variable name."""
        requested: list[str] = []

        def lookup(name: str) -> str | None:
            requested.append(name)
            return None

        EnvironmentReader(lookup).get("SVN_URL")

        assert requested == ["SVN_URL"]

    def test_logs_every_lookup_once(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Present and absent lookups are both logged exactly once."""
        capture = capture_module_logs(monkeypatch, "revstamp.environment")
        reader = EnvironmentReader.from_mapping({"BRANCH": "main"})

        reader.get("BRANCH")
        reader.get("GIT_BRANCH")

        assert capture.messages("DEBUG") == ["$BRANCH=main", "$GIT_BRANCH="]

    def test_secret_values_are_masked(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Secrets are returned but never written to the log."""
        capture = capture_module_logs(monkeypatch, "revstamp.environment")
        reader = EnvironmentReader.from_mapping({"SYSTEM_ACCESSTOKEN": "s3cr3t"})

        assert reader.get("SYSTEM_ACCESSTOKEN", secret=True) == "s3cr3t"
        assert capture.messages() == ["$SYSTEM_ACCESSTOKEN=***"]


class TestFirst:
    """Tests for EnvironmentReader.first."""

    def test_returns_first_present_value(self) -> None:
        """Names are consulted in order."""
        reader = EnvironmentReader.from_mapping({"B": "second", "C": "third"})

        assert reader.first(["A", "B", "C"]) == "second"

    def test_returns_none_when_nothing_set(self) -> None:
        """No present value yields None."""
        assert EnvironmentReader.from_mapping({}).first(["A", "B"]) is None

    def test_logs_lookups_up_to_the_match(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Each checked variable appears in the log; later ones are not read."""
        capture = capture_module_logs(monkeypatch, "revstamp.environment")
        reader = EnvironmentReader.from_mapping({"B": "found"})

        reader.first(["A", "B", "C"])

        assert capture.messages() == ["$A=", "$B=found"]


def test_default_lookup_reads_process_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Without an injected lookup the process environment is used."""
    monkeypatch.setenv("REVSTAMP_TEST_VARIABLE", "value")

    assert EnvironmentReader().get("REVSTAMP_TEST_VARIABLE") == "value"
