"""Unit tests for core config parsing."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from core.config import SweepConfig
from core.errors import SweepConfigError


def test_from_env_reads_data_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve data root from environment."""
    monkeypatch.setenv("SWEEPWATCH_DATA_ROOT", "./.tmp-sweepwatch")

    config = SweepConfig.from_env()

    assert config.data_root.name == ".tmp-sweepwatch"


def test_from_env_reads_user_nation_and_program(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should pick up operator identity from environment."""
    monkeypatch.setenv("SWEEPWATCH_USER_NATION", "Testlandia")
    monkeypatch.setenv("SWEEPWATCH_PROGRAM", "tracker/2.0")

    config = SweepConfig.from_env()

    assert (config.user_nation, config.program) == ("Testlandia", "tracker/2.0")


def test_from_env_raises_for_invalid_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric HTTP timeout."""
    monkeypatch.setenv("SWEEPWATCH_HTTP_TIMEOUT", "soon")

    with pytest.raises(SweepConfigError):
        SweepConfig.from_env()

    assert os.getenv("SWEEPWATCH_HTTP_TIMEOUT") == "soon"


def test_from_env_raises_for_non_positive_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should reject a zero HTTP timeout."""
    monkeypatch.setenv("SWEEPWATCH_HTTP_TIMEOUT", "0")

    with pytest.raises(SweepConfigError):
        SweepConfig.from_env()


def test_user_agent_requires_user_nation(tmp_path: Path) -> None:
    """Network identity should fail without a user nation."""
    config = SweepConfig(data_root=tmp_path, user_nation=None, program=None)

    with pytest.raises(SweepConfigError):
        config.user_agent()


def test_user_agent_names_nation_and_program(tmp_path: Path) -> None:
    """User-Agent should identify both the operator and calling program."""
    config = SweepConfig(data_root=tmp_path, user_nation="Testlandia", program="tracker/2.0")

    agent = config.user_agent()

    assert "Testlandia" in agent and "tracker/2.0" in agent
