"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from core.config import SweepConfig


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def sweep_config(tmp_path: Path) -> SweepConfig:
    """Config rooted in a temporary directory with a user nation."""
    from core.config import SweepConfig

    return SweepConfig(data_root=tmp_path / "data", user_nation="Testlandia", program=None)
