"""Unit tests for the SweepClient SDK."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from core.config import SweepConfig
from core.errors import SweepStoreError
from core.types import IngestOptions
from store.region_sdk import SweepClient
from tests.dump_fixtures import sample_regions_xml, write_dump

_DUMP_NAME = "regions.01.02.2020.xml.gz"


def _ingested_client(sweep_config: SweepConfig) -> SweepClient:
    write_dump(sweep_config.data_root / _DUMP_NAME, sample_regions_xml())
    client = SweepClient(sweep_config)
    client.ingest(IngestOptions(dump_name=_DUMP_NAME, today=date(2020, 1, 3)))
    return client


def test_client_reads_rates_and_estimates_after_ingest(sweep_config: SweepConfig) -> None:
    """Ingested stores should be queryable through the SDK."""
    client = _ingested_client(sweep_config)

    rates = client.update_rates(_DUMP_NAME)
    estimates = client.raw_estimates(_DUMP_NAME)

    assert rates is not None and (rates.num_nations, rates.tpn_major) == (6, 5.0)
    assert [item.name for item in estimates] == ["Alpha", "Beta", "Gamma Ridge"]


def test_client_defaults_to_store_of_given_day(sweep_config: SweepConfig) -> None:
    """Omitting the dump name should resolve the store for ``today``."""
    client = _ingested_client(sweep_config)

    rows = client.update_times(today=date(2020, 1, 2))

    assert [row["Name"] for row in rows] == ["Alpha", "Beta", "Gamma Ridge"]


def test_client_rebuild_views_returns_store_path(sweep_config: SweepConfig) -> None:
    """Rebuilding views should report the rebuilt store."""
    client = _ingested_client(sweep_config)

    store_path = client.rebuild_views(_DUMP_NAME)

    assert store_path == sweep_config.data_root / "data.01.02.2020.db"


def test_with_data_root_points_at_separate_stores(
    sweep_config: SweepConfig,
    tmp_path: Path,
) -> None:
    """A cloned client should not see stores from the original root."""
    client = _ingested_client(sweep_config)
    other_root = tmp_path / "other"

    cloned = client.with_data_root(str(other_root))

    assert cloned.config.data_root == other_root.resolve()
    with pytest.raises(SweepStoreError):
        cloned.open_store(_DUMP_NAME)
