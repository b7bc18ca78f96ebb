"""Unit tests for the SQLite region store."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
import sqlite3
from typing import Iterator

import pytest
from structlog.testing import capture_logs

from core.config import SweepConfig
from core.errors import SweepSchemaError, SweepStoreError
from core.snapshot_identity import SnapshotIdentity
from core.types import EnrichedRegion, RegionRecord
from ingest.snapshot_parser import parse_snapshot
from ingest.tag_enricher import enrich_regions
from store.region_store import RegionStore
from tests.dump_fixtures import sample_regions_xml
from transforms.sweep_estimate import format_clock, round_variance

_IDENTITY = SnapshotIdentity.for_date(date(2024, 5, 1))


def _region(position: int, name: str, major: int, minor: int, nations: tuple[str, ...]) -> EnrichedRegion:
    record = RegionRecord(
        position=position,
        name=name,
        last_major_update=major,
        last_minor_update=minor,
        num_nations=len(nations),
        nations=nations,
    )
    return EnrichedRegion(record=record, has_governor=True)


class _InterruptedRegions(list):
    """Region list whose iteration is interrupted after two items."""

    def __iter__(self) -> Iterator[EnrichedRegion]:
        for index, region in enumerate(list.__iter__(self)):
            if index == 2:
                raise KeyboardInterrupt
            yield region


def _sample_regions() -> list[EnrichedRegion]:
    return enrich_regions(parse_snapshot(sample_regions_xml()), None)


def _populated_store(config: SweepConfig, regions: list[EnrichedRegion]):
    handle = RegionStore(config).open(_IDENTITY)
    handle.insert_all(regions)
    handle.build_views()
    return handle


def test_open_new_store_does_not_touch_disk(sweep_config: SweepConfig) -> None:
    """Opening a new store should not create the file before inserting."""
    handle = RegionStore(sweep_config).open(_IDENTITY)

    assert handle.created and not handle.path.exists()


def test_insert_all_commits_every_region(sweep_config: SweepConfig) -> None:
    """All valid regions and their nations should be committed."""
    with RegionStore(sweep_config).open(_IDENTITY) as handle:
        report = handle.insert_all(_sample_regions())
        count = handle.region_count()

    assert (report.inserted, report.failed, report.nations_inserted, count) == (3, 0, 6, 3)


def test_insert_all_seeds_nations_in_global_dump_order(sweep_config: SweepConfig) -> None:
    """Seeded nation ids should count across regions in dump order."""
    with RegionStore(sweep_config).open(_IDENTITY) as handle:
        handle.insert_all(_sample_regions())
        nations = [(item.nation_id, item.region_id) for item in handle.read_nations()]

    assert nations == [(0, 0), (1, 0), (2, 1), (3, 2), (4, 2), (5, 2)]


def test_insert_all_skips_malformed_record_and_commits_rest(sweep_config: SweepConfig) -> None:
    """One malformed region should be skipped without rolling back the others."""
    regions = _sample_regions()
    regions.insert(1, _region(3, "", 1005, 0, ("orphan",)))

    with RegionStore(sweep_config).open(_IDENTITY) as handle:
        report = handle.insert_all(regions)
        count = handle.region_count()
        nation_regions = {item.region_id for item in handle.read_nations()}

    assert (report.attempted, report.inserted, count) == (4, 3, 3)
    assert len(report.failures) == 1 and report.failures[0].position == 3
    assert 3 not in nation_regions


def test_insert_all_logs_one_error_per_skipped_record(sweep_config: SweepConfig) -> None:
    """A skipped region should be logged once as a recovered error."""
    regions = _sample_regions()
    regions.insert(1, _region(3, "", 1005, 0, ()))

    with capture_logs() as entries:
        with RegionStore(sweep_config).open(_IDENTITY) as handle:
            handle.insert_all(regions)

    failures = [entry for entry in entries if entry["event"] == "region_insert_failed"]
    assert len(failures) == 1
    assert (failures[0]["log_level"], failures[0]["position"]) == ("error", 3)
    assert [entry["log_level"] for entry in entries].count("error") == 1


def test_insert_all_skips_duplicate_region_name(sweep_config: SweepConfig) -> None:
    """A duplicate name should fail alone via the uniqueness constraint."""
    regions = _sample_regions() + [_region(3, "Beta", 1020, 0, ())]

    with RegionStore(sweep_config).open(_IDENTITY) as handle:
        report = handle.insert_all(regions)

    assert (report.inserted, report.failed) == (3, 1)
    assert "UNIQUE" in report.failures[0].message


def test_reopening_existing_store_is_cache_hit(sweep_config: SweepConfig) -> None:
    """A second open should report the store as already created."""
    store = RegionStore(sweep_config)
    with store.open(_IDENTITY) as handle:
        handle.insert_all(_sample_regions())

    reopened = store.open(_IDENTITY)

    assert not reopened.created


def test_insert_all_refuses_to_write_existing_store(sweep_config: SweepConfig) -> None:
    """Existing stores should be immutable."""
    store = RegionStore(sweep_config)
    with store.open(_IDENTITY) as handle:
        handle.insert_all(_sample_regions())

    with pytest.raises(SweepStoreError):
        store.open(_IDENTITY).insert_all(_sample_regions())


def test_insert_all_discards_store_on_fatal_error(sweep_config: SweepConfig) -> None:
    """A fatal error mid-transaction should leave no store on disk."""
    broken = replace(_sample_regions()[0], record=None)  # type: ignore[arg-type]
    handle = RegionStore(sweep_config).open(_IDENTITY)

    with pytest.raises(AttributeError):
        handle.insert_all(_sample_regions() + [broken])

    assert not handle.path.exists()


def test_insert_all_discards_store_when_interrupted(sweep_config: SweepConfig) -> None:
    """An interrupted insert should not leave a store that later runs treat as cached."""
    store = RegionStore(sweep_config)
    handle = store.open(_IDENTITY)

    with pytest.raises(KeyboardInterrupt):
        handle.insert_all(_InterruptedRegions(_sample_regions()))

    assert not handle.path.exists()
    assert store.open(_IDENTITY).created


def test_open_existing_raises_for_missing_store(sweep_config: SweepConfig) -> None:
    """Queries against an unknown snapshot should fail clearly."""
    with pytest.raises(SweepStoreError):
        RegionStore(sweep_config).open_existing(_IDENTITY)


def test_update_data_derives_time_per_nation(sweep_config: SweepConfig) -> None:
    """Major rate should be the major sweep length over all nations."""
    regions = [
        _region(0, "Alpha", 1000, 0, ("a",)),
        _region(1, "Beta", 1010, 0, ("b",)),
        _region(2, "Gamma", 1030, 0, ("c",)),
    ]

    with _populated_store(sweep_config, regions) as handle:
        rates = handle.read_update_data()

    assert rates is not None
    assert (rates.num_nations, rates.major_length, rates.tpn_major) == (3, 30, 10.0)


def test_update_data_excludes_unobserved_minor_updates(sweep_config: SweepConfig) -> None:
    """Zero minor timestamps should not widen the minor sweep."""
    with _populated_store(sweep_config, _sample_regions()) as handle:
        rates = handle.read_update_data()

    assert rates is not None
    assert (rates.minor_start, rates.minor_length) == (5000, 20)
    assert rates.tpn_minor == pytest.approx(20 / 6)


def test_raw_estimates_null_minor_values_for_unobserved_region(sweep_config: SweepConfig) -> None:
    """Regions without a minor update should keep null minor estimates."""
    with _populated_store(sweep_config, _sample_regions()) as handle:
        estimates = {item.name: item for item in handle.read_raw_estimates()}

    gamma = estimates["Gamma Ridge"]
    assert (gamma.minor_estimate, gamma.minor_actual, gamma.minor_variance) == (None, None, None)
    assert estimates["Beta"].minor_actual == 20


def test_raw_estimates_match_pure_estimator(sweep_config: SweepConfig) -> None:
    """SQL views and the in-process estimator should agree."""
    with _populated_store(sweep_config, _sample_regions()) as handle:
        view_rates = handle.read_update_data()
        view_estimates = handle.read_raw_estimates()
        model_rates, model_estimates = handle.compute_estimates()

    assert view_rates == model_rates
    assert view_estimates == model_estimates


def test_raw_estimates_one_row_per_region_in_sweep_order(sweep_config: SweepConfig) -> None:
    """Each region should be represented once by its first nation."""
    with _populated_store(sweep_config, _sample_regions()) as handle:
        estimates = handle.read_raw_estimates()

    assert [(item.name, item.nation_id) for item in estimates] == [
        ("Alpha", 0),
        ("Beta", 2),
        ("Gamma Ridge", 3),
    ]


def test_update_times_formats_clock_offsets(sweep_config: SweepConfig) -> None:
    """Offsets should render as HH:MM:SS.fff with millisecond variance."""
    regions = [
        _region(0, "Alpha", 1000, 0, ("a",)),
        _region(1, "Beta", 1010, 0, ("b",)),
        _region(2, "Gamma", 4600, 0, ("c",)),
    ]

    with _populated_store(sweep_config, regions) as handle:
        rows = {row["Name"]: row for row in handle.read_update_times()}

    gamma = rows["Gamma"]
    assert (gamma["MajorEST"], gamma["MajorACT"], gamma["MajorVar"]) == (
        "00:40:00.000",
        "01:00:00.000",
        1200.0,
    )
    assert rows["Alpha"]["MinorEST"] is None


def test_build_views_is_repeatable(sweep_config: SweepConfig) -> None:
    """Rebuilding views should replace them without error."""
    with _populated_store(sweep_config, _sample_regions()) as handle:
        handle.build_views()
        estimates = handle.read_raw_estimates()

    assert len(estimates) == 3


def test_reading_views_before_build_raises_schema_error(sweep_config: SweepConfig) -> None:
    """Missing views should be reported as schema errors."""
    with RegionStore(sweep_config).open(_IDENTITY) as handle:
        handle.insert_all(_sample_regions())

        with pytest.raises(SweepSchemaError):
            handle.read_update_times()


def test_build_views_raises_schema_error_on_foreign_schema(sweep_config: SweepConfig) -> None:
    """A store whose Region table lacks expected columns should fail view creation."""
    store = RegionStore(sweep_config)
    path = store.store_path(_IDENTITY)
    connection = sqlite3.connect(path)
    connection.execute("CREATE TABLE Region (ID INTEGER PRIMARY KEY, Name TEXT)")
    connection.commit()
    connection.close()

    with pytest.raises(SweepSchemaError):
        with store.open_existing(_IDENTITY) as handle:
            handle.build_views()
            handle.read_update_times()


def test_disabled_nation_seeding_yields_no_estimates(sweep_config: SweepConfig) -> None:
    """Without nations the rates are undefined and no region is estimated."""
    config = replace(sweep_config, seed_nations=False)

    with _populated_store(config, _sample_regions()) as handle:
        rates = handle.read_update_data()
        estimates = handle.read_raw_estimates()

    assert rates is not None and rates.num_nations == 0 and rates.tpn_major is None
    assert estimates == []


def test_update_times_match_formatted_model_estimates(sweep_config: SweepConfig) -> None:
    """The times view should equal the model estimates rendered as clock times."""
    with _populated_store(sweep_config, _sample_regions()) as handle:
        rows = handle.read_update_times()
        _, estimates = handle.compute_estimates()

    rendered = [
        {
            "Name": item.name,
            "MajorEST": format_clock(item.major_estimate),
            "MajorACT": format_clock(item.major_actual),
            "MajorVar": round_variance(item.major_variance),
            "MinorEST": format_clock(item.minor_estimate),
            "MinorACT": format_clock(item.minor_actual),
            "MinorVar": round_variance(item.minor_variance),
        }
        for item in estimates
    ]
    assert [{key: row[key] for key in rendered[0]} for row in rows] == rendered
