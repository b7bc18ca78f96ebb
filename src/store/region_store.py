"""Per-snapshot SQLite region store.

This module persists enriched regions for one dump into its own SQLite
file and exposes the derived update-estimate views. A store file is
written exactly once; its existence marks the snapshot as processed.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import sqlite3
from typing import Any, Iterator, Sequence

from core.config import SweepConfig
from core.constants import (
    NATION_TABLE_NAME,
    RAW_ESTIMATES_VIEW_NAME,
    REGION_TABLE_NAME,
    UPDATE_DATA_VIEW_NAME,
    UPDATE_TIMES_VIEW_NAME,
)
from core.errors import SweepSchemaError, SweepStoreError
from core.logging_config import get_logger
from core.snapshot_identity import SnapshotIdentity
from core.types import (
    EnrichedRegion,
    InsertReport,
    NationPosition,
    RecordFailure,
    RegionEstimate,
    RegionTiming,
    UpdateRates,
)
from store.region_schema import (
    CREATE_NATION_REGION_INDEX,
    CREATE_NATION_TABLE,
    CREATE_REGION_TABLE,
    CREATE_VIEWS,
    DROP_VIEWS,
    INSERT_NATION,
    INSERT_REGION,
)
from transforms.sweep_estimate import compute_update_rates, estimate_regions

_LOGGER = get_logger(__name__)
_SAVEPOINT_NAME = "region_insert"


class RegionStore:
    """Resolves snapshot identities to region store handles.

    This class owns the data root layout and the existence check
    that makes reprocessing a snapshot a cache hit.
    """

    def __init__(self, config: SweepConfig) -> None:
        """Initialize region store from config.

        Args:
            config: Runtime configuration.
        """
        self._config = config
        self._config.data_root.mkdir(parents=True, exist_ok=True)

    def store_path(self, identity: SnapshotIdentity) -> Path:
        """Return the store file location for a snapshot."""
        return self._config.data_root / identity.store_file_name

    def open(self, identity: SnapshotIdentity) -> "StoreHandle":
        """Open the store for a snapshot without touching the disk.

        Args:
            identity: Snapshot identity.

        Returns:
            Handle whose ``created`` flag is False when the store already exists.
        """
        path = self.store_path(identity)
        created = not path.exists()
        if created:
            _LOGGER.info("store_opened", path=str(path))
        else:
            _LOGGER.info("store_cache_hit", path=str(path))
        return StoreHandle(path, created=created, seed_nations=self._config.seed_nations)

    def open_existing(self, identity: SnapshotIdentity) -> "StoreHandle":
        """Open a store that must already exist.

        Args:
            identity: Snapshot identity.

        Returns:
            Handle over the existing store.

        Raises:
            SweepStoreError: If no store exists for the snapshot.
        """
        path = self.store_path(identity)
        if not path.exists():
            raise SweepStoreError(
                f"No region store found at {path}. Run ingest for "
                f"{identity.dump_file_name} first."
            )
        return StoreHandle(path, created=False, seed_nations=self._config.seed_nations)


class StoreHandle:
    """Connection-scoped access to one region store.

    The SQLite connection is opened lazily so that a handle for a new
    store leaves nothing on disk until regions are inserted.
    """

    def __init__(self, path: Path, created: bool, seed_nations: bool = True) -> None:
        self._path = path
        self._created = created
        self._seed_nations = seed_nations
        self._connection: sqlite3.Connection | None = None

    @property
    def path(self) -> Path:
        """Return the store file location."""
        return self._path

    @property
    def created(self) -> bool:
        """Return whether this handle is writing a new store."""
        return self._created

    def insert_all(self, regions: Sequence[EnrichedRegion]) -> InsertReport:
        """Insert all regions in one transaction, skipping failing records.

        Args:
            regions: Enriched regions in dump order.

        Returns:
            Report of inserted and skipped regions.

        Raises:
            SweepStoreError: If the store already existed or the transaction fails.
        """
        if not self._created:
            raise SweepStoreError(
                f"Region store {self._path} already exists and is immutable. "
                "Delete it to reprocess the snapshot."
            )
        connection = self._connect()
        try:
            with _transaction(connection):
                _create_tables(connection)
                report = _insert_regions(connection, regions, self._seed_nations)
        except sqlite3.Error as error:
            self._discard()
            raise SweepStoreError(
                f"Failed to write region store {self._path}: {error}. "
                "No partial store was kept; rerun ingest."
            ) from error
        except BaseException:
            self._discard()
            raise
        self._created = False
        _LOGGER.info(
            "regions_inserted",
            path=str(self._path),
            attempted=report.attempted,
            inserted=report.inserted,
            failed=report.failed,
            nations_inserted=report.nations_inserted,
        )
        return report

    def build_views(self) -> None:
        """Drop and recreate the derived estimate views.

        Raises:
            SweepSchemaError: If any view cannot be created.
        """
        connection = self._connect()
        try:
            with _transaction(connection):
                connection.execute(CREATE_NATION_TABLE)
                for statement in DROP_VIEWS:
                    connection.execute(statement)
                for statement in CREATE_VIEWS:
                    connection.execute(statement)
        except sqlite3.Error as error:
            raise SweepSchemaError(
                f"Failed to create derived views in {self._path}: {error}. "
                "The store holds regions but no views; run rebuild-views after fixing the schema."
            ) from error
        _LOGGER.info("views_built", path=str(self._path))

    def region_count(self) -> int:
        """Return number of stored regions."""
        row = self._query(f"SELECT COUNT(*) FROM {REGION_TABLE_NAME}")[0]
        return int(row[0])

    def read_timings(self) -> list[RegionTiming]:
        """Load region timestamps and flags in region id order."""
        rows = self._query(
            "SELECT ID, Name, LastMajorUpdate, LastMinorUpdate, hasGovernor, hasPassword, "
            f"isFrontier FROM {REGION_TABLE_NAME} ORDER BY ID"
        )
        return [
            RegionTiming(
                region_id=int(row["ID"]),
                name=str(row["Name"]),
                last_major_update=int(row["LastMajorUpdate"]),
                last_minor_update=int(row["LastMinorUpdate"]),
                has_governor=bool(row["hasGovernor"]),
                has_password=bool(row["hasPassword"]),
                is_frontier=bool(row["isFrontier"]),
            )
            for row in rows
        ]

    def read_nations(self) -> list[NationPosition]:
        """Load nation sweep positions in id order."""
        rows = self._query(f"SELECT ID, Region FROM {NATION_TABLE_NAME} ORDER BY ID")
        return [NationPosition(nation_id=int(row["ID"]), region_id=int(row["Region"])) for row in rows]

    def compute_estimates(self) -> tuple[UpdateRates, list[RegionEstimate]]:
        """Run the sweep estimator directly over stored rows.

        Returns:
            Rates and region estimates, independent of the SQL views.
        """
        timings = self.read_timings()
        nations = self.read_nations()
        rates = compute_update_rates(timings, len(nations))
        return rates, estimate_regions(timings, nations, rates)

    def read_update_data(self) -> UpdateRates | None:
        """Read the ``Update_Data`` view.

        Returns:
            Aggregate rates, or None when the view yields no row.
        """
        rows = self._query_view(f"SELECT * FROM {UPDATE_DATA_VIEW_NAME}")
        if not rows:
            return None
        row = rows[0]
        return UpdateRates(
            num_nations=int(row["NumNations"]),
            major_start=row["MajorStart"],
            major_length=row["MajorLength"],
            minor_start=row["MinorStart"],
            minor_length=row["MinorLength"],
            tpn_major=row["TPN_Major"],
            tpn_minor=row["TPN_Minor"],
        )

    def read_raw_estimates(self) -> list[RegionEstimate]:
        """Read the ``Raw_Estimates`` view in sweep order."""
        rows = self._query_view(f"SELECT * FROM {RAW_ESTIMATES_VIEW_NAME}")
        return [
            RegionEstimate(
                region_id=int(row["ID"]),
                name=str(row["Name"]),
                nation_id=int(row["NationID"]),
                has_governor=bool(row["hasGovernor"]),
                has_password=bool(row["hasPassword"]),
                is_frontier=bool(row["isFrontier"]),
                major_estimate=row["MajorEST"],
                major_actual=int(row["MajorACT"]),
                major_variance=row["MajorVAR"],
                minor_estimate=row["MinorEST"],
                minor_actual=row["MinorACT"],
                minor_variance=row["MinorVAR"],
            )
            for row in rows
        ]

    def read_update_times(self) -> list[dict[str, Any]]:
        """Read the human-readable ``Update_Times`` view as dictionaries."""
        rows = self._query_view(f"SELECT * FROM {UPDATE_TIMES_VIEW_NAME}")
        return [dict(row) for row in rows]

    def close(self) -> None:
        """Close the underlying connection if open."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "StoreHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _connect(self) -> sqlite3.Connection:
        if self._connection is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(self._path, isolation_level=None)
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA foreign_keys=ON")
            self._connection = connection
        return self._connection

    def _query(self, statement: str) -> list[sqlite3.Row]:
        try:
            return self._connect().execute(statement).fetchall()
        except sqlite3.Error as error:
            raise SweepStoreError(
                f"Failed to query region store {self._path}: {error}. "
                "The store may be incomplete; delete it and rerun ingest."
            ) from error

    def _query_view(self, statement: str) -> list[sqlite3.Row]:
        try:
            return self._connect().execute(statement).fetchall()
        except sqlite3.Error as error:
            raise SweepSchemaError(
                f"Failed to read derived views from {self._path}: {error}. "
                "Run rebuild-views to recreate them."
            ) from error

    def _discard(self) -> None:
        """Close and delete a store whose first write never committed."""
        self.close()
        for leftover in (self._path, self._path.with_name(self._path.name + "-journal")):
            leftover.unlink(missing_ok=True)
        _LOGGER.warning("store_discarded", path=str(self._path))


@contextmanager
def _transaction(connection: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a block inside BEGIN/COMMIT, rolling back on any exception."""
    connection.execute("BEGIN")
    try:
        yield connection
    except BaseException:
        connection.execute("ROLLBACK")
        raise
    connection.execute("COMMIT")


def _create_tables(connection: sqlite3.Connection) -> None:
    connection.execute(CREATE_REGION_TABLE)
    connection.execute(CREATE_NATION_TABLE)
    connection.execute(CREATE_NATION_REGION_INDEX)


def _insert_regions(
    connection: sqlite3.Connection,
    regions: Sequence[EnrichedRegion],
    seed_nations: bool,
) -> InsertReport:
    """Insert regions one savepoint at a time.

    Args:
        connection: Connection inside an open transaction.
        regions: Enriched regions in dump order.
        seed_nations: Whether to insert each region's nations.

    Returns:
        Aggregated insert report.
    """
    failures: list[RecordFailure] = []
    inserted = 0
    nations_inserted = 0
    next_nation_id = 0
    for region in regions:
        first_nation_id = next_nation_id
        next_nation_id += len(region.record.nations)
        connection.execute(f"SAVEPOINT {_SAVEPOINT_NAME}")
        try:
            connection.execute(INSERT_REGION, _region_row(region))
            if seed_nations:
                nation_rows = _nation_rows(region, first_nation_id)
                connection.executemany(INSERT_NATION, nation_rows)
                nations_inserted += len(nation_rows)
        except sqlite3.Error as error:
            connection.execute(f"ROLLBACK TO {_SAVEPOINT_NAME}")
            connection.execute(f"RELEASE {_SAVEPOINT_NAME}")
            failures.append(_record_failure(region, error))
            continue
        connection.execute(f"RELEASE {_SAVEPOINT_NAME}")
        inserted += 1
    return InsertReport(
        attempted=len(regions),
        inserted=inserted,
        nations_inserted=nations_inserted,
        failures=tuple(failures),
    )


def _record_failure(region: EnrichedRegion, error: sqlite3.Error) -> RecordFailure:
    failure = RecordFailure(
        position=region.record.position,
        region_name=region.record.name,
        message=str(error),
    )
    _LOGGER.error(
        "region_insert_failed",
        position=failure.position,
        region_name=failure.region_name,
        error=failure.message,
    )
    return failure


def _region_row(region: EnrichedRegion) -> tuple[object, ...]:
    record = region.record
    return (
        record.position,
        record.name,
        int(region.has_governor),
        int(region.has_password),
        int(region.is_frontier),
        record.last_major_update,
        record.last_minor_update,
        record.num_nations,
        record.delegate,
        record.delegate_auth,
        record.delegate_votes,
        record.founder,
        ",".join(record.embassies),
        record.factbook,
    )


def _nation_rows(region: EnrichedRegion, first_nation_id: int) -> list[tuple[object, ...]]:
    """Build Nation rows numbered by global dump order."""
    return [
        (first_nation_id + offset, nation_name, region.record.position)
        for offset, nation_name in enumerate(region.record.nations)
    ]
