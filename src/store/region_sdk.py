"""Python SDK for region store operations.

This module exposes high-level APIs for ingest, view rebuilding,
and estimate queries backed by per-snapshot region stores.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any

from core.config import SweepConfig
from core.snapshot_identity import SnapshotIdentity
from core.types import IngestOptions, IngestResult, RegionEstimate, UpdateRates
from ingest.pipeline import ingest_snapshot, resolve_identity
from store.region_store import RegionStore, StoreHandle


class SweepClient:
    """Primary SDK entry point for dump ingest and estimate queries."""

    def __init__(self, config: SweepConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or SweepConfig.from_env()
        self._store = RegionStore(self._config)

    @property
    def config(self) -> SweepConfig:
        """Return the client configuration."""
        return self._config

    def ingest(self, options: IngestOptions) -> IngestResult:
        """Ingest a regions dump into its region store.

        Args:
            options: Ingest options.

        Returns:
            Pipeline outcome.
        """
        return ingest_snapshot(options, self._config)

    def open_store(self, dump_name: str | None = None, today: date | None = None) -> StoreHandle:
        """Open an existing region store for querying.

        Args:
            dump_name: Dump file name; today's dump when omitted.
            today: Date used when ``dump_name`` is omitted.

        Returns:
            Handle over the existing store.

        Raises:
            SweepStoreError: If the store has not been ingested yet.
        """
        return self._store.open_existing(_identity(dump_name, today))

    def rebuild_views(self, dump_name: str | None = None, today: date | None = None) -> Path:
        """Recreate derived views on an existing store.

        Returns:
            Store path whose views were rebuilt.
        """
        with self.open_store(dump_name, today) as handle:
            handle.build_views()
            return handle.path

    def update_rates(self, dump_name: str | None = None, today: date | None = None) -> UpdateRates | None:
        """Read per-cycle rates from ``Update_Data``."""
        with self.open_store(dump_name, today) as handle:
            return handle.read_update_data()

    def raw_estimates(
        self,
        dump_name: str | None = None,
        today: date | None = None,
    ) -> list[RegionEstimate]:
        """Read per-region second offsets from ``Raw_Estimates``."""
        with self.open_store(dump_name, today) as handle:
            return handle.read_raw_estimates()

    def update_times(
        self,
        dump_name: str | None = None,
        today: date | None = None,
    ) -> list[dict[str, Any]]:
        """Read formatted rows from ``Update_Times``."""
        with self.open_store(dump_name, today) as handle:
            return handle.read_update_times()

    def with_data_root(self, data_root: str) -> "SweepClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        return SweepClient(replace(self._config, data_root=resolved_root))


def _identity(dump_name: str | None, today: date | None) -> SnapshotIdentity:
    options = IngestOptions(dump_name=dump_name, today=today or date.today())
    return resolve_identity(options)
