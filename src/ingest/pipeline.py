"""Ingest orchestration for regions dumps.

This module coordinates dump retrieval, parsing, tag enrichment,
the transactional store write, and view creation. All network and
parse work finishes before the store file is written.
"""

from __future__ import annotations

import requests

from core.config import SweepConfig
from core.logging_config import get_logger
from core.snapshot_identity import SnapshotIdentity
from core.types import EnrichedRegion, IngestOptions, IngestResult, InsertReport, RegionTags
from ingest.dump_provider import DumpProvider
from ingest.snapshot_parser import parse_snapshot
from ingest.tag_enricher import classify_regions
from ingest.tag_service import TagService
from store.region_store import RegionStore

_LOGGER = get_logger(__name__)


class IngestPipelineRunner:
    """Runner for one dump-to-store pipeline invocation."""

    def __init__(
        self,
        options: IngestOptions,
        store: RegionStore,
        dump_provider: DumpProvider,
        tag_service: TagService,
    ) -> None:
        self._options = options
        self._store = store
        self._dump_provider = dump_provider
        self._tag_service = tag_service

    def run(self) -> IngestResult:
        """Execute the pipeline, short-circuiting when the store exists."""
        identity = resolve_identity(self._options)
        is_current = identity.is_current(self._options.today)
        handle = self._store.open(identity)
        if not handle.created:
            return IngestResult(store_path=handle.path, cache_hit=True, is_current=is_current)
        regions = self._load_enriched_regions(identity, is_current)
        with handle:
            report = handle.insert_all(regions)
            handle.build_views()
        _log_ingest_completion(identity, is_current, report)
        return IngestResult(
            store_path=handle.path,
            cache_hit=False,
            is_current=is_current,
            report=report,
        )

    def _load_enriched_regions(
        self,
        identity: SnapshotIdentity,
        is_current: bool,
    ) -> list[EnrichedRegion]:
        dump_path = self._dump_provider.fetch(identity, self._options.today)
        records = parse_snapshot(self._dump_provider.decompress(dump_path))
        _LOGGER.info("dump_parsed", path=str(dump_path), region_count=len(records))
        tags = self._load_tags(is_current)
        return classify_regions(records, is_current, tags)

    def _load_tags(self, is_current: bool) -> RegionTags | None:
        if not is_current:
            _LOGGER.info("tags_skipped", reason="historical_snapshot")
            return None
        tags = self._tag_service.fetch_region_tags()
        _LOGGER.info(
            "tags_fetched",
            governorless=len(tags.governorless),
            password=len(tags.password),
            frontier=len(tags.frontier),
        )
        return tags


def ingest_snapshot(
    options: IngestOptions,
    config: SweepConfig,
    session: requests.Session | None = None,
) -> IngestResult:
    """Run the ingest pipeline for one regions dump.

    Args:
        options: Ingest request options.
        config: Runtime configuration.
        session: Optional HTTP session shared by dump and tag requests.

    Returns:
        Pipeline outcome, flagged as a cache hit when the store already existed.

    Raises:
        SweepConfigError: If the dump name is invalid or network access lacks a user nation.
        SweepDumpError: If the dump cannot be fetched or decompressed.
        SweepParseError: If the dump is malformed.
        SweepNetworkError: If tags cannot be fetched for a current dump.
        SweepStoreError: If the store transaction or view creation fails.
    """
    http_session = session or requests.Session()
    runner = IngestPipelineRunner(
        options,
        store=RegionStore(config),
        dump_provider=DumpProvider(config, http_session),
        tag_service=TagService(config, http_session),
    )
    try:
        return runner.run()
    finally:
        if session is None:
            http_session.close()


def resolve_identity(options: IngestOptions) -> SnapshotIdentity:
    """Return the identity of the requested dump, defaulting to today's."""
    if options.dump_name:
        return SnapshotIdentity.from_dump_name(options.dump_name)
    return SnapshotIdentity.for_date(options.today)


def _log_ingest_completion(
    identity: SnapshotIdentity,
    is_current: bool,
    report: InsertReport,
) -> None:
    """Log pipeline completion with contextual metadata."""
    _LOGGER.info(
        "ingest_completed",
        dump=identity.dump_file_name,
        cycle_date=identity.cycle_date.isoformat(),
        is_current=is_current,
        attempted=report.attempted,
        inserted=report.inserted,
        failed=report.failed,
    )
