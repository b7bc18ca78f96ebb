"""Shared typed models.

This module defines immutable data models used by ingest, store,
transform, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path


@dataclass(frozen=True)
class RegionRecord:
    """One region parsed from a regions dump.

    Attributes:
        position: Zero-based order of the region inside the dump.
        name: Region display name.
        num_nations: Nation count reported by the dump.
        nations: Member nation names in update order.
        delegate: WA delegate nation name, empty when vacant.
        delegate_auth: Delegate authority flags.
        delegate_votes: Delegate vote count.
        founder: Founder nation name.
        embassies: Names of regions holding an embassy.
        factbook: Raw factbook text.
        last_major_update: Epoch seconds of the last major update.
        last_minor_update: Epoch seconds of the last minor update, 0 when unobserved.
    """

    position: int
    name: str
    last_major_update: int
    last_minor_update: int
    num_nations: int = 0
    nations: tuple[str, ...] = ()
    delegate: str = ""
    delegate_auth: str = ""
    delegate_votes: int = 0
    founder: str = ""
    embassies: tuple[str, ...] = ()
    factbook: str = ""


@dataclass(frozen=True)
class RegionTags:
    """Region name sets returned by the tag service.

    Attributes:
        governorless: Regions without a governor.
        password: Passworded regions.
        frontier: Frontier regions.
    """

    governorless: frozenset[str] = frozenset()
    password: frozenset[str] = frozenset()
    frontier: frozenset[str] = frozenset()


@dataclass(frozen=True)
class EnrichedRegion:
    """Region record with tag classification applied."""

    record: RegionRecord
    has_governor: bool = False
    has_password: bool = False
    is_frontier: bool = False

    def timing(self) -> "RegionTiming":
        """Project the region onto the fields used by the sweep estimator."""
        return RegionTiming(
            region_id=self.record.position,
            name=self.record.name,
            last_major_update=self.record.last_major_update,
            last_minor_update=self.record.last_minor_update,
            has_governor=self.has_governor,
            has_password=self.has_password,
            is_frontier=self.is_frontier,
        )


@dataclass(frozen=True)
class RegionTiming:
    """Region timestamps and flags consumed by the sweep estimator."""

    region_id: int
    name: str
    last_major_update: int
    last_minor_update: int
    has_governor: bool = False
    has_password: bool = False
    is_frontier: bool = False


@dataclass(frozen=True)
class NationPosition:
    """Nation sweep position and owning region id."""

    nation_id: int
    region_id: int


@dataclass(frozen=True)
class RecordFailure:
    """One region that could not be stored.

    Attributes:
        position: Dump position of the failed region.
        region_name: Region name as parsed, may be empty.
        message: Database error text.
    """

    position: int
    region_name: str
    message: str


@dataclass(frozen=True)
class InsertReport:
    """Outcome of a transactional bulk insert.

    Attributes:
        attempted: Number of regions the insert tried to store.
        inserted: Number of regions committed.
        nations_inserted: Number of Nation rows seeded alongside regions.
        failures: Per-region failures that were skipped.
    """

    attempted: int
    inserted: int
    nations_inserted: int = 0
    failures: tuple[RecordFailure, ...] = ()

    @property
    def failed(self) -> int:
        """Return number of skipped regions."""
        return len(self.failures)


@dataclass(frozen=True)
class UpdateRates:
    """Per-cycle aggregate rates of the linear sweep model.

    Attributes:
        num_nations: Total Nation rows in the store.
        major_start: Earliest major update timestamp.
        major_length: Duration of the major sweep in seconds.
        minor_start: Earliest observed minor update timestamp.
        minor_length: Duration of the minor sweep in seconds.
        tpn_major: Seconds per nation during major update.
        tpn_minor: Seconds per nation during minor update.
    """

    num_nations: int
    major_start: int | None
    major_length: int | None
    minor_start: int | None
    minor_length: int | None
    tpn_major: float | None
    tpn_minor: float | None


@dataclass(frozen=True)
class RegionEstimate:
    """Estimated versus actual update offsets for one region.

    Offsets are seconds from the start of the respective sweep.
    Minor fields are None when the region has no observed minor update.
    """

    region_id: int
    name: str
    nation_id: int
    has_governor: bool
    has_password: bool
    is_frontier: bool
    major_estimate: float | None
    major_actual: int
    major_variance: float | None
    minor_estimate: float | None = None
    minor_actual: int | None = None
    minor_variance: float | None = None


@dataclass(frozen=True)
class IngestOptions:
    """Ingest command options.

    Attributes:
        dump_name: Dump file name or path; today's dump when omitted.
        today: Invocation date used to decide whether the dump is current.
    """

    dump_name: str | None = None
    today: date = field(default_factory=date.today)


@dataclass(frozen=True)
class IngestResult:
    """Outcome of one pipeline invocation.

    Attributes:
        store_path: Region store location.
        cache_hit: True when an existing store short-circuited the run.
        is_current: Whether the dump belongs to the current cycle.
        report: Insert report, None on a cache hit.
    """

    store_path: Path
    cache_hit: bool
    is_current: bool
    report: InsertReport | None = None
