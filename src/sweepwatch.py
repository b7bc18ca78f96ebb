"""Public SDK surface for sweepwatch.

This module provides a stable import path for library users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from core.config import SweepConfig
from core.snapshot_identity import SnapshotIdentity
from core.types import (
    IngestOptions,
    IngestResult,
    InsertReport,
    RegionEstimate,
    UpdateRates,
)
from store.region_sdk import SweepClient
from transforms.sweep_estimate import (
    compute_update_rates,
    estimate_regions,
    format_clock,
    round_variance,
)

__all__ = [
    "IngestOptions",
    "IngestResult",
    "InsertReport",
    "RegionEstimate",
    "SnapshotIdentity",
    "SweepClient",
    "SweepConfig",
    "UpdateRates",
    "compute_update_rates",
    "estimate_regions",
    "format_clock",
    "round_variance",
]
