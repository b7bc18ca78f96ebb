"""Sweepwatch exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class SweepError(Exception):
    """Base exception for all sweepwatch failures."""


class SweepConfigError(SweepError):
    """Raised for invalid runtime configuration or dump names."""


class SweepDumpError(SweepError):
    """Raised when a dump cannot be fetched or decompressed."""


class SweepParseError(SweepError):
    """Raised for structurally malformed snapshots."""


class SweepNetworkError(SweepError):
    """Raised when the tag service cannot be queried."""


class SweepStoreError(SweepError):
    """Raised for region store open and transaction failures."""


class SweepSchemaError(SweepStoreError):
    """Raised when derived views cannot be created."""
