"""Snapshot identity parsing helpers.

This module maps dump file names onto cycle dates and store names.
It keeps the dump-name to store-name convention in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from core.constants import (
    DUMP_CATEGORY,
    DUMP_DATE_FORMAT,
    DUMP_EXTENSION,
    STORE_CATEGORY,
    STORE_EXTENSION,
)
from core.errors import SweepConfigError


@dataclass(frozen=True)
class SnapshotIdentity:
    """Identity of one regions dump.

    Attributes:
        dump_path: Dump location as given by the caller.
        cycle_date: Date embedded in the dump file name.
    """

    dump_path: Path
    cycle_date: date

    @classmethod
    def from_dump_name(cls, dump_name: str | Path) -> "SnapshotIdentity":
        """Parse a ``regions.MM.DD.YYYY.xml.gz`` dump name.

        Args:
            dump_name: Dump file name, optionally with directories.

        Returns:
            Parsed snapshot identity.

        Raises:
            SweepConfigError: If the name does not follow the dump convention.
        """
        dump_path = Path(dump_name)
        file_name = dump_path.name
        prefix = f"{DUMP_CATEGORY}."
        if not file_name.startswith(prefix) or not file_name.endswith(DUMP_EXTENSION):
            raise _name_error(file_name)
        date_text = file_name[len(prefix) : -len(DUMP_EXTENSION)]
        try:
            cycle_date = datetime.strptime(date_text, DUMP_DATE_FORMAT).date()
        except ValueError as error:
            raise _name_error(file_name) from error
        return cls(dump_path=dump_path, cycle_date=cycle_date)

    @classmethod
    def for_date(cls, cycle_date: date) -> "SnapshotIdentity":
        """Build the canonical identity for a cycle date."""
        return cls(dump_path=Path(dump_file_name(cycle_date)), cycle_date=cycle_date)

    @property
    def dump_file_name(self) -> str:
        """Return the bare dump file name."""
        return self.dump_path.name

    @property
    def store_file_name(self) -> str:
        """Return the store file name derived from the dump file name."""
        return self.dump_file_name.replace(DUMP_CATEGORY, STORE_CATEGORY, 1).replace(
            DUMP_EXTENSION, STORE_EXTENSION
        )

    def is_current(self, today: date) -> bool:
        """Return whether this dump belongs to the cycle of ``today``."""
        return self.cycle_date == today


def dump_file_name(cycle_date: date) -> str:
    """Return the conventional dump file name for a cycle date."""
    return f"{DUMP_CATEGORY}.{cycle_date.strftime(DUMP_DATE_FORMAT)}{DUMP_EXTENSION}"


def _name_error(file_name: str) -> SweepConfigError:
    """Build a dump naming error.

    Args:
        file_name: Offending file name.

    Returns:
        Error describing the expected naming convention.
    """
    return SweepConfigError(
        f"Invalid dump name '{file_name}': expected "
        f"{DUMP_CATEGORY}.MM.DD.YYYY{DUMP_EXTENSION}. Rename the dump or omit --dump."
    )
