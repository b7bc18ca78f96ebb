"""Unit tests for regions dump parsing."""

from __future__ import annotations

import pytest

from core.errors import SweepParseError
from ingest.snapshot_parser import parse_snapshot
from tests.dump_fixtures import region_xml, regions_xml, sample_regions_xml


def test_parse_snapshot_preserves_dump_order() -> None:
    """Positions should follow dump order starting at zero."""
    records = parse_snapshot(sample_regions_xml())

    assert [(record.position, record.name) for record in records] == [
        (0, "Alpha"),
        (1, "Beta"),
        (2, "Gamma Ridge"),
    ]


def test_parse_snapshot_reads_descriptive_fields() -> None:
    """Descriptive fields should be carried through from the dump."""
    alpha = parse_snapshot(sample_regions_xml())[0]

    assert alpha.nations == ("a_one", "a_two")
    assert alpha.embassies == ("Beta", "Gamma Ridge")
    assert (alpha.delegate, alpha.delegate_auth, alpha.delegate_votes) == ("a_one", "XWA", 3)
    assert (alpha.last_major_update, alpha.last_minor_update) == (1000, 5000)


def test_parse_snapshot_keeps_unobserved_minor_update_as_zero() -> None:
    """A zero minor timestamp should be kept rather than rejected."""
    gamma = parse_snapshot(sample_regions_xml())[2]

    assert gamma.last_minor_update == 0


def test_parse_snapshot_accepts_empty_dump() -> None:
    """A REGIONS document without regions should yield no records."""
    assert parse_snapshot(regions_xml()) == []


def test_parse_snapshot_raises_for_missing_name() -> None:
    """Regions without a name should be rejected."""
    raw = regions_xml(region_xml("", 1000, 0))

    with pytest.raises(SweepParseError):
        parse_snapshot(raw)


def test_parse_snapshot_raises_for_missing_major_update() -> None:
    """Regions without a major update timestamp should be rejected."""
    raw = regions_xml("<REGION><NAME>Alpha</NAME><LASTMINORUPDATE>0</LASTMINORUPDATE></REGION>")

    with pytest.raises(SweepParseError):
        parse_snapshot(raw)


def test_parse_snapshot_raises_for_non_integer_timestamp() -> None:
    """Timestamps must be integers."""
    region = region_xml("Alpha", 1000, 0).replace("<LASTMAJORUPDATE>1000", "<LASTMAJORUPDATE>soon")
    raw = regions_xml(region)

    with pytest.raises(SweepParseError):
        parse_snapshot(raw)


def test_parse_snapshot_raises_for_wrong_root() -> None:
    """Nation dumps and other documents should be rejected."""
    with pytest.raises(SweepParseError):
        parse_snapshot(b"<NATIONS><NATION><NAME>a</NAME></NATION></NATIONS>")


@pytest.mark.parametrize("raw", [b"", b"<REGIONS><REGION>", b"<REGIONS>\xff</REGIONS>"])
def test_parse_snapshot_raises_for_malformed_xml(raw: bytes) -> None:
    """Truncated or undecodable dumps should be rejected."""
    with pytest.raises(SweepParseError):
        parse_snapshot(raw)
