"""Regions dump decoding.

This module turns raw regions dump XML into ordered region records.
It performs no IO; callers hand it already decompressed bytes.
"""

from __future__ import annotations

import io
from typing import Iterator
from xml.etree import ElementTree

from core.errors import SweepParseError
from core.types import RegionRecord

_ROOT_TAG = "REGIONS"
_REGION_TAG = "REGION"
_NATION_SEPARATOR = ":"


def parse_snapshot(raw: bytes) -> list[RegionRecord]:
    """Decode a regions dump into records in dump order.

    Args:
        raw: Decompressed dump bytes.

    Returns:
        Region records whose ``position`` is the zero-based dump order.

    Raises:
        SweepParseError: If the dump is not well-formed or misses required fields.
    """
    records: list[RegionRecord] = []
    try:
        for position, element in enumerate(_iter_region_elements(raw)):
            records.append(_region_from_element(position, element))
            element.clear()
    except ElementTree.ParseError as error:
        raise SweepParseError(
            f"Failed to parse regions dump: {error}. "
            "Delete the dump file and download it again."
        ) from error
    return records


def _iter_region_elements(raw: bytes) -> Iterator[ElementTree.Element]:
    """Yield completed REGION elements while validating the root tag.

    Args:
        raw: Decompressed dump bytes.

    Yields:
        Fully parsed REGION elements.

    Raises:
        SweepParseError: If the root element is not REGIONS.
    """
    depth = 0
    for event, element in ElementTree.iterparse(io.BytesIO(raw), events=("start", "end")):
        if event == "start":
            if depth == 0 and element.tag != _ROOT_TAG:
                raise SweepParseError(
                    f"Invalid regions dump: root element is <{element.tag}>, "
                    f"expected <{_ROOT_TAG}>. Check that a regions dump was supplied."
                )
            depth += 1
            continue
        depth -= 1
        if depth == 1 and element.tag == _REGION_TAG:
            yield element


def _region_from_element(position: int, element: ElementTree.Element) -> RegionRecord:
    """Build a region record from a REGION element.

    Args:
        position: Zero-based dump position.
        element: Parsed REGION element.

    Returns:
        Typed region record.

    Raises:
        SweepParseError: If required fields are missing or invalid.
    """
    name = _required_text(element, "NAME", position)
    return RegionRecord(
        position=position,
        name=name,
        last_major_update=_required_int(element, "LASTMAJORUPDATE", position, name),
        last_minor_update=_required_int(element, "LASTMINORUPDATE", position, name),
        num_nations=_optional_int(element, "NUMNATIONS", position, name),
        nations=_split_nations(element.findtext("NATIONS") or ""),
        delegate=(element.findtext("DELEGATE") or "").strip(),
        delegate_auth=(element.findtext("DELEGATEAUTH") or "").strip(),
        delegate_votes=_optional_int(element, "DELEGATEVOTES", position, name),
        founder=(element.findtext("FOUNDER") or "").strip(),
        embassies=tuple(
            (embassy.text or "").strip()
            for embassy in element.iterfind("EMBASSIES/EMBASSY")
            if (embassy.text or "").strip()
        ),
        factbook=element.findtext("FACTBOOK") or "",
    )


def _required_text(element: ElementTree.Element, tag: str, position: int) -> str:
    value = (element.findtext(tag) or "").strip()
    if not value:
        raise SweepParseError(
            f"Invalid regions dump: region at position {position} has no <{tag}>. "
            "The dump is truncated or not a regions dump."
        )
    return value


def _required_int(element: ElementTree.Element, tag: str, position: int, name: str) -> int:
    raw_value = element.findtext(tag)
    if raw_value is None or not raw_value.strip():
        raise SweepParseError(
            f"Invalid regions dump: region '{name}' (position {position}) has no <{tag}>. "
            "Use a dump that carries update timestamps."
        )
    return _to_int(raw_value, tag, position, name)


def _optional_int(element: ElementTree.Element, tag: str, position: int, name: str) -> int:
    raw_value = element.findtext(tag)
    if raw_value is None or not raw_value.strip():
        return 0
    return _to_int(raw_value, tag, position, name)


def _to_int(raw_value: str, tag: str, position: int, name: str) -> int:
    try:
        return int(raw_value.strip())
    except ValueError as error:
        raise SweepParseError(
            f"Invalid regions dump: <{tag}> of region '{name}' (position {position}) "
            f"is '{raw_value.strip()}', expected an integer."
        ) from error


def _split_nations(raw_value: str) -> tuple[str, ...]:
    """Split the colon-delimited NATIONS field, dropping empty entries."""
    return tuple(nation for nation in raw_value.strip().split(_NATION_SEPARATOR) if nation)
