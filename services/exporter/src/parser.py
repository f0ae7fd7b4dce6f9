import re
from typing import NamedTuple

from .errors import ParseError
from .models import Measurement, Region

FIELD_COUNT = 9

# Plain decimal notation only: no whitespace, digit separators, nan or inf.
_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class RegionFields(NamedTuple):
    """Position of one region's readings in the flat CSV record."""

    region: Region
    consumption_index: int
    generation_index: int


# Field 0 is the report timestamp; each region then takes two fields.
FIELD_LAYOUT: tuple[RegionFields, ...] = (
    RegionFields(Region.NORTHERN, 1, 2),
    RegionFields(Region.CENTRAL, 3, 4),
    RegionFields(Region.SOUTHERN, 5, 6),
    RegionFields(Region.EASTERN, 7, 8),
)


def split_record(raw: bytes) -> list[str]:
    """Normalize line endings and split the payload into its fields."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"invalid input encoding: {e}") from e

    text = text.replace("\r", "").replace("\n", "")
    fields = text.split(",")
    if len(fields) != FIELD_COUNT:
        raise ParseError(f"invalid input {text!r}")
    return fields


def parse_value(field: str) -> float:
    """Parse a single numeric field."""
    if not _DECIMAL.fullmatch(field):
        raise ParseError(f"invalid number {field!r}")
    value = float(field)
    if value in (float("inf"), float("-inf")):
        raise ParseError(f"number out of range {field!r}")
    return value


def parse(raw: bytes) -> list[Measurement]:
    """Parse a Taipower feed body into one measurement per region.

    The whole payload is a single record. Any malformed field fails the
    entire parse; no partial result is returned.
    """
    fields = split_record(raw)
    return [
        Measurement(
            region=layout.region,
            consumption=parse_value(fields[layout.consumption_index]),
            generation=parse_value(fields[layout.generation_index]),
        )
        for layout in FIELD_LAYOUT
    ]
