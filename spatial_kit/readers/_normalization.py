"""Coordinate and attribute normalization helpers for vector reading.

Responsibilities:
- Convert raw coordinate arrays to clean (x, y) tuples
- Convert OGR property values to plain Python scalars
- Extract metadata from lxml ExtendedData elements (typed + untyped)
- Parse KML coordinate text strings
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Any

from spatial_kit.core.exceptions import MalformedGeometry

if TYPE_CHECKING:
    from lxml.etree import _Element

# ---------------------------------------------------------------------------
# Coordinate normalization
# ---------------------------------------------------------------------------


def coords_to_tuples(raw_coords: object) -> list[tuple[float, float]]:
    """Convert GeoJSON-style coordinate arrays to (x, y) tuples.

    Drops the third (altitude) element if present.

    Raises:
        MalformedGeometry: If any coordinate element is malformed.
    """
    if not isinstance(raw_coords, list | tuple):
        return []
    coords: list[tuple[float, float]] = []
    for idx, c in enumerate(raw_coords):
        if not isinstance(c, list | tuple):
            msg = (
                f"Malformed coordinate at index {idx}: expected list/tuple, got {type(c).__name__}"
            )
            raise MalformedGeometry(msg, operation="read_file")
        if len(c) < 2:
            msg = (
                f"Malformed coordinate at index {idx}: expected at least 2 elements, got {len(c)}"
            )
            raise MalformedGeometry(msg, operation="read_file")
        try:
            x = float(c[0])
            y = float(c[1])
        except (TypeError, ValueError) as exc:
            msg = (
                f"Malformed coordinate at index {idx}: cannot convert to float "
                f"(x={c[0]!r}, y={c[1]!r})"
            )
            raise MalformedGeometry(msg, operation="read_file") from exc
        coords.append((x, y))
    return coords


# ---------------------------------------------------------------------------
# OGR property normalization
# ---------------------------------------------------------------------------


def clean_properties(props: dict[str, object] | None) -> dict[str, Any]:
    """Return OGR properties as a plain dict of Python scalars.

    Dates and times are rendered as ISO 8601 strings; everything else is
    passed through.
    """
    cleaned: dict[str, Any] = {}
    for key, value in (props or {}).items():
        if isinstance(value, dt.date | dt.time):
            value = value.isoformat()
        cleaned[str(key)] = value
    return cleaned


# ---------------------------------------------------------------------------
# lxml metadata extraction
# ---------------------------------------------------------------------------


def extract_extended_data_lxml(placemark_elem: _Element, ns: dict[str, str]) -> dict[str, str]:
    """Extract ExtendedData metadata from a Placemark element.

    Handles both KML metadata patterns:
    - ``ExtendedData/Data/value``: untyped key-value pairs.
    - ``ExtendedData/SchemaData/SimpleData``: typed fields defined by a
      ``<Schema>`` element.
    """
    metadata: dict[str, str] = {}

    for data_elem in placemark_elem.findall("kml:ExtendedData/kml:Data", ns):
        key = data_elem.get("name", "")
        value_elem = data_elem.find("kml:value", ns)
        if key and value_elem is not None and value_elem.text:
            metadata[key] = value_elem.text.strip()

    for schema_data in placemark_elem.findall("kml:ExtendedData/kml:SchemaData", ns):
        for simple_data in schema_data.findall("kml:SimpleData", ns):
            key = simple_data.get("name", "")
            if key and simple_data.text:
                metadata[key] = simple_data.text.strip()

    return metadata


# ---------------------------------------------------------------------------
# KML coordinate text parsing
# ---------------------------------------------------------------------------


def parse_coordinates_text(text: str) -> list[tuple[float, float]]:
    """Parse KML coordinate text (``lon,lat,alt lon,lat,alt ...``) to (lon, lat) tuples.

    Raises:
        MalformedGeometry: If a tuple has fewer than two numeric parts.
    """
    raw: list[list[str]] = [token.strip().split(",") for token in text.split()]
    return coords_to_tuples(raw)
