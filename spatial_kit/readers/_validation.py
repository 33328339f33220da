"""Validation helpers for vector file reading.

Responsibilities:
- Read failures surfaced as ``VectorReadError``
- XML structure and KML namespace validation
- Coordinate bounds checking (WGS 84) for KML input
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from spatial_kit.core.constants import MAX_LATITUDE, MAX_LONGITUDE, MIN_LATITUDE, MIN_LONGITUDE
from spatial_kit.core.exceptions import MalformedGeometry, PermanentError
from spatial_kit.readers._constants import KML_NAMESPACE

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("spatial_kit.readers")


class VectorReadError(PermanentError):
    """Raised when a vector file cannot be opened or decoded."""

    default_operation = "read_file"
    default_code = "VECTOR_READ_FAILED"


# ---------------------------------------------------------------------------
# XML / KML namespace validation
# ---------------------------------------------------------------------------


def validate_xml(kml_path: Path) -> None:
    """Validate that the file is well-formed XML with a KML root element.

    Raises:
        VectorReadError: If the file is unreadable, empty, not XML or not KML.
    """
    from lxml import etree  # type: ignore[attr-defined]

    try:
        content = kml_path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read KML file: {exc}"
        raise VectorReadError(msg) from exc

    if not content.strip():
        msg = f"KML file is empty: {kml_path.name}"
        raise VectorReadError(msg)

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        root = etree.fromstring(content, parser=parser)
    except etree.XMLSyntaxError as exc:
        msg = f"Not valid XML: {exc}"
        raise VectorReadError(msg) from exc

    tag = root.tag
    if f"{{{KML_NAMESPACE}}}" not in tag and "kml" not in tag.lower():
        msg = f"Not a KML file; root element is <{tag}>"
        raise VectorReadError(msg)


# ---------------------------------------------------------------------------
# Coordinate validation
# ---------------------------------------------------------------------------


def validate_coordinates(coords: list[tuple[float, float]], placemark_name: str) -> None:
    """Validate that all coordinates are within WGS 84 bounds.

    Raises:
        MalformedGeometry: If any coordinate is out of bounds.
    """
    for lon, lat in coords:
        if not (MIN_LONGITUDE <= lon <= MAX_LONGITUDE):
            msg = (
                f"Longitude {lon} out of WGS 84 range [{MIN_LONGITUDE}, {MAX_LONGITUDE}] "
                f"in Placemark '{placemark_name}'"
            )
            raise MalformedGeometry(msg, operation="read_file")
        if not (MIN_LATITUDE <= lat <= MAX_LATITUDE):
            msg = (
                f"Latitude {lat} out of WGS 84 range [{MIN_LATITUDE}, {MAX_LATITUDE}] "
                f"in Placemark '{placemark_name}'"
            )
            raise MalformedGeometry(msg, operation="read_file")
