"""lxml-based KML reader (fallback).

Reads KML by walking the lxml element tree. Used when OGR's KML driver
fails or is unavailable. Every Placemark with a Point, LineString or
Polygon (directly or inside a MultiGeometry) becomes one feature in
WGS 84; the Placemark name, description and ExtendedData become its
attributes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shapely.geometry import LineString, MultiLineString, MultiPoint, MultiPolygon, Point

from spatial_kit.core.constants import WGS84
from spatial_kit.core.exceptions import MalformedGeometry
from spatial_kit.models.collection import FeatureCollection
from spatial_kit.models.feature import Feature, polygon_from_rings, validate_geometry
from spatial_kit.readers._constants import KML_NAMESPACE
from spatial_kit.readers._normalization import (
    extract_extended_data_lxml,
    parse_coordinates_text,
)
from spatial_kit.readers._validation import validate_coordinates

if TYPE_CHECKING:
    from pathlib import Path

    from lxml.etree import _Element
    from shapely.geometry import Polygon
    from shapely.geometry.base import BaseGeometry

logger = logging.getLogger("spatial_kit.readers")


def read_kml_with_lxml(kml_path: Path) -> FeatureCollection:
    """Read every geometry-bearing Placemark of a KML file.

    Raises:
        MalformedGeometry: If a Placemark has out-of-range coordinates,
            an unclosed or short ring, or an empty geometry.
    """
    from lxml import etree  # type: ignore[attr-defined]

    content = kml_path.read_bytes()
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    root: _Element = etree.fromstring(content, parser=parser)
    ns = {"kml": KML_NAMESPACE}

    features: list[Feature] = []
    for idx, pm in enumerate(root.findall(".//kml:Placemark", ns)):
        name_elem = pm.find("kml:name", ns)
        desc_elem = pm.find("kml:description", ns)
        placemark_name = (name_elem.text or "").strip() if name_elem is not None else ""
        display_name = placemark_name or f"Placemark {idx}"

        geometry = _placemark_geometry(pm, ns, display_name)
        if geometry is None:
            logger.debug("Placemark '%s' has no geometry", display_name)
            continue
        validate_geometry(geometry, context=f"Placemark '{display_name}'")

        properties: dict[str, str] = {"name": placemark_name}
        if desc_elem is not None and desc_elem.text:
            properties["description"] = desc_elem.text.strip()
        properties.update(extract_extended_data_lxml(pm, ns))

        features.append(Feature(geometry=geometry, properties=properties))

    logger.info("Read %d Placemark(s) from %s with lxml", len(features), kml_path.name)
    return FeatureCollection(tuple(features), WGS84)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _placemark_geometry(
    pm: _Element, ns: dict[str, str], display_name: str
) -> BaseGeometry | None:
    """Build the shapely geometry of a Placemark, or ``None`` if it has none."""
    polygons = [_parse_polygon(p, ns, display_name) for p in pm.findall(".//kml:Polygon", ns)]
    points = [
        _single_coordinate(c, ns, display_name) for c in pm.findall(".//kml:Point", ns)
    ]
    lines = [_parse_line(c, ns, display_name) for c in pm.findall(".//kml:LineString", ns)]

    kinds = sum(1 for group in (polygons, points, lines) if group)
    if kinds == 0:
        return None
    if kinds > 1:
        msg = f"Placemark '{display_name}' mixes geometry types in a MultiGeometry"
        raise MalformedGeometry(msg, operation="read_file")

    if polygons:
        return polygons[0] if len(polygons) == 1 else MultiPolygon(polygons)
    if points:
        return Point(points[0]) if len(points) == 1 else MultiPoint(points)
    return lines[0] if len(lines) == 1 else MultiLineString(lines)


def _coordinates(elem: _Element, ns: dict[str, str], display_name: str) -> list[tuple[float, float]]:
    coords_elem = elem.find("kml:coordinates", ns)
    text = coords_elem.text if coords_elem is not None else None
    coords = parse_coordinates_text(text.strip()) if text else []
    validate_coordinates(coords, display_name)
    return coords


def _single_coordinate(
    point_elem: _Element, ns: dict[str, str], display_name: str
) -> tuple[float, float]:
    coords = _coordinates(point_elem, ns, display_name)
    if len(coords) != 1:
        msg = f"Point in Placemark '{display_name}' has {len(coords)} coordinates, expected 1"
        raise MalformedGeometry(msg, operation="read_file")
    return coords[0]


def _parse_line(line_elem: _Element, ns: dict[str, str], display_name: str) -> LineString:
    coords = _coordinates(line_elem, ns, display_name)
    if len(coords) < 2:
        msg = (
            f"LineString in Placemark '{display_name}' has {len(coords)} "
            f"coordinate(s), expected at least 2"
        )
        raise MalformedGeometry(msg, operation="read_file")
    return LineString(coords)


def _parse_polygon(polygon_elem: _Element, ns: dict[str, str], display_name: str) -> Polygon:
    """Parse a KML Polygon element into a closed-ring shapely Polygon."""
    outer = polygon_elem.find("kml:outerBoundaryIs/kml:LinearRing", ns)
    if outer is None:
        msg = (
            f"Placemark '{display_name}' has a <Polygon> with no exterior "
            f"ring (missing outerBoundaryIs/LinearRing)"
        )
        raise MalformedGeometry(msg, operation="read_file")
    exterior = _coordinates(outer, ns, display_name)
    holes = [
        _coordinates(ring, ns, f"{display_name} (hole)")
        for ring in polygon_elem.findall("kml:innerBoundaryIs/kml:LinearRing", ns)
    ]
    return polygon_from_rings(exterior, holes)
