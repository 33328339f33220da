"""Shared toolkit constants, kept in one place.

Centralises CRS codes, coordinate bounds and geometry rules that are
shared by models, readers and operations.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# CRS
# ---------------------------------------------------------------------------

WGS84: str = "EPSG:4326"
"""Geographic WGS 84, the default CRS for GeoJSON, KML and geocoder output."""

WEB_MERCATOR: str = "EPSG:3857"
"""Spherical Mercator, used by web basemaps."""

UTM_NORTH_BASE: int = 32600
UTM_SOUTH_BASE: int = 32700

# WGS 84 coordinate bounds
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0

# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

# Minimum coordinate pairs in a closed ring (3 distinct + closing = 4)
MIN_RING_COORDS = 4

SUPPORTED_GEOMETRY_TYPES = frozenset(
    {
        "Point",
        "MultiPoint",
        "LineString",
        "MultiLineString",
        "Polygon",
        "MultiPolygon",
    }
)

POLYGONAL_TYPES = frozenset({"Polygon", "MultiPolygon"})
