"""Planar and geodesic measurements.

Planar areas and lengths are computed in the collection's own linear
units and require a projected CRS. Geodesic areas are computed on the
WGS 84 ellipsoid with ``pyproj.Geod`` and accept any CRS (the collection
is moved to WGS 84 first when needed).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import shapely
from pyproj import Geod

from spatial_kit.core.constants import WGS84
from spatial_kit.core.crs import require_projected
from spatial_kit.models.feature import validate_geometry

if TYPE_CHECKING:
    from shapely.geometry import Polygon

    from spatial_kit.models.collection import FeatureCollection

logger = logging.getLogger("spatial_kit.operations.measure")

_GEOD = Geod(ellps="WGS84")


def areas(collection: FeatureCollection) -> list[float]:
    """Planar area of every feature, in squared CRS units.

    Raises:
        CRSNotProjected: If the collection CRS is geographic.
    """
    require_projected(collection.crs, operation="area")
    if collection.is_empty:
        return []
    return [float(a) for a in shapely.area(collection.geometry_array)]


def lengths(collection: FeatureCollection) -> list[float]:
    """Planar length (perimeter for polygons) of every feature.

    Raises:
        CRSNotProjected: If the collection CRS is geographic.
    """
    require_projected(collection.crs, operation="length")
    if collection.is_empty:
        return []
    return [float(d) for d in shapely.length(collection.geometry_array)]


def geodesic_areas(collection: FeatureCollection) -> list[float]:
    """Ellipsoidal area of every polygonal feature, in square metres.

    Holes are subtracted. Returns absolute areas regardless of ring
    winding order.

    Raises:
        MalformedGeometry: If a feature is not a Polygon or MultiPolygon.
        ProjectionUndefined: If the collection cannot be moved to WGS 84.
    """
    if collection.crs != WGS84:
        from spatial_kit.operations.transform import transform

        collection = transform(collection, WGS84)

    out: list[float] = []
    for idx, geometry in enumerate(collection.geometries):
        validate_geometry(geometry, polygonal=True, context=f"feature {idx}")
        parts = getattr(geometry, "geoms", [geometry])
        out.append(sum(_polygon_geodesic_area(p) for p in parts))
    logger.debug("Geodesic areas | features=%d", len(out))
    return out


def _polygon_geodesic_area(polygon: Polygon) -> float:
    lons, lats = polygon.exterior.coords.xy
    area_m2, _perimeter = _GEOD.polygon_area_perimeter(lons, lats)
    total = abs(area_m2)
    for ring in polygon.interiors:
        hole_lons, hole_lats = ring.coords.xy
        hole_m2, _ = _GEOD.polygon_area_perimeter(hole_lons, hole_lats)
        total -= abs(hole_m2)
    return total
