"""Representative points for features.

``centroid`` is the area-weighted centre of mass of a geometry (shapely's
signed-area/moment computation, with holes subtracted). It is only
meaningful in linear units and may fall outside concave or annular
polygons. ``point_on_surface`` trades that accuracy for a guarantee that
the point lies inside the polygon.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import shapely

from spatial_kit.core.crs import normalize_crs, require_projected
from spatial_kit.models.feature import validate_geometry

if TYPE_CHECKING:
    from shapely.geometry import Point
    from shapely.geometry.base import BaseGeometry

    from spatial_kit.models.collection import FeatureCollection

logger = logging.getLogger("spatial_kit.operations.centroids")


def centroid(geometry: BaseGeometry, crs: object) -> Point:
    """Return the area-weighted centroid of *geometry*.

    Raises:
        CRSNotProjected: If *crs* is geographic.
        MalformedGeometry: If the geometry is empty or unsupported.
    """
    require_projected(normalize_crs(crs), operation="centroid")
    validate_geometry(geometry, context="centroid")
    return geometry.centroid


def point_on_surface(geometry: BaseGeometry) -> Point:
    """Return a point guaranteed to lie within *geometry*.

    Raises:
        MalformedGeometry: If the geometry is empty or unsupported.
    """
    validate_geometry(geometry, context="point_on_surface")
    return shapely.point_on_surface(geometry)


def centroids(collection: FeatureCollection) -> FeatureCollection:
    """Replace every geometry with its centroid, keeping attributes.

    Raises:
        CRSNotProjected: If the collection CRS is geographic.
        MalformedGeometry: If any geometry is empty or unsupported.
    """
    require_projected(collection.crs, operation="centroid")
    points = [centroid(g, collection.crs) for g in collection.geometries]
    logger.debug("Centroids | features=%d | crs=%s", len(points), collection.crs)
    return collection.with_geometries(points)


def surface_points(collection: FeatureCollection) -> FeatureCollection:
    """Replace every geometry with an interior point, keeping attributes."""
    points = [point_on_surface(g) for g in collection.geometries]
    return collection.with_geometries(points)
