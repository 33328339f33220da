"""CRS transformation.

Reprojects every geometry of a collection with a pyproj ``Transformer``
(``always_xy=True``, so coordinates are always lon/lat or easting/northing
order regardless of the CRS axis definition). The input collection is
never modified.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import numpy as np
import shapely
from pyproj import Transformer
from pyproj.exceptions import CRSError, ProjError
from shapely.ops import transform as shapely_transform

from spatial_kit.core.constants import WGS84
from spatial_kit.core.crs import is_projected, normalize_crs, utm_crs_for
from spatial_kit.core.exceptions import ProjectionUndefined, ValidationError
from spatial_kit.models.collection import FeatureCollection

logger = logging.getLogger("spatial_kit.operations.transform")


def transform(collection: FeatureCollection, target_crs: object) -> FeatureCollection:
    """Reproject *collection* into *target_crs*.

    Args:
        collection: Source features.
        target_crs: EPSG integer, authority string, WKT or ``pyproj.CRS``.

    Returns:
        A new collection tagged with the normalised *target_crs*.

    Raises:
        UnknownCRS: If *target_crs* cannot be resolved.
        ProjectionUndefined: If no transformation path exists or a
            coordinate cannot be transformed.
    """
    target = normalize_crs(target_crs)
    if target == collection.crs:
        return collection.with_features(collection.features)

    transformer = _get_transformer(collection.crs, target)

    def _project(x: object, y: object, z: object = None) -> tuple[object, object]:
        return transformer.transform(x, y, errcheck=True)

    projected = []
    for idx, geometry in enumerate(collection.geometries):
        try:
            moved = shapely_transform(_project, geometry)
        except ProjError as exc:
            raise ProjectionUndefined(
                collection.crs, target, f"feature {idx} could not be transformed: {exc}"
            ) from exc
        if not np.isfinite(shapely.get_coordinates(moved)).all():
            raise ProjectionUndefined(
                collection.crs, target, f"feature {idx} has no finite image in {target}"
            )
        projected.append(moved)

    logger.debug(
        "Transformed | features=%d | from=%s | to=%s",
        len(projected),
        collection.crs,
        target,
    )
    return collection.with_geometries(projected, target)


@lru_cache(maxsize=64)
def _get_transformer(source: str, target: str) -> Transformer:
    try:
        return Transformer.from_crs(source, target, always_xy=True)
    except (CRSError, ProjError) as exc:
        raise ProjectionUndefined(source, target, str(exc)) from exc


def estimate_utm_crs(collection: FeatureCollection) -> str:
    """Pick the WGS 84 UTM zone containing the centre of *collection*.

    Raises:
        ValidationError: If the collection is empty.
    """
    if collection.is_empty:
        msg = "Cannot estimate a UTM zone for an empty collection"
        raise ValidationError(msg, operation="estimate_utm_crs", code="EMPTY_COLLECTION")

    minx, miny, maxx, maxy = collection.bounds
    centre_x = (minx + maxx) / 2
    centre_y = (miny + maxy) / 2
    if collection.crs != WGS84:
        to_wgs = _get_transformer(collection.crs, WGS84)
        centre_x, centre_y = to_wgs.transform(centre_x, centre_y)
    return utm_crs_for(centre_x, centre_y)


def to_projected(collection: FeatureCollection) -> FeatureCollection:
    """Return *collection* in a projected CRS, reprojecting to UTM if geographic."""
    if is_projected(collection.crs):
        return collection
    utm = estimate_utm_crs(collection)
    logger.info("Projecting geographic collection | from=%s | to=%s", collection.crs, utm)
    return transform(collection, utm)
