"""Spatial predicate engine: filters, counts and joins by location.

All operations use non-empty intersection as the spatial relation and
require both operands to carry the same CRS. The CRS check runs before
any geometry is touched, so a mismatch never leaves partial results.
"""

from __future__ import annotations

import logging
from collections import defaultdict

import numpy as np
import shapely

from spatial_kit.core.crs import require_same_crs
from spatial_kit.core.exceptions import ValidationError
from spatial_kit.models.collection import FeatureCollection
from spatial_kit.models.feature import Feature

logger = logging.getLogger("spatial_kit.operations.predicates")

JOIN_HOW = frozenset({"left", "inner"})
GEOMETRY_SIDES = frozenset({"left", "right"})


def filter_within(subjects: FeatureCollection, boundary: FeatureCollection) -> FeatureCollection:
    """Keep the *subjects* that intersect the union of *boundary*.

    Feature order is preserved and no geometry is altered, so the result
    is a subset of *subjects* and filtering again by the same boundary
    returns an equal collection.

    Raises:
        CRSMismatch: If the operands carry different CRS.
    """
    require_same_crs(subjects, boundary, operation="filter_within")
    if boundary.is_empty or subjects.is_empty:
        return subjects.with_features(())

    union = shapely.union_all(boundary.geometry_array)
    shapely.prepare(union)
    mask = shapely.intersects(union, subjects.geometry_array)
    keep = np.flatnonzero(mask).tolist()

    logger.debug("Filtered | kept=%d | of=%d", len(keep), len(subjects))
    return subjects.subset(keep)


def count_contained(containers: FeatureCollection, points: FeatureCollection) -> list[int]:
    """Count the *points* intersecting each container.

    A point touching several containers is counted in every one of them.

    Returns:
        One count per container, aligned with *containers*.

    Raises:
        CRSMismatch: If the operands carry different CRS.
    """
    require_same_crs(containers, points, operation="count_contained")
    if containers.is_empty:
        return []
    if points.is_empty:
        return [0] * len(containers)

    tree = shapely.STRtree(points.geometry_array)
    container_idx, _point_idx = tree.query(containers.geometry_array, predicate="intersects")
    counts = np.bincount(container_idx, minlength=len(containers))
    return [int(c) for c in counts]


def spatial_join(
    left: FeatureCollection,
    right: FeatureCollection,
    *,
    how: str = "left",
    keep_geometry: str = "left",
    rsuffix: str = "right",
) -> FeatureCollection:
    """Join attributes of *right* onto *left* where geometries intersect.

    One output feature is produced per intersecting ``(left, right)``
    pair, in left order then right order. The result is always a
    FeatureCollection; which side's geometry it carries is chosen by
    *keep_geometry*, never by argument position.

    Args:
        left: Features whose rows drive the join.
        right: Features whose attributes are attached.
        how: ``"left"`` keeps unmatched left features with ``None`` for
            every right field; ``"inner"`` drops them.
        keep_geometry: ``"left"`` or ``"right"``. ``"right"`` requires
            ``how="inner"`` because unmatched rows have no right geometry.
        rsuffix: Suffix appended (as ``_<rsuffix>``) to right field names
            that clash with left field names. The suffixed names must
            themselves be free on both sides.

    Raises:
        CRSMismatch: If the operands carry different CRS.
        ValidationError: On an unknown *how* / *keep_geometry* value, or
            when a suffixed right field name is already taken.
    """
    if how not in JOIN_HOW:
        msg = f"how must be one of {sorted(JOIN_HOW)}, got {how!r}"
        raise ValidationError(msg, operation="spatial_join", code="INVALID_ARGUMENT")
    if keep_geometry not in GEOMETRY_SIDES:
        msg = f"keep_geometry must be one of {sorted(GEOMETRY_SIDES)}, got {keep_geometry!r}"
        raise ValidationError(msg, operation="spatial_join", code="INVALID_ARGUMENT")
    if keep_geometry == "right" and how != "inner":
        msg = "keep_geometry='right' requires how='inner'"
        raise ValidationError(msg, operation="spatial_join", code="INVALID_ARGUMENT")
    require_same_crs(left, right, operation="spatial_join")

    left_names = set(left.field_names)
    renamed = {
        name: f"{name}_{rsuffix}" if name in left_names else name for name in right.field_names
    }
    outputs = list(renamed.values())
    clashes = sorted({n for n in outputs if n in left_names or outputs.count(n) > 1})
    if clashes:
        msg = f"Right field names {clashes} are already taken; pick another rsuffix"
        raise ValidationError(msg, operation="spatial_join", code="FIELD_NAME_CLASH")

    matches: dict[int, list[int]] = defaultdict(list)
    if not left.is_empty and not right.is_empty:
        tree = shapely.STRtree(right.geometry_array)
        left_idx, right_idx = tree.query(left.geometry_array, predicate="intersects")
        order = np.lexsort((right_idx, left_idx))
        for i, j in zip(left_idx[order].tolist(), right_idx[order].tolist(), strict=True):
            matches[i].append(j)

    joined: list[Feature] = []
    for i, feature in enumerate(left.features):
        hits = matches.get(i, [])
        if not hits:
            if how == "left":
                empty = {new: None for new in renamed.values()}
                joined.append(feature.with_properties(**empty))
            continue
        for j in hits:
            other = right.features[j]
            attrs = {new: other.properties.get(old) for old, new in renamed.items()}
            props = {**feature.properties, **attrs}
            geometry = feature.geometry if keep_geometry == "left" else other.geometry
            joined.append(Feature(geometry=geometry, properties=props))

    logger.debug(
        "Joined | left=%d | right=%d | rows=%d | how=%s",
        len(left),
        len(right),
        len(joined),
        how,
    )
    return FeatureCollection(tuple(joined), left.crs)
