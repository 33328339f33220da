"""Nearest-feature search and planar distances.

Nearest search runs on a shapely ``STRtree`` over the candidates and is
deterministic: when several candidates are equally near, the lowest
candidate index wins. Distances are Euclidean in the linear units of
the shared CRS and are refused outright for geographic (angular) CRS.
"""

from __future__ import annotations

import logging

import numpy as np
import shapely

from spatial_kit.core.crs import require_projected, require_same_crs
from spatial_kit.core.exceptions import MalformedGeometry, ValidationError
from spatial_kit.models.collection import FeatureCollection

logger = logging.getLogger("spatial_kit.operations.nearest")


def nearest_index(queries: FeatureCollection, candidates: FeatureCollection) -> list[int]:
    """Return, for each query, the index of its nearest candidate.

    Returns:
        Candidate indices aligned with *queries*. Ties resolve to the
        lowest candidate index.

    Raises:
        CRSMismatch: If the operands carry different CRS.
        ValidationError: If *candidates* is empty.
        MalformedGeometry: If a query geometry is empty.
    """
    require_same_crs(queries, candidates, operation="nearest_index")
    if candidates.is_empty:
        msg = "nearest_index needs at least one candidate"
        raise ValidationError(msg, operation="nearest_index", code="EMPTY_CANDIDATES")
    if queries.is_empty:
        return []

    tree = shapely.STRtree(candidates.geometry_array)
    query_idx, candidate_idx = tree.query_nearest(queries.geometry_array, all_matches=True)

    sentinel = len(candidates)
    best = np.full(len(queries), sentinel, dtype=np.int64)
    np.minimum.at(best, query_idx, candidate_idx)

    unmatched = np.flatnonzero(best == sentinel)
    if unmatched.size:
        msg = f"Query feature {int(unmatched[0])} has an empty geometry"
        raise MalformedGeometry(msg, operation="nearest_index")

    logger.debug("Nearest | queries=%d | candidates=%d", len(queries), len(candidates))
    return [int(i) for i in best]


def pairwise_distance(a: FeatureCollection, b: FeatureCollection) -> list[float]:
    """Euclidean distance between aligned features of *a* and *b*.

    Returns:
        ``distance(a[i], b[i])`` for every ``i``, in CRS linear units.

    Raises:
        CRSMismatch: If the operands carry different CRS.
        CRSNotProjected: If the shared CRS is geographic.
        ValidationError: If the collections differ in length.
    """
    crs = require_same_crs(a, b, operation="pairwise_distance")
    require_projected(crs, operation="pairwise_distance")
    if len(a) != len(b):
        msg = f"pairwise_distance needs aligned operands, got {len(a)} and {len(b)} features"
        raise ValidationError(msg, operation="pairwise_distance", code="LENGTH_MISMATCH")
    if a.is_empty:
        return []
    return [float(d) for d in shapely.distance(a.geometry_array, b.geometry_array)]


def nearest_distance(queries: FeatureCollection, candidates: FeatureCollection) -> list[float]:
    """Distance from each query to its nearest candidate.

    Composition of ``nearest_index`` and ``pairwise_distance``.

    Raises:
        CRSMismatch: If the operands carry different CRS.
        CRSNotProjected: If the shared CRS is geographic.
        ValidationError: If *candidates* is empty.
    """
    crs = require_same_crs(queries, candidates, operation="nearest_distance")
    require_projected(crs, operation="nearest_distance")
    indices = nearest_index(queries, candidates)
    return pairwise_distance(queries, candidates.subset(indices))
