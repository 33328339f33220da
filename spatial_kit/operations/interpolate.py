"""Areal-weighted interpolation between spatial partitions.

Redistributes numeric attributes known on a *source* partition onto a
*target* partition, assuming each attribute is spread uniformly over
each source unit.

For each target ``t`` and intersecting source ``s``:

- ``extensive`` (counts, totals):
  ``value(s) * A(s ∩ t) / A(s)``, summed over ``s``
- ``intensive`` (rates, densities):
  ``value(s) * A(s ∩ t) / A(t)``, summed over ``s``

Targets with no overlap receive ``0.0``. Areas must be measured in
linear units, so both partitions have to share one projected CRS.

The helpers at the bottom cover the usual follow-up on interpolated
census categories: deriving a remainder category from a total and its
parts, and computing shares, with negative drift clamped to zero.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

import numpy as np
import shapely

from spatial_kit.core.crs import require_projected, require_same_crs
from spatial_kit.core.exceptions import ValidationError
from spatial_kit.models.feature import validate_geometry

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from spatial_kit.models.collection import FeatureCollection

logger = logging.getLogger("spatial_kit.operations.interpolate")

EXTENSIVE = "extensive"
INTENSIVE = "intensive"
MODES = frozenset({EXTENSIVE, INTENSIVE})


def interpolate(
    source: FeatureCollection,
    target: FeatureCollection,
    fields: str | Iterable[str],
    mode: str = EXTENSIVE,
) -> FeatureCollection:
    """Interpolate *fields* from *source* onto *target* by overlap area.

    Args:
        source: Polygons carrying the known values.
        target: Polygons to receive the values.
        fields: Field name or names present on every source feature.
        mode: ``"extensive"`` for totals, ``"intensive"`` for rates.

    Returns:
        *target* with one float field added per entry of *fields*;
        existing attributes and geometry are unchanged.

    Raises:
        CRSMismatch: If source and target CRS differ.
        CRSNotProjected: If the shared CRS is geographic.
        SchemaFieldMissing: If a field is absent from the source.
        ValidationError: On an unknown *mode* or a non-numeric or infinite
            value.
        MalformedGeometry: If a geometry is not a valid (Multi)Polygon.
    """
    field_list = [fields] if isinstance(fields, str) else list(fields)

    crs = require_same_crs(source, target, operation="interpolate")
    require_projected(crs, operation="interpolate")
    source.require_fields(field_list, operation="interpolate")
    if mode not in MODES:
        msg = f"mode must be one of {sorted(MODES)}, got {mode!r}"
        raise ValidationError(msg, operation="interpolate", code="INVALID_MODE")

    for label, collection in (("source", source), ("target", target)):
        for idx, geometry in enumerate(collection.geometries):
            validate_geometry(
                geometry,
                polygonal=True,
                require_valid=True,
                context=f"{label} feature {idx}",
            )

    source_values = {name: _as_floats(source.values(name), name) for name in field_list}
    totals = {name: np.zeros(len(target), dtype=float) for name in field_list}

    if not source.is_empty and not target.is_empty:
        source_geoms = source.geometry_array
        target_geoms = target.geometry_array
        tree = shapely.STRtree(source_geoms)
        target_idx, source_idx = tree.query(target_geoms, predicate="intersects")

        if target_idx.size:
            overlap = shapely.area(
                shapely.intersection(target_geoms[target_idx], source_geoms[source_idx])
            )
            if mode == EXTENSIVE:
                denominator = shapely.area(source_geoms)[source_idx]
            else:
                denominator = shapely.area(target_geoms)[target_idx]
            weights = np.divide(
                overlap,
                denominator,
                out=np.zeros_like(overlap),
                where=denominator > 0,
            )

            for name in field_list:
                contribution = np.nan_to_num(source_values[name][source_idx] * weights, nan=0.0)
                np.add.at(totals[name], target_idx, contribution)

    result = target
    for name in field_list:
        result = result.with_column(name, [float(v) for v in totals[name]])

    logger.info(
        "Interpolated | sources=%d | targets=%d | fields=%s | mode=%s",
        len(source),
        len(target),
        ",".join(field_list),
        mode,
    )
    return result


def _as_floats(values: Sequence[Any], field: str) -> np.ndarray:
    """Convert source values to floats; ``None`` and NaN make no contribution.

    Every value is checked, whether or not its feature overlaps a target.
    Infinite values are rejected.
    """
    out = np.empty(len(values), dtype=float)
    for idx, value in enumerate(values):
        if value is None:
            out[idx] = np.nan
            continue
        if isinstance(value, bool):
            msg = f"Field {field!r} holds a boolean at feature {idx}"
            raise ValidationError(msg, operation="interpolate", code="NON_NUMERIC_FIELD")
        try:
            out[idx] = float(value)
        except (OverflowError, TypeError, ValueError) as exc:
            msg = f"Field {field!r} holds non-numeric value {value!r} at feature {idx}"
            raise ValidationError(
                msg, operation="interpolate", code="NON_NUMERIC_FIELD"
            ) from exc
        if np.isinf(out[idx]):
            msg = f"Field {field!r} holds non-finite value {value!r} at feature {idx}"
            raise ValidationError(msg, operation="interpolate", code="NON_NUMERIC_FIELD")
    return out


# ---------------------------------------------------------------------------
# Derived categories
# ---------------------------------------------------------------------------


def clamp_non_negative(value: float | None) -> float:
    """Floor *value* at zero; ``None`` and NaN count as zero."""
    if value is None or math.isnan(value):
        return 0.0
    return max(float(value), 0.0)


def derive_remainder(
    collection: FeatureCollection,
    total_field: str,
    part_fields: Sequence[str],
    out_field: str,
) -> FeatureCollection:
    """Add ``out_field = total - sum(parts)``, clamped at zero.

    Interpolated category subtotals can drift past their total through
    rounding; the remainder is floored so it never turns negative.

    Raises:
        SchemaFieldMissing: If the total or any part field is absent.
    """
    collection.require_fields([total_field, *part_fields], operation="derive_remainder")
    remainders = []
    for feature in collection:
        total = feature.properties[total_field] or 0.0
        parts = sum(feature.properties[p] or 0.0 for p in part_fields)
        remainders.append(clamp_non_negative(total - parts))
    return collection.with_column(out_field, remainders)


def share(
    collection: FeatureCollection,
    numerator: str,
    denominator: str,
    out_field: str,
) -> FeatureCollection:
    """Add ``out_field = numerator / denominator``.

    Negative numerators are clamped to zero first; a zero, negative or
    missing denominator yields ``0.0``.

    Raises:
        SchemaFieldMissing: If either field is absent.
    """
    collection.require_fields([numerator, denominator], operation="share")
    ratios = []
    for feature in collection:
        num = clamp_non_negative(feature.properties[numerator])
        den = feature.properties[denominator]
        ratios.append(num / den if den is not None and den > 0 else 0.0)
    return collection.with_column(out_field, ratios)
