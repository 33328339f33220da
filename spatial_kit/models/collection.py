"""Data model for a feature collection.

A FeatureCollection is an ordered sequence of Features sharing one CRS
tag. It is a value object: every method that changes contents returns
a new collection.

Geometry is always present on a collection. Attribute-only rows are
obtained explicitly through ``to_records()``, never as a side effect of
an operation's argument order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
import shapely

from spatial_kit.core.constants import WGS84
from spatial_kit.core.crs import normalize_crs
from spatial_kit.core.exceptions import SchemaFieldMissing, ValidationError
from spatial_kit.models.feature import Feature

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from shapely.geometry.base import BaseGeometry


@dataclass(frozen=True, slots=True)
class FeatureCollection:
    """Ordered features sharing one coordinate reference system.

    Attributes:
        features: The features, in order.
        crs: Normalised CRS string (``"EPSG:4326"``); EPSG integers and
            ``pyproj.CRS`` objects are accepted and normalised.
    """

    features: tuple[Feature, ...] = ()
    crs: str = WGS84

    def __post_init__(self) -> None:
        object.__setattr__(self, "features", tuple(self.features))
        object.__setattr__(self, "crs", normalize_crs(self.crs))

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features)

    def __getitem__(self, index: int) -> Feature:
        return self.features[index]

    # ------------------------------------------------------------------
    # Geometry access
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.features

    @property
    def geometries(self) -> list[BaseGeometry]:
        return [f.geometry for f in self.features]

    @property
    def geometry_array(self) -> np.ndarray:
        """Geometries as a numpy object array for vectorised shapely calls."""
        arr = np.empty(len(self.features), dtype=object)
        arr[:] = self.geometries
        return arr

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Total ``(minx, miny, maxx, maxy)``; NaNs when empty."""
        minx, miny, maxx, maxy = shapely.total_bounds(self.geometry_array)
        return (float(minx), float(miny), float(maxx), float(maxy))

    # ------------------------------------------------------------------
    # Attribute access
    # ------------------------------------------------------------------

    @property
    def field_names(self) -> list[str]:
        """Field names in first-seen order across all features."""
        seen: dict[str, None] = {}
        for feature in self.features:
            for key in feature.properties:
                seen.setdefault(key, None)
        return list(seen)

    def values(self, field: str, *, operation: str = "") -> list[Any]:
        """Return the values of *field*, aligned with the features.

        Raises:
            SchemaFieldMissing: If any feature lacks the field.
        """
        out: list[Any] = []
        for feature in self.features:
            if field not in feature.properties:
                raise SchemaFieldMissing(field, self.field_names, operation=operation)
            out.append(feature.properties[field])
        return out

    def require_fields(self, fields: Iterable[str], *, operation: str = "") -> None:
        """Raise ``SchemaFieldMissing`` for the first field absent from any feature."""
        for field in fields:
            for feature in self.features:
                if field not in feature.properties:
                    raise SchemaFieldMissing(field, self.field_names, operation=operation)

    # ------------------------------------------------------------------
    # Derivation (always returns a new collection)
    # ------------------------------------------------------------------

    def subset(self, indices: Iterable[int]) -> FeatureCollection:
        return FeatureCollection(tuple(self.features[i] for i in indices), self.crs)

    def with_features(self, features: Iterable[Feature]) -> FeatureCollection:
        return FeatureCollection(tuple(features), self.crs)

    def with_column(self, name: str, values: Sequence[Any]) -> FeatureCollection:
        """Return a copy with *name* set on every feature from *values*.

        Raises:
            ValidationError: If ``len(values)`` differs from the collection length.
        """
        if len(values) != len(self.features):
            msg = f"Column {name!r} has {len(values)} value(s) for {len(self.features)} feature(s)"
            raise ValidationError(msg, code="LENGTH_MISMATCH")
        return self.with_features(
            f.with_properties(**{name: v}) for f, v in zip(self.features, values, strict=True)
        )

    def with_geometries(
        self,
        geometries: Sequence[BaseGeometry],
        crs: object | None = None,
    ) -> FeatureCollection:
        """Return a copy with geometries replaced, optionally re-tagged to *crs*."""
        if len(geometries) != len(self.features):
            msg = f"Got {len(geometries)} geometries for {len(self.features)} feature(s)"
            raise ValidationError(msg, code="LENGTH_MISMATCH")
        return FeatureCollection(
            tuple(
                f.with_geometry(g) for f, g in zip(self.features, geometries, strict=True)
            ),
            self.crs if crs is None else crs,
        )

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_records(self) -> list[dict[str, Any]]:
        """Attribute rows with geometry dropped."""
        return [dict(f.properties) for f in self.features]

    def to_geojson(self) -> dict[str, object]:
        """Serialise to a GeoJSON FeatureCollection mapping.

        A ``crs`` member is only written for non-WGS 84 collections.
        """
        data: dict[str, object] = {
            "type": "FeatureCollection",
            "features": [f.to_dict() for f in self.features],
        }
        if self.crs != WGS84:
            data["crs"] = {"type": "name", "properties": {"name": self.crs}}
        return data

    @classmethod
    def from_geojson(cls, data: dict[str, Any], crs: object | None = None) -> FeatureCollection:
        """Build a collection from a GeoJSON FeatureCollection mapping.

        CRS precedence: the *crs* argument, then a legacy ``crs`` member,
        then WGS 84 (RFC 7946).

        Raises:
            MalformedGeometry: If any feature geometry is missing or invalid.
            TypeError: If ``features`` is not a list.
        """
        features_raw = data.get("features", [])
        if not isinstance(features_raw, list):
            msg = f"features must be a list, got {type(features_raw).__name__}"
            raise TypeError(msg)
        if crs is None:
            crs = (data.get("crs") or {}).get("properties", {}).get("name") or WGS84
        return cls(tuple(Feature.from_dict(f) for f in features_raw), crs)

    @classmethod
    def from_records(
        cls,
        records: Sequence[dict[str, Any]],
        geometries: Sequence[BaseGeometry],
        crs: object = WGS84,
    ) -> FeatureCollection:
        """Pair attribute rows with geometries."""
        if len(records) != len(geometries):
            msg = f"Got {len(records)} record(s) for {len(geometries)} geometries"
            raise ValidationError(msg, code="LENGTH_MISMATCH")
        return cls(
            tuple(
                Feature(geometry=g, properties=r)
                for r, g in zip(records, geometries, strict=True)
            ),
            crs,
        )
