"""Data model for a single feature.

A Feature pairs one shapely geometry with an attribute record. Features
are immutable; operations that change attributes or geometry build new
features rather than editing existing ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from shapely.errors import ShapelyError
from shapely.geometry import Polygon, mapping, shape
from shapely.geometry.base import BaseGeometry
from shapely.validation import explain_validity

from spatial_kit.core.constants import MIN_RING_COORDS, POLYGONAL_TYPES, SUPPORTED_GEOMETRY_TYPES
from spatial_kit.core.exceptions import MalformedGeometry

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True, slots=True)
class Feature:
    """A geometry with its attribute record.

    Attributes:
        geometry: A shapely Point, Polygon, MultiPolygon (or other
            supported vector type).
        properties: Mapping from field name to scalar value.
    """

    geometry: BaseGeometry
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", dict(self.properties))

    @property
    def geom_type(self) -> str:
        return self.geometry.geom_type

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def with_properties(self, **updates: Any) -> Feature:
        """Return a copy with *updates* merged into the properties."""
        return Feature(geometry=self.geometry, properties={**self.properties, **updates})

    def with_geometry(self, geometry: BaseGeometry) -> Feature:
        return Feature(geometry=geometry, properties=self.properties)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a GeoJSON Feature mapping."""
        return {
            "type": "Feature",
            "properties": dict(self.properties),
            "geometry": mapping(self.geometry),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Feature:
        """Deserialise from a GeoJSON Feature mapping.

        Raises:
            MalformedGeometry: If the geometry is missing or cannot be built.
            TypeError: If ``properties`` is not a mapping.
        """
        geom_raw = data.get("geometry")
        if not geom_raw:
            msg = "GeoJSON feature has no geometry"
            raise MalformedGeometry(msg)
        try:
            geometry = shape(geom_raw)
        except (AttributeError, KeyError, TypeError, ValueError, ShapelyError) as exc:
            msg = f"Cannot build geometry from GeoJSON: {exc}"
            raise MalformedGeometry(msg) from exc

        props = data.get("properties") or {}
        if not isinstance(props, dict):
            msg = f"properties must be a dict, got {type(props).__name__}"
            raise TypeError(msg)
        return cls(geometry=validate_geometry(geometry), properties=props)


# ---------------------------------------------------------------------------
# Construction and validation helpers
# ---------------------------------------------------------------------------


def polygon_from_rings(
    exterior: Sequence[tuple[float, float]],
    holes: Sequence[Sequence[tuple[float, float]]] | None = None,
) -> Polygon:
    """Build a Polygon from explicit rings, enforcing the closed-ring rule.

    Shapely silently closes open rings; this constructor refuses them so
    that malformed input is reported instead of repaired.

    Raises:
        MalformedGeometry: If any ring has fewer than 4 coordinate pairs
            or its first pair differs from its last.
    """
    _validate_ring(exterior, "exterior ring")
    holes = list(holes or [])
    for idx, ring in enumerate(holes):
        _validate_ring(ring, f"interior ring {idx}")
    return Polygon(exterior, holes)


def _validate_ring(ring: Sequence[tuple[float, float]], context: str) -> None:
    if len(ring) < MIN_RING_COORDS:
        msg = f"{context} has {len(ring)} coordinate pair(s), need at least {MIN_RING_COORDS}"
        raise MalformedGeometry(msg)
    if tuple(ring[0]) != tuple(ring[-1]):
        msg = f"{context} is not closed: first {tuple(ring[0])} != last {tuple(ring[-1])}"
        raise MalformedGeometry(msg)


def validate_geometry(
    geometry: object,
    *,
    polygonal: bool = False,
    require_valid: bool = False,
    context: str = "",
) -> BaseGeometry:
    """Check that *geometry* is a usable shapely geometry and return it.

    Args:
        geometry: Candidate geometry.
        polygonal: Require Polygon or MultiPolygon.
        require_valid: Require OGC validity (no self-intersection).
        context: Label used in error messages.

    Raises:
        MalformedGeometry: On a non-geometry, an unsupported or empty
            geometry, or (when requested) a non-polygonal or invalid one.
    """
    label = f" in {context}" if context else ""
    if not isinstance(geometry, BaseGeometry):
        msg = f"Expected a shapely geometry{label}, got {type(geometry).__name__}"
        raise MalformedGeometry(msg)
    if geometry.geom_type not in SUPPORTED_GEOMETRY_TYPES:
        msg = f"Unsupported geometry type {geometry.geom_type}{label}"
        raise MalformedGeometry(msg)
    if geometry.is_empty:
        msg = f"Empty {geometry.geom_type}{label}"
        raise MalformedGeometry(msg)
    if polygonal and geometry.geom_type not in POLYGONAL_TYPES:
        msg = f"Expected Polygon or MultiPolygon{label}, got {geometry.geom_type}"
        raise MalformedGeometry(msg)
    if require_valid and not geometry.is_valid:
        msg = f"Invalid {geometry.geom_type}{label}: {explain_validity(geometry)}"
        raise MalformedGeometry(msg)
    return geometry
