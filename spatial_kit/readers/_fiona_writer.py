"""Fiona-based vector writer.

Writes a FeatureCollection to any OGR driver that supports creation.
The schema is inferred from the collection: a single geometry type when
all features agree (``"Unknown"`` otherwise) and one field type per
attribute, widened int → float and falling back to ``str``.
Values are cast to their field type before writing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from shapely.geometry import mapping

from spatial_kit.core.crs import resolve_crs
from spatial_kit.readers._constants import FIELD_TYPES
from spatial_kit.readers._validation import VectorReadError

if TYPE_CHECKING:
    from pathlib import Path

    from spatial_kit.models.collection import FeatureCollection

logger = logging.getLogger("spatial_kit.readers")


def write_with_fiona(collection: FeatureCollection, path: Path, driver: str) -> None:
    """Write *collection* to *path* using the OGR *driver*.

    Raises:
        VectorReadError: If OGR cannot create or write the file.
    """
    import fiona
    from fiona.errors import FionaError

    schema = {
        "geometry": _geometry_type(collection),
        "properties": _property_schema(collection),
    }
    try:
        with fiona.open(
            str(path),
            "w",
            driver=driver,
            schema=schema,
            crs_wkt=resolve_crs(collection.crs).to_wkt(),
        ) as sink:
            for feature in collection:
                props = {
                    name: _cast(feature.properties.get(name), kind)
                    for name, kind in schema["properties"].items()
                }
                sink.write(
                    fiona.Feature(
                        geometry=fiona.Geometry.from_dict(mapping(feature.geometry)),
                        properties=fiona.Properties(**props),
                    )
                )
    except FionaError as exc:
        msg = f"Cannot write {path.name} with driver {driver}: {exc}"
        raise VectorReadError(msg, operation="write_file", code="VECTOR_WRITE_FAILED") from exc

    logger.info(
        "Wrote | file=%s | driver=%s | features=%d | crs=%s",
        path.name,
        driver,
        len(collection),
        collection.crs,
    )


def _geometry_type(collection: FeatureCollection) -> str:
    kinds = {f.geom_type for f in collection}
    return kinds.pop() if len(kinds) == 1 else "Unknown"


def _property_schema(collection: FeatureCollection) -> dict[str, str]:
    schema: dict[str, str] = {}
    for name in collection.field_names:
        seen = {type(f.properties.get(name)) for f in collection} - {type(None)}
        schema[name] = _field_type(seen)
    return schema


def _field_type(seen: set[type[Any]]) -> str:
    if not seen:
        return "str"
    if len(seen) == 1:
        return FIELD_TYPES.get(seen.pop(), "str")
    if seen <= {int, float}:
        return "float"
    return "str"


def _cast(value: Any, kind: str) -> Any:
    """Coerce *value* to the schema field type; OGR nulls anything else."""
    if value is None:
        return None
    if kind == "float":
        return float(value)
    if kind == "str":
        return value if isinstance(value, str) else str(value)
    return value
