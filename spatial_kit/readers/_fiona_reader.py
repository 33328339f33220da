"""Fiona-based vector reader (primary).

Reads any OGR-supported vector format (GeoJSON, Shapefile, GeoPackage,
KML, ...) into a FeatureCollection. The layer CRS is taken from the
layer's WKT; records without geometry are skipped, and every other
geometry is validated so malformed input fails loudly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shapely.errors import ShapelyError
from shapely.geometry import shape

from spatial_kit.core.crs import normalize_crs
from spatial_kit.core.exceptions import MalformedGeometry
from spatial_kit.models.collection import FeatureCollection
from spatial_kit.models.feature import Feature, validate_geometry
from spatial_kit.readers._normalization import clean_properties
from spatial_kit.readers._validation import VectorReadError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("spatial_kit.readers")


def read_with_fiona(
    path: Path,
    *,
    layer: str | int | None = None,
    crs: object | None = None,
    default_crs: object,
    all_layers: bool = False,
    driver: str | None = None,
) -> FeatureCollection:
    """Read a vector layer with fiona.

    Args:
        path: File on disk.
        layer: Layer name or index; the first layer when ``None``.
        crs: CRS overriding whatever the file declares.
        default_crs: CRS assumed when the file declares none.
        all_layers: Read and concatenate every layer (KML folders are
            exposed by OGR as separate layers). Ignored when *layer* is set.
        driver: OGR driver to open with; OGR sniffs the format when ``None``.

    Raises:
        VectorReadError: If OGR cannot open or decode the file, or layers
            disagree on CRS.
        MalformedGeometry: If a record holds an unsupported or empty geometry.
    """
    import fiona
    from fiona.errors import FionaError

    try:
        if layer is None and all_layers:
            layers: list[str | int | None] = list(fiona.listlayers(str(path)))
        else:
            layers = [layer]
        parts = [_read_layer(path, name, crs, default_crs, driver) for name in layers]
    except FionaError as exc:
        msg = f"Cannot read {path.name}: {exc}"
        raise VectorReadError(msg) from exc

    if not parts:
        return FeatureCollection((), normalize_crs(crs or default_crs))

    layer_crs = {p.crs for p in parts if not p.is_empty} or {parts[0].crs}
    if len(layer_crs) > 1:
        msg = f"Layers of {path.name} declare different CRS: {sorted(layer_crs)}"
        raise VectorReadError(msg)

    features = tuple(f for p in parts for f in p.features)
    return FeatureCollection(features, layer_crs.pop())


def _read_layer(
    path: Path,
    layer: str | int | None,
    crs: object | None,
    default_crs: object,
    driver: str | None,
) -> FeatureCollection:
    import fiona

    features: list[Feature] = []
    with fiona.open(str(path), layer=layer, driver=driver) as source:
        layer_crs = normalize_crs(crs) if crs is not None else _crs_from_fiona(source, default_crs)

        for idx, record in enumerate(source):
            geom = record.geometry
            if geom is None:
                logger.warning(
                    "Skipping record %d without geometry in %s (layer=%s)",
                    idx,
                    path.name,
                    layer,
                )
                continue
            try:
                geometry = shape(geom)
            except (AttributeError, KeyError, TypeError, ValueError, ShapelyError) as exc:
                msg = f"Cannot build geometry for record {idx} of {path.name}: {exc}"
                raise MalformedGeometry(msg, operation="read_file") from exc
            validate_geometry(geometry, context=f"record {idx} of {path.name}")
            features.append(
                Feature(geometry=geometry, properties=clean_properties(record.properties))
            )

    logger.debug(
        "Read layer | file=%s | layer=%s | features=%d | crs=%s",
        path.name,
        layer,
        len(features),
        layer_crs,
    )
    return FeatureCollection(tuple(features), layer_crs)


def _crs_from_fiona(source: object, default_crs: object) -> str:
    """Return the layer CRS, falling back to *default_crs* when undeclared."""
    wkt = getattr(source, "crs_wkt", "") or ""
    if not wkt:
        return normalize_crs(default_crs)
    return normalize_crs(wkt)
