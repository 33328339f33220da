"""Vector file reading and writing.

Reads a vector file into a FeatureCollection and writes one back out.
Uses fiona (OGR) as the primary reader for every format. KML files are
read with OGR's KML driver when fiona has it enabled (it is off by
default in recent fiona releases) and with lxml otherwise, or when OGR
fails on the file.

The reading pipeline is split into focused stages:
- **_validation**: read errors, XML/KML check, WGS 84 coordinate bounds
- **_normalization**: raw coord → tuple, OGR values, KML ExtendedData
- **_fiona_reader**: primary reader using fiona/OGR
- **_lxml_reader**: KML fallback reader using the lxml element tree
- **_fiona_writer**: writer using fiona/OGR
"""

from __future__ import annotations

import logging
from pathlib import Path

from spatial_kit.core.constants import WGS84
from spatial_kit.models.collection import FeatureCollection
from spatial_kit.readers._constants import (
    DRIVERS_BY_SUFFIX,
    KML_DRIVER,
    KML_NAMESPACE,
    KML_SUFFIXES,
)
from spatial_kit.readers._fiona_reader import read_with_fiona
from spatial_kit.readers._fiona_writer import write_with_fiona
from spatial_kit.readers._lxml_reader import read_kml_with_lxml
from spatial_kit.readers._normalization import (
    clean_properties,
    coords_to_tuples,
    extract_extended_data_lxml,
    parse_coordinates_text,
)
from spatial_kit.readers._validation import VectorReadError, validate_coordinates, validate_xml

logger = logging.getLogger("spatial_kit.readers")

__all__ = [
    "DRIVERS_BY_SUFFIX",
    "KML_NAMESPACE",
    "VectorReadError",
    "clean_properties",
    "coords_to_tuples",
    "extract_extended_data_lxml",
    "parse_coordinates_text",
    "read_file",
    "read_kml_with_lxml",
    "read_with_fiona",
    "validate_coordinates",
    "validate_xml",
    "write_file",
]


def read_file(
    path: Path | str,
    *,
    layer: str | int | None = None,
    crs: object | None = None,
    default_crs: object = WGS84,
) -> FeatureCollection:
    """Read a vector file into a FeatureCollection.

    Args:
        path: Filesystem path (str or pathlib.Path).
        layer: Layer name or index for multi-layer sources.
        crs: CRS overriding whatever the file declares (ignored for KML,
            which is always WGS 84).
        default_crs: CRS assumed when the file declares none
            (WGS 84, as RFC 7946 prescribes for GeoJSON).

    Returns:
        The fully materialised collection.

    Raises:
        VectorReadError: If the file is missing or cannot be decoded.
        MalformedGeometry: If a record holds an unsupported, empty or
            malformed geometry.
        UnknownCRS: If *crs* or the declared CRS cannot be resolved.
    """
    path = Path(path)
    if not path.exists():
        msg = f"No such file: {path}"
        raise VectorReadError(msg)

    logger.info("Reading vector file: %s", path.name)

    if path.suffix.lower() in KML_SUFFIXES:
        collection = _read_kml(path, layer=layer)
    else:
        collection = read_with_fiona(path, layer=layer, crs=crs, default_crs=default_crs)

    logger.info(
        "Read %d feature(s) from %s | crs=%s",
        len(collection),
        path.name,
        collection.crs,
    )
    return collection


def _read_kml(path: Path, *, layer: str | int | None) -> FeatureCollection:
    """Read KML with fiona, falling back to lxml when OGR fails."""
    import fiona

    validate_xml(path)
    if KML_DRIVER not in fiona.supported_drivers:
        logger.debug("OGR KML driver not enabled | file=%s | reader=lxml", path.name)
        return read_kml_with_lxml(path)
    try:
        return read_with_fiona(
            path, layer=layer, default_crs=WGS84, all_layers=True, driver=KML_DRIVER
        )
    except VectorReadError as fiona_err:
        logger.warning(
            "Fiona read failed for %s, trying lxml fallback: %s",
            path.name,
            fiona_err,
        )
        return read_kml_with_lxml(path)


def write_file(
    collection: FeatureCollection,
    path: Path | str,
    *,
    driver: str | None = None,
) -> Path:
    """Write *collection* to *path*; the driver is inferred from the suffix.

    Returns:
        The written path.

    Raises:
        VectorReadError: If no driver is known for the suffix or OGR
            cannot write the file.
    """
    path = Path(path)
    driver = driver or DRIVERS_BY_SUFFIX.get(path.suffix.lower())
    if driver is None:
        msg = f"Cannot infer an OGR driver for {path.name}; pass driver= explicitly"
        raise VectorReadError(msg, operation="write_file", code="VECTOR_WRITE_FAILED")
    write_with_fiona(collection, path, driver)
    return path
