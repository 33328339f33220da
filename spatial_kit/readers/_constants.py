"""Shared constants for vector file I/O."""

from __future__ import annotations

# KML 2.2 namespace
KML_NAMESPACE = "http://www.opengis.net/kml/2.2"

KML_SUFFIXES = frozenset({".kml"})
KML_DRIVER = "KML"

# OGR driver per file suffix (used for writing; reading lets OGR sniff)
DRIVERS_BY_SUFFIX: dict[str, str] = {
    ".geojson": "GeoJSON",
    ".json": "GeoJSON",
    ".gpkg": "GPKG",
    ".shp": "ESRI Shapefile",
    ".kml": KML_DRIVER,
}

# fiona schema type per Python scalar type, in widening order
FIELD_TYPES: dict[type, str] = {
    bool: "bool",
    int: "int",
    float: "float",
    str: "str",
}
