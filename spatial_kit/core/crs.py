"""CRS resolution and operand guards.

Every collection carries a normalised CRS string. These helpers resolve
user input (EPSG integers, authority strings, WKT, ``pyproj.CRS``) into
that string and enforce the preconditions shared by all operations:
identical CRS between operands, and linear units where distances or
areas are computed.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from pyproj import CRS
from pyproj.exceptions import CRSError

from spatial_kit.core.constants import UTM_NORTH_BASE, UTM_SOUTH_BASE, WGS84
from spatial_kit.core.exceptions import CRSMismatch, CRSNotProjected, UnknownCRS

if TYPE_CHECKING:
    from spatial_kit.models.collection import FeatureCollection


def normalize_crs(value: object) -> str:
    """Resolve *value* to a canonical CRS string.

    Integers are read as EPSG codes. Authority-registered systems become
    ``"AUTH:CODE"`` strings; anything else is kept as WKT.

    Raises:
        UnknownCRS: If pyproj cannot resolve the value.
    """
    if isinstance(value, CRS):
        return _canonical(value)
    if isinstance(value, bool) or value is None or value == "":
        raise UnknownCRS(value)
    if isinstance(value, int):
        value = f"EPSG:{value}"
    return _normalize_text(str(value))


@lru_cache(maxsize=128)
def _normalize_text(value: str) -> str:
    try:
        crs = CRS.from_user_input(value)
    except CRSError as exc:
        raise UnknownCRS(value, str(exc)) from exc
    return _canonical(crs)


def _canonical(crs: CRS) -> str:
    authority = crs.to_authority(min_confidence=90)
    if authority is None:
        return crs.to_wkt()
    code = f"{authority[0]}:{authority[1]}"
    # Coordinates are always handled lon/lat, so CRS84 and EPSG:4326 coincide.
    if code == "OGC:CRS84":
        return WGS84
    return code


@lru_cache(maxsize=128)
def resolve_crs(value: str) -> CRS:
    """Return the ``pyproj.CRS`` for a normalised CRS string."""
    try:
        return CRS.from_user_input(value)
    except CRSError as exc:
        raise UnknownCRS(value, str(exc)) from exc


def is_projected(crs: str) -> bool:
    """Whether *crs* has linear (not angular) axis units."""
    resolved = resolve_crs(crs)
    return not resolved.is_geographic


def require_same_crs(
    left: FeatureCollection,
    right: FeatureCollection,
    *,
    operation: str,
) -> str:
    """Return the shared CRS, or raise ``CRSMismatch``."""
    if left.crs != right.crs:
        raise CRSMismatch(left.crs, right.crs, operation=operation)
    return left.crs


def require_projected(crs: str, *, operation: str) -> None:
    """Raise ``CRSNotProjected`` if *crs* uses angular units."""
    if not is_projected(crs):
        raise CRSNotProjected(crs, operation=operation)


def utm_crs_for(lon: float, lat: float) -> str:
    """Determine the WGS 84 UTM CRS for a lon/lat coordinate.

    Returns an EPSG code like ``"EPSG:32610"`` (UTM zone 10N) or
    ``"EPSG:32710"`` (UTM zone 10S).
    """
    # UTM zone number: 1-based, 6° wide, starting at -180°
    zone_number = int((lon + 180) / 6) + 1
    zone_number = max(1, min(60, zone_number))

    if lat >= 0:
        return f"EPSG:{UTM_NORTH_BASE + zone_number}"
    return f"EPSG:{UTM_SOUTH_BASE + zone_number}"
