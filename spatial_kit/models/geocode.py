"""Pydantic models for the geocoding collaborator.

A ``GeocodeRequest`` is a structured postal address; a ``GeocodeResult``
is the coordinate pair plus match-quality metadata returned for it.
Results convert to a WGS 84 point collection so geocoded addresses can
flow straight into the spatial operations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from shapely.geometry import Point

from spatial_kit.core.constants import WGS84
from spatial_kit.models.collection import FeatureCollection
from spatial_kit.models.feature import Feature

if TYPE_CHECKING:
    from collections.abc import Iterable


class GeocodeRequest(BaseModel):
    """A structured address to geocode.

    Attributes:
        street: Street number and name (``"1600 Pennsylvania Ave NW"``).
        city: City or place name.
        state: State name or USPS abbreviation.
        postal_code: ZIP or postal code.
    """

    model_config = ConfigDict(frozen=True)

    street: str = Field(min_length=1)
    city: str = ""
    state: str = ""
    postal_code: str = ""

    def one_line(self) -> str:
        """Render as a single-line address (``"street, city, state zip"``)."""
        tail = " ".join(p for p in (self.state, self.postal_code) if p)
        return ", ".join(p for p in (self.street, self.city, tail) if p)


class GeocodeResult(BaseModel):
    """Geocoder answer for one request.

    Coordinates are WGS 84 longitude/latitude. Unmatched results carry
    ``matched=False`` and no coordinates.

    Attributes:
        request: The address that was submitted.
        matched: Whether the service found a match.
        longitude: Matched longitude (x).
        latitude: Matched latitude (y).
        matched_address: Normalised address reported by the service.
        match_type: Match quality reported by the service
            (e.g. ``"Exact"``, ``"Non_Exact"``).
        tiger_line_id: TIGER/Line edge identifier of the match.
        side: Side of the street (``"L"`` / ``"R"``).
    """

    request: GeocodeRequest
    matched: bool = False
    longitude: float | None = None
    latitude: float | None = None
    matched_address: str = ""
    match_type: str = ""
    tiger_line_id: str = ""
    side: str = ""

    def point(self) -> Point | None:
        if not self.matched or self.longitude is None or self.latitude is None:
            return None
        return Point(self.longitude, self.latitude)


def results_to_collection(results: Iterable[GeocodeResult]) -> FeatureCollection:
    """Convert matched geocode results into a WGS 84 point collection.

    Unmatched results have no geometry and are left out.
    """
    features: list[Feature] = []
    for result in results:
        point = result.point()
        if point is None:
            continue
        features.append(
            Feature(
                geometry=point,
                properties={
                    "street": result.request.street,
                    "city": result.request.city,
                    "state": result.request.state,
                    "postal_code": result.request.postal_code,
                    "matched_address": result.matched_address,
                    "match_type": result.match_type,
                },
            )
        )
    return FeatureCollection(tuple(features), WGS84)
