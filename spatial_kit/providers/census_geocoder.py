"""US Census Bureau geocoder adapter.

Resolves structured US street addresses to WGS 84 points through the
public Census geocoder (``/locations/address``). The service is free,
needs no key, and reports a single best match with match-quality and
TIGER/Line metadata.

One request is made per address; there is no batching or caching here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from spatial_kit.models.geocode import GeocodeResult
from spatial_kit.providers.base import GeocodeError, Geocoder, fetch_json

if TYPE_CHECKING:
    from spatial_kit.models.geocode import GeocodeRequest

logger = logging.getLogger("spatial_kit.providers.census_geocoder")

_ADDRESS_PATH = "locations/address"


class CensusGeocoder(Geocoder):
    """Geocoder backed by ``geocoding.geo.census.gov``."""

    name = "census"

    def geocode(self, request: GeocodeRequest) -> GeocodeResult:
        """Geocode *request* against the configured benchmark.

        Raises:
            GeocodeError: On transport or HTTP failure, or when the
                response body does not have the expected shape.
        """
        cfg = self.config
        url = f"{cfg.geocoder_url.rstrip('/')}/{_ADDRESS_PATH}"
        params = {
            "street": request.street,
            "city": request.city,
            "state": request.state,
            "zip": request.postal_code,
            "benchmark": cfg.geocoder_benchmark,
            "format": "json",
        }
        payload = fetch_json(
            url,
            params,
            timeout=cfg.http_timeout_s,
            provider=self.name,
            error_cls=GeocodeError,
        )
        result = _parse_payload(payload, request, self.name)
        logger.info(
            "Geocoded | matched=%s | address=%s | match_type=%s",
            result.matched,
            request.one_line(),
            result.match_type or "-",
        )
        return result


def _parse_payload(payload: Any, request: GeocodeRequest, provider: str) -> GeocodeResult:
    """Turn a geocoder JSON body into a ``GeocodeResult``."""
    try:
        matches = payload["result"]["addressMatches"]
    except (KeyError, TypeError) as exc:
        msg = "Geocoder response has no result.addressMatches member"
        raise GeocodeError(provider, msg) from exc

    if not matches:
        return GeocodeResult(request=request, matched=False)

    best = matches[0]
    try:
        coords = best["coordinates"]
        longitude = float(coords["x"])
        latitude = float(coords["y"])
    except (KeyError, TypeError, ValueError) as exc:
        msg = "Geocoder match has no usable coordinates"
        raise GeocodeError(provider, msg) from exc

    tiger = best.get("tigerLine") or {}
    return GeocodeResult(
        request=request,
        matched=True,
        longitude=longitude,
        latitude=latitude,
        matched_address=best.get("matchedAddress", ""),
        match_type=best.get("matchType", ""),
        tiger_line_id=str(tiger.get("tigerLineId", "")),
        side=tiger.get("side", ""),
    )
