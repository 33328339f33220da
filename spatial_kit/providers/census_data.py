"""US Census data API and TIGERweb boundary client.

Two read-only services are wrapped:

- The Census data API (``api.census.gov/data/{year}/{dataset}``), which
  answers with a JSON array of rows whose first row is the header.
- The TIGERweb ArcGIS REST MapServer, whose layer ``query`` endpoint
  returns boundaries as GeoJSON in EPSG:4326.

``get_features`` combines both: boundaries keyed by ``GEOID`` with the
requested variables attached, ready for areal interpolation once
projected.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from spatial_kit.core.constants import WGS84
from spatial_kit.models.collection import FeatureCollection
from spatial_kit.providers.base import CensusAPIError, fetch_json

if TYPE_CHECKING:
    from collections.abc import Sequence

    from spatial_kit.core.config import ToolkitConfig
    from spatial_kit.models.feature import Feature

logger = logging.getLogger("spatial_kit.providers.census_data")

PROVIDER_NAME = "census_data"
GEOID_FIELD = "GEOID"

# The data API encodes "not available" annotations as large negative
# sentinels (-666666666, -999999999, ...).
ANNOTATION_THRESHOLD = -555555555


class CensusDataClient:
    """Client for Census attributes and TIGERweb boundaries.

    Example usage::

        client = CensusDataClient(ToolkitConfig.from_env())
        tracts = client.get_features(
            "acs/acs5", 2022, ["B01003_001E"],
            for_geo="tract:*", in_geo="state:11",
            layer_id=8, where="STATE='11'",
        )
    """

    def __init__(self, config: ToolkitConfig) -> None:
        self._config = config

    @property
    def config(self) -> ToolkitConfig:
        return self._config

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def get_variables(
        self,
        dataset: str,
        year: int,
        variables: Sequence[str],
        for_geo: str,
        in_geo: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch *variables* for every geography matched by *for_geo*.

        Args:
            dataset: Dataset path (e.g. ``"acs/acs5"``, ``"dec/pl"``).
            year: Dataset vintage.
            variables: Variable names (e.g. ``["B01003_001E"]``).
            for_geo: Census ``for`` clause (e.g. ``"tract:*"``).
            in_geo: Optional ``in`` clause (e.g. ``"state:11 county:001"``).

        Returns:
            One dict per geography. Requested variables are converted to
            numbers where they parse as such, annotation sentinels become
            ``None``, geography columns stay strings, and a ``GEOID`` key
            joins the geography columns in header order.

        Raises:
            CensusAPIError: On transport failure or an unexpected body.
        """
        cfg = self._config
        url = f"{cfg.census_api_url.rstrip('/')}/{year}/{dataset.strip('/')}"
        params: dict[str, Any] = {"get": ",".join(variables), "for": for_geo}
        if in_geo:
            params["in"] = in_geo
        if cfg.census_api_key:
            params["key"] = cfg.census_api_key

        payload = fetch_json(
            url,
            params,
            timeout=cfg.http_timeout_s,
            provider=PROVIDER_NAME,
            error_cls=CensusAPIError,
        )
        if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
            msg = f"Census API response from {url} is not a header-first row array"
            raise CensusAPIError(PROVIDER_NAME, msg)

        header, *rows = payload
        requested = set(variables)
        geo_columns = [c for c in header if c not in requested]

        records: list[dict[str, Any]] = []
        for row in rows:
            if len(row) != len(header):
                msg = f"Census API row has {len(row)} values for {len(header)} columns"
                raise CensusAPIError(PROVIDER_NAME, msg)
            record = {
                name: coerce_value(value) if name in requested else value
                for name, value in zip(header, row, strict=True)
            }
            record[GEOID_FIELD] = "".join(str(record[c]) for c in geo_columns)
            records.append(record)

        logger.info(
            "Census variables fetched | dataset=%s | year=%s | rows=%d",
            dataset,
            year,
            len(records),
        )
        return records

    # ------------------------------------------------------------------
    # Boundaries
    # ------------------------------------------------------------------

    def get_boundaries(
        self,
        layer_id: int,
        where: str,
        out_fields: str = "*",
    ) -> FeatureCollection:
        """Query one TIGERweb layer and return its features in EPSG:4326.

        Large layers are paged with ``resultOffset`` until the server stops
        flagging ``exceededTransferLimit``, so the result is never truncated.

        Args:
            layer_id: MapServer layer id (e.g. ``8`` for census tracts).
            where: ArcGIS SQL filter (e.g. ``"STATE='11'"``).
            out_fields: Comma-separated attribute list, ``"*"`` for all.

        Raises:
            CensusAPIError: On transport failure, an ArcGIS error body, or a
                page flagged as truncated that carries no features.
            MalformedGeometry: If a returned geometry cannot be built.
        """
        cfg = self._config
        url = f"{cfg.tigerweb_url.rstrip('/')}/{layer_id}/query"
        features: list[Feature] = []
        pages = 0
        while True:
            params = {
                "where": where,
                "outFields": out_fields,
                "returnGeometry": "true",
                "outSR": 4326,
                "f": "geojson",
                "resultOffset": len(features),
            }
            payload = fetch_json(
                url,
                params,
                timeout=cfg.http_timeout_s,
                provider=PROVIDER_NAME,
                error_cls=CensusAPIError,
            )
            if not isinstance(payload, dict):
                msg = f"TIGERweb response from {url} is not a JSON object"
                raise CensusAPIError(PROVIDER_NAME, msg)
            if "error" in payload:
                error = payload["error"] or {}
                msg = f"TIGERweb error {error.get('code', '?')}: {error.get('message', 'unknown')}"
                raise CensusAPIError(PROVIDER_NAME, msg)

            page = FeatureCollection.from_geojson(payload, crs=WGS84)
            pages += 1
            features.extend(page.features)
            if not _exceeded_transfer_limit(payload):
                break
            if page.is_empty:
                msg = f"TIGERweb reported more features past offset {len(features)} but sent none"
                raise CensusAPIError(PROVIDER_NAME, msg)
            logger.debug(
                "Boundary page | layer=%s | page=%d | features=%d", layer_id, pages, len(page)
            )

        collection = FeatureCollection(tuple(features), WGS84)
        logger.info(
            "Boundaries fetched | layer=%s | features=%d | pages=%d",
            layer_id,
            len(collection),
            pages,
        )
        return collection

    # ------------------------------------------------------------------
    # Combined
    # ------------------------------------------------------------------

    def get_features(
        self,
        dataset: str,
        year: int,
        variables: Sequence[str],
        for_geo: str,
        *,
        layer_id: int,
        where: str,
        in_geo: str | None = None,
    ) -> FeatureCollection:
        """Boundaries with census variables attached by ``GEOID``.

        Every boundary is kept; boundaries with no matching row get
        ``None`` for each variable.

        Raises:
            CensusAPIError: On any collaborator failure.
            SchemaFieldMissing: If the boundaries carry no ``GEOID`` field.
        """
        boundaries = self.get_boundaries(layer_id, where)
        boundaries.require_fields([GEOID_FIELD], operation="get_features")
        records = self.get_variables(dataset, year, variables, for_geo, in_geo)
        by_geoid = {r[GEOID_FIELD]: r for r in records}

        features = []
        unmatched = 0
        for feature in boundaries:
            row = by_geoid.get(str(feature.properties[GEOID_FIELD]))
            if row is None:
                unmatched += 1
            values = {v: (row or {}).get(v) for v in variables}
            features.append(feature.with_properties(**values))

        if unmatched:
            logger.warning(
                "Boundaries without census rows | unmatched=%d | of=%d",
                unmatched,
                len(boundaries),
            )
        return boundaries.with_features(features)


def _exceeded_transfer_limit(payload: dict[str, Any]) -> bool:
    """ArcGIS sets the flag at the top level (Esri JSON) or under ``properties`` (GeoJSON)."""
    if payload.get("exceededTransferLimit"):
        return True
    properties = payload.get("properties") or {}
    return bool(properties.get("exceededTransferLimit"))


def coerce_value(value: Any) -> Any:
    """Convert a census cell to int/float where numeric.

    Annotation sentinels and nulls become ``None``; non-numeric text
    is returned unchanged.
    """
    if value is None:
        return None
    if isinstance(value, int | float) and not isinstance(value, bool):
        number: float | int = value
    else:
        text = str(value).strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return value
    if number <= ANNOTATION_THRESHOLD:
        return None
    return number
