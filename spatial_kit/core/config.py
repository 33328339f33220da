"""Toolkit configuration loaded from environment variables.

All configuration values have sensible defaults so the geometric core
works with no environment at all; only the HTTP collaborators read the
endpoint and credential settings.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out
    of its valid range. This catches bad configuration at startup rather
    than on the first network call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from spatial_kit.core.constants import WGS84
from spatial_kit.core.exceptions import SpatialError, UnknownCRS

DEFAULT_GEOCODER_URL = "https://geocoding.geo.census.gov/geocoder"
DEFAULT_CENSUS_API_URL = "https://api.census.gov/data"
DEFAULT_TIGERWEB_URL = (
    "https://tigerweb.geo.census.gov/arcgis/rest/services/TIGERweb/tigerWMS_Current/MapServer"
)


class ConfigValidationError(SpatialError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_operation = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class ToolkitConfig:
    """Immutable toolkit configuration.

    Attributes:
        default_crs: CRS assumed for inputs that declare none.
        geocoder: Name of the geocoder selected by ``get_geocoder``.
        geocoder_url: Base URL of the Census geocoder.
        geocoder_benchmark: Census geocoder benchmark (address vintage).
        census_api_url: Base URL of the Census data API.
        tigerweb_url: Base URL of the TIGERweb MapServer.
        census_api_key: Census API key (empty sends no key).
        http_timeout_s: Timeout applied to every HTTP request, in seconds.
    """

    default_crs: str = WGS84
    geocoder: str = "census"
    geocoder_url: str = DEFAULT_GEOCODER_URL
    geocoder_benchmark: str = "Public_AR_Current"
    census_api_url: str = DEFAULT_CENSUS_API_URL
    tigerweb_url: str = DEFAULT_TIGERWEB_URL
    census_api_key: str = ""
    http_timeout_s: float = 30.0

    @classmethod
    def from_env(cls) -> ToolkitConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a
                required string value is empty.
            ValueError: If ``HTTP_TIMEOUT_S`` cannot be parsed as a float.
        """
        config = cls(
            default_crs=os.getenv("SPATIAL_DEFAULT_CRS", WGS84),
            geocoder=os.getenv("SPATIAL_GEOCODER", "census"),
            geocoder_url=os.getenv("CENSUS_GEOCODER_URL", DEFAULT_GEOCODER_URL),
            geocoder_benchmark=os.getenv("CENSUS_GEOCODER_BENCHMARK", "Public_AR_Current"),
            census_api_url=os.getenv("CENSUS_API_URL", DEFAULT_CENSUS_API_URL),
            tigerweb_url=os.getenv("CENSUS_TIGERWEB_URL", DEFAULT_TIGERWEB_URL),
            census_api_key=os.getenv("CENSUS_API_KEY", ""),
            http_timeout_s=float(os.getenv("HTTP_TIMEOUT_S", "30")),
        )
        _validate(config)
        return config


def _validate(config: ToolkitConfig) -> None:
    """Validate configuration ranges. Raises ``ConfigValidationError``."""
    if config.http_timeout_s <= 0:
        raise ConfigValidationError(
            "HTTP_TIMEOUT_S",
            config.http_timeout_s,
            "must be > 0 (seconds)",
        )

    for key, value in (
        ("CENSUS_GEOCODER_URL", config.geocoder_url),
        ("CENSUS_API_URL", config.census_api_url),
        ("CENSUS_TIGERWEB_URL", config.tigerweb_url),
    ):
        if not value.startswith(("http://", "https://")):
            raise ConfigValidationError(key, value, "must be an http(s) URL")

    if not config.geocoder:
        raise ConfigValidationError("SPATIAL_GEOCODER", config.geocoder, "must not be empty")

    from spatial_kit.core.crs import normalize_crs

    try:
        normalize_crs(config.default_crs)
    except UnknownCRS as exc:
        raise ConfigValidationError(
            "SPATIAL_DEFAULT_CRS",
            config.default_crs,
            "must be a CRS known to pyproj",
        ) from exc
