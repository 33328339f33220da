"""Geocoder abstract base class and collaborator errors.

Defines the contract every geocoding adapter must implement. Callers
interact only with this interface and never know which concrete service
is behind it.

Each adapter performs exactly one request per address; timeout comes
from configuration, and retry/backoff is left to the caller, guided by
``ProviderError.retryable``.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Any

import httpx

from spatial_kit.core.exceptions import SpatialError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from spatial_kit.core.config import ToolkitConfig
    from spatial_kit.models.geocode import GeocodeRequest, GeocodeResult

logger = logging.getLogger("spatial_kit.providers.base")

# Client-side status codes worth retrying; every 5xx is retryable too
RETRYABLE_CLIENT_STATUS = frozenset({408, 425, 429})


class Geocoder(abc.ABC):
    """Abstract base class for geocoding adapters.

    Example usage::

        geocoder = get_geocoder("census")
        result = geocoder.geocode(GeocodeRequest(street="4600 Silver Hill Rd",
                                                 city="Washington", state="DC"))
        points = results_to_collection([result])
    """

    #: Registry name of the adapter.
    name: str = ""

    def __init__(self, config: ToolkitConfig) -> None:
        self._config = config

    @property
    def config(self) -> ToolkitConfig:
        """Return the toolkit configuration (read-only)."""
        return self._config

    @abc.abstractmethod
    def geocode(self, request: GeocodeRequest) -> GeocodeResult:
        """Geocode one structured address.

        Returns:
            A ``GeocodeResult``; ``matched`` is ``False`` when the service
            found no candidate.

        Raises:
            GeocodeError: On transport, HTTP or payload errors.
        """

    def geocode_many(self, requests: Iterable[GeocodeRequest]) -> list[GeocodeResult]:
        """Geocode several addresses in order, one request each."""
        return [self.geocode(r) for r in requests]


# ---------------------------------------------------------------------------
# Collaborator exceptions
# ---------------------------------------------------------------------------


class ProviderError(SpatialError):
    """Base exception for collaborator errors.

    Attributes:
        provider: Name of the collaborator that raised the error.
        message: Human-readable error description.
        retryable: Whether the caller may retry the operation.
    """

    default_operation = "provider"
    default_code = "PROVIDER_ERROR"

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        retryable: bool = False,
    ) -> None:
        self.provider = provider
        super().__init__(
            message,
            retryable=retryable,
            code=self.default_code,
            operation=self.default_operation,
        )

    def __str__(self) -> str:
        return f"[{self.provider}] {self.message}"


class GeocodeError(ProviderError):
    """Error while geocoding an address."""

    default_operation = "geocode"
    default_code = "GEOCODE_FAILED"


class CensusAPIError(ProviderError):
    """Error while fetching census attributes or boundaries."""

    default_operation = "census"
    default_code = "CENSUS_API_FAILED"


# ---------------------------------------------------------------------------
# HTTP helper
# ---------------------------------------------------------------------------


def fetch_json(
    url: str,
    params: dict[str, Any],
    *,
    timeout: float,
    provider: str,
    error_cls: type[ProviderError],
) -> Any:
    """GET *url* once and return the decoded JSON body.

    Raises:
        error_cls: Retryable on timeouts, transport failures, throttling
            and 5xx responses; non-retryable on other 4xx responses and
            on a body that is not JSON.
    """
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.get(url, params=params)
            response.raise_for_status()
            payload = response.json()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        msg = f"HTTP {status} from {url}"
        raise error_cls(provider, msg, retryable=_is_retryable_status(status)) from exc
    except httpx.TimeoutException as exc:
        msg = f"Timed out after {timeout}s calling {url}"
        raise error_cls(provider, msg, retryable=True) from exc
    except httpx.HTTPError as exc:
        msg = f"Request to {url} failed: {exc}"
        raise error_cls(provider, msg, retryable=True) from exc
    except ValueError as exc:
        msg = f"Response from {url} is not valid JSON"
        raise error_cls(provider, msg) from exc

    logger.debug("Fetched | provider=%s | url=%s", provider, url)
    return payload


def _is_retryable_status(status: int) -> bool:
    return status >= 500 or status in RETRYABLE_CLIENT_STATUS
