"""External data collaborators.

Implements the adapter pattern for services outside the geometric core:
- Geocoder: Abstract base class for address-to-coordinate services
- CensusGeocoder: US Census Bureau geocoder (free, no key)
- CensusDataClient: Census data API and TIGERweb boundaries

The active geocoder is selected via configuration. No collaborator
retries on its own; errors carry a ``retryable`` flag for the caller.
"""

from spatial_kit.providers.base import (
    CensusAPIError,
    GeocodeError,
    Geocoder,
    ProviderError,
)
from spatial_kit.providers.census_data import CensusDataClient
from spatial_kit.providers.factory import (
    CENSUS,
    get_geocoder,
    list_geocoders,
    register_geocoder,
)

__all__ = [
    "CENSUS",
    "CensusAPIError",
    "CensusDataClient",
    "GeocodeError",
    "Geocoder",
    "ProviderError",
    "get_geocoder",
    "list_geocoders",
    "register_geocoder",
]
