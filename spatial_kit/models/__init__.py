"""Data models and schemas.

Defines the data structures used throughout the toolkit:
- Feature: One geometry paired with its attribute record
- FeatureCollection: Ordered features sharing one CRS tag
- GeocodeRequest / GeocodeResult: Geocoder collaborator payloads
"""

from spatial_kit.models.collection import FeatureCollection
from spatial_kit.models.feature import Feature, polygon_from_rings, validate_geometry
from spatial_kit.models.geocode import GeocodeRequest, GeocodeResult, results_to_collection

__all__ = [
    "Feature",
    "FeatureCollection",
    "GeocodeRequest",
    "GeocodeResult",
    "polygon_from_rings",
    "results_to_collection",
    "validate_geometry",
]
