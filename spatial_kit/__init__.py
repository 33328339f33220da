"""Spatial analysis toolkit.

Reads vector layers, normalises coordinate reference systems, and
derives spatial relationships between feature collections: filters and
joins by location, nearest features and distances, centroids, and
areal-weighted interpolation of census-style attributes.
"""

__version__ = "0.1.0"
