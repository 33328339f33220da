"""Spatial operations over feature collections.

Each operation is a pure function that validates its operands, delegates
the geometric kernel to shapely/pyproj, and returns a new value:
- transform: CRS reprojection
- predicates: filter and join by location, point-in-polygon counts
- nearest: nearest-feature indices and pairwise distances
- centroids: centroids and guaranteed-interior points
- measure: planar and geodesic areas, lengths
- interpolate: areal-weighted attribute transfer between partitions
"""
