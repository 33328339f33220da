"""Shared pytest fixtures for the spatial toolkit test suite."""

from __future__ import annotations

import pytest
from shapely.geometry import Point, box

from spatial_kit.models import Feature, FeatureCollection

WEB_MERCATOR = "EPSG:3857"


# ---------------------------------------------------------------------------
# Collection fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def halves() -> FeatureCollection:
    """Two 1x2 rectangles splitting the square (0,0)-(2,2), in EPSG:3857."""
    return FeatureCollection(
        (
            Feature(box(0, 0, 1, 2), {"zone": "west"}),
            Feature(box(1, 0, 2, 2), {"zone": "east"}),
        ),
        WEB_MERCATOR,
    )


@pytest.fixture()
def square_source() -> FeatureCollection:
    """One 2x2 square carrying a population of 100, in EPSG:3857."""
    return FeatureCollection(
        (Feature(box(0, 0, 2, 2), {"tract": "A", "pop": 100.0, "rate": 0.4}),),
        WEB_MERCATOR,
    )


@pytest.fixture()
def grid_points() -> FeatureCollection:
    """Points at (0.5, 1), (1.5, 1), (1.5, 1.5) and (5, 5), in EPSG:3857."""
    coords = [(0.5, 1.0), (1.5, 1.0), (1.5, 1.5), (5.0, 5.0)]
    return FeatureCollection(
        tuple(Feature(Point(x, y), {"id": i}) for i, (x, y) in enumerate(coords)),
        WEB_MERCATOR,
    )

