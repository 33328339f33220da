"""Tests for CRS transformation and UTM helpers."""

from __future__ import annotations

import pytest
from shapely.geometry import Point, box

from spatial_kit.core.exceptions import ProjectionUndefined, UnknownCRS, ValidationError
from spatial_kit.models import Feature, FeatureCollection
from spatial_kit.operations.transform import estimate_utm_crs, to_projected, transform


def _wgs84_points() -> FeatureCollection:
    return FeatureCollection(
        (
            Feature(Point(0.0, 0.0), {"name": "null island"}),
            Feature(Point(-122.4194, 37.7749), {"name": "san francisco"}),
        ),
        4326,
    )


class TestTransform:
    def test_origin_maps_to_origin(self) -> None:
        result = transform(_wgs84_points(), 3857)
        assert result.crs == "EPSG:3857"
        origin = result[0].geometry
        assert origin.x == pytest.approx(0.0, abs=1e-6)
        assert origin.y == pytest.approx(0.0, abs=1e-6)

    def test_lon_lat_axis_order(self) -> None:
        sf = transform(_wgs84_points(), 3857)[1].geometry
        assert sf.x == pytest.approx(-13627665.0, rel=1e-4)
        assert sf.y == pytest.approx(4547675.0, rel=1e-4)

    def test_attributes_and_input_untouched(self) -> None:
        source = _wgs84_points()
        result = transform(source, "EPSG:3857")
        assert result.to_records() == source.to_records()
        assert source.crs == "EPSG:4326"
        assert source[1].geometry.x == -122.4194

    def test_round_trip(self) -> None:
        source = _wgs84_points()
        back = transform(transform(source, 32610), 4326)
        for before, after in zip(source.geometries, back.geometries, strict=True):
            assert after.x == pytest.approx(before.x, abs=1e-7)
            assert after.y == pytest.approx(before.y, abs=1e-7)

    def test_same_crs_is_a_copy(self) -> None:
        source = _wgs84_points()
        result = transform(source, "EPSG:4326")
        assert result == source
        assert result is not source

    def test_polygon_transformed(self) -> None:
        fc = FeatureCollection((Feature(box(0, 0, 1, 1)),), 4326)
        result = transform(fc, 3857)
        assert result[0].geometry.geom_type == "Polygon"
        assert result[0].geometry.area > 1e10

    def test_unknown_target(self) -> None:
        with pytest.raises(UnknownCRS):
            transform(_wgs84_points(), "EPSG:999999")

    def test_untransformable_coordinate(self) -> None:
        fc = FeatureCollection((Feature(Point(0.0, 100.0)),), 4326)
        with pytest.raises(ProjectionUndefined):
            transform(fc, 3857)


class TestUtm:
    def test_estimate_from_geographic(self) -> None:
        fc = FeatureCollection((Feature(Point(-122.4, 37.8)),), 4326)
        assert estimate_utm_crs(fc) == "EPSG:32610"

    def test_estimate_from_projected(self) -> None:
        projected = transform(FeatureCollection((Feature(Point(151.2, -33.9)),), 4326), 3857)
        assert estimate_utm_crs(projected) == "EPSG:32756"

    def test_estimate_empty(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            estimate_utm_crs(FeatureCollection((), 4326))
        assert exc_info.value.code == "EMPTY_COLLECTION"

    def test_to_projected_geographic(self) -> None:
        fc = FeatureCollection((Feature(Point(-122.4, 37.8)),), 4326)
        assert to_projected(fc).crs == "EPSG:32610"

    def test_to_projected_already_projected(self) -> None:
        fc = FeatureCollection((Feature(Point(1, 1)),), 3857)
        assert to_projected(fc) is fc
