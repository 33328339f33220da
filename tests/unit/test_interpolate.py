"""Tests for areal-weighted interpolation and derived categories."""

from __future__ import annotations

import pytest
from shapely.geometry import Polygon, box

from spatial_kit.core.exceptions import (
    CRSMismatch,
    CRSNotProjected,
    MalformedGeometry,
    SchemaFieldMissing,
    ValidationError,
)
from spatial_kit.models import Feature, FeatureCollection
from spatial_kit.operations.interpolate import (
    clamp_non_negative,
    derive_remainder,
    interpolate,
    share,
)


def _tracts() -> FeatureCollection:
    """Three source tracts tiling (0,0)-(6,2)."""
    return FeatureCollection(
        (
            Feature(box(0, 0, 2, 2), {"pop": 100.0, "income": 50.0}),
            Feature(box(2, 0, 4, 2), {"pop": 40.0, "income": 20.0}),
            Feature(box(4, 0, 6, 2), {"pop": 60.0, "income": 80.0}),
        ),
        3857,
    )


def _districts() -> FeatureCollection:
    """Two target districts tiling the same extent on a different split."""
    return FeatureCollection(
        (
            Feature(box(0, 0, 3, 2), {"district": "A"}),
            Feature(box(3, 0, 6, 2), {"district": "B"}),
        ),
        3857,
    )


class TestExtensive:
    def test_half_split(
        self, square_source: FeatureCollection, halves: FeatureCollection
    ) -> None:
        result = interpolate(square_source, halves, "pop")
        assert result.values("pop") == pytest.approx([50.0, 50.0])

    def test_target_attributes_and_geometry_kept(
        self, square_source: FeatureCollection, halves: FeatureCollection
    ) -> None:
        result = interpolate(square_source, halves, ["pop"])
        assert result.values("zone") == ["west", "east"]
        assert result.geometries == halves.geometries
        assert result.crs == halves.crs

    def test_mass_is_conserved_on_full_cover(self) -> None:
        result = interpolate(_tracts(), _districts(), "pop")
        assert sum(result.values("pop")) == pytest.approx(200.0)
        assert result.values("pop") == pytest.approx([120.0, 80.0])

    def test_partial_cover_loses_mass(self, square_source: FeatureCollection) -> None:
        target = FeatureCollection((Feature(box(0, 0, 1, 1)),), square_source.crs)
        assert interpolate(square_source, target, "pop").values("pop") == pytest.approx([25.0])

    def test_zero_overlap_gets_zero(self, square_source: FeatureCollection) -> None:
        far = FeatureCollection((Feature(box(10, 10, 11, 11), {"k": 1}),), square_source.crs)
        assert interpolate(square_source, far, "pop").values("pop") == [0.0]

    def test_edge_touch_contributes_nothing(self, square_source: FeatureCollection) -> None:
        touching = FeatureCollection((Feature(box(2, 0, 3, 2)),), square_source.crs)
        assert interpolate(square_source, touching, "pop").values("pop") == [0.0]

    def test_missing_value_contributes_nothing(self) -> None:
        source = FeatureCollection(
            (
                Feature(box(0, 0, 1, 1), {"pop": None}),
                Feature(box(1, 0, 2, 1), {"pop": 10}),
            ),
            3857,
        )
        target = FeatureCollection((Feature(box(0, 0, 2, 1)),), 3857)
        assert interpolate(source, target, "pop").values("pop") == pytest.approx([10.0])

    def test_empty_target(self, square_source: FeatureCollection) -> None:
        empty = FeatureCollection((), square_source.crs)
        assert interpolate(square_source, empty, "pop").is_empty


class TestIntensive:
    def test_rate_carried_to_covered_target(
        self, square_source: FeatureCollection, halves: FeatureCollection
    ) -> None:
        result = interpolate(square_source, halves, "rate", mode="intensive")
        assert result.values("rate") == pytest.approx([0.4, 0.4])

    def test_area_weighted_average(self) -> None:
        result = interpolate(_tracts(), _districts(), "income", mode="intensive")
        # A = 2/3 of tract 0 (50) + 1/3 of tract 1 (20)
        assert result.values("income") == pytest.approx([40.0, 60.0])


class TestValidation:
    def test_crs_mismatch_checked_first(self, square_source: FeatureCollection) -> None:
        target = FeatureCollection((Feature(box(0, 0, 1, 1)),), 4326)
        with pytest.raises(CRSMismatch):
            interpolate(square_source, target, "missing_field", mode="bogus")

    def test_geographic_refused(self) -> None:
        source = FeatureCollection((Feature(box(0, 0, 1, 1), {"pop": 1}),), 4326)
        with pytest.raises(CRSNotProjected):
            interpolate(source, source, "pop")

    def test_missing_field(
        self, square_source: FeatureCollection, halves: FeatureCollection
    ) -> None:
        with pytest.raises(SchemaFieldMissing) as exc_info:
            interpolate(square_source, halves, ["pop", "households"])
        assert exc_info.value.field == "households"
        assert exc_info.value.operation == "interpolate"

    def test_unknown_mode(
        self, square_source: FeatureCollection, halves: FeatureCollection
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            interpolate(square_source, halves, "pop", mode="median")
        assert exc_info.value.code == "INVALID_MODE"

    def test_non_numeric_value(self, halves: FeatureCollection) -> None:
        source = FeatureCollection((Feature(box(0, 0, 2, 2), {"pop": "many"}),), halves.crs)
        with pytest.raises(ValidationError) as exc_info:
            interpolate(source, halves, "pop")
        assert exc_info.value.code == "NON_NUMERIC_FIELD"

    def test_non_numeric_value_without_overlap(self, halves: FeatureCollection) -> None:
        source = FeatureCollection((Feature(box(50, 50, 52, 52), {"pop": "many"}),), halves.crs)
        with pytest.raises(ValidationError) as exc_info:
            interpolate(source, halves, "pop")
        assert exc_info.value.code == "NON_NUMERIC_FIELD"

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), "inf"])
    def test_infinite_value_rejected(self, halves: FeatureCollection, value: object) -> None:
        source = FeatureCollection((Feature(box(0, 0, 2, 2), {"pop": value}),), halves.crs)
        with pytest.raises(ValidationError) as exc_info:
            interpolate(source, halves, "pop")
        assert exc_info.value.code == "NON_NUMERIC_FIELD"

    def test_invalid_polygon(self, halves: FeatureCollection) -> None:
        bowtie = Polygon([(0, 0), (2, 2), (2, 0), (0, 2), (0, 0)])
        source = FeatureCollection((Feature(bowtie, {"pop": 1}),), halves.crs)
        with pytest.raises(MalformedGeometry):
            interpolate(source, halves, "pop")


# ---------------------------------------------------------------------------
# Derived categories
# ---------------------------------------------------------------------------


class TestDerived:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(5.0, 5.0), (-0.3, 0.0), (None, 0.0), (float("nan"), 0.0), (0, 0.0)],
    )
    def test_clamp_non_negative(self, value: float | None, expected: float) -> None:
        assert clamp_non_negative(value) == expected

    def test_derive_remainder_clamped(self, halves: FeatureCollection) -> None:
        fc = halves.with_column("total", [10.0, 5.0])
        fc = fc.with_column("white", [4.0, 3.0]).with_column("black", [3.0, 2.5])
        result = derive_remainder(fc, "total", ["white", "black"], "other")
        assert result.values("other") == pytest.approx([3.0, 0.0])

    def test_derive_remainder_missing_part(self, halves: FeatureCollection) -> None:
        fc = halves.with_column("total", [10.0, 5.0])
        with pytest.raises(SchemaFieldMissing):
            derive_remainder(fc, "total", ["white"], "other")

    def test_share(self, halves: FeatureCollection) -> None:
        fc = halves.with_column("part", [5.0, -1.0]).with_column("whole", [20.0, 0.0])
        result = share(fc, "part", "whole", "pct")
        assert result.values("pct") == [0.25, 0.0]

    def test_share_missing_denominator(self, halves: FeatureCollection) -> None:
        fc = halves.with_column("part", [5.0, 1.0]).with_column("whole", [None, 4.0])
        assert share(fc, "part", "whole", "pct").values("pct") == [0.0, 0.25]
