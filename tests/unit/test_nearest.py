"""Tests for nearest-feature search and planar distances."""

from __future__ import annotations

import pytest
from shapely.geometry import LineString, Point

from spatial_kit.core.exceptions import CRSMismatch, CRSNotProjected, ValidationError
from spatial_kit.models import Feature, FeatureCollection
from spatial_kit.operations.nearest import nearest_distance, nearest_index, pairwise_distance


def _points(coords: list[tuple[float, float]], crs: object = 3857) -> FeatureCollection:
    return FeatureCollection(
        tuple(Feature(Point(x, y), {"id": i}) for i, (x, y) in enumerate(coords)),
        crs,
    )


class TestNearestIndex:
    def test_picks_closest_candidate(self) -> None:
        queries = _points([(0, 0)])
        candidates = _points([(5, 5), (1, 0), (10, 10)])
        assert nearest_index(queries, candidates) == [1]

    def test_one_index_per_query(self) -> None:
        queries = _points([(0, 0), (9, 9), (4, 6)])
        candidates = _points([(5, 5), (1, 0), (10, 10)])
        assert nearest_index(queries, candidates) == [1, 2, 0]

    def test_tie_resolves_to_lowest_index(self) -> None:
        queries = _points([(0, 0)])
        candidates = _points([(3, 0), (-1, 0), (0, 1), (1, 0)])
        assert nearest_index(queries, candidates) == [1]

    def test_candidate_containing_query(self) -> None:
        queries = _points([(1, 1)])
        road = FeatureCollection(
            (
                Feature(LineString([(10, 10), (20, 20)])),
                Feature(LineString([(0, 1), (2, 1)])),
            ),
            3857,
        )
        assert nearest_index(queries, road) == [1]

    def test_geographic_crs_allowed(self) -> None:
        assert nearest_index(_points([(0, 0)], 4326), _points([(1, 1)], 4326)) == [0]

    def test_empty_queries(self) -> None:
        assert nearest_index(_points([]), _points([(1, 1)])) == []

    def test_empty_candidates(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            nearest_index(_points([(0, 0)]), _points([]))
        assert exc_info.value.code == "EMPTY_CANDIDATES"

    def test_crs_mismatch(self) -> None:
        with pytest.raises(CRSMismatch):
            nearest_index(_points([(0, 0)], 4326), _points([(1, 1)], 3857))


class TestPairwiseDistance:
    def test_aligned_distances(self) -> None:
        a = _points([(0, 0), (1, 1)])
        b = _points([(3, 4), (1, 1)])
        assert pairwise_distance(a, b) == [5.0, 0.0]

    def test_length_mismatch(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            pairwise_distance(_points([(0, 0)]), _points([(0, 0), (1, 1)]))
        assert exc_info.value.code == "LENGTH_MISMATCH"

    def test_geographic_refused(self) -> None:
        with pytest.raises(CRSNotProjected):
            pairwise_distance(_points([(0, 0)], 4326), _points([(1, 1)], 4326))

    def test_empty(self) -> None:
        assert pairwise_distance(_points([]), _points([])) == []


class TestNearestDistance:
    def test_distance_to_nearest(self) -> None:
        queries = _points([(0, 0)])
        candidates = _points([(5, 5), (1, 0), (10, 10)])
        assert nearest_distance(queries, candidates) == [1.0]

    def test_matches_composition(self) -> None:
        queries = _points([(0, 0), (9, 9)])
        candidates = _points([(5, 5), (1, 0), (10, 10)])
        idx = nearest_index(queries, candidates)
        expected = pairwise_distance(queries, candidates.subset(idx))
        assert nearest_distance(queries, candidates) == expected

    def test_geographic_refused(self) -> None:
        with pytest.raises(CRSNotProjected):
            nearest_distance(_points([(0, 0)], 4326), _points([(1, 1)], 4326))
