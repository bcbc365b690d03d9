"""Tests for the point-in-polygon geofence."""

from __future__ import annotations

import pytest

from artcc_sync import facility
from artcc_sync.geofence import Boundary, contains, from_lat_lon

SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10), (0, 0)]


def _rotate(ring, k):
    open_ring = list(ring[:-1])
    rotated = open_ring[k:] + open_ring[:k]
    return rotated + [rotated[0]]


class TestBoundary:
    def test_rejects_short_ring(self):
        with pytest.raises(ValueError):
            Boundary([(0, 0), (1, 0), (0, 0)])

    def test_rejects_open_ring(self):
        with pytest.raises(ValueError):
            Boundary([(0, 0), (1, 0), (1, 1), (0, 1)])

    def test_rejects_self_intersecting_ring(self):
        bowtie = [(0, 0), (10, 10), (10, 0), (0, 10), (0, 0)]
        with pytest.raises(ValueError, match="intersect"):
            Boundary(bowtie)

    def test_rejects_ring_touching_itself(self):
        # Vertex (5, 0) lies on the bottom edge
        pinched = [(0, 0), (10, 0), (10, 10), (5, 0), (0, 10), (0, 0)]
        with pytest.raises(ValueError, match="intersect"):
            Boundary(pinched)

    def test_triangle_is_simple(self):
        assert len(Boundary([(0, 0), (4, 0), (0, 3), (0, 0)])) == 4

    def test_facility_airspace_is_valid(self):
        assert len(Boundary(facility.AIRSPACE)) == len(facility.AIRSPACE)


class TestContains:
    def test_square(self):
        square = Boundary(SQUARE)
        assert contains((5, 5), square)
        assert not contains((15, 5), square)
        assert not contains((-1, -1), square)
        assert square.contains((0.5, 9.5))

    def test_concave_notch_excluded(self):
        # U shape: the notch between the arms is outside
        u_shape = Boundary([
            (0, 0), (9, 0), (9, 9), (6, 9), (6, 3), (3, 3), (3, 9), (0, 9), (0, 0),
        ])
        assert contains((1, 5), u_shape)
        assert contains((8, 5), u_shape)
        assert not contains((4.5, 6), u_shape)

    def test_facility_airports(self):
        airspace = Boundary(facility.AIRSPACE)
        assert contains(from_lat_lon(35.04, -89.98), airspace)   # Memphis
        assert contains(from_lat_lon(34.73, -92.22), airspace)   # Little Rock
        assert not contains(from_lat_lon(33.64, -84.43), airspace)  # Atlanta
        assert not contains(from_lat_lon(39.74, -104.99), airspace)  # Denver

    def test_swapped_coordinates_fall_outside(self):
        airspace = Boundary(facility.AIRSPACE)
        assert not contains((35.04, -89.98), airspace)

    def test_edge_points_are_consistent(self):
        square = Boundary(SQUARE)
        results = {contains((10, 5), square) for _ in range(5)}
        assert len(results) == 1

    @pytest.mark.parametrize("k", [1, 5, 17, 30])
    def test_same_result_under_ring_rotation(self, k):
        reference = Boundary(facility.AIRSPACE)
        rotated = Boundary(_rotate(facility.AIRSPACE, k))
        points = [
            (lon / 4.0, lat / 4.0)
            for lon in range(-400, -320, 3)
            for lat in range(120, 155, 3)
        ]
        assert [contains(p, reference) for p in points] == [
            contains(p, rotated) for p in points
        ]


def test_from_lat_lon_swaps_order():
    assert from_lat_lon(35.0, -90.0) == (-90.0, 35.0)
