"""
Geofence primitive - point-in-polygon test against the facility boundary.

All points are (longitude, latitude). Feeds that deliver (latitude,
longitude) must go through from_lat_lon() before being tested; the two
orders are easy to confuse and a swapped point silently lands outside
the boundary.
"""

from typing import Iterable, Optional, Sequence, Tuple

Point = Tuple[float, float]


class Boundary:
    """
    Closed, simple polygon ring of (lon, lat) vertices.

    Raises ValueError if the ring has fewer than four points, is not
    closed (first vertex == last vertex), or has two non-adjacent edges
    that touch or cross.
    """

    def __init__(self, vertices: Iterable[Sequence[float]]):
        ring = tuple((float(v[0]), float(v[1])) for v in vertices)
        if len(ring) < 4:
            raise ValueError(f'Boundary needs at least 4 points, got {len(ring)}')
        if ring[0] != ring[-1]:
            raise ValueError('Boundary ring is not closed')
        crossing = _find_crossing(ring)
        if crossing is not None:
            raise ValueError(f'Boundary edges {crossing[0]} and {crossing[1]} intersect')
        self.vertices: Tuple[Point, ...] = ring

    def __len__(self) -> int:
        return len(self.vertices)

    def __repr__(self) -> str:
        return f'<Boundary {len(self.vertices)} vertices>'

    def contains(self, point: Point) -> bool:
        return contains(point, self)


def _orientation(a: Point, b: Point, c: Point) -> int:
    cross = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
    return (cross > 0) - (cross < 0)


def _on_segment(a: Point, b: Point, p: Point) -> bool:
    return (
        min(a[0], b[0]) <= p[0] <= max(a[0], b[0])
        and min(a[1], b[1]) <= p[1] <= max(a[1], b[1])
    )


def _segments_intersect(p1: Point, p2: Point, q1: Point, q2: Point) -> bool:
    d1 = _orientation(q1, q2, p1)
    d2 = _orientation(q1, q2, p2)
    d3 = _orientation(p1, p2, q1)
    d4 = _orientation(p1, p2, q2)

    if d1 != d2 and d3 != d4:
        return True
    # Collinear cases: an endpoint lies on the other segment
    return (
        (d1 == 0 and _on_segment(q1, q2, p1))
        or (d2 == 0 and _on_segment(q1, q2, p2))
        or (d3 == 0 and _on_segment(p1, p2, q1))
        or (d4 == 0 and _on_segment(p1, p2, q2))
    )


def _find_crossing(ring: Sequence[Point]) -> Optional[Tuple[int, int]]:
    """Indices of the first pair of non-adjacent edges that intersect, else None."""
    edges = list(zip(ring, ring[1:]))
    last = len(edges) - 1
    for i in range(len(edges)):
        for j in range(i + 2, len(edges)):
            if i == 0 and j == last:
                # First and closing edge share the start vertex
                continue
            if _segments_intersect(*edges[i], *edges[j]):
                return i, j
    return None


def from_lat_lon(lat: float, lon: float) -> Point:
    """Normalize a (lat, lon) pair to the (lon, lat) order used here."""
    return (float(lon), float(lat))


def contains(point: Point, boundary: Boundary) -> bool:
    """
    Even-odd ray casting test.

    Casts a ray from the point towards +x and counts edge crossings.
    The closing vertex duplicates the first, so iterating consecutive
    pairs covers every edge exactly once. Edges are half-open in y,
    which keeps results for vertices and edge points consistent
    between calls.
    """
    x, y = point
    vertices = boundary.vertices
    inside = False

    for (xi, yi), (xj, yj) in zip(vertices, vertices[1:]):
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside

    return inside
