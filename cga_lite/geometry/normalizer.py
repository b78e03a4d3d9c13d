"""Polygon normalization and measurement helpers."""

from typing import Sequence

from cga_lite.geometry.types import Vertex
from cga_lite.geometry.validator import compute_signed_area


def ensure_counter_clockwise(polygon: Sequence[Vertex]) -> Sequence[Vertex]:
    """Return the ring in counter-clockwise order.

    A clockwise ring comes back as a reversed copy; anything else,
    including a zero-area ring, is returned as given. The caller's list
    is never modified.
    """
    if len(polygon) >= 3 and compute_signed_area(polygon) > 0:
        return list(reversed(polygon))
    return polygon


def compute_polygon_area(polygon: Sequence[Vertex]) -> float:
    """Unsigned shoelace area; 0 for fewer than 3 vertices."""
    n = len(polygon)
    if n < 3:
        return 0.0

    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += polygon[i][0] * polygon[j][1]
        area -= polygon[j][0] * polygon[i][1]

    return abs(area) / 2


def open_ring(polygon: Sequence[Vertex]) -> list[list[float]]:
    """2D copy of the ring without an explicit closing duplicate."""
    ring = [[float(v[0]), float(v[1])] for v in polygon]
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring.pop()
    return ring


def centroid(polygon: Sequence[Vertex]) -> tuple[float, float]:
    """Vertex average of the open ring."""
    ring = open_ring(polygon)
    if not ring:
        return (0.0, 0.0)
    n = len(ring)
    return (sum(v[0] for v in ring) / n, sum(v[1] for v in ring) / n)


def bounds(polygon: Sequence[Vertex]) -> tuple[float, float, float, float]:
    """(min_x, min_y, max_x, max_y) of the ring."""
    xs = [v[0] for v in polygon]
    ys = [v[1] for v in polygon]
    return (min(xs), min(ys), max(xs), max(ys))
