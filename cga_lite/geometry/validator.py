"""Geometry validation before rule application.

Covers CRS metadata, coordinate-range plausibility, vertex count, winding
order and self-intersections. Topology problems are reported as errors; a
clockwise ring is only a warning because the normalizer reverses it.
"""

import logging
import math
from typing import Any, Optional, Sequence

from cga_lite.config import Settings, get_settings
from cga_lite.core.exceptions import GeometryError
from cga_lite.geometry.crs import CRS, validate_crs
from cga_lite.geometry.types import ValidationReport, Vertex, Winding

logger = logging.getLogger(__name__)

PARALLEL_EPSILON = 1e-10

# Approximate extents of the Chancay (Lima) development area.
CHANCAY_EASTING = (250_000, 300_000)
CHANCAY_NORTHING = (8_700_000, 8_750_000)
CHANCAY_LONGITUDE = (-77.4, -77.1)
CHANCAY_LATITUDE = (-11.7, -11.4)


def compute_signed_area(polygon: Sequence[Vertex]) -> float:
    """Shoelace signed area in the engine's frame convention.

    Summed edge by edge as ``(x_j - x_i) * (y_j + y_i)``; a negative result
    means counter-clockwise winding. Edges wrap from the last vertex back to
    the first.
    """
    n = len(polygon)
    total = 0.0
    for i in range(n):
        j = (i + 1) % n
        total += (polygon[j][0] - polygon[i][0]) * (polygon[j][1] + polygon[i][1])
    return total / 2


def classify_winding(polygon: Sequence[Vertex]) -> Winding:
    """Classify a ring as counter-clockwise or clockwise.

    Raises:
        GeometryError: fewer than 3 vertices.
    """
    if len(polygon) < 3:
        raise GeometryError("Polygon must have at least 3 vertices")
    return Winding.CCW if compute_signed_area(polygon) < 0 else Winding.CW


def segments_intersect(
    p1: Vertex,
    p2: Vertex,
    p3: Vertex,
    p4: Vertex,
    epsilon: float = PARALLEL_EPSILON,
) -> bool:
    """Parametric test for segments p1-p2 and p3-p4 (ua, ub in [0, 1])."""
    denominator = (p4[1] - p3[1]) * (p2[0] - p1[0]) - (p4[0] - p3[0]) * (p2[1] - p1[1])

    if abs(denominator) < epsilon:
        return False

    ua = ((p4[0] - p3[0]) * (p1[1] - p3[1]) - (p4[1] - p3[1]) * (p1[0] - p3[0])) / denominator
    ub = ((p2[0] - p1[0]) * (p1[1] - p3[1]) - (p2[1] - p1[1]) * (p1[0] - p3[0])) / denominator

    return 0 <= ua <= 1 and 0 <= ub <= 1


def _closed_ring(polygon: Sequence[Vertex]) -> list[Vertex]:
    ring = list(polygon)
    if ring and (ring[0][0], ring[0][1]) != (ring[-1][0], ring[-1][1]):
        ring.append(ring[0])
    return ring


def detect_self_intersections(
    polygon: Sequence[Vertex],
    epsilon: float = PARALLEL_EPSILON,
) -> bool:
    """O(n^2) pairwise edge test.

    Adjacent edges and the closing edge's pairing with the first edge are
    skipped since they always share a vertex.
    """
    ring = _closed_ring(polygon)
    edge_count = len(ring) - 1
    if edge_count < 4:
        return False

    for i in range(edge_count):
        for j in range(i + 2, edge_count):
            if i == 0 and j == edge_count - 1:
                continue
            if segments_intersect(ring[i], ring[i + 1], ring[j], ring[j + 1], epsilon):
                logger.debug(f"Edges {i} and {j} intersect")
                return True

    return False


class GeometryValidator:
    """Validates lot polygons and their CRS before rules run."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def validate_crs(self, candidate: Any) -> CRS:
        return validate_crs(candidate)

    def validate_coordinate_units(
        self,
        coords: Sequence[Vertex],
        crs: CRS,
    ) -> ValidationReport:
        """Check that the coordinate extents are plausible for the CRS units.

        Meter frames get a generous envelope that catches gross unit
        mix-ups (degrees passed as meters) rather than tight domain bounds.
        """
        errors: list[str] = []

        if not coords:
            return ValidationReport(valid=True)

        xs = [c[0] for c in coords]
        ys = [c[1] for c in coords]
        min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)
        s = self.settings

        if crs.units == "meters":
            threshold = s.utm_small_extent_threshold
            if not crs.is_local_frame and max_x < threshold and max_y < threshold:
                errors.append(f"X coordinates out of expected range for UTM: {min_x} - {max_x}")

            if min_x < s.meter_min_x or max_x > s.meter_max_x:
                errors.append(f"X coordinates out of reasonable range: {min_x} - {max_x}")

            if min_y < s.meter_min_y or max_y > s.meter_max_y:
                errors.append(f"Y coordinates out of reasonable range: {min_y} - {max_y}")

        elif crs.units == "degrees":
            if min_x < -180 or max_x > 180:
                errors.append(f"Longitude out of bounds: {min_x} - {max_x}")

            if min_y < -90 or max_y > 90:
                errors.append(f"Latitude out of bounds: {min_y} - {max_y}")

        return ValidationReport(valid=not errors, errors=errors)

    def validate_chancay_coordinates(
        self,
        coords: Sequence[Vertex],
        crs: CRS,
    ) -> ValidationReport:
        """Warn when a lot falls outside the Chancay area for its CRS.

        Only the Chancay frames (EPSG 32718, 5387 and 4326) are checked.
        The result is always valid; out-of-area extents are warnings.
        """
        warnings: list[str] = []

        if not coords or crs.epsg not in (32718, 5387, 4326):
            return ValidationReport(valid=True)

        xs = [c[0] for c in coords]
        ys = [c[1] for c in coords]
        min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)

        if crs.epsg == 4326:
            if min_x < CHANCAY_LONGITUDE[0] or max_x > CHANCAY_LONGITUDE[1]:
                warnings.append(
                    f"Longitude may be outside Chancay area: {min_x:.4f}° - {max_x:.4f}°"
                )
            if min_y < CHANCAY_LATITUDE[0] or max_y > CHANCAY_LATITUDE[1]:
                warnings.append(
                    f"Latitude may be outside Chancay area: {min_y:.4f}° - {max_y:.4f}°"
                )
        else:
            prefix = "Peru96 " if crs.epsg == 5387 else ""
            if min_x < CHANCAY_EASTING[0] or max_x > CHANCAY_EASTING[1]:
                warnings.append(
                    f"{prefix}Easting coordinates may be outside Chancay area: {min_x:.0f} - {max_x:.0f}"
                )
            if min_y < CHANCAY_NORTHING[0] or max_y > CHANCAY_NORTHING[1]:
                warnings.append(
                    f"{prefix}Northing coordinates may be outside Chancay area: {min_y:.0f} - {max_y:.0f}"
                )

        if warnings:
            logger.debug(f"Chancay area warnings: {warnings}")

        return ValidationReport(valid=True, warnings=warnings)

    def validate_geometry_for_rules(
        self,
        coords: Sequence[Vertex],
        crs: CRS,
    ) -> ValidationReport:
        """Aggregate every check needed before a rule program may run."""
        errors: list[str] = []
        warnings: list[str] = []

        for i, point in enumerate(coords):
            if len(point) < 2 or not all(math.isfinite(float(c)) for c in point):
                errors.append(f"vertex[{i}] must have finite x and y coordinates")

        if errors:
            return ValidationReport(valid=False, errors=errors, warnings=warnings)

        if len(coords) < 3:
            errors.append("Polygon must have at least 3 vertices")

        if len(coords) > self.settings.max_vertices_per_polygon:
            errors.append(
                f"Polygon has {len(coords)} vertices (max {self.settings.max_vertices_per_polygon})"
            )

        eps = self.settings.duplicate_vertex_epsilon
        for i in range(len(coords) - 1):
            curr, nxt = coords[i], coords[i + 1]
            if math.hypot(curr[0] - nxt[0], curr[1] - nxt[1]) < eps:
                warnings.append(f"Duplicate consecutive vertices at index {i}")

        errors.extend(self.validate_coordinate_units(coords, crs).errors)

        if len(coords) >= 3 and abs(compute_signed_area(coords)) <= self.settings.min_polygon_area:
            errors.append("Polygon has zero area (collinear or degenerate vertices)")
        else:
            try:
                if classify_winding(coords) == Winding.CW:
                    warnings.append("Polygon has clockwise winding - will be reversed for processing")
            except GeometryError as e:
                errors.append(f"Winding order validation failed: {e.message}")

        if len(coords) >= 4 and detect_self_intersections(coords, self.settings.parallel_epsilon):
            errors.append("Polygon appears to have self-intersections")

        if errors:
            logger.info(f"Geometry validation failed: {errors}")
        elif warnings:
            logger.debug(f"Geometry validation warnings: {warnings}")

        return ValidationReport(valid=not errors, errors=errors, warnings=warnings)
