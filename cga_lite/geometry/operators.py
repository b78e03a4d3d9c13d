"""Stateless geometric operators for procedural massing.

Every operator returns an ``OperatorResult`` and never mutates its inputs.
Domain failures are returned as ``success=False`` results carrying the
matching ``CGAError``; nothing here raises for bad parameters.

Offset is a centroid-radial scaling approximation that is only exact for
convex, roughly star-shaped footprints. Pitched roofs are approximated by
a single ridge point above the footprint centroid.
"""

import logging
import math
from typing import Optional, Sequence, Union

from shapely.geometry import MultiPolygon, Polygon, box
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient

from cga_lite.core.exceptions import BooleanOpError, CGAError, GeometryError, RangeError
from cga_lite.geometry.normalizer import bounds, centroid, compute_polygon_area, open_ring
from cga_lite.geometry.types import (
    Axis,
    BooleanOperation,
    CGAGeometry,
    CGAPolygon,
    GeometryKind,
    OperatorResult,
    RoofKind,
    Vertex,
)

logger = logging.getLogger(__name__)

WILDCARD = "*"
ALL_FACES = ["front", "back", "left", "right"]

PolygonInput = Union[CGAPolygon, Sequence[Vertex]]


def _ring_at(ring: Sequence[Vertex], z: float) -> list[list[float]]:
    return [[float(v[0]), float(v[1]), float(z)] for v in ring]


def _shapely_to_cga(geom: BaseGeometry, z: float = 0.0) -> list[CGAPolygon]:
    """Collect the polygonal pieces of a shapely result, CCW exteriors."""
    if geom.is_empty:
        return []

    if isinstance(geom, Polygon):
        pieces = [geom]
    elif isinstance(geom, MultiPolygon):
        pieces = list(geom.geoms)
    elif hasattr(geom, "geoms"):
        pieces = [g for g in geom.geoms if isinstance(g, Polygon)]
        for g in geom.geoms:
            if isinstance(g, MultiPolygon):
                pieces.extend(g.geoms)
    else:
        return []

    result = []
    for piece in pieces:
        if piece.is_empty or piece.area <= 0:
            continue
        piece = orient(piece, sign=1.0)
        result.append(
            CGAPolygon(
                vertices=_ring_at(open_ring(piece.exterior.coords), z),
                holes=[_ring_at(open_ring(h.coords), z) for h in piece.interiors],
            )
        )
    return result


def _largest_footprint(polygons: list[CGAPolygon]) -> list[list[float]]:
    if not polygons:
        return []
    largest = max(polygons, key=lambda p: compute_polygon_area(p.vertices))
    return open_ring(largest.vertices)


def _translate(vertices: Sequence[Vertex], axis: Axis, offset: float) -> list[list[float]]:
    index = {Axis.X: 0, Axis.Y: 1, Axis.Z: 2}[axis]
    moved = []
    for v in vertices:
        point = [float(v[0]), float(v[1]), float(v[2]) if len(v) > 2 else 0.0]
        point[index] += offset
        moved.append(point)
    return moved


class OperatorLibrary:
    """Pure implementations of the massing operators."""

    GABLE_RIDGE_FACTOR = 0.3
    HIP_RIDGE_FACTOR = 0.2
    DEFAULT_ROOF_PITCH = 30.0

    def extrude(
        self,
        polygon: Sequence[Vertex],
        height: float,
        base: float = 0.0,
    ) -> OperatorResult:
        """Create a closed solid from a footprint.

        The bottom ring keeps the input winding, the top ring is reversed so
        its normal points outward, and each edge gets one quad side face.

        Args:
            polygon: Footprint ring, 2D or 3D vertices
            height: Extrusion height, must be non-negative
            base: z of the bottom ring

        Returns:
            OperatorResult with height, volume and baseArea attributes
        """
        if height < 0:
            return OperatorResult.failure(RangeError("Extrude height must be non-negative"))

        ring = open_ring(polygon)
        if len(ring) < 3:
            return OperatorResult.failure(
                GeometryError("Polygon must have at least 3 vertices for extrusion")
            )

        top = base + height
        bottom_face = CGAPolygon(vertices=_ring_at(ring, base))
        top_face = CGAPolygon(vertices=_ring_at(list(reversed(ring)), top))

        side_faces = []
        n = len(ring)
        for i in range(n):
            j = (i + 1) % n
            v1, v2 = ring[i], ring[j]
            side_faces.append(
                CGAPolygon(
                    vertices=[
                        [v1[0], v1[1], base],
                        [v2[0], v2[1], base],
                        [v2[0], v2[1], top],
                        [v1[0], v1[1], top],
                    ]
                )
            )

        base_area = compute_polygon_area(ring)
        volume = base_area * height
        attributes = {"height": height, "volume": volume, "baseArea": base_area}

        geometry = CGAGeometry(
            kind=GeometryKind.SOLID,
            polygons=[bottom_face, top_face, *side_faces],
            attributes={**attributes, "baseZ": base, "operation": "extrude"},
            footprint=ring,
        )

        logger.debug(f"Extrude: {n} vertices -> {len(geometry.polygons)} faces (height {height})")
        return OperatorResult(
            success=True,
            message=f"Extruded to {height}m height",
            geometry=geometry,
            attributes=attributes,
        )

    def offset(self, polygon: Sequence[Vertex], distance: float) -> OperatorResult:
        """Inset (negative) or outset (positive) a footprint.

        Each vertex moves along the centroid-to-vertex ray by
        ``(|v - c| + distance) / |v - c|``. Inward offsets whose magnitude
        reaches half the smaller bounding-box dimension are rejected rather
        than producing a collapsed ring.
        """
        ring = open_ring(polygon)
        if len(ring) < 3:
            return OperatorResult.failure(
                GeometryError("Polygon must have at least 3 vertices for offset")
            )

        min_x, min_y, max_x, max_y = bounds(ring)
        min_dimension = min(max_x - min_x, max_y - min_y)

        if distance < 0 and abs(distance) >= min_dimension / 2:
            return OperatorResult.failure(
                RangeError("Inward offset too large - would eliminate geometry")
            )

        cx, cy = centroid(ring)
        offset_ring = []
        for x, y in ring:
            dx, dy = x - cx, y - cy
            length = math.hypot(dx, dy)
            if length == 0:
                offset_ring.append([x, y])
                continue
            factor = (length + distance) / length
            offset_ring.append([cx + dx * factor, cy + dy * factor])

        original_area = compute_polygon_area(ring)
        new_area = compute_polygon_area(offset_ring)
        attributes = {
            "offsetDistance": distance,
            "originalArea": original_area,
            "area": new_area,
            "method": "centroid",
        }

        geometry = CGAGeometry(
            kind=GeometryKind.SURFACE,
            polygons=[CGAPolygon(vertices=_ring_at(offset_ring, 0.0))],
            attributes={**attributes, "operation": "offset"},
            footprint=offset_ring,
        )

        logger.debug(f"Offset {distance}: area {original_area:.1f} -> {new_area:.1f}")
        return OperatorResult(
            success=True,
            message=f"Offset by {distance}m",
            geometry=geometry,
            attributes=attributes,
        )

    def setback(
        self,
        polygon: Sequence[Vertex],
        setbacks: Union[float, dict[str, float]],
        faces: Optional[list[str]] = None,
    ) -> OperatorResult:
        """Uniform inset by the largest requested setback.

        Per-face distances are not applied edge by edge; they are carried
        through as metadata only.
        """
        if isinstance(setbacks, dict):
            requested = {k: float(v) for k, v in setbacks.items()}
        else:
            requested = {"all": float(setbacks)}

        if not requested:
            return OperatorResult.failure(RangeError("Setback requires at least one distance"))

        if any(v < 0 for v in requested.values()):
            return OperatorResult.failure(RangeError("Setback distances must be non-negative"))

        distance = max(requested.values())
        result = self.offset(polygon, -distance)
        if not result.success:
            return result

        extra = {
            "setbacks": requested,
            "setbackDistance": distance,
            "setbackFaces": list(faces) if faces else list(ALL_FACES),
        }
        result.attributes.update(extra)
        result.geometry.attributes.update({**extra, "operation": "setback"})
        result.message = f"Applied setback of {distance}m"
        return result

    def split(
        self,
        geometry: CGAGeometry,
        axis: Union[Axis, str],
        sizes: Sequence[Union[float, str]],
        extent: float,
    ) -> OperatorResult:
        """Divide geometry along an axis.

        Fixed sizes are summed and must fit in ``extent``; the remainder is
        shared evenly by ``"*"`` entries. Horizontal splits clip the footprint
        into slices of ``partSizes``. A vertical split ignores ``partSizes``
        for its geometry: it stacks one equal slab of ``extent / len(sizes)``
        per entry and reports that height as ``floorHeight``.
        """
        try:
            axis = Axis(axis)
        except ValueError:
            return OperatorResult.failure(RangeError(f"Unsupported split axis: {axis}"))

        if not sizes:
            return OperatorResult.failure(RangeError("Split requires at least one size"))

        fixed = [float(s) for s in sizes if s != WILDCARD]
        if any(s <= 0 for s in fixed):
            return OperatorResult.failure(RangeError("Split sizes must be positive"))

        flexible_count = sum(1 for s in sizes if s == WILDCARD)
        total_fixed = sum(fixed)

        if total_fixed > extent + 1e-9:
            return OperatorResult.failure(
                RangeError(f"Split sizes ({total_fixed}) exceeds axis dimension ({extent})")
            )

        remaining = extent - total_fixed
        flexible_size = remaining / flexible_count if flexible_count else 0.0
        part_sizes = [flexible_size if s == WILDCARD else float(s) for s in sizes]

        if axis == Axis.Z:
            parts = self._split_floors(geometry.footprint, extent, len(sizes))
        else:
            parts = self._split_footprint(geometry.footprint, axis, part_sizes)

        if parts is None:
            return OperatorResult.failure(
                GeometryError("Polygon must have at least 3 vertices for split")
            )

        attributes = {
            "splitAxis": axis.value,
            "splitSizes": list(sizes),
            "splitParts": len(sizes),
            "flexibleSize": flexible_size,
            "partSizes": part_sizes,
        }
        if axis == Axis.Z:
            attributes["floorHeight"] = extent / len(sizes)

        result_geometry = CGAGeometry(
            kind=GeometryKind.PARTS,
            polygons=[p for part in parts for p in part.polygons],
            attributes={**geometry.attributes, **attributes, "operation": "split"},
            footprint=[list(v) for v in geometry.footprint],
            parts=parts,
        )

        logger.debug(f"Split along {axis.value}: {len(parts)} parts")
        return OperatorResult(
            success=True,
            message=f"Split along {axis.value} axis into {len(parts)} parts",
            geometry=result_geometry,
            attributes=attributes,
        )

    def _split_floors(
        self,
        footprint: Sequence[Vertex],
        extent: float,
        count: int,
    ) -> Optional[list[CGAGeometry]]:
        floor_height = extent / count
        floors = []
        for i in range(count):
            slab = self.extrude(footprint, floor_height, base=i * floor_height)
            if not slab.success:
                return None
            slab.geometry.attributes.update(
                {"floorNumber": i + 1, "floorHeight": floor_height, "operation": "split"}
            )
            floors.append(slab.geometry)
        return floors

    def _split_footprint(
        self,
        footprint: Sequence[Vertex],
        axis: Axis,
        part_sizes: list[float],
    ) -> Optional[list[CGAGeometry]]:
        ring = open_ring(footprint)
        if len(ring) < 3:
            return None

        shape = Polygon(ring)
        if not shape.is_valid:
            shape = shape.buffer(0)

        min_x, min_y, max_x, max_y = shape.bounds
        cursor = min_x if axis == Axis.X else min_y
        parts = []

        for i, size in enumerate(part_sizes):
            if axis == Axis.X:
                cutter = box(cursor, min_y, cursor + size, max_y)
            else:
                cutter = box(min_x, cursor, max_x, cursor + size)

            polygons = _shapely_to_cga(shape.intersection(cutter))
            parts.append(
                CGAGeometry(
                    kind=GeometryKind.SURFACE,
                    polygons=polygons,
                    attributes={
                        "splitIndex": i,
                        "splitSize": size,
                        "splitOffset": cursor,
                        "area": sum(compute_polygon_area(p.vertices) for p in polygons),
                    },
                    footprint=_largest_footprint(polygons),
                )
            )
            cursor += size

        return parts

    def repeat(
        self,
        geometry: CGAGeometry,
        axis: Union[Axis, str],
        step: float,
        extent: float,
        limit: Optional[int] = None,
    ) -> OperatorResult:
        """Translated copies every ``step`` units along an axis.

        ``floor(extent / step)`` copies, capped by ``limit`` when given.
        """
        try:
            axis = Axis(axis)
        except ValueError:
            return OperatorResult.failure(RangeError(f"Unsupported repeat axis: {axis}"))

        if step <= 0:
            return OperatorResult.failure(RangeError("Repeat step must be positive"))

        count = math.floor(extent / step + 1e-9) if extent > 0 else 0
        if limit is not None:
            count = min(int(limit), count)

        copies = []
        for i in range(count):
            offset = i * step
            polygons = [
                CGAPolygon(
                    vertices=_translate(p.vertices, axis, offset),
                    holes=[_translate(h, axis, offset) for h in p.holes],
                )
                for p in geometry.polygons
            ]
            footprint = geometry.footprint
            if axis != Axis.Z:
                footprint = [v[:2] for v in _translate(geometry.footprint, axis, offset)]
            copies.append(
                CGAGeometry(
                    kind=geometry.kind,
                    polygons=polygons,
                    attributes={
                        **geometry.attributes,
                        "repeatIndex": i,
                        "repeatOffset": offset,
                        "operation": "repeat",
                    },
                    footprint=[list(v) for v in footprint],
                )
            )

        attributes = {
            "repeatAxis": axis.value,
            "repeatStep": step,
            "repeatCount": count,
        }

        result_geometry = CGAGeometry(
            kind=GeometryKind.PARTS,
            polygons=[p for copy in copies for p in copy.polygons],
            attributes={**geometry.attributes, **attributes, "operation": "repeat"},
            footprint=[list(v) for v in geometry.footprint],
            parts=copies,
        )

        logger.debug(f"Repeat: {count} instances along {axis.value} (step {step})")
        return OperatorResult(
            success=True,
            message=f"Repeated {count} times along {axis.value} axis",
            geometry=result_geometry,
            attributes=attributes,
        )

    def roof(
        self,
        polygon: Sequence[Vertex],
        kind: Union[RoofKind, str],
        height: float,
        pitch: Optional[float] = None,
    ) -> OperatorResult:
        """Place a roof over a footprint at ``height``.

        Flat roofs are the footprint raised to ``height``. Gable, hip and
        shed roofs add a single ridge point over the centroid at
        ``height + factor * height`` (0.3 for gable, 0.2 otherwise).
        """
        try:
            kind = RoofKind(kind)
        except ValueError:
            return OperatorResult.failure(RangeError(f"Unsupported roof type: {kind}"))

        if pitch is not None and not 0 <= pitch <= 90:
            return OperatorResult.failure(
                RangeError("Roof pitch must be between 0 and 90 degrees")
            )

        if height < 0:
            return OperatorResult.failure(RangeError("Roof height must be non-negative"))

        ring = open_ring(polygon)
        if len(ring) < 3:
            return OperatorResult.failure(
                GeometryError("Polygon must have at least 3 vertices for roof")
            )

        polygons = [CGAPolygon(vertices=_ring_at(ring, height))]

        if kind == RoofKind.FLAT:
            ridge_height = height
        else:
            factor = self.GABLE_RIDGE_FACTOR if kind == RoofKind.GABLE else self.HIP_RIDGE_FACTOR
            ridge_height = height + factor * height
            cx, cy = centroid(ring)
            polygons.append(CGAPolygon(vertices=[[cx, cy, ridge_height]]))

        attributes = {
            "roofType": kind.value,
            "roofPitch": pitch if pitch is not None else self.DEFAULT_ROOF_PITCH,
            "roofHeight": height,
            "ridgeHeight": ridge_height,
        }

        geometry = CGAGeometry(
            kind=GeometryKind.ROOF,
            polygons=polygons,
            attributes={**attributes, "operation": "roof"},
            footprint=ring,
        )

        logger.debug(f"Roof: {kind.value} at {height}m (ridge {ridge_height}m)")
        return OperatorResult(
            success=True,
            message=f"Generated {kind.value} roof",
            geometry=geometry,
            attributes=attributes,
        )

    def boolean_op(
        self,
        poly_a: PolygonInput,
        poly_b: PolygonInput,
        op: Union[BooleanOperation, str],
    ) -> OperatorResult:
        """Union, intersection, difference or xor of two polygons.

        Clipping is delegated to shapely, so concave inputs, holes and
        multi-polygon results are all supported.
        """
        try:
            op = BooleanOperation(op)
        except ValueError:
            return OperatorResult.failure(BooleanOpError(f"Unsupported boolean operation: {op}"))

        try:
            shape_a = self._to_shapely(poly_a)
            shape_b = self._to_shapely(poly_b)
        except CGAError as e:
            return OperatorResult.failure(e)

        if op == BooleanOperation.UNION:
            clipped = shape_a.union(shape_b)
        elif op == BooleanOperation.INTERSECTION:
            clipped = shape_a.intersection(shape_b)
        elif op == BooleanOperation.DIFFERENCE:
            clipped = shape_a.difference(shape_b)
        else:
            clipped = shape_a.symmetric_difference(shape_b)

        polygons = _shapely_to_cga(clipped)
        if not polygons:
            return OperatorResult.failure(
                BooleanOpError(f"Boolean {op.value} resulted in empty geometry")
            )

        attributes = {
            "operation": f"boolean_{op.value}",
            "inputAreaA": shape_a.area,
            "inputAreaB": shape_b.area,
            "resultArea": clipped.area,
            "resultPolygonCount": len(polygons),
        }

        geometry = CGAGeometry(
            kind=GeometryKind.SURFACE,
            polygons=polygons,
            attributes=dict(attributes),
            footprint=_largest_footprint(polygons),
        )

        logger.debug(f"Boolean {op.value}: {len(polygons)} result polygon(s)")
        return OperatorResult(
            success=True,
            message=f"Boolean {op.value} completed",
            geometry=geometry,
            attributes=attributes,
        )

    def _to_shapely(self, polygon: PolygonInput) -> Polygon:
        if isinstance(polygon, CGAPolygon):
            shell = open_ring(polygon.vertices)
            holes = [open_ring(h) for h in polygon.holes]
        else:
            shell = open_ring(polygon)
            holes = []

        if len(shell) < 3:
            raise GeometryError("Polygon must have at least 3 vertices for boolean operations")

        shape = Polygon(shell, [h for h in holes if len(h) >= 3])
        if not shape.is_valid:
            shape = shape.buffer(0)
        return shape

