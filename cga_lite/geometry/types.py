"""Type definitions for the geometry engine.

Contains enums and data classes used throughout the geometry module.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence

from cga_lite.core.exceptions import CGAError

Vertex = Sequence[float]


class Winding(str, Enum):
    """Cyclic direction of a polygon's vertex listing."""

    CCW = "ccw"
    CW = "cw"


class Axis(str, Enum):
    X = "x"
    Y = "y"
    Z = "z"


class RoofKind(str, Enum):
    """Roof shapes understood by the roof operator."""

    FLAT = "flat"
    GABLE = "gable"
    HIP = "hip"
    SHED = "shed"


class BooleanOperation(str, Enum):
    UNION = "union"
    INTERSECTION = "intersection"
    DIFFERENCE = "difference"
    XOR = "xor"


class GeometryKind(str, Enum):
    SURFACE = "surface"
    SOLID = "solid"
    ROOF = "roof"
    PARTS = "parts"


@dataclass
class CGAPolygon:
    """A single ring of 3D vertices with optional holes."""

    vertices: list[list[float]]
    holes: list[list[list[float]]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"vertices": [list(v) for v in self.vertices]}
        if self.holes:
            data["holes"] = [[list(v) for v in hole] for hole in self.holes]
        return data


@dataclass
class CGAGeometry:
    """Geometry produced by an operator.

    ``footprint`` is the 2D ring that subsequent operators act on. Split and
    repeat keep their individual pieces in ``parts``; ``polygons`` always
    holds every face of the geometry, parts included.
    """

    kind: GeometryKind
    polygons: list[CGAPolygon]
    attributes: dict[str, Any] = field(default_factory=dict)
    footprint: list[list[float]] = field(default_factory=list)
    parts: list["CGAGeometry"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.kind.value,
            "polygons": [p.to_dict() for p in self.polygons],
            "attributes": dict(self.attributes),
            "footprint": [list(v) for v in self.footprint],
        }
        if self.parts:
            data["parts"] = [part.to_dict() for part in self.parts]
        return data


@dataclass
class OperatorResult:
    """Result from a single operator call.

    ``attributes`` is the delta the operator derived; on failure ``error``
    carries the taxonomy instance and ``geometry`` is None.
    """

    success: bool
    message: str
    geometry: Optional[CGAGeometry] = None
    attributes: dict[str, Any] = field(default_factory=dict)
    error: Optional[CGAError] = None

    @classmethod
    def failure(cls, error: CGAError) -> "OperatorResult":
        return cls(success=False, message=error.message, error=error)


@dataclass
class ValidationReport:
    """Outcome of validating a polygon before rule application."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }
