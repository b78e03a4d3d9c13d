"""Geometry package for CGA-lite procedural massing.

Provides CRS records, polygon validation and normalization, and the
stateless massing operators used by the rule engine.
"""

from cga_lite.geometry.types import CGAGeometry, CGAPolygon, OperatorResult, ValidationReport, Winding
from cga_lite.geometry.crs import CRS, CRSCatalog, COMMON_CRS
from cga_lite.geometry.validator import GeometryValidator
from cga_lite.geometry.operators import OperatorLibrary

__all__ = [
    "CGAGeometry",
    "CGAPolygon",
    "OperatorResult",
    "ValidationReport",
    "Winding",
    "CRS",
    "CRSCatalog",
    "COMMON_CRS",
    "GeometryValidator",
    "OperatorLibrary",
]
