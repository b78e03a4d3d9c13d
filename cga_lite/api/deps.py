"""Dependency injection for routes."""

from functools import lru_cache

from fastapi import Depends

from cga_lite.config import Settings, get_settings
from cga_lite.engine.interpreter import RuleInterpreter
from cga_lite.geometry.crs import CRSCatalog
from cga_lite.geometry.validator import GeometryValidator
from cga_lite.services.sink import GeometrySink, InMemoryGeometrySink


@lru_cache
def get_crs_catalog() -> CRSCatalog:
    return CRSCatalog()


@lru_cache
def get_geometry_sink() -> GeometrySink:
    return InMemoryGeometrySink()


def get_validator(
    settings: Settings = Depends(get_settings),
) -> GeometryValidator:
    return GeometryValidator(settings)


def get_interpreter(
    settings: Settings = Depends(get_settings),
) -> RuleInterpreter:
    return RuleInterpreter(settings=settings)
