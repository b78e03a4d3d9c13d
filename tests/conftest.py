"""Shared fixtures for engine, API and CLI tests."""

import pytest

from cga_lite.config import Settings
from cga_lite.engine.interpreter import RuleInterpreter
from cga_lite.geometry.crs import CRS, CRSCatalog
from cga_lite.geometry.operators import OperatorLibrary
from cga_lite.geometry.validator import GeometryValidator
from cga_lite.services.sink import InMemoryGeometrySink


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def validator(settings) -> GeometryValidator:
    return GeometryValidator(settings)


@pytest.fixture
def operators() -> OperatorLibrary:
    return OperatorLibrary()


@pytest.fixture
def interpreter(settings) -> RuleInterpreter:
    return RuleInterpreter(settings=settings)


@pytest.fixture
def catalog() -> CRSCatalog:
    return CRSCatalog()


@pytest.fixture
def sink() -> InMemoryGeometrySink:
    return InMemoryGeometrySink()


@pytest.fixture
def local_crs() -> CRS:
    """Permissive meter frame for small test coordinates."""
    return CRS(epsg=3857, name="Local Test CRS", units="meters", type="projected")


@pytest.fixture
def square():
    """10m x 10m square, counter-clockwise, open ring."""
    return [[0, 0], [10, 0], [10, 10], [0, 10]]


@pytest.fixture
def rectangle():
    """10m x 5m rectangle, closed ring."""
    return [[0, 0], [10, 0], [10, 5], [0, 5], [0, 0]]


@pytest.fixture
def l_shape():
    """L-shaped lot: 10*6 + 4*4 = 76 m2."""
    return [[0, 0], [10, 0], [10, 6], [4, 6], [4, 10], [0, 10], [0, 0]]


@pytest.fixture
def bowtie():
    return [[0, 0], [10, 10], [10, 0], [0, 10], [0, 0]]


@pytest.fixture
def lot():
    """40m x 30m lot used for the sample programs."""
    return [[0, 0], [40, 0], [40, 30], [0, 30], [0, 0]]
