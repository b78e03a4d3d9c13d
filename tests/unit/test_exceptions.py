"""Unit tests for the engine error taxonomy and the HTTP error classes."""

import inspect

from fastapi import HTTPException

import cga_lite.core.exceptions as core_exceptions
from cga_lite.api.exceptions import CRSNotFoundError, ExecutionTimeoutError, SampleNotFoundError
from cga_lite.core.exceptions import CGAError, SchemaError, UnknownOperationError


class TestEngineErrors:
    def test_codes(self):
        assert SchemaError("bad").code == "SCHEMA_ERROR"
        assert UnknownOperationError("twist").message == "Unknown rule operation: twist"

    def test_independent_of_web_stack(self):
        source = inspect.getsource(core_exceptions)
        assert "fastapi" not in source
        for value in vars(core_exceptions).values():
            if inspect.isclass(value) and issubclass(value, Exception):
                assert not issubclass(value, HTTPException)
        assert not issubclass(CGAError, HTTPException)


class TestHTTPErrors:
    def test_sample_not_found(self):
        exc = SampleNotFoundError("Cathedral")
        assert exc.status_code == 404
        assert exc.code == "SAMPLE_NOT_FOUND"
        assert "Cathedral" in exc.detail

    def test_crs_not_found(self):
        exc = CRSNotFoundError("MARS")
        assert exc.status_code == 404
        assert exc.code == "CRS_NOT_FOUND"

    def test_timeout(self):
        exc = ExecutionTimeoutError(2.5)
        assert exc.status_code == 504
        assert exc.detail == "Rule execution exceeded 2.5s deadline"
