"""Rule program endpoints."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from cga_lite.api.deps import get_crs_catalog, get_geometry_sink, get_interpreter, get_validator
from cga_lite.config import Settings, get_settings
from cga_lite.api.exceptions import CRSNotFoundError, ExecutionTimeoutError, SampleNotFoundError
from cga_lite.engine.interpreter import RuleInterpreter
from cga_lite.engine.samples import SAMPLE_RULES, get_rule_by_name
from cga_lite.geometry.crs import CRS, CRSCatalog, default_validation_crs
from cga_lite.geometry.validator import GeometryValidator
from cga_lite.models.schemas.api import (
    ExecuteRequest,
    ExecuteResponse,
    SampleListResponse,
    SampleSummary,
    ValidateGeometryRequest,
    ValidateGeometryResponse,
)
from cga_lite.models.schemas.rules import RuleProgram
from cga_lite.services.sink import GeometrySink

logger = logging.getLogger(__name__)

router = APIRouter()


def _resolve_crs(key: Optional[str], catalog: CRSCatalog) -> Optional[CRS]:
    if key is None:
        return None
    crs = catalog.get(key)
    if crs is None:
        raise CRSNotFoundError(key)
    return crs


@router.get("/samples", response_model=SampleListResponse)
async def list_samples() -> SampleListResponse:
    """List the bundled sample rule programs."""
    return SampleListResponse(
        samples=[
            SampleSummary(
                key=key,
                name=program.name,
                description=program.description,
                rule_count=len(program.rules),
            )
            for key, program in SAMPLE_RULES.items()
        ]
    )


@router.get("/samples/{name}", response_model=RuleProgram)
async def get_sample(name: str) -> RuleProgram:
    """Get a sample program by display name or constant key."""
    program = get_rule_by_name(name)
    if program is None:
        raise SampleNotFoundError(name)
    return program


@router.post("/execute", response_model=ExecuteResponse)
async def execute_rules(
    request: ExecuteRequest,
    interpreter: RuleInterpreter = Depends(get_interpreter),
    catalog: CRSCatalog = Depends(get_crs_catalog),
    sink: GeometrySink = Depends(get_geometry_sink),
    settings: Settings = Depends(get_settings),
) -> ExecuteResponse:
    """Run a rule program against a lot polygon.

    Rule failures are part of the result body, not HTTP errors. With
    ``commit`` set, successful geometry is handed to the persistence sink.
    """
    crs = _resolve_crs(request.crs, catalog)

    try:
        result = await asyncio.wait_for(
            run_in_threadpool(interpreter.execute, request.program, request.context, crs),
            timeout=settings.execution_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.warning(
            f"Program '{request.program.get('name')}' exceeded "
            f"{settings.execution_timeout_seconds}s"
        )
        raise ExecutionTimeoutError(settings.execution_timeout_seconds)

    commit_id = None
    if request.commit and result.success:
        name = str(request.program.get("name") or "unnamed")
        commit_id = sink.commit(name, result.geometry, result.attributes)

    return ExecuteResponse(result=result, commit_id=commit_id)


@router.post("/validate-geometry", response_model=ValidateGeometryResponse)
async def validate_geometry(
    request: ValidateGeometryRequest,
    validator: GeometryValidator = Depends(get_validator),
    catalog: CRSCatalog = Depends(get_crs_catalog),
    settings: Settings = Depends(get_settings),
) -> ValidateGeometryResponse:
    """Run the pre-execution geometry checks without executing rules."""
    crs = _resolve_crs(request.crs, catalog)
    if crs is None:
        crs = default_validation_crs(settings)

    report = validator.validate_geometry_for_rules(request.polygon, crs)
    warnings = list(report.warnings)
    if request.region == "chancay":
        warnings.extend(validator.validate_chancay_coordinates(request.polygon, crs).warnings)

    return ValidateGeometryResponse(
        valid=report.valid,
        crs=crs,
        errors=report.errors,
        warnings=warnings,
    )
