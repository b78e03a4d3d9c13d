"""HTTP request/response schemas."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from cga_lite.geometry.crs import CRS
from cga_lite.models.schemas.rules import GeometryContext, RuleExecutionResult


class ExecuteRequest(BaseModel):
    """Request body for running a rule program."""

    program: dict[str, Any] = Field(
        ...,
        description="Rule program; validated by the interpreter",
    )
    context: GeometryContext
    crs: Optional[str] = Field(
        default=None,
        description="CRS catalog key used for the geometry check",
    )
    commit: bool = False


class ExecuteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result: RuleExecutionResult
    commit_id: Optional[str] = Field(default=None, alias="commitId")


class ValidateGeometryRequest(BaseModel):
    polygon: list[list[float]]
    crs: Optional[str] = None
    region: Optional[Literal["chancay"]] = Field(
        default=None,
        description="Add site-area warnings for a known development region",
    )


class ValidateGeometryResponse(BaseModel):
    valid: bool
    crs: CRS
    errors: list[str]
    warnings: list[str]


class SampleSummary(BaseModel):
    key: str
    name: str
    description: Optional[str] = None
    rule_count: int


class SampleListResponse(BaseModel):
    samples: list[SampleSummary]


class CRSListResponse(BaseModel):
    crs: dict[str, CRS]
