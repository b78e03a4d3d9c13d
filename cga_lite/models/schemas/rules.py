"""Rule program validation schemas."""

import math
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from cga_lite.core.exceptions import SchemaError, UnknownOperationError
from cga_lite.geometry.crs import format_validation_errors

AttrValue = Union[bool, int, float, str]
Face = Literal["front", "back", "left", "right"]
TextureFace = Literal["front", "back", "left", "right", "top", "bottom"]
SetbackKey = Literal["front", "back", "left", "right", "side", "all"]


class ExtrudeRule(BaseModel):
    """Vertical extrusion of the current footprint."""

    op: Literal["extrude"]
    h: float
    mode: Optional[Literal["world", "local"]] = None


class OffsetRule(BaseModel):
    """Inset (``in``, default) or outset (``out``) by ``d``."""

    op: Literal["offset"]
    d: float = Field(..., gt=0)
    mode: Optional[Literal["in", "out"]] = None

    @property
    def signed_distance(self) -> float:
        return self.d if self.mode == "out" else -self.d


class SplitRule(BaseModel):
    op: Literal["split"]
    axis: Literal["x", "y", "z"]
    sizes: list[Union[Literal["*"], Annotated[float, Field(gt=0)]]] = Field(..., min_length=1)


class RepeatRule(BaseModel):
    op: Literal["repeat"]
    axis: Literal["x", "y", "z"]
    step: float = Field(..., gt=0)
    limit: Optional[int] = Field(default=None, gt=0)


class SetbackRule(BaseModel):
    """Uniform distance or a per-face map such as ``{"front": 5, "side": 2}``."""

    op: Literal["setback"]
    d: Union[Annotated[float, Field(gt=0)], dict[SetbackKey, Annotated[float, Field(ge=0)]]]
    faces: Optional[list[Face]] = None

    @field_validator("d")
    @classmethod
    def per_face_not_empty(cls, v: Any) -> Any:
        if isinstance(v, dict) and not v:
            raise ValueError("per-face setback map cannot be empty")
        return v

    @property
    def distances(self) -> dict[str, float]:
        if isinstance(self.d, dict):
            return dict(self.d)
        return {"all": self.d}


class RoofRule(BaseModel):
    op: Literal["roof"]
    kind: Literal["flat", "gable", "hip", "shed"]
    pitch: Optional[float] = None
    height: Optional[float] = Field(default=None, gt=0)


class TextureTagRule(BaseModel):
    op: Literal["textureTag"]
    tag: str = Field(..., min_length=1)
    faces: Optional[list[TextureFace]] = None


class AttrRule(BaseModel):
    op: Literal["attr"]
    name: str = Field(..., min_length=1)
    value: AttrValue


Rule = Annotated[
    Union[
        ExtrudeRule,
        OffsetRule,
        SplitRule,
        RepeatRule,
        SetbackRule,
        RoofRule,
        TextureTagRule,
        AttrRule,
    ],
    Field(discriminator="op"),
]

VALID_OPS = {"extrude", "offset", "split", "repeat", "setback", "roof", "textureTag", "attr"}


class RuleProgram(BaseModel):
    """Immutable input for one interpreter run."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    attrs: dict[str, AttrValue] = Field(default_factory=dict)
    rules: list[Rule] = Field(default_factory=list)


class Vec3(BaseModel):
    x: float
    y: float
    z: float = 0.0


class BoundingBox(BaseModel):
    min: Vec3
    max: Vec3

    def extent(self, axis: str) -> float:
        return getattr(self.max, axis) - getattr(self.min, axis)


class GeometryContext(BaseModel):
    """Lot polygon plus the caller's attributes and bounding box."""

    model_config = ConfigDict(populate_by_name=True)

    polygon: list[list[float]]
    attributes: dict[str, Any] = Field(default_factory=dict)
    bounding_box: Optional[BoundingBox] = Field(default=None, alias="boundingBox")

    @field_validator("polygon")
    @classmethod
    def validate_points(cls, v: list[list[float]]) -> list[list[float]]:
        for i, point in enumerate(v):
            if len(point) not in (2, 3):
                raise ValueError(f"point[{i}] must have 2 or 3 coordinates, got {len(point)}")
            if not all(math.isfinite(c) for c in point):
                raise ValueError(f"point[{i}] coordinates must be finite (not NaN or Infinity)")
        return v

    @model_validator(mode="after")
    def fill_bounding_box(self) -> "GeometryContext":
        if self.bounding_box is None and self.polygon:
            xs = [p[0] for p in self.polygon]
            ys = [p[1] for p in self.polygon]
            zs = [p[2] if len(p) > 2 else 0.0 for p in self.polygon]
            self.bounding_box = BoundingBox(
                min=Vec3(x=min(xs), y=min(ys), z=min(zs)),
                max=Vec3(x=max(xs), y=max(ys), z=max(zs)),
            )
        return self


class ExecutionMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    operation_count: int = Field(alias="operationCount")
    execution_time_ms: float = Field(alias="executionTimeMs")


class RuleExecutionResult(BaseModel):
    """Discriminated success/failure result of a program run."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    geometry: Optional[dict[str, Any]] = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    error_code: Optional[str] = Field(default=None, alias="errorCode")
    metadata: ExecutionMetadata


def parse_rule_program(raw: Any, max_rules: Optional[int] = None) -> RuleProgram:
    """Validate an untrusted rule program.

    Raises:
        UnknownOperationError: a rule carries an unrecognised ``op`` tag
        SchemaError: any other shape problem
    """
    if isinstance(raw, RuleProgram):
        program = raw
    else:
        rules = raw.get("rules") if isinstance(raw, dict) else None
        if isinstance(rules, list):
            for i, rule in enumerate(rules):
                if not isinstance(rule, dict) or "op" not in rule:
                    continue
                op = rule["op"]
                if not isinstance(op, str):
                    message = f"rules.{i}.op: operation tag must be a string"
                    raise SchemaError(f"Rule program validation failed: {message}", [message])
                if op not in VALID_OPS:
                    raise UnknownOperationError(op)

        try:
            program = RuleProgram.model_validate(raw)
        except ValidationError as e:
            errors = format_validation_errors(e)
            raise SchemaError(f"Rule program validation failed: {'; '.join(errors)}", errors) from e

    if max_rules is not None and len(program.rules) > max_rules:
        raise SchemaError(f"too many rules: {len(program.rules)} (max {max_rules})")

    return program
