"""Rule interpreter: folds a rule program over a lot polygon.

Phases per run: IDLE -> VALIDATING -> RUNNING -> SUCCEEDED | FAILED.
Each rule is applied by a pure reducer ``apply_rule(state, rule)`` that
returns a new ``ExecutionState`` or raises a ``CGAError``; the first error
ends the run.
"""

import logging
import math
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import ValidationError

from cga_lite.config import Settings, get_settings
from cga_lite.core.exceptions import CGAError, GeometryError, SchemaError, UnknownOperationError
from cga_lite.geometry.crs import CRS, default_validation_crs, format_validation_errors, validate_crs
from cga_lite.geometry.normalizer import compute_polygon_area, ensure_counter_clockwise, open_ring
from cga_lite.geometry.operators import OperatorLibrary
from cga_lite.geometry.types import CGAGeometry, CGAPolygon, GeometryKind, OperatorResult
from cga_lite.geometry.validator import GeometryValidator
from cga_lite.models.schemas.rules import (
    AttrRule,
    ExecutionMetadata,
    ExtrudeRule,
    GeometryContext,
    OffsetRule,
    RepeatRule,
    RoofRule,
    RuleExecutionResult,
    RuleProgram,
    SetbackRule,
    SplitRule,
    TextureTagRule,
    parse_rule_program,
)

logger = logging.getLogger(__name__)

# Roof height used when a roof sits on an unextruded footprint and no
# explicit height was given: radians(pitch) * 10.
ROOF_FALLBACK_SPAN = 10.0


class InterpreterPhase(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ExecutionState:
    """Private state of one program run. Replaced, never mutated."""

    geometry: CGAGeometry
    attributes: dict[str, Any] = field(default_factory=dict)
    total_height: float = 0.0
    total_volume: float = 0.0
    operation_count: int = 0
    extrude_count: int = 0


StepOutput = tuple[CGAGeometry, dict[str, Any]]


def _unwrap(result: OperatorResult) -> OperatorResult:
    if not result.success:
        raise result.error
    return result


class RuleInterpreter:
    """Executes rule programs against geometry contexts."""

    def __init__(
        self,
        operators: Optional[OperatorLibrary] = None,
        validator: Optional[GeometryValidator] = None,
        settings: Optional[Settings] = None,
        validation_crs: Optional[CRS] = None,
    ):
        self.settings = settings or get_settings()
        self.operators = operators or OperatorLibrary()
        self.validator = validator or GeometryValidator(self.settings)
        self.validation_crs = validation_crs or default_validation_crs(self.settings)
        self._handlers: dict[type, Callable[[ExecutionState, Any, GeometryContext], StepOutput]] = {
            ExtrudeRule: self._apply_extrude,
            OffsetRule: self._apply_offset,
            SetbackRule: self._apply_setback,
            SplitRule: self._apply_split,
            RepeatRule: self._apply_repeat,
            RoofRule: self._apply_roof,
            TextureTagRule: self._apply_texture_tag,
            AttrRule: self._apply_attr,
        }

    def execute(
        self,
        program: Any,
        context: Any,
        crs: Optional[Any] = None,
    ) -> RuleExecutionResult:
        """Run a rule program on a geometry context.

        Args:
            program: RuleProgram or its untrusted dict form
            context: GeometryContext or its dict form
            crs: CRS for the geometry check; the permissive default
                validation CRS is used when omitted

        Returns:
            RuleExecutionResult. Failures carry the attribute map as of just
            before the failing step and no geometry.
        """
        start = time.perf_counter()
        phase = InterpreterPhase.IDLE
        caller_attributes = context.attributes if isinstance(context, GeometryContext) else {}

        phase = self._enter(phase, InterpreterPhase.VALIDATING)
        try:
            context = self._parse_context(context)
            caller_attributes = context.attributes
            program = parse_rule_program(program, self.settings.max_rules_per_program)
            polygon = self._validate_polygon(context, crs)
        except CGAError as e:
            self._enter(phase, InterpreterPhase.FAILED)
            logger.info(f"Program rejected before execution: {e.message}")
            return self._failure(e, caller_attributes, 0, start)

        state = self.initial_state(program, context, polygon)

        phase = self._enter(phase, InterpreterPhase.RUNNING)
        for index, rule in enumerate(program.rules):
            try:
                state = self.apply_rule(state, rule, context)
            except CGAError as e:
                self._enter(phase, InterpreterPhase.FAILED)
                logger.info(f"Rule {index} ({rule.op}) failed in '{program.name}': {e.message}")
                return self._failure(e, state.attributes, state.operation_count, start)

        attributes = {
            **state.attributes,
            "totalHeight": state.total_height,
            "totalVolume": state.total_volume,
        }

        self._enter(phase, InterpreterPhase.SUCCEEDED)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            f"Program '{program.name}' completed: {state.operation_count} operations "
            f"in {elapsed:.2f}ms"
        )
        return RuleExecutionResult(
            success=True,
            geometry=state.geometry.to_dict(),
            attributes=attributes,
            metadata=ExecutionMetadata(
                operation_count=state.operation_count,
                execution_time_ms=elapsed,
            ),
        )

    def initial_state(
        self,
        program: RuleProgram,
        context: GeometryContext,
        polygon: list[list[float]],
    ) -> ExecutionState:
        """Wrap the normalized polygon as a surface; program attrs win."""
        ring = open_ring(polygon)
        surface = CGAGeometry(
            kind=GeometryKind.SURFACE,
            polygons=[CGAPolygon(vertices=[[x, y, 0.0] for x, y in ring])],
            attributes=dict(context.attributes),
            footprint=ring,
        )
        attributes = {
            **context.attributes,
            **program.attrs,
            "baseArea": compute_polygon_area(polygon),
        }
        return ExecutionState(geometry=surface, attributes=attributes)

    def apply_rule(
        self,
        state: ExecutionState,
        rule: Any,
        context: GeometryContext,
    ) -> ExecutionState:
        """Reduce one rule into a new state.

        Raises:
            UnknownOperationError: the rule type has no handler
            CGAError: the operator rejected its parameters or geometry
        """
        handler = self._handlers.get(type(rule))
        if handler is None:
            raise UnknownOperationError(str(getattr(rule, "op", type(rule).__name__)))

        geometry, delta = handler(state, rule, context)

        total_height = state.total_height
        extrude_count = state.extrude_count
        if isinstance(rule, ExtrudeRule):
            height = delta.get("height", 0.0)
            total_height = height if extrude_count == 0 else total_height + height
            extrude_count += 1

        total_volume = state.total_volume
        if "volume" in delta:
            total_volume += delta["volume"]

        return replace(
            state,
            geometry=geometry,
            attributes={**state.attributes, **delta},
            total_height=total_height,
            total_volume=total_volume,
            operation_count=state.operation_count + 1,
            extrude_count=extrude_count,
        )

    def _apply_extrude(self, state: ExecutionState, rule: ExtrudeRule, context: GeometryContext) -> StepOutput:
        # Stacked extrusions start on top of the massing built so far.
        result = _unwrap(
            self.operators.extrude(state.geometry.footprint, rule.h, base=state.total_height)
        )
        return result.geometry, {**result.attributes, "extrudeMode": rule.mode or "world"}

    def _apply_offset(self, state: ExecutionState, rule: OffsetRule, context: GeometryContext) -> StepOutput:
        result = _unwrap(self.operators.offset(state.geometry.footprint, rule.signed_distance))
        return result.geometry, {**result.attributes, "offsetMode": rule.mode or "in"}

    def _apply_setback(self, state: ExecutionState, rule: SetbackRule, context: GeometryContext) -> StepOutput:
        result = _unwrap(
            self.operators.setback(state.geometry.footprint, rule.distances, rule.faces)
        )
        return result.geometry, result.attributes

    def _apply_split(self, state: ExecutionState, rule: SplitRule, context: GeometryContext) -> StepOutput:
        extent = self._axis_extent(state, rule.axis, context)
        result = _unwrap(self.operators.split(state.geometry, rule.axis, rule.sizes, extent))
        return result.geometry, result.attributes

    def _apply_repeat(self, state: ExecutionState, rule: RepeatRule, context: GeometryContext) -> StepOutput:
        extent = self._axis_extent(state, rule.axis, context)
        result = _unwrap(
            self.operators.repeat(state.geometry, rule.axis, rule.step, extent, rule.limit)
        )
        return result.geometry, result.attributes

    def _apply_roof(self, state: ExecutionState, rule: RoofRule, context: GeometryContext) -> StepOutput:
        if rule.height is not None:
            height = rule.height
        elif state.total_height > 0:
            height = state.total_height
        else:
            pitch = rule.pitch if rule.pitch is not None else self.operators.DEFAULT_ROOF_PITCH
            height = math.radians(pitch) * ROOF_FALLBACK_SPAN

        result = _unwrap(
            self.operators.roof(state.geometry.footprint, rule.kind, height, rule.pitch)
        )
        return result.geometry, result.attributes

    def _apply_texture_tag(self, state: ExecutionState, rule: TextureTagRule, context: GeometryContext) -> StepOutput:
        delta = {
            "textureTag": rule.tag,
            "textureFaces": list(rule.faces) if rule.faces else ["all"],
            "textureTags": [*state.attributes.get("textureTags", []), rule.tag],
        }
        geometry = replace(state.geometry, attributes={**state.geometry.attributes, **delta})
        return geometry, delta

    def _apply_attr(self, state: ExecutionState, rule: AttrRule, context: GeometryContext) -> StepOutput:
        delta = {rule.name: rule.value}
        geometry = replace(state.geometry, attributes={**state.geometry.attributes, **delta})
        return geometry, delta

    def _axis_extent(self, state: ExecutionState, axis: str, context: GeometryContext) -> float:
        """Extent of the working geometry along an axis.

        The vertical extent is the massing height so far, then a caller
        supplied ``height`` attribute, then the context bounding box.
        """
        bbox = context.bounding_box

        if axis == "z":
            if state.total_height > 0:
                return state.total_height
            height = state.attributes.get("height")
            if isinstance(height, (int, float)) and not isinstance(height, bool) and height > 0:
                return float(height)
            return bbox.extent("z") if bbox else 0.0

        footprint = state.geometry.footprint
        if not footprint:
            return bbox.extent(axis) if bbox else 0.0

        index = 0 if axis == "x" else 1
        values = [v[index] for v in footprint]
        return max(values) - min(values)

    def _parse_context(self, context: Any) -> GeometryContext:
        if isinstance(context, GeometryContext):
            return context
        try:
            return GeometryContext.model_validate(context)
        except ValidationError as e:
            errors = format_validation_errors(e)
            raise SchemaError(f"Geometry context validation failed: {'; '.join(errors)}", errors) from e

    def _validate_polygon(self, context: GeometryContext, crs: Optional[Any]) -> list[list[float]]:
        check_crs = validate_crs(crs) if crs is not None else self.validation_crs
        report = self.validator.validate_geometry_for_rules(context.polygon, check_crs)

        if not report.valid:
            raise GeometryError(
                f"Geometry validation failed: {', '.join(report.errors)}",
                report.errors,
            )

        for warning in report.warnings:
            logger.debug(f"Geometry warning: {warning}")

        return list(ensure_counter_clockwise(context.polygon))

    def _enter(self, current: InterpreterPhase, target: InterpreterPhase) -> InterpreterPhase:
        logger.debug(f"Interpreter phase {current.value} -> {target.value}")
        return target

    def _failure(
        self,
        error: CGAError,
        attributes: dict[str, Any],
        operation_count: int,
        start: float,
    ) -> RuleExecutionResult:
        return RuleExecutionResult(
            success=False,
            attributes=dict(attributes),
            error=error.message,
            error_code=error.code,
            metadata=ExecutionMetadata(
                operation_count=operation_count,
                execution_time_ms=(time.perf_counter() - start) * 1000,
            ),
        )
