"""Unit tests for RuleInterpreter."""

import math

import pytest

from cga_lite.core.exceptions import RangeError, UnknownOperationError
from cga_lite.engine.interpreter import ExecutionState
from cga_lite.models.schemas.rules import ExtrudeRule, GeometryContext, RuleProgram


def run(interpreter, polygon, *rules, attributes=None, crs=None, **program_extra):
    program = {"name": "test", "rules": list(rules), **program_extra}
    context = {"polygon": polygon, "attributes": attributes or {}}
    return interpreter.execute(program, context, crs)


class TestCumulativeHeight:
    def test_single_extrude(self, interpreter, square):
        result = run(interpreter, square, {"op": "extrude", "h": 30})
        assert result.success is True
        assert result.attributes["totalHeight"] == 30

    def test_stacked_extrudes(self, interpreter, square):
        result = run(interpreter, square, {"op": "extrude", "h": 30}, {"op": "extrude", "h": 20})
        assert result.attributes["totalHeight"] == 50
        assert result.attributes["totalVolume"] == pytest.approx(5000)
        assert result.metadata.operation_count == 2

    def test_second_extrude_sits_on_first(self, interpreter, square):
        result = run(interpreter, square, {"op": "extrude", "h": 30}, {"op": "extrude", "h": 20})
        bottom = result.geometry["polygons"][0]["vertices"]
        assert all(v[2] == 30 for v in bottom)

    def test_no_rules(self, interpreter, square):
        result = run(interpreter, square)
        assert result.success is True
        assert result.attributes["totalHeight"] == 0
        assert result.attributes["baseArea"] == 100
        assert result.geometry["type"] == "surface"


class TestFailures:
    def test_unknown_operation(self, interpreter, square):
        result = run(interpreter, square, {"op": "twist"}, attributes={"lot": "A1"})
        assert result.success is False
        assert result.error_code == "UNKNOWN_OPERATION"
        assert result.metadata.operation_count == 0
        assert result.attributes == {"lot": "A1"}
        assert result.geometry is None

    def test_schema_error(self, interpreter, square):
        result = run(interpreter, square, {"op": "roof", "kind": "dome"})
        assert result.success is False
        assert result.error_code == "SCHEMA_ERROR"

    def test_invalid_geometry(self, interpreter, bowtie):
        result = run(interpreter, bowtie, {"op": "extrude", "h": 10})
        assert result.success is False
        assert result.error_code == "GEOMETRY_ERROR"
        assert "self-intersections" in result.error
        assert result.metadata.operation_count == 0

    def test_too_few_vertices(self, interpreter):
        result = run(interpreter, [[0, 0], [10, 0]], {"op": "extrude", "h": 10})
        assert result.success is False
        assert "at least 3 vertices" in result.error

    def test_mid_program_failure_keeps_snapshot(self, interpreter, square):
        result = run(
            interpreter,
            square,
            {"op": "extrude", "h": 10},
            {"op": "offset", "d": 20},
            {"op": "extrude", "h": 10},
        )
        assert result.success is False
        assert result.error_code == "RANGE_ERROR"
        assert result.metadata.operation_count == 1
        assert result.attributes["height"] == 10
        assert "offsetDistance" not in result.attributes
        assert result.geometry is None

    def test_negative_extrude(self, interpreter, square):
        result = run(interpreter, square, {"op": "extrude", "h": -5})
        assert result.error == "Extrude height must be non-negative"

    def test_explicit_crs_is_enforced(self, interpreter, square):
        crs = {"epsg": 32721, "name": "WGS 84 / UTM zone 21S", "units": "meters", "type": "projected"}
        result = run(interpreter, square, {"op": "extrude", "h": 10}, crs=crs)
        assert result.success is False
        assert "UTM" in result.error

    def test_rules_not_a_list(self, interpreter, square):
        result = interpreter.execute({"name": "x", "rules": 5}, {"polygon": square})
        assert result.success is False
        assert result.error_code == "SCHEMA_ERROR"
        assert result.metadata.operation_count == 0

    def test_non_string_operation_tag(self, interpreter, square):
        result = run(interpreter, square, {"op": ["x"]})
        assert result.success is False
        assert result.error_code == "SCHEMA_ERROR"
        assert "operation tag must be a string" in result.error

    def test_collinear_footprint(self, interpreter):
        result = run(interpreter, [[0, 0], [5, 0], [10, 0]], {"op": "extrude", "h": 10})
        assert result.success is False
        assert result.error_code == "GEOMETRY_ERROR"
        assert "zero area" in result.error

    def test_invalid_context(self, interpreter):
        result = interpreter.execute({"name": "x", "rules": []}, {"polygon": "nope"})
        assert result.success is False
        assert result.error_code == "SCHEMA_ERROR"


class TestAttributes:
    def test_program_attrs_override_context(self, interpreter, square):
        result = run(
            interpreter,
            square,
            attributes={"zone": "R1", "floors": 2},
            attrs={"floors": 10},
        )
        assert result.attributes["zone"] == "R1"
        assert result.attributes["floors"] == 10

    def test_texture_tags_accumulate(self, interpreter, square):
        result = run(
            interpreter,
            square,
            {"op": "extrude", "h": 10},
            {"op": "textureTag", "tag": "brick"},
            {"op": "textureTag", "tag": "tiles", "faces": ["top"]},
        )
        assert result.attributes["textureTag"] == "tiles"
        assert result.attributes["textureFaces"] == ["top"]
        assert result.attributes["textureTags"] == ["brick", "tiles"]
        assert result.geometry["attributes"]["textureTag"] == "tiles"

    def test_attr(self, interpreter, square):
        result = run(interpreter, square, {"op": "attr", "name": "use", "value": "retail"})
        assert result.attributes["use"] == "retail"
        assert result.metadata.operation_count == 1

    def test_clockwise_input_is_normalized(self, interpreter, square):
        result = run(interpreter, list(reversed(square)), {"op": "extrude", "h": 10})
        assert result.success is True
        assert result.attributes["volume"] == pytest.approx(1000)

    def test_offset_mode(self, interpreter, square):
        result = run(interpreter, square, {"op": "offset", "d": 1, "mode": "out"})
        assert result.attributes["offsetMode"] == "out"
        assert result.attributes["area"] > 100


class TestAxisOperations:
    def test_roof_on_massing(self, interpreter, square):
        result = run(interpreter, square, {"op": "extrude", "h": 12}, {"op": "roof", "kind": "gable"})
        assert result.attributes["roofHeight"] == 12
        assert result.attributes["ridgeHeight"] == pytest.approx(15.6)

    def test_roof_on_bare_footprint(self, interpreter, square):
        result = run(interpreter, square, {"op": "roof", "kind": "hip"})
        assert result.attributes["roofHeight"] == pytest.approx(math.radians(30) * 10)

    def test_split_z_after_extrude(self, interpreter, square):
        result = run(
            interpreter,
            square,
            {"op": "extrude", "h": 30},
            {"op": "split", "axis": "z", "sizes": [4, "*"]},
        )
        assert result.attributes["partSizes"] == [4, 26]
        assert result.attributes["floorHeight"] == 15
        assert len(result.geometry["parts"]) == 2

    def test_split_z_without_height_fails(self, interpreter, square):
        result = run(interpreter, square, {"op": "split", "axis": "z", "sizes": [4, "*"]})
        assert result.success is False
        assert "exceeds axis dimension" in result.error

    def test_split_y_uses_footprint(self, interpreter, rectangle):
        result = run(interpreter, rectangle, {"op": "split", "axis": "y", "sizes": [2, "*"]})
        assert result.attributes["partSizes"] == [2, 3]

    def test_repeat_z_uses_height_attribute(self, interpreter, square):
        result = run(
            interpreter,
            square,
            {"op": "repeat", "axis": "z", "step": 5, "limit": 10},
            attributes={"height": 100},
        )
        assert result.attributes["repeatCount"] == 10

    def test_setback_then_extrude(self, interpreter, lot):
        result = run(
            interpreter,
            lot,
            {"op": "setback", "d": {"front": 5, "side": 2}},
            {"op": "extrude", "h": 10},
        )
        assert result.success is True
        assert result.attributes["setbackDistance"] == 5
        assert result.attributes["baseArea"] < 1200


class TestApplyRule:
    def test_state_is_replaced(self, interpreter, square):
        program = RuleProgram(name="x")
        context = GeometryContext(polygon=square)
        state = interpreter.initial_state(program, context, square)
        rule = ExtrudeRule(op="extrude", h=10)

        new_state = interpreter.apply_rule(state, rule, context)

        assert isinstance(new_state, ExecutionState)
        assert new_state.total_height == 10
        assert new_state.operation_count == 1
        assert state.operation_count == 0
        assert "height" not in state.attributes

    def test_raises_rule_error(self, interpreter, square):
        context = GeometryContext(polygon=square)
        state = interpreter.initial_state(RuleProgram(name="x"), context, square)
        with pytest.raises(RangeError):
            interpreter.apply_rule(state, ExtrudeRule(op="extrude", h=-1), context)

    def test_unhandled_rule_type(self, interpreter, square):
        class Twist:
            op = "twist"

        context = GeometryContext(polygon=square)
        state = interpreter.initial_state(RuleProgram(name="x"), context, square)
        with pytest.raises(UnknownOperationError):
            interpreter.apply_rule(state, Twist(), context)


class TestResultShape:
    def test_serialized_aliases(self, interpreter, square):
        data = run(interpreter, square, {"op": "extrude", "h": 3}).model_dump(by_alias=True)
        assert data["metadata"]["operationCount"] == 1
        assert data["metadata"]["executionTimeMs"] >= 0
        assert data["errorCode"] is None
