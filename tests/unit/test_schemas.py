"""Unit tests for rule program and geometry context schemas."""

import pytest
from pydantic import ValidationError

from cga_lite.core.exceptions import SchemaError, UnknownOperationError
from cga_lite.models.schemas.rules import (
    ExtrudeRule,
    GeometryContext,
    OffsetRule,
    RuleProgram,
    SetbackRule,
    SplitRule,
    parse_rule_program,
)


def program(*rules, **extra):
    return {"name": "test", "rules": list(rules), **extra}


class TestParseRuleProgram:
    def test_tagged_union(self):
        parsed = parse_rule_program(
            program(
                {"op": "extrude", "h": 30},
                {"op": "split", "axis": "z", "sizes": [4, "*"]},
                {"op": "setback", "d": {"front": 5, "side": 2}},
                {"op": "attr", "name": "floors", "value": 10},
            )
        )
        assert isinstance(parsed.rules[0], ExtrudeRule)
        assert isinstance(parsed.rules[1], SplitRule)
        assert parsed.rules[1].sizes == [4.0, "*"]
        assert isinstance(parsed.rules[2], SetbackRule)
        assert parsed.rules[3].value == 10

    def test_unknown_operation(self):
        with pytest.raises(UnknownOperationError) as exc:
            parse_rule_program(program({"op": "extrude", "h": 3}, {"op": "twist", "deg": 45}))
        assert exc.value.op == "twist"
        assert exc.value.code == "UNKNOWN_OPERATION"

    def test_missing_field(self):
        with pytest.raises(SchemaError) as exc:
            parse_rule_program(program({"op": "extrude"}))
        assert "Rule program validation failed" in exc.value.message

    def test_non_positive_offset(self):
        with pytest.raises(SchemaError):
            parse_rule_program(program({"op": "offset", "d": 0}))

    def test_empty_split_sizes(self):
        with pytest.raises(SchemaError):
            parse_rule_program(program({"op": "split", "axis": "x", "sizes": []}))

    def test_empty_setback_map(self):
        with pytest.raises(SchemaError):
            parse_rule_program(program({"op": "setback", "d": {}}))

    def test_missing_name(self):
        with pytest.raises(SchemaError):
            parse_rule_program({"rules": []})

    def test_rules_not_a_list(self):
        with pytest.raises(SchemaError) as exc:
            parse_rule_program({"name": "x", "rules": 5})
        assert exc.value.code == "SCHEMA_ERROR"
        assert any(error.startswith("rules") for error in exc.value.errors)

    def test_non_string_operation_tag(self):
        with pytest.raises(SchemaError) as exc:
            parse_rule_program(program({"op": ["x"]}))
        assert exc.value.errors == ["rules.0.op: operation tag must be a string"]

    def test_non_mapping_rule(self):
        with pytest.raises(SchemaError):
            parse_rule_program(program(5, {"op": "extrude", "h": 3}))

    def test_non_mapping_program(self):
        with pytest.raises(SchemaError):
            parse_rule_program(["extrude"])

    def test_rule_limit(self):
        rules = [{"op": "extrude", "h": 1}] * 3
        with pytest.raises(SchemaError, match="too many rules"):
            parse_rule_program(program(*rules), max_rules=2)

    def test_passes_through_parsed_program(self):
        parsed = RuleProgram(name="ready")
        assert parse_rule_program(parsed) is parsed


class TestRuleModels:
    def test_offset_signed_distance(self):
        assert OffsetRule(op="offset", d=2).signed_distance == -2
        assert OffsetRule(op="offset", d=2, mode="out").signed_distance == 2

    def test_setback_distances(self):
        assert SetbackRule(op="setback", d=3).distances == {"all": 3}
        assert SetbackRule(op="setback", d={"front": 5}).distances == {"front": 5}


class TestGeometryContext:
    def test_bounding_box_derived(self, square):
        context = GeometryContext(polygon=square)
        assert context.bounding_box.max.x == 10
        assert context.bounding_box.extent("y") == 10
        assert context.bounding_box.extent("z") == 0

    def test_alias(self, square):
        context = GeometryContext.model_validate(
            {
                "polygon": square,
                "boundingBox": {"min": {"x": 0, "y": 0, "z": 0}, "max": {"x": 10, "y": 10, "z": 40}},
            }
        )
        assert context.bounding_box.extent("z") == 40

    def test_rejects_bad_points(self):
        with pytest.raises(ValidationError):
            GeometryContext(polygon=[[0, 0], [1, 1, 1, 1], [2, 0]])
