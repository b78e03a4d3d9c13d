"""Sample rule programs for demos, the CLI and tests."""

from typing import Optional

from cga_lite.models.schemas.rules import RuleProgram

TOWER_RULE = RuleProgram.model_validate(
    {
        "name": "Simple Tower",
        "description": "Basic extrusion to create a tower/building mass",
        "attrs": {"buildingType": "residential", "floors": 10},
        "rules": [
            {"op": "extrude", "h": 30},
            {"op": "textureTag", "tag": "building_facade"},
            {"op": "attr", "name": "buildingHeight", "value": 30},
        ],
    }
)

STEPPED_BUILDING_RULE = RuleProgram.model_validate(
    {
        "name": "Stepped Building",
        "description": "Building with setbacks creating stepped profile",
        "attrs": {"buildingType": "office", "maxHeight": 60},
        "rules": [
            {"op": "extrude", "h": 20},
            {"op": "setback", "d": 3, "faces": ["front", "back"]},
            {"op": "extrude", "h": 20},
            {"op": "setback", "d": 2, "faces": ["left", "right"]},
            {"op": "extrude", "h": 20},
            {"op": "roof", "kind": "flat"},
            {"op": "textureTag", "tag": "office_facade"},
        ],
    }
)

HOUSE_WITH_ROOF_RULE = RuleProgram.model_validate(
    {
        "name": "House with Gable Roof",
        "description": "Residential house with gabled roof",
        "attrs": {"buildingType": "residential", "stories": 2},
        "rules": [
            {"op": "setback", "d": 1.5, "faces": ["front", "back", "left", "right"]},
            {"op": "extrude", "h": 8},
            {"op": "roof", "kind": "gable", "pitch": 35, "height": 4},
            {
                "op": "textureTag",
                "tag": "residential_facade",
                "faces": ["front", "back", "left", "right"],
            },
            {"op": "textureTag", "tag": "roof_tiles", "faces": ["top"]},
            {"op": "attr", "name": "dwellingUnits", "value": 1},
        ],
    }
)

COMMERCIAL_STRIP_RULE = RuleProgram.model_validate(
    {
        "name": "Commercial Strip",
        "description": "Low-rise commercial building with parking setback",
        "attrs": {"buildingType": "commercial", "parkingSpaces": 20},
        "rules": [
            {"op": "setback", "d": 8, "faces": ["front"]},
            {"op": "extrude", "h": 6},
            {"op": "roof", "kind": "flat"},
            {"op": "textureTag", "tag": "commercial_facade"},
            {"op": "attr", "name": "floorArea", "value": 500},
        ],
    }
)

# The podium and the upper block are massed first so the vertical split has
# a height to divide.
MIXED_USE_RULE = RuleProgram.model_validate(
    {
        "name": "Mixed Use Building",
        "description": "Ground floor commercial with residential above",
        "attrs": {
            "buildingType": "mixed",
            "groundFloorUse": "commercial",
            "upperFloorUse": "residential",
        },
        "rules": [
            {"op": "extrude", "h": 4},
            {"op": "textureTag", "tag": "commercial_ground_floor"},
            {"op": "extrude", "h": 24},
            {"op": "split", "axis": "z", "sizes": [4, "*"]},
            {"op": "setback", "d": 2, "faces": ["front", "back"]},
            {"op": "textureTag", "tag": "residential_upper"},
            {"op": "roof", "kind": "flat"},
        ],
    }
)

SAMPLE_RULES: dict[str, RuleProgram] = {
    "TOWER_RULE": TOWER_RULE,
    "STEPPED_BUILDING_RULE": STEPPED_BUILDING_RULE,
    "HOUSE_WITH_ROOF_RULE": HOUSE_WITH_ROOF_RULE,
    "COMMERCIAL_STRIP_RULE": COMMERCIAL_STRIP_RULE,
    "MIXED_USE_RULE": MIXED_USE_RULE,
}


def get_rule_by_name(name: str) -> Optional[RuleProgram]:
    """Look up a sample by display name or by its constant key."""
    if name in SAMPLE_RULES:
        return SAMPLE_RULES[name]
    for program in SAMPLE_RULES.values():
        if program.name == name:
            return program
    return None


def get_all_rule_names() -> list[str]:
    return [program.name for program in SAMPLE_RULES.values()]
