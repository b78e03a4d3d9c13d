"""Rule engine package for CGA-lite massing programs.

Folds declarative rule programs over lot polygons using the geometry
operators, and ships a small library of sample programs.
"""

from cga_lite.engine.interpreter import ExecutionState, InterpreterPhase, RuleInterpreter
from cga_lite.engine.samples import SAMPLE_RULES, get_all_rule_names, get_rule_by_name

__all__ = [
    "ExecutionState",
    "InterpreterPhase",
    "RuleInterpreter",
    "SAMPLE_RULES",
    "get_all_rule_names",
    "get_rule_by_name",
]
