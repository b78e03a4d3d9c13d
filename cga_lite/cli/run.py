"""CLI for running a rule program against a lot polygon."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from cga_lite.config import get_settings
from cga_lite.engine.interpreter import RuleInterpreter
from cga_lite.engine.samples import get_all_rule_names, get_rule_by_name
from cga_lite.geometry.crs import CRSCatalog
from cga_lite.models.schemas.rules import RuleExecutionResult

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def load_json(path: str) -> Any:
    """Read a JSON document from disk."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with file_path.open(encoding="utf-8") as f:
        return json.load(f)


def load_context(path: str) -> dict[str, Any]:
    """Load a geometry context.

    Accepts either a bare list of vertices or an object with ``polygon``
    and optional ``attributes`` / ``boundingBox``.
    """
    data = load_json(path)
    if isinstance(data, list):
        return {"polygon": data}
    if isinstance(data, dict) and "polygon" in data:
        return data
    raise ValueError(f"{path} must contain a vertex list or an object with 'polygon'")


def run_program(
    polygon_path: str,
    program_path: Optional[str] = None,
    sample: Optional[str] = None,
    crs_key: Optional[str] = None,
) -> RuleExecutionResult:
    """
    Execute a rule program read from disk or taken from the sample library.

    Args:
        polygon_path: JSON file with the lot polygon
        program_path: JSON file with the rule program
        sample: Sample program name or key, used when no program file is given
        crs_key: CRS catalog key for the geometry check

    Returns:
        RuleExecutionResult from the interpreter
    """
    context = load_context(polygon_path)

    if program_path:
        program = load_json(program_path)
    else:
        program = get_rule_by_name(sample or "")
        if program is None:
            raise ValueError(
                f"Unknown sample '{sample}'. Available: {', '.join(get_all_rule_names())}"
            )

    crs = None
    if crs_key:
        crs = CRSCatalog().get(crs_key)
        if crs is None:
            raise ValueError(f"Unknown CRS key: {crs_key}")

    interpreter = RuleInterpreter(settings=get_settings())
    return interpreter.execute(program, context, crs)


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run a CGA-lite rule program against a lot polygon",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m cga_lite.cli.run --polygon lot.json --sample TOWER_RULE
  python -m cga_lite.cli.run --polygon lot.json --program tower.json
  python -m cga_lite.cli.run --polygon lot.json --sample "Stepped Building" --crs BUENOS_AIRES_UTM
        """,
    )

    parser.add_argument(
        "--polygon",
        "-p",
        required=True,
        help="JSON file with the lot polygon or geometry context",
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--program",
        help="JSON file with the rule program",
    )
    source.add_argument(
        "--sample",
        "-s",
        help="Name or key of a bundled sample program",
    )

    parser.add_argument(
        "--crs",
        help="CRS catalog key used for the geometry check",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        result = run_program(
            polygon_path=args.polygon,
            program_path=args.program,
            sample=args.sample,
            crs_key=args.crs,
        )
    except (OSError, ValueError) as e:
        logger.error(str(e))
        return EXIT_USAGE

    print(json.dumps(result.model_dump(by_alias=True), indent=2))

    if not result.success:
        logger.error(f"Execution failed [{result.error_code}]: {result.error}")
        return EXIT_FAILED

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
