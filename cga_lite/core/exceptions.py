"""Rule engine error taxonomy."""


class CGAError(Exception):
    """Base exception for rule engine errors."""

    code = "CGA_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SchemaError(CGAError):
    """Malformed CRS record or rule program."""

    code = "SCHEMA_ERROR"

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class GeometryError(CGAError):
    """Input polygon topology is unusable (too few vertices, self-intersection)."""

    code = "GEOMETRY_ERROR"

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class RangeError(CGAError):
    """A numeric operator parameter is outside its usable range."""

    code = "RANGE_ERROR"


class UnknownOperationError(CGAError):
    code = "UNKNOWN_OPERATION"

    def __init__(self, op: str):
        super().__init__(f"Unknown rule operation: {op}")
        self.op = op


class BooleanOpError(CGAError):
    """Clipping produced an empty or degenerate result."""

    code = "BOOLEAN_OP_ERROR"
