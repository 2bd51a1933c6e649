"""
Runtime value model.

Values are plain JSON-compatible Python objects: None, bool, int, float,
str, list and dict (insertion ordered). This module only classifies them;
it never copies or mutates.
"""

from typing import Any

NULL = "null"
BOOL = "bool"
INT = "int"
FLOAT = "float"
STRING = "string"
ARRAY = "array"
OBJECT = "object"
UNKNOWN = "unknown"

SCALAR_KINDS = frozenset({BOOL, INT, FLOAT, STRING})


def kind_of(value: Any) -> str:
    """Return the runtime tag of a value.

    bool is checked before int since bool subclasses int in Python.
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return BOOL
    if isinstance(value, int):
        return INT
    if isinstance(value, float):
        return FLOAT
    if isinstance(value, str):
        return STRING
    if isinstance(value, list):
        return ARRAY
    if isinstance(value, dict):
        return OBJECT
    return UNKNOWN


def is_scalar(value: Any) -> bool:
    return kind_of(value) in SCALAR_KINDS


def same_value(left: Any, right: Any) -> bool:
    """Tag-aware equality: 1 == 1.0 == True in Python, but not here."""
    return kind_of(left) == kind_of(right) and left == right


def describe(value: Any) -> str:
    """Short rendering of a value for error messages."""
    kind = kind_of(value)
    if kind == STRING:
        text = value if len(value) <= 40 else value[:37] + "..."
        return repr(text)
    if kind in (ARRAY, OBJECT):
        return f"<{kind} of {len(value)}>"
    if kind == UNKNOWN:
        return f"<{type(value).__name__}>"
    if kind == NULL:
        return "null"
    if kind == BOOL:
        return "true" if value else "false"
    return repr(value)
