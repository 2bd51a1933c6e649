"""
Error Types for Schema Compilation and Value Validation.

Two families that are never merged:

- SchemaError (LexError, ParseError, SemanticError): the schema source is
  unusable. Always fatal to compilation, raised at the first problem.
- ValidationErrorDetail / ValidationError: a value does not match a valid
  schema. Collected exhaustively and handed back to the caller.
"""

from enum import Enum
from typing import Any, List, Optional, Sequence


class Stage(str, Enum):
    """Compilation stage that produced a SchemaError."""

    LEX = "lex"
    PARSE = "parse"
    SEMANTIC = "semantic"


class SemanticErrorKind(str, Enum):
    """Schema invariant violated by a well-formed schema."""

    DUPLICATE_FIELD = "duplicate_field"
    EMPTY_FIELD_NAME = "empty_field_name"
    UNKNOWN_TYPE = "unknown_type"
    ILLEGAL_CONSTRAINT = "illegal_constraint"
    INVALID_RANGE = "invalid_range"
    INVALID_REGEX = "invalid_regex"
    BAD_ENUM_VALUE = "bad_enum_value"
    UNION_ARITY = "union_arity"
    NESTED_UNION = "nested_union"
    BAD_DEFAULT = "bad_default"
    MISSING_ELEMENT_TYPE = "missing_element_type"


class ErrorKind(str, Enum):
    """Kind of a single data-level validation failure."""

    MISSING_FIELD = "missing_field"
    TYPE_MISMATCH = "type_mismatch"
    LENGTH_OUT_OF_RANGE = "length_out_of_range"
    RANGE_OUT_OF_RANGE = "range_out_of_range"
    REGEX_MISMATCH = "regex_mismatch"
    ENUM_MISMATCH = "enum_mismatch"
    UNION_MISMATCH = "union_mismatch"
    UNKNOWN_FIELD = "unknown_field"


class SchemaError(Exception):
    """
    Base class for every error that makes a schema unusable.

    Attributes:
        stage: Stage that failed (lex, parse, semantic)
        kind: Short machine-readable error kind
        message: Human-readable description
        offset: UTF-8 byte offset into the source (lex/parse stages)
        path: Dotted field path from the schema root (semantic stage)
    """

    stage: Stage

    def __init__(
        self,
        message: str,
        kind: str,
        offset: Optional[int] = None,
        path: Optional[str] = None,
    ):
        self.message = message
        self.kind = kind
        self.offset = offset
        self.path = path
        super().__init__(self._format())

    def _format(self) -> str:
        if self.path is not None:
            location = f" at '{self.path}'" if self.path else " at schema root"
        elif self.offset is not None:
            location = f" at offset {self.offset}"
        else:
            location = ""
        return f"{self.stage.value} error{location}: {self.message}"

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        result = {
            "stage": self.stage.value,
            "kind": str(getattr(self.kind, "value", self.kind)),
            "message": self.message,
        }
        if self.offset is not None:
            result["offset"] = self.offset
        if self.path is not None:
            result["path"] = self.path
        return result


class LexError(SchemaError):
    """Raised on an unrecognized character or an unterminated string literal."""

    stage = Stage.LEX

    def __init__(self, offset: int, unexpected_char: str, message: Optional[str] = None):
        self.unexpected_char = unexpected_char
        super().__init__(
            message or f"Unexpected character {unexpected_char!r}",
            kind="unexpected_char",
            offset=offset,
        )


class ParseError(SchemaError):
    """Raised on the first grammar violation; there is no error recovery."""

    stage = Stage.PARSE

    def __init__(
        self,
        offset: int,
        expected: Sequence[str],
        found: str,
        message: Optional[str] = None,
    ):
        self.expected = tuple(expected)
        self.found = found
        if message is None:
            message = f"Expected {' or '.join(self.expected)}, found {found}"
        super().__init__(message, kind="unexpected_token", offset=offset)


class SemanticError(SchemaError):
    """Raised when a grammatically valid schema violates a schema invariant."""

    stage = Stage.SEMANTIC

    def __init__(self, path: str, kind: SemanticErrorKind, message: str):
        super().__init__(message, kind=kind, path=path)


class RegistryError(Exception):
    """Raised on invalid extended-type registrations."""


class RegistryFrozenError(RegistryError):
    """Raised when registering into a registry that is already in use."""


class ValidationErrorDetail:
    """
    Details about a single validation failure.

    Attributes:
        path: Dotted/indexed path to the value (e.g., "profile.tags[2]")
        kind: ErrorKind of the failure
        message: Human-readable error message
        value: The offending value (optional)
        expected: Expected type/value description (optional)
        found: Runtime kind actually found (optional)
        constraint: The violated constraint rendered as data (optional)
    """

    def __init__(
        self,
        path: str,
        kind: ErrorKind,
        message: str,
        value: Optional[Any] = None,
        expected: Optional[Any] = None,
        found: Optional[str] = None,
        constraint: Optional[Any] = None,
    ):
        self.path = path
        self.kind = kind
        self.message = message
        self.value = value
        self.expected = expected
        self.found = found
        self.constraint = constraint

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        result = {
            "path": self.path,
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.value is not None:
            result["value"] = self.value
        if self.expected is not None:
            result["expected"] = self.expected
        if self.found is not None:
            result["found"] = self.found
        if self.constraint is not None:
            result["constraint"] = self.constraint
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationErrorDetail):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"ValidationErrorDetail(path={self.path!r}, kind={self.kind.value!r}, "
            f"message={self.message!r})"
        )


class ValidationError(Exception):
    """
    Raised by validate() when a value does not match a compiled schema.

    The engine walks the whole value before raising, so `errors` holds
    every mismatch in depth-first order, each with its own path.

    Attributes:
        errors: List of ValidationErrorDetail instances
    """

    def __init__(self, errors: List[ValidationErrorDetail]):
        self.errors = errors
        super().__init__(f"Validation failed: {len(errors)} error(s)")

    def to_dict(self) -> dict:
        """Render as {"success": False, "errors": [...]} for JSON responses."""
        return {
            "success": False,
            "errors": [e.to_dict() for e in self.errors],
        }

    def __repr__(self) -> str:
        return f"ValidationError({len(self.errors)} errors)"
