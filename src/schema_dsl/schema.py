"""
Schema tree: type expressions, field specs and constraints.

The parser builds these nodes, the compiler checks and resolves them, and
the validation engine walks them. All nodes are frozen dataclasses holding
tuples, so a compiled tree can be shared freely between threads.

Example:
    >>> schema = compile("(name:string[1,50], tags?:array<string>)")
    >>> schema.root.field("name").constraints
    (LengthRange(min=1, max=50, inclusive_min=True, inclusive_max=True),)
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from . import values as v
from .registry import ExtendedKind


def _bracket(inclusive_min: bool, inclusive_max: bool, low: Any, high: Any) -> str:
    return f"{'[' if inclusive_min else '('}{low},{high}{']' if inclusive_max else ')'}"


def quote(text: str) -> str:
    """Quote a string the way the lexer reads it back."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def format_literal(value: Any) -> str:
    """Render a literal value in schema source syntax."""
    kind = v.kind_of(value)
    if kind == v.NULL:
        return "null"
    if kind == v.BOOL:
        return "true" if value else "false"
    if kind == v.STRING:
        return quote(value)
    if kind == v.FLOAT and (math.isinf(value) or math.isnan(value)):
        raise ValueError(f"Cannot render non-finite float {value!r}")
    return repr(value)


# ==============================================================================
# Constraints
# ==============================================================================


@dataclass(frozen=True)
class LengthRange:
    """Bounds on string length or array element count."""

    min: int
    max: int
    inclusive_min: bool = True
    inclusive_max: bool = True

    kind: ClassVar[str] = "length"

    def accepts(self, size: int) -> bool:
        low_ok = size >= self.min if self.inclusive_min else size > self.min
        high_ok = size <= self.max if self.inclusive_max else size < self.max
        return low_ok and high_ok

    def to_source(self) -> str:
        return _bracket(self.inclusive_min, self.inclusive_max, self.min, self.max)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "min": self.min,
            "max": self.max,
            "inclusive_min": self.inclusive_min,
            "inclusive_max": self.inclusive_max,
        }


@dataclass(frozen=True)
class NumericRange:
    """Bounds on an int or float value."""

    min: Union[int, float]
    max: Union[int, float]
    inclusive_min: bool = True
    inclusive_max: bool = True

    kind: ClassVar[str] = "range"

    def accepts(self, number: Union[int, float]) -> bool:
        low_ok = number >= self.min if self.inclusive_min else number > self.min
        high_ok = number <= self.max if self.inclusive_max else number < self.max
        return low_ok and high_ok

    def to_source(self) -> str:
        return _bracket(
            self.inclusive_min,
            self.inclusive_max,
            format_literal(self.min),
            format_literal(self.max),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "min": self.min,
            "max": self.max,
            "inclusive_min": self.inclusive_min,
            "inclusive_max": self.inclusive_max,
        }


@dataclass(frozen=True)
class Regex:
    """String must contain a match of `pattern` (search semantics)."""

    pattern: str
    compiled: Optional[re.Pattern] = field(default=None, compare=False, repr=False)

    kind: ClassVar[str] = "regex"

    def accepts(self, text: str) -> bool:
        return self.compiled.search(text) is not None

    def to_source(self) -> str:
        return f"regex({quote(self.pattern)})"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "pattern": self.pattern}


@dataclass(frozen=True)
class EnumSet:
    """Value must equal (tag included) one of `values`."""

    values: Tuple[Any, ...]

    kind: ClassVar[str] = "enum"

    def accepts(self, value: Any) -> bool:
        return any(v.same_value(value, allowed) for allowed in self.values)

    def to_source(self) -> str:
        return f"enum({','.join(format_literal(x) for x in self.values)})"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "values": list(self.values)}


Constraint = Union[LengthRange, NumericRange, Regex, EnumSet]


# ==============================================================================
# Type expressions
# ==============================================================================


@dataclass(frozen=True)
class PrimitiveType:
    """string, int, float, bool, or a bare (untyped) object / array."""

    kind: str
    constraints: Tuple[Constraint, ...] = ()

    @property
    def base(self) -> str:
        return self.kind

    def describe(self) -> str:
        return self.kind

    def to_source(self) -> str:
        return _with_constraints(self.kind, self.constraints)


@dataclass(frozen=True)
class ExtendedType:
    """A registered named format (email, uuid, ...) over a scalar base kind."""

    kind: str
    constraints: Tuple[Constraint, ...] = ()
    resolved: Optional[ExtendedKind] = field(default=None, compare=False, repr=False)

    @property
    def base(self) -> str:
        return self.resolved.base if self.resolved is not None else v.STRING

    def describe(self) -> str:
        return self.kind

    def to_source(self) -> str:
        return _with_constraints(self.kind, self.constraints)


@dataclass(frozen=True)
class FieldSpec:
    """One named entry of an object type."""

    name: str
    type: "TypeExpr"
    optional: bool = False
    default: Any = None
    has_default: bool = False

    @property
    def constraints(self) -> Tuple[Constraint, ...]:
        # Union alternatives carry their own constraints
        return getattr(self.type, "constraints", ())

    def to_source(self) -> str:
        name = self.name if _is_plain_name(self.name) else quote(self.name)
        text = f"{name}{'?' if self.optional else ''}:{self.type.to_source()}"
        if self.has_default:
            text += f"={format_literal(self.default)}"
        return text


@dataclass(frozen=True)
class ObjectType:
    """object(...) with declared fields, in declaration order."""

    fields: Tuple[FieldSpec, ...]
    constraints: Tuple[Constraint, ...] = ()

    base: ClassVar[str] = v.OBJECT

    def field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def describe(self) -> str:
        return v.OBJECT

    def to_source(self) -> str:
        body = ",".join(spec.to_source() for spec in self.fields)
        return _with_constraints(f"object({body})", self.constraints)


@dataclass(frozen=True)
class ArrayType:
    """array<element>."""

    element: Optional["TypeExpr"]
    constraints: Tuple[Constraint, ...] = ()

    base: ClassVar[str] = v.ARRAY

    def describe(self) -> str:
        return v.ARRAY

    def to_source(self) -> str:
        return _with_constraints(f"array<{self.element.to_source()}>", self.constraints)


@dataclass(frozen=True)
class UnionType:
    """Ordered alternatives; the first full match wins."""

    alternatives: Tuple["TypeExpr", ...]

    base: ClassVar[str] = "union"
    constraints: ClassVar[Tuple[Constraint, ...]] = ()

    def describe(self) -> str:
        return "|".join(alt.describe() for alt in self.alternatives)

    def to_source(self) -> str:
        return "|".join(alt.to_source() for alt in self.alternatives)


TypeExpr = Union[PrimitiveType, ExtendedType, ObjectType, ArrayType, UnionType]


def _with_constraints(head: str, constraints: Tuple[Constraint, ...]) -> str:
    if not constraints:
        return head
    return " ".join([head] + [c.to_source() for c in constraints])


def _is_plain_name(name: str) -> bool:
    # Keywords are accepted as field names by the parser, so only the
    # identifier shape matters here.
    return bool(name) and (name[0] == "_" or name[0].isalpha()) and all(
        ch == "_" or ch.isalnum() for ch in name
    )


# ==============================================================================
# Compiled schema
# ==============================================================================


@dataclass(frozen=True)
class CompiledSchema:
    """
    An invariant-checked schema, the only input the validation engine takes.

    Produced by compile(); immutable and reusable across threads.
    """

    root: ObjectType
    source: str = field(default="", compare=False, repr=False)

    @property
    def fields(self) -> Tuple[FieldSpec, ...]:
        return self.root.fields

    def validate(self, value: Any, settings: Any = None) -> Any:
        """Return the normalized value or raise ValidationError."""
        from .engine import validate

        return validate(self, value, settings=settings)

    def check(self, value: Any, settings: Any = None):
        """Return a ValidationResult; never raises for bad data."""
        from .engine import check

        return check(self, value, settings=settings)

    def to_source(self) -> str:
        """Canonical schema source; compiling it yields an equal schema."""
        return "(" + ",".join(spec.to_source() for spec in self.root.fields) + ")"

    def __repr__(self) -> str:
        return f"CompiledSchema(fields={list(self.root.field_names)})"
