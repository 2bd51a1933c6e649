"""
Schema compiler: the semantic pass between the parser and the engine.

Walks the parsed tree bottom-up and turns it into a CompiledSchema:
- Field names are non-empty and unique per object
- Union arity and nesting are checked
- Extended type names are resolved against the type registry
- Bracket ranges become LengthRange on string/array bases
- Constraint kinds are checked against the base kind they attach to
- Regex patterns are pre-compiled, enum values checked against the base
- Defaults are coerced to the field type and must themselves validate

The first violation raises SemanticError with the dotted field path.

Example:
    >>> schema = compile_schema("(name:string[1,50], age?:int[0,150]=30)")
    >>> compile_schema("(age:int[0,150]=200)")
    Traceback (most recent call last):
    ...
    SemanticError: semantic error at 'age': Default 200 does not conform ...
"""

import logging
import math
import re
from dataclasses import replace
from typing import Any, List, Optional, Set, Tuple

from . import values as v
from .engine import validate_value
from .errors import SemanticError, SemanticErrorKind
from .parser import parse
from .registry import PRIMITIVE_KINDS, TypeRegistry, constraint_is_legal, default_registry
from .schema import (
    ArrayType,
    CompiledSchema,
    Constraint,
    EnumSet,
    ExtendedType,
    FieldSpec,
    LengthRange,
    NumericRange,
    ObjectType,
    Regex,
    TypeExpr,
    UnionType,
)
from .settings import DEFAULT_SETTINGS, ValidatorSettings

logger = logging.getLogger(__name__)


def compile_schema(
    source: str,
    registry: Optional[TypeRegistry] = None,
    settings: Optional[ValidatorSettings] = None,
) -> CompiledSchema:
    """
    Compile schema source into an immutable CompiledSchema.

    Args:
        source: Schema source text, e.g. "(name:string, age?:int=30)"
        registry: Type registry for extended kinds (default: the global one)
        settings: ValidatorSettings; max_depth bounds the schema nesting

    Returns:
        CompiledSchema ready for validate()/check()

    Raises:
        LexError: On malformed tokens
        ParseError: On the first grammar violation
        SemanticError: On the first schema invariant violation
    """
    settings = settings or DEFAULT_SETTINGS
    registry = registry if registry is not None else default_registry

    root = parse(source, max_depth=settings.max_depth)
    registry.freeze()
    compiled = SchemaCompiler(registry).compile_object("", root)

    logger.debug(f"Compiled schema with {len(compiled.fields)} top-level field(s)")
    return CompiledSchema(root=compiled, source=source)


class SchemaCompiler:
    """Checks and resolves one parsed schema tree against a registry."""

    def __init__(self, registry: TypeRegistry):
        self.registry = registry

    def compile_object(self, path: str, node: ObjectType) -> ObjectType:
        seen: Set[str] = set()
        fields: List[FieldSpec] = []

        for spec in node.fields:
            if not spec.name:
                raise SemanticError(
                    path, SemanticErrorKind.EMPTY_FIELD_NAME, "Field names must not be empty"
                )
            field_path = _join(path, spec.name)
            if spec.name in seen:
                raise SemanticError(
                    field_path,
                    SemanticErrorKind.DUPLICATE_FIELD,
                    f"Duplicate field '{spec.name}'",
                )
            seen.add(spec.name)
            fields.append(self._compile_field(field_path, spec))

        constraints = self._compile_constraints(path, v.OBJECT, node.constraints)
        return replace(node, fields=tuple(fields), constraints=constraints)

    def _compile_field(self, path: str, spec: FieldSpec) -> FieldSpec:
        type_expr = self.compile_type(path, spec.type)
        if not spec.has_default:
            return replace(spec, type=type_expr)

        default = spec.default
        if not isinstance(type_expr, UnionType):
            default = _coerce_literal(default, type_expr.base)
        if not _is_finite(default):
            raise SemanticError(
                path, SemanticErrorKind.BAD_DEFAULT, f"Default {default!r} is not a finite number"
            )

        # The field is treated as present and required here
        errors, _ = validate_value(path, default, type_expr)
        if errors:
            raise SemanticError(
                path,
                SemanticErrorKind.BAD_DEFAULT,
                f"Default {default!r} does not conform to {type_expr.describe()}: "
                f"{errors[0].message}",
            )
        return replace(spec, type=type_expr, default=default)

    def compile_type(self, path: str, node: TypeExpr, in_union: bool = False) -> TypeExpr:
        if isinstance(node, UnionType):
            if in_union:
                raise SemanticError(
                    path, SemanticErrorKind.NESTED_UNION, "A union alternative cannot be a union"
                )
            if len(node.alternatives) < 2:
                raise SemanticError(
                    path,
                    SemanticErrorKind.UNION_ARITY,
                    f"A union needs at least 2 alternatives, got {len(node.alternatives)}",
                )
            alternatives = tuple(
                self.compile_type(path, alt, in_union=True) for alt in node.alternatives
            )
            return replace(node, alternatives=alternatives)

        if isinstance(node, ObjectType):
            return self.compile_object(path, node)

        if isinstance(node, ArrayType):
            if node.element is None:
                raise SemanticError(
                    path,
                    SemanticErrorKind.MISSING_ELEMENT_TYPE,
                    "array<...> needs an element type",
                )
            element = self.compile_type(f"{path}[]", node.element)
            constraints = self._compile_constraints(path, v.ARRAY, node.constraints)
            return replace(node, element=element, constraints=constraints)

        if isinstance(node, ExtendedType):
            kind = self.registry.lookup(node.kind)
            if kind is None:
                raise SemanticError(
                    path, SemanticErrorKind.UNKNOWN_TYPE, f"Unknown type '{node.kind}'"
                )
            constraints = self._compile_constraints(path, kind.base, node.constraints)
            return replace(node, constraints=constraints, resolved=kind)

        if node.kind not in PRIMITIVE_KINDS:
            raise SemanticError(path, SemanticErrorKind.UNKNOWN_TYPE, f"Unknown type '{node.kind}'")
        constraints = self._compile_constraints(path, node.kind, node.constraints)
        return replace(node, constraints=constraints)

    # --------------------------------------------------------------------------
    # Constraints
    # --------------------------------------------------------------------------

    def _compile_constraints(
        self,
        path: str,
        base: str,
        constraints: Tuple[Constraint, ...],
    ) -> Tuple[Constraint, ...]:
        compiled: List[Constraint] = []

        for constraint in constraints:
            if isinstance(constraint, NumericRange) and base in (v.STRING, v.ARRAY):
                constraint = _length_range(path, constraint)

            if not constraint_is_legal(constraint.kind, base):
                raise SemanticError(
                    path,
                    SemanticErrorKind.ILLEGAL_CONSTRAINT,
                    f"{constraint.kind} constraint is not allowed on {base}",
                )

            if isinstance(constraint, (LengthRange, NumericRange)):
                _check_bounds(path, constraint)
            elif isinstance(constraint, Regex):
                constraint = _compile_regex(path, constraint)
            elif isinstance(constraint, EnumSet):
                constraint = _check_enum(path, base, constraint)

            compiled.append(constraint)

        return tuple(compiled)


def _length_range(path: str, bounds: NumericRange) -> LengthRange:
    for bound in (bounds.min, bounds.max):
        if v.kind_of(bound) != v.INT or bound < 0:
            raise SemanticError(
                path,
                SemanticErrorKind.INVALID_RANGE,
                f"Length bounds must be non-negative integers, got {bounds.to_source()}",
            )
    return LengthRange(bounds.min, bounds.max, bounds.inclusive_min, bounds.inclusive_max)


def _check_bounds(path: str, bounds: Any) -> None:
    if not (_is_finite(bounds.min) and _is_finite(bounds.max)):
        raise SemanticError(
            path,
            SemanticErrorKind.INVALID_RANGE,
            f"Range bounds must be finite numbers, got [{bounds.min!r},{bounds.max!r}]",
        )
    if bounds.min > bounds.max:
        raise SemanticError(
            path,
            SemanticErrorKind.INVALID_RANGE,
            f"Range minimum {bounds.min} is greater than maximum {bounds.max}",
        )


def _compile_regex(path: str, constraint: Regex) -> Regex:
    try:
        compiled = re.compile(constraint.pattern)
    except re.error as e:
        raise SemanticError(
            path,
            SemanticErrorKind.INVALID_REGEX,
            f"Invalid regex pattern {constraint.pattern!r}: {e}",
        ) from e
    return replace(constraint, compiled=compiled)


def _check_enum(path: str, base: str, constraint: EnumSet) -> EnumSet:
    values: List[Any] = []
    for item in constraint.values:
        coerced = _coerce_literal(item, base)
        if v.kind_of(coerced) != base or not _is_finite(coerced):
            raise SemanticError(
                path,
                SemanticErrorKind.BAD_ENUM_VALUE,
                f"Enum value {item!r} is not a {base}",
            )
        values.append(coerced)
    return EnumSet(tuple(values))


def _coerce_literal(value: Any, base: str) -> Any:
    """Widen a schema literal to the base kind it is written against."""
    kind = v.kind_of(value)
    if base == v.FLOAT and kind == v.INT:
        return float(value)
    if base == v.STRING and kind in (v.INT, v.FLOAT):
        return str(value)
    return value


def _is_finite(value: Any) -> bool:
    if v.kind_of(value) == v.FLOAT:
        return math.isfinite(value)
    return True


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name
