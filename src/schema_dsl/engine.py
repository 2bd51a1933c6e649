"""
Validation engine.

Matches runtime values against a compiled schema:
- Presence resolution (required / optional / default substitution)
- Type matching, including registered extended formats
- Constraint checks (length, range, regex, enum), all failures collected
- Ordered union resolution: first alternative whose shape and own
  constraints match wins
- Nested object/array validation with dotted/indexed path reporting

The input is never mutated; a new normalized value is built. Errors are
aggregated in depth-first traversal order and no partial output is returned
when any error was found.

Example:
    >>> schema = compile("(age:int[0,150]=30, name:string)")
    >>> validate(schema, {"name": "Ada"})
    {'name': 'Ada', 'age': 30}
"""

import logging
from dataclasses import dataclass, field
from difflib import get_close_matches
from typing import Any, Dict, List, Optional, Tuple

from . import values as v
from .errors import ErrorKind, ValidationError, ValidationErrorDetail
from .schema import (
    ArrayType,
    CompiledSchema,
    Constraint,
    EnumSet,
    ExtendedType,
    LengthRange,
    NumericRange,
    ObjectType,
    Regex,
    TypeExpr,
    UnionType,
)
from .settings import DEFAULT_SETTINGS, UnknownKeyPolicy, ValidatorSettings

logger = logging.getLogger(__name__)

Result = Tuple[List[ValidationErrorDetail], Any]


@dataclass
class ValidationResult:
    """Outcome of check(): the normalized value, or every error found."""

    valid: bool
    value: Any = None
    errors: List[ValidationErrorDetail] = field(default_factory=list)

    def raise_for_errors(self) -> Any:
        """Return the normalized value, or raise ValidationError."""
        if not self.valid:
            raise ValidationError(errors=self.errors)
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
        }
        if self.valid:
            result["value"] = self.value
        return result


def check(
    schema: CompiledSchema,
    value: Any,
    settings: Optional[ValidatorSettings] = None,
) -> ValidationResult:
    """
    Validate a value without raising.

    Args:
        schema: Compiled schema
        value: Input value; the schema root expects an object (dict)
        settings: Optional ValidatorSettings (unknown key policy)

    Returns:
        ValidationResult; `value` is None whenever errors were found
    """
    policy = (settings or DEFAULT_SETTINGS).unknown_keys
    errors, normalized = validate_value("", value, schema.root, policy)
    if errors:
        logger.debug(f"Validation failed with {len(errors)} error(s)")
        return ValidationResult(valid=False, errors=errors)
    return ValidationResult(valid=True, value=normalized)


def validate(
    schema: CompiledSchema,
    value: Any,
    settings: Optional[ValidatorSettings] = None,
) -> Any:
    """
    Validate a value against a compiled schema.

    Returns the normalized value with defaults applied.
    Raises ValidationError if validation fails with all errors aggregated.

    Example:
        >>> schema = compile('(role:string enum("admin","user"))')
        >>> validate(schema, {"role": "root"})
        Traceback (most recent call last):
        ...
        ValidationError: Validation failed: 1 error(s)
    """
    return check(schema, value, settings=settings).raise_for_errors()


# ==============================================================================
# Type dispatch
# ==============================================================================


def validate_value(
    path: str,
    value: Any,
    type_expr: TypeExpr,
    policy: UnknownKeyPolicy = UnknownKeyPolicy.IGNORE,
) -> Result:
    """
    Match one present value against a type expression.

    Returns tuple of (errors, normalized_value).
    """
    if isinstance(type_expr, UnionType):
        return _validate_union(path, value, type_expr, policy)

    if not _shape_matches(value, type_expr):
        return [_type_mismatch(path, value, type_expr)], None

    errors = _check_constraints(path, value, type_expr.constraints)

    if isinstance(type_expr, ObjectType):
        nested_errors, normalized = _validate_fields(path, value, type_expr, policy)
        errors.extend(nested_errors)
        return errors, normalized

    if isinstance(type_expr, ArrayType):
        nested_errors, normalized = _validate_items(path, value, type_expr.element, policy)
        errors.extend(nested_errors)
        return errors, normalized

    if type_expr.base == v.OBJECT:
        return errors, dict(value)
    if type_expr.base == v.ARRAY:
        return errors, list(value)
    return errors, value


def _shape_matches(value: Any, type_expr: TypeExpr) -> bool:
    if isinstance(type_expr, ExtendedType):
        return type_expr.resolved.matches(value)
    return v.kind_of(value) == type_expr.base


def _type_mismatch(path: str, value: Any, type_expr: TypeExpr) -> ValidationErrorDetail:
    expected = type_expr.describe()
    found = v.kind_of(value)
    if isinstance(type_expr, ExtendedType) and found == type_expr.base:
        # Right primitive tag, but an extended format rejected it
        message = f"{_subject(path)} must be a valid {expected}, got {v.describe(value)}"
    else:
        message = f"{_subject(path)} must be {expected}, got {found}"
    return ValidationErrorDetail(
        path=path,
        kind=ErrorKind.TYPE_MISMATCH,
        message=message,
        value=value if v.is_scalar(value) else None,
        expected=expected,
        found=found,
    )


def _subject(path: str) -> str:
    return f"Field '{path}'" if path else "Value"


# ==============================================================================
# Unions
# ==============================================================================


def _validate_union(
    path: str,
    value: Any,
    union: UnionType,
    policy: UnknownKeyPolicy,
) -> Result:
    """
    Try alternatives strictly left to right.

    An alternative matches when its shape fits the runtime tag and all of
    its own constraints pass. Once chosen, nested errors inside it are
    reported as-is; there is no backtracking into later alternatives.
    """
    for index, alternative in enumerate(union.alternatives):
        if not _shape_matches(value, alternative):
            continue
        if _check_constraints(path, value, alternative.constraints):
            continue
        logger.debug(
            f"Union at '{path}' resolved to alternative {index} ({alternative.describe()})"
        )
        return validate_value(path, value, alternative, policy)

    tried = [alt.describe() for alt in union.alternatives]
    return [
        ValidationErrorDetail(
            path=path,
            kind=ErrorKind.UNION_MISMATCH,
            message=f"{_subject(path)} matches none of: {', '.join(tried)}",
            value=value if v.is_scalar(value) else None,
            expected=tried,
            found=v.kind_of(value),
        )
    ], None


# ==============================================================================
# Constraints
# ==============================================================================


def _check_constraints(
    path: str,
    value: Any,
    constraints: Tuple[Constraint, ...],
) -> List[ValidationErrorDetail]:
    """Apply every constraint in source order; collect all failures."""
    errors: List[ValidationErrorDetail] = []

    for constraint in constraints:
        if isinstance(constraint, LengthRange):
            size = len(value)
            if not constraint.accepts(size):
                unit = "item(s)" if v.kind_of(value) == v.ARRAY else "character(s)"
                errors.append(
                    ValidationErrorDetail(
                        path=path,
                        kind=ErrorKind.LENGTH_OUT_OF_RANGE,
                        message=(
                            f"{_subject(path)} must have length in "
                            f"{constraint.to_source()}, got {size} {unit}"
                        ),
                        value=value if v.is_scalar(value) else None,
                        constraint=constraint.to_dict(),
                    )
                )

        elif isinstance(constraint, NumericRange):
            if not constraint.accepts(value):
                errors.append(
                    ValidationErrorDetail(
                        path=path,
                        kind=ErrorKind.RANGE_OUT_OF_RANGE,
                        message=(
                            f"{_subject(path)} must be in {constraint.to_source()}, "
                            f"got {v.describe(value)}"
                        ),
                        value=value,
                        constraint=constraint.to_dict(),
                    )
                )

        elif isinstance(constraint, Regex):
            if not constraint.accepts(value):
                errors.append(
                    ValidationErrorDetail(
                        path=path,
                        kind=ErrorKind.REGEX_MISMATCH,
                        message=f"{_subject(path)} must match pattern: {constraint.pattern}",
                        value=value,
                        constraint=constraint.pattern,
                    )
                )

        elif isinstance(constraint, EnumSet):
            if not constraint.accepts(value):
                errors.append(
                    ValidationErrorDetail(
                        path=path,
                        kind=ErrorKind.ENUM_MISMATCH,
                        message=(
                            f"{_subject(path)} must be one of: {list(constraint.values)}, "
                            f"got {v.describe(value)}"
                        ),
                        value=value,
                        constraint=list(constraint.values),
                    )
                )

    return errors


# ==============================================================================
# Objects and arrays
# ==============================================================================


def _validate_fields(
    path: str,
    value: Dict[str, Any],
    object_type: ObjectType,
    policy: UnknownKeyPolicy,
) -> Result:
    """
    Validate declared fields; keys the schema does not declare follow policy.

    Output keeps the input key order; defaulted fields are appended in
    declaration order.
    """
    errors: List[ValidationErrorDetail] = []
    normalized: Dict[str, Any] = {}
    defaults: Dict[str, Any] = {}

    for spec in object_type.fields:
        field_path = f"{path}.{spec.name}" if path else spec.name

        if spec.name in value:
            field_errors, field_value = validate_value(
                field_path, value[spec.name], spec.type, policy
            )
            errors.extend(field_errors)
            normalized[spec.name] = field_value
        elif spec.has_default:
            defaults[spec.name] = spec.default
        elif not spec.optional:
            errors.append(
                ValidationErrorDetail(
                    path=field_path,
                    kind=ErrorKind.MISSING_FIELD,
                    message=f"Field '{field_path}' is required",
                )
            )

    declared = object_type.field_names
    unknown = [key for key in value if key not in declared]
    if unknown and policy == UnknownKeyPolicy.REJECT:
        errors.extend(_unknown_field_errors(path, unknown, declared))

    if errors:
        return errors, None

    output: Dict[str, Any] = {}
    for key in value:
        if key in normalized:
            output[key] = normalized[key]
        elif key not in declared and policy != UnknownKeyPolicy.STRIP:
            output[key] = value[key]
    output.update(defaults)
    return errors, output


def _unknown_field_errors(
    path: str,
    unknown: List[Any],
    declared: Tuple[str, ...],
) -> List[ValidationErrorDetail]:
    errors: List[ValidationErrorDetail] = []
    for key in unknown:
        key_path = f"{path}.{key}" if path else str(key)
        suggestions = get_close_matches(str(key), list(declared), n=3)
        message = f"Unknown field '{key_path}'"
        if suggestions:
            message += f". Did you mean: {suggestions}?"
        errors.append(
            ValidationErrorDetail(
                path=key_path,
                kind=ErrorKind.UNKNOWN_FIELD,
                message=message,
                expected=suggestions or None,
            )
        )
    return errors


def _validate_items(
    path: str,
    value: List[Any],
    element: TypeExpr,
    policy: UnknownKeyPolicy,
) -> Result:
    """Validate list items against the element type."""
    errors: List[ValidationErrorDetail] = []
    normalized: List[Any] = []

    for idx, item in enumerate(value):
        item_errors, item_value = validate_value(f"{path}[{idx}]", item, element, policy)
        errors.extend(item_errors)
        normalized.append(item_value)

    if errors:
        return errors, None
    return errors, normalized
