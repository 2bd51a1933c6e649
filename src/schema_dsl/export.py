"""
JSON Schema export.

Renders a CompiledSchema as a JSON Schema (Draft 2020-12) document, so the
same contract can be handed to tools that only speak JSON Schema.

The mapping is lossy in one direction only: JSON Schema "number" also
accepts integers, and extended kinds become a "format" annotation that
most validators do not enforce.

Example:
    >>> to_json_schema(compile("(name:string[1,50], age?:int=30)"))
    {'$schema': '...', 'type': 'object', 'properties': {...}, 'required': ['name']}
"""

from typing import Any, Dict, List

import jsonschema
from jsonschema import Draft202012Validator

from . import values as v
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

DRAFT_2020_12 = "https://json-schema.org/draft/2020-12/schema"

JSON_TYPES = {
    v.STRING: "string",
    v.INT: "integer",
    v.FLOAT: "number",
    v.BOOL: "boolean",
    v.OBJECT: "object",
    v.ARRAY: "array",
}


def to_json_schema(schema: CompiledSchema) -> Dict[str, Any]:
    """Render a compiled schema as a JSON Schema document."""
    document: Dict[str, Any] = {"$schema": DRAFT_2020_12}
    document.update(_type_schema(schema.root))
    return document


def validate_json_schema(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a document against the JSON Schema Draft 2020-12 meta-schema.

    Args:
        document: JSON Schema to validate

    Returns:
        Dict with 'valid' (bool), 'errors' (list), and 'schema' when valid
    """
    errors = []

    try:
        Draft202012Validator.check_schema(document)
    except jsonschema.SchemaError as e:
        errors.append(f"Schema validation error: {e.message}")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "schema": document if len(errors) == 0 else None,
    }


def _type_schema(type_expr: TypeExpr) -> Dict[str, Any]:
    if isinstance(type_expr, UnionType):
        return {"anyOf": [_type_schema(alt) for alt in type_expr.alternatives]}

    result: Dict[str, Any] = {"type": JSON_TYPES[type_expr.base]}

    if isinstance(type_expr, ExtendedType):
        result["format"] = type_expr.kind
        if type_expr.resolved is not None and type_expr.resolved.description:
            result["description"] = type_expr.resolved.description

    elif isinstance(type_expr, ObjectType):
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for spec in type_expr.fields:
            prop = _type_schema(spec.type)
            if spec.has_default:
                prop["default"] = spec.default
            elif not spec.optional:
                required.append(spec.name)
            properties[spec.name] = prop
        result["properties"] = properties
        if required:
            result["required"] = required

    elif isinstance(type_expr, ArrayType):
        result["items"] = _type_schema(type_expr.element)

    for constraint in type_expr.constraints:
        _merge(result, _constraint_schema(constraint, type_expr.base))
    return result


def _constraint_schema(constraint: Constraint, base: str) -> Dict[str, Any]:
    if isinstance(constraint, LengthRange):
        if base == v.ARRAY:
            low_key, high_key = "minItems", "maxItems"
        else:
            low_key, high_key = "minLength", "maxLength"
        low = constraint.min if constraint.inclusive_min else constraint.min + 1
        high = constraint.max if constraint.inclusive_max else constraint.max - 1
        if high < low:
            # No length fits, e.g. string(0,0) or [3,3)
            return {"not": {}}
        return {low_key: low, high_key: high}
    if isinstance(constraint, NumericRange):
        return {
            "minimum" if constraint.inclusive_min else "exclusiveMinimum": constraint.min,
            "maximum" if constraint.inclusive_max else "exclusiveMaximum": constraint.max,
        }
    if isinstance(constraint, Regex):
        return {"pattern": constraint.pattern}
    if isinstance(constraint, EnumSet):
        return {"enum": list(constraint.values)}
    return {}


def _merge(result: Dict[str, Any], extra: Dict[str, Any]) -> None:
    # A second constraint of the same kind must hold as well
    if any(key in result for key in extra):
        result.setdefault("allOf", []).append(extra)
    else:
        result.update(extra)
