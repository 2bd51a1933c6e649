"""
Tests for error structures and the unknown-key policies.
"""

import pytest

from schema_dsl import (
    ErrorKind,
    TypeRegistry,
    UnknownKeyPolicy,
    ValidationError,
    ValidationErrorDetail,
    ValidatorSettings,
    check,
    compile_schema,
    validate,
)


def schema_of(source):
    return compile_schema(source, registry=TypeRegistry())


class TestValidationErrorDetail:
    """Tests for ValidationErrorDetail structure."""

    def test_error_detail_to_dict(self):
        error = ValidationErrorDetail(
            path="query",
            kind=ErrorKind.MISSING_FIELD,
            message="Field 'query' is required",
        )
        assert error.to_dict() == {
            "path": "query",
            "kind": "missing_field",
            "message": "Field 'query' is required",
        }

    def test_error_detail_with_value_and_constraint(self):
        error = ValidationErrorDetail(
            path="count",
            kind=ErrorKind.RANGE_OUT_OF_RANGE,
            message="Field 'count' must be in [0,100], got 150",
            value=150,
            constraint={"kind": "range", "min": 0, "max": 100},
        )
        result = error.to_dict()
        assert result["value"] == 150
        assert result["constraint"]["max"] == 100
        assert "expected" not in result

    def test_falsy_values_kept(self):
        error = ValidationErrorDetail(
            path="flag", kind=ErrorKind.ENUM_MISMATCH, message="m", value=False
        )
        assert error.to_dict()["value"] is False

    def test_error_detail_repr(self):
        error = ValidationErrorDetail(
            path="query", kind=ErrorKind.MISSING_FIELD, message="Field 'query' is required"
        )
        assert "query" in repr(error)
        assert "missing_field" in repr(error)

    def test_equality(self):
        left = ValidationErrorDetail(path="a", kind=ErrorKind.MISSING_FIELD, message="m")
        right = ValidationErrorDetail(path="a", kind=ErrorKind.MISSING_FIELD, message="m")
        assert left == right


class TestValidationError:
    """Tests for the ValidationError exception."""

    def test_validation_error_to_dict(self):
        schema = schema_of("(query:string, count:int[0,100])")
        with pytest.raises(ValidationError) as exc_info:
            validate(schema, {"count": 150})
        result = exc_info.value.to_dict()
        assert result["success"] is False
        assert [e["path"] for e in result["errors"]] == ["query", "count"]

    def test_message_counts_errors(self):
        schema = schema_of("(a:int, b:int)")
        with pytest.raises(ValidationError) as exc_info:
            validate(schema, {})
        assert str(exc_info.value) == "Validation failed: 2 error(s)"
        assert repr(exc_info.value) == "ValidationError(2 errors)"

    def test_error_order_is_depth_first(self):
        schema = schema_of(
            "(a:int, nested:object(x:int, y:array<int>), b:int)"
        )
        result = check(schema, {"nested": {"y": [1, "2"]}, "b": "3"})
        assert [e.path for e in result.errors] == ["a", "nested.x", "nested.y[1]", "b"]

    def test_check_never_raises(self):
        schema = schema_of("(a:int)")
        for value in (None, 1, "x", [], {"a": object()}):
            assert check(schema, value).valid is False


class TestUnknownKeys:
    """Tests for the unknown key policies."""

    def test_ignored_by_default(self):
        schema = schema_of("(name:string)")
        assert validate(schema, {"name": "Ada", "extra": 1}) == {"name": "Ada", "extra": 1}

    def test_strip(self):
        schema = schema_of("(name:string, meta:object(k:int))")
        settings = ValidatorSettings(unknown_keys=UnknownKeyPolicy.STRIP)
        value = {"name": "Ada", "extra": 1, "meta": {"k": 1, "junk": 2}}
        assert validate(schema, value, settings=settings) == {"name": "Ada", "meta": {"k": 1}}

    def test_reject(self):
        schema = schema_of("(name:string, age?:int)")
        settings = ValidatorSettings(unknown_keys="reject")
        result = check(schema, {"name": "Ada", "agee": 3, "zzz": 1}, settings=settings)
        assert [(e.path, e.kind) for e in result.errors] == [
            ("agee", ErrorKind.UNKNOWN_FIELD),
            ("zzz", ErrorKind.UNKNOWN_FIELD),
        ]
        assert result.errors[0].expected == ["age"]
        assert "Did you mean" in result.errors[0].message
        assert result.errors[1].expected is None

    def test_reject_nested_path(self):
        schema = schema_of("(p:object(a:int))")
        settings = ValidatorSettings(unknown_keys=UnknownKeyPolicy.REJECT)
        result = check(schema, {"p": {"a": 1, "b": 2}}, settings=settings)
        assert result.errors[0].path == "p.b"

    def test_bare_object_members_are_not_unknown(self):
        schema = schema_of("(meta:object)")
        settings = ValidatorSettings(unknown_keys=UnknownKeyPolicy.REJECT)
        assert check(schema, {"meta": {"x": 1}}, settings=settings).valid


class TestValidatorSettings:
    """Tests for the pydantic settings model."""

    def test_defaults(self):
        settings = ValidatorSettings()
        assert settings.max_depth == 64
        assert settings.unknown_keys == UnknownKeyPolicy.IGNORE

    def test_invalid_depth(self):
        with pytest.raises(Exception):
            ValidatorSettings(max_depth=0)

    def test_depth_is_capped(self):
        assert ValidatorSettings(max_depth=200).max_depth == 200
        with pytest.raises(Exception):
            ValidatorSettings(max_depth=201)

    def test_invalid_policy(self):
        with pytest.raises(Exception):
            ValidatorSettings(unknown_keys="sometimes")

    def test_frozen(self):
        settings = ValidatorSettings()
        with pytest.raises(Exception):
            settings.max_depth = 5
