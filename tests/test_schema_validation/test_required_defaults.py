"""
Tests for field presence: required fields, optional fields and defaults.
"""

import copy

import pytest

from schema_dsl import (
    ErrorKind,
    TypeRegistry,
    ValidationError,
    ValidationResult,
    check,
    compile_schema,
    validate,
)


def schema_of(source):
    return compile_schema(source, registry=TypeRegistry())


class TestRequiredFields:
    """Tests for required field presence."""

    def test_required_field_present(self):
        schema = schema_of("(name:string)")
        assert validate(schema, {"name": "Ada"}) == {"name": "Ada"}

    def test_required_field_missing(self):
        schema = schema_of("(name:string)")
        with pytest.raises(ValidationError) as exc_info:
            validate(schema, {})
        errors = exc_info.value.errors
        assert len(errors) == 1
        assert errors[0].path == "name"
        assert errors[0].kind == ErrorKind.MISSING_FIELD
        assert errors[0].message == "Field 'name' is required"

    def test_all_missing_fields_reported(self):
        schema = schema_of("(a:int, b:string, c?:bool)")
        with pytest.raises(ValidationError) as exc_info:
            validate(schema, {})
        assert [e.path for e in exc_info.value.errors] == ["a", "b"]

    def test_missing_field_does_not_stop_siblings(self):
        schema = schema_of("(a:int, b:int[0,5])")
        result = check(schema, {"b": 9})
        assert [(e.path, e.kind) for e in result.errors] == [
            ("a", ErrorKind.MISSING_FIELD),
            ("b", ErrorKind.RANGE_OUT_OF_RANGE),
        ]


class TestOptionalFields:
    """Tests for optional fields without defaults."""

    def test_absent_optional_field_skipped(self):
        schema = schema_of("(nick?:string)")
        assert validate(schema, {}) == {}

    def test_present_optional_field_validated(self):
        schema = schema_of("(nick?:string[1,3])")
        result = check(schema, {"nick": "toolong"})
        assert result.errors[0].kind == ErrorKind.LENGTH_OUT_OF_RANGE

    def test_null_is_a_present_value(self):
        schema = schema_of("(nick?:string)")
        result = check(schema, {"nick": None})
        assert not result.valid
        assert result.errors[0].kind == ErrorKind.TYPE_MISMATCH
        assert result.errors[0].found == "null"


class TestDefaults:
    """Tests for default substitution."""

    def test_default_applied(self):
        schema = schema_of("(age:int[0,150]=30)")
        assert validate(schema, {}) == {"age": 30}

    def test_optional_field_with_default(self):
        schema = schema_of("(age?:int=30)")
        assert validate(schema, {}) == {"age": 30}

    def test_present_value_wins_over_default(self):
        schema = schema_of("(age:int=30)")
        assert validate(schema, {"age": 5}) == {"age": 5}

    def test_null_does_not_trigger_default(self):
        schema = schema_of("(age?:int=30)")
        result = check(schema, {"age": None})
        assert result.errors[0].kind == ErrorKind.TYPE_MISMATCH

    def test_float_default_from_int_literal(self):
        schema = schema_of("(ratio:float=1)")
        result = validate(schema, {})
        assert result == {"ratio": 1.0}
        assert isinstance(result["ratio"], float)

    @pytest.mark.parametrize(
        "source,expected",
        [
            ('(s:string="hi")', "hi"),
            ("(s:string=hi)", "hi"),
            ("(b:bool=true)", True),
            ("(f:float=-2.5e1)", -25.0),
            ("(e:email=\"ops@example.com\")", "ops@example.com"),
        ],
    )
    def test_default_literals(self, source, expected):
        schema = schema_of(source)
        (name,) = schema.root.field_names
        assert validate(schema, {})[name] == expected

    def test_nested_defaults(self):
        schema = schema_of("(settings:object(theme:string=dark, size?:int=12))")
        assert validate(schema, {"settings": {}}) == {
            "settings": {"theme": "dark", "size": 12}
        }

    def test_defaults_do_not_create_missing_parents(self):
        schema = schema_of("(settings?:object(theme:string=dark))")
        assert validate(schema, {}) == {}


class TestOutputShape:
    """Tests for the normalized output value."""

    def test_output_order(self):
        schema = schema_of("(a:int=1, b:int, c:int=3)")
        result = validate(schema, {"b": 2, "z": 9})
        assert list(result) == ["b", "z", "a", "c"]

    def test_input_not_mutated(self):
        schema = schema_of("(a:int=1, nested:object(x:int=2), items:array<object(y:int=3)>)")
        value = {"nested": {}, "items": [{}, {"y": 4}]}
        before = copy.deepcopy(value)
        result = validate(schema, value)
        assert value == before
        assert result == {"nested": {"x": 2}, "items": [{"y": 3}, {"y": 4}], "a": 1}
        assert result["nested"] is not value["nested"]

    def test_check_result(self):
        schema = schema_of("(name:string)")
        result = check(schema, {})
        assert isinstance(result, ValidationResult)
        assert result.valid is False
        assert result.value is None
        assert result.to_dict()["errors"][0]["kind"] == "missing_field"

    def test_check_result_valid(self):
        schema = schema_of("(name:string)")
        result = check(schema, {"name": "Ada"})
        assert result.valid
        assert result.to_dict() == {"valid": True, "errors": [], "value": {"name": "Ada"}}
        assert result.raise_for_errors() == {"name": "Ada"}

    def test_method_shortcuts(self):
        schema = schema_of("(age:int=30)")
        assert schema.validate({}) == {"age": 30}
        assert schema.check({"age": "x"}).valid is False
