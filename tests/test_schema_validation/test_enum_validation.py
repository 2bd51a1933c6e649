"""
Tests for enum(...) constraints.
"""

import pytest

from schema_dsl import ErrorKind, TypeRegistry, ValidationError, check, compile_schema, validate


def schema_of(source):
    return compile_schema(source, registry=TypeRegistry())


class TestEnumValidation:
    """Tests for enum membership."""

    def test_valid_choice(self):
        schema = schema_of('(format:string enum("json","text","markdown"))')
        assert validate(schema, {"format": "json"}) == {"format": "json"}

    def test_invalid_choice(self):
        schema = schema_of('(format:string enum("json","text","markdown"))')
        with pytest.raises(ValidationError) as exc_info:
            validate(schema, {"format": "xml"})
        errors = exc_info.value.errors
        assert len(errors) == 1
        assert errors[0].path == "format"
        assert errors[0].kind == ErrorKind.ENUM_MISMATCH
        assert errors[0].value == "xml"
        assert errors[0].constraint == ["json", "text", "markdown"]

    def test_bare_word_choices(self):
        schema = schema_of("(role:string enum(admin,user,guest)=guest)")
        assert validate(schema, {}) == {"role": "guest"}
        assert validate(schema, {"role": "admin"}) == {"role": "admin"}

    def test_case_sensitive(self):
        schema = schema_of('(format:string enum("JSON","TEXT"))')
        assert check(schema, {"format": "json"}).errors[0].kind == ErrorKind.ENUM_MISMATCH

    def test_int_choices(self):
        schema = schema_of("(priority:int enum(1,2,3))")
        assert check(schema, {"priority": 2}).valid
        assert check(schema, {"priority": 5}).errors[0].kind == ErrorKind.ENUM_MISMATCH

    def test_float_choices_accept_widened_ints(self):
        schema = schema_of("(x:float enum(1,2.5))")
        assert check(schema, {"x": 1.0}).valid
        assert check(schema, {"x": 2.5}).valid

    def test_bool_choices(self):
        schema = schema_of("(enabled:bool enum(true))")
        assert check(schema, {"enabled": True}).valid
        assert check(schema, {"enabled": False}).errors[0].kind == ErrorKind.ENUM_MISMATCH

    def test_number_choices_coerced_for_strings(self):
        schema = schema_of("(code:string enum(1,2))")
        assert check(schema, {"code": "1"}).valid
        assert not check(schema, {"code": "3"}).valid

    def test_message(self):
        schema = schema_of('(role:string enum("admin","user"))')
        error = check(schema, {"role": "root"}).errors[0]
        assert error.message == "Field 'role' must be one of: ['admin', 'user'], got 'root'"

    def test_enum_on_extended_kind(self):
        schema = schema_of('(host:hostname enum("a.example.com","b.example.com"))')
        assert check(schema, {"host": "a.example.com"}).valid
        assert check(schema, {"host": "c.example.com"}).errors[0].kind == ErrorKind.ENUM_MISMATCH
