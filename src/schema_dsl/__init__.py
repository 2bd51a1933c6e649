"""
Schema DSL: a compact schema language and a validation engine.

    >>> import schema_dsl
    >>> schema = schema_dsl.compile("(username:string[3,20], age?:int[0,150]=30)")
    >>> schema_dsl.validate(schema, {"username": "ada"})
    {'username': 'ada', 'age': 30}
"""

from .compiler import compile_schema
from .engine import ValidationResult, check, validate
from .errors import (
    ErrorKind,
    LexError,
    ParseError,
    RegistryError,
    RegistryFrozenError,
    SchemaError,
    SemanticError,
    SemanticErrorKind,
    Stage,
    ValidationError,
    ValidationErrorDetail,
)
from .export import to_json_schema, validate_json_schema
from .lexer import Lexer, Token, TokenKind, tokenize
from .parser import parse
from .registry import ExtendedKind, TypeRegistry, default_registry, register_type
from .schema import CompiledSchema
from .settings import UnknownKeyPolicy, ValidatorSettings

compile = compile_schema

__all__ = [
    "compile",
    "compile_schema",
    "check",
    "validate",
    "ValidationResult",
    "CompiledSchema",
    "parse",
    "tokenize",
    "Lexer",
    "Token",
    "TokenKind",
    "register_type",
    "TypeRegistry",
    "ExtendedKind",
    "default_registry",
    "ValidatorSettings",
    "UnknownKeyPolicy",
    "to_json_schema",
    "validate_json_schema",
    "Stage",
    "SchemaError",
    "LexError",
    "ParseError",
    "SemanticError",
    "SemanticErrorKind",
    "ErrorKind",
    "ValidationError",
    "ValidationErrorDetail",
    "RegistryError",
    "RegistryFrozenError",
    "__version__",
]

__version__ = "0.1.0"
