"""Lark grammar for schema source.

One LALR table drives both stages: the lexer runs lark's basic lexer over
the terminals below, and the parser feeds those tokens back into the same
table. Keywords are plain string terminals; lark re-types a WORD that
spells a keyword, so `enumerate` stays an identifier.

Terminals whose names start with `_` are dropped from the parse tree.
"""

from typing import Optional

from lark import Lark

SCHEMA_GRAMMAR = r"""
// --------------------
// Entry point: the root is an object field list
// --------------------
schema: LPAR [field_list] RPAR

field_list: field (_COMMA field)* [_COMMA]

field: name [QMARK] _COLON type_expr [EQUAL literal]

?name: WORD | STRING | TRUE | FALSE | NULL | keyword

// --------------------
// Types: constraints bind to the union term right before them
// --------------------
type_expr: union_term (_VBAR union_term)*

?union_term: object_type
           | array_type
           | primitive
           | extended

object_type: OBJECT_KW LPAR [field_list] RPAR constraint*
array_type: ARRAY_KW _LESSTHAN type_expr _MORETHAN constraint*
primitive: (STRING_KW | INT_KW | FLOAT_KW | BOOL_KW | OBJECT_KW | ARRAY_KW) constraint*
extended: WORD constraint*

// --------------------
// Constraints
// --------------------
?constraint: range_constraint
           | regex_constraint
           | enum_constraint

range_constraint: (LSQB | LPAR) NUMBER _COMMA NUMBER (RSQB | RPAR)
regex_constraint: REGEX_KW LPAR STRING RPAR
enum_constraint: ENUM_KW LPAR literal (_COMMA literal)* RPAR

// A bare word is a string literal: role:string=user
?literal: STRING | NUMBER | TRUE | FALSE | NULL | WORD | keyword

?keyword: ENUM_KW | REGEX_KW | OBJECT_KW | ARRAY_KW
        | STRING_KW | INT_KW | FLOAT_KW | BOOL_KW

// --------------------
// Tokens
// --------------------
WORD: /[^\W\d]\w*/
NUMBER: /[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?/
STRING: /"(?:[^"\\]|\\.)*"/s

ENUM_KW: "enum"
REGEX_KW: "regex"
OBJECT_KW: "object"
ARRAY_KW: "array"
STRING_KW: "string"
INT_KW: "int"
FLOAT_KW: "float"
BOOL_KW: "bool"
TRUE: "true"
FALSE: "false"
NULL: "null"

LPAR: "("
RPAR: ")"
LSQB: "["
RSQB: "]"
QMARK: "?"
EQUAL: "="
_COLON: ":"
_COMMA: ","
_VBAR: "|"
_LESSTHAN: "<"
_MORETHAN: ">"

WHITESPACE: /\s+/
%ignore WHITESPACE
"""

_PARSER: Optional[Lark] = None


def get_parser() -> Lark:
    """Build the schema grammar once and share it; Lark instances are reusable."""
    global _PARSER
    if _PARSER is None:
        _PARSER = Lark(
            SCHEMA_GRAMMAR,
            parser="lalr",
            lexer="basic",
            start="schema",
            maybe_placeholders=False,
        )
    return _PARSER
