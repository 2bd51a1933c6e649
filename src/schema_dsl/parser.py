"""
Parser for schema source.

Grammar (see grammar.py for the lark rules):
    Schema      := '(' FieldList? ')'
    FieldList   := Field (',' Field)* ','?
    Field       := Name '?'? ':' TypeExpr ('=' Literal)?
    TypeExpr    := UnionTerm ('|' UnionTerm)*
    UnionTerm   := (Primitive | Extended | ObjectType | ArrayType) Constraint*
    ObjectType  := 'object' '(' FieldList? ')'
    ArrayType   := 'array' '<' TypeExpr '>'
    Constraint  := ('[' | '(') Num ',' Num (']' | ')')
                 | 'regex' '(' String ')' | 'enum' '(' Literal (',' Literal)* ')'

Tokens from the Lexer are fed one by one into lark's LALR parser, so the
first token the grammar cannot accept raises ParseError; there is no
recovery. Constraints bind to the union term right before them; a default
applies to the whole field. Semantic checks (duplicate names, legal
constraints, defaults) belong to the compiler.

Neither the LALR parser nor the tree builder recurses, so nesting is
bounded only by `max_depth`.
"""

import logging
from typing import Any, Iterable, List, Set, Tuple

from lark import Token as LarkToken
from lark import Tree
from lark.exceptions import UnexpectedToken
from lark.visitors import Transformer_NonRecursive

from .errors import ParseError
from .grammar import get_parser
from .lexer import Token, TokenKind, literal_value, tokenize
from .schema import (
    ArrayType,
    EnumSet,
    ExtendedType,
    FieldSpec,
    LengthRange,
    NumericRange,
    ObjectType,
    PrimitiveType,
    Regex,
    TypeExpr,
    UnionType,
)
from .settings import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

CONSTRAINT_TYPES = (LengthRange, NumericRange, Regex, EnumSet)

_TYPE_KEYWORDS = frozenset(
    {"STRING_KW", "INT_KW", "FLOAT_KW", "BOOL_KW", "OBJECT_KW", "ARRAY_KW"}
)
_KEYWORD_TERMINALS = _TYPE_KEYWORDS | {"ENUM_KW", "REGEX_KW"}

# Terminal groups reported under one label in ParseError.expected
_NAME_TERMINALS = frozenset({"WORD", "STRING", "TRUE", "FALSE", "NULL"}) | _KEYWORD_TERMINALS
_TYPE_TERMINALS = _TYPE_KEYWORDS | {"WORD"}

_LABELS = {
    "$END": TokenKind.EOF.value,
    "WORD": TokenKind.IDENT.value,
    "NUMBER": "number",
    "STRING": TokenKind.STRING.value,
    "TRUE": TokenKind.BOOL.value,
    "FALSE": TokenKind.BOOL.value,
    "NULL": TokenKind.NULL.value,
    "_COLON": TokenKind.COLON.value,
    "QMARK": TokenKind.QUESTION.value,
    "EQUAL": TokenKind.EQUAL.value,
    "LPAR": TokenKind.LPAREN.value,
    "RPAR": TokenKind.RPAREN.value,
    "LSQB": TokenKind.LBRACKET.value,
    "RSQB": TokenKind.RBRACKET.value,
    "_LESSTHAN": TokenKind.LT.value,
    "_MORETHAN": TokenKind.GT.value,
    "_COMMA": TokenKind.COMMA.value,
    "_VBAR": TokenKind.PIPE.value,
}


def describe_expected(terminals: Iterable[str]) -> List[str]:
    """Turn the terminals an LALR state accepts into readable labels."""
    remaining: Set[str] = set(terminals)
    labels: Set[str] = set()

    if _NAME_TERMINALS <= remaining:
        if "NUMBER" in remaining and "RPAR" not in remaining:
            labels.add("literal")
            remaining -= _NAME_TERMINALS | {"NUMBER"}
        else:
            labels.add("field name")
            remaining -= _NAME_TERMINALS
    if _TYPE_TERMINALS <= remaining:
        labels.add("type name")
        remaining -= _TYPE_TERMINALS

    for terminal in remaining:
        if terminal in _KEYWORD_TERMINALS:
            labels.add(f"keyword '{terminal[:-3].lower()}'")
        else:
            labels.add(_LABELS.get(terminal, terminal))
    return sorted(labels)


class SchemaBuilder(Transformer_NonRecursive):
    """Builds schema tree nodes from the lark parse tree, bottom-up."""

    def schema(self, children: List[Any]) -> ObjectType:
        return ObjectType(fields=_field_list(children))

    def field_list(self, children: List[Any]) -> Tuple[FieldSpec, ...]:
        return tuple(children)

    def field(self, children: List[Any]) -> FieldSpec:
        name_token, rest = children[0], children[1:]
        optional = _is_terminal(rest[0], "QMARK")
        if optional:
            rest = rest[1:]
        type_expr = rest[0]
        has_default = len(rest) > 1
        if name_token.type == "STRING":
            name = literal_value("STRING", str(name_token))
        else:
            name = str(name_token)
        return FieldSpec(
            name=name,
            type=type_expr,
            optional=optional,
            default=_literal(rest[2]) if has_default else None,
            has_default=has_default,
        )

    def type_expr(self, children: List[Any]) -> TypeExpr:
        if len(children) == 1:
            return children[0]
        return UnionType(alternatives=tuple(children))

    def object_type(self, children: List[Any]) -> ObjectType:
        return ObjectType(fields=_field_list(children), constraints=_constraints(children))

    def array_type(self, children: List[Any]) -> ArrayType:
        return ArrayType(element=children[1], constraints=_constraints(children))

    def primitive(self, children: List[Any]) -> PrimitiveType:
        return PrimitiveType(str(children[0]), _constraints(children))

    def extended(self, children: List[Any]) -> ExtendedType:
        return ExtendedType(str(children[0]), _constraints(children))

    def range_constraint(self, children: List[Any]) -> NumericRange:
        opener, low, high, closer = children
        # Whether this is a length or numeric range depends on the term's
        # base kind; the compiler converts NumericRange to LengthRange.
        return NumericRange(
            _literal(low),
            _literal(high),
            inclusive_min=opener.type == "LSQB",
            inclusive_max=closer.type == "RSQB",
        )

    def regex_constraint(self, children: List[Any]) -> Regex:
        return Regex(_literal(children[2]))

    def enum_constraint(self, children: List[Any]) -> EnumSet:
        return EnumSet(tuple(_literal(item) for item in children[2:-1]))


def _is_terminal(node: Any, name: str) -> bool:
    return isinstance(node, LarkToken) and node.type == name


def _literal(token: LarkToken) -> Any:
    return literal_value(token.type, str(token))


def _field_list(children: List[Any]) -> Tuple[FieldSpec, ...]:
    for child in children:
        if isinstance(child, tuple):
            return child
    return ()


def _constraints(children: List[Any]) -> Tuple[Any, ...]:
    return tuple(child for child in children if isinstance(child, CONSTRAINT_TYPES))


class Parser:
    """
    Single-pass parser over a token list.

    Example:
        >>> root = Parser(tokenize("(age:int[0,150]=30)")).parse_schema()
        >>> root.fields[0].default
        30
    """

    def __init__(self, tokens: List[Token], max_depth: int = DEFAULT_MAX_DEPTH):
        if not tokens or tokens[-1].kind != TokenKind.EOF:
            end = tokens[-1].offset + len(tokens[-1].text.encode("utf-8")) if tokens else 0
            tokens = list(tokens) + [Token(TokenKind.EOF, "", end)]
        self.tokens = tokens
        self.max_depth = max_depth

    def parse_schema(self) -> ObjectType:
        """Parse a whole schema; the root is an object field list."""
        tree = self._feed()
        self._check_depth(tree)
        return SchemaBuilder().transform(tree)

    def _feed(self) -> Tree:
        interactive = get_parser().parse_interactive("")
        result = None
        for token in self.tokens:
            raw = LarkToken(token.terminal, token.text, start_pos=token.offset)
            try:
                result = interactive.feed_token(raw)
            except UnexpectedToken as e:
                raise ParseError(
                    token.offset, describe_expected(e.expected), token.describe()
                ) from None
            if token.kind == TokenKind.EOF:
                break
        return result

    def _check_depth(self, tree: Tree) -> None:
        stack = [(tree, 1)]
        while stack:
            node, depth = stack.pop()
            if node.data in ("object_type", "array_type"):
                depth += 1
                if depth > self.max_depth:
                    keyword = node.children[0]
                    raise ParseError(
                        keyword.start_pos,
                        ["shallower nesting"],
                        f"keyword '{keyword}'",
                        f"Schema nesting exceeds the maximum depth of {self.max_depth}",
                    )
            stack.extend((child, depth) for child in node.children if isinstance(child, Tree))


def parse(source: str, max_depth: int = DEFAULT_MAX_DEPTH) -> ObjectType:
    """
    Parse schema source into an unchecked schema tree.

    Args:
        source: Schema source text
        max_depth: Maximum object/array nesting depth

    Returns:
        Root ObjectType

    Raises:
        LexError: On malformed tokens
        ParseError: On the first grammar violation
    """
    root = Parser(tokenize(source), max_depth=max_depth).parse_schema()
    logger.debug(f"Parsed schema with {len(root.fields)} top-level field(s)")
    return root
