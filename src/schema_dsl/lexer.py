"""
Lexer for schema source text.

Turns source like::

    (username:string[3,20] regex("^[a-z_]+$"), age?:int[0,150]=30)

into a lazy stream of Token objects carrying their UTF-8 byte offset.
Scanning is done by lark's basic lexer over the schema grammar terminals
(see grammar.py); this module maps lark tokens to TokenKind and decodes
literal values. Iterating a Lexer twice restarts tokenization.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List

from lark import Token as LarkToken
from lark.exceptions import UnexpectedCharacters

from .errors import LexError
from .grammar import get_parser


class TokenKind(str, Enum):
    IDENT = "identifier"
    KEYWORD = "keyword"
    INT = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOL = "boolean"
    NULL = "null"
    COLON = "':'"
    QUESTION = "'?'"
    EQUAL = "'='"
    LPAREN = "'('"
    RPAREN = "')'"
    LBRACKET = "'['"
    RBRACKET = "']'"
    LT = "'<'"
    GT = "'>'"
    COMMA = "','"
    PIPE = "'|'"
    EOF = "end of input"


KEYWORDS = frozenset(
    {"enum", "regex", "object", "array", "string", "int", "float", "bool"}
)

# Grammar terminal -> token kind, for everything but keywords and numbers
TERMINAL_KINDS = {
    "WORD": TokenKind.IDENT,
    "STRING": TokenKind.STRING,
    "TRUE": TokenKind.BOOL,
    "FALSE": TokenKind.BOOL,
    "NULL": TokenKind.NULL,
    "_COLON": TokenKind.COLON,
    "QMARK": TokenKind.QUESTION,
    "EQUAL": TokenKind.EQUAL,
    "LPAR": TokenKind.LPAREN,
    "RPAR": TokenKind.RPAREN,
    "LSQB": TokenKind.LBRACKET,
    "RSQB": TokenKind.RBRACKET,
    "_LESSTHAN": TokenKind.LT,
    "_MORETHAN": TokenKind.GT,
    "_COMMA": TokenKind.COMMA,
    "_VBAR": TokenKind.PIPE,
}

KIND_TERMINALS = {kind: name for name, kind in TERMINAL_KINDS.items() if kind != TokenKind.BOOL}

ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}

_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)

# Tokens that start with a word character
_WORD_TERMINALS = frozenset({"WORD", "TRUE", "FALSE", "NULL"})


@dataclass(frozen=True)
class Token:
    """A lexical token. `value` holds the decoded literal for literal tokens."""

    kind: TokenKind
    text: str
    offset: int
    value: Any = None

    @property
    def terminal(self) -> str:
        """Name of the grammar terminal this token is fed to the parser as."""
        if self.kind == TokenKind.KEYWORD:
            return f"{self.text.upper()}_KW"
        if self.kind in (TokenKind.INT, TokenKind.FLOAT):
            return "NUMBER"
        if self.kind == TokenKind.BOOL:
            return self.text.upper()
        if self.kind == TokenKind.EOF:
            return "$END"
        return KIND_TERMINALS[self.kind]

    def describe(self) -> str:
        if self.kind == TokenKind.EOF:
            return "end of input"
        if self.kind in (TokenKind.IDENT, TokenKind.KEYWORD):
            return f"{self.kind.value} '{self.text}'"
        if self.kind == TokenKind.STRING:
            return f"string {self.text}"
        if self.kind in (TokenKind.INT, TokenKind.FLOAT, TokenKind.BOOL, TokenKind.NULL):
            return f"{self.kind.value} {self.text}"
        return self.kind.value


def decode_string(text: str) -> str:
    """Strip the quotes and resolve escapes; unknown escapes keep their backslash."""
    return _ESCAPE_RE.sub(lambda m: ESCAPES.get(m.group(1), m.group(0)), text[1:-1])


def literal_value(terminal: str, text: str) -> Any:
    """Decode a literal from its grammar terminal and source text."""
    if terminal == "STRING":
        return decode_string(text)
    if terminal == "NUMBER":
        if any(c in text for c in ".eE"):
            return float(text)
        return int(text)
    if terminal == "TRUE":
        return True
    if terminal == "FALSE":
        return False
    if terminal == "NULL":
        return None
    # Identifiers and keywords read as bare-word strings
    return text


def _kind_of(terminal: str, text: str) -> TokenKind:
    if terminal.endswith("_KW"):
        return TokenKind.KEYWORD
    if terminal == "NUMBER":
        return TokenKind.FLOAT if any(c in text for c in ".eE") else TokenKind.INT
    return TERMINAL_KINDS[terminal]


class _ByteOffsets:
    """Converts increasing character indices into UTF-8 byte offsets."""

    def __init__(self, source: str):
        self.source = source
        self.ascii = source.isascii()
        self.char_pos = 0
        self.byte_pos = 0

    def __call__(self, index: int) -> int:
        if self.ascii:
            return index
        if index < self.char_pos:
            return len(self.source[:index].encode("utf-8"))
        self.byte_pos += len(self.source[self.char_pos:index].encode("utf-8"))
        self.char_pos = index
        return self.byte_pos


class Lexer:
    """
    Restartable token stream over schema source.

    Example:
        >>> [t.kind.name for t in Lexer("(a:int)")]
        ['LPAREN', 'IDENT', 'COLON', 'KEYWORD', 'RPAREN', 'EOF']
    """

    def __init__(self, source: str):
        self.source = source

    def __iter__(self) -> Iterator[Token]:
        return self._scan()

    def _scan(self) -> Iterator[Token]:
        source = self.source
        to_bytes = _ByteOffsets(source)
        previous: Any = None

        try:
            for raw in get_parser().lex(source):
                if raw.type in _WORD_TERMINALS or raw.type.endswith("_KW"):
                    self._check_number_boundary(previous, raw, to_bytes)
                previous = raw
                yield self._token(raw, to_bytes(raw.start_pos))
        except UnexpectedCharacters as e:
            raise self._lex_error(e.pos_in_stream, to_bytes) from None

        yield Token(TokenKind.EOF, "", to_bytes(len(source)))

    def _check_number_boundary(self, previous: Any, raw: LarkToken, to_bytes) -> None:
        # "12abc" is neither a number nor an identifier
        if (
            previous is not None
            and previous.type == "NUMBER"
            and previous.start_pos + len(previous) == raw.start_pos
        ):
            raise LexError(
                to_bytes(raw.start_pos),
                raw[0],
                f"Invalid number literal {str(previous) + str(raw)!r}",
            )

    def _lex_error(self, index: int, to_bytes) -> LexError:
        ch = self.source[index]
        offset = to_bytes(index)
        if ch == '"':
            return LexError(offset, ch, "Unterminated string literal")
        if ch in "+-.":
            return LexError(offset, ch, f"Unexpected character {ch!r}: expected a number")
        return LexError(offset, ch)

    @staticmethod
    def _token(raw: LarkToken, offset: int) -> Token:
        text = str(raw)
        kind = _kind_of(raw.type, text)
        if kind in (TokenKind.IDENT, TokenKind.KEYWORD):
            return Token(kind, text, offset, text)
        if kind in (TokenKind.INT, TokenKind.FLOAT, TokenKind.STRING, TokenKind.BOOL, TokenKind.NULL):
            return Token(kind, text, offset, literal_value(raw.type, text))
        return Token(kind, text, offset)


def tokenize(source: str) -> List[Token]:
    """
    Tokenize schema source into a list ending with an EOF token.

    Raises:
        LexError: On an unrecognized character or unterminated string
    """
    return list(Lexer(source))
