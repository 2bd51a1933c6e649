"""
Type and constraint registry.

Holds the fixed table of primitive kinds, the extended kinds (named
string/number formats resolved through a matcher predicate) and the
constraint kinds legal per base kind.

A registry is filled once, before any schema that uses it is compiled.
Compiling against a registry freezes it; later registrations raise
RegistryFrozenError, so it can never change under running validations.

Example:
    >>> from schema_dsl import register_type, compile
    >>> register_type("isbn", lambda s: len(s.replace("-", "")) in (10, 13))
    >>> schema = compile('(code:isbn)')
"""

import ipaddress
import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, Iterator, Optional
from urllib.parse import urlparse

from . import values as v
from .errors import RegistryError, RegistryFrozenError

logger = logging.getLogger(__name__)

Matcher = Callable[[Any], bool]

PRIMITIVE_KINDS: FrozenSet[str] = frozenset(
    {v.STRING, v.INT, v.FLOAT, v.BOOL, v.OBJECT, v.ARRAY}
)

# Constraint kind -> base kinds it may be attached to
CONSTRAINT_LEGALITY: Dict[str, FrozenSet[str]] = {
    "length": frozenset({v.STRING, v.ARRAY}),
    "range": frozenset({v.INT, v.FLOAT}),
    "regex": frozenset({v.STRING}),
    "enum": frozenset({v.STRING, v.INT, v.FLOAT, v.BOOL}),
}

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class ExtendedKind:
    """A named format over a primitive base kind."""

    name: str
    base: str
    matcher: Matcher = field(compare=False, repr=False)
    description: str = ""

    def matches(self, value: Any) -> bool:
        if v.kind_of(value) != self.base:
            return False
        try:
            return bool(self.matcher(value))
        except Exception as e:
            # A matcher that cannot read the value rejects it
            logger.debug(f"Matcher for '{self.name}' raised on {value!r}: {e}")
            return False


def constraint_is_legal(constraint_kind: str, base_kind: str) -> bool:
    return base_kind in CONSTRAINT_LEGALITY.get(constraint_kind, frozenset())


# ==============================================================================
# Built-in matchers
# ==============================================================================


def _pattern(expr: str, flags: int = 0) -> Matcher:
    compiled = re.compile(expr, flags)
    return lambda s: compiled.match(s) is not None


def _is_uri(s: str) -> bool:
    if not s or any(ch.isspace() for ch in s):
        return False
    try:
        parsed = urlparse(s)
    except ValueError:
        return False
    if not re.match(r"^[A-Za-z][A-Za-z0-9+.-]*$", parsed.scheme or ""):
        return False
    return bool(parsed.netloc or parsed.path)


def _is_ip(s: str) -> bool:
    try:
        ipaddress.ip_address(s)
    except ValueError:
        return False
    return True


def _strptime_matcher(shape: str, fmt: str) -> Matcher:
    shape_re = re.compile(shape)

    def _match(s: str) -> bool:
        found = shape_re.match(s)
        if found is None:
            return False
        try:
            datetime.strptime(found.group(1), fmt)
        except ValueError:
            return False
        return True

    return _match


BUILTIN_KINDS = (
    ExtendedKind(
        "email", v.STRING, _pattern(r"^[^@\s]+@[^@\s]+\.[^@\s]+$"), "e-mail address"
    ),
    ExtendedKind("uri", v.STRING, _is_uri, "absolute URI with a scheme"),
    ExtendedKind(
        "uuid",
        v.STRING,
        _pattern(
            r"^[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?"
            r"[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}$"
        ),
        "UUID, hyphens optional",
    ),
    ExtendedKind("ip", v.STRING, _is_ip, "IPv4 or IPv6 address"),
    ExtendedKind(
        "date",
        v.STRING,
        _strptime_matcher(r"^(\d{4}-\d{2}-\d{2})$", "%Y-%m-%d"),
        "calendar date, YYYY-MM-DD",
    ),
    ExtendedKind(
        "datetime",
        v.STRING,
        _strptime_matcher(
            r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(\.\d+)?(Z|[+-]\d{2}:\d{2})?$",
            "%Y-%m-%dT%H:%M:%S",
        ),
        "ISO 8601 date and time",
    ),
    ExtendedKind(
        "time",
        v.STRING,
        _strptime_matcher(r"^(\d{2}:\d{2}:\d{2})$", "%H:%M:%S"),
        "time of day, HH:MM:SS",
    ),
    ExtendedKind("timestamp", v.INT, lambda n: n >= 0, "non-negative epoch seconds"),
    ExtendedKind(
        "mac", v.STRING, _pattern(r"^([0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}$"), "MAC address"
    ),
    ExtendedKind(
        "color", v.STRING, _pattern(r"^#([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$"), "hex color"
    ),
    ExtendedKind(
        "hostname",
        v.STRING,
        _pattern(
            r"^(?=.{1,253}$)(?:[a-zA-Z0-9_](?:[a-zA-Z0-9_-]{0,61}[a-zA-Z0-9])?\.)+"
            r"[a-zA-Z]{2,63}$"
        ),
        "DNS host name",
    ),
    ExtendedKind("slug", v.STRING, _pattern(r"^[a-z0-9]+(?:-[a-z0-9]+)*$"), "URL slug"),
    ExtendedKind("hex", v.STRING, _pattern(r"^[0-9a-fA-F]+$"), "hexadecimal digits"),
    ExtendedKind("base64", v.STRING, _pattern(r"^[A-Za-z0-9+/]+={0,2}$"), "base64 text"),
    ExtendedKind("password", v.STRING, lambda s: True, "opaque secret string"),
    ExtendedKind("token", v.STRING, lambda s: True, "opaque token string"),
)


# ==============================================================================
# Registry
# ==============================================================================


class TypeRegistry:
    """
    Name -> ExtendedKind table.

    Registration is a one-time initialization phase: once frozen (which
    compiling a schema against the registry does) the table is read-only.
    """

    def __init__(self, include_builtins: bool = True):
        self._kinds: Dict[str, ExtendedKind] = {}
        self._frozen = False
        self._lock = threading.Lock()
        if include_builtins:
            for kind in BUILTIN_KINDS:
                self._kinds[kind.name] = kind

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(
        self,
        name: str,
        matcher: Matcher,
        base: str = v.STRING,
        description: str = "",
    ) -> ExtendedKind:
        """
        Register a custom extended kind.

        Args:
            name: Type name used in schema source (identifier syntax)
            matcher: Predicate called with a value of the base kind
            base: Primitive kind the format refines (string, int, float, bool)
            description: Free text, used for documentation and export

        Returns:
            The registered ExtendedKind

        Raises:
            RegistryFrozenError: If a schema was already compiled against
                this registry
            RegistryError: If the name or base kind is invalid or taken
        """
        if not _NAME_RE.match(name or ""):
            raise RegistryError(f"Invalid type name {name!r}")
        if name in PRIMITIVE_KINDS or name in ("enum", "regex", "true", "false", "null"):
            raise RegistryError(f"Type name {name!r} is reserved")
        if base not in v.SCALAR_KINDS:
            raise RegistryError(
                f"Invalid base kind {base!r} for {name!r}; must be one of "
                f"{', '.join(sorted(v.SCALAR_KINDS))}"
            )
        if not callable(matcher):
            raise RegistryError(f"Matcher for {name!r} is not callable")

        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(
                    f"Cannot register {name!r}: registry is frozen after first compilation"
                )
            if name in self._kinds:
                raise RegistryError(f"Type {name!r} is already registered")
            kind = ExtendedKind(name, base, matcher, description)
            self._kinds[name] = kind

        logger.debug(f"Registered extended type '{name}' (base: {base})")
        return kind

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    def lookup(self, name: str) -> Optional[ExtendedKind]:
        return self._kinds.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._kinds

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._kinds))

    def __len__(self) -> int:
        return len(self._kinds)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"TypeRegistry({len(self._kinds)} kinds, {state})"


default_registry = TypeRegistry()


def register_type(
    name: str,
    matcher: Matcher,
    base: str = v.STRING,
    description: str = "",
) -> ExtendedKind:
    """Register a custom extended kind on the default registry."""
    return default_registry.register(name, matcher, base=base, description=description)
