"""
Compiler and validator settings.

Pydantic models so that settings coming from the CLI or a config mapping
are checked before use.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_DEPTH = 64

# Each nesting level costs a few interpreter frames in the compiler and engine
MAX_DEPTH_LIMIT = 200


class UnknownKeyPolicy(str, Enum):
    """What to do with object keys the schema does not declare."""

    IGNORE = "ignore"  # Keep them in the output, no error (default)
    STRIP = "strip"  # Drop them from the output, no error
    REJECT = "reject"  # Report one unknown_field error per key


class ValidatorSettings(BaseModel):
    """
    Settings shared by compile() and validate().

    Attributes:
        max_depth: Maximum object/array nesting accepted in schema source.
            Compilation and validation recurse along the schema tree, so
            the upper limit stays well inside the interpreter's recursion
            limit.
        unknown_keys: Policy for undeclared object keys

    Example:
        >>> settings = ValidatorSettings(unknown_keys="reject")
        >>> schema.validate({"name": "x", "extra": 1}, settings=settings)
    """

    model_config = ConfigDict(frozen=True)

    max_depth: int = Field(
        DEFAULT_MAX_DEPTH, ge=1, le=MAX_DEPTH_LIMIT, description="Maximum schema nesting depth"
    )
    unknown_keys: UnknownKeyPolicy = Field(
        UnknownKeyPolicy.IGNORE, description="Policy for undeclared object keys"
    )


DEFAULT_SETTINGS = ValidatorSettings()
