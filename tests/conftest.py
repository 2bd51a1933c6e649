"""
Pytest configuration and shared fixtures for schema_dsl tests.
"""

import sys
from pathlib import Path

import pytest

# Ensure src is importable without an installed package
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from schema_dsl import TypeRegistry  # noqa: E402


@pytest.fixture
def registry():
    """A private registry; compiling against the default one freezes it."""
    return TypeRegistry()
