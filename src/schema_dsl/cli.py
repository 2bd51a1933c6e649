#!/usr/bin/env python3
"""
CLI for compiling schemas and validating documents against them.

Usage:
    sdl check user.sdl
    sdl validate user.sdl --input '{"username": "ada"}'
    sdl validate user.sdl --input @user.yaml --unknown-keys reject
    sdl export user.sdl
    sdl --version
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
import yaml

from schema_dsl import __version__
from schema_dsl.compiler import compile_schema
from schema_dsl.engine import check as check_value
from schema_dsl.errors import SchemaError
from schema_dsl.export import to_json_schema
from schema_dsl.schema import CompiledSchema
from schema_dsl.settings import UnknownKeyPolicy, ValidatorSettings

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="sdl",
    help="Schema DSL - compile schemas and validate documents",
    no_args_is_help=True,
    add_completion=False,
)


def setup_logging(verbose: int, quiet: bool):
    """Configure logging based on verbosity flags."""
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def parse_input(value: Optional[str]) -> Any:
    """
    Parse input from a JSON string or @file (JSON or YAML).

    Args:
        value: JSON string or @path to a .json/.yaml file

    Returns:
        Parsed document

    Raises:
        typer.Exit: On parse error
    """
    if value is None:
        return {}

    if value.startswith("@"):
        path = Path(value[1:])
        if not path.exists():
            typer.echo(f"Error: Input file not found: {path}", err=True)
            raise typer.Exit(1)
        try:
            return yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            typer.echo(f"Error: Invalid JSON/YAML in input file: {e}", err=True)
            raise typer.Exit(1)

    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: Invalid JSON in --input: {e}", err=True)
        raise typer.Exit(1)


def load_schema(file: Path, settings: ValidatorSettings) -> CompiledSchema:
    """Read and compile a schema file, exiting with status 1 on failure."""
    if not file.exists():
        typer.echo(f"Error: File not found: {file}", err=True)
        raise typer.Exit(1)

    try:
        schema = compile_schema(file.read_text(), settings=settings)
    except SchemaError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    logger.info(f"Loaded schema {file} ({len(schema.fields)} top-level field(s))")
    return schema


@app.command()
def check(
    file: Path = typer.Argument(..., help="Path to schema source file"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
):
    """Compile a schema and report problems."""
    setup_logging(verbose, quiet)
    schema = load_schema(file, ValidatorSettings())

    if not quiet:
        typer.echo(f"{file}: OK ({len(schema.fields)} field(s))")
        if verbose:
            typer.echo(schema.to_source())


@app.command()
def validate(
    file: Path = typer.Argument(..., help="Path to schema source file"),
    input: Optional[str] = typer.Option(None, "--input", "-i", help="Document as JSON or @file"),
    unknown_keys: UnknownKeyPolicy = typer.Option(
        UnknownKeyPolicy.IGNORE, "--unknown-keys", help="Undeclared keys: ignore, strip or reject"
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
):
    """Validate a document and print the normalized value."""
    setup_logging(verbose, quiet)
    settings = ValidatorSettings(unknown_keys=unknown_keys)
    schema = load_schema(file, settings)
    document = parse_input(input)

    result = check_value(schema, document, settings=settings)
    if not result.valid:
        typer.echo(json.dumps([e.to_dict() for e in result.errors], indent=2))
        raise typer.Exit(1)

    if not quiet:
        typer.echo(json.dumps(result.value, indent=2))


@app.command()
def export(
    file: Path = typer.Argument(..., help="Path to schema source file"),
):
    """Print the schema as a JSON Schema (Draft 2020-12) document."""
    schema = load_schema(file, ValidatorSettings())
    typer.echo(json.dumps(to_json_schema(schema), indent=2))


def version_callback(value: bool):
    """Handle --version flag."""
    if value:
        typer.echo(f"sdl {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(None, "--version", callback=version_callback, is_eager=True,
                                 help="Show version and exit"),
):
    """Schema DSL - compile schemas and validate documents."""


def main():
    """Entry point for the sdl CLI."""
    app()


if __name__ == "__main__":
    main()
