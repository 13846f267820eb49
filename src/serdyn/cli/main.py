"""CLI entry point for serdyn.

Invoked as::

    serdyn [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m serdyn.cli.main

Commands
--------
check       Decode a JSON or YAML document against a Python type
shape       Show the shape derived for a Python type
adapters    List registered foreign-object adapters
version     Show version information
"""
from __future__ import annotations

import importlib
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

if TYPE_CHECKING:
    from serdyn.model.shapes import Shape

console = Console()
err_console = Console(stderr=True)


def _read_source(path: str) -> str:
    """Read a document, exiting on error."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] File not found: {path}")
        sys.exit(1)
    except OSError as exc:
        err_console.print(f"[red]Error:[/red] Cannot read {path}: {exc}")
        sys.exit(1)


def _load_document(source: str, path: str, fmt: str | None) -> Any:
    """Parse JSON or YAML text, exiting on error.

    When ``fmt`` is not given it is chosen from the file extension, with
    YAML as the fallback (YAML is a superset of JSON).
    """
    if fmt is None:
        fmt = "json" if Path(path).suffix.lower() == ".json" else "yaml"
    try:
        if fmt == "json":
            return json.loads(source)
        return yaml.safe_load(source)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        err_console.print(f"[red]Syntax error[/red] in {path}: {exc}")
        sys.exit(1)


def _import_target(target: str) -> Any:
    """Resolve ``package.module:Name`` to the named object, exiting on error."""
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        err_console.print(
            f"[red]Error:[/red] Invalid target {target!r}; expected 'module:Name'"
        )
        sys.exit(1)
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        err_console.print(f"[red]Error:[/red] Cannot import {module_name!r}: {exc}")
        sys.exit(1)
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            err_console.print(f"[red]Error:[/red] {module_name!r} has no attribute {attr_path!r}")
            sys.exit(1)
    return obj


def _derive_or_exit(target: str) -> "Shape":
    from serdyn.model import as_shape

    tp = _import_target(target)
    try:
        return as_shape(tp)
    except TypeError as exc:
        err_console.print(f"[red]Error:[/red] Cannot derive a shape for {target}: {exc}")
        sys.exit(1)


def _shape_tree(shape: "Shape", tree: Tree, seen: set[int]) -> None:
    """Add the children of ``shape`` to ``tree``, stopping at references back up the tree."""
    from serdyn.model import ShapeKind, ShapeRef, VariantKind, resolve

    if isinstance(shape, ShapeRef) and id(resolve(shape)) in seen:
        tree.add(f"[dim]↻ {shape.name}[/dim]")
        return
    shape = resolve(shape)
    seen = seen | {id(shape)}
    kind = shape.kind

    if kind is ShapeKind.OPTION:
        _shape_tree(shape.inner, tree.add("[cyan]some[/cyan]"), seen)
    elif kind is ShapeKind.NEWTYPE:
        _shape_tree(shape.inner, tree.add(f"[cyan]0[/cyan]: {shape.inner.describe()}"), seen)
    elif kind is ShapeKind.SEQ:
        _shape_tree(shape.element, tree.add(f"[cyan]*[/cyan]: {shape.element.describe()}"), seen)
    elif kind in (ShapeKind.TUPLE, ShapeKind.TUPLE_STRUCT):
        for index, element in enumerate(shape.elements):
            _shape_tree(element, tree.add(f"[cyan]{index}[/cyan]: {element.describe()}"), seen)
    elif kind is ShapeKind.MAP:
        _shape_tree(shape.key, tree.add(f"[cyan]key[/cyan]: {shape.key.describe()}"), seen)
        _shape_tree(shape.value, tree.add(f"[cyan]value[/cyan]: {shape.value.describe()}"), seen)
    elif kind is ShapeKind.STRUCT:
        for f in shape.fields:
            marker = "" if f.required else " [dim](optional)[/dim]"
            _shape_tree(f.shape, tree.add(f"[green]{f.name}[/green]: {f.shape.describe()}{marker}"), seen)
    elif kind is ShapeKind.ENUM:
        for variant in shape.variants:
            label = f"[magenta]{variant.name}[/magenta] [dim]{variant.kind.name.lower()}[/dim]"
            branch = tree.add(label)
            if variant.kind is VariantKind.NEWTYPE:
                _shape_tree(variant.inner, branch.add(f"[cyan]0[/cyan]: {variant.inner.describe()}"), seen)
            elif variant.kind is VariantKind.TUPLE:
                for index, element in enumerate(variant.elements):
                    _shape_tree(element, branch.add(f"[cyan]{index}[/cyan]: {element.describe()}"), seen)
            elif variant.kind is VariantKind.STRUCT:
                for f in variant.fields:
                    _shape_tree(f.shape, branch.add(f"[green]{f.name}[/green]: {f.shape.describe()}"), seen)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="serdyn")
def cli() -> None:
    """Structural transcoding between typed Python values and dynamic objects."""


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from serdyn import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]serdyn[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# adapters command
# ---------------------------------------------------------------------------


@cli.command(name="adapters")
def adapters_command() -> None:
    """List foreign-object adapters in the order they are tried."""
    from serdyn.adapters import default_registry

    registry = default_registry()
    table = Table(title="Registered adapters")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Class")
    for position, name in enumerate(registry.list_adapters(), start=1):
        cls = registry.get(name)
        table.add_row(str(position), name, f"{cls.__module__}.{cls.__qualname__}")
    console.print(table)


# ---------------------------------------------------------------------------
# shape command
# ---------------------------------------------------------------------------


@cli.command(name="shape")
@click.argument("target")
def shape_command(target: str) -> None:
    """Show the shape derived for a type.

    TARGET is a type given as 'package.module:Name'.
    """
    shape = _derive_or_exit(target)
    tree = Tree(f"[bold]{shape.describe()}[/bold] [dim]{shape.kind.name.lower()}[/dim]")
    _shape_tree(shape, tree, set())
    console.print(tree)


# ---------------------------------------------------------------------------
# check command
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.argument("target")
@click.argument("file", type=click.Path(exists=False))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    default=None,
    help="Document format (default: from the file extension)",
)
@click.option(
    "--deny-unknown-fields",
    is_flag=True,
    default=False,
    help="Reject keys that the target type does not declare",
)
@click.option(
    "--int-as-float",
    is_flag=True,
    default=False,
    help="Accept whole numbers where a float is expected",
)
def check_command(
    target: str, file: str, fmt: str | None, deny_unknown_fields: bool, int_as_float: bool
) -> None:
    """Decode a JSON or YAML document against a type.

    TARGET is a type given as 'package.module:Name'; FILE is the document.

    Examples:

    \b
        serdyn check myapp.config:Settings settings.yaml
        serdyn check myapp.api:Order order.json --deny-unknown-fields
    """
    from serdyn.decoder import decode
    from serdyn.errors import TranscodeError
    from serdyn.host import default_host
    from serdyn.options import TranscodeOptions

    shape = _derive_or_exit(target)
    document = _load_document(_read_source(file), file, fmt.lower() if fmt else None)
    options = TranscodeOptions(
        deny_unknown_fields=deny_unknown_fields,
        int_as_float=int_as_float,
        lists_as_tuples=True,
    )
    try:
        with default_host().acquire() as ctx:
            value = decode(ctx, document, shape, options=options)
    except TranscodeError as exc:
        err_console.print(f"[red]✗[/red] {file} does not match {shape.describe()}")
        table = Table(show_header=False, box=None)
        table.add_row("[bold]Kind[/bold]", exc.kind.name)
        table.add_row("[bold]Location[/bold]", exc.location)
        table.add_row("[bold]Message[/bold]", exc.message)
        err_console.print(table)
        sys.exit(1)

    console.print(f"[green]✓[/green] {file} matches {shape.describe()}")
    console.print(repr(value), markup=False)


if __name__ == "__main__":
    cli()
