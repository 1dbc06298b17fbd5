from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from jabroni import __version__
from jabroni.config.loader import load_settings
from jabroni.core.loader import Loader
from jabroni.core.namespace import BOOKKEEPING_NAMES

console = Console()


def _configure_logging(verbose: bool) -> None:
    """Route the package's log records through rich; library code never does this."""
    package_logger = logging.getLogger("jabroni")
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


def _import_target(target: str, app_dir: str) -> type:
    """Resolve ``package.module:Class`` (or ``module:Outer.Inner``) to a class."""
    module_name, sep, qualname = target.partition(":")
    if not sep or not module_name or not qualname:
        raise click.BadParameter(f"expected MODULE:CLASS, got {target!r}", param_hint="TARGET")

    app_path = str(Path(app_dir).resolve())
    if app_path not in sys.path:
        sys.path.insert(0, app_path)

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import {module_name!r}: {e}", param_hint="TARGET") from e

    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise click.BadParameter(f"{module_name!r} has no attribute {qualname!r}", param_hint="TARGET") from e

    if not isinstance(obj, type):
        raise click.BadParameter(f"{target!r} is not a class", param_hint="TARGET")
    return obj


def _make_loader(ctx: click.Context, target: type) -> Loader:
    settings = ctx.obj["settings"]
    if ctx.obj["root"] is not None:
        settings = settings.model_copy(update={"root": ctx.obj["root"]})
    return Loader(target, settings=settings)


def _code_of(value: Any) -> Any:
    if isinstance(value, (classmethod, staticmethod)):
        value = value.__func__
    elif isinstance(value, property):
        value = value.fget
    return getattr(value, "__code__", None)


@click.group()
@click.version_option(version=__version__, prog_name="jabroni")
@click.option("--root", default=None, help="Base directory for <classname>/extensions/.")
@click.option("--app-dir", default=".", show_default=True, help="Directory prepended to sys.path.")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.pass_context
def cli(ctx: click.Context, root: str | None, app_dir: str, verbose: bool) -> None:
    """Jabroni — inspect and load class extension files."""
    settings = load_settings(project_dir=Path.cwd(), user_dir=Path.home())
    _configure_logging(verbose or settings.verbose)
    ctx.ensure_object(dict)
    ctx.obj.update(settings=settings, root=root, app_dir=app_dir)


@cli.command("list")
@click.argument("target")
@click.pass_context
def list_extensions(ctx: click.Context, target: str) -> None:
    """List the extension files of TARGET (MODULE:CLASS) and their shape."""
    loader = _make_loader(ctx, _import_target(target, ctx.obj["app_dir"]))
    files = loader.describe()

    if not files:
        console.print(f"[dim]No extensions in {loader.resolver.directory_for()}[/dim]")
        return

    table = Table(title=f"Extensions of {loader.target.__qualname__}")
    table.add_column("Key", style="cyan")
    table.add_column("Shape")
    table.add_column("Path")

    for f in files:
        table.add_row(f.key, f.shape.value, str(f.path))

    console.print(table)


@cli.command("load")
@click.argument("target")
@click.argument("keys", nargs=-1)
@click.pass_context
def load(ctx: click.Context, target: str, keys: tuple[str, ...]) -> None:
    """Load extensions into TARGET (MODULE:CLASS) and show what they define."""
    loader = _make_loader(ctx, _import_target(target, ctx.obj["app_dir"]))
    loader.load(*keys)
    directory = loader.resolver.directory_for()

    table = Table(title=f"Members of {loader.target.__qualname__} from {directory}")
    table.add_column("Name", style="cyan")
    table.add_column("Origin")

    for name, value in vars(loader.target).items():
        if name in BOOKKEEPING_NAMES:
            continue
        code = _code_of(value)
        if code is None or Path(code.co_filename).parent != directory:
            continue
        table.add_row(name, f"{code.co_filename}:{code.co_firstlineno}")

    console.print(table)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
