from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import tomli_w
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from deporder._app_config import parse_app_config
from deporder._errors import DeporderError
from deporder._io import export_to_json, load_composition
from deporder._utils import unique

from .config import get_config

if TYPE_CHECKING:
    from collections.abc import Iterator

    from deporder._models import Composition

    from .config import DeporderConfig

EXIT_CODE_SUCCESS = 0
EXIT_CODE_ERROR = 1
# 2 is used by click for usage errors
EXIT_CODE_NOT_FOUND = 3

app = typer.Typer(no_args_is_help=True)

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)


class OutputFormat(StrEnum):
    TEXT = "text"
    DOT = "dot"
    JSON = "json"


@app.callback()
def callback(
    ctx: typer.Context,
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
    cfg_name: str | None = typer.Option(
        None,
        "--cfg-name",
        help="Name or path suffix of the dependency declaration files that are discovered and parsed",
    ),
    exclude: str | None = typer.Option(
        None,
        "--exclude",
        help="Comma-separated list of directory names that are excluded when searching for declaration files",
    ),
) -> None:
    """Visualize dependencies and generate deployment orders."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )

    excluded = [d.strip() for d in exclude.split(",") if d.strip()] if exclude is not None else None
    try:
        config = get_config()
    except DeporderError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=EXIT_CODE_ERROR) from e
    ctx.obj = config.with_overrides(cfg_name=cfg_name, exclude=excluded)
    logger.debug(f"Using configuration: {ctx.obj}")


@contextmanager
def _exit_on_error() -> Iterator[None]:
    """Report deporder and file system errors and exit with the error code."""
    try:
        yield
    except (DeporderError, OSError) as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=EXIT_CODE_ERROR) from e


def _parse_apps(value: str | None) -> tuple[str, ...]:
    """Split the comma-separated --apps value."""
    if value is None:
        return ()
    apps = [app.strip() for app in value.split(",")]
    for i, app in enumerate(apps, start=1):
        if not app:
            msg = f"app parameter {i} contains only whitespaces or is empty: {value!r}"
            raise typer.BadParameter(msg, param_hint="--apps")
    return tuple(unique(apps))


def _load(ctx: typer.Context, src: Path) -> Composition:
    config: DeporderConfig = ctx.obj
    logger.debug(f"Loading dependencies from {src}")
    return load_composition(src, config.cfg_name, config.exclude)


@app.command()
def order(
    ctx: typer.Context,
    src: Annotated[
        Path,
        typer.Argument(help="Root directory of the declaration files or an exported dependency snapshot"),
    ],
    distribution: Annotated[str, typer.Argument(help="Name of the distribution")],
    *,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", help="Output format"),
    ] = OutputFormat.TEXT,
    apps: Annotated[
        str | None,
        typer.Option(
            "--apps",
            help="Comma-separated list of apps to generate the order for, all apps if unset",
        ),
    ] = None,
) -> None:
    """Generate a dependency order.

    Dependencies are ordered before the apps that depend on them.
    """
    app_names = _parse_apps(apps)

    with _exit_on_error():
        composition = _load(ctx, src)

        match output_format:
            case OutputFormat.TEXT:
                typer.echo("\n".join(composition.dependency_order(distribution, *app_names)))
            case OutputFormat.JSON:
                typer.echo(json.dumps(composition.dependency_order(distribution, *app_names), indent=4))
            case OutputFormat.DOT:
                # the DOT text already ends with a newline
                typer.echo(composition.dependency_order_dot(distribution, *app_names), nl=False)


@app.command()
def verify(
    ctx: typer.Context,
    src: Annotated[
        Path,
        typer.Argument(help="Root directory of the declaration files or an exported dependency snapshot"),
    ],
) -> None:
    """Verify that all declared dependencies exist."""
    err_console.print()

    with _exit_on_error():
        composition = _load(ctx, src)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Distribution", style="bold")
    table.add_column("Apps", justify="right", style="yellow")
    table.add_column("Dependencies", justify="right", style="green")

    for distr in composition.distributions:
        apps = composition.distribution[distr]
        n_deps = sum(len(d.hard_dependencies) + len(d.soft_dependencies) for d in apps.values())
        table.add_row(escape(distr), str(len(apps)), str(n_deps))

    err_console.print(
        Panel(
            table,
            title=f"[bold]{escape(str(src))}[/bold]",
            subtitle=f"[dim]{len(composition.distributions)} distributions[/dim]",
            border_style="cyan",
        ),
    )
    err_console.print()
    err_console.print("[green]✓ Verification successful[/green]")
    err_console.print()


@app.command()
def contains(
    ctx: typer.Context,
    src: Annotated[
        Path,
        typer.Argument(help="Root directory of the declaration files or an exported dependency snapshot"),
    ],
    distribution: Annotated[str, typer.Argument(help="Name of the distribution")],
    app_name: Annotated[str, typer.Argument(metavar="APP", help="Name of the app")],
) -> None:
    """Check if an app is part of a distribution.

    Exits with 0 if the app is part of the distribution, 1 on errors and 3 if
    the app is not part of the distribution.
    """
    with _exit_on_error():
        exists = _load(ctx, src).contains(distribution, app_name)

    if exists:
        typer.echo(f"{app_name!r} is part of the distribution {distribution!r}")
        raise typer.Exit(code=EXIT_CODE_SUCCESS)

    typer.echo(f"{app_name!r} is not part of the distribution {distribution!r}")
    raise typer.Exit(code=EXIT_CODE_NOT_FOUND)


@app.command()
def export(
    ctx: typer.Context,
    root: Annotated[
        Path,
        typer.Argument(help="Root directory in which dependency declaration files are discovered"),
    ],
    dest: Annotated[
        Path | None,
        typer.Argument(help="Path of the snapshot file to create, stdout if unset"),
    ] = None,
    *,
    distribution: Annotated[
        str | None,
        typer.Option("--distribution", help="Only export this distribution (required with --apps)"),
    ] = None,
    apps: Annotated[
        str | None,
        typer.Option("--apps", help="Comma-separated list of apps, exports them and their recursive dependencies"),
    ] = None,
) -> None:
    """Read dependency declarations and export them to a JSON snapshot."""
    app_names = _parse_apps(apps)
    if app_names and distribution is None:
        msg = "--apps requires --distribution"
        raise typer.BadParameter(msg, param_hint="--apps")

    with _exit_on_error():
        composition = _load(ctx, root)
        if composition.is_empty():
            msg = f"could not find any dependency information in {root}"
            raise DeporderError(msg)

        if distribution is not None:
            selected = app_names or tuple(composition.apps(distribution))
            composition = composition.recursive_deps_of(distribution, *selected)

        export_to_json(composition, dest)

    if dest is not None:
        err_console.print(f"[green]✓ Written dependency snapshot to[/green] {escape(str(dest))}")


@app.command()
def init(
    name: Annotated[str, typer.Argument(help="Name of the app")],
    distribution: Annotated[str, typer.Argument(help="Name of the distribution")],
    *,
    output: Annotated[
        Path,
        typer.Option("-o", "--output", help="Path of the declaration file to create, must not exist"),
    ],
    hard: Annotated[
        list[str] | None,
        typer.Option("--hard", help="Hard dependency, can be repeated"),
    ] = None,
    soft: Annotated[
        list[str] | None,
        typer.Option("--soft", help="Soft dependency, can be repeated"),
    ] = None,
) -> None:
    """Generate a dependency declaration file for an app.

    An existing file is not overwritten.
    """
    overlap = sorted(set(hard or []) & set(soft or []))
    if overlap:
        msg = f"declared as hard and soft dependency: {', '.join(overlap)}"
        raise typer.BadParameter(msg, param_hint="--hard/--soft")

    declared = {dep: {"type": "hard"} for dep in hard or []}
    declared.update({dep: {"type": "soft"} for dep in soft or []})

    with _exit_on_error():
        config = parse_app_config({"name": name, "dependencies": {distribution: declared}}, "command line")

    # the default dependency type is not written
    data = {
        "name": config.name,
        "dependencies": {
            distr: {dep: attrs.model_dump(exclude_defaults=True) for dep, attrs in deps.items()}
            for distr, deps in config.dependencies.items()
        },
    }

    err_console.print(f"[cyan]Writing declaration to:[/cyan] {escape(str(output))}")
    with _exit_on_error():
        output.parent.mkdir(parents=True, exist_ok=True)
        with output.open("xb") as f:
            tomli_w.dump(data, f)

    err_console.print("[green]✓ Declaration file generated[/green]")


@app.command()
def diff(
    ctx: typer.Context,
    src1: Annotated[Path, typer.Argument(help="First snapshot file or declaration root directory")],
    src2: Annotated[Path, typer.Argument(help="Second snapshot file or declaration root directory")],
) -> None:
    """Compare two dependency sets and check if they are identical."""
    with _exit_on_error():
        comp1 = _load(ctx, src1)
        comp2 = _load(ctx, src2)

    if comp1 == comp2:
        err_console.print("[green]✓ The dependencies are identical.[/green]")
        raise typer.Exit(EXIT_CODE_SUCCESS)

    err_console.print("[red]✗ The dependencies differ.[/red]")
    raise typer.Exit(EXIT_CODE_ERROR)


def main() -> None:
    app()

