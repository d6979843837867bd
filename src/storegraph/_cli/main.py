import logging
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from storegraph._config import StoreConfig, get_config
from storegraph._entry import StoreEntry
from storegraph._env import with_store_graph
from storegraph._errors import ConfigError, InputParseError, StoreQueryError
from storegraph._graph import StoreGraph
from storegraph._name import StoreName
from storegraph._query import NixPathInfoAdapter, QueryAdapter, StaticQueryAdapter, dump_path_info

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

_SIZE_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Inspect the dependency closure of store paths."""
    log_level = logging.DEBUG if verbose else logging.INFO

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


def format_size(size: int) -> str:
    """Format a byte count with binary units, e.g. ``1.5 MiB``."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    unit = _SIZE_UNITS[0]
    for unit in _SIZE_UNITS[1:]:
        value /= 1024
        if value < 1024:
            break
    return f"{value:.1f} {unit}"


def _load_config() -> StoreConfig:
    try:
        return get_config()
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


def _make_adapter(config: StoreConfig, input_file: Path | None) -> QueryAdapter:
    if input_file is None:
        return NixPathInfoAdapter(nix=config.nix, extra_args=config.extra_args)
    err_console.print(f"[cyan]Loading path-info records from:[/cyan] {input_file}")
    try:
        return StaticQueryAdapter.from_json(input_file.read_bytes())
    except StoreQueryError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


def _run[T](paths: list[str], input_file: Path | None, callback: Callable[[StoreGraph[None]], T]) -> T:
    config = _load_config()
    adapter = _make_adapter(config, input_file)
    try:
        return with_store_graph(paths, callback, adapter=adapter, config=config)
    except InputParseError as e:
        err_console.print(f"[red]Not under the store directory {escape(config.store_dir)}:[/red]")
        for path in e.paths:
            err_console.print(f"  [red]•[/red] {escape(path)}")
        raise typer.Exit(code=1) from e
    except StoreQueryError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


def _closure_names(graph: StoreGraph[None]) -> StoreGraph[frozenset[StoreName]]:
    """Fold the graph into the set of names of each entry's closure."""

    def collect(entry: StoreEntry[StoreEntry[StoreName, frozenset[StoreName]], None]) -> frozenset[StoreName]:
        return frozenset({entry.name}).union(*(ref.payload for ref in entry.refs))

    return graph.transform(collect)


@app.command()
def roots(
    paths: Annotated[list[str], typer.Argument(help="Store paths to inspect")],
    *,
    input_file: Annotated[
        Path | None,
        typer.Option(
            "-i",
            "--input",
            exists=True,
            dir_okay=False,
            help="Read a saved `nix path-info --json` dump instead of querying nix",
        ),
    ] = None,
) -> None:
    """Show the size and closure size of each root."""

    def report(graph: StoreGraph[None]) -> None:
        closures = _closure_names(graph)

        table = Table(title="Roots")
        table.add_column("Name", style="bold")
        table.add_column("Size", justify="right")
        table.add_column("Closure size", justify="right")
        table.add_column("Closure entries", justify="right")

        for root in closures.roots():
            closure_size = sum(closures.lookup(name).size for name in root.payload)
            table.add_row(
                escape(root.name.to_short_text() or root.name.to_text()),
                format_size(root.size),
                format_size(closure_size),
                str(len(root.payload)),
            )
        out_console.print(table)

    _run(paths, input_file, report)


@app.command()
def closure(
    paths: Annotated[list[str], typer.Argument(help="Store paths to inspect")],
    *,
    input_file: Annotated[
        Path | None,
        typer.Option(
            "-i",
            "--input",
            exists=True,
            dir_okay=False,
            help="Read a saved `nix path-info --json` dump instead of querying nix",
        ),
    ] = None,
    prune: Annotated[
        list[str] | None,
        typer.Option("--prune", help="Skip entries whose name contains this text, and their dependencies"),
    ] = None,
) -> None:
    """List every entry of the closure of the given paths, largest first."""
    patterns = prune or []

    def keep(entry: StoreEntry[StoreName, None]) -> bool:
        return not any(pattern in entry.name.to_text() for pattern in patterns)

    def report(graph: StoreGraph[None]) -> None:
        entries = sorted(graph.fetch_refs(keep, graph.root_names), key=lambda e: (-e.size, e.name.to_text()))
        logger.debug("Closure has %d of %d entries", len(entries), len(graph))

        table = Table(title="Closure")
        table.add_column("Path")
        table.add_column("Size", justify="right")
        table.add_column("References", justify="right")
        for entry in entries:
            table.add_row(escape(entry.name.to_path()), format_size(entry.size), str(len(entry.refs)))
        out_console.print(table)
        out_console.print(
            f"[bold]{len(entries)}[/bold] entries, total [bold]{format_size(sum(e.size for e in entries))}[/bold]",
        )

    _run(paths, input_file, report)


@app.command()
def dump(
    paths: Annotated[list[str], typer.Argument(help="Store paths to query")],
    *,
    output: Annotated[
        Path,
        typer.Option("-o", "--output", help="Path to the JSON file to write"),
    ],
) -> None:
    """Save the path-info records of a closure for later use with --input."""
    config = _load_config()
    adapter = NixPathInfoAdapter(nix=config.nix, extra_args=config.extra_args)
    try:
        records = adapter.query(paths)
    except StoreQueryError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    output.write_text(dump_path_info(records))
    err_console.print(f"[green]Wrote {len(records)} records to[/green] {output}")


if __name__ == "__main__":
    app()
