from __future__ import annotations

import asyncio
import logging
import os
import shlex
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from filestamp.config import (
    DEFAULT_SNAPSHOT_NAME,
    FileStampConfig,
    default_env_var,
    load_config,
    log_level_from_env,
    save_config,
)
from filestamp.errors import DecodeError, StalenessError, UnknownPathError
from filestamp.logs import configure_logging
from filestamp.snapshot import Snapshot
from filestamp.state_db import (
    delete_snapshot,
    ensure_db,
    list_snapshots,
    load_snapshot,
    save_snapshot,
)
from filestamp.status_service import evaluate_snapshot


EXIT_OK = 0
EXIT_STALE = 1
EXIT_ERROR = 2

app = typer.Typer(help="filestamp CLI")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every check decision (overrides FILESTAMP_LOG_LEVEL).",
    ),
) -> None:
    """Record path timestamps and tell whether any of them changed since."""
    configure_logging(logging.DEBUG if verbose else log_level_from_env())


def _render_path_summary(title: str, paths: list[str], style: str) -> None:
    if not paths:
        return
    console.print(Text(f"{title} ({len(paths)}):", style=style))
    for path in paths:
        console.print(f"  {path}")


async def _init_async(root: Path, paths: tuple[str, ...]) -> FileStampConfig:
    root = root.resolve()
    config = FileStampConfig(
        root=str(root),
        watch_paths=list(paths),
        env_var=default_env_var(),
    )
    await ensure_db(config.state_db_path)
    save_config(config, root)
    return config


@app.command()
def init(
    paths: list[str] | None = typer.Argument(
        None,
        help="Paths to watch, relative to the current directory.",
    ),
) -> None:
    """Initialize filestamp config in the current directory."""
    root = Path.cwd().resolve()
    config = asyncio.run(_init_async(root, tuple(paths or ())))
    console.print(f"[green]Initialized filestamp[/green] at {config.root_path}")
    console.print(f"State DB: {config.state_db_path}")
    console.print(f"Environment variable: {config.env_var}")
    _render_path_summary("Watching", config.watch_paths, "cyan")


async def _record_async(paths: tuple[str, ...], name: str, print_payload: bool) -> int:
    try:
        config = load_config()
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        return EXIT_ERROR

    targets = list(paths) if paths else config.resolved_watch_paths()
    if not targets:
        console.print("[red]No paths given and no watch_paths configured.[/red]")
        return EXIT_ERROR

    snapshot = Snapshot()
    try:
        for target in targets:
            snapshot.update(target)
    except OSError as exc:
        console.print(f"[red]Cannot record {exc.filename or 'path'}:[/red] {exc}")
        return EXIT_ERROR

    await save_snapshot(config.state_db_path, name, snapshot)
    missing = [record.path for record in snapshot if not record.exists]
    _render_path_summary("Not present (tracked for appearance)", missing, "yellow")
    console.print(
        f"[green]Snapshot recorded:[/green] {len(snapshot)} path(s) as {name!r} in {config.state_db_path}"
    )
    if print_payload:
        console.print(snapshot.marshal(), soft_wrap=True, highlight=False, markup=False)
    return EXIT_OK


@app.command()
def record(
    paths: list[str] | None = typer.Argument(
        None,
        help="Paths to record. Defaults to the configured watch_paths.",
    ),
    name: str = typer.Option(DEFAULT_SNAPSHOT_NAME, "--name", help="Snapshot name in the state DB."),
    print_payload: bool = typer.Option(
        False,
        "--print",
        help="Also print the marshaled snapshot payload.",
    ),
) -> None:
    """Take a snapshot of path timestamps and store it."""
    raise typer.Exit(code=asyncio.run(_record_async(tuple(paths or ()), name, print_payload)))


async def _resolve_snapshot(name: str, payload: str | None, from_env: bool) -> Snapshot:
    if payload is not None:
        return Snapshot.unmarshal(payload)

    if from_env:
        try:
            env_var = load_config().env_var
        except FileNotFoundError:
            env_var = default_env_var()
        value = os.getenv(env_var)
        if value is None:
            raise LookupError(f"Environment variable {env_var} is not set.")
        return Snapshot.unmarshal(value)

    config = load_config()
    snapshot = await load_snapshot(config.state_db_path, name)
    if snapshot is None:
        raise LookupError(f"No snapshot named {name!r}. Run `fstamp record` first.")
    return snapshot


async def _check_async(
    path: str | None,
    name: str,
    payload: str | None,
    from_env: bool,
) -> int:
    try:
        snapshot = await _resolve_snapshot(name, payload, from_env)
        if path is None:
            snapshot.check()
        else:
            snapshot.check_one(path)
    except StalenessError as exc:
        console.print(f"[yellow]Stale ({exc.reason}):[/yellow] {exc}")
        return EXIT_STALE
    except (UnknownPathError, DecodeError, LookupError, FileNotFoundError) as exc:
        console.print(f"[red]{exc}[/red]")
        return EXIT_ERROR
    except OSError as exc:
        console.print(f"[red]Check failed:[/red] {exc}")
        return EXIT_ERROR

    console.print("[green]Up to date.[/green]")
    return EXIT_OK


@app.command()
def check(
    path: str | None = typer.Argument(
        None,
        help="Only check this path. Defaults to every recorded path.",
    ),
    name: str = typer.Option(DEFAULT_SNAPSHOT_NAME, "--name", help="Snapshot name in the state DB."),
    payload: str | None = typer.Option(
        None,
        "--payload",
        help="Check a marshaled snapshot given on the command line.",
    ),
    from_env: bool = typer.Option(
        False,
        "--from-env",
        help="Check the marshaled snapshot stored in the configured environment variable.",
    ),
) -> None:
    """Exit 0 if nothing changed since the snapshot, 1 if stale, 2 on errors."""
    raise typer.Exit(code=asyncio.run(_check_async(path, name, payload, from_env)))


async def _status_async(name: str) -> int:
    try:
        config = load_config()
        snapshot = await load_snapshot(config.state_db_path, name)
    except (FileNotFoundError, DecodeError) as exc:
        console.print(f"[red]{exc}[/red]")
        return EXIT_ERROR
    if snapshot is None:
        console.print(f"[red]No snapshot named {name!r}. Run `fstamp record` first.[/red]")
        return EXIT_ERROR

    result = evaluate_snapshot(snapshot)
    if result.is_empty:
        console.print("[yellow]Snapshot is empty.[/yellow]")
        return EXIT_STALE

    table = Table(title=f"Snapshot {name!r}")
    table.add_column("Recorded")
    table.add_column("Status")

    for record in result.fresh:
        table.add_row(record.formatted(config.root_path), Text("up to date", style="green"))
    for stale in result.stale:
        table.add_row(stale.record.formatted(config.root_path), Text(stale.error.reason, style="yellow"))
    for failed in result.failed:
        table.add_row(failed.record.formatted(config.root_path), Text(str(failed.error), style="red"))

    console.print(table)
    if result.failed:
        return EXIT_ERROR
    if result.has_changes:
        return EXIT_STALE
    console.print("[green]No changes detected.[/green]")
    return EXIT_OK


@app.command()
def status(
    name: str = typer.Option(DEFAULT_SNAPSHOT_NAME, "--name", help="Snapshot name in the state DB."),
) -> None:
    """Show every recorded path and whether it is still up to date."""
    raise typer.Exit(code=asyncio.run(_status_async(name)))


async def _export_async(name: str) -> int:
    try:
        config = load_config()
        snapshot = await load_snapshot(config.state_db_path, name)
    except (FileNotFoundError, DecodeError) as exc:
        console.print(f"[red]{exc}[/red]")
        return EXIT_ERROR
    if snapshot is None:
        console.print(f"[red]No snapshot named {name!r}. Run `fstamp record` first.[/red]")
        return EXIT_ERROR

    console.print(
        f"export {config.env_var}={shlex.quote(snapshot.marshal())}",
        soft_wrap=True,
        highlight=False,
        markup=False,
    )
    return EXIT_OK


@app.command()
def export(
    name: str = typer.Option(DEFAULT_SNAPSHOT_NAME, "--name", help="Snapshot name in the state DB."),
) -> None:
    """Print a shell `export` line carrying the marshaled snapshot."""
    raise typer.Exit(code=asyncio.run(_export_async(name)))


async def _forget_async(name: str) -> int:
    try:
        config = load_config()
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        return EXIT_ERROR
    if not await delete_snapshot(config.state_db_path, name):
        console.print(f"[yellow]No snapshot named {name!r}.[/yellow]")
        return EXIT_ERROR
    console.print(f"[green]Forgot snapshot[/green] {name!r}")
    return EXIT_OK


@app.command()
def forget(name: str) -> None:
    """Delete a stored snapshot."""
    raise typer.Exit(code=asyncio.run(_forget_async(name)))


async def _list_async() -> int:
    try:
        config = load_config()
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        return EXIT_ERROR

    names = await list_snapshots(config.state_db_path)
    if not names:
        console.print("[yellow]No snapshots recorded.[/yellow] Run `fstamp record` first.")
        return EXIT_OK
    _render_path_summary("Snapshots", names, "cyan")
    return EXIT_OK


@app.command("list")
def list_() -> None:
    """List the snapshot names stored in the state DB."""
    raise typer.Exit(code=asyncio.run(_list_async()))
