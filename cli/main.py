"""
DotPrint CLI Main Module

Command-line interface for DotPrint using Typer. Covers database setup,
offline feature extraction, submissions, reporting, dataset export and the
admin reset.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import typer

from core.config import DEFAULT_GRID_SIZE, load_settings
from core.errors import ConsistencyError, StorageError, ValidationError
from core.export import EXPORT_FORMATS, write_export
from core.features import compute_features
from core.logging import get_logger, setup_logging
from core.services import Services

logger = get_logger(__name__)

T = TypeVar("T")

app = typer.Typer(
    name="dotprint",
    help="DotPrint - collect dot patterns and extract their geometric features",
    add_completion=False
)


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
) -> None:
    setup_logging(level=log_level, format_type="text")


def _run(work: Callable[[Services], Awaitable[T]]) -> T:
    """Open services from the environment, run ``work`` and always dispose."""

    async def runner() -> T:
        services = Services.from_settings(load_settings())
        try:
            await services.init()
            return await work(services)
        finally:
            await services.dispose()

    try:
        return asyncio.run(runner())
    except ValidationError as e:
        typer.echo(f"Validation failed ({e.constraint}): {e}", err=True)
        raise typer.Exit(1)
    except ConsistencyError as e:
        typer.echo(
            f"Pattern stored as submission {e.submission_id} but credit was not recorded. "
            "Check the ledger before retrying.",
            err=True
        )
        raise typer.Exit(2)
    except StorageError:
        typer.echo("Storage failure. See logs for details.", err=True)
        raise typer.Exit(1)


def _load_points(path: Path) -> List[Any]:
    """Read a JSON file holding a list of points or ``{"coordinates": [...]}``."""
    if not path.exists():
        typer.echo(f"File not found: {path}", err=True)
        raise typer.Exit(1)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        typer.echo(f"Invalid JSON in {path}: {e}", err=True)
        raise typer.Exit(1)
    if isinstance(data, dict):
        data = data.get("coordinates")
    if not isinstance(data, list):
        typer.echo("Expected a list of points or an object with 'coordinates'", err=True)
        raise typer.Exit(1)
    return data


@app.command("init-db")
def init_db() -> None:
    """Create the submissions and ledger tables if they do not exist."""

    async def work(services: Services) -> None:
        return None

    _run(work)
    typer.echo("Database initialized")


@app.command()
def features(
    pattern_json: Path = typer.Argument(..., help="JSON file with the pattern's points"),
    grid_size: int = typer.Option(DEFAULT_GRID_SIZE, "--grid-size", help="Grid side length"),
) -> None:
    """Compute and print the feature vector of a pattern without storing it."""
    points = _load_points(pattern_json)
    try:
        vector = compute_features(points, grid_size=grid_size)
    except ValidationError as e:
        typer.echo(f"Validation failed ({e.constraint}): {e}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(vector.as_dict(), indent=2))


@app.command()
def submit(
    pattern_json: Path = typer.Argument(..., help="JSON file with the pattern's points"),
    contributor: Optional[str] = typer.Option(None, "--contributor", help="Identity to credit"),
    credit: bool = typer.Option(True, "--credit/--no-credit", help="Opt in for contribution credit"),
    opt_out: bool = typer.Option(False, "--opt-out", help="Hide the contributor from the leaderboard"),
) -> None:
    """Validate and store a pattern, crediting the contributor if given."""
    points = _load_points(pattern_json)

    async def work(services: Services):
        return await services.coordinator.submit(
            points,
            opted_in_for_credit=credit,
            contributor=contributor,
            opted_out=opt_out,
        )

    result = _run(work)
    typer.echo(f"✓ Stored submission {result.record.id} ({result.record.features.n_points} points)")
    if result.ledger_entry:
        typer.echo(f"  Contributions: {result.ledger_entry.contribution_count}")


@app.command()
def leaderboard(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of entries (1-100)"),
) -> None:
    """Show the top contributors."""

    async def work(services: Services):
        return await services.ledger.get_leaderboard(limit)

    rows = _run(work)
    if not rows:
        typer.echo("No contributors yet")
        return
    for rank, row in enumerate(rows, start=1):
        typer.echo(f"{rank:>3}. {row.identity}  {row.contribution_count}")


@app.command()
def stats(
    admin: bool = typer.Option(False, "--admin", help="Include storage size and time range"),
) -> None:
    """Print aggregate statistics as JSON."""

    async def work(services: Services):
        if admin:
            return await services.queries.get_database_stats()
        return await services.queries.get_total_stats()

    typer.echo(json.dumps(_run(work).model_dump(), indent=2))


@app.command()
def export(
    output: Path = typer.Argument(..., help="Output file"),
    fmt: str = typer.Option("csv", "--format", "-f", help=f"One of: {', '.join(EXPORT_FORMATS)}"),
) -> None:
    """Export all submissions with their features for model training."""
    if fmt not in EXPORT_FORMATS:
        typer.echo(f"Unsupported format '{fmt}'. Use one of: {', '.join(EXPORT_FORMATS)}", err=True)
        raise typer.Exit(1)

    async def work(services: Services):
        return await services.store.list_records()

    count = write_export(_run(work), output, fmt=fmt)
    typer.echo(f"✓ Exported {count} submissions to {output}")


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", help="Confirm deletion of all data"),
) -> None:
    """Delete every submission and ledger entry. Cannot be undone."""
    if not yes:
        typer.echo("Refusing to reset without --yes", err=True)
        raise typer.Exit(1)

    async def work(services: Services) -> None:
        await services.coordinator.reset_all()

    _run(work)
    typer.echo("Database reset. All data has been deleted.")


if __name__ == "__main__":
    app()
