"""Typer CLI — ``roadmap-history`` commands for comparing and managing roadmaps."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from roadmap_history.config import load_config
from roadmap_history.schemas.config import AppConfig
from roadmap_history.schemas.delta import ComparisonSide
from roadmap_history.schemas.roadmap import Roadmap, RoadmapHistoryItem

# Load .env file from project root (if it exists)
load_dotenv()

app = typer.Typer(
    name="roadmap-history",
    help="Roadmap History — save, compare, and generate development roadmaps.",
    no_args_is_help=True,
)
console = Console()

_FORMATS = ("markdown", "json", "html")
_CHANGE_KINDS = ("priority", "duration", "tasks", "description", "dependencies")

ConfigOption = typer.Option(None, "--config", "-c", help="Path to roadmap-history.yml")
VerboseOption = typer.Option(False, "--verbose", "-v")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load(config: Path | None) -> AppConfig:
    try:
        return load_config(config) if config else AppConfig()
    except (OSError, ValueError) as exc:
        console.print(f"[red]Config validation failed:[/] {escape(str(exc))}")
        raise typer.Exit(code=1)


def _emit(text: str, output: Path | None) -> None:
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text)
    console.print(f"[green]Written to:[/] {output}")


@app.command()
def validate(
    config: Path = typer.Option(..., "--config", "-c", help="Path to roadmap-history.yml"),
    verbose: bool = VerboseOption,
) -> None:
    """Validate a configuration file."""
    _setup_logging(verbose)
    cfg = _load(config)

    console.print("[green]Config is valid![/]\n")
    console.print(f"  Backend:     {cfg.backend}")
    if cfg.backend == "local":
        console.print(f"  Store file:  {cfg.local_path}")
    else:
        console.print(f"  URL:         {cfg.supabase_url}")
        console.print(f"  Table:       {cfg.table}")
    console.print(f"  Multiset:    {cfg.multiset_diff}")
    console.print(f"  Model:       {cfg.generation.model}")
    console.print(f"  Output dir:  {cfg.output_directory}")


@app.command()
def compare(
    before: str = typer.Argument(..., help="Older roadmap: a JSON file or a saved roadmap id."),
    after: str = typer.Argument(..., help="Newer roadmap: a JSON file or a saved roadmap id."),
    config: Path = ConfigOption,
    fmt: str = typer.Option("markdown", "--format", "-f", help="markdown, json, or html."),
    output: Path = typer.Option(None, "--output", "-o", help="Write the report here instead of stdout."),
    multiset: bool = typer.Option(False, "--multiset", help="Count duplicate tasks separately."),
    only: str = typer.Option(
        None,
        "--only",
        help="Keep modified phases with this kind of change (metrics still cover every change).",
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Compare two roadmap versions.

    Examples:

        roadmap-history compare v1.json v2.json

        roadmap-history compare 3f2a... 9b1c... --format html -o comparison.html

    --only narrows the listed phase changes; the metrics and statistics
    sections always describe the full comparison.
    """
    _setup_logging(verbose)
    if fmt not in _FORMATS:
        console.print(f"[red]Unknown format:[/] {fmt} (choose from {', '.join(_FORMATS)})")
        raise typer.Exit(code=1)
    if only is not None and only not in _CHANGE_KINDS:
        console.print(f"[red]Unknown change kind:[/] {only} (choose from {', '.join(_CHANGE_KINDS)})")
        raise typer.Exit(code=1)

    cfg = _load(config)
    use_multiset = multiset or cfg.multiset_diff
    text = asyncio.run(_run_compare(cfg, before, after, fmt=fmt, multiset=use_multiset, only=only))
    _emit(text, output)


async def _resolve_side(cfg: AppConfig, source: str) -> ComparisonSide:
    """Load a comparison side from a JSON file, or from the store by id."""
    from roadmap_history.store.factory import open_store

    path = Path(source)
    if path.is_file():
        try:
            data = json.loads(path.read_text())
            if isinstance(data, dict) and ("roadmapData" in data or "roadmap_data" in data):
                item = RoadmapHistoryItem.model_validate(data)
                return ComparisonSide(
                    id=item.id, name=item.name, created_at=item.created_at, roadmap_data=item.roadmap_data,
                )
            return ComparisonSide(name=path.stem, roadmap_data=Roadmap.model_validate(data))
        except (json.JSONDecodeError, ValidationError) as exc:
            console.print(f"[red]Invalid roadmap file {path}:[/] {escape(str(exc))}")
            raise typer.Exit(code=1)

    async with open_store(cfg) as store:
        item = await store.get_roadmap_by_id(source)
    if item is None:
        console.print(f"[red]No roadmap file or saved roadmap found for:[/] {source}")
        raise typer.Exit(code=1)
    return ComparisonSide(
        id=item.id, name=item.name, created_at=item.created_at, roadmap_data=item.roadmap_data,
    )


async def _run_compare(
    cfg: AppConfig,
    before: str,
    after: str,
    *,
    fmt: str,
    multiset: bool,
    only: str | None,
) -> str:
    from roadmap_history.diff.engine import build_comparison, duplicate_phase_names, filter_changes
    from roadmap_history.output.dashboard import render_comparison_html
    from roadmap_history.output.markdown import render_markdown_comparison

    before_side = await _resolve_side(cfg, before)
    after_side = await _resolve_side(cfg, after)

    for side in (before_side, after_side):
        dupes = duplicate_phase_names(side.roadmap_data)
        if dupes:
            console.print(
                f"[yellow]Warning:[/] {side.name} repeats phase names {dupes}; "
                "the first phase with each name is compared."
            )

    export = build_comparison(before_side, after_side, multiset=multiset)
    if only:
        export.comparison.modified_phases = filter_changes(export.comparison.modified_phases, only)

    if fmt == "json":
        return export.model_dump_json(by_alias=True, indent=2)
    if fmt == "html":
        return render_comparison_html(export)
    return render_markdown_comparison(export)


@app.command(name="list")
def list_roadmaps(
    config: Path = ConfigOption,
    status: str = typer.Option(None, "--status", help="Only show roadmaps with this status."),
    verbose: bool = VerboseOption,
) -> None:
    """List saved roadmaps, newest first."""
    _setup_logging(verbose)
    cfg = _load(config)
    items = asyncio.run(_run_list(cfg))
    if status:
        items = [item for item in items if item.status == status]

    if not items:
        console.print("[yellow]No saved roadmaps.[/]")
        return

    table = Table(title="Saved roadmaps")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Phases", justify="right")
    table.add_column("Status")
    table.add_column("Created")
    for item in items:
        table.add_row(
            item.id, item.name, str(len(item.roadmap_data.phases)), item.status, item.created_at,
        )
    console.print(table)


async def _run_list(cfg: AppConfig) -> list[RoadmapHistoryItem]:
    from roadmap_history.store.factory import open_store

    async with open_store(cfg) as store:
        return await store.get_saved_roadmaps()


@app.command()
def show(
    roadmap_id: str = typer.Argument(..., help="Saved roadmap id."),
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print a saved roadmap as JSON."""
    _setup_logging(verbose)
    cfg = _load(config)

    async def _get():
        from roadmap_history.store.factory import open_store

        async with open_store(cfg) as store:
            return await store.get_roadmap_by_id(roadmap_id)

    item = asyncio.run(_get())
    if item is None:
        console.print(f"[red]Roadmap not found:[/] {roadmap_id}")
        raise typer.Exit(code=1)
    typer.echo(item.model_dump_json(by_alias=True, indent=2))


@app.command()
def save(
    file: Path = typer.Argument(..., help="Roadmap JSON file."),
    name: str = typer.Option(..., "--name", "-n"),
    description: str = typer.Option("", "--description", "-d"),
    created_by: str = typer.Option("system", "--created-by"),
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Save a roadmap file to the store."""
    _setup_logging(verbose)
    cfg = _load(config)
    try:
        roadmap = Roadmap.model_validate_json(file.read_text())
    except (OSError, ValidationError) as exc:
        console.print(f"[red]Invalid roadmap file {file}:[/] {escape(str(exc))}")
        raise typer.Exit(code=1)

    roadmap_id = asyncio.run(_run_save(cfg, roadmap, name, description, created_by))
    if roadmap_id is None:
        console.print("[red]Could not save the roadmap.[/]")
        raise typer.Exit(code=1)
    console.print(f"[green]Saved:[/] {roadmap_id}")


async def _run_save(
    cfg: AppConfig,
    roadmap: Roadmap,
    name: str,
    description: str,
    created_by: str = "system",
) -> str | None:
    from roadmap_history.store.factory import open_store

    async with open_store(cfg) as store:
        return await store.save_roadmap(roadmap, name, description, created_by=created_by)


def _set_status(cfg: AppConfig, roadmap_id: str, action: str) -> bool:
    from roadmap_history.store.factory import open_store

    async def _run() -> bool:
        async with open_store(cfg) as store:
            if action == "archive":
                return await store.archive_roadmap(roadmap_id)
            return await store.delete_roadmap(roadmap_id)

    return asyncio.run(_run())


@app.command()
def archive(
    roadmap_id: str = typer.Argument(..., help="Saved roadmap id."),
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Archive a saved roadmap."""
    _setup_logging(verbose)
    if not _set_status(_load(config), roadmap_id, "archive"):
        console.print(f"[red]Could not archive:[/] {roadmap_id}")
        raise typer.Exit(code=1)
    console.print(f"[green]Archived:[/] {roadmap_id}")


@app.command()
def delete(
    roadmap_id: str = typer.Argument(..., help="Saved roadmap id."),
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Mark a saved roadmap as deleted (the record is kept)."""
    _setup_logging(verbose)
    if not _set_status(_load(config), roadmap_id, "delete"):
        console.print(f"[red]Could not delete:[/] {roadmap_id}")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted:[/] {roadmap_id}")


@app.command()
def generate(
    project_data: Path = typer.Option(None, "--project-data", "-p", help="JSON file with the project snapshot."),
    context: str = typer.Option("", "--context", help="Extra guidance for the planner."),
    save_as: str = typer.Option(None, "--save", help="Save the generated roadmap under this name."),
    output: Path = typer.Option(None, "--output", "-o", help="Write the roadmap JSON here."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use a canned roadmap (no API calls)."),
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Generate a roadmap from a project snapshot with AI."""
    _setup_logging(verbose)
    cfg = _load(config)

    data: dict = {}
    if project_data:
        try:
            data = json.loads(project_data.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            console.print(f"[red]Could not read project data:[/] {escape(str(exc))}")
            raise typer.Exit(code=1)

    if dry_run:
        console.print("[yellow]DRY-RUN mode — no API calls will be made.[/]\n")

    roadmap = asyncio.run(_run_generate(cfg, data, context, dry_run=dry_run))
    console.print(f"[bold]Generated {len(roadmap.phases)} phases[/]")
    _emit(roadmap.model_dump_json(by_alias=True, indent=2), output)

    if save_as:
        roadmap_id = asyncio.run(_run_save(cfg, roadmap, save_as, roadmap.summary))
        if roadmap_id is None:
            console.print("[red]Could not save the roadmap.[/]")
            raise typer.Exit(code=1)
        console.print(f"[green]Saved:[/] {roadmap_id}")


async def _run_generate(cfg: AppConfig, data: dict, context: str, *, dry_run: bool = False):
    from roadmap_history.generation.generator import RoadmapGenerator
    from roadmap_history.shared.cache import ExpiringCache

    if dry_run:
        from roadmap_history.shared.ai_client import DryRunClient
        client = DryRunClient()
    else:
        from roadmap_history.shared.ai_client import AIClient
        client = AIClient(model=cfg.generation.model)

    cache = ExpiringCache(
        ttl_seconds=cfg.generation.cache_ttl_seconds,
        capacity=cfg.generation.cache_capacity,
    )
    generator = RoadmapGenerator(client, cache=cache)
    with console.status("Generating roadmap…"):
        return await generator.generate(data, context)


@app.command()
def analytics(
    roadmap_id: str = typer.Argument(..., help="Saved roadmap id."),
    compare_to: str = typer.Option(None, "--compare-to", help="Compare usage against another roadmap."),
    fmt: str = typer.Option("json", "--format", "-f", help="json or csv."),
    output: Path = typer.Option(None, "--output", "-o"),
    config: Path = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show usage analytics for a saved roadmap (supabase backend only)."""
    _setup_logging(verbose)
    if fmt not in ("json", "csv"):
        console.print(f"[red]Unknown format:[/] {fmt}")
        raise typer.Exit(code=1)
    if compare_to and fmt == "csv":
        console.print("[red]Error:[/] --compare-to only supports --format json.")
        raise typer.Exit(code=1)
    cfg = _load(config)
    if cfg.backend != "supabase":
        console.print("[red]Error:[/] analytics requires the supabase backend.")
        raise typer.Exit(code=1)

    text = asyncio.run(_run_analytics(cfg, roadmap_id, compare_to, fmt))
    if text is None:
        console.print(f"[red]No analytics available for:[/] {roadmap_id}")
        raise typer.Exit(code=1)
    _emit(text, output)


async def _run_analytics(cfg: AppConfig, roadmap_id: str, compare_to: str | None, fmt: str) -> str | None:
    from roadmap_history.analytics.service import RoadmapAnalyticsService
    from roadmap_history.store.postgrest import PostgrestClient

    client = PostgrestClient(cfg.supabase_url, cfg.supabase_key, timeout=cfg.request_timeout)
    try:
        service = RoadmapAnalyticsService(client, roadmaps_table=cfg.table)
        if compare_to:
            result = await service.compare_roadmap_usage(roadmap_id, compare_to)
        else:
            result = await service.export_analytics(roadmap_id, fmt=fmt)
    finally:
        await client.aclose()

    if result is None or isinstance(result, str):
        return result
    return result.model_dump_json(by_alias=True, indent=2)
