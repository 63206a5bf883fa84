"""growthai recommendations and benchmark commands."""

from typing import Optional

import typer
from rich.console import Console

from growthai.cli.render import show_recommendation, show_recommendation_table
from growthai.cli.session import SERVER_OPTION, get_console, load, open_workflow, run
from growthai.errors import GatewayError
from growthai.store import ALL


def recommendations(
    rec_id: Optional[str] = typer.Argument(
        None,
        help="Recommendation ID to show in full",
    ),
    platform: str = typer.Option(
        ALL,
        "--platform", "-p",
        help="Platform filter (all, meta, google)",
    ),
    rec_type: str = typer.Option(
        ALL,
        "--type", "-t",
        help="Rule type filter (all, fatigue, reallocation)",
    ),
    min_confidence: int = typer.Option(
        0,
        "--min-confidence", "-c",
        min=0,
        max=100,
        help="Minimum confidence in percent",
    ),
    details: bool = typer.Option(
        False,
        "--details",
        help="Include raw recommendation details",
    ),
    server: Optional[str] = SERVER_OPTION,
) -> None:
    """
    List recommendations from the last analysis.

    Without arguments, shows all recommendations as a table.
    With a recommendation ID, shows the full card with supporting research.
    """
    console = get_console()
    ok = run(_recommendations(
        load(server), console, rec_id, platform, rec_type, min_confidence, details,
    ))
    if not ok:
        raise typer.Exit(1)


async def _recommendations(
    config,
    console: Console,
    rec_id: Optional[str],
    platform: str,
    rec_type: str,
    min_confidence: int,
    details: bool,
) -> bool:
    async with open_workflow(config, console) as workflow:
        store = workflow.store
        try:
            await store.load()
        except GatewayError as e:
            console.print(f"[bad]Error:[/bad] {e.display_message('Failed to load recommendations')}")
            return False

        if store.is_empty:
            console.print("[muted]No recommendations yet. Run 'growthai upload' first.[/muted]")
            return True

        if rec_id is not None:
            rec = store.get(rec_id)
            if rec is None:
                console.print(f"[bad]Error:[/bad] Recommendation {rec_id} not found")
                return False
            show_recommendation(console, rec, store.citations(rec), show_details=details)
            return True

        selected = store.filtered(platform, rec_type, min_confidence)
        show_recommendation_table(console, selected, len(store))
        if details:
            for rec in selected:
                show_recommendation(console, rec, store.citations(rec), show_details=True)
        return True


def benchmark(
    benchmark_id: str = typer.Argument(..., help="Benchmark ID"),
    server: Optional[str] = SERVER_OPTION,
) -> None:
    """
    Show a single benchmark citation.
    """
    console = get_console()
    ok = run(_benchmark(load(server), console, benchmark_id))
    if not ok:
        raise typer.Exit(1)


async def _benchmark(config, console: Console, benchmark_id: str) -> bool:
    async with open_workflow(config, console) as workflow:
        try:
            bench = await workflow.store.lookup_benchmark(benchmark_id)
        except GatewayError as e:
            console.print(f"[bad]Error:[/bad] {e}")
            return False

    console.print(f"\n[bold]{bench.title}[/bold] [muted]({bench.year})[/muted]")
    console.print(f"  {bench.key_finding}")
    console.print(f"  [accent]{bench.source}[/accent] {bench.source_url}")
    return True
