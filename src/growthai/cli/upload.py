"""growthai upload and demo commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from growthai.cli.render import show_recommendation_table, show_upload_result
from growthai.cli.session import SERVER_OPTION, get_console, load, open_workflow, run
from growthai.errors import GrowthAIError
from growthai.workflow import WorkflowStateMachine


def upload(
    path: Path = typer.Argument(
        ...,
        help="Meta Ads or Google Ads CSV export",
    ),
    analyze: bool = typer.Option(
        True,
        "--analyze/--no-analyze",
        help="Generate recommendations after a successful upload",
    ),
    server: Optional[str] = SERVER_OPTION,
) -> None:
    """
    Upload and normalize a campaign export.

    The file must be a .csv. After upload, recommendations are generated
    unless --no-analyze is given.
    """
    console = get_console()
    config = load(server)
    if not path.exists():
        console.print(f"[bad]Error:[/bad] File not found: {path}")
        raise typer.Exit(1)

    ok = run(_upload(config, console, path, analyze))
    if not ok:
        raise typer.Exit(1)


def demo(
    analyze: bool = typer.Option(
        True,
        "--analyze/--no-analyze",
        help="Generate recommendations after loading the demo dataset",
    ),
    server: Optional[str] = SERVER_OPTION,
) -> None:
    """
    Load the bundled demo dataset.
    """
    console = get_console()
    ok = run(_upload(load(server), console, None, analyze))
    if not ok:
        raise typer.Exit(1)


async def _upload(config, console: Console, path: Optional[Path], analyze: bool) -> bool:
    async with open_workflow(config, console) as workflow:
        try:
            if path is None:
                result = await workflow.uploads.load_sample()
            else:
                workflow.uploads.select_file(path)
                result = await workflow.uploads.submit()
        except GrowthAIError as e:
            console.print(f"[bad]Error:[/bad] {e}")
            return False

        if result is None:
            return False
        show_upload_result(console, result)

        if analyze:
            return await _analyze(console, workflow)
        return True


async def _analyze(console: Console, workflow: WorkflowStateMachine) -> bool:
    with console.status("Analyzing..."):
        ok = await workflow.analyze()
    if not ok:
        return False

    store = workflow.store
    console.print(f"\nFound {len(store)} optimization opportunities")
    show_recommendation_table(console, store.filtered(), len(store))
    return True
