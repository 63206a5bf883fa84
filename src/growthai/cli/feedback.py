"""growthai feedback and evaluation commands."""

from typing import Optional

import typer
from rich.console import Console

from growthai.cli.render import show_evaluation
from growthai.cli.session import SERVER_OPTION, get_console, load, open_workflow, run
from growthai.errors import DuplicateFeedbackError, GatewayError, PreconditionError


def feedback(
    rec_id: str = typer.Argument(
        ...,
        help="Recommendation ID to rate",
    ),
    useful: bool = typer.Option(
        ...,
        "--useful/--not-useful",
        help="Whether the recommendation was useful",
    ),
    server: Optional[str] = SERVER_OPTION,
) -> None:
    """
    Rate a recommendation as useful or not useful.

    Judgments cannot be changed once given. Updated precision metrics are
    shown afterwards.
    """
    console = get_console()
    ok = run(_feedback(load(server), console, rec_id, useful))
    if not ok:
        raise typer.Exit(1)


async def _feedback(config, console: Console, rec_id: str, useful: bool) -> bool:
    async with open_workflow(config, console) as workflow:
        try:
            await workflow.store.load()
        except GatewayError as e:
            console.print(f"[bad]Error:[/bad] {e.display_message('Failed to load recommendations')}")
            return False

        try:
            judgment = await workflow.submit_feedback(rec_id, useful)
        except (DuplicateFeedbackError, PreconditionError) as e:
            console.print(f"[bad]Error:[/bad] {e}")
            return False
        if judgment is None:
            # Already reported through the notifier
            return False

        if workflow.evaluation.metrics is not None:
            show_evaluation(console, workflow.evaluation.summary)
        return True


def evaluation(
    server: Optional[str] = SERVER_OPTION,
) -> None:
    """
    Show precision metrics computed from recommendation feedback.
    """
    console = get_console()
    ok = run(_evaluation(load(server), console))
    if not ok:
        raise typer.Exit(1)


async def _evaluation(config, console: Console) -> bool:
    async with open_workflow(config, console) as workflow:
        summary = await workflow.refresh_evaluation()
    if summary is None:
        return False
    show_evaluation(console, summary)
    return True
