"""growthai simulate command."""

from typing import Optional

import typer
from rich.console import Console

from growthai.cli.render import show_simulation
from growthai.cli.session import SERVER_OPTION, get_console, load, open_workflow, run
from growthai.errors import GatewayError, PreconditionError


def simulate(
    rec_id: str = typer.Argument(
        ...,
        help="Recommendation ID to simulate",
    ),
    server: Optional[str] = SERVER_OPTION,
) -> None:
    """
    Simulate the impact of acting on a recommendation.

    Fatigue recommendations simulate a creative refresh of the campaign;
    reallocation recommendations simulate moving budget away from the
    low-return campaign.
    """
    console = get_console()
    ok = run(_simulate(load(server), console, rec_id))
    if not ok:
        raise typer.Exit(1)


async def _simulate(config, console: Console, rec_id: str) -> bool:
    async with open_workflow(config, console) as workflow:
        try:
            await workflow.store.load()
            with console.status("Running bootstrap simulation..."):
                view = await workflow.simulate(rec_id)
        except (GatewayError, PreconditionError) as e:
            console.print(f"[bad]Error:[/bad] {e}")
            return False

        if view.target is not None:
            console.print(
                f"[bold]Impact Simulation[/bold] [muted]{view.target.action} on "
                f"{view.target.campaign_name}[/muted]"
            )
        show_simulation(console, view)
        ok = view.state == "complete"
        workflow.close_simulation()
        return ok
