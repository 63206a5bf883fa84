# Copyright (c) Syntropy Systems
"""Main CLI entry point for growthai."""

import typer

from growthai.cli.feedback import evaluation, feedback
from growthai.cli.recommendations import benchmark, recommendations
from growthai.cli.session import configure_logging, load
from growthai.cli.settings_cmd import config, theme
from growthai.cli.simulate import simulate
from growthai.cli.upload import demo, upload

app = typer.Typer(
    name="growthai",
    help=(
        "Explainable ad-spend recommendations. Upload campaign data, "
        "simulate impact, rate what helped."
    ),
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Log gateway calls and workflow steps",
    ),
) -> None:
    configure_logging(load(), verbose)


# Register commands
_ = app.command()(upload)
_ = app.command()(demo)
_ = app.command()(recommendations)
_ = app.command()(benchmark)
_ = app.command()(simulate)
_ = app.command()(feedback)
_ = app.command()(evaluation)
_ = app.command()(theme)
_ = app.command()(config)


if __name__ == "__main__":
    app()
