"""growthai theme and config commands."""

from dataclasses import asdict
from typing import Optional

import typer

from growthai.cli.render import make_console
from growthai.config import (
    find_growthai_dir,
    get_global_config_dir,
    get_settings_path,
    load_config,
    load_settings,
    save_settings,
)


def theme(
    name: Optional[str] = typer.Argument(
        None,
        help="Theme to use: dark or light. Omit to toggle.",
    ),
) -> None:
    """
    Switch between the dark and light display theme.
    """
    path = get_settings_path()
    settings = load_settings(path)

    if name is None:
        settings.theme = "light" if settings.dark else "dark"
    elif name in ("dark", "light"):
        settings.theme = name
    else:
        make_console(settings).print(f"[bad]Error:[/bad] Unknown theme '{name}' (use dark or light)")
        raise typer.Exit(1)

    save_settings(settings, path)
    make_console(settings).print(f"Theme set to [accent]{settings.theme}[/accent]")


def config() -> None:
    """
    Show the effective configuration.
    """
    settings = load_settings(get_settings_path())
    console = make_console(settings)
    cfg = load_config()

    source = find_growthai_dir() or get_global_config_dir()
    console.print(f"\n[bold]Configuration[/bold] [muted]({source})[/muted]")
    for key, value in asdict(cfg).items():
        console.print(f"  [muted]{key}:[/muted] {value}")
    console.print(f"  [muted]gateway:[/muted] {cfg.base_url}")
    console.print(f"  [muted]theme:[/muted] {settings.theme}")
