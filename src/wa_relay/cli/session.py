"""CLI: wa-relay login|logout"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from wa_relay.client import AsyncRelay

console = Console()


def _config(ctx, **overrides):
    from wa_relay.cli.main import _config
    return _config(ctx, **overrides)


def _run(coro):
    from wa_relay.cli.main import _run
    return _run(coro)


def _make_relay(cfg, **kwargs) -> AsyncRelay:
    from wa_relay.cli import main
    return main.relay_factory(cfg, **kwargs)


def show_pairing_code(code: str) -> None:
    console.print(Panel(
        f"[bold]{code}[/bold]",
        title="Pairing code",
        subtitle="Linked devices → Link a device",
        expand=False,
    ))


@click.command("login")
@click.option("--session-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--timeout", type=float, default=None, help="Connection timeout in seconds")
@click.pass_context
def login_cmd(ctx: click.Context, session_file: Optional[Path], timeout: Optional[float]):
    """Pair a new session using a pairing code."""
    cfg = _config(ctx, session_file=session_file, timeout=timeout)

    async def _login():
        relay = _make_relay(cfg, pairing_display=show_pairing_code)
        try:
            bundle = await relay.login()
        finally:
            await relay.close()
        console.print(f"[green]Logged in as {bundle.wid}[/green]")
        console.print(f"[dim]Session saved to {cfg.session_file}[/dim]")

    _run(_login())


@click.command("logout")
@click.option("--session-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--timeout", type=float, default=None, help="Connection timeout in seconds")
@click.pass_context
def logout_cmd(ctx: click.Context, session_file: Optional[Path], timeout: Optional[float]):
    """Log out the saved session and remove its credentials."""
    cfg = _config(ctx, session_file=session_file, timeout=timeout)

    async def _logout():
        relay = _make_relay(cfg)
        try:
            await relay.logout()
        finally:
            await relay.close()
        console.print("[green]Logged out.[/green]")

    _run(_logout())
