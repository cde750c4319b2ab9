"""CLI: wa-relay daemon"""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

console = Console()


def _config(ctx, **overrides):
    from wa_relay.cli.main import _config
    return _config(ctx, **overrides)


def _run(coro):
    from wa_relay.cli.main import _run
    return _run(coro)


@click.command("daemon")
@click.option("--session-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("-t", "--tag", "trigger_tag", default=None, help="Trigger tag commands must start with")
@click.option("--test/--no-test", "test_mode", default=None, help="Only answer in the account's own conversation")
@click.option("--reconnect-time", type=float, default=None, help="Seconds to wait before reconnecting")
@click.option("--reply-delay", type=float, default=None, help="Seconds to wait before each reply")
@click.option("--timeout", type=float, default=None, help="Connection timeout in seconds")
@click.pass_context
def daemon_cmd(ctx: click.Context, session_file: Optional[Path], trigger_tag: Optional[str],
               test_mode: Optional[bool], reconnect_time: Optional[float],
               reply_delay: Optional[float], timeout: Optional[float]):
    """Restore the saved session and answer trigger-tagged messages."""
    cfg = _config(
        ctx,
        session_file=session_file,
        trigger_tag=trigger_tag,
        test_mode=test_mode,
        reconnect_time=reconnect_time,
        reply_delay=reply_delay,
        timeout=timeout,
    )
    if not ctx.obj.get("verbose"):
        logging.getLogger().setLevel(logging.INFO)

    async def _daemon():
        from wa_relay.cli import main
        relay = main.relay_factory(cfg)
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, relay.stop)
            except (NotImplementedError, RuntimeError):
                pass  # not supported on this platform/thread
        console.print(f"[cyan]Relaying '{cfg.trigger_tag}' commands (Ctrl+C to exit)[/cyan]")
        await relay.serve()
        console.print("[dim]Relay stopped.[/dim]")

    _run(_daemon())
