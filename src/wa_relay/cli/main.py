"""
wa-relay CLI — `wa-relay` command.

Commands:
  wa-relay login     Pair a new session with a pairing code
  wa-relay daemon    Relay trigger-tagged messages to the command registry
  wa-relay logout    Log the saved session out and remove it
  wa-relay version   Show the version
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
    from rich.markup import escape
except ImportError:
    raise SystemExit("CLI requires extras: pip install wa-relay[cli]")

from wa_relay import __version__
from wa_relay.client import AsyncRelay
from wa_relay.config import RelayConfig, load_config
from wa_relay.errors import RelayError

console = Console()


def setup_logging(verbose: bool = False, level: int = logging.WARNING) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(name)s: %(message)s" if verbose else "%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, console=console, show_path=verbose)],
        force=True,
    )


def relay_factory(cfg: RelayConfig, **kwargs) -> AsyncRelay:
    """Build the relay for a command. Tests swap this for one with a fake transport."""
    return AsyncRelay(cfg, **kwargs)


def _config(ctx: click.Context, **overrides) -> RelayConfig:
    cfg: RelayConfig = ctx.obj["config"]
    try:
        return cfg.with_overrides(**overrides)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _run(coro):
    """Run a coroutine; relay and file errors become a red message and exit status 1."""
    try:
        return asyncio.run(coro)
    except (RelayError, OSError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Config file (default ~/.wa-relay/config.json)")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Optional[Path]):
    """wa-relay — answer chat messages with command output."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = load_config(config_path)


@main.command("version")
def version_cmd():
    """Show the wa-relay version."""
    console.print(f"wa-relay {__version__}")


# Register subcommands from separate modules
from wa_relay.cli.session import login_cmd, logout_cmd
from wa_relay.cli.daemon import daemon_cmd

main.add_command(login_cmd)
main.add_command(logout_cmd)
main.add_command(daemon_cmd)


if __name__ == "__main__":
    main()
