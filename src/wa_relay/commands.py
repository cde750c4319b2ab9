"""
Command registry and executor.

execute(registry, args, offset) walks args[offset:] through nested commands
and returns (reply_lines, error). It never raises; the dispatcher turns the
error into a user-visible reply.
"""

import platform
import time
from typing import Callable, Optional

from wa_relay.errors import CommandExecutionError

CommandHandler = Callable[[list[str]], list[str]]


class Command:
    __slots__ = ("name", "help", "handler", "children")

    def __init__(self, name: str, help: str = "", handler: Optional[CommandHandler] = None):
        self.name = name.lower()
        self.help = help
        self.handler = handler
        self.children: dict[str, "Command"] = {}

    def add(self, command: "Command") -> "Command":
        self.children[command.name] = command
        return command

    def __repr__(self) -> str:
        return f"Command(name={self.name!r}, children={sorted(self.children)!r})"


class CommandRegistry:
    def __init__(self) -> None:
        self._root = Command("")

    @property
    def root(self) -> Command:
        return self._root

    def add(self, command: Command) -> Command:
        return self._root.add(command)

    def command(self, name: str, help: str = "") -> Callable[[CommandHandler], CommandHandler]:
        """Decorator registering a top-level command handler."""
        def register(handler: CommandHandler) -> CommandHandler:
            self.add(Command(name, help, handler))
            return handler
        return register

    def get(self, name: str) -> Optional[Command]:
        return self._root.children.get(name.lower())

    def names(self) -> list[str]:
        return sorted(self._root.children)


def usage(command: Command) -> list[str]:
    lines = [f"{name} - {child.help}" if child.help else name for name, child in sorted(command.children.items())]
    return ["Available commands:\n" + "\n".join(lines)] if lines else []


def execute(registry: CommandRegistry, args: list[str], offset: int = 0) -> tuple[list[str], Optional[Exception]]:
    node = registry.root
    pos = offset
    while pos < len(args) and node.children:
        child = node.children.get(args[pos].lower())
        if child is None:
            return usage(node), CommandExecutionError(f"unknown command: {args[pos]}", {"args": args})
        node = child
        pos += 1

    if node.handler is None:
        return usage(node), CommandExecutionError("missing command", {"args": args})

    try:
        return list(node.handler(args[pos:])), None
    except Exception as e:
        return [], CommandExecutionError(f"{node.name}: {e}", {"args": args})


def default_registry(version: str) -> CommandRegistry:
    registry = CommandRegistry()

    @registry.command("help", "list available commands")
    def _help(_args: list[str]) -> list[str]:
        return usage(registry.root)

    @registry.command("ping", "check that the relay is alive")
    def _ping(_args: list[str]) -> list[str]:
        return ["pong"]

    @registry.command("time", "show the relay's local time")
    def _time(_args: list[str]) -> list[str]:
        return [time.strftime("%Y-%m-%d %H:%M:%S %Z")]

    @registry.command("echo", "repeat the given text")
    def _echo(args: list[str]) -> list[str]:
        if not args:
            raise ValueError("nothing to echo")
        return [" ".join(args)]

    @registry.command("version", "show the relay version")
    def _version(_args: list[str]) -> list[str]:
        return [f"wa-relay {version} (python {platform.python_version()})"]

    return registry
