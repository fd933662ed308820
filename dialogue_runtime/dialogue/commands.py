"""
Event-trigger dispatcher for dialogue hooks.

Nodes and options carry commands like ``"GiveGold:50"`` or
``"SetFlag:met_mayor"``. The dispatcher splits them at the first colon and
routes the argument to whatever handler the game registered for the name.
It is fire-and-forget: unknown commands and failing handlers are logged,
never raised back into the dialogue flow.

Usage:
    commands = CommandDispatcher()
    commands.register("GiveGold", lambda arg: wallet.add(int(arg)))
    commands.dispatch("GiveGold:50")
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

CommandHandler = Callable[[str], None]

SEPARATOR = ":"


@runtime_checkable
class CommandSink(Protocol):
    """Receives every command that has no registered handler."""

    def dispatch(self, command_name: str, argument: str) -> None:
        ...


def parse_command(command: Optional[str]) -> Optional[tuple[str, str]]:
    """
    Split ``"Name:argument"``.

    Returns:
        (name, argument) with both parts trimmed, argument "" when absent;
        None for an empty command
    """
    if not command or not command.strip():
        return None

    name, _, argument = command.partition(SEPARATOR)
    name = name.strip()
    if not name:
        return None
    return name, argument.strip()


class CommandDispatcher:
    """Name -> handler routing table."""

    def __init__(self, sink: Optional[CommandSink] = None):
        self._handlers: dict[str, CommandHandler] = {}
        self.sink = sink

    def register(self, name: str, handler: CommandHandler) -> None:
        """Route commands called ``name`` to ``handler``; replaces any previous one."""
        if name in self._handlers:
            logger.debug(f"Replacing handler for command {name}")
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def has_handler(self, name: str) -> bool:
        return name in self._handlers

    @property
    def command_names(self) -> list[str]:
        return sorted(self._handlers)

    def dispatch(self, command: Optional[str]) -> bool:
        """
        Parse and route a command string.

        Returns:
            True if a handler or the sink received the command
        """
        parsed = parse_command(command)
        if parsed is None:
            return False

        name, argument = parsed
        handler = self._handlers.get(name)

        try:
            if handler is not None:
                logger.debug(f"Dispatching {name}({argument!r})")
                handler(argument)
                return True
            if self.sink is not None:
                self.sink.dispatch(name, argument)
                return True
        except Exception:
            logger.exception(f"Command {command!r} failed")
            return False

        logger.warning(f"Unknown dialogue command: {name}")
        return False
