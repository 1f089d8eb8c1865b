"""
Slash commands of the token bag REPL.

One registry holds every command with its usage line and the session
state it needs. The prompt completer, the help screen and the REPL's
autocorrect all read from it, so a command is declared once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches
from enum import Enum
from typing import Any, Callable, TYPE_CHECKING

if TYPE_CHECKING:
    from ..state.manager import BagSessionManager


class CommandCategory(str, Enum):
    """Help sections, in display order."""
    TEST = "Test"
    MODIFIERS = "Modifiers"
    SETUP = "Setup"
    INFO = "Info"
    SYSTEM = "System"


CommandHandler = Callable[["BagSessionManager", list[str]], Any]
SessionCheck = Callable[["BagSessionManager"], bool]


# -----------------------------------------------------------------------------
# Session checks
# -----------------------------------------------------------------------------

def always_available(manager: "BagSessionManager") -> bool:
    return True


def can_draw(manager: "BagSessionManager") -> bool:
    return manager.session.can_draw


def can_risk(manager: "BagSessionManager") -> bool:
    return manager.session.can_activate_risk


def has_black_drawn(manager: "BagSessionManager") -> bool:
    """Some effect is still claimable and a drawn black is there to pay for it."""
    return any(manager.snapshot().can_spend.values())


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

@dataclass
class Command:
    """A slash command and the session state it needs."""
    name: str                                   # "/draw"
    description: str
    category: CommandCategory
    handler: CommandHandler | None = None
    usage: str = ""                             # Argument synopsis, e.g. "[count]"
    available_when: SessionCheck = always_available
    aliases: list[str] = field(default_factory=list)

    @property
    def synopsis(self) -> str:
        return f"{self.name} {self.usage}".strip()

    def is_available(self, manager: "BagSessionManager") -> bool:
        return self.available_when(manager)


class CommandRegistry:
    """Commands by name, with aliases resolving to the same entry."""

    def __init__(self):
        self._commands: dict[str, Command] = {}
        self._aliases: dict[str, str] = {}

    def register(self, command: Command) -> None:
        """Add or replace a command."""
        self._commands[command.name] = command
        for alias in command.aliases:
            self._aliases[alias] = command.name

    def get(self, name: str) -> Command | None:
        return self._commands.get(self._aliases.get(name, name))

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def all_commands(self) -> list[Command]:
        """Commands in registration order, aliases not repeated."""
        return list(self._commands.values())

    def available_commands(self, manager: "BagSessionManager") -> list[Command]:
        return [c for c in self._commands.values() if c.is_available(manager)]

    def by_category(
        self,
        manager: "BagSessionManager | None" = None,
    ) -> dict[CommandCategory, list[Command]]:
        """Commands per help section, sorted by name. Empty sections are kept."""
        sections: dict[CommandCategory, list[Command]] = {cat: [] for cat in CommandCategory}
        commands = self.available_commands(manager) if manager else self.all_commands()
        for cmd in sorted(commands, key=lambda c: c.name):
            sections[cmd.category].append(cmd)
        return sections

    def complete(
        self,
        prefix: str,
        manager: "BagSessionManager | None" = None,
    ) -> list[Command]:
        """
        Commands whose name starts with the typed prefix.

        With a manager, commands the current test cannot use right now
        (e.g. /risk before the base draws are done) are left out.
        """
        prefix = prefix.lower()
        if not prefix.startswith("/"):
            prefix = "/" + prefix
        commands = self.available_commands(manager) if manager else self.all_commands()
        return sorted(
            (c for c in commands if c.name.startswith(prefix)),
            key=lambda c: c.name,
        )

    def autocorrect(self, typed: str) -> tuple[str, str | None]:
        """
        Resolve a mistyped command name.

        An unambiguous prefix wins ("/dra" -> "/draw"); otherwise the
        closest spelling, if close enough ("/drwa" -> "/draw").

        Returns:
            (command_name, message); the message is None when the input
            was already a command, or names the candidates when the
            prefix is ambiguous.
        """
        if typed in self:
            return typed, None

        candidates = self.complete(typed)
        if len(candidates) == 1:
            name = candidates[0].name
            return name, f"Autocorrected to {name}"
        if candidates:
            names = ", ".join(c.name for c in candidates)
            return typed, f"Ambiguous command {typed}: {names}"

        close = get_close_matches(typed, list(self._commands), n=1, cutoff=0.6)
        if close:
            return close[0], f"Autocorrected to {close[0]}"
        return typed, None


_registry: CommandRegistry | None = None


def get_registry() -> CommandRegistry:
    """Shared registry used by the REPL."""
    global _registry
    if _registry is None:
        _registry = CommandRegistry()
    return _registry


def reset_registry() -> None:
    """Drop the shared registry. Used by tests."""
    global _registry
    _registry = None


def register_command(
    name: str,
    description: str,
    category: CommandCategory,
    handler: CommandHandler,
    usage: str = "",
    available_when: SessionCheck = always_available,
    aliases: list[str] | None = None,
) -> Command:
    """Declare a command on the shared registry."""
    command = Command(
        name=name,
        description=description,
        category=category,
        handler=handler,
        usage=usage,
        available_when=available_when,
        aliases=aliases or [],
    )
    get_registry().register(command)
    return command


# -----------------------------------------------------------------------------
# prompt_toolkit completer
# -----------------------------------------------------------------------------

def create_completer(manager_ref: Callable[[], "BagSessionManager"] | None = None):
    """
    Completer offering the commands usable in the current test.

    Args:
        manager_ref: Returns the live manager, so availability tracks the
                     session as it changes between prompts.
    """
    from prompt_toolkit.completion import Completer, Completion

    class BagCommandCompleter(Completer):
        def get_completions(self, document, complete_event):
            text = document.text_before_cursor.lstrip()
            # Command names only; arguments are free text
            if not text.startswith("/") or " " in text:
                return

            manager = manager_ref() if manager_ref else None
            for cmd in get_registry().complete(text, manager):
                yield Completion(
                    cmd.name,
                    start_position=-len(text),
                    display=cmd.synopsis,
                    display_meta=cmd.description,
                )

    return BagCommandCompleter()
