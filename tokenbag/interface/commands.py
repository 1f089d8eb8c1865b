"""
Command handlers for the token bag CLI.

Each command function takes (manager, args) and returns:
- None for normal completion
- "quit" to leave the loop
"""

from __future__ import annotations

from functools import partial
from pathlib import Path

from rich.markup import escape
from rich.table import Table

from ..rules.difficulty import get_tier, preview
from ..state.manager import BagSessionManager
from ..state.schema import DIFFICULTY_TIERS, SpendEffect, coerce_flag
from ..systems.modifiers import coerce_effect
from ..tools.odds import (
    expected_complications,
    expected_successes,
    outcome_distribution,
    simulate,
    success_probability,
)
from .command_registry import (
    CommandCategory,
    can_draw,
    can_risk,
    get_registry,
    has_black_drawn,
    register_command,
)
from .config import load_config, save_config, set_option
from .glyphs import g, set_unicode, token_glyph
from .renderer import THEME, console, show_help, show_odds, show_status


def _warn(message: str) -> None:
    console.print(f"[{THEME['warning']}]{escape(message)}[/{THEME['warning']}]")


def _dim(message: str) -> None:
    console.print(f"[{THEME['dim']}]{escape(message)}[/{THEME['dim']}]")


# -----------------------------------------------------------------------------
# Test Commands
# -----------------------------------------------------------------------------

def cmd_new(manager: BagSessionManager, args: list[str]):
    """Start a new test from the current setup."""
    manager.start_test()
    show_status(manager)


def cmd_redo(manager: BagSessionManager, args: list[str]):
    """Recompose the current test's bag and clear its draws."""
    manager.reset_test()
    show_status(manager)


def cmd_draw(manager: BagSessionManager, args: list[str]):
    """Draw one or more tokens."""
    count = 1
    if args:
        try:
            count = max(1, int(args[0]))
        except ValueError:
            _warn("Usage: /draw [count]")
            return

    drawn = []
    for _ in range(count):
        entry = manager.draw()
        if entry is None:
            break
        drawn.append(entry)

    if not drawn:
        _warn("No draw possible: limit reached or bag empty.")
        return

    console.print(
        f"[{THEME['secondary']}]Drew[/{THEME['secondary']}] "
        + " ".join(token_glyph(e) for e in drawn)
    )
    show_status(manager)


def cmd_risk(manager: BagSessionManager, args: list[str]):
    """Raise the draw limit to 5 for this test."""
    if not manager.activate_risk():
        _warn("Risk is only available right after the base draws, with tokens left.")
        return
    console.print(
        f"[{THEME['warning']}]{g('risk')} Risk taken.[/{THEME['warning']}] "
        f"Limit is now {manager.session.effective_limit}. "
        "Blacks drawn from here belong to the narrator."
    )
    show_status(manager)


# -----------------------------------------------------------------------------
# Modifier Commands
# -----------------------------------------------------------------------------

def cmd_spend(manager: BagSessionManager, args: list[str]):
    """Spend the last drawn black token on an effect."""
    effect = coerce_effect(args[0]) if args else None
    if effect is None:
        options = ", ".join(e.value for e in SpendEffect)
        _warn(f"Usage: /spend <{options}>")
        return

    if not manager.spend(effect):
        if manager.modifiers.is_claimed(effect):
            _warn(f"{effect.value.title()} already claimed this test.")
        else:
            _warn("No drawn black token to spend.")
        return

    console.print(
        f"[{THEME['accent']}]Spent a black token on {effect.value}.[/{THEME['accent']}] "
        f"Complications: {manager.session.complications}"
    )


def cmd_confuse(manager: BagSessionManager, args: list[str]):
    """Arm or disarm confusion for the next test."""
    armed = coerce_flag(args[0]) if args else True
    if manager.arm_confusion(armed):
        console.print(
            f"[{THEME['warning']}]{g('confusion')} Confusion armed.[/{THEME['warning']}] "
            "The next test's trait tokens will be random."
        )
    else:
        _dim("Confusion disarmed.")


# -----------------------------------------------------------------------------
# Setup Commands
# -----------------------------------------------------------------------------

def cmd_traits(manager: BagSessionManager, args: list[str]):
    """Set traits in play."""
    if not args:
        _warn("Usage: /traits <0-12>")
        return
    value = manager.set_traits(args[0])
    _dim(f"Traits in play: {value}")


def cmd_difficulty(manager: BagSessionManager, args: list[str]):
    """Select a difficulty tier, or list them."""
    if not args:
        table = Table(title="Difficulty")
        table.add_column("Id", style=THEME["accent"])
        table.add_column("Tier")
        table.add_column("Blacks", justify="right")
        current = manager.config.difficulty_id
        for tier in DIFFICULTY_TIERS:
            marker = f" {g('arrow')}" if tier.id == current else ""
            table.add_row(tier.id, tier.label + marker, str(tier.blacks))
        console.print(table)
        return

    tier = manager.set_difficulty(" ".join(args))
    if tier.id != " ".join(args).strip().lower().replace(" ", "_"):
        _warn(f"Unknown tier, using {tier.label}.")
    _dim(f"Difficulty: {tier.label} ({tier.blacks} black)")


def cmd_override(manager: BagSessionManager, args: list[str]):
    """Set a manual black count, or turn the override off."""
    if not args:
        _warn("Usage: /override <0-99|off>")
        return
    if args[0].lower() in ("off", "no", "false"):
        manager.set_black_override(False)
        tier = get_tier(manager.config.difficulty_id)
        _dim(f"Override off. Blacks from {tier.label}: {tier.blacks}")
        return
    value = manager.set_black_override(True, args[0])
    _dim(f"Manual blacks: {value}")


def cmd_limit(manager: BagSessionManager, args: list[str]):
    """Set the base draw limit."""
    if not args:
        _warn("Usage: /limit <1-4>")
        return
    value = manager.set_draw_limit(args[0])
    _dim(f"Draw limit for the next test: {value}")


# -----------------------------------------------------------------------------
# Info Commands
# -----------------------------------------------------------------------------

def cmd_odds(manager: BagSessionManager, args: list[str]):
    """Show exact odds for the next test's composition."""
    white, black = manager.preview()
    draws = manager.config.base_draw_limit
    simulated = None
    if args and args[0].lower() in ("sim", "simulate"):
        simulated = simulate(manager.config, trials=5000)
    show_odds(
        white,
        black,
        min(draws, white + black),
        outcome_distribution(white, black, draws),
        success_probability(white, black, draws),
        simulated,
        expected=(
            expected_successes(white, black, draws),
            expected_complications(white, black, draws),
        ),
    )


def cmd_status(manager: BagSessionManager, args: list[str]):
    show_status(manager)


def cmd_help(manager: BagSessionManager, args: list[str]):
    show_help(get_registry())


def cmd_reset(manager: BagSessionManager, args: list[str]):
    """Restore every setting and the bag to defaults."""
    manager.reset_all()
    _dim("Everything reset to defaults.")
    show_status(manager)


def cmd_quit(manager: BagSessionManager, args: list[str]):
    return "quit"

# -----------------------------------------------------------------------------
# Preference Commands
# -----------------------------------------------------------------------------

def cmd_save(manager: BagSessionManager, args: list[str], config_dir: Path | str = "."):
    """Store the current setup as the starting setup of future sessions."""
    config = load_config(config_dir)
    config["default_traits"] = manager.config.trait_count
    config["default_difficulty"] = manager.config.difficulty_id
    config["default_draw_limit"] = manager.config.base_draw_limit
    if not save_config(config, config_dir):
        _warn("Could not save preferences.")
        return
    _dim(f"Saved as default: {preview(manager.config)}, limit {manager.config.base_draw_limit}")


def cmd_ascii(manager: BagSessionManager, args: list[str], config_dir: Path | str = "."):
    """Toggle plain ASCII glyphs and remember the choice."""
    current = load_config(config_dir).get("ascii_glyphs", False)
    enabled = coerce_flag(args[0]) if args else not current
    set_option("ascii_glyphs", enabled, config_dir)
    set_unicode(not enabled)
    _dim(f"ASCII glyphs {'on' if enabled else 'off'} (saved)")


# -----------------------------------------------------------------------------
# Registration
# -----------------------------------------------------------------------------

def register_all_commands() -> None:
    """Declare every command on the shared registry. Safe to call twice."""
    register_command("/new", "Start a new test", CommandCategory.TEST, cmd_new)
    register_command("/redo", "Restart this test with the current setup", CommandCategory.TEST, cmd_redo)
    register_command(
        "/draw", "Draw tokens from the bag", CommandCategory.TEST, cmd_draw,
        usage="[count]", available_when=can_draw, aliases=["/d"],
    )
    register_command(
        "/risk", "Raise the limit to 5 for this test", CommandCategory.TEST, cmd_risk,
        available_when=can_risk,
    )
    register_command(
        "/spend", "Spend a drawn black token", CommandCategory.MODIFIERS, cmd_spend,
        usage="<adrenaline|confusion>", available_when=has_black_drawn,
    )
    register_command(
        "/confuse", "Arm confusion for the next test", CommandCategory.MODIFIERS, cmd_confuse,
        usage="[on|off]",
    )
    register_command(
        "/traits", "Set traits in play (white tokens)", CommandCategory.SETUP, cmd_traits,
        usage="<0-12>",
    )
    register_command(
        "/difficulty", "Pick a difficulty tier", CommandCategory.SETUP, cmd_difficulty,
        usage="[tier]",
    )
    register_command(
        "/override", "Manual black count", CommandCategory.SETUP, cmd_override,
        usage="<0-99|off>",
    )
    register_command("/limit", "Base draw limit", CommandCategory.SETUP, cmd_limit, usage="<1-4>")
    register_command("/odds", "Odds for the next test", CommandCategory.INFO, cmd_odds, usage="[sim]")
    register_command("/status", "Show setup and bag", CommandCategory.INFO, cmd_status)
    register_command("/help", "Show commands", CommandCategory.INFO, cmd_help, aliases=["/?"])
    register_command("/save", "Keep this setup for future sessions", CommandCategory.SYSTEM, cmd_save)
    register_command("/ascii", "Plain ASCII glyphs", CommandCategory.SYSTEM, cmd_ascii, usage="[on|off]")
    register_command("/reset", "Reset everything to defaults", CommandCategory.SYSTEM, cmd_reset)
    register_command("/quit", "Exit", CommandCategory.SYSTEM, cmd_quit, aliases=["/exit", "/q"])


def create_commands(config_dir: Path | str = ".") -> dict:
    """
    Map every command name and alias to its handler.

    Preference commands are bound to the directory holding the config file.
    """
    register_all_commands()
    bound = {
        "/save": partial(cmd_save, config_dir=config_dir),
        "/ascii": partial(cmd_ascii, config_dir=config_dir),
    }
    commands = {}
    for cmd in get_registry().all_commands():
        handler = bound.get(cmd.name, cmd.handler)
        commands[cmd.name] = handler
        for alias in cmd.aliases:
            commands[alias] = handler
    return commands
