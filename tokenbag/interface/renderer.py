"""
Display and rendering helpers for the token bag CLI.

Handles theming, the banner, the bag/draw panel and odds tables.
"""

from __future__ import annotations

from fractions import Fraction
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from prompt_toolkit.styles import Style as PTStyle

from ..rules.difficulty import preview
from ..state.schema import SessionSnapshot, SpendEffect
from .glyphs import g, token_glyph, draw_meter

if TYPE_CHECKING:
    from ..state.manager import BagSessionManager
    from ..tools.odds import SimulationResult
    from .command_registry import CommandRegistry


# Shared console instance
console = Console()

THEME = {
    "primary": "steel_blue",
    "secondary": "grey70",
    "warning": "dark_goldenrod",
    "danger": "dark_red",
    "accent": "cyan",
    "dim": "dim",
    "text": "grey85",
    "white_token": "bold grey93",
    "black_token": "bold grey42",
}

# Prompt toolkit style to match theme
pt_style = PTStyle.from_dict({
    "completion-menu.completion": "bg:#1e3a5f #c0c0c0",
    "completion-menu.completion.current": "bg:#3a6a9f #ffffff bold",
    "completion-menu.meta.completion": "bg:#1e3a5f #808080",
    "completion-menu.meta.completion.current": "bg:#3a6a9f #c0c0c0",
})

SPEND_LABELS = {
    SpendEffect.ADRENALINE: "Adrenaline",
    SpendEffect.CONFUSION: "Confusion",
}


def show_banner() -> None:
    """Display the title banner."""
    text = Text()
    text.append(f"  {g('white')} {g('black')}  ", style=f"bold {THEME['primary']}")
    text.append("T O K E N   B A G", style=f"bold {THEME['accent']}")
    text.append("\n      white = success, black = complication", style=THEME["dim"])
    console.print(text)


def format_odds(p: Fraction | float) -> str:
    return f"{float(p) * 100:.1f}%"


def render_drawn(snapshot: SessionSnapshot) -> Text:
    """Draw history as a row of token glyphs."""
    text = Text()
    if not snapshot.drawn:
        text.append("No draws yet.", style=THEME["dim"])
        return text
    for entry in snapshot.drawn:
        style = THEME["white_token"] if entry.is_white else THEME["black_token"]
        text.append(token_glyph(entry), style=style)
        text.append(" ")
    return text


def render_snapshot(snapshot: SessionSnapshot, base_limit: int | None = None) -> Panel:
    """Build the bag panel: remaining tokens, draws, outcome, modifiers."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value", style=THEME["secondary"])

    if snapshot.bag_hidden:
        bag_text = f"{g('hidden')} hidden {g('confusion')}"
    else:
        bag_text = (
            f"{g('white')} {snapshot.white_remaining}  "
            f"{g('black')} {snapshot.black_remaining}  "
            f"({snapshot.remaining} left)"
        )
    table.add_row("Bag", bag_text)

    meter = draw_meter(snapshot.draws_made, snapshot.draw_limit, base_limit)
    table.add_row("Draws", f"{meter} {snapshot.draws_made}/{snapshot.draw_limit}")
    table.add_row("Drawn", render_drawn(snapshot))

    if snapshot.success:
        outcome = f"[{THEME['accent']}]{g('success')} success[/{THEME['accent']}]"
        if snapshot.extra_successes:
            outcome += f" [{THEME['dim']}](+{snapshot.extra_successes} extra)[/{THEME['dim']}]"
    elif snapshot.drawn:
        outcome = f"[{THEME['danger']}]{g('failure')} no white drawn[/{THEME['danger']}]"
    else:
        outcome = f"[{THEME['dim']}]-[/{THEME['dim']}]"
    table.add_row("Outcome", outcome)
    table.add_row("Complications", str(snapshot.complications))

    flags = []
    if snapshot.risk_active:
        flags.append(f"[{THEME['warning']}]{g('risk')} risk[/{THEME['warning']}]")
    if snapshot.confusion_active:
        flags.append(f"[{THEME['warning']}]{g('confusion')} confused[/{THEME['warning']}]")
    if snapshot.confusion_pending:
        flags.append(f"[{THEME['dim']}]confusion armed for next test[/{THEME['dim']}]")
    for effect in snapshot.claimed:
        flags.append(f"{SPEND_LABELS[effect]} {g('claimed')}")
    if flags:
        table.add_row("Modifiers", "  ".join(flags))

    hints = []
    if snapshot.can_activate_risk:
        hints.append("/risk")
    hints.extend(
        f"/spend {effect}" for effect, allowed in snapshot.can_spend.items() if allowed
    )
    if hints:
        table.add_row("Available", f"[{THEME['dim']}]{'  '.join(hints)}[/{THEME['dim']}]")
    if not snapshot.can_draw and snapshot.drawn:
        table.add_row("", f"[{THEME['dim']}]Drawing over: limit reached or bag empty.[/{THEME['dim']}]")

    return Panel(
        table,
        title=f"[bold {THEME['primary']}]Bag[/bold {THEME['primary']}]",
        subtitle=f"[{THEME['dim']}]{snapshot.phase}[/{THEME['dim']}]",
        border_style=THEME["primary"],
    )


def show_status(manager: "BagSessionManager") -> None:
    """Show configuration and the current bag."""
    config = manager.config
    console.print(
        f"[{THEME['dim']}]Next test:[/{THEME['dim']}] {preview(config)} "
        f"[{THEME['dim']}]limit {config.base_draw_limit}[/{THEME['dim']}]"
    )
    console.print(render_snapshot(manager.snapshot(), manager.session.base_limit))


def show_odds(
    white: int,
    black: int,
    draws: int,
    distribution: dict,
    success: Fraction,
    simulated: "SimulationResult | None" = None,
    expected: tuple[Fraction, Fraction] | None = None,
) -> None:
    """Show exact odds for a composition, optionally with a simulation."""
    table = Table(
        title=f"[bold {THEME['primary']}]{white}W + {black}B, {draws} draws[/bold {THEME['primary']}]",
    )
    table.add_column("Whites", justify="right")
    table.add_column("Chance", justify="right", style=THEME["accent"])
    if simulated is not None:
        table.add_column("Simulated", justify="right", style=THEME["dim"])

    for whites, p in sorted(distribution.items()):
        row = [str(whites), format_odds(p)]
        if simulated is not None:
            seen = simulated.white_counts.get(whites, 0)
            row.append(format_odds(seen / simulated.trials if simulated.trials else 0))
        table.add_row(*row)

    console.print(table)
    console.print(
        f"[{THEME['secondary']}]At least one white:[/{THEME['secondary']}] "
        f"[{THEME['accent']}]{format_odds(success)}[/{THEME['accent']}]"
    )
    if expected is not None:
        whites, blacks = expected
        console.print(
            f"[{THEME['dim']}]Expected per test: {float(whites):.2f} white, "
            f"{float(blacks):.2f} black[/{THEME['dim']}]"
        )


def show_help(registry: "CommandRegistry", manager: "BagSessionManager | None" = None) -> None:
    """Show available commands grouped by category."""
    for category, commands in registry.by_category(manager).items():
        if not commands:
            continue
        table = Table(title=category.value, show_header=False, box=None, title_justify="left")
        table.add_column("Command", style=THEME["accent"])
        table.add_column("Description", style=THEME["secondary"])
        for cmd in commands:
            table.add_row(escape(cmd.synopsis), cmd.description)
        console.print(table)
