"""
Glyph system for token bag visual indicators.

Uses Unicode symbols with ASCII fallbacks.
Toggle with set_unicode() based on terminal support.
"""

from __future__ import annotations

from ..state.schema import DrawnToken, Token

USE_UNICODE = True  # Set False for basic terminals


def set_unicode(enabled: bool) -> None:
    global USE_UNICODE
    USE_UNICODE = enabled


def g(name: str) -> str:
    """Get glyph by name, with fallback support."""
    glyphs = GLYPHS_UNICODE if USE_UNICODE else GLYPHS_ASCII
    return glyphs.get(name, "?")


# -----------------------------------------------------------------------------
# Unicode Glyphs (default)
# -----------------------------------------------------------------------------

GLYPHS_UNICODE = {
    # Tokens
    "white": "○",
    "black": "●",
    "hidden": "◌",       # Count unknown (confusion)

    # Draw meter
    "slot_used": "▰",
    "slot_open": "▱",
    "slot_risk": "▲",

    # Outcomes
    "success": "✓",
    "failure": "✗",
    "claimed": "✓",

    # Modifiers
    "risk": "⚠",
    "confusion": "≈",

    # UI
    "bullet": "•",
    "arrow": "→",
}

# -----------------------------------------------------------------------------
# ASCII Fallbacks
# -----------------------------------------------------------------------------

GLYPHS_ASCII = {
    "white": "W",
    "black": "B",
    "hidden": "?",

    "slot_used": "#",
    "slot_open": "-",
    "slot_risk": "^",

    "success": "+",
    "failure": "x",
    "claimed": "*",

    "risk": "!",
    "confusion": "~",

    "bullet": "*",
    "arrow": "->",
}


def token_glyph(entry: DrawnToken | Token) -> str:
    """Glyph for a drawn token; risk draws carry a marker."""
    token = entry.token if isinstance(entry, DrawnToken) else entry
    glyph = g("white") if token == Token.WHITE else g("black")
    if isinstance(entry, DrawnToken) and entry.during_risk:
        glyph += g("risk")
    return glyph


def draw_meter(draws: int, limit: int, base_limit: int | None = None) -> str:
    """Slots used vs. available, risk slots marked past the base limit."""
    base = limit if base_limit is None else base_limit
    slots = []
    for i in range(limit):
        if i < draws:
            slots.append(g("slot_used"))
        elif i >= base:
            slots.append(g("slot_risk"))
        else:
            slots.append(g("slot_open"))
    return "".join(slots)
