"""
Pydantic models for token bag state.

Tokens, difficulty tiers, rule configuration and the read-only snapshot
handed to front ends. Every numeric input is coerced into range before
validation, so building a model from user input never raises.
"""

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# -----------------------------------------------------------------------------
# Limits
# -----------------------------------------------------------------------------

MAX_TRAITS = 12
MAX_MANUAL_BLACKS = 99
MIN_DRAW_LIMIT = 1
MAX_DRAW_LIMIT = 4
RISK_DRAW_LIMIT = 5

DEFAULT_TRAITS = 3
DEFAULT_MANUAL_BLACKS = 3
DEFAULT_DRAW_LIMIT = 4
DEFAULT_TIER_ID = "normale"


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class Token(str, Enum):
    WHITE = "W"    # Success marker
    BLACK = "B"    # Complication marker


class SpendEffect(str, Enum):
    """Single-use conversions of a drawn black token."""
    ADRENALINE = "adrenaline"
    CONFUSION = "confusion"


# -----------------------------------------------------------------------------
# Difficulty tiers
# -----------------------------------------------------------------------------

class DifficultyTier(BaseModel):
    """A named preset mapping to a fixed black-token count."""
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    blacks: int


# Ordered easiest to hardest
DIFFICULTY_TIERS: tuple[DifficultyTier, ...] = (
    DifficultyTier(id="facilissima", label="Facilissima", blacks=1),
    DifficultyTier(id="facile", label="Facile", blacks=2),
    DifficultyTier(id="normale", label="Normale", blacks=3),
    DifficultyTier(id="difficile", label="Difficile", blacks=4),
    DifficultyTier(id="difficilissima", label="Difficilissima", blacks=5),
    DifficultyTier(id="quasi_impossibile", label="Quasi impossibile", blacks=6),
)

TIER_IDS: tuple[str, ...] = tuple(t.id for t in DIFFICULTY_TIERS)


# -----------------------------------------------------------------------------
# Coercion
# -----------------------------------------------------------------------------

def clamp_int(value: Any, lo: int, hi: int) -> int:
    """
    Coerce any value into an integer in [lo, hi].

    Non-numeric and non-finite values count as 0, fractions truncate
    toward zero. Numeric strings are parsed. Integers of any size clamp
    directly. Never raises.
    """
    if isinstance(value, int):
        return max(lo, min(hi, value))
    if isinstance(value, str):
        try:
            return max(lo, min(hi, int(value.strip())))
        except ValueError:
            pass
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        number = 0.0
    if not math.isfinite(number):
        number = 0.0
    return max(lo, min(hi, int(number)))


def coerce_flag(value: Any) -> bool:
    """Lenient boolean parsing for toggles coming from text input."""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on", "y")
    return bool(value)


def coerce_tier_id(value: Any) -> str:
    """Normalize a tier id, falling back to the middle tier when unknown."""
    if isinstance(value, DifficultyTier):
        return value.id
    tier_id = str(value).strip().lower().replace(" ", "_") if value is not None else ""
    return tier_id if tier_id in TIER_IDS else DEFAULT_TIER_ID


# -----------------------------------------------------------------------------
# Core Models
# -----------------------------------------------------------------------------

class RuleConfig(BaseModel):
    """Declarative inputs for one test's bag composition."""
    model_config = ConfigDict(validate_assignment=True)

    trait_count: int = DEFAULT_TRAITS           # Traits in play -> white tokens
    difficulty_id: str = DEFAULT_TIER_ID
    black_override: bool = False                # Use manual_blacks instead of the tier
    manual_blacks: int = DEFAULT_MANUAL_BLACKS
    base_draw_limit: int = DEFAULT_DRAW_LIMIT

    @field_validator("trait_count", mode="before")
    @classmethod
    def _clamp_traits(cls, v: Any) -> int:
        return clamp_int(v, 0, MAX_TRAITS)

    @field_validator("manual_blacks", mode="before")
    @classmethod
    def _clamp_manual_blacks(cls, v: Any) -> int:
        return clamp_int(v, 0, MAX_MANUAL_BLACKS)

    @field_validator("base_draw_limit", mode="before")
    @classmethod
    def _clamp_draw_limit(cls, v: Any) -> int:
        return clamp_int(v, MIN_DRAW_LIMIT, MAX_DRAW_LIMIT)

    @field_validator("difficulty_id", mode="before")
    @classmethod
    def _known_tier(cls, v: Any) -> str:
        return coerce_tier_id(v)

    @field_validator("black_override", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return coerce_flag(v)

    @property
    def manual_override(self) -> int | None:
        """Manual black count when the override is enabled, else None."""
        return self.manual_blacks if self.black_override else None


class DrawnToken(BaseModel):
    """One entry of a test's draw history."""
    model_config = ConfigDict(frozen=True)

    token: Token
    during_risk: bool = False                   # Drawn after risk raised the limit

    @property
    def is_white(self) -> bool:
        return self.token == Token.WHITE

    @property
    def is_black(self) -> bool:
        return self.token == Token.BLACK


class SessionSnapshot(BaseModel):
    """Read-only display state for a front end."""
    phase: str
    preview_white: int                          # Composition the next test will use
    preview_black: int

    # Bag counts are None while the bag is hidden (confusion test)
    bag_hidden: bool = False
    white_remaining: int | None = None
    black_remaining: int | None = None
    remaining: int | None = None

    drawn: list[DrawnToken] = Field(default_factory=list)
    successes: int = 0
    extra_successes: int = 0
    complications: int = 0
    success: bool = False

    draws_made: int = 0
    draw_limit: int = DEFAULT_DRAW_LIMIT
    can_draw: bool = False
    can_activate_risk: bool = False
    risk_active: bool = False

    confusion_pending: bool = False
    confusion_active: bool = False
    claimed: list[SpendEffect] = Field(default_factory=list)
    can_spend: dict[str, bool] = Field(default_factory=dict)
