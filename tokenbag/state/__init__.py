"""State for token bag sessions."""

from .schema import (
    Token,
    SpendEffect,
    DifficultyTier,
    DIFFICULTY_TIERS,
    RuleConfig,
    DrawnToken,
    SessionSnapshot,
    clamp_int,
)
from .bag import BagModel
from .event_bus import (
    EventBus,
    EventType,
    GameEvent,
)

__all__ = [
    # Schema
    "Token",
    "SpendEffect",
    "DifficultyTier",
    "DIFFICULTY_TIERS",
    "RuleConfig",
    "DrawnToken",
    "SessionSnapshot",
    "clamp_int",
    # Bag
    "BagModel",
    # Event Bus
    "EventBus",
    "EventType",
    "GameEvent",
]
