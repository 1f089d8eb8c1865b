"""
Token bag resolution engine.

White tokens are successes, black tokens are complications. A bag is
composed per test, drawn without replacement, and read for its outcome.
"""

from .state import (
    Token,
    SpendEffect,
    RuleConfig,
    DrawnToken,
    SessionSnapshot,
    EventBus,
    EventType,
)
from .systems import TestSession, TestPhase, ModifierTracker
from .state.manager import BagSessionManager

__version__ = "0.1.0"

__all__ = [
    "Token",
    "SpendEffect",
    "RuleConfig",
    "DrawnToken",
    "SessionSnapshot",
    "EventBus",
    "EventType",
    "TestSession",
    "TestPhase",
    "ModifierTracker",
    "BagSessionManager",
]
