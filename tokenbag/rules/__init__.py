"""
Game rules as pure functions.

Separates logic from data models for easier testing.
"""

from ..state.schema import clamp_int
from .difficulty import (
    get_tier,
    resolve,
    resolve_config,
    preview,
)

__all__ = [
    "clamp_int",
    "get_tier",
    "resolve",
    "resolve_config",
    "preview",
]
