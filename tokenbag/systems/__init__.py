"""
Test resolution systems.

TestSession runs a single test against the bag; ModifierTracker carries
confusion and spend state across and within tests.
"""

from .session import TestSession, TestPhase
from .modifiers import ModifierTracker, coerce_effect

__all__ = [
    "TestSession",
    "TestPhase",
    "ModifierTracker",
    "coerce_effect",
]
