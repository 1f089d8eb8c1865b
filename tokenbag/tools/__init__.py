"""Randomness and odds helpers."""

from .rng import (
    RandomSource,
    SystemRandomSource,
    SeededRandomSource,
    ScriptedRandomSource,
)

__all__ = [
    "RandomSource",
    "SystemRandomSource",
    "SeededRandomSource",
    "ScriptedRandomSource",
]
