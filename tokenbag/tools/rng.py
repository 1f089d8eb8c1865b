"""
Random sources for token draws.

All sampling in the engine goes through next_below(bound), which returns
a uniform integer in [0, bound). Live sessions use the operating system's
cryptographic entropy; simulations and tests inject a seeded or scripted
source instead.

Usage:
    rng = SystemRandomSource()
    rng.next_below(6)            # 0..5

    rng = SeededRandomSource(seed=123)   # reproducible
"""

from __future__ import annotations

import random
import secrets
from typing import Iterable, Protocol, runtime_checkable

from ..errors import RandomSourceExhausted


@runtime_checkable
class RandomSource(Protocol):
    """
    Uniform integer source.

    Implementations:
    - SystemRandomSource: cryptographic entropy (production)
    - SeededRandomSource: deterministic PRNG (simulation)
    - ScriptedRandomSource: replays fixed values (testing)
    """

    def next_below(self, bound: int) -> int:
        """Return an integer in [0, bound). Returns 0 for bound <= 0."""
        ...


class SystemRandomSource:
    """Cryptographically sourced randomness via the secrets module."""

    def next_below(self, bound: int) -> int:
        if bound <= 0:
            return 0
        return secrets.randbelow(bound)


class SeededRandomSource:
    """Deterministic source for simulations and reproducible runs."""

    def __init__(self, seed: int | None = None):
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> int | None:
        return self._seed

    def reseed(self, seed: int | None) -> None:
        """Reseed the generator (None -> fresh non-deterministic)."""
        self._seed = seed
        self._rng = random.Random(seed)

    def next_below(self, bound: int) -> int:
        if bound <= 0:
            return 0
        return self._rng.randrange(bound)


class ScriptedRandomSource:
    """
    Replays a fixed sequence of values.

    Each value is reduced modulo the requested bound, so a script of
    [0, 5] against a bag of 3 tokens yields indices 0 and 2.
    """

    def __init__(self, values: Iterable[int]):
        self._values = list(values)
        self._position = 0
        self.calls: list[int] = []  # Bounds requested, in order

    @property
    def remaining(self) -> int:
        return len(self._values) - self._position

    def next_below(self, bound: int) -> int:
        self.calls.append(bound)
        if bound <= 0:
            return 0
        if self._position >= len(self._values):
            raise RandomSourceExhausted(
                f"Script exhausted after {self._position} values"
            )
        value = self._values[self._position]
        self._position += 1
        return value % bound
