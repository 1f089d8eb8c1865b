"""
The token bag: a reservoir of white and black tokens drawn without replacement.

The bag is two counters. Each draw picks an index uniformly over the
tokens still inside, so the chance of white is recomputed from the
current counts every time.
"""

from __future__ import annotations

import logging

from ..errors import BagInvariantError
from ..tools.rng import RandomSource, SystemRandomSource
from .schema import Token

logger = logging.getLogger(__name__)


class BagModel:
    """Current reservoir for one test."""

    def __init__(self, rng: RandomSource | None = None, white: int = 0, black: int = 0):
        self._rng = rng or SystemRandomSource()
        self._white = 0
        self._black = 0
        self.initialize(white, black)

    @property
    def white_remaining(self) -> int:
        return self._white

    @property
    def black_remaining(self) -> int:
        return self._black

    @property
    def is_empty(self) -> bool:
        return self.remaining() == 0

    def remaining(self) -> int:
        """Tokens not yet drawn."""
        return self._white + self._black

    def initialize(self, white: int, black: int) -> None:
        """Set both counts. Callers clamp inputs; negatives are a fault."""
        self._check(white, black)
        self._white = white
        self._black = black

    def add(self, white: int = 0, black: int = 0) -> None:
        """Put extra tokens in the bag while composing a test."""
        self._check(self._white + white, self._black + black)
        self._white += white
        self._black += black

    def draw_one(self) -> Token | None:
        """
        Draw one token without replacement.

        Returns:
            The drawn token, or None if the bag is empty (no mutation).
        """
        total = self.remaining()
        if total == 0:
            return None

        r = self._rng.next_below(total)
        if r < self._white:
            self._white -= 1
            token = Token.WHITE
        else:
            self._black -= 1
            token = Token.BLACK

        self._check(self._white, self._black)
        logger.debug(
            "Drew %s (index %d of %d), left W=%d B=%d",
            token.value, r, total, self._white, self._black,
        )
        return token

    @staticmethod
    def _check(white: int, black: int) -> None:
        if white < 0 or black < 0:
            raise BagInvariantError(white, black)

    def __repr__(self) -> str:
        return f"BagModel(white={self._white}, black={self._black})"
