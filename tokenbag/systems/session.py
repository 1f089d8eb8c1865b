"""
Test session: one resolution attempt against the token bag.

Owns the phase state machine for a single test:
    IDLE → IN_PROGRESS → EXHAUSTED
    start_test() always returns to IN_PROGRESS with a fresh bag.

A test is exhausted once the draws reach the effective limit or the bag
runs dry. Risk reopens an exhausted test by raising the limit to 5, but
only right after the base limit has been drawn in full.

Usage:
    session = TestSession(rng)
    session.start_test(RuleConfig(trait_count=3), modifiers)
    while session.can_draw:
        session.draw()
    session.success, session.extra_successes, session.complications
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from ..rules.difficulty import resolve_config
from ..state.bag import BagModel
from ..state.schema import (
    DEFAULT_DRAW_LIMIT,
    RISK_DRAW_LIMIT,
    DrawnToken,
    RuleConfig,
    Token,
)
from ..tools.rng import RandomSource, SystemRandomSource

if TYPE_CHECKING:
    from .modifiers import ModifierTracker

logger = logging.getLogger(__name__)


class TestPhase(str, Enum):
    """Phase state machine for a single test."""
    __test__ = False

    IDLE = "idle"                  # No bag initialized yet
    IN_PROGRESS = "in_progress"    # Draws possible
    EXHAUSTED = "exhausted"        # Limit reached or bag empty


class TestSession:
    """
    Orchestrates a single test: composes the bag, accumulates draws and
    exposes the derived outcome.

    NOT responsible for:
    - Tracking confusion arming or spend claims (ModifierTracker)
    - Publishing events (BagSessionManager)
    """
    __test__ = False

    def __init__(self, rng: RandomSource | None = None):
        self._rng = rng or SystemRandomSource()
        self.bag = BagModel(self._rng)
        self._drawn: list[DrawnToken] = []
        self._draws_made = 0
        self.base_limit = DEFAULT_DRAW_LIMIT
        self.risk_active = False
        self.test_number = 0
        self._phase = TestPhase.IDLE
        self._config: RuleConfig | None = None
        self._confused = False

    @property
    def phase(self) -> TestPhase:
        return self._phase

    @property
    def config(self) -> RuleConfig | None:
        """Configuration the current test was started with."""
        return self._config

    @property
    def confused(self) -> bool:
        """Whether the current bag was composed under confusion."""
        return self._confused

    # ─── Lifecycle ───────────────────────────────────────────────

    def start_test(
        self,
        config: RuleConfig,
        modifiers: "ModifierTracker | None" = None,
    ) -> None:
        """
        Begin a new test with a freshly composed bag.

        Consumes a pending confusion arm, clears draw history, risk and
        spend claims.

        Args:
            config: Rule inputs for this test
            modifiers: Cross-test modifier state, if any
        """
        confused = modifiers.begin_test() if modifiers else False
        self.test_number += 1
        self._begin(config.model_copy(), confused)

    def reset_test(
        self,
        config: RuleConfig | None = None,
        modifiers: "ModifierTracker | None" = None,
    ) -> None:
        """
        Recompose the current test's bag and clear its draws.

        Uses the given configuration, or the one the test started with.
        Does not consume a pending confusion arm; a test that started
        confused is recomposed confused.
        """
        config = config.model_copy() if config is not None else self._config
        if config is None:
            return
        if modifiers:
            modifiers.clear_claims()
        self._begin(config, self._confused)

    def _begin(self, config: RuleConfig, confused: bool) -> None:
        white, black = resolve_config(config)

        if confused:
            # Each trait slot is an independent fair coin
            random_white = sum(1 for _ in range(white) if self._rng.next_below(2) == 0)
            self.bag.initialize(random_white, white - random_white)
            self.bag.add(black=black)
        else:
            self.bag.initialize(white, black)

        self._config = config
        self._confused = confused
        self.base_limit = config.base_draw_limit
        self.risk_active = False
        self._drawn = []
        self._draws_made = 0
        self._phase = TestPhase.IN_PROGRESS
        self._update_phase()

        logger.debug(
            "Test %d started: %d tokens (confused=%s), limit %d",
            self.test_number, self.bag.remaining(), confused, self.base_limit,
        )

    def _update_phase(self) -> None:
        if self._phase == TestPhase.IDLE:
            return
        if self._draws_made >= self.effective_limit or self.bag.is_empty:
            self._phase = TestPhase.EXHAUSTED
        else:
            self._phase = TestPhase.IN_PROGRESS

    # ─── Commands ────────────────────────────────────────────────

    def draw(self) -> DrawnToken | None:
        """
        Draw one token if the test allows it.

        Returns:
            The new history entry, or None when no draw was possible
        """
        if not self.can_draw:
            logger.debug("Draw ignored in phase %s", self._phase.value)
            return None

        token = self.bag.draw_one()
        if token is None:
            self._update_phase()
            return None

        entry = DrawnToken(token=token, during_risk=self._draws_made >= self.base_limit)
        self._drawn.append(entry)
        self._draws_made += 1
        self._update_phase()
        return entry

    def activate_risk(self) -> bool:
        """
        Raise the draw limit to 5 for the rest of this test.

        Returns:
            True if risk was activated, False if not eligible
        """
        if not self.can_activate_risk:
            logger.debug("Risk not available (draws %d/%d)", self._draws_made, self.base_limit)
            return False
        self.risk_active = True
        self._update_phase()
        logger.debug("Risk active, limit now %d", self.effective_limit)
        return True

    def remove_last_black(self) -> DrawnToken | None:
        """Remove the most recently drawn black token from the history."""
        for idx in range(len(self._drawn) - 1, -1, -1):
            if self._drawn[idx].token == Token.BLACK:
                return self._drawn.pop(idx)
        return None

    # ─── Predicates ──────────────────────────────────────────────

    @property
    def effective_limit(self) -> int:
        return RISK_DRAW_LIMIT if self.risk_active else self.base_limit

    @property
    def draws_made(self) -> int:
        """Draws taken this test. Spent tokens still count."""
        return self._draws_made

    @property
    def can_draw(self) -> bool:
        return (
            self._phase == TestPhase.IN_PROGRESS
            and self._draws_made < self.effective_limit
            and self.bag.remaining() > 0
        )

    @property
    def can_activate_risk(self) -> bool:
        return (
            self._phase != TestPhase.IDLE
            and not self.risk_active
            and self.base_limit < RISK_DRAW_LIMIT
            and self._draws_made == self.base_limit
            and self.bag.remaining() > 0
        )

    # ─── Derived outcome ─────────────────────────────────────────

    @property
    def drawn(self) -> tuple[DrawnToken, ...]:
        """Draw history in order."""
        return tuple(self._drawn)

    @property
    def white_count(self) -> int:
        return sum(1 for d in self._drawn if d.is_white)

    @property
    def black_count(self) -> int:
        return sum(1 for d in self._drawn if d.is_black)

    @property
    def success(self) -> bool:
        """One white is enough."""
        return self.white_count >= 1

    @property
    def extra_successes(self) -> int:
        return max(0, self.white_count - 1)

    @property
    def complications(self) -> int:
        return self.black_count

    @property
    def risk_draws(self) -> tuple[DrawnToken, ...]:
        """Tokens drawn after risk raised the limit."""
        return tuple(d for d in self._drawn if d.during_risk)

    @property
    def risk_complications(self) -> int:
        return sum(1 for d in self._drawn if d.during_risk and d.is_black)
