"""
Session manager: the single entry point a front end talks to.

Holds the rule configuration, the current TestSession and the
ModifierTracker for one interactive session, and publishes every state
change on an EventBus.

Usage:
    manager = BagSessionManager()
    manager.set_traits(2)
    manager.set_difficulty("difficile")
    manager.start_test()
    manager.draw()
    manager.snapshot().success
"""

from __future__ import annotations

import logging
from typing import Any

from ..rules.difficulty import get_tier, resolve_config
from ..systems.modifiers import ModifierTracker, coerce_effect
from ..systems.session import TestPhase, TestSession
from ..tools.rng import RandomSource, SystemRandomSource
from .event_bus import EventBus, EventType
from .schema import (
    DifficultyTier,
    DrawnToken,
    RuleConfig,
    SessionSnapshot,
    SpendEffect,
    coerce_flag,
)

logger = logging.getLogger(__name__)


class BagSessionManager:
    """
    Owns all state of one token bag session.

    Setters clamp their inputs and only affect the next test.
    Commands that are not currently allowed are silent no-ops; the
    snapshot's can_* flags tell a front end what to disable.
    """

    def __init__(
        self,
        rng: RandomSource | None = None,
        event_bus: EventBus | None = None,
        config: RuleConfig | None = None,
    ):
        """
        Args:
            rng: Random source for every draw (cryptographic by default)
            event_bus: Bus to publish on (a private one by default)
            config: Starting rule configuration (defaults otherwise)
        """
        self.rng = rng or SystemRandomSource()
        self.bus = event_bus or EventBus()
        self.session = TestSession(self.rng)
        self.modifiers = ModifierTracker()
        self.config = RuleConfig()
        self._reset_state()
        if config is not None:
            self.config = config.model_copy()
            self.session.start_test(self.config, self.modifiers)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def _config_changed(self, field: str, value: Any) -> None:
        logger.debug("Config %s = %r", field, value)
        self.bus.emit(
            EventType.CONFIG_CHANGED,
            test_number=self.session.test_number,
            field=field,
            value=value,
        )

    def set_traits(self, value: Any) -> int:
        """Set traits in play (white tokens). Returns the clamped value."""
        self.config.trait_count = value
        self._config_changed("trait_count", self.config.trait_count)
        return self.config.trait_count

    def set_difficulty(self, tier_id: Any) -> DifficultyTier:
        """Select a difficulty tier. Unknown ids select the middle tier."""
        self.config.difficulty_id = tier_id
        self._config_changed("difficulty_id", self.config.difficulty_id)
        return get_tier(self.config.difficulty_id)

    def set_black_override(self, enabled: Any, value: Any = None) -> int | None:
        """
        Toggle the manual black count.

        Args:
            enabled: Whether the manual count replaces the tier
            value: New manual count (kept as-is when None)

        Returns:
            The effective manual count, or None when disabled
        """
        if value is not None:
            self.config.manual_blacks = value
        self.config.black_override = enabled
        self._config_changed("manual_override", self.config.manual_override)
        return self.config.manual_override

    def set_draw_limit(self, value: Any) -> int:
        """Set the base draw limit (1-4) for the next test."""
        self.config.base_draw_limit = value
        self._config_changed("base_draw_limit", self.config.base_draw_limit)
        return self.config.base_draw_limit

    def arm_confusion(self, armed: Any = True) -> bool:
        """Arm or disarm confusion for the next test."""
        if coerce_flag(armed):
            self.modifiers.arm_confusion()
        else:
            self.modifiers.disarm_confusion()
        self.bus.emit(
            EventType.CONFUSION_ARMED,
            test_number=self.session.test_number,
            armed=self.modifiers.confusion_pending,
        )
        return self.modifiers.confusion_pending

    def preview(self) -> tuple[int, int]:
        """(white, black) the next test will be composed from."""
        return resolve_config(self.config)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def start_test(self) -> None:
        """Compose a fresh bag from the current configuration."""
        self.session.start_test(self.config, self.modifiers)
        if self.session.confused:
            self.bus.emit(EventType.CONFUSION_CONSUMED, test_number=self.session.test_number)
        self._announce_start()

    def reset_test(self) -> None:
        """Redo the current test with the current configuration."""
        if self.session.phase == TestPhase.IDLE:
            self.start_test()
            return
        self.session.reset_test(self.config, self.modifiers)
        self._announce_start()

    def _announce_start(self) -> None:
        number = self.session.test_number
        self.bus.emit(
            EventType.TEST_STARTED,
            test_number=number,
            tokens=self.session.bag.remaining(),
            confused=self.session.confused,
            limit=self.session.base_limit,
        )
        logger.info(
            "Test %d: %d tokens in bag%s",
            number,
            self.session.bag.remaining(),
            " (confused)" if self.session.confused else "",
        )
        if self.session.phase == TestPhase.EXHAUSTED:
            self._announce_exhausted()

    def _announce_exhausted(self) -> None:
        self.bus.emit(
            EventType.TEST_EXHAUSTED,
            test_number=self.session.test_number,
            success=self.session.success,
            successes=self.session.white_count,
            complications=self.session.complications,
        )

    def draw(self) -> DrawnToken | None:
        """Draw one token. Returns None when no draw is possible."""
        entry = self.session.draw()
        if entry is None:
            return None

        self.bus.emit(
            EventType.TOKEN_DRAWN,
            test_number=self.session.test_number,
            token=entry.token.value,
            during_risk=entry.during_risk,
            draws=self.session.draws_made,
            limit=self.session.effective_limit,
        )
        if self.session.phase == TestPhase.EXHAUSTED:
            self._announce_exhausted()
        return entry

    def activate_risk(self) -> bool:
        """Raise this test's limit to 5 after the base draws."""
        if not self.session.activate_risk():
            return False
        self.bus.emit(
            EventType.RISK_ACTIVATED,
            test_number=self.session.test_number,
            limit=self.session.effective_limit,
        )
        return True

    def spend(self, effect: Any) -> bool:
        """Spend the last drawn black token on an effect."""
        removed = self.modifiers.spend(effect, self.session)
        if removed is None:
            return False
        self.bus.emit(
            EventType.BLACK_SPENT,
            test_number=self.session.test_number,
            effect=coerce_effect(effect).value,
            during_risk=removed.during_risk,
            complications=self.session.complications,
        )
        return True

    def can_spend(self, effect: Any) -> bool:
        return self.modifiers.can_spend(effect, self.session)

    def _reset_state(self) -> None:
        self.config = RuleConfig()
        self.modifiers.reset()
        self.session.start_test(self.config, self.modifiers)

    def reset_all(self) -> None:
        """
        Restore defaults: 3 traits, "normale", no override, limit 4,
        no confusion, a fresh 3/3 bag and an empty history.
        """
        self._reset_state()
        self.bus.emit(EventType.SESSION_RESET, test_number=self.session.test_number)
        logger.info("Session reset to defaults")

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def bag_hidden(self) -> bool:
        """Exact counts are secret while a confusion test runs."""
        return self.modifiers.confusion_active

    def snapshot(self) -> SessionSnapshot:
        """Everything a front end needs to render the session."""
        session = self.session
        bag = session.bag
        hidden = self.bag_hidden
        preview_white, preview_black = self.preview()

        return SessionSnapshot(
            phase=session.phase.value,
            preview_white=preview_white,
            preview_black=preview_black,
            bag_hidden=hidden,
            white_remaining=None if hidden else bag.white_remaining,
            black_remaining=None if hidden else bag.black_remaining,
            remaining=None if hidden else bag.remaining(),
            drawn=list(session.drawn),
            successes=session.white_count,
            extra_successes=session.extra_successes,
            complications=session.complications,
            success=session.success,
            draws_made=session.draws_made,
            draw_limit=session.effective_limit,
            can_draw=session.can_draw,
            can_activate_risk=session.can_activate_risk,
            risk_active=session.risk_active,
            confusion_pending=self.modifiers.confusion_pending,
            confusion_active=self.modifiers.confusion_active,
            claimed=self.modifiers.claimed_effects(),
            can_spend={e.value: self.can_spend(e) for e in SpendEffect},
        )
