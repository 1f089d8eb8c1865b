"""
Modifier tracker for cross-test effects.

Handles the two kinds of modifier state that outlive a single draw:
- Confusion: armed before a test, consumed when the next test starts.
  That test's trait tokens are randomized instead of guaranteed white.
- Spends: a drawn black token can be converted into a narrative effect
  (adrenaline, confusion). Each effect is usable once per test and
  removes the most recently drawn black from the tally.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..state.schema import DrawnToken, SpendEffect

if TYPE_CHECKING:
    from .session import TestSession

logger = logging.getLogger(__name__)


def coerce_effect(effect: Any) -> SpendEffect | None:
    """Map an effect name to a SpendEffect, or None if unrecognized."""
    if isinstance(effect, SpendEffect):
        return effect
    try:
        return SpendEffect(str(effect).strip().lower())
    except ValueError:
        return None


class ModifierTracker:
    """
    Tracks confusion arming and per-test spend claims.

    Owned by a single session; nothing here is persisted.
    """

    def __init__(self):
        self.confusion_pending = False
        self.confusion_active = False
        self._claimed: set[SpendEffect] = set()

    # ─── Confusion ───────────────────────────────────────────────

    def arm_confusion(self) -> None:
        """Arm confusion for the next test."""
        self.confusion_pending = True

    def disarm_confusion(self) -> None:
        self.confusion_pending = False

    def consume_confusion(self) -> bool:
        """
        Consume a pending confusion arm.

        Returns:
            True if confusion was armed (and is now active for this test)
        """
        armed = self.confusion_pending
        self.confusion_pending = False
        self.confusion_active = armed
        if armed:
            logger.debug("Confusion consumed for this test")
        return armed

    def begin_test(self) -> bool:
        """Reset per-test state and consume confusion. Returns confusion flag."""
        self.clear_claims()
        return self.consume_confusion()

    # ─── Spends ──────────────────────────────────────────────────

    def is_claimed(self, effect: Any) -> bool:
        kind = coerce_effect(effect)
        return kind is not None and kind in self._claimed

    def claimed_effects(self) -> list[SpendEffect]:
        """Claimed effects in declaration order."""
        return [e for e in SpendEffect if e in self._claimed]

    def can_spend(self, effect: Any, session: "TestSession") -> bool:
        """Check whether a black token can be spent on this effect now."""
        kind = coerce_effect(effect)
        if kind is None:
            return False
        return session.complications > 0 and kind not in self._claimed

    def spend(self, effect: Any, session: "TestSession") -> DrawnToken | None:
        """
        Spend the most recently drawn black token on an effect.

        No-op when the effect is unknown, already claimed this test,
        or no drawn black token is left.

        Returns:
            The removed token entry, or None if nothing was spent
        """
        kind = coerce_effect(effect)
        if kind is None or not self.can_spend(kind, session):
            logger.debug("Spend %r ignored", effect)
            return None

        removed = session.remove_last_black()
        if removed is None:
            return None

        self._claimed.add(kind)
        logger.debug("Spent a black token on %s", kind.value)
        return removed

    def clear_claims(self) -> None:
        self._claimed.clear()

    def reset(self) -> None:
        """Forget everything: no confusion armed or active, no claims."""
        self.confusion_pending = False
        self.confusion_active = False
        self._claimed.clear()
