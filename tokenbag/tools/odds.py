"""
Odds for a token bag test.

Exact values come from the hypergeometric distribution (drawing without
replacement), computed with Fractions so results stay exact. simulate()
runs real TestSessions with a seeded source as a cross-check, and also
covers cases the closed form does not (confusion, risk).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from fractions import Fraction
from math import comb

from ..state.schema import RuleConfig


def _draw_count(white: int, black: int, draws: int) -> int:
    return max(0, min(draws, white + black))


def outcome_distribution(white: int, black: int, draws: int) -> dict[int, Fraction]:
    """
    Probability of drawing exactly w white tokens in `draws` draws.

    Returns:
        Mapping white count -> probability; sums to 1
    """
    white, black = max(0, white), max(0, black)
    k = _draw_count(white, black, draws)
    total_ways = comb(white + black, k)
    return {
        w: Fraction(comb(white, w) * comb(black, k - w), total_ways)
        for w in range(0, min(white, k) + 1)
        if k - w <= black
    }


def success_probability(white: int, black: int, draws: int) -> Fraction:
    """Chance of at least one white token."""
    if white <= 0:
        return Fraction(0)
    return 1 - outcome_distribution(white, black, draws).get(0, Fraction(0))


def expected_successes(white: int, black: int, draws: int) -> Fraction:
    """Expected number of white tokens drawn."""
    white, black = max(0, white), max(0, black)
    total = white + black
    if total == 0:
        return Fraction(0)
    return Fraction(_draw_count(white, black, draws) * white, total)


def expected_complications(white: int, black: int, draws: int) -> Fraction:
    """Expected number of black tokens drawn."""
    white, black = max(0, white), max(0, black)
    total = white + black
    if total == 0:
        return Fraction(0)
    return Fraction(_draw_count(white, black, draws) * black, total)


@dataclass
class SimulationResult:
    """Aggregate of many simulated tests."""
    trials: int
    successes: int = 0
    white_total: int = 0
    black_total: int = 0
    white_counts: Counter = field(default_factory=Counter)

    @property
    def success_rate(self) -> float:
        return self.successes / self.trials if self.trials else 0.0

    @property
    def mean_successes(self) -> float:
        return self.white_total / self.trials if self.trials else 0.0

    @property
    def mean_complications(self) -> float:
        return self.black_total / self.trials if self.trials else 0.0


def simulate(
    config: RuleConfig,
    trials: int = 5000,
    seed: int | None = None,
    confused: bool = False,
    take_risk: bool = False,
) -> SimulationResult:
    """
    Monte Carlo estimate by playing out full tests.

    Args:
        config: Rule inputs for every simulated test
        trials: Number of tests to run
        seed: Seed for reproducible runs
        confused: Start every test under confusion
        take_risk: Activate risk whenever it becomes available

    Returns:
        SimulationResult with rates and white-count histogram
    """
    from ..systems.modifiers import ModifierTracker
    from ..systems.session import TestSession
    from .rng import SeededRandomSource

    session = TestSession(SeededRandomSource(seed))
    modifiers = ModifierTracker()
    result = SimulationResult(trials=max(0, trials))

    for _ in range(result.trials):
        if confused:
            modifiers.arm_confusion()
        session.start_test(config, modifiers)
        while True:
            while session.can_draw:
                session.draw()
            if not (take_risk and session.activate_risk()):
                break

        result.white_counts[session.white_count] += 1
        result.white_total += session.white_count
        result.black_total += session.black_count
        if session.success:
            result.successes += 1

    return result
