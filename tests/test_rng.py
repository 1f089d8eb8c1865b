"""Tests for random sources."""

import pytest

from tokenbag.errors import RandomSourceExhausted
from tokenbag.tools.rng import (
    RandomSource,
    ScriptedRandomSource,
    SeededRandomSource,
    SystemRandomSource,
)


class TestSystemRandomSource:

    def test_values_in_range(self):
        rng = SystemRandomSource()
        for bound in (1, 2, 6, 111):
            for _ in range(100):
                assert 0 <= rng.next_below(bound) < bound

    def test_non_positive_bound_returns_zero(self):
        rng = SystemRandomSource()
        assert rng.next_below(0) == 0
        assert rng.next_below(-5) == 0

    def test_all_values_reachable(self):
        """Every index of a small bound shows up eventually."""
        rng = SystemRandomSource()
        seen = {rng.next_below(3) for _ in range(500)}
        assert seen == {0, 1, 2}

    def test_satisfies_protocol(self):
        assert isinstance(SystemRandomSource(), RandomSource)
        assert isinstance(SeededRandomSource(1), RandomSource)
        assert isinstance(ScriptedRandomSource([]), RandomSource)


class TestSeededRandomSource:

    def test_same_seed_same_sequence(self):
        a = SeededRandomSource(42)
        b = SeededRandomSource(42)
        assert [a.next_below(10) for _ in range(20)] == [b.next_below(10) for _ in range(20)]

    def test_reseed_restarts_sequence(self):
        rng = SeededRandomSource(5)
        first = [rng.next_below(100) for _ in range(5)]
        rng.reseed(5)
        assert [rng.next_below(100) for _ in range(5)] == first
        assert rng.seed == 5

    def test_non_positive_bound_returns_zero(self):
        assert SeededRandomSource(1).next_below(0) == 0


class TestScriptedRandomSource:

    def test_values_reduced_modulo_bound(self):
        rng = ScriptedRandomSource([7, 2])
        assert rng.next_below(5) == 2
        assert rng.next_below(5) == 2
        assert rng.calls == [5, 5]

    def test_exhausted_script_raises(self):
        rng = ScriptedRandomSource([1])
        rng.next_below(3)
        with pytest.raises(RandomSourceExhausted):
            rng.next_below(3)

    def test_zero_bound_does_not_consume(self):
        rng = ScriptedRandomSource([1])
        assert rng.next_below(0) == 0
        assert rng.remaining == 1

