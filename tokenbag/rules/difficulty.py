"""
Bag composition rules as pure functions.

White tokens come from the traits in play, black tokens from the
difficulty tier or a manual override. Every input is clamped, so these
functions are total.
"""

from __future__ import annotations

from typing import Any

from ..state.schema import (
    DEFAULT_TIER_ID,
    DIFFICULTY_TIERS,
    MAX_MANUAL_BLACKS,
    MAX_TRAITS,
    DifficultyTier,
    RuleConfig,
    clamp_int,
    coerce_tier_id,
)


def get_tier(tier_id: Any) -> DifficultyTier:
    """
    Look up a difficulty tier by id.

    Unknown ids fall back to the middle ("normale") tier.
    """
    wanted = coerce_tier_id(tier_id)
    for tier in DIFFICULTY_TIERS:
        if tier.id == wanted:
            return tier
    # coerce_tier_id only returns known ids
    return next(t for t in DIFFICULTY_TIERS if t.id == DEFAULT_TIER_ID)


def resolve(
    trait_count: Any,
    difficulty_id: Any,
    manual_override: Any = None,
) -> tuple[int, int]:
    """
    Compute the canonical starting composition of a bag.

    Args:
        trait_count: Traits in play (clamped to 0-12)
        difficulty_id: Tier id used when no override is given
        manual_override: Explicit black count (clamped to 0-99), or None

    Returns:
        (white_count, black_count)
    """
    white = clamp_int(trait_count, 0, MAX_TRAITS)
    if manual_override is not None:
        black = clamp_int(manual_override, 0, MAX_MANUAL_BLACKS)
    else:
        black = get_tier(difficulty_id).blacks
    return white, black


def resolve_config(config: RuleConfig) -> tuple[int, int]:
    """Resolve a RuleConfig, honoring its override flag."""
    return resolve(config.trait_count, config.difficulty_id, config.manual_override)


def preview(config: RuleConfig) -> str:
    """Human-readable composition the next test will start with."""
    white, black = resolve_config(config)
    source = "manual" if config.black_override else get_tier(config.difficulty_id).label
    return f"{white} white + {black} black ({source})"
