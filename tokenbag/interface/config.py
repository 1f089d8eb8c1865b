"""
User configuration persistence.

Stores front-end preferences (starting rule inputs, glyph style, random
source) in a JSON file. Session state is never written here.
"""

import json
import logging
from pathlib import Path
from typing import TypedDict

from ..state.schema import RuleConfig

logger = logging.getLogger(__name__)


class Config(TypedDict, total=False):
    """User configuration."""
    default_traits: int         # Traits in play for a new session
    default_difficulty: str     # Tier id
    default_draw_limit: int     # Base draw limit (1-4)
    ascii_glyphs: bool          # Plain ASCII tokens for basic terminals
    secure_random: bool         # Cryptographic source (False -> seeded PRNG)


DEFAULT_CONFIG: Config = {
    "default_traits": 3,
    "default_difficulty": "normale",
    "default_draw_limit": 4,
    "ascii_glyphs": False,
    "secure_random": True,
}

CONFIG_FILENAME = ".tokenbag_config.json"


def get_config_path(config_dir: Path | str = ".") -> Path:
    """Get path to config file."""
    return Path(config_dir) / CONFIG_FILENAME


def load_config(config_dir: Path | str = ".") -> Config:
    """Load config from file, or return defaults if missing or unreadable."""
    path = get_config_path(config_dir)

    if not path.exists():
        return DEFAULT_CONFIG.copy()

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return DEFAULT_CONFIG.copy()

    if not isinstance(saved, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return DEFAULT_CONFIG.copy()

    # Merge with defaults to handle missing keys
    config = DEFAULT_CONFIG.copy()
    config.update({k: v for k, v in saved.items() if k in DEFAULT_CONFIG})
    return config


def save_config(config: Config, config_dir: Path | str = ".") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(config_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except OSError as e:
        logger.warning("Could not save config %s: %s", path, e)
        return False


def set_option(key: str, value, config_dir: Path | str = ".") -> Config:
    """Update a single preference and save it."""
    config = load_config(config_dir)
    if key not in DEFAULT_CONFIG:
        raise KeyError(f"Unknown config option: {key}")
    config[key] = value
    save_config(config, config_dir)
    return config


def rule_config_from(config: Config) -> RuleConfig:
    """Build the starting RuleConfig from preferences (values are clamped)."""
    return RuleConfig(
        trait_count=config.get("default_traits", DEFAULT_CONFIG["default_traits"]),
        difficulty_id=config.get("default_difficulty", DEFAULT_CONFIG["default_difficulty"]),
        base_draw_limit=config.get("default_draw_limit", DEFAULT_CONFIG["default_draw_limit"]),
    )
