"""
config.py
=========
Central configuration module for TruthSeeker.

All tunable constants, economy parameters, difficulty tiers, and session
lifetimes live here so they can be adjusted without touching business logic.

Usage:
    from config import ECONOMY_CONFIG, DIFFICULTY_CONFIG, SESSION_CONFIG, ServerConfig
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional


# ---------------------------------------------------------------------------
# Action-point economy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EconomyConfig:
    """
    Parameters of the clue-purchase economy.

    The Nth purchase within one case costs ``N * action_point_step``.

    Attributes:
        base_action_points: Allotment a player starts the first story with.
                            Also the cap applied when carrying points over
                            into a new session for a later story.
        action_point_step:  Cost increment per purchase.
    """
    base_action_points: int = 100
    action_point_step:  int = 10


# ---------------------------------------------------------------------------
# Difficulty tiers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DifficultyTier:
    """
    Attributes:
        clue_multiplier: Share of the initial-clue candidates kept.
        quiz_ratio:      Share of the non-final quiz questions kept.
    """
    clue_multiplier: float
    quiz_ratio:      float


@dataclass(frozen=True)
class DifficultyConfig:
    """Per-difficulty subsampling settings for the case generator."""
    tiers: Dict[str, DifficultyTier] = field(default_factory=lambda: {
        "easy":   DifficultyTier(clue_multiplier=1.0, quiz_ratio=0.3),
        "medium": DifficultyTier(clue_multiplier=0.6, quiz_ratio=0.6),
        "hard":   DifficultyTier(clue_multiplier=0.3, quiz_ratio=1.0),
    })
    default: str = "medium"

    def tier(self, difficulty: Optional[str]) -> DifficultyTier:
        """Return the tier for `difficulty`, falling back to the default tier."""
        return self.tiers.get(difficulty or "", self.tiers[self.default])

    def is_valid(self, difficulty: Optional[str]) -> bool:
        return difficulty in self.tiers


# ---------------------------------------------------------------------------
# Session lifetime
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionConfig:
    """
    Attributes:
        ttl_seconds:            Idle time after which a session is reclaimed.
        sweep_interval_seconds: How often the HTTP service sweeps expired sessions.
        default_player_id:      Progress key used when a caller supplies none.
    """
    ttl_seconds:            float = 24 * 60 * 60
    sweep_interval_seconds: float = 60 * 60
    default_player_id:      str   = "default"


# ---------------------------------------------------------------------------
# Process-level settings (environment driven)
# ---------------------------------------------------------------------------

def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean environment variable; unknown values fall back to default."""
    value = os.getenv(name)
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable; malformed values fall back to default."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class ServerConfig:
    """
    Settings for the entry points (HTTP service, CLI, Streamlit app).

    Attributes:
        host:          Interface the Flask service binds to.
        port:          Port the Flask service listens on.
        debug:         Flask debug mode.
        pool_path:     Optional JSON story pool; the built-in pool is used when unset.
        progress_path: Optional JSON file the CLI persists player progress to.
    """
    host:          str           = "127.0.0.1"
    port:          int           = 3000
    debug:         bool          = False
    pool_path:     Optional[str] = None
    progress_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load settings from ``TRUTH_SEEKER_*`` environment variables."""
        return cls(
            host=os.getenv("TRUTH_SEEKER_HOST", cls.host),
            port=_env_int("TRUTH_SEEKER_PORT", cls.port),
            debug=_env_bool("TRUTH_SEEKER_DEBUG", cls.debug),
            pool_path=os.getenv("TRUTH_SEEKER_POOL_PATH") or None,
            progress_path=os.getenv("TRUTH_SEEKER_PROGRESS_PATH") or None,
        )


# ---------------------------------------------------------------------------
# Singleton instances (import-ready)
# ---------------------------------------------------------------------------

ECONOMY_CONFIG    = EconomyConfig()
DIFFICULTY_CONFIG = DifficultyConfig()
SESSION_CONFIG    = SessionConfig()


# ---------------------------------------------------------------------------
# Store categories
# ---------------------------------------------------------------------------

CORE_CATEGORIES = ("background", "timeline", "physical", "testimonial")
"""
The four evidence categories a store clue can belong to.

Every category present among a case's store candidates yields exactly one
purchasable offer; anything outside this tuple collapses to OTHER_CATEGORY.
"""

OTHER_CATEGORY = "other"

FINAL_QUIZ_TAG = "quiz:final"
"""Tag marking the culprit-identification questions that always close the quiz."""
