"""
agent_base.py – Shared interface for every adaptive opponent.

Each game session owns exactly one agent instance.  The game feeds it
observations every tick/turn, applies the returned decision and reports
outcomes back; the agent never touches the game or another agent.

    decide(observation)  → decision (never raises; falls back when unsure)
    observe(outcome)     → update learned structures
    get_insights()       → read-only display snapshot
    detected_patterns()  → human-readable tags for the profile
    summary()            → numeric summary for the profile
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from settings import WHITE

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Insight (display record)
# ══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Insight:
    """One line of the "AI learning" panel."""

    label: str
    value: str
    ratio: float | None = None          # optional bar fill, 0.0–1.0
    color: tuple[int, int, int] = WHITE

    def __post_init__(self):
        if self.ratio is not None:
            object.__setattr__(self, "ratio", clamp(self.ratio, 0.0, 1.0))


def clamp(value: float, low: float, high: float) -> float:
    """Clamp *value* into [low, high]."""
    return max(low, min(high, value))


def stored_number(patterns: Any, key: str, default: float) -> float:
    """Read a numeric entry from stored profile pattern data.

    Anything missing, malformed or non-finite (JSON allows Infinity/NaN)
    yields *default*.
    """
    if not isinstance(patterns, dict):
        return default
    return finite_number(patterns.get(key, default), default)


def finite_number(value: Any, default: float) -> float:
    """*value* as a finite float, or *default*."""
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


# ══════════════════════════════════════════════════════════
#  Agent interface
# ══════════════════════════════════════════════════════════

class AdaptiveAgent(ABC):
    """Base class for the five arena opponents."""

    #: profile key of the game this agent plays
    game_id: str = ""

    @abstractmethod
    def decide(self, observation):
        """Return the agent's decision for *observation*."""

    @abstractmethod
    def observe(self, outcome) -> None:
        """Feed an outcome back into the learned model."""

    @abstractmethod
    def get_insights(self) -> list[Insight]:
        """Snapshot of the learned state for display.  Must not mutate."""

    def detected_patterns(self) -> list[str]:
        """Pattern tags derived from this session (default: none)."""
        return []

    def summary(self) -> dict:
        """Structured numeric summary used to seed the next session."""
        return {}

    def reset(self) -> None:
        """Clear all learned data (new session)."""
