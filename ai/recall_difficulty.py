"""
recall_difficulty.py – Recall model and difficulty tiers for Memory Match.

Tracks, per card position and per symbol, how often the player has seen
it versus how often they recalled it (completed a match with it).  At the
end of each round the move efficiency is turned into a 0–100 score and
folded into an exponential moving average; the difficulty tier follows the
smoothed score with a hysteresis band and moves by at most one step.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from ai.agent_base import AdaptiveAgent, Insight, clamp, stored_number
from settings import (
    MEMORY_MIN_TIER, MEMORY_MAX_TIER, MEMORY_DEFAULT_TIER,
    MEMORY_SCORE_EMA, MEMORY_PRIOR_SCORE, MEMORY_TIER_MARGIN,
    NEON_PURPLE, NEON_PINK, NEON_ORANGE, NEON_YELLOW,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Configuration / records
# ══════════════════════════════════════════════════════════

@dataclass
class RecallConfig:
    """Tunables for the recall-based difficulty controller."""

    min_tier: int = MEMORY_MIN_TIER
    max_tier: int = MEMORY_MAX_TIER
    default_tier: int = MEMORY_DEFAULT_TIER

    ema_weight: float = MEMORY_SCORE_EMA      # weight on the newest round
    prior_score: float = MEMORY_PRIOR_SCORE

    # Tier threshold: base + step * (tier - 1); move when clear of margin
    threshold_base: float = 50.0
    threshold_step: float = 5.0
    margin: float = MEMORY_TIER_MARGIN

    # Profile seeding: tier grows one step per this many games
    games_per_tier: int = 3

    # Records needed before symbol selection favours weak symbols
    min_symbol_records: int = 3


@dataclass
class RecallRecord:
    """Seen / recalled counters for one position or symbol."""

    seen: int = 0
    recalled: int = 0

    @property
    def ratio(self) -> float:
        return self.recalled / max(1, self.seen)


@dataclass(frozen=True)
class RecallItem:
    """One face-up card: where it is and what it shows."""

    position: int
    symbol: str


@dataclass
class _Round:
    attempts: int = 0
    matches: int = 0
    streak: int = 0
    best_streak: int = 0
    history: list[bool] = field(default_factory=list)


# ══════════════════════════════════════════════════════════
#  Controller
# ══════════════════════════════════════════════════════════

class RecallDifficultyController(AdaptiveAgent):
    """Adapts Memory Match difficulty to the player's recall.

    Usage:
        ctrl = RecallDifficultyController(profile.get_game_stats("memoryMatch"))
        ctrl.note_flip(position)                 # every card flip
        ctrl.observe((item_a, item_b), matched)  # every pair attempt
        tier = ctrl.end_round(total_pairs)       # all pairs found
    """

    game_id = "memoryMatch"

    def __init__(self, stats: dict | None = None,
                 config: RecallConfig | None = None):
        self.cfg = config or RecallConfig()
        stats = stats if isinstance(stats, dict) else {}

        played = max(0, int(stored_number(stats, "played", 0)))
        tier = self.cfg.default_tier
        if played > 2:
            tier = self.cfg.default_tier + played // self.cfg.games_per_tier
        self.tier: int = int(clamp(tier, self.cfg.min_tier, self.cfg.max_tier))

        stored = stats.get("patterns", {})
        self._score: float = clamp(
            stored_number(stored, "recall_score", self.cfg.prior_score), 0.0, 100.0)

        self.positions: dict[int, RecallRecord] = {}
        self.symbols: dict[str, RecallRecord] = {}
        self._round = _Round()
        self._last_round = _Round()
        self.rounds_completed: int = 0
        self.last_efficiency: float | None = None
        self.direction: str = "stable"          # "harder" | "easier" | "stable"

        logger.info("Memory Match AI: start tier=%d, recall score=%.1f (played=%d)",
                    self.tier, self._score, played)

    # ══════════════════════════════════════════════════════
    #  Observation
    # ══════════════════════════════════════════════════════

    def note_flip(self, position: int) -> None:
        """The player turned a card face up at *position*."""
        self.positions.setdefault(position, RecallRecord()).seen += 1

    def observe(self, outcome) -> None:
        """Record one pair attempt: ``(items, recalled_correctly)``.

        *items* is a RecallItem or a pair of them.
        """
        items, recalled = outcome
        if isinstance(items, RecallItem):
            items = (items,)
        self.observe_attempt(tuple(items), bool(recalled))

    def observe_attempt(self, items: tuple[RecallItem, ...], recalled: bool) -> None:
        rnd = self._round
        rnd.attempts += 1
        rnd.history.append(recalled)

        if recalled:
            rnd.matches += 1
            rnd.streak += 1
            rnd.best_streak = max(rnd.best_streak, rnd.streak)
            for item in items:
                self.positions.setdefault(item.position, RecallRecord()).recalled += 1
            # Both cards share the symbol; count it once
            sym = self.symbols.setdefault(items[0].symbol, RecallRecord())
            sym.seen += 1
            sym.recalled += 1
        else:
            rnd.streak = 0
            for symbol in {item.symbol for item in items}:
                self.symbols.setdefault(symbol, RecallRecord()).seen += 1

    # ══════════════════════════════════════════════════════
    #  Round end
    # ══════════════════════════════════════════════════════

    def tier_threshold(self, tier: int) -> float:
        return self.cfg.threshold_base + self.cfg.threshold_step * (tier - 1)

    def end_round(self, pairs: int | None = None) -> int:
        """Fold the round into the smoothed score and move the tier.

        *pairs* is the ideal number of attempts (pairs on the board); it
        defaults to the matches made.  Returns the tier for the next round.
        """
        cfg = self.cfg
        rnd = self._round
        ideal = rnd.matches if pairs is None else pairs

        if rnd.attempts > 0:
            efficiency = min(1.0, ideal / rnd.attempts)
            self.last_efficiency = efficiency
            self._score = clamp(
                self._score + cfg.ema_weight * (efficiency * 100 - self._score),
                0.0, 100.0,
            )

        threshold = self.tier_threshold(self.tier)
        old_tier = self.tier
        if self._score >= threshold + cfg.margin:
            self.tier = min(cfg.max_tier, self.tier + 1)
        elif self._score <= threshold - cfg.margin:
            self.tier = max(cfg.min_tier, self.tier - 1)

        if self.tier > old_tier:
            self.direction = "harder"
        elif self.tier < old_tier:
            self.direction = "easier"
        else:
            self.direction = "stable"

        self.rounds_completed += 1
        logger.info(
            "Memory round %d: attempts=%d efficiency=%s score=%.1f tier %d→%d",
            self.rounds_completed, rnd.attempts,
            "n/a" if self.last_efficiency is None else f"{self.last_efficiency:.2f}",
            self._score, old_tier, self.tier,
        )
        self._last_round = rnd
        self._round = _Round()
        return self.tier

    def current_score(self) -> float:
        return self._score

    def next_difficulty(self) -> int:
        return self.tier

    def decide(self, observation=None) -> int:
        return self.next_difficulty()

    # ══════════════════════════════════════════════════════
    #  Deck shaping
    # ══════════════════════════════════════════════════════

    def select_symbols(self, count: int, pool: list[str]) -> list[str]:
        """*count* symbols for the next deck, weak ones first once known."""
        if len(self.symbols) <= self.cfg.min_symbol_records:
            return list(pool[:count])
        known = [s for s in sorted(self.symbols, key=lambda s: self.symbols[s].ratio)
                 if s in pool]
        hard = known[:math.ceil(count / 2)]
        fill = [s for s in pool if s not in hard]
        return (hard + fill)[:count]

    def hardest_symbol(self) -> str | None:
        candidates = [(rec.ratio, s) for s, rec in self.symbols.items() if rec.seen > 1]
        if not candidates:
            return None
        return min(candidates)[1]

    # ══════════════════════════════════════════════════════
    #  Reporting
    # ══════════════════════════════════════════════════════

    @property
    def attempts(self) -> int:
        return self._round.attempts

    @property
    def matches(self) -> int:
        return self._round.matches

    def detected_patterns(self) -> list[str]:
        patterns = []
        if self.last_efficiency is not None:
            if self.last_efficiency > 0.7:
                patterns.append("Excellent memory recall")
            elif self.last_efficiency < 0.4:
                patterns.append("Struggles with memory pairs")
        last = self._last_round
        if last.best_streak > 4:
            patterns.append("Goes on match streaks")
        hardest = self.hardest_symbol()
        if hardest is not None:
            patterns.append(f"Struggles with {hardest} pairs")
        return patterns

    def get_insights(self) -> list[Insight]:
        insights = [
            Insight("Difficulty", f"{self.tier}/{self.cfg.max_tier}",
                    self.tier / self.cfg.max_tier, NEON_PURPLE),
            Insight("Recall Score", f"{round(self._score)}", self._score / 100, NEON_YELLOW),
        ]
        if self.direction != "stable":
            insights.append(Insight(
                "AI Adapting", "Harder" if self.direction == "harder" else "Easier",
                color=NEON_PINK,
            ))
        hardest = self.hardest_symbol()
        if hardest is not None:
            insights.append(Insight("Your Weakest", hardest, color=NEON_ORANGE))
        return insights

    def summary(self) -> dict:
        return {
            "recall_score": round(self._score, 2),
            "last_difficulty": self.tier,
            "direction": self.direction,
            "positions_tracked": len(self.positions),
        }

    def reset(self) -> None:
        self.positions.clear()
        self.symbols.clear()
        self._round = _Round()
        self._last_round = _Round()
        self.rounds_completed = 0
        self.last_efficiency = None
        self.direction = "stable"
