"""
spatial_targeter.py – Movement heatmap + velocity predictor for Dodge Arena.

Every tick the player's position is binned into a 20×20 visit-count grid
and the frame-to-frame velocity is kept in a short rolling window.  When a
projectile spawns the targeter picks one of four aiming strategies:

    random    – anywhere on the field
    current   – where the player is now
    predicted – linear extrapolation of the recent mean velocity (+ jitter)
    hotspot   – the most visited grid cell (+ wider jitter)

Early in a session aiming is mostly random; as samples accumulate the
adaptation level (samples / 300, capped at 1) squeezes the random share out.

The hotspot learned in earlier sessions is loaded from the profile and aimed
at until this session has gathered enough samples of its own.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass

import numpy as np

from ai.agent_base import AdaptiveAgent, Insight, clamp, stored_number
from settings import (
    DODGE_WIDTH, DODGE_HEIGHT, DODGE_GRID, DODGE_PLAYER_SIZE,
    DODGE_VELOCITY_WINDOW, DODGE_PREDICT_SAMPLES, DODGE_PREDICT_TICKS,
    DODGE_ADAPT_SAMPLES, DODGE_HOTSPOT_MIN_SAMPLES, DODGE_NEAR_MISS_MEMORY,
    NEON_PINK, NEON_YELLOW, NEON_GREEN, NEON_ORANGE,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Configuration / output
# ══════════════════════════════════════════════════════════

@dataclass
class TargeterConfig:
    """Tunables for the adaptive targeter."""

    width: float = DODGE_WIDTH
    height: float = DODGE_HEIGHT
    grid: int = DODGE_GRID
    margin: float = DODGE_PLAYER_SIZE

    velocity_window: int = DODGE_VELOCITY_WINDOW
    predict_samples: int = DODGE_PREDICT_SAMPLES
    predict_ticks: int = DODGE_PREDICT_TICKS

    adapt_samples: int = DODGE_ADAPT_SAMPLES
    hotspot_min_samples: int = DODGE_HOTSPOT_MIN_SAMPLES
    near_miss_memory: int = DODGE_NEAR_MISS_MEMORY

    # Strategy thresholds on one uniform roll
    random_share: float = 0.3           # scaled by (1 - adaptation)
    current_upto: float = 0.5
    predicted_upto: float = 0.75

    predicted_jitter: float = 40.0      # full width of the jitter box
    hotspot_jitter: float = 60.0


@dataclass(frozen=True)
class Hotspot:
    """Centre of the most-visited cell and how dominant it is."""

    x: float
    y: float
    cell: tuple[int, int]
    confidence: float


@dataclass(frozen=True)
class Target:
    """Aim point chosen for one projectile."""

    x: float
    y: float
    strategy: str                       # "random" | "current" | "predicted" | "hotspot"

    @property
    def adapted(self) -> bool:
        return self.strategy in ("predicted", "hotspot")


# ══════════════════════════════════════════════════════════
#  Targeter
# ══════════════════════════════════════════════════════════

class SpatialTargeter(AdaptiveAgent):
    """Learns where the player likes to be and aims there.

    Usage:
        targeter = SpatialTargeter(profile.get_game_stats("dodgeArena"))
        targeter.observe((x, y))        # every tick
        target = targeter.decide()      # when a projectile spawns
    """

    game_id = "dodgeArena"

    def __init__(self, stats: dict | None = None, config: TargeterConfig | None = None,
                 rng: random.Random | None = None):
        self.cfg = config or TargeterConfig()
        self._rng = rng or random.Random()
        self.prior: Hotspot | None = self._stored_hotspot(stats)
        if self.prior is not None:
            logger.info("Dodge AI: remembered hotspot %s (confidence %.2f)",
                        self.prior.cell, self.prior.confidence)

        n = self.cfg.grid
        self.grid: np.ndarray = np.zeros((n, n), dtype=np.int64)   # [gx, gy]
        self.total_samples: int = 0

        self.velocities: deque[tuple[float, float]] = deque(maxlen=self.cfg.velocity_window)
        self.near_misses: deque[tuple[float, float]] = deque(maxlen=self.cfg.near_miss_memory)
        self.position: tuple[float, float] = (self.cfg.width / 2, self.cfg.height / 2)
        self._has_position = False

        self._adaptation: float = 0.0
        self.adapted_shots: int = 0
        self.adapted_hits: int = 0

    # ══════════════════════════════════════════════════════
    #  Observation (call every tick)
    # ══════════════════════════════════════════════════════

    def observe(self, position: tuple[float, float]) -> None:
        x, y = float(position[0]), float(position[1])
        if self._has_position:
            px, py = self.position
            self.velocities.append((x - px, y - py))
        self.position = (x, y)
        self._has_position = True

        cell = self.cell_of(x, y)
        if cell is not None:
            self.grid[cell] += 1
            self.total_samples += 1
            self._adaptation = max(
                self._adaptation,
                min(1.0, self.total_samples / self.cfg.adapt_samples),
            )

    def observe_near_miss(self, dx: float, dy: float) -> None:
        """Unit vector the player escaped along when a shot went close."""
        self.near_misses.append((dx, dy))

    def observe_hit(self, target: Target) -> None:
        """A projectile connected; credit it if it was an adapted shot."""
        if target.adapted:
            self.adapted_hits += 1

    def cell_of(self, x: float, y: float) -> tuple[int, int] | None:
        cfg = self.cfg
        if not (0 <= x < cfg.width and 0 <= y < cfg.height):
            return None
        return (int(x / cfg.width * cfg.grid), int(y / cfg.height * cfg.grid))

    # ══════════════════════════════════════════════════════
    #  Prediction
    # ══════════════════════════════════════════════════════

    @property
    def adaptation(self) -> float:
        """0 → mostly random aiming, 1 → fully adaptive.  Never decreases."""
        return self._adaptation

    def predict_future(self) -> tuple[float, float]:
        """Where the player will be a fixed number of ticks from now."""
        cfg = self.cfg
        x, y = self.position
        if len(self.velocities) < cfg.predict_samples:
            return (x, y)
        recent = np.array(list(self.velocities)[-cfg.predict_samples:], dtype=float)
        vx, vy = recent.mean(axis=0)
        return (
            clamp(x + vx * cfg.predict_ticks, cfg.margin, cfg.width - cfg.margin),
            clamp(y + vy * cfg.predict_ticks, cfg.margin, cfg.height - cfg.margin),
        )

    def hotspot(self) -> Hotspot:
        """Most visited cell; confidence stays 0 until enough samples exist."""
        cfg = self.cfg
        if self.total_samples == 0:
            gx = gy = cfg.grid // 2
            peak = 0
        else:
            gx, gy = np.unravel_index(int(np.argmax(self.grid)), self.grid.shape)
            gx, gy = int(gx), int(gy)
            peak = int(self.grid[gx, gy])
        confidence = (peak / self.total_samples
                      if self.total_samples > cfg.hotspot_min_samples else 0.0)
        return self._cell_hotspot(gx, gy, confidence)

    def aim_hotspot(self) -> Hotspot:
        """The remembered hotspot until this session's own data takes over."""
        if self.prior is not None and self.total_samples <= self.cfg.hotspot_min_samples:
            return self.prior
        return self.hotspot()

    def _cell_hotspot(self, gx: int, gy: int, confidence: float) -> Hotspot:
        cfg = self.cfg
        return Hotspot((gx + 0.5) * cfg.width / cfg.grid,
                       (gy + 0.5) * cfg.height / cfg.grid, (gx, gy), confidence)

    def _stored_hotspot(self, stats) -> Hotspot | None:
        patterns = stats.get("patterns") if isinstance(stats, dict) else None
        confidence = clamp(stored_number(patterns, "hotspot_confidence", 0.0), 0.0, 1.0)
        cell = patterns.get("hotspot_cell") if isinstance(patterns, dict) else None
        if confidence <= 0 or not isinstance(cell, list) or len(cell) != 2:
            return None
        n = self.cfg.grid
        if not all(isinstance(v, int) and not isinstance(v, bool) and 0 <= v < n
                   for v in cell):
            return None
        return self._cell_hotspot(cell[0], cell[1], confidence)

    def choose_target(self) -> Target:
        """Pick an aim point by weighted strategy choice."""
        cfg = self.cfg
        rng = self._rng
        r = rng.random()

        if r < cfg.random_share * (1 - self.adaptation):
            target = Target(rng.random() * cfg.width, rng.random() * cfg.height, "random")
        elif r < cfg.current_upto:
            target = Target(*self.position, "current")
        elif r < cfg.predicted_upto:
            px, py = self.predict_future()
            j = cfg.predicted_jitter
            target = Target(px + (rng.random() - 0.5) * j,
                            py + (rng.random() - 0.5) * j, "predicted")
        else:
            spot = self.aim_hotspot()
            j = cfg.hotspot_jitter
            target = Target(spot.x + (rng.random() - 0.5) * j,
                            spot.y + (rng.random() - 0.5) * j, "hotspot")

        if target.adapted:
            self.adapted_shots += 1
        return target

    def decide(self, observation=None) -> Target:
        if observation is not None:
            self.observe(observation)
        return self.choose_target()

    # ══════════════════════════════════════════════════════
    #  Reporting
    # ══════════════════════════════════════════════════════

    def zone_name(self, x: float, y: float) -> tuple[str, str]:
        """('Top'|'Mid'|'Bottom', 'Left'|'Center'|'Right') for a point."""
        cfg = self.cfg
        zx = "Left" if x < cfg.width / 3 else ("Right" if x > cfg.width * 2 / 3 else "Center")
        zy = "Top" if y < cfg.height / 3 else ("Bottom" if y > cfg.height * 2 / 3 else "Mid")
        return zy, zx

    def dodge_tendency(self, last: int | None = None) -> float:
        """Mean horizontal escape direction (-1 left … +1 right)."""
        misses = list(self.near_misses)
        if last is not None:
            misses = misses[-last:]
        if not misses:
            return 0.0
        return sum(dx for dx, _ in misses) / len(misses)

    def detected_patterns(self) -> list[str]:
        patterns = []
        spot = self.hotspot()
        if spot.confidence > 0.1:
            zy, zx = self.zone_name(spot.x, spot.y)
            patterns.append(f"Hides {zy.lower()}-{zx.lower()} in Dodge")
        if len(self.near_misses) > 10:
            avg_dx = self.dodge_tendency()
            if abs(avg_dx) > 0.3:
                patterns.append(f"Dodges {'right' if avg_dx > 0 else 'left'} in Dodge")
        return patterns

    def get_insights(self) -> list[Insight]:
        insights = [
            Insight("Heatmap Samples", str(self.total_samples), color=NEON_PINK),
            Insight("Adaptation", f"{round(self.adaptation * 100)}%",
                    self.adaptation, NEON_ORANGE),
        ]
        spot = self.aim_hotspot()
        if spot.confidence > 0.05:
            zy, zx = self.zone_name(spot.x, spot.y)
            insights.append(Insight("Your Comfort Zone", f"{zy}-{zx}",
                                    spot.confidence, NEON_YELLOW))
        if len(self.near_misses) > 5:
            avg_dx = self.dodge_tendency(last=10)
            tendency = "Balanced" if abs(avg_dx) < 0.2 else (
                "Rightward" if avg_dx > 0 else "Leftward")
            insights.append(Insight("Dodge Tendency", tendency, color=NEON_GREEN))
        return insights

    def summary(self) -> dict:
        spot = self.aim_hotspot()
        return {
            "heatmap_samples": self.total_samples,
            "hotspot_cell": list(spot.cell),
            "hotspot_confidence": round(spot.confidence, 3),
            "adapted_hits": self.adapted_hits,
        }

    def reset(self) -> None:
        self.grid[:] = 0
        self.total_samples = 0
        self.velocities.clear()
        self.near_misses.clear()
        self.position = (self.cfg.width / 2, self.cfg.height / 2)
        self._has_position = False
        self._adaptation = 0.0
        self.adapted_shots = 0
        self.adapted_hits = 0
        self.prior = None
