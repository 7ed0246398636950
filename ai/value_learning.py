"""
value_learning.py – Tabular Q-learning paddle controller for Neural Pong.

The continuous rally (ball position / velocity, own paddle position) is
reduced to a small integer tuple and used as a key into a Q-table over
three actions: up (-1), stay (0), down (+1).

Policy per tick:
  - explore:  with probability epsilon, a uniformly random action
  - exploit:  once the table covers enough states, the best tabulated action
  - baseline: otherwise track the ball with a short look-ahead, so the
              paddle never looks idle while the table is still empty

Learning is lazy: rewards reported through observe() are held until the
next decide(), which sees the follow-up state and applies one TD update
to the single pending (state, action) pair.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from ai.agent_base import AdaptiveAgent, Insight, clamp
from settings import (
    PONG_WIDTH, PONG_HEIGHT, PADDLE_H,
    Q_LEARNING_RATE, Q_DISCOUNT, Q_EPSILON_START, Q_EPSILON_DECAY,
    Q_EPSILON_MIN, Q_MIN_STATES, Q_X_BINS, Q_Y_BINS,
    BASELINE_LOOKAHEAD, BASELINE_DEAD_ZONE,
    REWARD_POINT_WON, REWARD_POINT_LOST,
    NEON_PINK, NEON_PURPLE, NEON_YELLOW,
)

logger = logging.getLogger(__name__)

ACTIONS: tuple[int, ...] = (-1, 0, 1)    # up, stay, down

State = tuple[int, int, int, int, int]


# ══════════════════════════════════════════════════════════
#  Configuration
# ══════════════════════════════════════════════════════════

@dataclass
class ValueLearningConfig:
    """Tunables for the Q-learning paddle."""

    learning_rate: float = Q_LEARNING_RATE
    discount: float = Q_DISCOUNT

    epsilon_start: float = Q_EPSILON_START
    epsilon_decay: float = Q_EPSILON_DECAY
    epsilon_min: float = Q_EPSILON_MIN

    # Distinct states needed before the table is trusted
    min_states: int = Q_MIN_STATES

    # Discretisation
    field_width: float = PONG_WIDTH
    field_height: float = PONG_HEIGHT
    x_bins: int = Q_X_BINS
    y_bins: int = Q_Y_BINS

    # Track-the-ball baseline
    paddle_height: float = PADDLE_H
    lookahead: float = BASELINE_LOOKAHEAD
    dead_zone: float = BASELINE_DEAD_ZONE


@dataclass(frozen=True)
class PongObservation:
    """What the paddle controller can see on one tick."""

    ball_x: float
    ball_y: float
    ball_vx: float
    ball_vy: float
    paddle_y: float                     # top edge of the AI paddle


# ══════════════════════════════════════════════════════════
#  Agent
# ══════════════════════════════════════════════════════════

class ValueLearningAgent(AdaptiveAgent):
    """Q-learning opponent.

    Usage:
        agent = ValueLearningAgent()
        # every tick:
        action = agent.decide(PongObservation(...))
        # on events:
        agent.observe(REWARD_AI_HIT)
        agent.on_point(agent_scored=True)
        # at session end:
        agent.finish()
    """

    game_id = "pong"

    def __init__(self, config: ValueLearningConfig | None = None,
                 rng: random.Random | None = None):
        self.cfg = config or ValueLearningConfig()
        self._rng = rng or random.Random()

        self.q_table: dict[State, dict[int, float]] = {}
        self.epsilon: float = self.cfg.epsilon_start
        self.confidence: float = 0.0        # 0–100, display only

        # Exactly one pending pair between decisions
        self._last_state: State | None = None
        self._last_action: int | None = None
        self._pending_reward: float | None = None

        self.decisions: int = 0
        self.updates: int = 0

    # ══════════════════════════════════════════════════════
    #  State discretisation
    # ══════════════════════════════════════════════════════

    def discretize(self, obs: PongObservation) -> State:
        """Reduce a continuous observation to a bounded integer tuple."""
        cfg = self.cfg
        gbx = _bin(obs.ball_x, cfg.field_width, cfg.x_bins)
        gby = _bin(obs.ball_y, cfg.field_height, cfg.y_bins)
        gvx = 1 if obs.ball_vx > 0 else 0
        gvy = 1 if obs.ball_vy > 0 else (-1 if obs.ball_vy < 0 else 0)
        gay = _bin(obs.paddle_y, cfg.field_height, cfg.y_bins)
        return (gbx, gby, gvx, gvy, gay)

    # ══════════════════════════════════════════════════════
    #  Q-table access
    # ══════════════════════════════════════════════════════

    def value(self, state: State, action: int) -> float:
        """Tabulated value; missing entries count as 0."""
        return self.q_table.get(state, {}).get(action, 0.0)

    def best_action(self, state: State) -> int:
        """Highest-valued action, ties going to the first enumerated."""
        best = ACTIONS[0]
        best_val = self.value(state, best)
        for action in ACTIONS[1:]:
            v = self.value(state, action)
            if v > best_val:
                best, best_val = action, v
        return best

    def max_value(self, state: State | None) -> float:
        if state is None:
            return 0.0
        return max(self.value(state, a) for a in ACTIONS)

    def td_update(self, state: State, action: int, reward: float,
                  next_state: State | None) -> float:
        """One temporal-difference step.  *next_state* None = terminal."""
        cfg = self.cfg
        old = self.value(state, action)
        target = reward + cfg.discount * self.max_value(next_state)
        new = old + cfg.learning_rate * (target - old)
        self.q_table.setdefault(state, {})[action] = new
        self.updates += 1
        return new

    @property
    def states_learned(self) -> int:
        return len(self.q_table)

    # ══════════════════════════════════════════════════════
    #  Decision (call every tick)
    # ══════════════════════════════════════════════════════

    def decide(self, observation: PongObservation) -> int:
        state = self.discretize(observation)

        # Lazy update of the previous pair against this tick's state
        if self._pending_reward is not None and self._last_state is not None:
            self.td_update(self._last_state, self._last_action,
                           self._pending_reward, state)
        self._pending_reward = None

        if self._rng.random() < self.epsilon:
            action = self._rng.choice(ACTIONS)
        elif self.states_learned >= self.cfg.min_states:
            action = self.best_action(state)
        else:
            action = self.baseline_action(observation)

        self._last_state = state
        self._last_action = action
        self.decisions += 1
        return action

    def baseline_action(self, obs: PongObservation) -> int:
        """Move toward where the ball will be a few ticks from now."""
        cfg = self.cfg
        centre = obs.paddle_y + cfg.paddle_height / 2
        target = obs.ball_y + obs.ball_vy * cfg.lookahead
        if target < centre - cfg.dead_zone:
            return -1
        if target > centre + cfg.dead_zone:
            return 1
        return 0

    # ══════════════════════════════════════════════════════
    #  Outcomes
    # ══════════════════════════════════════════════════════

    def observe(self, reward: float) -> None:
        """Queue a reward for the pending (state, action) pair.

        Rewards arriving before the first decision have nothing to
        credit and are dropped at the next decision.
        """
        if self._pending_reward is None:
            self._pending_reward = float(reward)
        else:
            self._pending_reward += float(reward)

    def on_point(self, agent_scored: bool) -> None:
        """A point ended.  Scoring also shrinks exploration."""
        if agent_scored:
            self.observe(REWARD_POINT_WON)
            self.epsilon = clamp(self.epsilon * self.cfg.epsilon_decay,
                                 self.cfg.epsilon_min, self.cfg.epsilon_start)
            self.confidence = min(100.0, self.confidence + 5.0)
        else:
            self.observe(REWARD_POINT_LOST)

    def finish(self) -> None:
        """Flush a pending reward against a terminal state (session end)."""
        if self._pending_reward is not None and self._last_state is not None:
            self.td_update(self._last_state, self._last_action,
                           self._pending_reward, None)
        self._pending_reward = None
        self._last_state = None
        self._last_action = None
        logger.info(
            "Q-table: %d states, %d updates, epsilon=%.3f",
            self.states_learned, self.updates, self.epsilon,
        )

    # ══════════════════════════════════════════════════════
    #  Reporting
    # ══════════════════════════════════════════════════════

    def get_insights(self) -> list[Insight]:
        return [
            Insight("AI Confidence", f"{round(self.confidence)}%",
                    self.confidence / 100, NEON_PINK),
            Insight("Q-States Learned", str(self.states_learned),
                    color=NEON_PURPLE),
            Insight("Exploration", f"{self.epsilon:.2f}",
                    self.epsilon / max(1e-9, self.cfg.epsilon_start),
                    NEON_YELLOW),
        ]

    def summary(self) -> dict:
        return {
            "q_states": self.states_learned,
            "epsilon": round(self.epsilon, 4),
            "confidence": round(self.confidence),
        }

    def reset(self) -> None:
        self.q_table.clear()
        self.epsilon = self.cfg.epsilon_start
        self.confidence = 0.0
        self._last_state = None
        self._last_action = None
        self._pending_reward = None
        self.decisions = 0
        self.updates = 0


def _bin(value: float, extent: float, bins: int) -> int:
    """Index of *value* among *bins* equal slices of [0, extent), clamped."""
    idx = int(value // (extent / bins))
    return max(0, min(bins - 1, idx))
