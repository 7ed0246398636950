"""
sequence_predictor.py – N-gram (Markov chain) predictor for Pattern Duel.

For every order k = 1..4 the predictor counts which choice followed each
k-length suffix of the player's history.  Prediction scans orders from
highest to lowest and keeps the single most confident guess, where

    confidence = (mode count / observations) * (1 + 0.3 * k)

so longer contexts win only when their evidence is strong enough.
The AI then plays a symbol that beats the predicted choice.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass

from ai.agent_base import AdaptiveAgent, Insight
from settings import (
    DUEL_MAX_ORDER, DUEL_MIN_OBSERVATIONS, DUEL_ORDER_WEIGHT,
    NEON_PINK, NEON_PURPLE,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Symbols
# ══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Symbol:
    """One of the five duel elements; each beats two others."""

    id: int
    name: str
    color: tuple[int, int, int]
    beats: tuple[int, int]


SYMBOLS: tuple[Symbol, ...] = (
    Symbol(0, "FIRE",    (255, 107, 53),  (2, 3)),
    Symbol(1, "WATER",   (0, 180, 216),   (0, 4)),
    Symbol(2, "NATURE",  (57, 255, 20),   (1, 3)),
    Symbol(3, "THUNDER", (255, 230, 0),   (1, 4)),
    Symbol(4, "STONE",   (184, 41, 221),  (0, 2)),
)


def duel_result(player: int, ai: int) -> str:
    """'win' / 'loss' / 'draw' from the player's point of view."""
    if player == ai:
        return "draw"
    if ai in SYMBOLS[player].beats:
        return "win"
    return "loss"


# ══════════════════════════════════════════════════════════
#  Configuration / output
# ══════════════════════════════════════════════════════════

@dataclass
class PredictorConfig:
    """Tunables for the n-gram predictor."""

    max_order: int = DUEL_MAX_ORDER
    min_observations: int = DUEL_MIN_OBSERVATIONS
    order_weight: float = DUEL_ORDER_WEIGHT
    n_choices: int = len(SYMBOLS)


@dataclass(frozen=True)
class Prediction:
    """Best guess for the player's next choice."""

    choice: int | None = None
    confidence: float = 0.0
    order: int = 0


# ══════════════════════════════════════════════════════════
#  Predictor
# ══════════════════════════════════════════════════════════

class SequencePredictor(AdaptiveAgent):
    """Multi-order frequency tables over the player's choice history.

    Usage:
        predictor = SequencePredictor()
        ai_choice = predictor.decide(history)       # before the player reveals
        predictor.learn(history, player_choice)     # before appending it
        predictor.observe(player_choice)            # scores the prediction
        history.append(player_choice)
    """

    game_id = "patternDuel"

    def __init__(self, config: PredictorConfig | None = None,
                 rng: random.Random | None = None):
        self.cfg = config or PredictorConfig()
        self._rng = rng or random.Random()

        self.table: dict[tuple[int, ...], Counter] = {}
        self.last_prediction = Prediction()
        self.predictions_made: int = 0
        self.predictions_correct: int = 0
        self.rounds: int = 0

    # ══════════════════════════════════════════════════════
    #  Learning
    # ══════════════════════════════════════════════════════

    def learn(self, history: list[int], actual_next: int) -> None:
        """Record that each suffix of *history* was followed by *actual_next*."""
        for order in range(1, self.cfg.max_order + 1):
            if len(history) < order:
                break
            key = tuple(history[-order:])
            self.table.setdefault(key, Counter())[actual_next] += 1

    # ══════════════════════════════════════════════════════
    #  Prediction
    # ══════════════════════════════════════════════════════

    def predict(self, history: list[int]) -> Prediction:
        """Most confident next-choice guess, or an empty Prediction."""
        cfg = self.cfg
        best = Prediction()

        for order in range(cfg.max_order, 0, -1):
            if len(history) < order:
                continue
            transitions = self.table.get(tuple(history[-order:]))
            if not transitions:
                continue
            total = sum(transitions.values())
            if total < cfg.min_observations:
                continue

            # Mode, ties to the lowest choice id
            choice, count = min(transitions.items(), key=lambda kv: (-kv[1], kv[0]))
            confidence = count / total * (1 + order * cfg.order_weight)

            # >= : on an exact tie the later (lower) order wins
            if best.choice is None or confidence >= best.confidence:
                best = Prediction(choice, confidence, order)

        return best

    def counter_choice(self, predicted: int | None) -> int:
        """A symbol that beats *predicted*; random when there is none."""
        if predicted is not None:
            for sym in SYMBOLS:
                if predicted in sym.beats:
                    return sym.id
        return self._rng.randrange(self.cfg.n_choices)

    def decide(self, history: list[int]) -> int:
        self.last_prediction = self.predict(history)
        if self.last_prediction.choice is not None:
            self.predictions_made += 1
        return self.counter_choice(self.last_prediction.choice)

    def observe(self, actual: int) -> None:
        """Score the last prediction against the player's real choice."""
        self.rounds += 1
        if self.last_prediction.choice is not None and self.last_prediction.choice == actual:
            self.predictions_correct += 1

    # ══════════════════════════════════════════════════════
    #  Reporting
    # ══════════════════════════════════════════════════════

    @property
    def accuracy(self) -> float:
        """Share of all rounds the AI called correctly (0.0–1.0)."""
        return self.predictions_correct / self.rounds if self.rounds else 0.0

    @property
    def states(self) -> int:
        return len(self.table)

    def get_insights(self) -> list[Insight]:
        acc = round(self.accuracy * 100)
        insights = [
            Insight("AI Prediction Accuracy", f"{acc}%", acc / 100, NEON_PINK),
            Insight("Markov States", str(self.states), color=NEON_PURPLE),
        ]
        pred = self.last_prediction
        if pred.choice is not None:
            sym = SYMBOLS[pred.choice]
            insights.append(Insight(
                "Expecting", f"{sym.name} ({pred.order}-gram)",
                min(1.0, pred.confidence / (1 + self.cfg.max_order * self.cfg.order_weight)),
                sym.color,
            ))
        return insights

    def summary(self) -> dict:
        return {
            "prediction_accuracy": round(self.accuracy * 100),
            "markov_states": self.states,
        }

    def reset(self) -> None:
        self.table.clear()
        self.last_prediction = Prediction()
        self.predictions_made = 0
        self.predictions_correct = 0
        self.rounds = 0
