"""
pattern_duel.py – Five-symbol duel against an n-gram predictor.

Each round the AI predicts the player's next symbol from the choices so
far and throws the counter.  After 25 rounds the higher score wins.
"""

from __future__ import annotations

import logging
from collections import Counter

import pygame

from ai.agent_base import Insight
from ai.sequence_predictor import SYMBOLS, SequencePredictor, duel_result
from games.base import ArenaGame
from utils.helpers import draw_end_screen, draw_text_centered
from settings import (
    DUEL_ROUNDS, DUEL_RESULT_TIME,
    BG_COLOR, GRAY, LIGHT_GRAY, NEON_CYAN, NEON_PINK, NEON_YELLOW,
)

logger = logging.getLogger(__name__)

BUTTON_W = 100
BUTTON_H = 90
BUTTON_GAP = 20
BUTTON_Y = 370


def detect_patterns(choices: list[int], results: list[str]) -> list[str]:
    """Readable habits in the player's choice sequence."""
    patterns: list[str] = []
    if len(choices) < 5:
        return patterns

    last5 = choices[-5:]
    if len(set(last5)) == 1:
        patterns.append(f"Repeats {SYMBOLS[last5[0]].name}")

    if len(choices) >= 6:
        a = choices[-6:]
        if a[0] == a[2] == a[4] and a[1] == a[3] == a[5]:
            patterns.append("Alternating pattern")
        if a[0] == a[3] and a[1] == a[4] and a[2] == a[5]:
            patterns.append("3-cycle pattern")

    counts = Counter(choices)
    for sym in SYMBOLS:
        if counts[sym.id] / len(choices) > 0.4:
            patterns.append(f"Favors {sym.name}")

    if len(results) > 5:
        consistent = 0
        for i in range(1, len(results)):
            stayed = choices[i] == choices[i - 1]
            if results[i - 1] == "win" and stayed:
                consistent += 1
            elif results[i - 1] == "loss" and not stayed:
                consistent += 1
        if consistent / (len(results) - 1) > 0.65:
            patterns.append("Win-stay / Lose-shift")
    return patterns


class PatternDuelGame(ArenaGame):
    game_id = "patternDuel"
    title = "Pattern Duel"
    ai_type = "Markov Chain"
    description = "Five symbols, 25 rounds. The AI reads your sequences and counters them."
    width = 700
    height = 500

    def _new_session(self) -> None:
        self.agent = SequencePredictor(rng=self.rng)
        self.max_rounds = DUEL_ROUNDS
        self.round = 0
        self.player_score = 0
        self.ai_score = 0
        self.draws = 0
        self.player_history: list[int] = []
        self.ai_history: list[int] = []
        self.results: list[str] = []
        self.patterns: list[str] = []

        self.last_player: int | None = None
        self.last_ai: int | None = None
        self.last_result: str = ""
        self.showing_result: bool = False

    def step(self) -> None:
        """Round-based; the result banner is cleared by the scheduler."""

    # ── Rounds ────────────────────────────────────────────

    def can_choose(self) -> bool:
        return (self.running and not self.game_over and not self.showing_result
                and self.round < self.max_rounds)

    def choose(self, choice: int) -> bool:
        """Play one round with the player's *choice*; False if locked."""
        if not self.can_choose() or not 0 <= choice < len(SYMBOLS):
            return False
        self.round += 1

        ai_choice = self.agent.decide(self.player_history)
        self.agent.learn(self.player_history, choice)
        self.agent.observe(choice)
        self.player_history.append(choice)
        self.ai_history.append(ai_choice)

        result = duel_result(choice, ai_choice)
        self.results.append(result)
        if result == "win":
            self.player_score += 1
        elif result == "loss":
            self.ai_score += 1
        else:
            self.draws += 1

        self.last_player, self.last_ai, self.last_result = choice, ai_choice, result
        self.patterns = detect_patterns(self.player_history, self.results)
        logger.debug("Duel round %d: player=%s ai=%s -> %s", self.round,
                     SYMBOLS[choice].name, SYMBOLS[ai_choice].name, result)

        self.showing_result = True
        self.later(DUEL_RESULT_TIME, self._hide_result)
        if self.round >= self.max_rounds:
            self.later(DUEL_RESULT_TIME, self._end_game)
        return True

    def _hide_result(self) -> None:
        self.showing_result = False

    def _end_game(self) -> None:
        if self.player_score > self.ai_score:
            result = "win"
        elif self.player_score < self.ai_score:
            result = "loss"
        else:
            result = "draw"
        self._finish(result, extra_patterns=list(self.patterns), end_delay=0.0)

    # ── Input ─────────────────────────────────────────────

    def button_rect(self, index: int) -> pygame.Rect:
        total = len(SYMBOLS) * BUTTON_W + (len(SYMBOLS) - 1) * BUTTON_GAP
        x = (self.width - total) // 2 + index * (BUTTON_W + BUTTON_GAP)
        return pygame.Rect(x, BUTTON_Y, BUTTON_W, BUTTON_H)

    def handle_event(self, event, pos=None) -> None:
        if event.type == pygame.KEYDOWN and pygame.K_1 <= event.key <= pygame.K_5:
            self.choose(event.key - pygame.K_1)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and pos is not None:
            for sym in SYMBOLS:
                if self.button_rect(sym.id).collidepoint(pos):
                    self.choose(sym.id)
                    break

    # ── Reporting ─────────────────────────────────────────

    def get_insights(self) -> list[Insight]:
        insights = self.agent.get_insights()
        if self.patterns:
            insights.append(Insight("Pattern Found", self.patterns[0], color=NEON_YELLOW))
        return insights

    def stats_bar(self) -> str:
        return (f"Round {self.round}/{self.max_rounds}   You {self.player_score} : "
                f"{self.ai_score} AI   Draws {self.draws}")

    # ── Rendering ─────────────────────────────────────────

    def draw(self, surface: pygame.Surface) -> None:
        surface.fill(BG_COLOR)
        cx = self.width // 2
        draw_text_centered(surface, f"ROUND {min(self.round + 1, self.max_rounds)} / {self.max_rounds}",
                           cx, 20, LIGHT_GRAY, 26)

        if self.last_player is not None:
            cy = 150
            for x, sym_id, label, color in (
                (cx - 150, self.last_player, "YOU", NEON_CYAN),
                (cx + 150, self.last_ai, "AI", NEON_PINK),
            ):
                sym = SYMBOLS[sym_id]
                pygame.draw.circle(surface, sym.color, (x, cy), 55, 4)
                draw_text_centered(surface, sym.name, x, cy - 10, sym.color, 28)
                draw_text_centered(surface, label, x, cy + 70, color, 20)
            if self.showing_result:
                text, color = {
                    "win": ("YOU WIN THE ROUND", NEON_CYAN),
                    "loss": ("AI WINS THE ROUND", NEON_PINK),
                }.get(self.last_result, ("DRAW", NEON_YELLOW))
                draw_text_centered(surface, text, cx, cy - 12, color, 24)

        enabled = self.can_choose()
        for sym in SYMBOLS:
            rect = self.button_rect(sym.id)
            color = sym.color if enabled else GRAY
            pygame.draw.rect(surface, color, rect, 2, border_radius=10)
            draw_text_centered(surface, sym.name, rect.centerx, rect.y + 25, color, 22)
            draw_text_centered(surface, str(sym.id + 1), rect.centerx, rect.y + 60, LIGHT_GRAY, 18)

        beats = "  ".join(
            f"{s.name}>{SYMBOLS[s.beats[0]].name},{SYMBOLS[s.beats[1]].name}" for s in SYMBOLS)
        draw_text_centered(surface, beats, cx, self.height - 24, GRAY, 16)

        if self.show_end:
            draw_end_screen(surface, self.end_message(), self.end_color(), [
                f"{self.player_score} - {self.ai_score} ({self.draws} draws)",
                f"AI predicted {round(self.agent.accuracy * 100)}% of your moves",
            ])
