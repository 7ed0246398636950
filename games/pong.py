"""
pong.py – Neural Pong: first to seven against a Q-learning paddle.

The player's paddle is on the left (mouse or ↑/↓, W/S); the AI paddle on
the right asks ValueLearningAgent for a move every tick.  Paddle hits and
points are fed back as rewards.
"""

from __future__ import annotations

import logging
from collections import deque

import pygame

from ai.agent_base import Insight
from ai.value_learning import PongObservation, ValueLearningAgent
from games.base import ArenaGame
from utils.helpers import draw_end_screen, draw_text_centered
from settings import (
    PONG_WIDTH, PONG_HEIGHT, PONG_WINNING_SCORE,
    PADDLE_H, PADDLE_W, PADDLE_SPEED, BALL_SIZE, BALL_BASE_SPEED,
    REWARD_PLAYER_HIT, REWARD_AI_HIT,
    BG_COLOR, GRAY, NEON_CYAN, NEON_PINK, NEON_YELLOW, WHITE,
)

logger = logging.getLogger(__name__)

PADDLE_MARGIN = 30
MOUSE_EASE = 0.15
SPEEDUP = 1.05
HIT_ZONES = 5


class PongGame(ArenaGame):
    game_id = "pong"
    title = "Neural Pong"
    ai_type = "Q-Learning"
    description = "The AI paddle learns which moves win rallies against you."
    width = PONG_WIDTH
    height = PONG_HEIGHT

    def _new_session(self) -> None:
        self.agent = ValueLearningAgent(rng=self.rng)
        self.player_y: float = (self.height - PADDLE_H) / 2
        self.ai_y: float = (self.height - PADDLE_H) / 2
        self.player_x = PADDLE_MARGIN
        self.ai_x = self.width - PADDLE_MARGIN - PADDLE_W
        self.player_score = 0
        self.ai_score = 0
        self.best_rally = 0
        self.hit_zones = [0] * HIT_ZONES

        self.mouse_y: float | None = None
        self._held: set[int] = set()
        self.trail: deque[tuple[float, float]] = deque(maxlen=10)
        self._reset_ball(1)

    def _reset_ball(self, direction: int) -> None:
        self.ball_x = self.width / 2
        self.ball_y = self.height / 2
        self.ball_vx = BALL_BASE_SPEED * direction * (0.8 + self.rng.random() * 0.4)
        self.ball_vy = (self.rng.random() - 0.5) * BALL_BASE_SPEED * 0.8
        self.rally = 0
        self.trail.clear()

    # ── Input ─────────────────────────────────────────────

    def handle_event(self, event, pos=None) -> None:
        if event.type == pygame.MOUSEMOTION and pos is not None:
            self.mouse_y = pos[1]
        elif event.type == pygame.KEYDOWN:
            self._held.add(event.key)
            self.mouse_y = None
        elif event.type == pygame.KEYUP:
            self._held.discard(event.key)

    def key_direction(self) -> int:
        up = pygame.K_UP in self._held or pygame.K_w in self._held
        down = pygame.K_DOWN in self._held or pygame.K_s in self._held
        return int(down) - int(up)

    def _move_player(self) -> None:
        if self.mouse_y is not None:
            target = self.mouse_y - PADDLE_H / 2
            self.player_y += (target - self.player_y) * MOUSE_EASE
        self.player_y += self.key_direction() * PADDLE_SPEED
        self.player_y = max(0.0, min(self.height - PADDLE_H, self.player_y))

    # ── Tick ──────────────────────────────────────────────

    def observation(self) -> PongObservation:
        return PongObservation(self.ball_x, self.ball_y, self.ball_vx,
                               self.ball_vy, self.ai_y)

    def step(self) -> None:
        self._move_player()

        action = self.agent.decide(self.observation())
        self.ai_y += action * (PADDLE_SPEED + min(self.rally * 0.15, 2))
        self.ai_y = max(0.0, min(self.height - PADDLE_H, self.ai_y))

        self.trail.append((self.ball_x, self.ball_y))
        self.ball_x += self.ball_vx
        self.ball_y += self.ball_vy

        if self.ball_y <= BALL_SIZE or self.ball_y >= self.height - BALL_SIZE:
            self.ball_vy *= -1
            self.ball_y = max(BALL_SIZE, min(self.height - BALL_SIZE, self.ball_y))

        self._check_paddles()
        self._check_score()

    def _hits(self, paddle_x: float, paddle_y: float) -> bool:
        return (self.ball_x - BALL_SIZE <= paddle_x + PADDLE_W
                and self.ball_x + BALL_SIZE >= paddle_x
                and paddle_y <= self.ball_y <= paddle_y + PADDLE_H)

    def _check_paddles(self) -> None:
        if self.ball_vx < 0 and self._hits(self.player_x, self.player_y):
            hit_pos = (self.ball_y - self.player_y) / PADDLE_H
            self.ball_vx = abs(self.ball_vx) * SPEEDUP
            self.ball_vy = (hit_pos - 0.5) * BALL_BASE_SPEED * 1.5
            self.ball_x = self.player_x + PADDLE_W + BALL_SIZE
            self.rally += 1
            # Upper paddle half sends the ball upward
            zone = max(0, min(HIT_ZONES - 1, int(hit_pos * HIT_ZONES)))
            self.hit_zones[zone] += 1
            self.agent.observe(REWARD_PLAYER_HIT)

        elif self.ball_vx > 0 and self._hits(self.ai_x, self.ai_y):
            hit_pos = (self.ball_y - self.ai_y) / PADDLE_H
            self.ball_vx = -abs(self.ball_vx) * SPEEDUP
            self.ball_vy = (hit_pos - 0.5) * BALL_BASE_SPEED * 1.5
            self.ball_x = self.ai_x - BALL_SIZE
            self.rally += 1
            self.agent.observe(REWARD_AI_HIT)

        self.best_rally = max(self.best_rally, self.rally)

    def _check_score(self) -> None:
        if self.ball_x < -20:
            self.ai_score += 1
            self.agent.on_point(agent_scored=True)
            self._after_point(direction=1)
        elif self.ball_x > self.width + 20:
            self.player_score += 1
            self.agent.on_point(agent_scored=False)
            self._after_point(direction=-1)

    def _after_point(self, direction: int) -> None:
        logger.debug("Pong point: %d-%d", self.player_score, self.ai_score)
        if max(self.player_score, self.ai_score) >= PONG_WINNING_SCORE:
            self.agent.finish()
            won = self.player_score >= PONG_WINNING_SCORE
            self._finish(
                "win" if won else "loss",
                extra_patterns=self.aim_patterns(),
                extra_summary={"hit_zones": list(self.hit_zones)},
            )
        else:
            self._reset_ball(direction)

    # ── Reporting ─────────────────────────────────────────

    def aim_patterns(self) -> list[str]:
        total = sum(self.hit_zones)
        if total <= 3:
            return []
        top = (self.hit_zones[0] + self.hit_zones[1]) / total
        bottom = (self.hit_zones[3] + self.hit_zones[4]) / total
        if top > 0.6:
            return ["Aims high in Pong"]
        if bottom > 0.6:
            return ["Aims low in Pong"]
        return ["Varied aim in Pong"]

    def get_insights(self) -> list[Insight]:
        return self.agent.get_insights() + [
            Insight("Rally Best", str(self.best_rally), color=NEON_YELLOW),
        ]

    def stats_bar(self) -> str:
        return f"You {self.player_score} : {self.ai_score} AI   (first to {PONG_WINNING_SCORE})"

    # ── Rendering ─────────────────────────────────────────

    def draw(self, surface: pygame.Surface) -> None:
        surface.fill(BG_COLOR)
        for y in range(0, self.height, 16):
            pygame.draw.line(surface, GRAY, (self.width // 2, y), (self.width // 2, y + 8), 2)

        if not self.game_over:
            draw_text_centered(surface, str(self.player_score), self.width // 2 - 80, 20, NEON_CYAN, 64)
            draw_text_centered(surface, str(self.ai_score), self.width // 2 + 80, 20, NEON_PINK, 64)

        for i, (tx, ty) in enumerate(self.trail):
            radius = max(1, int(BALL_SIZE * 0.6 * (i + 1) / len(self.trail)))
            pygame.draw.circle(surface, GRAY, (int(tx), int(ty)), radius)
        pygame.draw.circle(surface, WHITE, (int(self.ball_x), int(self.ball_y)), BALL_SIZE)

        pygame.draw.rect(surface, NEON_CYAN,
                         (self.player_x, int(self.player_y), PADDLE_W, PADDLE_H), border_radius=4)
        pygame.draw.rect(surface, NEON_PINK,
                         (self.ai_x, int(self.ai_y), PADDLE_W, PADDLE_H), border_radius=4)

        if self.rally > 2 and not self.game_over:
            draw_text_centered(surface, f"RALLY {self.rally}", self.width // 2,
                               self.height - 30, NEON_YELLOW, 22)
        if self.show_end:
            draw_end_screen(surface, self.end_message(), self.end_color(),
                            [f"{self.player_score} - {self.ai_score}"])
