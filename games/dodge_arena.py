"""
dodge_arena.py – Survive waves of projectiles aimed by a movement heatmap.

Every tick the player's position goes into SpatialTargeter.  Each spawned
projectile flies from a random edge toward the point the targeter picks;
later waves spawn faster and faster shots.  A survival game: it always
ends in an AI win, the score is how long the player lasted.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import pygame

from ai.agent_base import Insight, stored_number
from ai.spatial_targeter import SpatialTargeter, Target
from games.base import ArenaGame
from utils.helpers import draw_end_screen, draw_text
from settings import (
    DODGE_WIDTH, DODGE_HEIGHT, DODGE_GRID, DODGE_PLAYER_SIZE, DODGE_PLAYER_SPEED,
    DODGE_PROJECTILE_SIZE, DODGE_WAVE_TICKS, DODGE_SPAWN_TICKS, DODGE_MAX_HP,
    BG_COLOR, GRAY, LIGHT_GRAY, NEON_CYAN, NEON_PINK, NEON_ORANGE, NEON_PURPLE,
)

logger = logging.getLogger(__name__)

INVINCIBLE_TICKS = 60
MIN_SPAWN_TICKS = 8
MIN_SPAWN_RATE = 12
BURST_WAVE = 2
BURST_CHANCE = 0.15
BURST_SPACING = 0.1
DIAGONAL = 0.707
NEAR_MISS_RADIUS = DODGE_PLAYER_SIZE * 3


@dataclass
class Projectile:
    x: float
    y: float
    vx: float
    vy: float
    target: Target
    size: float = DODGE_PROJECTILE_SIZE


class DodgeArenaGame(ArenaGame):
    game_id = "dodgeArena"
    title = "Dodge Arena"
    ai_type = "Heatmap Targeting"
    description = "The AI learns where you like to hide and aims there."
    width = DODGE_WIDTH
    height = DODGE_HEIGHT

    def _new_session(self) -> None:
        self.agent = SpatialTargeter(self.stats(), rng=self.rng)
        self.player_x: float = self.width / 2
        self.player_y: float = self.height / 2
        self.input_dir: tuple[int, int] = (0, 0)
        self._held: set[int] = set()

        self.score = 0
        self.wave = 1
        self.hp = DODGE_MAX_HP
        self.invincible_ticks = 0
        self.projectiles: list[Projectile] = []
        self.spawn_rate = DODGE_SPAWN_TICKS
        self.spawn_timer = 0
        self.wave_timer = DODGE_WAVE_TICKS

    # ── Input ─────────────────────────────────────────────

    def handle_event(self, event, pos=None) -> None:
        if event.type == pygame.KEYDOWN:
            self._held.add(event.key)
        elif event.type == pygame.KEYUP:
            self._held.discard(event.key)
        else:
            return
        held = self._held
        dx = int(pygame.K_RIGHT in held or pygame.K_d in held) - int(
            pygame.K_LEFT in held or pygame.K_a in held)
        dy = int(pygame.K_DOWN in held or pygame.K_s in held) - int(
            pygame.K_UP in held or pygame.K_w in held)
        self.input_dir = (dx, dy)

    def _move_player(self) -> None:
        dx, dy = self.input_dir
        vx = dx * DODGE_PLAYER_SPEED
        vy = dy * DODGE_PLAYER_SPEED
        if vx and vy:
            vx *= DIAGONAL
            vy *= DIAGONAL
        size = DODGE_PLAYER_SIZE
        self.player_x = max(size, min(self.width - size, self.player_x + vx))
        self.player_y = max(size, min(self.height - size, self.player_y + vy))

    # ── Tick ──────────────────────────────────────────────

    def step(self) -> None:
        self._move_player()
        self.agent.observe((self.player_x, self.player_y))

        self.spawn_timer -= 1
        if self.spawn_timer <= 0:
            self.spawn_projectile()
            self.spawn_timer = max(MIN_SPAWN_TICKS, self.spawn_rate - self.wave * 2)
            if self.wave > BURST_WAVE and self.rng.random() < BURST_CHANCE:
                for i in range(3):
                    self.later(i * BURST_SPACING, self._burst_spawn)

        self._move_projectiles()
        if self.game_over:
            return

        if self.invincible_ticks > 0:
            self.invincible_ticks -= 1

        self.score += 1
        self.wave_timer -= 1
        if self.wave_timer <= 0:
            self.wave += 1
            self.wave_timer = DODGE_WAVE_TICKS
            self.spawn_rate = max(MIN_SPAWN_RATE, self.spawn_rate - 3)
            logger.debug("Dodge wave %d (spawn every %d ticks)", self.wave, self.spawn_rate)

    def _burst_spawn(self) -> None:
        if not self.game_over:
            self.spawn_projectile()

    def spawn_projectile(self) -> Projectile:
        target = self.agent.decide()
        rng = self.rng
        side = rng.randrange(4)
        if side == 0:
            sx, sy = -10.0, rng.random() * self.height
        elif side == 1:
            sx, sy = self.width + 10.0, rng.random() * self.height
        elif side == 2:
            sx, sy = rng.random() * self.width, -10.0
        else:
            sx, sy = rng.random() * self.width, self.height + 10.0

        dx = target.x - sx
        dy = target.y - sy
        dist = math.hypot(dx, dy) or 1.0
        speed = 2.5 + self.wave * 0.3 + self.agent.adaptation
        projectile = Projectile(sx, sy, dx / dist * speed, dy / dist * speed, target)
        self.projectiles.append(projectile)
        return projectile

    def _move_projectiles(self) -> None:
        survivors = []
        for p in self.projectiles:
            p.x += p.vx
            p.y += p.vy
            if p.x < -30 or p.x > self.width + 30 or p.y < -30 or p.y > self.height + 30:
                continue

            dx = p.x - self.player_x
            dy = p.y - self.player_y
            dist = math.hypot(dx, dy)
            if dist < DODGE_PLAYER_SIZE + p.size:
                if self.invincible_ticks <= 0:
                    self._take_hit(p)
                    if self.game_over:
                        return
                continue

            if dist < NEAR_MISS_RADIUS:
                self.agent.observe_near_miss(-dx / dist, -dy / dist)
            survivors.append(p)
        self.projectiles = survivors

    def _take_hit(self, projectile: Projectile) -> None:
        self.hp -= 1
        self.invincible_ticks = INVINCIBLE_TICKS
        self.agent.observe_hit(projectile.target)
        logger.debug("Dodge hit by %s shot, hp=%d", projectile.target.strategy, self.hp)
        if self.hp <= 0:
            self._end_game()

    def _end_game(self) -> None:
        best = max(self.score, int(stored_number(self.stats().get("patterns", {}),
                                                 "best_score", 0)))
        self._finish("loss", extra_summary={
            "best_wave": self.wave,
            "last_score": self.score,
            "best_score": best,
        })

    # ── Reporting ─────────────────────────────────────────

    def get_insights(self) -> list[Insight]:
        return [
            Insight("Wave", str(self.wave), color=NEON_PURPLE),
            Insight("Active Threats", str(len(self.projectiles)), color=NEON_ORANGE),
        ] + self.agent.get_insights()

    def stats_bar(self) -> str:
        return f"Wave {self.wave}   Score {self.score}   HP {self.hp}/{DODGE_MAX_HP}"

    def end_message(self) -> str:
        return "ELIMINATED"

    # ── Rendering ─────────────────────────────────────────

    def _draw_heatmap(self, surface: pygame.Surface) -> None:
        if self.agent.total_samples < 30:
            return
        grid = self.agent.grid
        peak = max(1, int(grid.max()))
        cell_w = self.width / DODGE_GRID
        cell_h = self.height / DODGE_GRID
        overlay = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        for gx in range(DODGE_GRID):
            for gy in range(DODGE_GRID):
                val = grid[gx, gy] / peak
                if val > 0.1:
                    overlay.fill((255, 0, 110, int(val * 60)),
                                 (gx * cell_w, gy * cell_h, math.ceil(cell_w), math.ceil(cell_h)))
        surface.blit(overlay, (0, 0))

    def draw(self, surface: pygame.Surface) -> None:
        surface.fill(BG_COLOR)
        for x in range(0, self.width, 50):
            pygame.draw.line(surface, (20, 20, 32), (x, 0), (x, self.height))
        for y in range(0, self.height, 50):
            pygame.draw.line(surface, (20, 20, 32), (0, y), (self.width, y))
        self._draw_heatmap(surface)

        for p in self.projectiles:
            color = NEON_PINK if p.target.adapted else NEON_ORANGE
            pygame.draw.circle(surface, color, (int(p.x), int(p.y)), int(p.size))

        if self.invincible_ticks <= 0 or (self.invincible_ticks // 4) % 2 == 0:
            pygame.draw.circle(surface, NEON_CYAN, (int(self.player_x), int(self.player_y)),
                               DODGE_PLAYER_SIZE, 2)
            pygame.draw.circle(surface, NEON_CYAN, (int(self.player_x), int(self.player_y)),
                               DODGE_PLAYER_SIZE // 2)

        for i in range(DODGE_MAX_HP):
            color = NEON_PINK if i < self.hp else GRAY
            pygame.draw.circle(surface, color, (20 + i * 22, 20), 8)
        draw_text(surface, f"WAVE {self.wave}   SCORE {self.score}", self.width - 190, 12, LIGHT_GRAY, 20)
        progress = self.wave_timer / DODGE_WAVE_TICKS
        pygame.draw.rect(surface, NEON_PURPLE, (0, self.height - 3, self.width * progress, 3))

        if self.show_end:
            draw_end_screen(surface, self.end_message(), NEON_PINK, [
                f"Wave {self.wave} | Score {self.score}",
                f"AI tracked {self.agent.total_samples} position samples",
            ], hint="R: try again    ESC: back to arena")
