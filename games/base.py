"""
base.py – Shared interface for the five arena games.

The arena shell only ever talks to games through ArenaGame, so every
game is started, ticked, drawn and stopped the same way.  Each session
gets a fresh agent, a fresh CancelToken and a fresh SessionReport.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod

import pygame

from ai.agent_base import AdaptiveAgent, Insight
from ai.persistence import PlayerProfile
from ai.stats import SessionReport
from settings import FPS, NEON_CYAN, NEON_PINK, NEON_YELLOW
from systems.scheduler import CancelToken, Scheduler

logger = logging.getLogger(__name__)

TICK = 1.0 / FPS


class ArenaGame(ABC):
    """One game + its learning opponent.

    Subclasses set ``game_id``, ``title``, ``width``, ``height`` and
    implement ``_new_session``, ``step``, ``draw`` and ``get_insights``.
    Games are frame-stepped: ``update(dt)`` runs whole ``TICK`` steps.
    """

    game_id: str = ""
    title: str = ""
    ai_type: str = ""
    description: str = ""
    width: int = 700
    height: int = 500

    def __init__(self, profile: PlayerProfile | None = None,
                 scheduler: Scheduler | None = None,
                 rng: random.Random | None = None):
        self.profile = profile
        self.scheduler = scheduler or Scheduler()
        self.rng = rng or random.Random()

        self.token = CancelToken(self.game_id)
        self.token.cancel()                 # nothing running until start()
        self.running: bool = False
        self.game_over: bool = False
        self.show_end: bool = False
        self.result: str = ""
        self.report: SessionReport | None = None
        self.agent: AdaptiveAgent | None = None
        self._acc: float = 0.0

    # ══════════════════════════════════════════════════════
    #  Lifecycle
    # ══════════════════════════════════════════════════════

    def start(self) -> None:
        """Begin a fresh session (new agent, new token)."""
        self.token.cancel()
        self.token = CancelToken(self.game_id)
        self.running = True
        self.game_over = False
        self.show_end = False
        self.result = ""
        self._acc = 0.0
        self.report = SessionReport(self.game_id)
        self._new_session()
        logger.info("Started %s", self.title)

    def stop(self) -> None:
        """Stop the session; pending delayed effects are discarded."""
        self.running = False
        self.token.cancel()

    def restart(self) -> None:
        self.stop()
        self.start()

    def stats(self) -> dict:
        """Profile stats for this game ({} when there is no profile)."""
        if self.profile is None:
            return {}
        return self.profile.get_game_stats(self.game_id)

    def later(self, delay: float, callback) -> None:
        """Schedule *callback* tied to this session's lifetime."""
        self.scheduler.call_later(delay, callback, self.token)

    # ══════════════════════════════════════════════════════
    #  Frame update
    # ══════════════════════════════════════════════════════

    def update(self, dt: float) -> None:
        if not self.running or self.game_over:
            return
        self._acc += dt
        while self._acc >= TICK and not self.game_over:
            self._acc -= TICK
            self.step()

    def handle_event(self, event, pos: tuple[float, float] | None = None) -> None:
        """React to a pygame event; *pos* is the mouse in game coordinates."""

    # ══════════════════════════════════════════════════════
    #  Session end
    # ══════════════════════════════════════════════════════

    def _finish(self, result: str, extra_patterns: list[str] | None = None,
                extra_summary: dict | None = None, end_delay: float = 0.5) -> None:
        """Mark the game over and report it to the profile once."""
        self.game_over = True
        self.result = result
        patterns = (extra_patterns or []) + self.agent.detected_patterns()
        summary = {**self.agent.summary(), **(extra_summary or {})}
        self.report.finish(result, patterns, summary, self.profile)
        self.later(end_delay, self._show_end_screen)

    def _show_end_screen(self) -> None:
        self.show_end = True

    def end_message(self) -> str:
        if self.result == "win":
            return "YOU WIN"
        if self.result == "loss":
            return "AI WINS"
        return "DRAW"

    # ══════════════════════════════════════════════════════
    #  Subclass hooks
    # ══════════════════════════════════════════════════════

    @abstractmethod
    def _new_session(self) -> None:
        """Reset game state and build a fresh agent."""

    @abstractmethod
    def step(self) -> None:
        """Advance the game by one tick."""

    @abstractmethod
    def draw(self, surface: pygame.Surface) -> None:
        """Render onto a surface of size (width, height)."""

    @abstractmethod
    def get_insights(self) -> list[Insight]:
        """Agent insights plus game-level ones."""

    def stats_bar(self) -> str:
        return ""

    def end_color(self) -> tuple[int, int, int]:
        if self.result == "win":
            return NEON_CYAN
        if self.result == "loss":
            return NEON_PINK
        return NEON_YELLOW
