"""
connect4.py – Connect 4 against an alpha-beta search with drifting weights.

Turn-based: the player drops a piece, then the AI search is scheduled a
short moment later so input handling never waits on it.  A search still
pending when the session stops is discarded with the session's token.
"""

from __future__ import annotations

import logging

import pygame

from ai.adaptive_search import AGENT, PLAYER, AdaptiveSearchAgent, Board, SearchConfig
from ai.agent_base import Insight
from games.base import ArenaGame
from utils.helpers import draw_end_screen, draw_text_centered
from settings import (
    C4_COLS, C4_ROWS, C4_THINK_DELAY,
    BG_COLOR, GRAY, LIGHT_GRAY, NEON_CYAN, NEON_PINK, WHITE,
)

logger = logging.getLogger(__name__)

CELL = 64
BOARD_COLOR = (17, 17, 40)
HOLE_COLOR = (10, 10, 18)
HOVER_COLOR = (0, 70, 80)


class Connect4Game(ArenaGame):
    game_id = "connect4"
    title = "Connect 4"
    ai_type = "Adaptive Minimax"
    description = "Alpha-beta search whose heuristics drift toward your favourite columns."
    width = 700
    height = 500

    pad_x = (700 - C4_COLS * CELL) // 2
    pad_y = 90

    # Set before start() to override the search (e.g. a fixed depth)
    search_config: SearchConfig | None = None

    def _new_session(self) -> None:
        self.agent = AdaptiveSearchAgent(self.stats(), self.search_config)
        self.board = Board()
        self.turn: int = PLAYER
        self.thinking: bool = False
        self.winner: int | None = None
        self.win_cells: list[tuple[int, int]] = []
        self.hover_col: int = -1
        self.thinking_text: str = ""

    def step(self) -> None:
        """Turn-based; nothing advances between moves."""

    # ── Moves ─────────────────────────────────────────────

    def can_play(self) -> bool:
        return self.running and not self.game_over and self.turn == PLAYER

    def play_column(self, col: int) -> bool:
        """Player move; returns False when the move is not allowed now."""
        if not self.can_play() or col not in self.board.valid_columns():
            return False
        self.board.drop(col, PLAYER)
        self.agent.observe_player_move(col)
        if self._check_end(PLAYER):
            return True

        self.turn = AGENT
        self.thinking = True
        self.thinking_text = "AI thinking..."
        self.later(C4_THINK_DELAY, self._ai_move)
        return True

    def _ai_move(self) -> None:
        self.thinking = False
        if self.game_over:
            return
        col = self.agent.decide(self.board)
        if col is None:
            self._end(None)
            return
        self.board.drop(col, AGENT)
        self.thinking_text = f"Eval: {self.agent.eval_text()}"
        logger.debug("Connect 4 AI plays column %d", col)
        if not self._check_end(AGENT):
            self.turn = PLAYER

    def _check_end(self, piece: int) -> bool:
        line = self.board.winning_line(piece)
        if line:
            self.win_cells = list(line)
            self._end(piece)
            return True
        if self.board.is_full():
            self._end(None)
            return True
        return False

    def _end(self, winner: int | None) -> None:
        self.winner = winner
        if winner == PLAYER:
            result = "win"
        elif winner == AGENT:
            result = "loss"
        else:
            result = "draw"
        self.agent.observe(result)
        self._finish(result, end_delay=0.8)

    # ── Input ─────────────────────────────────────────────

    def column_at(self, x: float) -> int:
        col = int((x - self.pad_x) // CELL)
        return col if 0 <= col < C4_COLS else -1

    def handle_event(self, event, pos=None) -> None:
        if event.type == pygame.MOUSEMOTION and pos is not None:
            self.hover_col = self.column_at(pos[0])
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and pos is not None:
            col = self.column_at(pos[0])
            if col >= 0:
                self.play_column(col)
        elif event.type == pygame.KEYDOWN and pygame.K_1 <= event.key <= pygame.K_7:
            self.play_column(event.key - pygame.K_1)

    # ── Reporting ─────────────────────────────────────────

    def get_insights(self) -> list[Insight]:
        return self.agent.get_insights()

    def stats_bar(self) -> str:
        if self.game_over:
            return self.end_message()
        if self.thinking or self.turn == AGENT:
            return "AI thinking..."
        return self.thinking_text or "Your move (click a column or press 1-7)"

    # ── Rendering ─────────────────────────────────────────

    def _cell_center(self, row: int, col: int) -> tuple[int, int]:
        return (self.pad_x + col * CELL + CELL // 2, self.pad_y + row * CELL + CELL // 2)

    def draw(self, surface: pygame.Surface) -> None:
        surface.fill(BG_COLOR)
        board_rect = pygame.Rect(self.pad_x - 5, self.pad_y - 5,
                                 C4_COLS * CELL + 10, C4_ROWS * CELL + 10)
        pygame.draw.rect(surface, BOARD_COLOR, board_rect, border_radius=12)

        if self.can_play() and self.hover_col >= 0:
            pygame.draw.rect(surface, HOVER_COLOR,
                             (self.pad_x + self.hover_col * CELL, self.pad_y, CELL, C4_ROWS * CELL))
            pygame.draw.circle(surface, NEON_CYAN,
                               (self.pad_x + self.hover_col * CELL + CELL // 2, self.pad_y // 2),
                               CELL // 2 - 8, 2)

        radius = CELL // 2 - 6
        for r in range(C4_ROWS):
            for c in range(C4_COLS):
                center = self._cell_center(r, c)
                piece = self.board.cells[r][c]
                if piece == PLAYER:
                    color = NEON_CYAN
                elif piece == AGENT:
                    color = NEON_PINK
                else:
                    color = HOLE_COLOR
                pygame.draw.circle(surface, color, center, radius)
                if (r, c) in self.win_cells:
                    pygame.draw.circle(surface, WHITE, center, radius, 3)

        for c in range(C4_COLS):
            draw_text_centered(surface, str(c + 1), self.pad_x + c * CELL + CELL // 2,
                               self.pad_y + C4_ROWS * CELL + 8, GRAY, 18)

        if self.thinking_text and not self.game_over:
            draw_text_centered(surface, self.thinking_text, self.width // 2, 12, LIGHT_GRAY, 18)

        if self.show_end:
            draw_end_screen(surface, self.end_message(), self.end_color())
