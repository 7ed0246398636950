"""
adaptive_search.py – Minimax opponent for Connect 4 with a drifting heuristic.

Search:
  - Minimax with alpha-beta pruning over the legal (non-full) columns.
  - Depth grows with the number of games already played against this
    opponent (read from the profile at session start), capped.
  - Terminal wins/losses carry the remaining depth so faster wins and
    slower losses are preferred.

Heuristic:
  - Every 4-cell window is scored; an opponent three-with-a-gap costs more
    than an own three-with-a-gap earns (blocking beats pure offence).
  - Centre-column occupancy bonus.
  - Learned per-column weights, accumulated from the player's column usage
    at the end of every game, reward the AI for contesting those columns.

The search reuses one mutable Board.  Pieces are only ever placed through
Board.placed(), which removes the piece again on every exit path.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass

from ai.agent_base import AdaptiveAgent, Insight, finite_number, stored_number
from settings import (
    C4_COLS, C4_ROWS, C4_BASE_DEPTH, C4_MAX_DEPTH, C4_DEPTH_EVERY,
    C4_WIN_SCORE, C4_OPENING_WEIGHT_RATE,
    NEON_PINK, NEON_PURPLE, NEON_CYAN, NEON_GREEN, NEON_YELLOW,
)

logger = logging.getLogger(__name__)

EMPTY = 0
PLAYER = 1
AGENT = 2

CENTER_COL = C4_COLS // 2


# ══════════════════════════════════════════════════════════
#  Board
# ══════════════════════════════════════════════════════════

class Board:
    """Connect 4 grid.  Row 0 is the top row; pieces fall to the highest row index."""

    def __init__(self, rows: int = C4_ROWS, cols: int = C4_COLS):
        self.rows = rows
        self.cols = cols
        self.cells: list[list[int]] = [[EMPTY] * cols for _ in range(rows)]

    @classmethod
    def from_rows(cls, rows: list[list[int]]) -> "Board":
        board = cls(len(rows), len(rows[0]))
        board.cells = [list(r) for r in rows]
        return board

    def copy(self) -> "Board":
        return Board.from_rows(self.cells)

    def __eq__(self, other) -> bool:
        return isinstance(other, Board) and self.cells == other.cells

    # ── Moves ─────────────────────────────────────────────

    def valid_columns(self) -> list[int]:
        return [c for c in range(self.cols) if self.cells[0][c] == EMPTY]

    def is_full(self) -> bool:
        return not self.valid_columns()

    def drop(self, col: int, piece: int) -> int:
        """Place *piece* in *col*; return the landing row or -1 if full."""
        for r in range(self.rows - 1, -1, -1):
            if self.cells[r][col] == EMPTY:
                self.cells[r][col] = piece
                return r
        return -1

    def undo(self, col: int) -> None:
        """Remove the top piece of *col* (exact inverse of drop)."""
        for r in range(self.rows):
            if self.cells[r][col] != EMPTY:
                self.cells[r][col] = EMPTY
                return

    @contextmanager
    def placed(self, col: int, piece: int):
        """Drop a piece for the duration of the block, then take it back."""
        row = self.drop(col, piece)
        try:
            yield row
        finally:
            if row >= 0:
                self.cells[row][col] = EMPTY

    # ── Lines ─────────────────────────────────────────────

    def winning_line(self, piece: int) -> list[tuple[int, int]] | None:
        """Cells of a four-in-a-row for *piece*, or None."""
        for window in windows(self.rows, self.cols):
            if all(self.cells[r][c] == piece for r, c in window):
                return list(window)
        return None

    def count_in_column(self, col: int, piece: int) -> int:
        return sum(1 for r in range(self.rows) if self.cells[r][col] == piece)


_WINDOW_CACHE: dict[tuple[int, int], list[tuple[tuple[int, int], ...]]] = {}


def windows(rows: int, cols: int) -> list[tuple[tuple[int, int], ...]]:
    """Every in-bounds run of four cells (horizontal, vertical, diagonals)."""
    key = (rows, cols)
    if key not in _WINDOW_CACHE:
        found = []
        for r in range(rows):
            for c in range(cols):
                for dr, dc in ((0, 1), (1, 0), (1, 1), (1, -1)):
                    cells = tuple((r + dr * i, c + dc * i) for i in range(4))
                    if all(0 <= nr < rows and 0 <= nc < cols for nr, nc in cells):
                        found.append(cells)
        _WINDOW_CACHE[key] = found
    return _WINDOW_CACHE[key]


# ══════════════════════════════════════════════════════════
#  Configuration
# ══════════════════════════════════════════════════════════

@dataclass
class SearchConfig:
    """Tunables for the minimax opponent."""

    base_depth: int = C4_BASE_DEPTH
    max_depth: int = C4_MAX_DEPTH
    depth_every: int = C4_DEPTH_EVERY   # games per extra ply
    depth: int | None = None            # fixed depth override

    win_score: int = C4_WIN_SCORE

    # Window scores (AI perspective)
    four_score: int = 10000
    three_score: int = 50
    block_three_penalty: int = 80       # larger than three_score on purpose
    two_score: int = 10
    center_bonus: int = 3
    weight_scale: float = 2.0           # per AI piece in a weighted column

    opening_weight_rate: float = C4_OPENING_WEIGHT_RATE


# ══════════════════════════════════════════════════════════
#  Agent
# ══════════════════════════════════════════════════════════

class AdaptiveSearchAgent(AdaptiveAgent):
    """Alpha-beta minimax with learned column weights.

    Usage:
        agent = AdaptiveSearchAgent(profile.get_game_stats("connect4"))
        agent.observe_player_move(col)          # each player move
        col = agent.decide(board)               # on the AI's turn
        agent.observe("win" | "loss" | "draw")  # at game end (player view)
    """

    game_id = "connect4"

    def __init__(self, stats: dict | None = None,
                 config: SearchConfig | None = None):
        self.cfg = config or SearchConfig()
        stats = stats if isinstance(stats, dict) else {}

        self.games_played = max(0, int(stored_number(stats, "played", 0)))
        if self.cfg.depth is not None:
            self.depth = max(1, self.cfg.depth)
        else:
            self.depth = min(
                self.cfg.max_depth,
                self.cfg.base_depth + self.games_played // max(1, self.cfg.depth_every),
            )

        self.column_weights: list[float] = [0.0] * C4_COLS
        stored = stats.get("patterns", {})
        stored_weights = stored.get("column_weights") if isinstance(stored, dict) else None
        if isinstance(stored_weights, list) and len(stored_weights) == C4_COLS:
            for c, w in enumerate(stored_weights):
                self.column_weights[c] = max(0.0, finite_number(w, 0.0))

        self.player_moves: list[int] = []
        self.openings: Counter = Counter()
        self.last_scores: dict[int, float] = {}
        self.nodes: int = 0

        logger.info(
            "Connect 4 AI: depth=%d (games played=%d), weights=%s",
            self.depth, self.games_played,
            [round(w, 1) for w in self.column_weights],
        )

    # ══════════════════════════════════════════════════════
    #  Evaluation
    # ══════════════════════════════════════════════════════

    def evaluate(self, board: Board) -> float:
        """Static score of *board* from the AI's point of view (pure)."""
        cfg = self.cfg
        cells = board.cells
        score = 0.0

        centre = board.cols // 2
        for r in range(board.rows):
            if cells[r][centre] == AGENT:
                score += cfg.center_bonus
            elif cells[r][centre] == PLAYER:
                score -= cfg.center_bonus

        for window in windows(board.rows, board.cols):
            ai = pl = 0
            for r, c in window:
                v = cells[r][c]
                if v == AGENT:
                    ai += 1
                elif v == PLAYER:
                    pl += 1
            empty = 4 - ai - pl
            if ai == 4:
                score += cfg.four_score
            elif pl == 4:
                score -= cfg.four_score
            elif ai == 3 and empty == 1:
                score += cfg.three_score
            elif pl == 3 and empty == 1:
                score -= cfg.block_three_penalty
            elif ai == 2 and empty == 2:
                score += cfg.two_score
            elif pl == 2 and empty == 2:
                score -= cfg.two_score

        for c, weight in enumerate(self.column_weights[:board.cols]):
            if weight:
                score += weight * cfg.weight_scale * board.count_in_column(c, AGENT)

        return score

    # ══════════════════════════════════════════════════════
    #  Search
    # ══════════════════════════════════════════════════════

    def minimax(self, board: Board, depth: int, alpha: float, beta: float,
                maximizing: bool, prune: bool = True) -> float:
        """Minimax value of *board*; *prune* toggles alpha-beta cut-offs."""
        self.nodes += 1
        win = self.cfg.win_score
        if board.winning_line(AGENT):
            return win + depth
        if board.winning_line(PLAYER):
            return -win - depth
        valid = board.valid_columns()
        if not valid or depth == 0:
            return self.evaluate(board)

        if maximizing:
            best = -math.inf
            for col in valid:
                with board.placed(col, AGENT):
                    ev = self.minimax(board, depth - 1, alpha, beta, False, prune)
                best = max(best, ev)
                alpha = max(alpha, ev)
                if prune and beta <= alpha:
                    break
            return best

        best = math.inf
        for col in valid:
            with board.placed(col, PLAYER):
                ev = self.minimax(board, depth - 1, alpha, beta, True, prune)
            best = min(best, ev)
            beta = min(beta, ev)
            if prune and beta <= alpha:
                break
        return best

    def score_moves(self, board: Board, depth: int | None = None,
                    prune: bool = True) -> dict[int, float]:
        """Exact minimax score of every legal column for the AI."""
        depth = self.depth if depth is None else depth
        scores: dict[int, float] = {}
        for col in board.valid_columns():
            with board.placed(col, AGENT):
                scores[col] = self.minimax(board, depth - 1, -math.inf, math.inf,
                                           False, prune)
        return scores

    def decide(self, board: Board, depth: int | None = None,
               prune: bool = True) -> int | None:
        """Best column for the AI (leftmost on ties); None on a full board."""
        self.nodes = 0
        work = board.copy()
        scores = self.score_moves(work, depth, prune)
        self.last_scores = scores
        if not scores:
            return None
        best_col = None
        best_score = -math.inf
        for col, score in scores.items():
            if best_col is None or score > best_score:
                best_col, best_score = col, score
        logger.debug("Connect 4 search: %d nodes, scores=%s", self.nodes, scores)
        return best_col

    # ══════════════════════════════════════════════════════
    #  Adaptation
    # ══════════════════════════════════════════════════════

    def observe_player_move(self, col: int) -> None:
        """Record a player move; the first three form the opening."""
        if not 0 <= col < C4_COLS:
            return
        self.player_moves.append(col)
        if len(self.player_moves) <= 3:
            key = ",".join(str(c) for c in self.player_moves)
            self.openings[key] += 1

    def column_counts(self) -> list[int]:
        counts = [0] * C4_COLS
        for col in self.player_moves:
            counts[col] += 1
        return counts

    def observe(self, outcome: str) -> None:
        """Game over: fold this game's column usage into the weights."""
        rate = self.cfg.opening_weight_rate
        for c, n in enumerate(self.column_counts()):
            weight = finite_number(self.column_weights[c] + n * rate, 0.0)
            self.column_weights[c] = max(0.0, weight)
        logger.info(
            "Connect 4 game ended (%s); column weights now %s",
            outcome, [round(w, 1) for w in self.column_weights],
        )

    # ══════════════════════════════════════════════════════
    #  Reporting
    # ══════════════════════════════════════════════════════

    def eval_text(self) -> str:
        """Per-column scores of the last search, e.g. 'C1:+12 | C4:+40'."""
        parts = []
        for col, score in sorted(self.last_scores.items()):
            sign = "+" if score > 0 else ""
            parts.append(f"C{col + 1}:{sign}{round(score)}")
        return " | ".join(parts)

    def detected_patterns(self) -> list[str]:
        counts = self.column_counts()
        total = sum(counts)
        if total == 0:
            return []
        patterns = []
        if counts[CENTER_COL] / total > 0.4:
            patterns.append("Opens center in Connect 4")
        if sum(counts[:CENTER_COL]) / total > 0.6:
            patterns.append("Favors left side in Connect 4")
        if sum(counts[CENTER_COL + 1:]) / total > 0.6:
            patterns.append("Favors right side in Connect 4")
        return patterns

    def get_insights(self) -> list[Insight]:
        insights = [
            Insight("AI Depth", f"{self.depth} ply", color=NEON_PINK),
            Insight("Games Learned", str(self.games_played), color=NEON_PURPLE),
            Insight("Move History", str(len(self.player_moves)), color=NEON_CYAN),
            Insight("Openings Tracked", str(len(self.openings)), color=NEON_GREEN),
        ]
        top = max(range(C4_COLS), key=lambda c: self.column_weights[c])
        total = sum(self.column_weights)
        if total > 0:
            insights.append(Insight(
                "Contested Column", f"C{top + 1}",
                self.column_weights[top] / total, NEON_YELLOW,
            ))
        return insights

    def summary(self) -> dict:
        return {
            "column_weights": [round(w, 3) for w in self.column_weights],
            "depth": self.depth,
            "openings": len(self.openings),
        }

    def reset(self) -> None:
        self.player_moves.clear()
        self.openings.clear()
        self.last_scores = {}
