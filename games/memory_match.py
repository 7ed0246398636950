"""
memory_match.py – Card-pair memory game with recall-driven difficulty.

The board size comes from RecallDifficultyController's tier, and the deck
leans on the symbols this player recalls worst.  Easy tiers open with a
short peek at every card.  Input is locked while a peek, a match or a
mismatch flip-back is pending.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pygame

from ai.agent_base import Insight
from ai.recall_difficulty import RecallDifficultyController, RecallItem
from ai.stats import SessionReport
from games.base import TICK, ArenaGame
from utils.helpers import draw_end_screen, draw_text_centered, get_font
from systems.scheduler import CancelToken
from settings import (
    MEMORY_WIDTH, MEMORY_HEIGHT, MEMORY_GRIDS, MEMORY_SYMBOLS,
    MEMORY_MATCH_DELAY, MEMORY_MISMATCH_DELAY, MEMORY_DEFAULT_TIER,
    BG_COLOR, GRAY, LIGHT_GRAY, NEON_CYAN, NEON_GREEN, NEON_PURPLE,
)

logger = logging.getLogger(__name__)

PAD_X = 40
PAD_Y = 60
CARD_MAX = 80
CARD_GAP = 10
PEEK_TIERS = 2          # tiers at or below this get a peek


def peek_duration(tier: int) -> float:
    """Seconds every card stays face up at round start (0 = no peek)."""
    if tier > PEEK_TIERS:
        return 0.0
    return (1500 - tier * 200) / 1000


@dataclass
class Card:
    index: int
    symbol: str
    rect: pygame.Rect
    flipped: bool = False
    matched: bool = False

    def item(self) -> RecallItem:
        return RecallItem(self.index, self.symbol)


class MemoryMatchGame(ArenaGame):
    game_id = "memoryMatch"
    title = "Memory Match"
    ai_type = "Adaptive Difficulty"
    description = "Difficulty follows your recall; your weakest symbols come back."
    width = MEMORY_WIDTH
    height = MEMORY_HEIGHT

    def _new_session(self) -> None:
        self.agent = RecallDifficultyController(self.stats())
        self.round_number = 0
        self._deal()

    def next_round(self) -> None:
        """Deal the next board with the same controller (after a round ends)."""
        if not self.running or not self.game_over:
            return
        self.token.cancel()
        self.token = CancelToken(self.game_id)
        self.game_over = False
        self.show_end = False
        self.result = ""
        self.report = SessionReport(self.game_id)
        self._deal()

    # ── Board ─────────────────────────────────────────────

    def _deal(self) -> None:
        self.round_number += 1
        self.tier = self.agent.decide()
        cols, rows = MEMORY_GRIDS.get(self.tier, MEMORY_GRIDS[MEMORY_DEFAULT_TIER])
        self.cols, self.rows = cols, rows
        self.total_pairs = cols * rows // 2

        symbols = self.agent.select_symbols(self.total_pairs, MEMORY_SYMBOLS)
        deck = [s for s in symbols for _ in range(2)]
        self.rng.shuffle(deck)

        avail_w = self.width - PAD_X * 2
        avail_h = self.height - PAD_Y * 2
        card_w = min(CARD_MAX, (avail_w - (cols - 1) * CARD_GAP) / cols)
        card_h = min(CARD_MAX, (avail_h - (rows - 1) * CARD_GAP) / rows)
        gap_x = (avail_w - cols * card_w) / max(1, cols - 1)
        gap_y = (avail_h - rows * card_h) / max(1, rows - 1)

        self.cards: list[Card] = []
        for r in range(rows):
            for c in range(cols):
                idx = r * cols + c
                rect = pygame.Rect(int(PAD_X + c * (card_w + gap_x)),
                                   int(PAD_Y + r * (card_h + gap_y)),
                                   int(card_w), int(card_h))
                self.cards.append(Card(idx, deck[idx], rect))

        self.face_up: list[Card] = []
        self.matched = 0
        self.moves = 0
        self.elapsed = 0.0
        self.locked = False
        self.peeking = False

        peek = peek_duration(self.tier)
        if peek > 0:
            self.peeking = True
            self.locked = True
            self.later(peek, self._end_peek)
        logger.info("Memory round %d: tier %d, %dx%d board", self.round_number,
                    self.tier, cols, rows)

    def _end_peek(self) -> None:
        self.peeking = False
        self.locked = False

    def step(self) -> None:
        self.elapsed += TICK

    # ── Flips ─────────────────────────────────────────────

    def can_flip(self) -> bool:
        return self.running and not self.game_over and not self.locked and len(self.face_up) < 2

    def flip(self, index: int) -> bool:
        """Turn card *index* face up; False when the flip is not allowed."""
        if not self.can_flip() or not 0 <= index < len(self.cards):
            return False
        card = self.cards[index]
        if card.flipped or card.matched:
            return False

        card.flipped = True
        self.face_up.append(card)
        self.agent.note_flip(card.index)

        if len(self.face_up) == 2:
            self.moves += 1
            self.locked = True
            a, b = self.face_up
            if a.symbol == b.symbol:
                self.later(MEMORY_MATCH_DELAY, self._resolve_match)
            else:
                self.later(MEMORY_MISMATCH_DELAY, self._resolve_mismatch)
        return True

    def _resolve_match(self) -> None:
        a, b = self.face_up
        a.matched = b.matched = True
        self.matched += 1
        self.agent.observe(((a.item(), b.item()), True))
        self.face_up = []
        self.locked = False
        if self.matched >= self.total_pairs:
            self._end_round()

    def _resolve_mismatch(self) -> None:
        a, b = self.face_up
        a.flipped = b.flipped = False
        self.agent.observe(((a.item(), b.item()), False))
        self.face_up = []
        self.locked = False

    def _end_round(self) -> None:
        self.tier = self.agent.end_round(self.total_pairs)
        self._finish("win", extra_summary={
            "last_moves": self.moves,
            "last_time": round(self.elapsed, 1),
        })

    def efficiency(self) -> int:
        return round(self.total_pairs / self.moves * 100) if self.moves else 0

    # ── Input ─────────────────────────────────────────────

    def card_at(self, pos) -> int | None:
        for card in self.cards:
            if card.rect.collidepoint(pos):
                return card.index
        return None

    def handle_event(self, event, pos=None) -> None:
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and pos is not None:
            index = self.card_at(pos)
            if index is not None:
                self.flip(index)
        elif event.type == pygame.KEYDOWN and event.key == pygame.K_n:
            self.next_round()

    # ── Reporting ─────────────────────────────────────────

    def get_insights(self) -> list[Insight]:
        return self.agent.get_insights() + [
            Insight("Round", str(self.round_number), color=NEON_CYAN),
        ]

    def stats_bar(self) -> str:
        return (f"Tier {self.tier}   Pairs {self.matched}/{self.total_pairs}   "
                f"Moves {self.moves}   Time {self.elapsed:.0f}s")

    def end_message(self) -> str:
        return "COMPLETE!"

    # ── Rendering ─────────────────────────────────────────

    def draw(self, surface: pygame.Surface) -> None:
        surface.fill(BG_COLOR)
        header = f"Difficulty {self.tier}/5   Moves {self.moves}   {self.elapsed:.0f}s"
        if self.peeking:
            header = "Memorise the cards!"
        draw_text_centered(surface, header, self.width // 2, 20, LIGHT_GRAY, 22)

        label_font = get_font(18)
        for card in self.cards:
            if card.matched:
                pygame.draw.rect(surface, NEON_GREEN, card.rect, 2, border_radius=8)
                color = NEON_GREEN
            elif card.flipped or self.peeking:
                pygame.draw.rect(surface, (30, 30, 60), card.rect, border_radius=8)
                pygame.draw.rect(surface, NEON_CYAN, card.rect, 2, border_radius=8)
                color = NEON_CYAN
            else:
                pygame.draw.rect(surface, (25, 15, 40), card.rect, border_radius=8)
                pygame.draw.rect(surface, NEON_PURPLE, card.rect, 1, border_radius=8)
                mark = label_font.render("?", True, GRAY)
                surface.blit(mark, mark.get_rect(center=card.rect.center))
                continue
            text = label_font.render(card.symbol, True, color)
            surface.blit(text, text.get_rect(center=card.rect.center))

        if self.show_end:
            draw_end_screen(surface, self.end_message(), NEON_GREEN, [
                f"{self.moves} moves | {self.elapsed:.1f}s | {self.efficiency()}% efficiency",
                f"Next difficulty: {self.tier}/5 ({self.agent.direction})",
            ], hint="N: next round    R: new session    ESC: back to arena")
