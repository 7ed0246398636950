"""
insight_panel.py – Side panel showing what the current agent has learned.

Renders the list of Insight rows returned by a game's get_insights():
label, value and, where the insight carries a ratio, a fill bar.
Read-only; never touches the agent.
"""

from __future__ import annotations

import pygame

from ai.agent_base import Insight
from utils.helpers import get_font
from settings import PANEL_X, PANEL_W, CANVAS_Y, SCREEN_HEIGHT


# ── Layout constants ──────────────────────────────────────

_PANEL_PAD = 10
_ROW_H = 46
_BAR_H = 5
_LABEL_SIZE = 16
_VALUE_SIZE = 22
_TITLE_SIZE = 20
_BG_ALPHA = 180
_BG_COLOR = (15, 15, 24)
_BORDER_COLOR = (60, 60, 80, 200)
_TITLE_COLOR = (100, 220, 255)
_LABEL_COLOR = (150, 150, 170)
_BAR_BG = (40, 40, 55)


class InsightPanel:
    """Insight HUD drawn beside the game canvas.

    Usage
    -----
    panel = InsightPanel(screen)
    # each frame:  panel.draw(game.get_insights())
    """

    def __init__(self, screen: pygame.Surface,
                 x: int = PANEL_X, y: int = CANVAS_Y, width: int = PANEL_W,
                 height: int | None = None) -> None:
        self._screen = screen
        self.rect = pygame.Rect(x, y, width, height or SCREEN_HEIGHT - y - 20)

    def draw(self, insights: list[Insight], title: str = "AI INSIGHTS") -> None:
        panel = pygame.Surface(self.rect.size, pygame.SRCALPHA)
        panel.fill((*_BG_COLOR, _BG_ALPHA))
        pygame.draw.rect(panel, _BORDER_COLOR, panel.get_rect(), 1)

        inner_w = self.rect.width - _PANEL_PAD * 2
        title_surf = get_font(_TITLE_SIZE).render(title, True, _TITLE_COLOR)
        panel.blit(title_surf, (_PANEL_PAD, _PANEL_PAD))

        y = _PANEL_PAD + 30
        for insight in insights:
            if y + _ROW_H > self.rect.height:
                break
            self._draw_row(panel, insight, y, inner_w)
            y += _ROW_H

        self._screen.blit(panel, self.rect.topleft)

    # ── Internals ─────────────────────────────────────────

    def _draw_row(self, panel: pygame.Surface, insight: Insight, y: int, inner_w: int) -> None:
        label = self._fit(insight.label.upper(), _LABEL_SIZE, inner_w)
        panel.blit(get_font(_LABEL_SIZE).render(label, True, _LABEL_COLOR), (_PANEL_PAD, y))

        value = self._fit(insight.value, _VALUE_SIZE, inner_w)
        panel.blit(get_font(_VALUE_SIZE).render(value, True, insight.color),
                   (_PANEL_PAD, y + 14))

        if insight.ratio is not None:
            bar_y = y + 34
            pygame.draw.rect(panel, _BAR_BG, (_PANEL_PAD, bar_y, inner_w, _BAR_H))
            pygame.draw.rect(panel, insight.color,
                             (_PANEL_PAD, bar_y, int(inner_w * insight.ratio), _BAR_H))

    def _fit(self, text: str, size: int, width: int) -> str:
        """Truncate *text* with '..' so it renders within *width* pixels."""
        font = get_font(size)
        if font.size(text)[0] <= width:
            return text
        while text and font.size(text + "..")[0] > width:
            text = text[:-1]
        return text + ".."
