"""helpers.py - Reusable drawing functions."""

import pygame
from settings import WHITE, LIGHT_GRAY, FONT_SIZE

_FONTS = {}


def get_font(size=FONT_SIZE):
    """Cached default font at *size*."""
    font = _FONTS.get(size)
    if font is None:
        if not pygame.font.get_init():
            pygame.font.init()
        font = pygame.font.SysFont(None, size)
        _FONTS[size] = font
    return font


def draw_text(surface, text, x, y, color=WHITE, size=FONT_SIZE):
    """Render a single line of text at (x, y)."""
    rendered = get_font(size).render(text, True, color)
    surface.blit(rendered, (x, y))
    return rendered.get_width()


def draw_text_centered(surface, text, cx, y, color=WHITE, size=FONT_SIZE):
    """Render a single line of text horizontally centred on *cx*."""
    rendered = get_font(size).render(text, True, color)
    surface.blit(rendered, (cx - rendered.get_width() // 2, y))


def draw_end_screen(surface, message, color=WHITE, details=(),
                    hint="R: play again    ESC: back to arena"):
    """Darken a band across the surface and show a large result
    message, optional detail lines and a restart hint."""
    width, height = surface.get_size()
    band_h = 110 + 28 * len(details)
    top = height // 2 - band_h // 2

    overlay = pygame.Surface((width, band_h), pygame.SRCALPHA)
    overlay.fill((0, 0, 0, 200))
    surface.blit(overlay, (0, top))

    draw_text_centered(surface, message, width // 2, top + 12, color, 56)
    y = top + 62
    for line in details:
        draw_text_centered(surface, line, width // 2, y, LIGHT_GRAY, 22)
        y += 28
    draw_text_centered(surface, hint, width // 2, y + 4, LIGHT_GRAY, 18)
