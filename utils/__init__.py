"""utils package – Reusable drawing helpers."""

from .helpers import get_font, draw_text, draw_text_centered, draw_end_screen
