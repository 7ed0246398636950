"""
main.py - Entry point for Neural Arena.

Five small games, each against its own learning opponent:
- Neural Pong      Q-learning paddle          (games/pong.py)
- Connect 4        adaptive alpha-beta search (games/connect4.py)
- Pattern Duel     n-gram sequence predictor  (games/pattern_duel.py)
- Dodge Arena      movement heatmap targeting (games/dodge_arena.py)
- Memory Match     recall-driven difficulty   (games/memory_match.py)

The player profile (ai/persistence.py) is shared by all of them and
shown on the profile screen.

Run:       python main.py
Simulate:  python main.py --simulate connect4 20
Plot:      python main.py --plot
"""
VERSION = "1.0.0"

import argparse
import logging
import sys

import pygame

logger = logging.getLogger(__name__)

# ── Project imports ───────────────────────────────────────
from settings import (
    SCREEN_WIDTH, SCREEN_HEIGHT, FPS, TITLE, BG_COLOR, WHITE, GRAY, LIGHT_GRAY,
    NEON_CYAN, NEON_PINK, NEON_YELLOW, NEON_GREEN, NEON_PURPLE,
    CANVAS_X, CANVAS_Y, CANVAS_W, CANVAS_H,
)
from ai.persistence import PlayerProfile
from ai.stats import plot_win_rate_history
from games import GAMES
from games.base import ArenaGame
from systems import InsightPanel, Scheduler
from utils import draw_text, draw_text_centered


MENU_CARD_H = 76
MENU_TOP = 120


# ══════════════════════════════════════════════════════════
#  GAME CLASS
# ══════════════════════════════════════════════════════════

class Game:
    """Top-level arena controller.  Owns the loop, events, and rendering."""

    def __init__(self):
        pygame.init()
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption(TITLE)
        self.clock = pygame.time.Clock()

        self.profile = PlayerProfile()
        self.scheduler = Scheduler()
        self.panel = InsightPanel(self.screen)

        self.game_ids = list(GAMES)
        self.current: ArenaGame | None = None
        self._canvas_rect = pygame.Rect(CANVAS_X, CANVAS_Y, CANVAS_W, CANVAS_H)
        self._surface: pygame.Surface | None = None
        self._status = ""

        # State
        self.game_state = "MENU"   # "MENU" | "PLAYING" | "PROFILE"
        self.running = True

    # ── Main loop ─────────────────────────────────────────

    def run(self):
        """Start the game loop."""
        while self.running:
            dt = self.clock.tick(FPS) / 1000.0
            self.scheduler.advance(dt)

            if self.game_state == "MENU":
                self._handle_home_events()
                self._draw_home_screen()

            elif self.game_state == "PLAYING":
                self._handle_game_events()
                if self.current is not None:
                    self.current.update(dt)
                self._draw_game()

            elif self.game_state == "PROFILE":
                self._handle_profile_events()
                self._draw_profile_screen()

        if self.current is not None:
            self.current.stop()
        self.profile.save()
        pygame.quit()
        sys.exit()

    # ── Home Screen (MENU state) ──────────────────────────

    def _menu_card_rect(self, index: int) -> pygame.Rect:
        return pygame.Rect(SCREEN_WIDTH // 2 - 320, MENU_TOP + index * (MENU_CARD_H + 10),
                           640, MENU_CARD_H)

    def _handle_home_events(self):
        """Process events on the arena menu."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_p:
                    self._status = ""
                    self.game_state = "PROFILE"
                elif pygame.K_1 <= event.key < pygame.K_1 + len(self.game_ids):
                    self._open_game(self.game_ids[event.key - pygame.K_1])
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                for i, game_id in enumerate(self.game_ids):
                    if self._menu_card_rect(i).collidepoint(event.pos):
                        self._open_game(game_id)
                        break

    def _draw_home_screen(self):
        """Render the arena menu."""
        self.screen.fill(BG_COLOR)
        cx = SCREEN_WIDTH // 2
        draw_text_centered(self.screen, "NEURAL ARENA", cx, 30, NEON_CYAN, 64)
        draw_text_centered(self.screen, "Every opponent learns from you", cx, 80, LIGHT_GRAY, 24)

        mouse = pygame.mouse.get_pos()
        for i, game_id in enumerate(self.game_ids):
            cls = GAMES[game_id]
            rect = self._menu_card_rect(i)
            hovered = rect.collidepoint(mouse)
            pygame.draw.rect(self.screen, (20, 20, 36), rect, border_radius=10)
            pygame.draw.rect(self.screen, NEON_CYAN if hovered else NEON_PURPLE, rect, 2,
                             border_radius=10)

            stats = self.profile.get_game_stats(game_id)
            draw_text(self.screen, f"{i + 1}.  {cls.title}", rect.x + 16, rect.y + 12, WHITE, 30)
            draw_text(self.screen, cls.ai_type, rect.right - 220, rect.y + 16, NEON_PINK, 22)
            draw_text(self.screen, cls.description, rect.x + 44, rect.y + 46, LIGHT_GRAY, 20)
            draw_text(self.screen, f"played {stats.get('played', 0)}", rect.right - 100,
                      rect.y + 46, GRAY, 18)

        level = self.profile.adaptation_level()
        draw_text_centered(self.screen, f"AI adaptation level: {level}%", cx,
                           SCREEN_HEIGHT - 70, NEON_YELLOW, 24)
        draw_text_centered(self.screen, "1-5 / click: play    P: profile    ESC: quit", cx,
                           SCREEN_HEIGHT - 40, GRAY, 22)
        pygame.display.flip()

    # ── Playing ───────────────────────────────────────────

    def _open_game(self, game_id: str):
        """Stop whatever is running and start *game_id*."""
        if self.current is not None:
            self.current.stop()
        self.current = GAMES[game_id](self.profile, self.scheduler)
        self.current.start()
        self._surface = pygame.Surface((self.current.width, self.current.height))

        scale = min(CANVAS_W / self.current.width, CANVAS_H / self.current.height, 1.0)
        w, h = int(self.current.width * scale), int(self.current.height * scale)
        self._canvas_rect = pygame.Rect(CANVAS_X + (CANVAS_W - w) // 2, CANVAS_Y, w, h)
        self.game_state = "PLAYING"

    def _close_game(self):
        if self.current is not None:
            self.current.stop()
        self.current = None
        self._surface = None
        self.game_state = "MENU"

    def _to_game_coords(self, pos) -> tuple[float, float]:
        """Map a window position onto the current game's surface."""
        game = self.current
        rect = self._canvas_rect
        return ((pos[0] - rect.x) * game.width / rect.width,
                (pos[1] - rect.y) * game.height / rect.height)

    def _handle_game_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
                continue
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self._close_game()
                    return
                if event.key == pygame.K_r:
                    self.current.restart()
                    continue

            pos = None
            if event.type in (pygame.MOUSEMOTION, pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP):
                pos = self._to_game_coords(event.pos)
            self.current.handle_event(event, pos)

    def _draw_game(self):
        if self.current is None:
            return
        game = self.current
        self.screen.fill(BG_COLOR)

        draw_text(self.screen, game.title.upper(), CANVAS_X, 14, NEON_CYAN, 34)
        draw_text(self.screen, game.ai_type, CANVAS_X + 260, 22, NEON_PINK, 22)
        draw_text(self.screen, game.stats_bar(), CANVAS_X, SCREEN_HEIGHT - 34, LIGHT_GRAY, 22)
        draw_text(self.screen, "R: restart   ESC: arena", SCREEN_WIDTH - 220, 22, GRAY, 20)

        game.draw(self._surface)
        if self._canvas_rect.size == self._surface.get_size():
            self.screen.blit(self._surface, self._canvas_rect.topleft)
        else:
            self.screen.blit(pygame.transform.smoothscale(self._surface, self._canvas_rect.size),
                             self._canvas_rect.topleft)
        pygame.draw.rect(self.screen, (40, 40, 60), self._canvas_rect.inflate(4, 4), 2)

        self.panel.draw(game.get_insights())
        pygame.display.flip()

    # ── Profile screen ────────────────────────────────────

    def _handle_profile_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_ESCAPE, pygame.K_p):
                    self.game_state = "MENU"
                elif event.key == pygame.K_g:
                    saved = plot_win_rate_history(self.profile.data["win_rate_history"])
                    self._status = f"Saved {saved}" if saved else "No games played yet"
                elif event.key == pygame.K_x:
                    self.profile.reset()
                    self._status = "Profile reset"

    def _draw_profile_screen(self):
        overview = self.profile.get_overview()
        self.screen.fill(BG_COLOR)
        cx = SCREEN_WIDTH // 2
        draw_text_centered(self.screen, "PLAYER PROFILE", cx, 24, NEON_CYAN, 54)
        draw_text_centered(
            self.screen,
            f"Games played: {overview['total_games_played']}    "
            f"AI adaptation: {overview['adaptation_level']}%",
            cx, 74, NEON_YELLOW, 26)

        x0, y = 60, 120
        for label, dx in (("GAME", 0), ("PLAYED", 240), ("WINS", 340), ("LOSSES", 430),
                          ("AI WIN %", 540)):
            draw_text(self.screen, label, x0 + dx, y, GRAY, 20)
        y += 28
        for game_id, g in overview["games"].items():
            draw_text(self.screen, GAMES[game_id].title, x0, y, WHITE, 24)
            draw_text(self.screen, str(g["played"]), x0 + 240, y, LIGHT_GRAY, 24)
            draw_text(self.screen, str(g["wins"]), x0 + 340, y, NEON_CYAN, 24)
            draw_text(self.screen, str(g["losses"]), x0 + 430, y, NEON_PINK, 24)
            draw_text(self.screen, f"{g['ai_win_rate']}%", x0 + 540, y, NEON_YELLOW, 24)
            y += 32

        y += 16
        draw_text(self.screen, "DETECTED PATTERNS", x0, y, NEON_PURPLE, 24)
        y += 30
        patterns = overview["detected_patterns"] or ["Play some games to let the AI learn you."]
        for i, tag in enumerate(patterns[-10:]):
            draw_text(self.screen, f"- {tag}", x0 + (i % 2) * 380, y + (i // 2) * 24,
                      LIGHT_GRAY, 20)

        if self._status:
            draw_text_centered(self.screen, self._status, cx, SCREEN_HEIGHT - 70, NEON_GREEN, 22)
        draw_text_centered(self.screen, "G: save win-rate graph    X: reset profile    ESC: back",
                           cx, SCREEN_HEIGHT - 40, GRAY, 22)
        pygame.display.flip()


# ══════════════════════════════════════════════════════════
#  COMMAND LINE
# ══════════════════════════════════════════════════════════

def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description=f"Neural Arena {VERSION}")
    parser.add_argument("--simulate", nargs=2, metavar=("GAME", "N"),
                        help=f"run N headless bot sessions of GAME ({', '.join(GAMES)})")
    parser.add_argument("--seed", type=int, default=None, help="seed for --simulate")
    parser.add_argument("--save", action="store_true",
                        help="record simulated sessions in the player profile")
    parser.add_argument("--plot", action="store_true",
                        help="save the profile's win-rate graph and exit")
    return parser.parse_args(argv)


def main(argv=None):
    args = _parse_args(argv)

    if args.simulate:
        # Imported here so the interactive arena never pulls in the bots
        from games.simulation import SimulationRunner

        game_id, n = args.simulate
        try:
            runner = SimulationRunner(game_id, int(n), seed=args.seed,
                                      profile=PlayerProfile() if args.save else None)
        except ValueError as exc:
            logger.error("%s", exc)
            return 2
        runner.run(verbose=True)
        return 0

    if args.plot:
        profile = PlayerProfile(autosave=False)
        saved = plot_win_rate_history(profile.data["win_rate_history"])
        if saved is None:
            logger.warning("No win-rate history yet; play a few games first")
            return 1
        print(f"Saved {saved}")
        return 0

    Game().run()
    return 0


# ── Run ───────────────────────────────────────────────────
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    sys.exit(main())
