"""
simulation.py – Headless scripted-bot simulation.

Plays N sessions of one game with a scripted bot in the player's seat.
Nothing is rendered; every session is driven by fixed ticks and the
shared scheduler, exactly as the arena loop drives it.

Usage (from CLI):
    python main.py --simulate connect4 20

Each bot has a deliberate habit (a favourite column, a repeating symbol
cycle, a corner to hide in...) so the agents have something to learn.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ai.persistence import PlayerProfile
from games import GAMES
from games.base import TICK, ArenaGame
from settings import FPS
from systems.scheduler import Scheduler

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Per-session result
# ══════════════════════════════════════════════════════════

@dataclass
class SimResult:
    """Lightweight record for one simulated session."""
    session_number: int = 0
    game_id: str = ""
    result: str = ""                # "win" | "loss" | "draw" | "timeout"
    ticks: int = 0
    patterns: list[str] = field(default_factory=list)
    summary: dict = field(default_factory=dict)


# ══════════════════════════════════════════════════════════
#  Bots
# ══════════════════════════════════════════════════════════

class Bot(ABC):
    """Scripted player; ``act`` is called once per tick."""

    def __init__(self, rng: random.Random):
        self.rng = rng

    def begin(self, game: ArenaGame) -> None:
        pass

    @abstractmethod
    def act(self, game: ArenaGame) -> None:
        """Make this tick's input on *game*."""


class PongBot(Bot):
    """Tracks the ball with a lag and habitually hits with the paddle's lower half."""

    def __init__(self, rng, skill: float = 0.8, aim_offset: float = 20.0):
        super().__init__(rng)
        self.skill = skill
        self.aim_offset = aim_offset

    def act(self, game) -> None:
        if self.rng.random() < self.skill:
            jitter = self.rng.uniform(-10, 10)
            game.mouse_y = game.ball_y + self.aim_offset + jitter


class Connect4Bot(Bot):
    """Random legal moves with a strong pull toward one column."""

    def __init__(self, rng, favourite: int = 3, bias: float = 0.5):
        super().__init__(rng)
        self.favourite = favourite
        self.bias = bias

    def act(self, game) -> None:
        if not game.can_play():
            return
        valid = game.board.valid_columns()
        if self.favourite in valid and self.rng.random() < self.bias:
            game.play_column(self.favourite)
        else:
            game.play_column(self.rng.choice(valid))


class DuelBot(Bot):
    """Repeats a fixed symbol cycle, sometimes breaking it at random."""

    def __init__(self, rng, cycle: tuple[int, ...] = (0, 1, 2), noise: float = 0.2):
        super().__init__(rng)
        self.cycle = cycle
        self.noise = noise
        self._i = 0

    def begin(self, game) -> None:
        self._i = 0

    def act(self, game) -> None:
        if not game.can_choose():
            return
        if self.rng.random() < self.noise:
            choice = self.rng.randrange(5)
        else:
            choice = self.cycle[self._i % len(self.cycle)]
        self._i += 1
        game.choose(choice)


class DodgeBot(Bot):
    """Drifts back to one corner and dodges in random bursts."""

    def __init__(self, rng, home: tuple[float, float] = (0.2, 0.2),
                 home_bias: float = 0.6, hold_ticks: int = 30):
        super().__init__(rng)
        self.home = home
        self.home_bias = home_bias
        self.hold_ticks = hold_ticks
        self._t = 0

    def begin(self, game) -> None:
        self._t = 0

    def act(self, game) -> None:
        self._t += 1
        if self._t % self.hold_ticks:
            return
        if self.rng.random() < self.home_bias:
            hx, hy = self.home[0] * game.width, self.home[1] * game.height
            dx = (hx > game.player_x + 5) - (hx < game.player_x - 5)
            dy = (hy > game.player_y + 5) - (hy < game.player_y - 5)
        else:
            dx, dy = self.rng.choice((-1, 0, 1)), self.rng.choice((-1, 0, 1))
        game.input_dir = (dx, dy)


class MemoryBot(Bot):
    """Remembers each revealed card with probability *recall*."""

    def __init__(self, rng, recall: float = 0.7):
        super().__init__(rng)
        self.recall = recall
        self.memory: dict[int, str] = {}
        self._target: int | None = None
        self._peeked = False

    def begin(self, game) -> None:
        self.memory.clear()
        self._target = None
        self._peeked = False

    def _remember(self, index: int, symbol: str) -> None:
        if self.rng.random() < self.recall:
            self.memory[index] = symbol

    def _open(self, game) -> list[int]:
        return [c.index for c in game.cards if not c.matched and not c.flipped]

    def _known_pair(self, game) -> tuple[int, int] | None:
        open_ = set(self._open(game))
        seen: dict[str, int] = {}
        for idx, sym in self.memory.items():
            if idx not in open_:
                continue
            if sym in seen:
                return seen[sym], idx
            seen[sym] = idx
        return None

    def _flip(self, game, index: int) -> None:
        if game.flip(index):
            self._remember(index, game.cards[index].symbol)

    def act(self, game) -> None:
        if game.peeking and not self._peeked:
            self._peeked = True
            for card in game.cards:
                self._remember(card.index, card.symbol)
        if not game.can_flip():
            return

        open_ = self._open(game)
        if not open_:
            return
        unknown = [i for i in open_ if i not in self.memory] or open_

        if not game.face_up:
            pair = self._known_pair(game)
            if pair is not None:
                self._target = pair[1]
                self._flip(game, pair[0])
            else:
                self._target = None
                self._flip(game, self.rng.choice(unknown))
            return

        first = game.face_up[0]
        if self._target is not None and self._target in open_:
            target, self._target = self._target, None
            self._flip(game, target)
            return
        for idx in open_:
            if self.memory.get(idx) == first.symbol:
                self._flip(game, idx)
                return
        self._flip(game, self.rng.choice(unknown))


BOTS: dict[str, type[Bot]] = {
    "pong": PongBot,
    "connect4": Connect4Bot,
    "patternDuel": DuelBot,
    "dodgeArena": DodgeBot,
    "memoryMatch": MemoryBot,
}


# ══════════════════════════════════════════════════════════
#  Runner
# ══════════════════════════════════════════════════════════

class SimulationRunner:
    """Run *n_sessions* headless sessions of *game_id* against its bot.

    Parameters
    ----------
    game_id    : key into GAMES
    n_sessions : how many sessions to play
    profile    : shared profile (defaults to a blank in-memory one)
    seed       : seeds both the bot and the game's randomness
    max_ticks  : a session still running after this many ticks is a timeout
    """

    def __init__(self, game_id: str, n_sessions: int = 10,
                 profile: PlayerProfile | None = None, seed: int | None = None,
                 max_ticks: int = FPS * 60 * 10, bot: Bot | None = None,
                 setup=None):
        if game_id not in GAMES:
            raise ValueError(f"Unknown game {game_id!r}; choose from {', '.join(GAMES)}")
        self.game_id = game_id
        self.n_sessions = max(1, n_sessions)
        self.profile = profile or PlayerProfile(autosave=False, load=False)
        self.rng = random.Random(seed)
        self.bot = bot or BOTS[game_id](random.Random(self.rng.random()))
        self.max_ticks = max_ticks
        self.setup = setup          # optional callable(game) run before start()
        self.scheduler = Scheduler()
        self.results: list[SimResult] = []

    # ── Public entry point ────────────────────────────────

    def run(self, verbose: bool = False) -> list[SimResult]:
        """Play every session; print a summary when *verbose*."""
        for i in range(1, self.n_sessions + 1):
            logger.info("=== Simulation %s %d / %d ===", self.game_id, i, self.n_sessions)
            result = self.play_one(i)
            self.results.append(result)
            logger.info("Session %d: %s after %d ticks", i, result.result, result.ticks)
        if verbose:
            self.print_summary()
        return self.results

    def play_one(self, session_number: int) -> SimResult:
        game = GAMES[self.game_id](self.profile, self.scheduler,
                                   random.Random(self.rng.random()))
        if self.setup is not None:
            self.setup(game)
        game.start()
        self.bot.begin(game)

        ticks = 0
        while not game.game_over and ticks < self.max_ticks:
            self.bot.act(game)
            game.update(TICK)
            self.scheduler.advance(TICK)
            ticks += 1

        if game.game_over:
            outcome = game.result
            report = game.report.as_dict()
            patterns, summary = report["patterns"], report["summary"]
        else:
            logger.warning("Session %d timed out after %d ticks", session_number, ticks)
            outcome, patterns, summary = "timeout", [], game.agent.summary()
        game.stop()
        return SimResult(session_number, self.game_id, outcome, ticks, patterns, summary)

    # ── Summary printout ──────────────────────────────────

    def print_summary(self) -> None:
        n = len(self.results)
        if n == 0:
            print("\nNo sessions completed.")
            return

        print(f"\n{'=' * 58}")
        print(f"  Simulation Results  {self.game_id}  ({n} sessions)")
        print(f"{'=' * 58}")

        for outcome in ("win", "loss", "draw", "timeout"):
            count = sum(1 for r in self.results if r.result == outcome)
            if count or outcome in ("win", "loss"):
                label = {"win": "Bot wins", "loss": "AI wins"}.get(outcome, outcome.title())
                print(f"  {label:<12}: {count:>4d}  ({100 * count / n:.1f}%)")

        avg_ticks = sum(r.ticks for r in self.results) / n
        print(f"\n  Avg session length : {avg_ticks / FPS:.1f}s ({avg_ticks:.0f} ticks)")

        tags: dict[str, int] = {}
        for r in self.results:
            for tag in r.patterns:
                tags[tag] = tags.get(tag, 0) + 1
        if tags:
            print("\n  Detected patterns:")
            for tag in sorted(tags, key=lambda t: tags[t], reverse=True):
                print(f"    {tag:<36s} x{tags[tag]}")

        print("\n  Final agent summary:")
        for key, value in self.results[-1].summary.items():
            print(f"    {key:<20s}: {value}")
        print(f"\n  Adaptation level   : {self.profile.adaptation_level()}")
        print(f"{'=' * 58}\n")
