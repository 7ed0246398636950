"""
stats.py  –  Per-session report and win-rate trend plot.

SessionReport collects the outcome of one game session (result, duration,
detected patterns and the agent's numeric summary), logs a formatted
summary at session end and hands everything to the player profile.

plot_win_rate_history() draws the profile's AI win-rate series as a line
graph via matplotlib.
"""

import logging
import time

import matplotlib
matplotlib.use("Agg")  # non-interactive backend so the plot doesn't block pygame
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)

DEFAULT_PLOT_FILE = "win_rate_trend.png"


class SessionReport:
    """Tracks one session and produces the end-of-session report.

    Attributes tracked:
        game_id      – str
        result       – 'win' | 'loss' | 'draw' (player's view), set at finish
        duration     – float (seconds, set at finish)
        patterns     – list[str]
        summary      – dict  (agent's structured summary)
    """

    def __init__(self, game_id: str):
        self.game_id: str = game_id
        self.result: str = ""
        self.patterns: list[str] = []
        self.summary: dict = {}

        self._start_time: float = time.time()
        self.duration: float = 0.0
        self.finished: bool = False

    def finish(self, result: str, patterns: list[str], summary: dict, profile=None) -> None:
        """Finalise the report and push it into *profile* (if any).

        Only the first call has any effect.
        """
        if self.finished:
            return
        self.finished = True
        self.result = result
        self.patterns = list(patterns)
        self.summary = dict(summary)
        self.duration = time.time() - self._start_time

        self._log_summary()
        if profile is not None:
            profile.record_game(self.game_id, result, self.patterns)
            profile.update_patterns(self.game_id, self.summary)

    def _log_summary(self) -> None:
        lines = [
            "=" * 52,
            f"  SESSION SUMMARY – {self.game_id}",
            "=" * 52,
            f"  Result           : {self.result}",
            f"  Duration         : {self.duration:.1f}s",
            f"  Patterns         : {', '.join(self.patterns) or 'none'}",
            "-" * 52,
        ]
        for key, value in self.summary.items():
            lines.append(f"  {key:<17}: {value}")
        lines.append("=" * 52)
        logger.info("\n%s", "\n".join(lines))

    def as_dict(self) -> dict:
        """Return a plain dict snapshot (useful for JSON serialisation)."""
        return {
            "game_id": self.game_id,
            "result": self.result,
            "duration": round(self.duration, 2),
            "patterns": list(self.patterns),
            "summary": dict(self.summary),
        }


def plot_win_rate_history(history: list[dict], filename: str = DEFAULT_PLOT_FILE) -> str | None:
    """Save a line graph of the AI win rate per game; return the file name.

    *history* is the profile's win-rate series.  Nothing is written when
    the series is empty.
    """
    history = [point for point in history if isinstance(point, dict)]
    if not history:
        return None

    by_game: dict[str, tuple[list[int], list[float]]] = {}
    for i, point in enumerate(history):
        xs, ys = by_game.setdefault(str(point.get("game", "?")), ([], []))
        xs.append(i + 1)
        ys.append(point.get("ai_win_rate", 0))

    fig, ax = plt.subplots()
    for game, (xs, ys) in sorted(by_game.items()):
        ax.plot(xs, ys, marker="o", label=game)
    ax.set_xlabel("Session")
    ax.set_ylabel("AI Win Rate (%)")
    ax.set_ylim(0, 100)
    ax.set_title("AI Win Rate Trend")
    ax.grid(True)
    ax.legend()

    fig.savefig(filename, dpi=100, bbox_inches="tight")
    plt.close(fig)
    logger.info("Win-rate graph saved to %s", filename)
    return filename
