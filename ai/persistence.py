"""
persistence.py  –  Cross-game player profile.

Loads / saves the player's arena profile from 'player_profile.json':
per-game play counts, stored pattern summaries, the detected-pattern tags
shown on the profile screen and a win-rate time series.

Agents never touch the file; games read `get_game_stats()` at session
start and call `record_game()` / `update_patterns()` at session end.
A missing or corrupt file is never fatal: defaults are used and the
problem is logged here.
"""

import json
import logging
import math
import os
import time

from settings import PROFILE_FILENAME, WIN_RATE_HISTORY_MAX, DETECTED_PATTERNS_MAX

logger = logging.getLogger(__name__)

# JSON file lives in the project root
_JSON_PATH = os.path.join(
    os.path.dirname(os.path.dirname(__file__)),
    PROFILE_FILENAME,
)

PROFILE_VERSION = 2

# Canonical list of all games (must match games.GAMES ids)
ALL_GAMES = ["pong", "connect4", "patternDuel", "dodgeArena", "memoryMatch"]


def _default_entry() -> dict:
    """Return a fresh stats entry for one game."""
    return {
        "played": 0,
        "wins": 0,
        "losses": 0,
        "draws": 0,
        "patterns": {},
    }


def _default_data() -> dict:
    """Return a full default profile covering every game."""
    return {
        "version": PROFILE_VERSION,
        "created": time.time(),
        "total_games_played": 0,
        "games": {name: _default_entry() for name in ALL_GAMES},
        "detected_patterns": [],
        "win_rate_history": [],     # [{timestamp, game, ai_win_rate}]
    }


def _is_number(value) -> bool:
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value))


def _valid_history_point(point) -> bool:
    return (isinstance(point, dict) and isinstance(point.get("game"), str)
            and _is_number(point.get("ai_win_rate")))


def _merge_defaults(saved: dict) -> dict:
    """Overlay *saved* on the defaults, dropping anything of the wrong shape."""
    data = _default_data()
    for key in ("created", "total_games_played"):
        if _is_number(saved.get(key)):
            data[key] = saved[key]
    if isinstance(saved.get("detected_patterns"), list):
        data["detected_patterns"] = [
            tag for tag in saved["detected_patterns"] if isinstance(tag, str)
        ][-DETECTED_PATTERNS_MAX:]
    if isinstance(saved.get("win_rate_history"), list):
        data["win_rate_history"] = [
            point for point in saved["win_rate_history"] if _valid_history_point(point)
        ][-WIN_RATE_HISTORY_MAX:]

    games = saved.get("games")
    if isinstance(games, dict):
        for name in ALL_GAMES:
            entry = games.get(name)
            if not isinstance(entry, dict):
                continue
            merged = _default_entry()
            for field in ("played", "wins", "losses", "draws"):
                value = entry.get(field)
                if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                    merged[field] = value
            if isinstance(entry.get("patterns"), dict):
                merged["patterns"] = entry["patterns"]
            data["games"][name] = merged
    return data


# ==============================================================
#  Profile
# ==============================================================

class PlayerProfile:
    """Key-value store keyed by game id.

    Parameters
    ----------
    path     : JSON file location (defaults to the project root)
    load     : read the file now (False starts from a blank profile)
    autosave : write to disk after every change
    """

    def __init__(self, path: str | None = None, autosave: bool = True,
                 load: bool = True):
        self.path = path or _JSON_PATH
        self.autosave = autosave
        self.data = self.load() if load else _default_data()

    # ── Disk ──────────────────────────────────────────────

    def load(self) -> dict:
        """Load the profile from disk.

        If the file does not exist or is corrupt, a fresh default
        structure is returned.
        """
        if not os.path.isfile(self.path):
            return _default_data()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                saved = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Failed to load profile %s (%s); using defaults", self.path, exc)
            return _default_data()

        if not isinstance(saved, dict):
            logger.warning("Profile %s is malformed; using defaults", self.path)
            return _default_data()

        return _merge_defaults(saved)

    def save(self) -> None:
        """Write the full profile to disk."""
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Failed to save profile %s: %s", self.path, exc)

    def _changed(self) -> None:
        if self.autosave:
            self.save()

    # ── Game API ──────────────────────────────────────────

    def get_game_stats(self, game_id: str) -> dict:
        """Copy of the stats entry for *game_id* ({} for unknown games)."""
        entry = self.data["games"].get(game_id)
        if entry is None:
            return {}
        return {**entry, "patterns": dict(entry.get("patterns", {}))}

    def record_game(self, game_id: str, result: str, patterns: list[str] | None = None) -> None:
        """Count one finished game.

        Parameters
        ----------
        game_id  : which game was played
        result   : 'win', 'loss' or 'draw' from the player's point of view
        patterns : human-readable tags detected this session
        """
        entry = self.data["games"].get(game_id)
        if entry is None:
            logger.warning("record_game: unknown game %r", game_id)
            return

        entry["played"] += 1
        self.data["total_games_played"] += 1
        if result == "win":
            entry["wins"] += 1
        elif result == "loss":
            entry["losses"] += 1
        else:
            entry["draws"] += 1

        ai_win_rate = entry["losses"] / max(1, entry["played"]) * 100
        history = self.data["win_rate_history"]
        history.append({
            "timestamp": time.time(),
            "game": game_id,
            "ai_win_rate": round(ai_win_rate),
        })
        self.data["win_rate_history"] = history[-WIN_RATE_HISTORY_MAX:]

        detected = self.data["detected_patterns"]
        for tag in patterns or []:
            if tag not in detected:
                detected.append(tag)
        self.data["detected_patterns"] = detected[-DETECTED_PATTERNS_MAX:]

        self._changed()
        logger.info(
            "Recorded %s: result=%s played=%d wins=%d losses=%d patterns=%s",
            game_id, result, entry["played"], entry["wins"], entry["losses"],
            patterns or [],
        )

    def update_patterns(self, game_id: str, summary: dict) -> None:
        """Merge a structured numeric summary into the game's pattern data."""
        entry = self.data["games"].get(game_id)
        if entry is None:
            logger.warning("update_patterns: unknown game %r", game_id)
            return
        entry["patterns"].update(summary)
        self._changed()

    # ── Overview ──────────────────────────────────────────

    def adaptation_level(self) -> int:
        """0–99 score of how much the arena has learned about the player."""
        games = self.data["games"].values()
        total = sum(g["played"] for g in games)
        ai_wins = sum(g["losses"] for g in games)
        n_patterns = len(self.data["detected_patterns"])
        return min(99, int(total * 0.5 + n_patterns * 3 + ai_wins * 0.3))

    def get_overview(self) -> dict:
        stats = {}
        for name, g in self.data["games"].items():
            played = g["played"]
            stats[name] = {
                "played": played,
                "wins": g["wins"],
                "losses": g["losses"],
                "win_rate": round(g["wins"] / played * 100) if played else 0,
                "ai_win_rate": round(g["losses"] / played * 100) if played else 0,
            }
        return {
            "total_games_played": self.data["total_games_played"],
            "adaptation_level": self.adaptation_level(),
            "detected_patterns": list(self.data["detected_patterns"]),
            "win_rate_history": list(self.data["win_rate_history"]),
            "games": stats,
        }

    def reset(self) -> None:
        """Forget everything (explicit profile reset)."""
        self.data = _default_data()
        self._changed()
        logger.info("Profile reset")
