"""Tests for the player profile and session reports."""

import json
import logging

from ai.persistence import ALL_GAMES, PlayerProfile
from ai.stats import SessionReport, plot_win_rate_history


class TestLoad:

    def test_missing_file_gives_defaults(self, tmp_path):
        profile = PlayerProfile(path=str(tmp_path / "nope.json"))
        assert profile.data["total_games_played"] == 0
        assert set(profile.data["games"]) == set(ALL_GAMES)

    def test_corrupt_file_gives_defaults(self, tmp_path, caplog):
        path = tmp_path / "profile.json"
        path.write_text("{not json", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="ai.persistence"):
            profile = PlayerProfile(path=str(path))
        assert profile.data["total_games_played"] == 0
        assert "Failed to load profile" in caplog.text

    def test_wrong_shape_gives_defaults(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        profile = PlayerProfile(path=str(path))
        assert profile.get_game_stats("pong")["played"] == 0

    def test_bad_fields_are_dropped(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text(json.dumps({
            "total_games_played": "many",
            "detected_patterns": "oops",
            "games": {
                "pong": {"played": 4, "wins": -1, "losses": "x", "patterns": {"q_states": 9}},
                "connect4": "broken",
            },
        }), encoding="utf-8")
        profile = PlayerProfile(path=str(path))
        pong = profile.get_game_stats("pong")
        assert pong["played"] == 4
        assert pong["wins"] == 0 and pong["losses"] == 0
        assert pong["patterns"] == {"q_states": 9}
        assert profile.get_game_stats("connect4")["played"] == 0
        assert profile.data["detected_patterns"] == []
        assert profile.data["total_games_played"] == 0

    def test_damaged_lists_keep_only_valid_entries(self, tmp_path):
        path = tmp_path / "profile.json"
        good = {"timestamp": 1.0, "game": "pong", "ai_win_rate": 50}
        path.write_text(json.dumps({
            "detected_patterns": ["Aims low in Pong", 7, None],
            "win_rate_history": [1, "x", good, {"game": 3, "ai_win_rate": 10},
                                 {"game": "pong", "ai_win_rate": "high"}],
        }), encoding="utf-8")
        profile = PlayerProfile(path=str(path), autosave=False)
        assert profile.data["detected_patterns"] == ["Aims low in Pong"]
        assert profile.data["win_rate_history"] == [good]

        out = tmp_path / "trend.png"
        assert plot_win_rate_history(profile.data["win_rate_history"], str(out)) == str(out)
        assert out.exists()

    def test_plot_ignores_malformed_points(self, tmp_path):
        assert plot_win_rate_history([1, "x"], str(tmp_path / "x.png")) is None

    def test_save_and_reload(self, tmp_path):
        path = str(tmp_path / "profile.json")
        profile = PlayerProfile(path=path)
        profile.record_game("connect4", "loss", ["Opens center in Connect 4"])
        profile.update_patterns("connect4", {"column_weights": [0, 0, 0, 1.5, 0, 0, 0]})

        again = PlayerProfile(path=path)
        stats = again.get_game_stats("connect4")
        assert stats["played"] == 1 and stats["losses"] == 1
        assert stats["patterns"]["column_weights"][3] == 1.5
        assert again.data["detected_patterns"] == ["Opens center in Connect 4"]

    def test_load_false_ignores_file(self, tmp_path):
        path = str(tmp_path / "profile.json")
        PlayerProfile(path=path).record_game("pong", "win")
        assert PlayerProfile(path=path, load=False).data["total_games_played"] == 0


class TestRecord:

    def test_counts(self, profile):
        profile.record_game("pong", "win")
        profile.record_game("pong", "loss")
        profile.record_game("pong", "draw")
        stats = profile.get_game_stats("pong")
        assert (stats["played"], stats["wins"], stats["losses"], stats["draws"]) == (3, 1, 1, 1)
        assert profile.data["total_games_played"] == 3
        assert profile.data["win_rate_history"][-1]["ai_win_rate"] == 33

    def test_unknown_game_is_ignored(self, profile, caplog):
        with caplog.at_level(logging.WARNING, logger="ai.persistence"):
            profile.record_game("chess", "win")
            profile.update_patterns("chess", {"x": 1})
        assert profile.data["total_games_played"] == 0
        assert profile.get_game_stats("chess") == {}
        assert "unknown game" in caplog.text

    def test_patterns_deduplicated_and_capped(self, profile):
        for i in range(30):
            profile.record_game("patternDuel", "loss", [f"tag {i}", "Repeats FIRE"])
        tags = profile.data["detected_patterns"]
        assert len(tags) == 20
        assert tags.count("Repeats FIRE") <= 1
        assert tags[-1] == "tag 29"

    def test_history_capped(self, profile):
        for _ in range(120):
            profile.record_game("dodgeArena", "loss")
        assert len(profile.data["win_rate_history"]) == 100

    def test_game_stats_are_a_copy(self, profile):
        profile.update_patterns("pong", {"q_states": 3})
        stats = profile.get_game_stats("pong")
        stats["played"] = 99
        stats["patterns"]["q_states"] = 99
        fresh = profile.get_game_stats("pong")
        assert fresh["played"] == 0
        assert fresh["patterns"]["q_states"] == 3


class TestOverview:

    def test_overview_and_adaptation(self, profile):
        for _ in range(4):
            profile.record_game("memoryMatch", "win", ["Excellent memory recall"])
        profile.record_game("connect4", "loss")
        overview = profile.get_overview()
        assert overview["total_games_played"] == 5
        assert overview["games"]["memoryMatch"]["win_rate"] == 100
        assert overview["games"]["connect4"]["ai_win_rate"] == 100
        assert overview["adaptation_level"] == int(5 * 0.5 + 1 * 3 + 1 * 0.3)

    def test_adaptation_capped(self, profile):
        for i in range(300):
            profile.record_game("pong", "loss", [f"p{i % 25}"])
        assert profile.adaptation_level() == 99

    def test_reset(self, profile):
        profile.record_game("pong", "win", ["Aims high in Pong"])
        profile.reset()
        assert profile.data["total_games_played"] == 0
        assert profile.data["detected_patterns"] == []


class TestSessionReport:

    def test_finish_records_once(self, profile):
        report = SessionReport("pong")
        report.finish("loss", ["Aims low in Pong"], {"q_states": 12}, profile)
        report.finish("win", [], {}, profile)
        stats = profile.get_game_stats("pong")
        assert stats["played"] == 1 and stats["losses"] == 1
        assert stats["patterns"]["q_states"] == 12
        assert report.as_dict()["result"] == "loss"

    def test_plot_written(self, tmp_path, profile):
        profile.record_game("pong", "loss")
        profile.record_game("connect4", "win")
        out = tmp_path / "trend.png"
        assert plot_win_rate_history(profile.data["win_rate_history"], str(out)) == str(out)
        assert out.exists() and out.stat().st_size > 0

    def test_plot_skipped_without_history(self, tmp_path):
        assert plot_win_rate_history([], str(tmp_path / "x.png")) is None
        assert not (tmp_path / "x.png").exists()
