"""Tests for the headless bot simulation and the CLI entry point."""

import random

import pytest

import main
from ai.adaptive_search import SearchConfig
from games.simulation import BOTS, Bot, SimulationRunner


def shallow_search(game):
    game.search_config = SearchConfig(depth=2)


class TestSimulationRunner:

    def test_unknown_game(self):
        with pytest.raises(ValueError):
            SimulationRunner("tetris")

    def test_bot_requires_act(self):
        with pytest.raises(TypeError):
            Bot(random.Random(0))

    def test_every_game_has_a_bot(self):
        from games import GAMES
        assert set(BOTS) == set(GAMES)

    def test_pattern_duel_sessions(self, profile):
        runner = SimulationRunner("patternDuel", 3, profile=profile, seed=7)
        results = runner.run()
        assert [r.session_number for r in results] == [1, 2, 3]
        assert all(r.result in ("win", "loss", "draw") for r in results)
        assert profile.get_game_stats("patternDuel")["played"] == 3
        # The bot cycles 0-1-2 most of the time
        assert results[-1].summary["prediction_accuracy"] > 20

    def test_connect4_sessions(self, profile):
        runner = SimulationRunner("connect4", 2, profile=profile, seed=3, setup=shallow_search)
        results = runner.run()
        assert all(r.result in ("win", "loss", "draw") for r in results)
        stats = profile.get_game_stats("connect4")
        assert stats["played"] == 2
        assert len(stats["patterns"]["column_weights"]) == 7
        assert sum(stats["patterns"]["column_weights"]) > 0

    def test_memory_sessions_complete(self, profile):
        results = SimulationRunner("memoryMatch", 2, profile=profile, seed=5).run()
        assert [r.result for r in results] == ["win", "win"]
        assert "recall_score" in results[-1].summary
        stored = profile.get_game_stats("memoryMatch")["patterns"]
        assert results[-1].summary["recall_score"] == stored["recall_score"]

    def test_dodge_session_ends_in_loss(self, profile):
        results = SimulationRunner("dodgeArena", 1, profile=profile, seed=2).run()
        assert results[0].result == "loss"
        assert results[0].summary["heatmap_samples"] > 0

    def test_pong_session(self, profile):
        results = SimulationRunner("pong", 1, profile=profile, seed=1).run()
        assert results[0].result in ("win", "loss")
        assert results[0].summary["q_states"] > 0

    def test_timeout_is_reported(self, profile):
        results = SimulationRunner("patternDuel", 1, profile=profile, seed=1, max_ticks=10).run()
        assert results[0].result == "timeout"
        assert profile.get_game_stats("patternDuel")["played"] == 0

    def test_print_summary(self, profile, capsys):
        SimulationRunner("memoryMatch", 1, profile=profile, seed=4).run(verbose=True)
        out = capsys.readouterr().out
        assert "Simulation Results" in out
        assert "Adaptation level" in out


class TestCommandLine:

    def test_parse_simulate(self):
        args = main._parse_args(["--simulate", "pong", "3", "--seed", "9"])
        assert args.simulate == ["pong", "3"]
        assert args.seed == 9
        assert not args.plot

    def test_simulate_unknown_game(self):
        assert main.main(["--simulate", "tetris", "2"]) == 2

    def test_simulate_bad_count(self):
        assert main.main(["--simulate", "pong", "many"]) == 2

    def test_simulate_runs(self, capsys):
        assert main.main(["--simulate", "patternDuel", "1", "--seed", "1"]) == 0
        assert "Simulation Results" in capsys.readouterr().out
