"""Headless tests for the five arena games."""

import random
from collections import defaultdict

import pygame
import pytest

from ai.adaptive_search import AGENT, PLAYER, SearchConfig
from games import GAMES
from games.base import TICK
from games.connect4 import Connect4Game
from games.dodge_arena import DodgeArenaGame
from games.memory_match import MemoryMatchGame, peek_duration
from games.pattern_duel import PatternDuelGame, detect_patterns
from games.pong import PongGame
from settings import C4_THINK_DELAY, DUEL_RESULT_TIME, FPS, PONG_WINNING_SCORE
from systems.insight_panel import InsightPanel


def make(cls, profile, scheduler, seed=0):
    game = cls(profile, scheduler, random.Random(seed))
    if cls is Connect4Game:
        game.search_config = SearchConfig(depth=2)
    game.start()
    return game


def run_ticks(game, scheduler, n):
    for _ in range(n):
        game.update(TICK)
        scheduler.advance(TICK)


def key(k):
    return pygame.event.Event(pygame.KEYDOWN, key=k)


class TestRegistry:

    def test_all_games_registered(self):
        assert list(GAMES) == ["pong", "connect4", "patternDuel", "dodgeArena", "memoryMatch"]
        for game_id, cls in GAMES.items():
            assert cls.game_id == game_id
            assert cls.title

    @pytest.mark.parametrize("game_id", list(GAMES))
    def test_lifecycle_and_draw(self, game_id, profile, scheduler):
        game = make(GAMES[game_id], profile, scheduler)
        run_ticks(game, scheduler, 30)
        assert game.get_insights()
        assert isinstance(game.stats_bar(), str)

        surface = pygame.Surface((game.width, game.height))
        game.draw(surface)
        InsightPanel(pygame.Surface((900, 620))).draw(game.get_insights())

        game.stop()
        assert not game.running
        assert scheduler.pending == 0

    @pytest.mark.parametrize("game_id", list(GAMES))
    def test_restart_gives_fresh_agent(self, game_id, profile, scheduler):
        game = make(GAMES[game_id], profile, scheduler)
        first = game.agent
        game.restart()
        assert game.agent is not first
        assert game.running and not game.game_over


class TestPong:

    def test_ball_moves_and_agent_decides(self, profile, scheduler):
        game = make(PongGame, profile, scheduler)
        x0 = game.ball_x
        run_ticks(game, scheduler, 10)
        assert game.ball_x != x0
        assert game.agent.decisions == 10

    def test_keyboard_moves_paddle(self, profile, scheduler):
        game = make(PongGame, profile, scheduler)
        y0 = game.player_y
        game.handle_event(key(pygame.K_s))
        run_ticks(game, scheduler, 5)
        assert game.player_y > y0

    def test_point_and_match_end(self, profile, scheduler):
        game = make(PongGame, profile, scheduler)
        game.ai_score = PONG_WINNING_SCORE - 1
        game.ball_x, game.ball_vx = -50, -5
        game.step()
        assert game.game_over
        assert game.result == "loss"
        assert profile.get_game_stats("pong")["losses"] == 1
        assert "q_states" in profile.get_game_stats("pong")["patterns"]

        run_ticks(game, scheduler, FPS)
        assert game.show_end
        assert game.end_message() == "AI WINS"

    def test_player_point_resets_ball(self, profile, scheduler):
        game = make(PongGame, profile, scheduler)
        game.ball_x, game.ball_vx = game.width + 50, 5
        game.step()
        assert game.player_score == 1
        assert game.ball_x == game.width / 2
        assert not game.game_over

    def test_aim_patterns(self, profile, scheduler):
        game = make(PongGame, profile, scheduler)
        assert game.aim_patterns() == []
        game.hit_zones = [3, 2, 0, 0, 0]
        assert game.aim_patterns() == ["Aims high in Pong"]
        game.hit_zones = [0, 0, 1, 2, 3]
        assert game.aim_patterns() == ["Aims low in Pong"]


class TestConnect4:

    def test_ai_replies_after_delay(self, profile, scheduler):
        game = make(Connect4Game, profile, scheduler)
        assert game.play_column(3)
        assert game.turn == AGENT
        assert not game.play_column(2)

        scheduler.advance(C4_THINK_DELAY + TICK)
        pieces = sum(cell != 0 for row in game.board.cells for cell in row)
        assert pieces == 2
        assert game.turn == PLAYER
        assert game.thinking_text.startswith("Eval:")

    def test_stop_discards_pending_search(self, profile, scheduler):
        game = make(Connect4Game, profile, scheduler)
        game.play_column(0)
        game.stop()
        scheduler.advance(1.0)
        assert game.agent.nodes == 0
        assert sum(cell == AGENT for row in game.board.cells for cell in row) == 0

    def test_keys_play_columns(self, profile, scheduler):
        game = make(Connect4Game, profile, scheduler)
        game.handle_event(key(pygame.K_5))
        assert game.board.cells[-1][4] == PLAYER

    def test_player_win_is_recorded(self, profile, scheduler):
        game = make(Connect4Game, profile, scheduler)
        for c in (0, 1, 2):
            game.board.drop(c, PLAYER)
        game.board.drop(6, AGENT)
        game.board.drop(6, AGENT)
        assert game.play_column(3)
        assert game.game_over and game.result == "win"
        stats = profile.get_game_stats("connect4")
        assert stats["wins"] == 1
        assert stats["patterns"]["column_weights"][3] == pytest.approx(0.5)
        assert scheduler.pending == 1          # only the end screen


class TestPatternDuel:

    def test_result_banner_locks_input(self, profile, scheduler):
        game = make(PatternDuelGame, profile, scheduler)
        assert game.choose(0)
        assert game.showing_result
        assert not game.choose(1)
        assert game.round == 1

        scheduler.advance(DUEL_RESULT_TIME + TICK)
        assert not game.showing_result
        game.handle_event(key(pygame.K_2))
        assert game.round == 2
        assert game.player_history == [0, 1]

    def test_full_match(self, profile, scheduler):
        game = make(PatternDuelGame, profile, scheduler)
        for i in range(game.max_rounds):
            assert game.choose(i % 2)
            scheduler.advance(DUEL_RESULT_TIME + TICK)
        assert game.game_over
        assert game.player_score + game.ai_score + game.draws == game.max_rounds
        assert profile.get_game_stats("patternDuel")["played"] == 1
        assert "Alternating pattern" in profile.data["detected_patterns"]
        assert not game.choose(0)

    def test_detect_patterns(self):
        assert detect_patterns([0, 1, 2], []) == []
        assert "Repeats NATURE" in detect_patterns([2] * 5, [])
        assert "Favors NATURE" in detect_patterns([2] * 5, [])
        assert "Alternating pattern" in detect_patterns([0, 1] * 3, [])
        assert "3-cycle pattern" in detect_patterns([0, 1, 2] * 2, [])

    def test_win_stay_lose_shift(self):
        choices = [0, 0, 1, 1, 2, 2, 3]
        results = ["win", "loss", "win", "loss", "win", "loss", "win"]
        assert "Win-stay / Lose-shift" in detect_patterns(choices, results)


class TestDodgeArena:

    def test_samples_follow_ticks(self, profile, scheduler):
        game = make(DodgeArenaGame, profile, scheduler)
        run_ticks(game, scheduler, 20)
        assert game.agent.total_samples == 20
        assert game.score == 20

    def test_keyboard_moves_player(self, profile, scheduler):
        game = make(DodgeArenaGame, profile, scheduler)
        x0 = game.player_x
        game.handle_event(key(pygame.K_RIGHT))
        assert game.input_dir == (1, 0)
        run_ticks(game, scheduler, 5)
        assert game.player_x > x0
        game.handle_event(pygame.event.Event(pygame.KEYUP, key=pygame.K_RIGHT))
        assert game.input_dir == (0, 0)

    def test_standing_still_is_fatal(self, profile, scheduler):
        game = make(DodgeArenaGame, profile, scheduler, seed=3)
        ticks = 0
        while not game.game_over and ticks < FPS * 120:
            run_ticks(game, scheduler, 1)
            ticks += 1
        assert game.game_over
        assert game.result == "loss"
        patterns = profile.get_game_stats("dodgeArena")["patterns"]
        assert patterns["last_score"] == game.score
        assert patterns["best_score"] >= game.score

    def test_targeter_seeded_from_profile(self, profile, scheduler):
        profile.update_patterns("dodgeArena", {"hotspot_cell": [4, 5], "hotspot_confidence": 0.4})
        game = make(DodgeArenaGame, profile, scheduler)
        assert game.agent.prior.cell == (4, 5)
        assert game.agent.aim_hotspot().cell == (4, 5)

    def test_spawned_projectile_heads_for_target(self, profile, scheduler):
        game = make(DodgeArenaGame, profile, scheduler)
        p = game.spawn_projectile()
        before = (p.target.x - p.x) ** 2 + (p.target.y - p.y) ** 2
        p.x += p.vx
        p.y += p.vy
        assert (p.target.x - p.x) ** 2 + (p.target.y - p.y) ** 2 < before


def pairs_of(game):
    by_symbol = defaultdict(list)
    for card in game.cards:
        by_symbol[card.symbol].append(card.index)
    return list(by_symbol.values())


class TestMemoryMatch:

    def test_peek_duration(self):
        assert peek_duration(1) == pytest.approx(1.3)
        assert peek_duration(2) == pytest.approx(1.1)
        assert peek_duration(3) == 0.0

    def test_deck_is_pairs(self, profile, scheduler):
        game = make(MemoryMatchGame, profile, scheduler)
        assert len(game.cards) == game.cols * game.rows == 16
        assert all(len(idx) == 2 for idx in pairs_of(game))

    def test_peek_locks_input(self, profile, scheduler):
        game = make(MemoryMatchGame, profile, scheduler)
        assert game.peeking
        assert not game.flip(0)
        scheduler.advance(peek_duration(game.tier) + TICK)
        assert not game.peeking
        assert game.flip(0)

    def test_mismatch_flips_back(self, profile, scheduler):
        game = make(MemoryMatchGame, profile, scheduler)
        scheduler.advance(2.0)
        a, b = pairs_of(game)[0][0], pairs_of(game)[1][0]
        assert game.flip(a) and game.flip(b)
        assert game.locked
        assert not game.flip(pairs_of(game)[2][0])
        scheduler.advance(1.0)
        assert not game.cards[a].flipped and not game.cards[b].flipped
        assert game.moves == 1 and game.matched == 0

    def test_perfect_round_raises_difficulty(self, profile, scheduler):
        game = make(MemoryMatchGame, profile, scheduler)
        scheduler.advance(2.0)
        for a, b in pairs_of(game):
            assert game.flip(a) and game.flip(b)
            scheduler.advance(0.5)
        assert game.game_over and game.result == "win"
        assert game.efficiency() == 100
        assert profile.get_game_stats("memoryMatch")["played"] == 1

        game.handle_event(key(pygame.K_n))
        assert not game.game_over
        assert game.tier == 3
        assert not game.peeking
        assert len(game.cards) == 20
