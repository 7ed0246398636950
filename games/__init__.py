"""
games package – The five arena games, each paired with one adaptive agent.

Modules:
    base          – ArenaGame interface shared by every game
    pong          – Neural Pong (Q-learning paddle)
    connect4      – Connect 4 (alpha-beta search with drifting weights)
    pattern_duel  – Pattern Duel (n-gram predictor)
    dodge_arena   – Dodge Arena (heatmap targeting)
    memory_match  – Memory Match (recall-driven difficulty)
    simulation    – Headless scripted-bot runner
"""

from .base import ArenaGame
from .pong import PongGame
from .connect4 import Connect4Game
from .pattern_duel import PatternDuelGame
from .dodge_arena import DodgeArenaGame
from .memory_match import MemoryMatchGame

# Menu order; keys are the profile's game ids
GAMES: dict[str, type[ArenaGame]] = {
    cls.game_id: cls
    for cls in (PongGame, Connect4Game, PatternDuelGame, DodgeArenaGame, MemoryMatchGame)
}
