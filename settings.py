"""
settings.py - Game constants for Neural Arena.

All configurable values live here so they're easy to tweak
and easy to reference from any module.
"""

# ── Screen ────────────────────────────────────────────────
SCREEN_WIDTH = 900
SCREEN_HEIGHT = 620
FPS = 60
TITLE = "Neural Arena – Five Games, Five Learning Opponents"
BG_COLOR = (10, 10, 18)

# Game canvas (left) + insight panel (right)
CANVAS_X = 20
CANVAS_Y = 60
PANEL_X = 730
PANEL_W = 160
CANVAS_W = 700                  # game surfaces are scaled down to fit
CANVAS_H = 520

# ── Colors (R, G, B) ─────────────────────────────────────
WHITE = (255, 255, 255)
GRAY = (60, 60, 60)
LIGHT_GRAY = (160, 160, 160)
NEON_CYAN = (0, 240, 255)        # player
NEON_PINK = (255, 0, 110)        # AI
NEON_YELLOW = (255, 230, 0)
NEON_GREEN = (57, 255, 20)
NEON_PURPLE = (184, 41, 221)
NEON_ORANGE = (255, 107, 53)

# ── Font ──────────────────────────────────────────────────
FONT_SIZE = 22

# ── Profile ───────────────────────────────────────────────
PROFILE_FILENAME = "player_profile.json"
WIN_RATE_HISTORY_MAX = 100       # points kept in the win-rate series
DETECTED_PATTERNS_MAX = 20       # pattern tags kept across games

# ── Neural Pong (Q-learning) ──────────────────────────────
PONG_WIDTH = 800
PONG_HEIGHT = 500
PONG_WINNING_SCORE = 7
PADDLE_H = 80
PADDLE_W = 12
PADDLE_SPEED = 5
BALL_SIZE = 8
BALL_BASE_SPEED = 5

Q_LEARNING_RATE = 0.3            # alpha
Q_DISCOUNT = 0.9                 # gamma
Q_EPSILON_START = 0.3
Q_EPSILON_DECAY = 0.95           # multiplied in each time the AI scores
Q_EPSILON_MIN = 0.05
Q_MIN_STATES = 20                # table coverage before exploiting
Q_X_BINS = 8
Q_Y_BINS = 6
BASELINE_LOOKAHEAD = 3           # ticks of ball extrapolation
BASELINE_DEAD_ZONE = 15          # pixels around paddle centre

REWARD_PLAYER_HIT = -1.0
REWARD_AI_HIT = 1.0
REWARD_POINT_WON = 10.0
REWARD_POINT_LOST = -10.0

# ── Connect 4 (minimax) ───────────────────────────────────
C4_COLS = 7
C4_ROWS = 6
C4_BASE_DEPTH = 4
C4_MAX_DEPTH = 6
C4_DEPTH_EVERY = 3               # +1 ply per this many games played
C4_THINK_DELAY = 0.3             # seconds before the deferred search runs
C4_WIN_SCORE = 100000
C4_OPENING_WEIGHT_RATE = 0.5     # weight added per player move in a column

# ── Pattern Duel (n-gram) ─────────────────────────────────
DUEL_MAX_ORDER = 4
DUEL_MIN_OBSERVATIONS = 2
DUEL_ORDER_WEIGHT = 0.3
DUEL_ROUNDS = 25
DUEL_RESULT_TIME = 1.5           # seconds the round result stays on screen

# ── Dodge Arena (heatmap) ─────────────────────────────────
DODGE_WIDTH = 700
DODGE_HEIGHT = 500
DODGE_GRID = 20
DODGE_PLAYER_SIZE = 14
DODGE_PLAYER_SPEED = 4
DODGE_PROJECTILE_SIZE = 6
DODGE_VELOCITY_WINDOW = 30
DODGE_PREDICT_SAMPLES = 5
DODGE_PREDICT_TICKS = 20
DODGE_ADAPT_SAMPLES = 300        # samples for full adaptation
DODGE_HOTSPOT_MIN_SAMPLES = 50
DODGE_NEAR_MISS_MEMORY = 50
DODGE_WAVE_TICKS = 600
DODGE_SPAWN_TICKS = 40
DODGE_MAX_HP = 3

# ── Memory Match (recall model) ───────────────────────────
MEMORY_WIDTH = 700
MEMORY_HEIGHT = 500
MEMORY_MIN_TIER = 1
MEMORY_MAX_TIER = 5
MEMORY_DEFAULT_TIER = 2
MEMORY_SCORE_EMA = 0.4           # weight on the newest round score
MEMORY_PRIOR_SCORE = 50.0
MEMORY_TIER_MARGIN = 15.0        # hysteresis band around each tier threshold
MEMORY_MATCH_DELAY = 0.3         # seconds before a match resolves
MEMORY_MISMATCH_DELAY = 0.7      # seconds before a mismatch flips back
MEMORY_GRIDS = {
    1: (4, 3),                   # (cols, rows) → 6 pairs
    2: (4, 4),
    3: (5, 4),
    4: (6, 4),
    5: (6, 5),
}
MEMORY_SYMBOLS = [
    "BRAIN", "BOLT", "FIRE", "GEM", "TARGET", "SPIRAL", "EYE", "ROCKET",
    "DICE", "STAR", "ARM", "MOON", "WAVE", "LEAF", "SKULL",
]
