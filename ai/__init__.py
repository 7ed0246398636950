"""
ai package – The adaptive opponents and the shared player profile.

Modules:
    agent_base          – AdaptiveAgent interface, Insight rows, helpers
    value_learning      – Q-learning paddle for Neural Pong
    adaptive_search     – Alpha-beta search with drifting weights for Connect 4
    sequence_predictor  – Variable-order n-gram predictor for Pattern Duel
    spatial_targeter    – Movement heatmap targeting for Dodge Arena
    recall_difficulty   – Recall model and difficulty tiers for Memory Match
    persistence         – Cross-game player profile (JSON)
    stats               – Session reports and the win-rate trend plot
"""
