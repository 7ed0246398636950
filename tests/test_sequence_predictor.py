"""Tests for the Pattern Duel n-gram predictor."""

import random
from collections import Counter

import pytest

from ai.sequence_predictor import (
    SYMBOLS, PredictorConfig, SequencePredictor, duel_result,
)


def trained(sequence, **cfg):
    """Predictor that has learned *sequence* one choice at a time."""
    predictor = SequencePredictor(PredictorConfig(**cfg), rng=random.Random(0))
    for i, choice in enumerate(sequence):
        predictor.learn(sequence[:i], choice)
    return predictor


class TestDuelRules:

    def test_each_pair_has_one_winner(self):
        for a in range(5):
            for b in range(5):
                if a == b:
                    assert duel_result(a, b) == "draw"
                else:
                    assert {duel_result(a, b), duel_result(b, a)} == {"win", "loss"}

    def test_every_symbol_beats_two(self):
        for sym in SYMBOLS:
            assert len(set(sym.beats)) == 2
            assert sym.id not in sym.beats


class TestPredict:

    def test_alternating_sequence(self):
        seq = [0, 1, 0, 1, 0]
        prediction = trained(seq).predict(seq)
        assert prediction.choice == 1

    def test_confidence_grows_with_repetition(self):
        short = [0, 1, 0, 1, 0]
        long = [0, 1] * 8 + [0]
        assert trained(long).predict(long).confidence > trained(short).predict(short).confidence

    def test_too_few_observations_gives_none(self):
        seq = [0, 1, 2, 3]
        prediction = trained(seq).predict(seq)
        assert prediction.choice is None
        assert prediction.confidence == 0.0

    def test_empty_history_gives_none(self):
        assert trained([]).predict([]).choice is None

    def test_mode_ties_go_to_lowest_choice(self):
        predictor = SequencePredictor(rng=random.Random(0))
        predictor.table[(4,)] = Counter({3: 2, 1: 2})
        assert predictor.predict([4]).choice == 1

    def test_exact_confidence_tie_goes_to_lower_order(self):
        predictor = SequencePredictor(PredictorConfig(order_weight=0.0), rng=random.Random(0))
        predictor.table[(1,)] = Counter({2: 2})
        predictor.table[(0, 1)] = Counter({3: 2})
        prediction = predictor.predict([0, 1])
        assert prediction.choice == 2
        assert prediction.order == 1

    def test_higher_order_wins_with_stronger_evidence(self):
        predictor = SequencePredictor(rng=random.Random(0))
        predictor.table[(1,)] = Counter({2: 3, 4: 3})
        predictor.table[(0, 1)] = Counter({4: 3})
        prediction = predictor.predict([0, 1])
        assert prediction.choice == 4
        assert prediction.order == 2
        assert prediction.confidence == pytest.approx(1.6)

    def test_learn_counts_every_order(self):
        predictor = SequencePredictor(rng=random.Random(0))
        predictor.learn([0, 1, 2, 3, 4], 2)
        assert set(predictor.table) == {(4,), (3, 4), (2, 3, 4), (1, 2, 3, 4)}
        assert all(c[2] == 1 for c in predictor.table.values())


class TestDecide:

    def test_counters_the_prediction(self):
        seq = [0, 1, 0, 1, 0]
        predictor = trained(seq)
        ai = predictor.decide(seq)
        assert duel_result(1, ai) == "loss"
        assert predictor.predictions_made == 1

    def test_random_without_prediction(self):
        predictor = SequencePredictor(rng=random.Random(5))
        choices = {predictor.decide([]) for _ in range(50)}
        assert choices <= set(range(5))
        assert len(choices) > 1
        assert predictor.predictions_made == 0

    def test_accuracy_tracks_correct_calls(self):
        seq = [2, 2, 2]
        predictor = trained(seq)
        predictor.decide(seq)
        predictor.observe(2)
        predictor.decide(seq)
        predictor.observe(0)
        assert predictor.accuracy == pytest.approx(0.5)
        assert predictor.summary()["prediction_accuracy"] == 50

    def test_beats_a_repetitive_player(self):
        predictor = SequencePredictor(rng=random.Random(1))
        history, wins = [], 0
        for i in range(30):
            choice = (0, 1, 2)[i % 3]
            ai = predictor.decide(history)
            predictor.learn(history, choice)
            predictor.observe(choice)
            history.append(choice)
            if i >= 10 and duel_result(choice, ai) == "loss":
                wins += 1
        assert wins >= 18

    def test_insights_are_read_only(self):
        seq = [3, 3, 3, 3]
        predictor = trained(seq)
        predictor.decide(seq)
        insights = predictor.get_insights()
        assert predictor.get_insights() == insights
        assert any(i.label == "Expecting" for i in insights)

    def test_reset(self):
        seq = [0, 1, 0, 1]
        predictor = trained(seq)
        predictor.reset()
        assert predictor.states == 0
        assert predictor.predict(seq).choice is None
