"""Tests for the Q-learning paddle controller."""

import random

import pytest

from ai.value_learning import (
    ACTIONS, PongObservation, ValueLearningAgent, ValueLearningConfig,
)
from settings import PONG_WIDTH, PONG_HEIGHT, REWARD_POINT_WON


def obs(ball_x=400.0, ball_y=250.0, vx=5.0, vy=1.0, paddle_y=210.0):
    return PongObservation(ball_x, ball_y, vx, vy, paddle_y)


def greedy_agent(**overrides):
    """Agent that never explores and always uses the baseline."""
    cfg = ValueLearningConfig(epsilon_start=0.0, min_states=10**6, **overrides)
    return ValueLearningAgent(cfg, rng=random.Random(0))


class TestDiscretize:

    def test_same_bin_same_key(self):
        agent = ValueLearningAgent(rng=random.Random(0))
        assert agent.discretize(obs(ball_x=401)) == agent.discretize(obs(ball_x=405))

    def test_edges_are_clamped(self):
        agent = ValueLearningAgent(rng=random.Random(0))
        low = agent.discretize(obs(ball_x=-50, ball_y=-10, paddle_y=-5))
        high = agent.discretize(obs(ball_x=PONG_WIDTH + 50, ball_y=PONG_HEIGHT,
                                    paddle_y=PONG_HEIGHT))
        assert low[0] == 0 and low[1] == 0 and low[4] == 0
        assert high[0] == agent.cfg.x_bins - 1
        assert high[1] == agent.cfg.y_bins - 1
        assert high[4] == agent.cfg.y_bins - 1

    def test_velocity_signs(self):
        agent = ValueLearningAgent(rng=random.Random(0))
        assert agent.discretize(obs(vx=-3, vy=0))[2:4] == (0, 0)
        assert agent.discretize(obs(vx=3, vy=-2))[2:4] == (1, -1)
        assert agent.discretize(obs(vx=3, vy=2))[2:4] == (1, 1)


class TestTemporalDifference:

    def test_missing_entries_read_zero(self):
        agent = ValueLearningAgent(rng=random.Random(0))
        assert agent.value((0, 0, 0, 0, 0), 1) == 0.0

    def test_repeated_updates_approach_target_monotonically(self):
        agent = ValueLearningAgent(rng=random.Random(0))
        state = (1, 1, 1, 1, 1)
        values = [agent.td_update(state, 0, 1.0, None) for _ in range(30)]
        assert all(a < b for a, b in zip(values, values[1:]))
        assert values[0] == pytest.approx(0.3)
        assert values[-1] == pytest.approx(1.0, abs=1e-3)
        assert all(v <= 1.0 for v in values)

    def test_bootstraps_from_next_state(self):
        agent = ValueLearningAgent(rng=random.Random(0))
        nxt = (2, 2, 0, 0, 2)
        agent.q_table[nxt] = {-1: 0.0, 0: 10.0, 1: 0.0}
        new = agent.td_update((1, 1, 1, 1, 1), 1, 0.0, nxt)
        assert new == pytest.approx(0.3 * 0.9 * 10.0)

    def test_best_action_ties_go_to_first(self):
        agent = ValueLearningAgent(rng=random.Random(0))
        assert agent.best_action((0, 0, 0, 0, 0)) == ACTIONS[0]
        agent.q_table[(0, 0, 0, 0, 0)] = {-1: 0.0, 0: 2.0, 1: 2.0}
        assert agent.best_action((0, 0, 0, 0, 0)) == 0


class TestLazyUpdates:

    def test_reward_before_first_decision_is_dropped(self):
        agent = greedy_agent()
        agent.observe(5.0)
        agent.decide(obs())
        assert agent.updates == 0
        assert agent.states_learned == 0

    def test_pending_reward_applied_on_next_decision(self):
        agent = greedy_agent()
        first = obs()
        agent.decide(first)
        action = agent._last_action
        agent.observe(1.0)
        agent.observe(1.0)
        agent.decide(obs(ball_x=100))
        assert agent.updates == 1
        assert agent.value(agent.discretize(first), action) == pytest.approx(0.3 * 2.0)

    def test_no_update_without_reward(self):
        agent = greedy_agent()
        for _ in range(10):
            agent.decide(obs())
        assert agent.updates == 0

    def test_finish_flushes_against_terminal(self):
        agent = greedy_agent()
        first = obs()
        agent.decide(first)
        action = agent._last_action
        agent.on_point(agent_scored=True)
        agent.finish()
        assert agent.value(agent.discretize(first), action) == pytest.approx(0.3 * REWARD_POINT_WON)
        agent.finish()
        assert agent.updates == 1


class TestPolicy:

    def test_baseline_tracks_ball(self):
        agent = greedy_agent()
        assert agent.decide(obs(ball_y=20, vy=0, paddle_y=200)) == -1
        assert agent.decide(obs(ball_y=480, vy=0, paddle_y=100)) == 1
        assert agent.decide(obs(ball_y=250, vy=0, paddle_y=210)) == 0

    def test_baseline_looks_ahead(self):
        agent = greedy_agent()
        # Centre 250; ball at 250 moving down fast ends up below the dead zone
        assert agent.decide(obs(ball_y=250, vy=8, paddle_y=210)) == 1

    def test_exploits_once_table_is_large_enough(self):
        cfg = ValueLearningConfig(epsilon_start=0.0, min_states=1)
        agent = ValueLearningAgent(cfg, rng=random.Random(0))
        o = obs(ball_y=20, vy=0, paddle_y=200)        # baseline would say -1
        agent.q_table[agent.discretize(o)] = {-1: 0.0, 0: 0.0, 1: 5.0}
        assert agent.decide(o) == 1

    def test_actions_always_legal(self, rng):
        agent = ValueLearningAgent(rng=rng)
        for _ in range(200):
            o = obs(ball_x=rng.uniform(-20, 820), ball_y=rng.uniform(0, 500),
                    vx=rng.choice((-5, 5)), vy=rng.uniform(-4, 4),
                    paddle_y=rng.uniform(0, 420))
            assert agent.decide(o) in ACTIONS
            agent.observe(rng.choice((-1.0, 1.0)))

    def test_epsilon_non_increasing_and_floored(self):
        agent = ValueLearningAgent(rng=random.Random(0))
        seen = [agent.epsilon]
        for i in range(100):
            agent.on_point(agent_scored=i % 3 != 0)
            seen.append(agent.epsilon)
        assert all(b <= a for a, b in zip(seen, seen[1:]))
        assert min(seen) >= 0.05
        assert seen[-1] == pytest.approx(0.05)

    def test_confidence_capped(self):
        agent = ValueLearningAgent(rng=random.Random(0))
        for _ in range(40):
            agent.on_point(agent_scored=True)
        assert agent.confidence == 100


class TestReporting:

    def test_insights_are_read_only(self):
        agent = ValueLearningAgent(rng=random.Random(3))
        agent.decide(obs())
        agent.observe(1.0)
        before = agent.get_insights()
        assert agent.get_insights() == before
        assert agent._pending_reward == 1.0
        assert agent.updates == 0

    def test_reset_clears_table(self):
        agent = ValueLearningAgent(rng=random.Random(0))
        agent.td_update((0, 0, 0, 0, 0), 0, 1.0, None)
        agent.on_point(agent_scored=True)
        agent.reset()
        assert agent.states_learned == 0
        assert agent.epsilon == agent.cfg.epsilon_start
        assert agent.summary()["q_states"] == 0
