import logging

import pytest

from qlearn.app.trainer import greedy_path, run_episode, train
from qlearn.domain.environment import Environment
from qlearn.domain.qlearning import QLearningAgent
from qlearn.domain.types import TrainingConfig, UndefinedTransitionError
from qlearn.utils.grid_factory import DOWN, LEFT, RIGHT
from qlearn.utils.rng import SeededRNG

TARGET = 5
DANGER = 4


def test_run_episode_reaches_terminal(line_env):
    agent = QLearningAgent(0.1, 0.7, 0.1, line_env)
    config = TrainingConfig(start_state=0, terminal_rewards={2: 50.0})

    episode = run_episode(agent, config, number=3)

    assert episode.number == 3
    assert episode.steps == 2
    assert episode.final_state == 2
    assert episode.reached_terminal
    assert episode.reward == 50.0
    assert agent.action_history == ((0, "go"), (1, "go"))
    # (1, go): 0.1 * 50 = 5; (0, go): 0.1 * (5 + 0.7 * 5) = 0.85
    assert agent.q_value(1, "go") == pytest.approx(5.0)
    assert agent.q_value(0, "go") == pytest.approx(0.85)


def test_run_episode_budget_exhausted_uses_budget_reward():
    env = Environment(SeededRNG(0))
    env.set_transition(0, "stay", 0)
    agent = QLearningAgent(0.5, 0.0, 0.0, env)
    config = TrainingConfig(start_state=0, max_steps_per_episode=4,
                            terminal_rewards={1: 10.0}, budget_reward=-1.0)

    episode = run_episode(agent, config)

    assert episode.steps == 4
    assert not episode.reached_terminal
    assert episode.reward == -1.0
    assert len(agent.action_history) == 4
    assert agent.q_value(0, "stay") < 0.0


def test_run_episode_starts_new_session(line_env):
    agent = QLearningAgent(0.1, 0.7, 0.1, line_env)
    agent.add_action_history(7, "stale")
    run_episode(agent, TrainingConfig(start_state=0, terminal_rewards={2: 1.0}))

    assert (7, "stale") not in agent.action_history


def test_run_episode_dead_end_raises():
    env = Environment(SeededRNG(0))
    env.set_transition(0, "go", 1)
    agent = QLearningAgent(0.1, 0.7, 0.1, env)
    config = TrainingConfig(start_state=0, terminal_rewards={2: 1.0})

    with pytest.raises(UndefinedTransitionError):
        run_episode(agent, config)


def test_train_counts_outcomes(agent, training_config):
    training_config.episodes = 100
    seen = []

    result = train(agent, training_config, progress_callback=seen.append)

    assert result.total_episodes == 100
    assert len(seen) == 100
    assert sum(result.terminal_counts.values()) + result.timeouts == 100
    assert set(result.terminal_counts) <= {TARGET, DANGER}
    assert [ep.number for ep in result.episodes] == list(range(100))


def test_train_logs_progress(line_env, caplog):
    agent = QLearningAgent(0.1, 0.7, 0.1, line_env)
    config = TrainingConfig(episodes=10, start_state=0, terminal_rewards={2: 1.0},
                            progress_interval=5)

    with caplog.at_level(logging.INFO, logger="qlearn.app.trainer"):
        result = train(agent, config)

    assert result.success_rate(2) == 1.0
    assert result.average_reward == 1.0
    assert "Episode 5" in caplog.text
    assert "Episode 10" in caplog.text


def test_greedy_policy_avoids_danger_after_training(forward_grid_env, training_config):
    agent = QLearningAgent(0.1, 0.7, 0.1, forward_grid_env)

    result = train(agent, training_config)
    path = greedy_path(agent, 0, {TARGET, DANGER}, max_steps=20)

    assert result.total_episodes == 500
    assert result.timeouts == 0
    assert path.found
    assert path.terminal_state == TARGET
    assert not path.visits(DANGER)
    assert path.path[0] == 0 and path.path[-1] == TARGET


def test_greedy_path_stops_on_state_without_estimates(agent):
    agent.set_q_value(0, RIGHT, 1.0)

    path = greedy_path(agent, 0, {TARGET})

    assert path.path == [0, 1]
    assert path.actions == [RIGHT]
    assert not path.found
    assert not path.exhausted


def test_greedy_path_reports_exhausted_budget(agent):
    agent.set_q_value(0, RIGHT, 1.0)
    agent.set_q_value(1, LEFT, 1.0)

    path = greedy_path(agent, 0, {TARGET}, max_steps=6)

    assert path.exhausted
    assert not path.found
    assert path.path == [0, 1, 0, 1, 0, 1, 0]


def test_greedy_path_from_terminal(agent):
    path = greedy_path(agent, TARGET, {TARGET})

    assert path.found
    assert path.path == [TARGET]
    assert path.actions == []


def test_greedy_path_follows_single_step(agent):
    agent.set_q_value(2, DOWN, 5.0)
    agent.set_q_value(2, LEFT, -1.0)

    path = greedy_path(agent, 2, {TARGET})

    assert path.terminal_state == TARGET
    assert path.actions == [DOWN]
