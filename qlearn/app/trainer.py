"""Episode driver for training a QLearningAgent against its environment."""

import logging
import time
from typing import Callable, Collection, Dict, List, Optional

from ..domain.qlearning import QLearningAgent
from ..domain.types import Episode, PathResult, State, TrainingConfig, TrainingResult

logger = logging.getLogger(__name__)


def run_episode(agent: QLearningAgent, config: TrainingConfig, number: int = 0) -> Episode:
    """
    Run one episode from ``config.start_state``.

    The episode ends on the first terminal state or when the step budget is
    used up; either way the session is stopped with a reward, so every
    started session gets one.

    Args:
        agent: Agent to train
        config: Start state, terminal rewards and step budget
        number: Episode number recorded in the result

    Returns:
        Episode record

    Raises:
        UndefinedTransitionError: If the agent explores from a state without actions
    """
    episode_start_time = time.time()

    state = config.start_state
    agent.start_session()

    steps = 0
    reached_terminal = False
    while steps < config.max_steps_per_episode:
        action, next_state = agent.choose_transition(state)
        agent.add_action_history(state, action)
        state = next_state
        steps += 1

        if state in config.terminal_rewards:
            reached_terminal = True
            break

    reward = config.terminal_rewards[state] if reached_terminal else config.budget_reward
    agent.stop_session(reward)

    return Episode(
        number=number,
        steps=steps,
        final_state=state,
        reward=reward,
        reached_terminal=reached_terminal,
        elapsed_time=time.time() - episode_start_time
    )


def train(agent: QLearningAgent, config: TrainingConfig,
          progress_callback: Optional[Callable[[Episode], None]] = None) -> TrainingResult:
    """Train the agent for ``config.episodes`` episodes."""
    episodes: List[Episode] = []
    terminal_counts: Dict[State, int] = {}
    timeouts = 0

    logger.info("Starting training for %d episodes from state %r",
                config.episodes, config.start_state)

    for episode_num in range(config.episodes):
        episode = run_episode(agent, config, number=episode_num)
        episodes.append(episode)

        if episode.reached_terminal:
            terminal_counts[episode.final_state] = terminal_counts.get(episode.final_state, 0) + 1
        else:
            timeouts += 1

        if progress_callback:
            progress_callback(episode)

        # Log progress occasionally
        if config.progress_interval > 0 and (episode_num + 1) % config.progress_interval == 0:
            recent = episodes[-config.progress_interval:]
            recent_reward = sum(ep.reward for ep in recent) / len(recent)
            logger.info("Episode %d: average reward %.2f over last %d episodes",
                        episode_num + 1, recent_reward, len(recent))

    return TrainingResult(
        episodes=episodes,
        total_episodes=len(episodes),
        terminal_counts=terminal_counts,
        timeouts=timeouts
    )


def greedy_path(agent: QLearningAgent, start_state: State,
                terminal_states: Collection[State], max_steps: int = 100) -> PathResult:
    """
    Follow the learned policy without exploration.

    Stops at the first terminal state, at a state with no estimates, or
    when ``max_steps`` is reached.
    """
    result = PathResult(path=[start_state])
    state = start_state

    for _ in range(max_steps):
        if state in terminal_states:
            result.terminal_state = state
            return result
        if not agent.has_estimates(state):
            # Nothing learned here yet
            return result

        action, state = agent.best_transition(state)
        result.actions.append(action)
        result.path.append(state)

    if state in terminal_states:
        result.terminal_state = state
    else:
        result.exhausted = True
    return result
