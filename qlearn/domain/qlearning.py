"""Q-Learning agent with backward credit propagation over an episode trace."""

import logging
import numpy as np
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .environment import Environment
from .types import (
    Action, AgentConfig, QTable, State, TraceStep, Transition,
    INVALID_STATE, NoRecordedActionsError
)
from ..utils.rng import SeededRNG

logger = logging.getLogger(__name__)


def _sorted_if_possible(keys: Iterable) -> List:
    """Sort keys when they are mutually orderable, else keep insertion order."""
    keys = list(keys)
    try:
        return sorted(keys)
    except TypeError:
        return keys


def _best_action(action_values: Dict[Action, float]) -> Action:
    """Action with the greatest value; the first recorded one wins ties."""
    actions = list(action_values)
    # argmax returns the first maximum
    best_idx = int(np.argmax([action_values[action] for action in actions]))
    return actions[best_idx]


class QLearningAgent:
    """Epsilon-greedy tabular Q-learning agent.

    The agent never advances the environment itself. A driver calls
    :meth:`start_session`, then repeatedly :meth:`choose_transition` and
    :meth:`add_action_history`, and finally :meth:`stop_session` with the
    terminal reward, which propagates it backward through the trace.

    Expected ranges: ``alpha`` in (0, 1], ``gamma`` in [0, 1] and
    ``epsilon`` in [0, 1]. Values outside them are not rejected.
    """

    def __init__(self, alpha: float, gamma: float, epsilon: float,
                 environment: Environment, rng: Optional[SeededRNG] = None):
        self.alpha = alpha
        self.gamma = gamma
        self.epsilon = epsilon
        self.environment = environment
        self.rng = rng if rng is not None else environment.rng

        self._q_table: QTable = {}
        self._action_history: List[TraceStep] = []

    @classmethod
    def from_config(cls, config: AgentConfig, environment: Environment,
                    rng: Optional[SeededRNG] = None) -> "QLearningAgent":
        """Build an agent from an :class:`AgentConfig`.

        A config seed gives the agent its own generator; otherwise it shares
        the environment's.
        """
        if rng is None and config.seed is not None:
            rng = SeededRNG(config.seed)
        return cls(config.learning_rate, config.discount_factor, config.epsilon,
                   environment, rng)

    # Session lifecycle

    def start_session(self) -> None:
        """Clear the episode trace before a new episode."""
        self._action_history.clear()

    def stop_session(self, reward: float) -> None:
        """End the episode and propagate ``reward`` back through the trace.

        The trace is kept until the next :meth:`start_session`.
        """
        self._update_q_table(reward)

    def add_action_history(self, state: State, action: Action) -> None:
        """Record one executed step of the current episode."""
        self._action_history.append((state, action))

    # Policy

    def choose_transition(self, state: State) -> Transition:
        """Select an action using the epsilon-greedy policy.

        Falls back to a random transition while there is nothing recorded to
        exploit for ``state``.

        Raises:
            UndefinedTransitionError: If exploring from a state without actions
        """
        if (not self._q_table
                or not self.has_estimates(state)
                or self.rng.random() < self.epsilon):
            return self.environment.random_transition(state)

        return self.best_transition(state)

    def best_transition(self, state: State) -> Transition:
        """Pick the recorded action with the greatest value for ``state``.

        Ties go to the action that was recorded first. The next state is
        resolved through the environment, not cached in the table.

        Raises:
            NoRecordedActionsError: If ``state`` has no recorded values
        """
        action_values = self._q_table.get(state)
        if not action_values:
            raise NoRecordedActionsError(state)

        action = _best_action(action_values)
        return action, self.environment.next_state(state, action)

    def max_q(self, state: State) -> float:
        """Maximum recorded value for ``state``; 0.0 if there is none."""
        if state is INVALID_STATE:
            return 0.0

        action_values = self._q_table.get(state)
        if not action_values:
            return 0.0

        return float(np.max(list(action_values.values())))

    def _update_q_table(self, reward: float) -> None:
        """Walk the trace backward, feeding each new value to the step before it."""
        if not self._action_history:
            logger.warning("Action history is empty. No updates to Q-table.")
            return

        carried = float(reward)
        for state, action in reversed(self._action_history):
            next_state = self.environment.next_state(state, action)
            current_q = self.q_value(state, action)

            new_q = current_q + self.alpha * (carried + self.gamma * self.max_q(next_state) - current_q)
            self.set_q_value(state, action, new_q)

            carried = new_q

        logger.debug("Propagated reward %s over %d steps", reward, len(self._action_history))

    # Table access

    def q_value(self, state: State, action: Action) -> float:
        """Get Q-value for state-action pair (0.0 when not yet estimated)."""
        return self._q_table.get(state, {}).get(action, 0.0)

    def set_q_value(self, state: State, action: Action, value: float) -> None:
        """Set Q-value for state-action pair."""
        self._q_table.setdefault(state, {})[action] = float(value)

    def has_estimates(self, state: State) -> bool:
        """Check if any action value has been recorded for ``state``."""
        return bool(self._q_table.get(state))

    @property
    def action_history(self) -> Tuple[TraceStep, ...]:
        """Steps recorded in the current episode, oldest first."""
        return tuple(self._action_history)

    def iter_q_table(self) -> Iterator[Tuple[State, Action, float]]:
        """Yield (state, action, value) sorted by state, then action.

        Identifiers that cannot be ordered against each other are yielded in
        insertion order instead.
        """
        for state in _sorted_if_possible(self._q_table):
            action_values = self._q_table[state]
            for action in _sorted_if_possible(action_values):
                yield state, action, action_values[action]

    def q_table_snapshot(self) -> Dict[State, Dict[Action, float]]:
        """Return a copy of the Q-table."""
        return {state: dict(values) for state, values in self._q_table.items()}

    def greedy_policy(self) -> Dict[State, Action]:
        """Map every state with estimates to its best recorded action."""
        return {state: _best_action(action_values)
                for state, action_values in self._q_table.items() if action_values}

    # Reporting

    def print_action_history(self) -> None:
        """Print the current episode trace."""
        print("Action History:")
        for state, action in self._action_history:
            print(f"State: {state}, Action: {action}")

    def print_q_table(self) -> None:
        """Print the Q-table, one line per state."""
        print("Q-Table:")
        rows: Dict[State, List[str]] = {}
        for state, action, value in self.iter_q_table():
            rows.setdefault(state, []).append(f"Action {action} -> Q-Value: {value:.4f}")

        for state, entries in rows.items():
            print(f"State {state}: " + ", ".join(entries))
