"""Deterministic transition environment for tabular Q-learning."""

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from .types import (
    Action, State, Transition, TransitionMap, INVALID_STATE, UndefinedTransitionError
)
from ..utils.rng import SeededRNG

logger = logging.getLogger(__name__)


class Environment:
    """Passive oracle over a finite (state, action) -> next state relation.

    The environment never moves on its own; drivers ask it where an action
    leads and sample random legal actions from it.
    """

    def __init__(self, rng: Optional[SeededRNG] = None):
        self.rng = rng if rng is not None else SeededRNG()
        self._transitions: TransitionMap = {}

    def set_transition(self, state: State, action: Action, next_state: State) -> None:
        """Insert or overwrite the transition for (state, action)."""
        self._transitions.setdefault(state, {})[action] = next_state

    def available_actions(self, state: State) -> List[Action]:
        """Return the actions defined for ``state`` (empty if unknown)."""
        return list(self._transitions.get(state, {}))

    def random_transition(self, state: State) -> Transition:
        """
        Sample a legal action uniformly and resolve where it leads.

        Args:
            state: State to sample an action for

        Returns:
            (action, next_state) pair

        Raises:
            UndefinedTransitionError: If no actions are defined for ``state``
        """
        actions = self.available_actions(state)
        if not actions:
            raise UndefinedTransitionError(state)

        action = self.rng.choice(actions)
        return action, self.next_state(state, action)

    def next_state(self, state: State, action: Action) -> State:
        """
        Deterministic lookup of the state reached by ``action``.

        Returns INVALID_STATE (and logs a warning) when the state is unknown
        or the action is not legal there.
        """
        actions = self._transitions.get(state)
        if actions is None:
            logger.warning("Invalid state: %r", state)
            return INVALID_STATE

        if action not in actions:
            logger.warning("Invalid action %r for state %r", action, state)
            return INVALID_STATE

        return actions[action]

    def has_state(self, state: State) -> bool:
        """Check if any transitions are defined for ``state``."""
        return bool(self._transitions.get(state))

    def states(self) -> List[State]:
        """States with at least one configured transition, in insertion order."""
        return [state for state, actions in self._transitions.items() if actions]

    def iter_transitions(self) -> Iterator[Tuple[State, Action, State]]:
        """Yield (state, action, next_state) triples in insertion order."""
        for state, actions in self._transitions.items():
            for action, next_state in actions.items():
                yield state, action, next_state

    def transitions(self) -> Dict[State, Dict[Action, State]]:
        """Return a copy of the transition relation."""
        return {state: dict(actions) for state, actions in self._transitions.items()}

    def print_transitions(self) -> None:
        """Print every configured transition, one line per state."""
        for state, actions in self._transitions.items():
            moves = ", ".join(f"Action {action} -> State {next_state}"
                              for action, next_state in actions.items())
            print(f"State {state} transitions: {moves}")

    def __len__(self) -> int:
        return len(self.states())
