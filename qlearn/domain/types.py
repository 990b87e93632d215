"""Core type definitions for the tabular Q-learning agent."""

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Tuple

# States and actions are opaque, hashable identifiers
State = Hashable
Action = Hashable

# (action, next_state) pair returned by transition lookups
Transition = Tuple[Action, State]

# One recorded step of an episode
TraceStep = Tuple[State, Action]

TransitionMap = Dict[State, Dict[Action, State]]
QTable = Dict[State, Dict[Action, float]]


class _InvalidState:
    """Sentinel returned by lookups that do not resolve to a legal state."""

    _instance: Optional["_InvalidState"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "INVALID_STATE"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_InvalidState, ())


INVALID_STATE = _InvalidState()


class QLearnError(Exception):
    """Base class for errors raised by the learner."""


class UndefinedTransitionError(QLearnError, LookupError):
    """Raised when a state has no configured transitions to sample from."""

    def __init__(self, state: State):
        super().__init__(f"No available actions for state {state!r}")
        self.state = state


class NoRecordedActionsError(QLearnError, LookupError):
    """Raised when the best action is requested for a state with no estimates."""

    def __init__(self, state: State):
        super().__init__(f"No recorded action values for state {state!r}")
        self.state = state


@dataclass
class AgentConfig:
    """Hyperparameters for the Q-learning agent."""
    learning_rate: float = 0.1  # alpha, expected in (0, 1]
    discount_factor: float = 0.7  # gamma, expected in [0, 1]
    epsilon: float = 0.1  # exploration probability, expected in [0, 1]
    seed: Optional[int] = None  # only used when the agent owns its own RNG


@dataclass
class TrainingConfig:
    """Configuration for a training run driven by :mod:`qlearn.app.trainer`."""
    episodes: int = 500
    max_steps_per_episode: int = 100
    start_state: State = 0
    terminal_rewards: Dict[State, float] = field(default_factory=dict)
    # Reward handed to stop_session when the step budget runs out
    budget_reward: float = 0.0
    progress_interval: int = 100


@dataclass
class Episode:
    """Represents a single training episode."""
    number: int
    steps: int
    final_state: Any
    reward: float
    reached_terminal: bool
    elapsed_time: float = 0.0


@dataclass
class TrainingResult:
    """Result of a training run."""
    episodes: List[Episode]
    total_episodes: int
    terminal_counts: Dict[Any, int]
    timeouts: int

    @property
    def average_reward(self) -> float:
        """Mean terminal reward over all episodes."""
        if not self.episodes:
            return 0.0
        return sum(ep.reward for ep in self.episodes) / len(self.episodes)

    def success_rate(self, terminal_state: State) -> float:
        """Fraction of episodes that ended in ``terminal_state``."""
        if self.total_episodes == 0:
            return 0.0
        return self.terminal_counts.get(terminal_state, 0) / self.total_episodes


@dataclass
class PathResult:
    """Result of following the greedy policy from a start state."""
    path: List[Any] = field(default_factory=list)
    actions: List[Any] = field(default_factory=list)
    terminal_state: Optional[Any] = None
    exhausted: bool = False

    @property
    def found(self) -> bool:
        """Whether a terminal state was reached."""
        return self.terminal_state is not None

    def visits(self, state: State) -> bool:
        """Check if the path passes through ``state``."""
        return state in self.path
