"""qlearn - tabular Q-learning over explicit, deterministic transition maps.

An Environment holds the transition relation and a QLearningAgent learns a
sparse action-value table from episodes driven by qlearn.app.trainer.
"""

from .domain.environment import Environment
from .domain.qlearning import QLearningAgent
from .domain.types import (
    AgentConfig, TrainingConfig, INVALID_STATE,
    QLearnError, UndefinedTransitionError, NoRecordedActionsError
)
from .utils.rng import SeededRNG

__version__ = "1.0.0"
__author__ = "qlearn contributors"

__all__ = [
    "Environment",
    "QLearningAgent",
    "AgentConfig",
    "TrainingConfig",
    "INVALID_STATE",
    "QLearnError",
    "UndefinedTransitionError",
    "NoRecordedActionsError",
    "SeededRNG",
]
