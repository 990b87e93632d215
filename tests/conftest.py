import pytest

from qlearn.domain.environment import Environment
from qlearn.domain.qlearning import QLearningAgent
from qlearn.domain.types import TrainingConfig
from qlearn.utils.grid_factory import DOWN, RIGHT, UP, create_grid_environment
from qlearn.utils.rng import SeededRNG

TARGET = 5
DANGER = 4


@pytest.fixture
def rng():
    return SeededRNG(1234)


@pytest.fixture
def grid_env(rng):
    """3x3 grid with all four moves:

    |0|1|2|
    |3|4|5|
    |6|7|8|
    """
    return create_grid_environment(3, 3, rng=rng)


@pytest.fixture
def forward_grid_env(rng):
    """3x3 grid with only RIGHT/DOWN moves plus 8 -> UP -> 5, so no cycles."""
    environment = create_grid_environment(3, 3, directions=(DOWN, RIGHT), rng=rng)
    environment.set_transition(8, UP, TARGET)
    return environment


@pytest.fixture
def agent(grid_env):
    return QLearningAgent(0.1, 0.7, 0.1, grid_env)


@pytest.fixture
def training_config():
    return TrainingConfig(
        episodes=500,
        max_steps_per_episode=100,
        start_state=0,
        terminal_rewards={TARGET: 100.0, DANGER: -100.0},
        progress_interval=0
    )


@pytest.fixture
def line_env(rng):
    """0 -> 1 -> 2 on action "go"."""
    environment = Environment(rng)
    environment.set_transition(0, "go", 1)
    environment.set_transition(1, "go", 2)
    return environment
