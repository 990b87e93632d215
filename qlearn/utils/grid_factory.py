"""Grid factory for wiring grid-shaped transition maps."""

from typing import Dict, Iterable, Optional, Tuple

from ..domain.environment import Environment
from .rng import SeededRNG

# Actions on a grid
UP = 0
DOWN = 1
RIGHT = 2
LEFT = 3

ALL_DIRECTIONS: Tuple[int, ...] = (UP, DOWN, RIGHT, LEFT)

# (row, col) offsets per action
ACTION_DELTAS: Dict[int, Tuple[int, int]] = {
    UP: (-1, 0),
    DOWN: (1, 0),
    RIGHT: (0, 1),
    LEFT: (0, -1)
}


def grid_state(row: int, col: int, width: int) -> int:
    """Row-major state id of a grid cell."""
    return row * width + col


def grid_coord(state: int, width: int) -> Tuple[int, int]:
    """(row, col) of a row-major state id."""
    return divmod(state, width)


def create_grid_environment(width: int, height: int,
                            directions: Iterable[int] = ALL_DIRECTIONS,
                            rng: Optional[SeededRNG] = None) -> Environment:
    """
    Create an environment whose states are the cells of a grid.

    States are numbered row by row, so a 3x3 grid reads::

        |0|1|2|
        |3|4|5|
        |6|7|8|

    Args:
        width: Grid width (must be > 0)
        height: Grid height (must be > 0)
        directions: Moves to wire, a subset of UP, DOWN, RIGHT, LEFT
        rng: Random number generator for the environment

    Returns:
        Environment with a transition for every in-bounds move

    Raises:
        ValueError: If width or height <= 0, or a direction is unknown
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")

    directions = tuple(directions)
    unknown = [d for d in directions if d not in ACTION_DELTAS]
    if unknown:
        raise ValueError(f"Unknown grid directions: {unknown}")

    environment = Environment(rng)

    for row in range(height):
        for col in range(width):
            state = grid_state(row, col, width)
            for action in directions:
                d_row, d_col = ACTION_DELTAS[action]
                next_row, next_col = row + d_row, col + d_col
                if 0 <= next_row < height and 0 <= next_col < width:
                    environment.set_transition(state, action, grid_state(next_row, next_col, width))

    return environment
