"""Count one group's solutions with a selectable strategy."""

import logging
from typing import Callable, Dict, Optional, Sequence

from .backtrack import DEFAULT_MAX_BACKTRACK_SIZE, enumerate_solutions
from .csp import ConstraintSystem, GroupResult
from .errors import ContradictionError
from .frontier import DEFAULT_MAX_FRONTIER_SIZE, count_solutions
from .ordering import DEFAULT_MAX_SEARCH_NODES, find_elimination_order
from .progress import ProgressChannel, ensure_channel
from .utils import Coord

logger = logging.getLogger(__name__)

STRATEGIES = ("frontier", "backtrack")


def _solve_frontier(
    system: ConstraintSystem,
    channel: ProgressChannel,
    limits: Dict[str, Optional[int]],
    coords: Optional[Sequence[Coord]],
    stats: Optional[Dict[str, int]],
) -> GroupResult:
    order = find_elimination_order(
        system,
        channel=channel,
        max_search_nodes=limits["max_search_nodes"],
        coords=list(coords) if coords is not None else None,
        stats=stats,
        max_frontier_size=limits["max_frontier_size"],
    )
    return count_solutions(
        system,
        order,
        channel=channel,
        max_frontier_size=limits["max_frontier_size"],
        coords=coords,
        stats=stats,
    )


def _solve_backtrack(
    system: ConstraintSystem,
    channel: ProgressChannel,
    limits: Dict[str, Optional[int]],
    coords: Optional[Sequence[Coord]],
    stats: Optional[Dict[str, int]],
) -> GroupResult:
    return enumerate_solutions(
        system,
        channel=channel,
        max_variables=limits["max_backtrack_size"],
        coords=coords,
        stats=stats,
    )


_STRATEGY_FUNCS: Dict[str, Callable[..., GroupResult]] = {
    "frontier": _solve_frontier,
    "backtrack": _solve_backtrack,
}


def solve_group(
    system: ConstraintSystem,
    strategy: str = "frontier",
    channel: Optional[ProgressChannel] = None,
    max_frontier_size: Optional[int] = DEFAULT_MAX_FRONTIER_SIZE,
    max_backtrack_size: Optional[int] = DEFAULT_MAX_BACKTRACK_SIZE,
    max_search_nodes: Optional[int] = DEFAULT_MAX_SEARCH_NODES,
    coords: Optional[Sequence[Coord]] = None,
    stats: Optional[Dict[str, int]] = None,
) -> GroupResult:
    """
    Count the solutions of one group's constraint system.

    Args:
        system: The group's rules.
        strategy: "frontier" (A* ordering + frontier DP) or "backtrack".
        channel: Optional progress channel.
        max_frontier_size: Frontier DP bound.
        max_backtrack_size: Backtracking bound on the number of variables.
        max_search_nodes: A* bound on expanded nodes.
        coords: Optional variable -> square mapping, attached to the result.
        stats: Optional dict collecting work counters.

    Returns:
        The group's GroupResult; both strategies return identical counts.

    Raises:
        ValueError: On an unknown strategy.
        ContradictionError: If the group has no solution at all.
        IntractableError: If a work bound is exceeded.
        SolveCancelled: If the channel is cancelled.
    """
    func = _STRATEGY_FUNCS.get(strategy)
    if func is None:
        raise ValueError(f"Unknown strategy {strategy!r}; choose one of {STRATEGIES}.")

    limits = {
        "max_frontier_size": max_frontier_size,
        "max_backtrack_size": max_backtrack_size,
        "max_search_nodes": max_search_nodes,
    }
    result = func(system, ensure_channel(channel), limits, coords, stats)

    if result.solution_count == 0:
        raise ContradictionError(
            f"Group of {system.num_variables} squares has no solutions."
        )
    if coords is not None:
        result = result.with_squares(coords)

    logger.debug(
        "Group of %d squares (%s): %d solutions, %s..%s mines",
        system.num_variables,
        strategy,
        result.solution_count,
        result.min_mines,
        result.max_mines,
    )
    return result
