"""
Backtracking enumeration of a group's solutions.

Rules are visited one after another; at each rule every way of placing its
still-needed mines among its unassigned variables is tried. Much slower than
the frontier DP on wide groups, but simple enough to serve as a cross-check
and as an alternative strategy for small groups.
"""

import itertools
import logging
from math import comb
from typing import Dict, List, Optional, Sequence

from .csp import ConstraintSystem, GroupResult
from .errors import IntractableError
from .progress import ProgressChannel, ProgressEvent, ensure_channel
from .utils import Coord

logger = logging.getLogger(__name__)

DEFAULT_MAX_BACKTRACK_SIZE = 24


def enumerate_solutions(
    system: ConstraintSystem,
    channel: Optional[ProgressChannel] = None,
    max_variables: Optional[int] = DEFAULT_MAX_BACKTRACK_SIZE,
    coords: Optional[Sequence[Coord]] = None,
    stats: Optional[Dict[str, int]] = None,
) -> GroupResult:
    """
    Count the satisfying assignments of `system` by exhaustive search.

    Args:
        system: Rules over the group's variables.
        channel: Optional progress channel; checkpoints once per search call.
        max_variables: Refuse systems with more variables (None for no bound).
        coords: Optional variable -> square mapping, only used in messages.
        stats: Optional dict updated with "backtrack_leaves".

    Raises:
        IntractableError: If the system has more than max_variables variables.
        SolveCancelled: If the channel is cancelled.
    """
    channel = ensure_channel(channel)
    n = system.num_variables
    if max_variables is not None and n > max_variables:
        raise IntractableError(
            f"Backtracking over {n} variables exceeds the limit of {max_variables}."
        )

    # Variables that appear in no rule are free; they are counted in closed form.
    free = [v for v in range(n) if not system.variable_rules[v]]
    num_free = len(free)

    total_solutions = [0] * (n + 1)
    square_counts = [[0] * n for _ in range(n + 1)]
    assignment: Dict[int, int] = {}
    calls = 0
    leaves = 0

    def record_leaf(mines_used: int) -> None:
        nonlocal leaves
        leaves += 1
        mines = [v for v, value in assignment.items() if value]
        for k in range(num_free + 1):
            ways = comb(num_free, k)
            m = mines_used + k
            total_solutions[m] += ways
            for v in mines:
                square_counts[m][v] += ways
            # Each free variable is a mine in comb(num_free - 1, k - 1) of the ways.
            if k:
                with_mine = comb(num_free - 1, k - 1)
                for v in free:
                    square_counts[m][v] += with_mine

    def dfs(i: int, mines_used: int) -> None:
        nonlocal calls
        calls += 1
        channel.checkpoint(
            lambda: ProgressEvent(
                f"Backtracking: rule {i}/{len(system.rules)}, {calls} calls, {leaves} solutions.",
                {coords[v]: str(value) for v, value in assignment.items()} if coords else {},
            )
        )

        if i == len(system.rules):
            record_leaf(mines_used)
            return

        rule = system.rules[i]
        assigned_mines = 0
        unassigned: List[int] = []
        for v in rule.scope:
            value = assignment.get(v)
            if value is None:
                unassigned.append(v)
            else:
                assigned_mines += value

        needed = rule.target - assigned_mines
        if needed < 0 or needed > len(unassigned):
            return

        for mines_tuple in itertools.combinations(unassigned, needed):
            mines_set = set(mines_tuple)
            for v in unassigned:
                assignment[v] = 1 if v in mines_set else 0
            dfs(i + 1, mines_used + needed)

        for v in unassigned:
            del assignment[v]

    dfs(0, 0)

    if stats is not None:
        stats["backtrack_leaves"] = stats.get("backtrack_leaves", 0) + leaves
    logger.debug("Backtracking: %d variables, %d calls, %d leaves", n, calls, leaves)
    return GroupResult(total_solutions, square_counts)
