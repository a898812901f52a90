"""
Split the Unknown squares of a view into independent groups.

Two Unknown squares share a group when a chain of Probed squares connects
them: each Probed square's rule only touches squares of one group, so the
groups can be solved separately and recombined afterwards.
"""

from typing import List, Sequence, Set, Tuple

from .board import BoardView, SquareState
from .csp import ConstraintSystem
from .errors import ContradictionError
from .utils import Coord

Group = List[Coord]


def partition_groups(view: BoardView) -> Tuple[List[Group], List[Coord]]:
    """
    Partition the Unknown squares into constrained groups and the rest.

    Returns:
        Tuple of:
        - groups: lists of Unknown squares adjacent to some Probed square,
          emitted in row-major order of their first square, each in
          traversal order
        - unconstrained: remaining Unknown squares in row-major order
    """
    unknown = SquareState.UNKNOWN
    probed = SquareState.PROBED

    visited: Set[Coord] = set()
    seen_probed: Set[Coord] = set()
    groups: List[Group] = []
    unconstrained: List[Coord] = []

    for start in view.squares(unknown):
        if start in visited:
            continue
        if not view.neighbors(start, probed):
            unconstrained.append(start)
            continue

        group: Group = []
        stack: List[Coord] = [start]
        visited.add(start)
        while stack:
            square = stack.pop()
            group.append(square)
            for number in view.neighbors(square, probed):
                if number in seen_probed:
                    continue
                seen_probed.add(number)
                for nbr in view.neighbors(number, unknown):
                    if nbr not in visited:
                        visited.add(nbr)
                        stack.append(nbr)
        groups.append(group)

    return groups, unconstrained


def build_constraints(view: BoardView, group: Sequence[Coord]) -> ConstraintSystem:
    """
    Turn the Probed squares around a group into rules over its squares.

    Variable i is group[i]. Each Probed neighbour yields exactly one rule
    whose target discounts the flagged and exposed mines around it.

    Raises:
        ContradictionError: If a Probed square needs fewer than zero mines,
            or more mines than it has Unknown neighbours.
    """
    index = {square: i for i, square in enumerate(group)}
    system = ConstraintSystem(len(group))
    seen: Set[Coord] = set()

    for square in group:
        for number in view.neighbors(square, SquareState.PROBED):
            if number in seen:
                continue
            seen.add(number)

            scope = [index[c] for c in view.neighbors(number, SquareState.UNKNOWN)]
            target = (
                view.mine_count(number)
                - len(view.neighbors(number, SquareState.FLAGGED))
                - len(view.neighbors(number, SquareState.MINE))
            )
            try:
                system.add_rule(target, scope)
            except ContradictionError as e:
                raise ContradictionError(
                    f"Square {number} shows {view.mine_count(number)}: {e}"
                ) from e
    return system
