"""
A* search for a variable elimination order that keeps the DP frontier small.

The frontier DP costs roughly 2 ** |frontier| per step, so the search walks
over "which rules have been fully introduced" states, paying that price for
every transition, and returns the order in which variables were introduced.
"""

import heapq
import itertools
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

from .csp import ConstraintSystem
from .errors import IntractableError
from .progress import ProgressChannel, ProgressEvent, ensure_channel
from .utils import Coord

# Coarse, non-admissible guide: remaining rules dominate, frontier size breaks ties.
HEURISTIC_WEIGHT = 500
HEURISTIC_OFFSET = 5

DEFAULT_MAX_SEARCH_NODES = 50_000


class SearchNode:
    """One immutable search state plus the transition that produced it."""

    __slots__ = (
        "completed",
        "frontier",
        "cost",
        "introduced",
        "peak",
        "parent",
        "variables",
    )

    def __init__(
        self,
        completed: FrozenSet[int],
        frontier: FrozenSet[int],
        cost: int = 0,
        introduced: Tuple[int, ...] = (),
        peak: int = 0,
        parent: Optional["SearchNode"] = None,
        variables: Optional[FrozenSet[int]] = None,
    ) -> None:
        self.completed = completed
        self.frontier = frontier
        self.cost = cost
        self.introduced = introduced
        self.peak = peak
        self.parent = parent
        # Every variable introduced on the path so far.
        if variables is None:
            base = parent.variables if parent is not None else frozenset()
            variables = base.union(introduced)
        self.variables = variables

    def heuristic(self, num_rules: int) -> int:
        remaining = num_rules - len(self.completed)
        return remaining * HEURISTIC_WEIGHT * (len(self.frontier) + HEURISTIC_OFFSET)

    def path(self) -> Iterator["SearchNode"]:
        """Nodes from the root down to this one."""
        chain: List[SearchNode] = []
        node: Optional[SearchNode] = self
        while node is not None:
            chain.append(node)
            node = node.parent
        return reversed(chain)


def _successors(
    node: SearchNode,
    system: ConstraintSystem,
    max_frontier_size: Optional[int] = None,
) -> Iterator[SearchNode]:
    rules = system.rules
    variable_rules = system.variable_rules

    candidates = {
        rid for v in node.frontier for rid in variable_rules[v]
    } - node.completed
    if not candidates:
        candidates = set(range(len(rules))) - node.completed

    introduced_before = node.variables

    for rid in sorted(candidates):
        new_vars = tuple(v for v in rules[rid].scope if v not in introduced_before)
        union = node.frontier.union(new_vars)
        # The union bounds the DP frontier during this step.
        if max_frontier_size is not None and len(union) > max_frontier_size:
            continue
        introduced = introduced_before.union(new_vars)

        # Completing one rule may also finish rules whose other variables
        # were already introduced.
        completed = set(node.completed)
        completed.add(rid)
        for v in new_vars:
            for other in variable_rules[v]:
                if other not in completed and all(u in introduced for u in rules[other].scope):
                    completed.add(other)

        frontier = frozenset(
            v for v in union if not all(r in completed for r in variable_rules[v])
        )
        yield SearchNode(
            frozenset(completed),
            frontier,
            node.cost + (1 << len(frontier)),
            new_vars,
            max(node.peak, len(union)),
            node,
            introduced,
        )


def find_elimination_order(
    system: ConstraintSystem,
    channel: Optional[ProgressChannel] = None,
    max_search_nodes: Optional[int] = DEFAULT_MAX_SEARCH_NODES,
    coords: Optional[List[Coord]] = None,
    stats: Optional[Dict[str, int]] = None,
    max_frontier_size: Optional[int] = None,
) -> List[int]:
    """
    Choose the order in which the frontier DP opens the system's variables.

    Args:
        system: Rules to order.
        channel: Optional progress channel; checkpoints once per expansion.
        max_search_nodes: Upper bound on expanded nodes (None for no bound).
        coords: Optional variable -> square mapping used to annotate progress.
        stats: Optional dict updated with "search_nodes" and "search_peak".
        max_frontier_size: Skip transitions whose frontier would grow beyond
            this size (None for no bound).

    Returns:
        A permutation of range(system.num_variables).

    Raises:
        IntractableError: If the search expands more than max_search_nodes,
            or no order keeps the frontier within max_frontier_size.
        SolveCancelled: If the channel is cancelled.
    """
    channel = ensure_channel(channel)
    num_rules = len(system.rules)
    if num_rules == 0:
        return list(range(system.num_variables))

    tie = itertools.count()
    root = SearchNode(frozenset(), frozenset())
    heap: List[Tuple[int, int, SearchNode]] = [(root.heuristic(num_rules), next(tie), root)]
    seen = set()
    visited = 0

    def record(peak: int) -> None:
        if stats is not None:
            stats["search_nodes"] = stats.get("search_nodes", 0) + visited
            stats["search_peak"] = max(stats.get("search_peak", 0), peak)

    while heap:
        _, _, node = heapq.heappop(heap)
        if node.completed in seen:
            continue
        seen.add(node.completed)
        visited += 1

        if len(node.completed) == num_rules:
            record(node.peak)
            return _order_from_path(node, system.num_variables)

        if max_search_nodes is not None and visited > max_search_nodes:
            record(0)
            raise IntractableError(
                f"Elimination order search exceeded {max_search_nodes} nodes "
                f"({num_rules} rules, {system.num_variables} variables)."
            )

        channel.checkpoint(
            lambda: _search_event(node, num_rules, visited, len(heap), coords)
        )

        for child in _successors(node, system, max_frontier_size):
            if child.completed not in seen:
                heapq.heappush(
                    heap, (child.cost + child.heuristic(num_rules), next(tie), child)
                )

    # Only reachable when max_frontier_size prunes every complete order.
    record(0)
    raise IntractableError(
        f"No elimination order keeps the frontier within {max_frontier_size} "
        f"variables ({num_rules} rules, {system.num_variables} variables, "
        f"{visited} nodes searched)."
    )


def _order_from_path(goal: SearchNode, num_variables: int) -> List[int]:
    order: List[int] = []
    for node in goal.path():
        order.extend(node.introduced)
    placed = set(order)
    order.extend(v for v in range(num_variables) if v not in placed)
    return order


def _search_event(
    node: SearchNode,
    num_rules: int,
    visited: int,
    queued: int,
    coords: Optional[List[Coord]],
) -> ProgressEvent:
    annotations: Dict[Coord, str] = {}
    if coords is not None:
        annotations = {coords[v]: "frontier" for v in node.frontier}
    return ProgressEvent(
        f"A* in progress. Rules done: {len(node.completed)}/{num_rules}. "
        f"Cost so far: {node.cost + node.heuristic(num_rules)}. "
        f"Nodes visited: {visited}. Queue size: {queued}.",
        annotations,
    )
