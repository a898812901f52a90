"""
Frontier dynamic program that counts a group's solutions exactly.

Variables are opened one at a time in a given order. The DP state is
(num_true, frontier_mask): how many mines were placed so far, and the values
of the variables still on the frontier, i.e. opened variables that appear in
a rule that still has unopened variables. Bit i of the mask belongs to
frontier[i]; the most recently opened variable sits at bit 0. Once every rule
of a variable has all its variables opened, the variable is closed: its
value is folded into the per-variable mine counts and its bit is dropped.
"""

import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .csp import ConstraintSystem, GroupResult
from .errors import IntractableError
from .progress import ProgressChannel, ProgressEvent, ensure_channel
from .utils import Coord, popcount

logger = logging.getLogger(__name__)

# Bitmask DP states grow as 2 ** frontier size.
DEFAULT_MAX_FRONTIER_SIZE = 16

_OPEN = "open"
_CLOSE = "close"

SolutionKey = Tuple[int, int]
# (total solutions, per-variable mine counts of the closed variables)
Solution = Tuple[int, Tuple[int, ...]]


def elimination_steps(
    system: ConstraintSystem, order: Sequence[int]
) -> Iterator[Tuple[str, int]]:
    """
    Yield ("open", v) and ("close", v) events for opening variables in `order`.

    Raises:
        ValueError: If `order` is not a permutation of the system's variables.
    """
    n = system.num_variables
    if len(order) != n or set(order) != set(range(n)):
        raise ValueError("order must list every variable exactly once.")

    rules = system.rules
    unopened_in_rule = [len(rule.scope) for rule in rules]
    unsatisfied_rules = [len(rids) for rids in system.variable_rules]

    for v in order:
        yield _OPEN, v

        closable: List[int] = []
        for rid in system.variable_rules[v]:
            unopened_in_rule[rid] -= 1
            if unopened_in_rule[rid] == 0:
                for u in rules[rid].scope:
                    unsatisfied_rules[u] -= 1
                    if unsatisfied_rules[u] == 0:
                        closable.append(u)
        if not system.variable_rules[v]:
            closable.append(v)

        for u in closable:
            yield _CLOSE, u


def frontier_profile(system: ConstraintSystem, order: Sequence[int]) -> int:
    """Largest frontier the DP reaches when opening variables in `order`."""
    size = peak = 0
    for kind, _ in elimination_steps(system, order):
        if kind == _OPEN:
            size += 1
            peak = max(peak, size)
        else:
            size -= 1
    return peak


def count_solutions(
    system: ConstraintSystem,
    order: Sequence[int],
    channel: Optional[ProgressChannel] = None,
    max_frontier_size: Optional[int] = DEFAULT_MAX_FRONTIER_SIZE,
    coords: Optional[Sequence[Coord]] = None,
    stats: Optional[Dict[str, int]] = None,
) -> GroupResult:
    """
    Count the satisfying assignments of `system`, split by number of mines.

    Args:
        system: Rules over the group's variables.
        order: Variable opening order; affects run time only, never the result.
        channel: Optional progress channel; checkpoints once per DP step.
        max_frontier_size: Refuse orders whose frontier would exceed this size
            (None for no bound).
        coords: Optional variable -> square mapping used to annotate progress.
        stats: Optional dict updated with "peak_frontier" and "peak_states".

    Raises:
        IntractableError: If the order's frontier exceeds max_frontier_size.
        SolveCancelled: If the channel is cancelled.
    """
    channel = ensure_channel(channel)
    n = system.num_variables
    rules = system.rules

    peak = frontier_profile(system, order)
    if max_frontier_size is not None and peak > max_frontier_size:
        raise IntractableError(
            f"Frontier of {peak} variables exceeds the limit of {max_frontier_size}."
        )

    frontier: List[int] = []
    states: Dict[SolutionKey, Solution] = {(0, 0): (1, (0,) * n)}
    peak_states = 1
    step = 0

    for kind, v in elimination_steps(system, order):
        if kind == _OPEN:
            # Rule checks only depend on the frontier bits, not on num_true.
            checks = []
            for rid in system.variable_rules[v]:
                rule = rules[rid]
                in_scope = set(rule.scope)
                rule_bits = 0
                for i, u in enumerate(frontier):
                    if u in in_scope:
                        rule_bits |= 1 << i
                num_free = len(rule.scope) - 1 - popcount(rule_bits)
                checks.append((rule_bits, rule.target, num_free))
            states = _open_variable(states, checks)
            frontier.insert(0, v)
        else:
            states = _close_variable(states, frontier.index(v), v)
            frontier.remove(v)

        step += 1
        peak_states = max(peak_states, len(states))
        channel.checkpoint(
            lambda: _dp_event(step, n, frontier, len(states), coords)
        )

    if stats is not None:
        stats["peak_frontier"] = max(stats.get("peak_frontier", 0), peak)
        stats["peak_states"] = max(stats.get("peak_states", 0), peak_states)

    total_solutions = [0] * (n + 1)
    square_counts = [[0] * n for _ in range(n + 1)]
    for (num_true, mask), (total, counts) in states.items():
        # Every variable is closed by now, so the mask is always empty.
        total_solutions[num_true] += total
        square_counts[num_true] = [a + b for a, b in zip(square_counts[num_true], counts)]

    logger.debug(
        "Frontier DP: %d variables, %d rules, peak frontier %d, peak states %d",
        n,
        len(rules),
        peak,
        peak_states,
    )
    return GroupResult(total_solutions, square_counts)


def _open_variable(
    states: Dict[SolutionKey, Solution],
    checks: List[Tuple[int, int, int]],
) -> Dict[SolutionKey, Solution]:
    """Extend every state with the new variable set to 0 and to 1 where feasible."""
    allowed_by_mask: Dict[int, Tuple[int, ...]] = {}
    new_states: Dict[SolutionKey, Solution] = {}

    for (num_true, mask), solution in states.items():
        allowed = allowed_by_mask.get(mask)
        if allowed is None:
            allowed = tuple(
                value
                for value in (0, 1)
                if all(
                    value + popcount(mask & rule_bits)
                    <= target
                    <= value + popcount(mask & rule_bits) + num_free
                    for rule_bits, target, num_free in checks
                )
            )
            allowed_by_mask[mask] = allowed

        # (num_true, mask) -> (num_true + value, mask << 1 | value) is
        # one-to-one, so no two states merge here.
        for value in allowed:
            new_states[(num_true + value, (mask << 1) | value)] = solution

    return new_states


def _close_variable(
    states: Dict[SolutionKey, Solution], position: int, variable: int
) -> Dict[SolutionKey, Solution]:
    """Drop the frontier bit at `position`, crediting `variable` where it was a mine."""
    bit = 1 << position
    low_bits = bit - 1
    new_states: Dict[SolutionKey, Solution] = {}

    for (num_true, mask), (total, counts) in states.items():
        if mask & bit:
            counts = counts[:variable] + (counts[variable] + total,) + counts[variable + 1:]
        key = (num_true, (mask & low_bits) | ((mask >> (position + 1)) << position))

        previous = new_states.get(key)
        if previous is None:
            new_states[key] = (total, counts)
        else:
            new_states[key] = (
                previous[0] + total,
                tuple(a + b for a, b in zip(previous[1], counts)),
            )

    return new_states


def _dp_event(
    step: int,
    num_variables: int,
    frontier: List[int],
    num_states: int,
    coords: Optional[Sequence[Coord]],
) -> ProgressEvent:
    annotations: Dict[Coord, str] = {}
    if coords is not None:
        annotations = {coords[v]: str(i) for i, v in enumerate(frontier)}
    return ProgressEvent(
        f"Frontier DP step {step}/{2 * num_variables}. "
        f"Frontier size: {len(frontier)}. States: {num_states}.",
        annotations,
    )
