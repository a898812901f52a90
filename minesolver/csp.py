"""
Linear constraint systems over binary mine indicators.

A rule reads "the variables in `scope` contain exactly `target` mines". A
group's rules all live in one ConstraintSystem, and every counting strategy
turns a system into the same GroupResult.
"""

from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

from .errors import ContradictionError
from .utils import Coord


class Rule(NamedTuple):
    """One revealed number: exactly `target` of the `scope` variables are mines."""

    target: int
    scope: Tuple[int, ...]
    rule_id: int

    def __str__(self) -> str:
        return f"(Rule {self.rule_id}: {' + '.join(map(str, self.scope))} = {self.target})"


class ConstraintSystem:
    """Variables 0..num_variables-1 plus the rules registered on them."""

    def __init__(self, num_variables: int) -> None:
        if num_variables < 0:
            raise ValueError("num_variables must be non-negative.")
        self.num_variables: int = num_variables
        self.rules: List[Rule] = []
        # variable_rules[v] -> ids of the rules whose scope contains v
        self.variable_rules: List[List[int]] = [[] for _ in range(num_variables)]

    def __repr__(self) -> str:
        return f"ConstraintSystem({self.num_variables} variables, {len(self.rules)} rules)"

    def add_rule(self, target: int, variables: Iterable[int]) -> Rule:
        """
        Register a rule and return it.

        Raises:
            ValueError: If a variable id is out of range.
            ContradictionError: If no assignment of the scope can reach the
                target (negative target, or more mines than variables).
        """
        scope = tuple(dict.fromkeys(variables))
        for v in scope:
            if not 0 <= v < self.num_variables:
                raise ValueError(f"Variable id {v} is out of range.")
        if target < 0 or target > len(scope):
            raise ContradictionError(
                f"Rule needs {target} mines among {len(scope)} variables."
            )

        rule = Rule(target, scope, len(self.rules))
        self.rules.append(rule)
        for v in scope:
            self.variable_rules[v].append(rule.rule_id)
        return rule


class GroupResult:
    """
    Per-mine-count solution counts of one group.

    total_solutions[m] is the number of satisfying assignments placing
    exactly m mines in the group; square_counts[m][i] is how many of those
    make variable i a mine. All counts are exact Python ints.
    """

    def __init__(
        self,
        total_solutions: Sequence[int],
        square_counts: Sequence[Sequence[int]],
        squares: Optional[Sequence[Coord]] = None,
    ) -> None:
        size = len(total_solutions) - 1
        if size < 0 or len(square_counts) != size + 1:
            raise ValueError("Expected one entry per mine count 0..size.")
        if any(len(row) != size for row in square_counts):
            raise ValueError("Every square_counts row must have one entry per variable.")
        if squares is not None and len(squares) != size:
            raise ValueError("squares must list one coordinate per variable.")

        self.total_solutions: List[int] = list(total_solutions)
        self.square_counts: List[List[int]] = [list(row) for row in square_counts]
        self.squares: List[Coord] = list(squares) if squares is not None else []

    def __repr__(self) -> str:
        return (
            f"GroupResult(size={self.size}, solutions={self.solution_count}, "
            f"mines={self.min_mines}..{self.max_mines})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GroupResult):
            return NotImplemented
        return (
            self.total_solutions == other.total_solutions
            and self.square_counts == other.square_counts
        )

    @property
    def size(self) -> int:
        return len(self.total_solutions) - 1

    @property
    def solution_count(self) -> int:
        return sum(self.total_solutions)

    @property
    def min_mines(self) -> Optional[int]:
        for m, total in enumerate(self.total_solutions):
            if total:
                return m
        return None

    @property
    def max_mines(self) -> Optional[int]:
        for m in range(self.size, -1, -1):
            if self.total_solutions[m]:
                return m
        return None

    def with_squares(self, squares: Sequence[Coord]) -> "GroupResult":
        return GroupResult(self.total_solutions, self.square_counts, squares)

    def check_invariants(self) -> None:
        """
        Raises:
            ValueError: If a per-square count exceeds its mine-count total.
        """
        for m, total in enumerate(self.total_solutions):
            if total < 0:
                raise ValueError(f"Negative solution count for {m} mines.")
            for i, count in enumerate(self.square_counts[m]):
                if not 0 <= count <= total:
                    raise ValueError(
                        f"Variable {i} is a mine in {count} of {total} solutions "
                        f"with {m} mines."
                    )
