"""
Combine per-group solution counts into exact global mine probabilities.

Groups are independent apart from the global mine budget T: a global
configuration picks a solution of every group plus a mine subset of the U
unconstrained squares such that the mine counts add up to T. Every such
configuration is equally likely, so each probability is a ratio of two
configuration counts, kept exact with Fraction.
"""

import enum
import logging
from fractions import Fraction
from math import comb
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .csp import GroupResult
from .errors import ContradictionError
from .utils import Coord

logger = logging.getLogger(__name__)


class Classification(enum.Enum):
    MINE = "mine"
    SAFE = "safe"
    UNCERTAIN = "uncertain"


def classify(probability: Fraction) -> Classification:
    if probability == 0:
        return Classification.SAFE
    if probability == 1:
        return Classification.MINE
    return Classification.UNCERTAIN


class GlobalDistribution:
    """Exact mine probability of every Unknown square of one view."""

    def __init__(
        self,
        width: int,
        height: int,
        probabilities: Dict[Coord, Fraction],
        groups: Sequence[GroupResult],
        unconstrained: Sequence[Coord],
        unconstrained_probability: Optional[Fraction],
        total_configurations: int,
    ) -> None:
        self.width: int = width
        self.height: int = height
        self.probabilities: Dict[Coord, Fraction] = dict(probabilities)
        self.groups: List[GroupResult] = list(groups)
        self.unconstrained: List[Coord] = list(unconstrained)
        self.unconstrained_probability: Optional[Fraction] = unconstrained_probability
        self.total_configurations: int = total_configurations
        self.classification: Dict[Coord, Classification] = {
            c: classify(p) for c, p in self.probabilities.items()
        }

    def __repr__(self) -> str:
        return (
            f"GlobalDistribution({len(self.probabilities)} squares, "
            f"{len(self.groups)} groups, {len(self.unconstrained)} unconstrained)"
        )

    def probability(self, coord: Coord) -> Fraction:
        return self.probabilities[coord]

    def _with_class(self, cls: Classification) -> List[Coord]:
        # Row-major, matching the board's scan order.
        return sorted(
            (c for c, k in self.classification.items() if k == cls),
            key=lambda c: (c[1], c[0]),
        )

    @property
    def certain_mines(self) -> List[Coord]:
        return self._with_class(Classification.MINE)

    @property
    def certain_safe(self) -> List[Coord]:
        return self._with_class(Classification.SAFE)

    def probability_grid(self) -> np.ndarray:
        """Float array indexed [y, x]; NaN wherever no probability exists."""
        grid = np.full((self.height, self.width), np.nan, dtype=float)
        for (x, y), p in self.probabilities.items():
            grid[y, x] = float(p)
        return grid


class GlobalCombinator:
    """
    Weight per-group solution counts by the ways to place the other mines.

    One instance serves one solve; its memo tables are never shared.
    """

    def __init__(
        self,
        group_results: Sequence[GroupResult],
        num_unconstrained: int,
        remaining_mines: int,
    ) -> None:
        """
        Args:
            group_results: One GroupResult per group, in group order.
            num_unconstrained: Number of Unknown squares in no group (U).
            remaining_mines: Total mines minus flags (T).
        """
        if num_unconstrained < 0:
            raise ValueError("num_unconstrained must be non-negative.")
        self.group_results: List[GroupResult] = list(group_results)
        self.num_unconstrained: int = num_unconstrained
        self.remaining_mines: int = remaining_mines
        self._binomials: Dict[Tuple[int, int], int] = {}
        # exclude -> table[k]: weighted ways for the other groups to hold k mines
        self._group_tables: Dict[Optional[int], List[int]] = {}

    def binomial(self, n: int, k: int) -> int:
        if k < 0 or n < 0 or k > n:
            return 0
        key = (n, k)
        value = self._binomials.get(key)
        if value is None:
            value = comb(n, k)
            self._binomials[key] = value
        return value

    def _table(self, exclude: Optional[int]) -> List[int]:
        table = self._group_tables.get(exclude)
        if table is not None:
            return table

        # Convolve the groups' totals; counts above T are never asked for.
        limit = max(self.remaining_mines, 0)
        table = [1]
        for g, result in enumerate(self.group_results):
            if g == exclude:
                continue
            merged = [0] * min(len(table) + result.size, limit + 1)
            for a, ways in enumerate(table):
                if not ways:
                    continue
                for m, total in enumerate(result.total_solutions):
                    if a + m > limit:
                        break
                    if total:
                        merged[a + m] += ways * total
            table = merged
        self._group_tables[exclude] = table
        return table

    def combo_of_groups(self, exclude: Optional[int], mines: int) -> int:
        """Weighted ways for every group but `exclude` to hold exactly `mines` mines."""
        if mines < 0:
            return 0
        table = self._table(exclude)
        return table[mines] if mines < len(table) else 0

    def combos_by_mine_count(
        self, exclude: Optional[int], mines: int, unconstrained: Optional[int] = None
    ) -> int:
        """
        Ways to place `mines` mines over the other groups plus `unconstrained`
        free squares (U by default).
        """
        u = self.num_unconstrained if unconstrained is None else unconstrained
        if mines < 0 or u < 0:
            return 0
        return sum(
            self.binomial(u, mines - k) * self.combo_of_groups(exclude, k)
            for k in range(max(0, mines - u), mines + 1)
        )

    def group_probabilities(self, g: int) -> Tuple[List[Fraction], int]:
        """
        Mine probability of every square of group `g`.

        Returns:
            The probabilities and the number of global configurations.

        Raises:
            ContradictionError: If no global configuration exists.
        """
        result = self.group_results[g]
        total = 0
        weighted = [0] * result.size
        for m, solutions in enumerate(result.total_solutions):
            if not solutions:
                continue
            w = self.combos_by_mine_count(g, self.remaining_mines - m)
            if not w:
                continue
            total += w * solutions
            for i, count in enumerate(result.square_counts[m]):
                weighted[i] += w * count

        if total == 0:
            raise ContradictionError(
                f"No placement of {self.remaining_mines} remaining mines fits the board."
            )
        return [Fraction(x, total) for x in weighted], total

    def unconstrained_probability(self) -> Tuple[Fraction, int]:
        """
        Shared mine probability of the unconstrained squares.

        Raises:
            ValueError: If there are no unconstrained squares.
            ContradictionError: If no global configuration exists.
        """
        u = self.num_unconstrained
        if u == 0:
            raise ValueError("There are no unconstrained squares.")
        with_mine = self.combos_by_mine_count(None, self.remaining_mines - 1, u - 1)
        without_mine = self.combos_by_mine_count(None, self.remaining_mines, u - 1)
        if with_mine + without_mine == 0:
            raise ContradictionError(
                f"No placement of {self.remaining_mines} remaining mines fits the board."
            )
        return Fraction(with_mine, with_mine + without_mine), with_mine + without_mine

    def distribute(
        self, width: int, height: int, unconstrained: Sequence[Coord]
    ) -> GlobalDistribution:
        """
        Build the distribution for a view of the given size.

        Every group result must carry its squares.

        Raises:
            ContradictionError: If the mine budget cannot be met.
        """
        if len(unconstrained) != self.num_unconstrained:
            raise ValueError("unconstrained must list num_unconstrained squares.")

        probabilities: Dict[Coord, Fraction] = {}
        total_configurations = 0
        for g, result in enumerate(self.group_results):
            if len(result.squares) != result.size:
                raise ValueError(f"Group {g} has no square mapping.")
            probs, total_configurations = self.group_probabilities(g)
            probabilities.update(zip(result.squares, probs))

        shared: Optional[Fraction] = None
        if unconstrained:
            shared, total_configurations = self.unconstrained_probability()
            for c in unconstrained:
                probabilities[c] = shared
        elif not self.group_results and self.remaining_mines != 0:
            raise ContradictionError(
                f"{self.remaining_mines} mines remain but no square is hidden."
            )

        logger.debug(
            "Combined %d groups and %d unconstrained squares: %d configurations",
            len(self.group_results),
            len(unconstrained),
            total_configurations,
        )
        return GlobalDistribution(
            width,
            height,
            probabilities,
            self.group_results,
            unconstrained,
            shared,
            total_configurations,
        )
