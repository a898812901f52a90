"""Exact Minesweeper solver: from a board view to probabilities and a move."""

import concurrent.futures
import logging
import random
from typing import Dict, NamedTuple, Optional, Tuple

from .backtrack import DEFAULT_MAX_BACKTRACK_SIZE
from .board import BoardView
from .combinator import GlobalCombinator, GlobalDistribution
from .errors import ContradictionError, IntractableError, SolveCancelled
from .frontier import DEFAULT_MAX_FRONTIER_SIZE
from .group_solver import STRATEGIES, solve_group
from .grouping import build_constraints, partition_groups
from .moves import OPENINGS, Move, select_move
from .ordering import DEFAULT_MAX_SEARCH_NODES
from .progress import ProgressChannel, ProgressEvent, ensure_channel

logger = logging.getLogger(__name__)


class SolveResult(NamedTuple):
    """
    Outcome of one solve.

    status is "solved", "aborted", "contradiction" or "intractable". Only a
    solved result carries a move and a distribution; stats hold whatever was
    counted before a failure.
    """

    status: str
    move: Optional[Move]
    distribution: Optional[GlobalDistribution]
    stats: Dict[str, int]
    message: str = ""

    @property
    def solved(self) -> bool:
        return self.status == "solved"


class ExactSolver:
    """
    Computes the exact mine probability of every hidden square and picks a move.

    The solver holds configuration only; every solve works on its own view,
    caches and random source, so one instance may serve concurrent solves.
    """

    def __init__(
        self,
        strategy: str = "frontier",
        max_frontier_size: int = DEFAULT_MAX_FRONTIER_SIZE,
        max_backtrack_size: int = DEFAULT_MAX_BACKTRACK_SIZE,
        max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES,
        opening: str = "center",
        seed: Optional[int] = None,
    ) -> None:
        """
        Args:
            strategy: Group counting strategy, "frontier" (A* ordered frontier
                DP) or "backtrack" (exhaustive search).
            max_frontier_size: Largest frontier the DP may carry.
            max_backtrack_size: Largest group the backtracking strategy accepts.
            max_search_nodes: Node budget of the elimination order search.
            opening: First probe on an untouched board: "center", "corner"
                or "random".
            seed: Seed for the random source used by openings and blind guesses.
        """
        if strategy not in STRATEGIES:
            raise ValueError('strategy must be "frontier" or "backtrack".')
        if opening not in OPENINGS:
            raise ValueError('opening must be "center", "corner" or "random".')
        for name, value in (
            ("max_frontier_size", max_frontier_size),
            ("max_backtrack_size", max_backtrack_size),
            ("max_search_nodes", max_search_nodes),
        ):
            if value < 1:
                raise ValueError(f"{name} must be at least 1.")

        self.strategy = strategy
        self.max_frontier_size = max_frontier_size
        self.max_backtrack_size = max_backtrack_size
        self.max_search_nodes = max_search_nodes
        self.opening = opening
        self.seed = seed

    def __repr__(self) -> str:
        return (
            f"ExactSolver(strategy={self.strategy!r}, "
            f"max_frontier_size={self.max_frontier_size}, opening={self.opening!r})"
        )

    def compute_distribution(
        self,
        view: BoardView,
        channel: Optional[ProgressChannel] = None,
        stats: Optional[Dict[str, int]] = None,
    ) -> Tuple[GlobalDistribution, Dict[str, int]]:
        """
        Compute the exact mine probability of every Unknown square.

        Args:
            view: Board snapshot to solve.
            channel: Optional progress channel.
            stats: Optional dict filled in place with work counters; it keeps
                what was counted even when the solve raises.

        Returns:
            Tuple of (distribution, stats) where stats counts the work done
            ("groups", "largest_group", "unconstrained", "search_nodes",
            "search_peak", "peak_frontier", ...).

        Raises:
            ContradictionError: If no mine placement matches the view.
            IntractableError: If a group exceeds the configured bounds.
            SolveCancelled: If the channel is cancelled.
        """
        channel = ensure_channel(channel)
        channel.checkpoint()

        groups, unconstrained = partition_groups(view)
        if stats is None:
            stats = {}
        stats.update(
            groups=len(groups),
            largest_group=max((len(g) for g in groups), default=0),
            constrained=sum(len(g) for g in groups),
            unconstrained=len(unconstrained),
        )
        logger.debug(
            "%r: %d groups, %d unconstrained squares",
            view,
            len(groups),
            len(unconstrained),
        )

        results = []
        for i, group in enumerate(groups):
            system = build_constraints(view, group)
            channel.publish(
                ProgressEvent(
                    f"Group #{i + 1}/{len(groups)}: {len(group)} squares, "
                    f"{len(system.rules)} rules.",
                    {c: str(i + 1) for c in group},
                )
            )
            results.append(
                solve_group(
                    system,
                    strategy=self.strategy,
                    channel=channel,
                    max_frontier_size=self.max_frontier_size,
                    max_backtrack_size=self.max_backtrack_size,
                    max_search_nodes=self.max_search_nodes,
                    coords=group,
                    stats=stats,
                )
            )

        combinator = GlobalCombinator(results, len(unconstrained), view.remaining_mines)
        distribution = combinator.distribute(view.width, view.height, unconstrained)
        return distribution, stats

    def solve(
        self, view: BoardView, channel: Optional[ProgressChannel] = None
    ) -> SolveResult:
        """
        Compute the distribution and choose the next move.

        Cancellation, contradictions and intractable groups are reported
        through the status instead of being raised.
        """
        rng = random.Random(self.seed)
        stats: Dict[str, int] = {}
        try:
            distribution, _ = self.compute_distribution(view, channel, stats)
        except SolveCancelled as e:
            logger.warning("Solve cancelled: %s", e)
            return SolveResult("aborted", None, None, stats, str(e))
        except ContradictionError as e:
            logger.warning("Board is contradictory: %s", e)
            return SolveResult("contradiction", None, None, stats, str(e))
        except IntractableError as e:
            logger.warning("Board is intractable: %s", e)
            return SolveResult("intractable", None, None, stats, str(e))

        move = select_move(view, distribution, rng, self.opening)
        logger.info(
            "Move (%s): probe %s, flag %s", move.reason, move.to_probe, move.to_flag
        )
        return SolveResult("solved", move, distribution, stats)

    def submit(
        self,
        view: BoardView,
        executor: concurrent.futures.Executor,
        channel: Optional[ProgressChannel] = None,
    ) -> "concurrent.futures.Future[SolveResult]":
        """Run solve() on an executor; cancel through the channel, not the future."""
        return executor.submit(self.solve, view, channel)
