"""
Exact Minesweeper Solver

Computes the exact mine probability of every hidden square:
- Grouping: Independent groups of squares linked by revealed numbers
- Frontier DP: Exact per-group solution counts along an A*-chosen variable order
- Global combination: Exact weighting of groups under the remaining mine count
- Move selection: Probe every safe square, or the least likely mine
"""

from .board import BoardView, SquareState
from .combinator import Classification, GlobalCombinator, GlobalDistribution
from .csp import ConstraintSystem, GroupResult, Rule
from .engine import Minesweeper
from .errors import ContradictionError, IntractableError, SolveCancelled, SolverError
from .group_solver import solve_group
from .grouping import build_constraints, partition_groups
from .moves import Move, select_move
from .progress import ProgressChannel, ProgressEvent
from .solver import ExactSolver, SolveResult
from .analysis import (
    format_distribution,
    play_game,
    plot_probability_heatmap,
    run_solver_single_test,
    run_solver_many_tests,
    run_solver_expert_level_analysis,
)

__version__ = "1.0.0"

__all__ = [
    # Core classes
    "BoardView",
    "SquareState",
    "ExactSolver",
    "SolveResult",
    "Move",
    "Minesweeper",
    # Pipeline
    "partition_groups",
    "build_constraints",
    "ConstraintSystem",
    "Rule",
    "GroupResult",
    "solve_group",
    "GlobalCombinator",
    "GlobalDistribution",
    "Classification",
    "select_move",
    # Progress and errors
    "ProgressChannel",
    "ProgressEvent",
    "SolverError",
    "ContradictionError",
    "IntractableError",
    "SolveCancelled",
    # Analysis functions
    "play_game",
    "format_distribution",
    "plot_probability_heatmap",
    "run_solver_single_test",
    "run_solver_many_tests",
    "run_solver_expert_level_analysis",
]
