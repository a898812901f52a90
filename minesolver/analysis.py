"""Play loops, benchmarks and visualisations for the exact solver."""

import random
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .board import BoardView, SquareState
from .combinator import GlobalDistribution
from .engine import Minesweeper
from .frontier import DEFAULT_MAX_FRONTIER_SIZE
from .progress import ProgressChannel
from .solver import ExactSolver

GUESS_REASONS = ("guess", "random")


def play_game(
    game: Minesweeper,
    solver: ExactSolver,
    *,
    max_turns: Optional[int] = None,
    channel: Optional[ProgressChannel] = None,
) -> Tuple[int, Dict[str, object]]:
    """
    Let the solver play a game until it is won, lost or abandoned.

    Args:
        game: Game to play; may already be in progress.
        solver: Solver asked for a move on every turn.
        max_turns: Optional cap on the number of solves.
        channel: Optional progress channel passed to every solve.

    Returns:
        Tuple of (status, payload) where status is -1 (loss), 1 (win) or 0
        (the solver could not produce a move, or the turn cap was reached).
        The payload holds the game's metrics; "solver_status" tells why a
        game was abandoned.

    Raises:
        RuntimeError: If the solver returns an empty move on a live game.
    """
    metrics: Dict[str, object] = {
        "reveal_moves_count": 0,
        "markings_count": 0,
        "certain_moves_count": 0,
        "guesses_count": 0,
        "opening_moves_count": 0,
        "solves_count": 0,
        "max_group_size": 0,
        "max_peak_frontier": 0,
        "solver_status": "solved",
    }
    moves_sequence: List[Tuple[int, int, str]] = []

    def finish(status: int) -> Tuple[int, Dict[str, object]]:
        metrics["revealed_cells_count"] = (
            game.width * game.height - game.mines_count
        ) - game.unrevealed_count
        metrics["moves_sequence"] = moves_sequence
        return status, metrics

    turns = 0
    while not game.game_over:
        if max_turns is not None and turns >= max_turns:
            metrics["solver_status"] = "turn_limit"
            return finish(0)
        turns += 1

        result = solver.solve(game.view(), channel)
        metrics["solves_count"] = int(metrics["solves_count"]) + 1
        metrics["max_group_size"] = max(
            int(metrics["max_group_size"]), result.stats.get("largest_group", 0)
        )
        metrics["max_peak_frontier"] = max(
            int(metrics["max_peak_frontier"]), result.stats.get("peak_frontier", 0)
        )
        if not result.solved or result.move is None:
            metrics["solver_status"] = result.status
            return finish(0)

        move = result.move
        if move.is_empty:
            raise RuntimeError("Solver returned no move for a game in progress.")

        for x, y in move.to_flag:
            if game.flag(x, y):
                metrics["markings_count"] = int(metrics["markings_count"]) + 1
                moves_sequence.append((x, y, "flag"))

        if move.reason == "certain":
            metrics["certain_moves_count"] = int(metrics["certain_moves_count"]) + len(
                move.to_probe
            )
        elif move.reason == "opening":
            metrics["opening_moves_count"] = int(metrics["opening_moves_count"]) + 1
        elif move.reason in GUESS_REASONS:
            metrics["guesses_count"] = int(metrics["guesses_count"]) + 1

        for x, y in move.to_probe:
            status, _ = game.reveal(x, y)
            metrics["reveal_moves_count"] = int(metrics["reveal_moves_count"]) + 1
            moves_sequence.append((x, y, move.reason))
            if status in (-1, 1):
                return finish(status)

    # Reached only for a game that was already over.
    return finish(0)


def run_solver_single_test(
    width: int,
    height: int,
    mines_count: int,
    mines_generation_algorithm: str,
    *,
    show_boards: bool = False,
    strategy: str = "frontier",
    max_frontier_size: int = DEFAULT_MAX_FRONTIER_SIZE,
    seed: Optional[int] = None,
) -> Dict[str, object]:
    """
    Run one end-to-end game with ExactSolver on a fresh Minesweeper instance.

    Args:
        width: Board width.
        height: Board height.
        mines_count: Total number of mines on the board.
        mines_generation_algorithm: Mine placement rule
            ("safe_first_action_rule" or "safe_neighborhood_rule").
        show_boards: If True, print the underlying board and the final view.
        strategy: Group counting strategy ("frontier" or "backtrack").
        max_frontier_size: Frontier DP bound.
        seed: Seeds both the mine placement and the solver's guesses.

    Returns:
        The game's metrics payload augmented with "status" (-1 loss, 0 gave up, 1 win).
    """
    game = Minesweeper(
        width,
        height,
        mines_count,
        mines_generation_algorithm=mines_generation_algorithm,
        rng=random.Random(seed),
    )
    opening = "corner" if mines_generation_algorithm == "safe_first_action_rule" else "center"
    solver = ExactSolver(
        strategy=strategy, max_frontier_size=max_frontier_size, opening=opening, seed=seed
    )

    status, payload = play_game(game, solver)

    if show_boards:
        print(f"Generation mode: {mines_generation_algorithm}")
        print("Underlying board (mines visible):")
        print(game.format_board(reveal_all=True))
        print()
        print("Final board:")
        print(game.format_board(reveal_all=False))
        print()
        print(f"Finished with status {status}.")

    out = dict(payload)
    out["status"] = status
    return out


def run_solver_many_tests(
    width: int,
    height: int,
    mines_count: int,
    runs: int,
    mines_generation_algorithm: str,
    *,
    strategy: str = "frontier",
    max_frontier_size: int = DEFAULT_MAX_FRONTIER_SIZE,
    seed: Optional[int] = None,
) -> Dict[str, float]:
    """
    Run many independent games and return averaged metrics plus win rate.

    Args:
        width: Board width.
        height: Board height.
        mines_count: Total number of mines on the board.
        runs: Number of independent games to run.
        mines_generation_algorithm: Mine placement rule
            ("safe_first_action_rule" or "safe_neighborhood_rule").
        strategy: Group counting strategy ("frontier" or "backtrack").
        max_frontier_size: Frontier DP bound.
        seed: Base seed; game i uses seed + i.

    Returns:
        Averages of the numeric payload metrics (prefixed with "avg_"), plus:
        - win_rate
        - give_up_rate
        - avg_guesses_total
        - guess_failure_rate (losses per guess)
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    sums: Dict[str, float] = defaultdict(float)
    wins = 0
    losses = 0
    gave_up = 0
    total_guesses = 0.0

    for i in range(runs):
        run_seed = None if seed is None else seed + i
        payload = run_solver_single_test(
            width,
            height,
            mines_count,
            mines_generation_algorithm,
            strategy=strategy,
            max_frontier_size=max_frontier_size,
            seed=run_seed,
        )
        status = payload["status"]
        if status == 1:
            wins += 1
        elif status == -1:
            losses += 1
        elif status == 0:
            gave_up += 1
        else:
            raise RuntimeError(f"Unexpected game status: {status}")

        total_guesses += float(payload["guesses_count"])  # type: ignore[arg-type]
        for k, v in payload.items():
            if k == "status":
                continue
            if isinstance(v, (int, float)) and not isinstance(v, bool):
                sums[f"avg_{k}"] += float(v)

    out: Dict[str, float] = {k: total / runs for k, total in sums.items()}
    out["win_rate"] = wins / runs
    out["give_up_rate"] = gave_up / runs
    out["avg_guesses_total"] = total_guesses / runs
    out["guess_failure_rate"] = (losses / total_guesses) if total_guesses > 0 else 0.0
    return out


def run_solver_expert_level_analysis(
    runs: int,
    mines_generation_algorithm: str,
    *,
    strategy: str = "frontier",
    levels: Optional[Dict[str, Tuple[int, int, int]]] = None,
    seed: Optional[int] = None,
    show: bool = True,
) -> Dict[str, Dict[str, float]]:
    """
    Run aggregated solver tests on standard Minesweeper difficulty levels and plot summaries.

    Args:
        runs: Number of independent games to run per difficulty level.
        mines_generation_algorithm: Mine placement rule
            ("safe_first_action_rule" or "safe_neighborhood_rule").
        strategy: Group counting strategy ("frontier" or "backtrack").
        levels: Optional mapping of level name -> (width, height, mines);
            the three standard levels by default.
        seed: Base seed passed to run_solver_many_tests().
        show: If True, display the figures; they are always created.

    Returns:
        Mapping from level name to statistics dict returned by run_solver_many_tests().

    Standard difficulty levels:
        - Beginner: 9x9, 10 mines
        - Intermediate: 16x16, 40 mines
        - Expert: 30x16, 99 mines
    """
    if levels is None:
        levels = {
            "beginner": (9, 9, 10),
            "intermediate": (16, 16, 40),
            "expert": (30, 16, 99),
        }

    results: Dict[str, Dict[str, float]] = {}
    for level, (w, h, m) in levels.items():
        results[level] = run_solver_many_tests(
            w, h, m, runs, mines_generation_algorithm, strategy=strategy, seed=seed
        )

    level_names = list(levels.keys())
    x = np.arange(len(level_names))
    bar_w = 0.35

    # 1) Certain moves vs guesses
    certain = [results[n].get("avg_certain_moves_count", 0.0) for n in level_names]
    guesses = [results[n]["avg_guesses_total"] for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x - bar_w / 2, certain, width=bar_w, label="certain")  # type: ignore[misc]
    plt.bar(x + bar_w / 2, guesses, width=bar_w, label="guesses")  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Average count")  # type: ignore[misc]
    plt.title("Certain probes and guesses (per game)")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()

    # 2) Work done by the exact counter
    max_group = [results[n].get("avg_max_group_size", 0.0) for n in level_names]
    peak_frontier = [results[n].get("avg_max_peak_frontier", 0.0) for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x - bar_w / 2, max_group, width=bar_w, label="max_group_size")  # type: ignore[misc]
    plt.bar(  # type: ignore[misc]
        x + bar_w / 2, peak_frontier, width=bar_w, label="max_peak_frontier"
    )
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Average size")  # type: ignore[misc]
    plt.title("Largest group and DP frontier (per game)")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()

    # 3) Win rate by level
    win_rates = [results[n]["win_rate"] for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x, win_rates)  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Win rate")  # type: ignore[misc]
    plt.ylim(0.0, 1.0)  # type: ignore[misc]
    plt.title("Win rate by difficulty level")  # type: ignore[misc]
    plt.tight_layout()

    if show:
        plt.show()  # type: ignore[misc]

    return results


def format_distribution(
    view: BoardView, distribution: GlobalDistribution, *, show_coords: bool = True
) -> str:
    """
    Format a distribution as a text grid.

    Unknown squares show their mine probability in percent ("S" when safe,
    "M" when certainly a mine); probed squares show their number, flagged
    squares "F" and exposed mines "#".
    """
    w, h = view.width, view.height

    def cell_str(x: int, y: int) -> str:
        state = view.state((x, y))
        if state == SquareState.PROBED:
            return f"{view.mine_count((x, y)):>3}"
        if state == SquareState.FLAGGED:
            return "  F"
        if state == SquareState.MINE:
            return "  #"
        p = distribution.probabilities.get((x, y))
        if p is None:
            return "  ."
        if p == 0:
            return "  S"
        if p == 1:
            return "  M"
        return f"{round(100 * float(p)):>3}"

    lines: List[str] = []
    if show_coords:
        header = " ".join(f"{x:3d}" for x in range(w))
        lines.append("   " + header)
        lines.append("   " + "-" * (4 * w - 1))

    for y in range(h):
        row = " ".join(cell_str(x, y) for x in range(w))
        lines.append(f"{y:2d}|" + row if show_coords else row)

    return "\n".join(lines)


def plot_probability_heatmap(
    view: BoardView,
    distribution: GlobalDistribution,
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    """
    Draw mine probabilities as a heatmap, with the revealed numbers on top.

    Args:
        view: The view the distribution was computed for.
        distribution: Probabilities to draw.
        ax: Axes to draw on; a new figure is created by default.

    Returns:
        The axes drawn on.
    """
    if ax is None:
        _, ax = plt.subplots()  # type: ignore[misc]

    grid = distribution.probability_grid()
    image = ax.imshow(
        np.ma.masked_invalid(grid), cmap="RdYlGn_r", vmin=0.0, vmax=1.0
    )
    for x, y in view.squares(SquareState.PROBED):
        ax.text(x, y, str(view.mine_count((x, y))), ha="center", va="center")
    for x, y in view.squares(SquareState.FLAGGED):
        ax.text(x, y, "F", ha="center", va="center", color="red")

    ax.set_xticks(np.arange(view.width))
    ax.set_yticks(np.arange(view.height))
    ax.set_title("Mine probability")
    ax.figure.colorbar(image, ax=ax)
    return ax
