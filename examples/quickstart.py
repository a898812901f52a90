"""
Quickstart example for the exact Minesweeper solver.

This script demonstrates basic usage of the solver.
"""

import random

from minesolver import (
    BoardView,
    ExactSolver,
    Minesweeper,
    format_distribution,
    play_game,
    run_solver_many_tests,
)


def main():
    print("=" * 60)
    print("Exact Minesweeper Solver - Quickstart Example")
    print("=" * 60)

    # Example 1: Probabilities of a hand-made position
    print("\n1. Probabilities around a '1 1' pattern...")
    print("-" * 60)

    view = BoardView.from_rows([" 1 1 F 1 1 F  "], total_mines=5)
    solver = ExactSolver()
    result = solver.solve(view)
    print(format_distribution(view, result.distribution))
    print(f"Next move: {result.move}")

    # Example 2: Solve a single game
    print("\n2. Solving a single Intermediate game (16x16, 40 mines)...")
    print("-" * 60)

    game = Minesweeper(
        width=16,
        height=16,
        mines_count=40,
        mines_generation_algorithm="safe_neighborhood_rule",
        rng=random.Random(7),
    )
    status, payload = play_game(game, ExactSolver(seed=7))

    result_name = {1: "WON", -1: "LOST"}.get(status, "GAVE UP")
    print(f"Result: {result_name}")
    print(f"Reveal moves: {payload['reveal_moves_count']}")
    print(f"Cells revealed: {payload['revealed_cells_count']}")
    print(f"Mines marked: {payload['markings_count']}")
    print(f"Certain probes: {payload['certain_moves_count']}")
    print(f"Guesses: {payload['guesses_count']}")
    print(f"Largest group: {payload['max_group_size']}")
    print(f"Largest DP frontier: {payload['max_peak_frontier']}")

    # Example 3: Show final board state
    print("\n3. Final board state:")
    print("-" * 60)
    print(game.format_board(reveal_all=True))

    # Example 4: Run multiple games for statistics
    print("\n4. Running 20 games for win rate statistics...")
    print("-" * 60)

    results = run_solver_many_tests(
        width=16,
        height=16,
        mines_count=40,
        runs=20,
        mines_generation_algorithm="safe_neighborhood_rule",
        seed=1,
    )

    print(f"Win rate: {results['win_rate']*100:.1f}%")
    print(f"Average moves per game: {results['avg_reveal_moves_count']:.1f}")
    print(f"Average guesses per game: {results['avg_guesses_total']:.1f}")
    print(f"Guess failure rate: {results['guess_failure_rate']*100:.1f}%")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
