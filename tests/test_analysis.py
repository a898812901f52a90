import matplotlib.pyplot as plt
import pytest

from minesolver.analysis import (
    format_distribution,
    play_game,
    plot_probability_heatmap,
    run_solver_expert_level_analysis,
    run_solver_many_tests,
    run_solver_single_test,
)
from minesolver.board import BoardView
from minesolver.engine import Minesweeper
from minesolver.solver import ExactSolver


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


def test_play_game_reports_metrics():
    game = Minesweeper.from_rows("*1 1*")
    status, payload = play_game(game, ExactSolver())
    assert status == 1
    assert payload["solves_count"] == 1
    assert payload["markings_count"] == 2
    assert payload["reveal_moves_count"] == 1
    assert payload["certain_moves_count"] == 1
    assert payload["revealed_cells_count"] == 3
    assert payload["moves_sequence"] == [(0, 0, "flag"), (4, 0, "flag"), (2, 0, "certain")]


def test_play_game_turn_limit():
    game = Minesweeper(9, 9, 10)
    status, payload = play_game(game, ExactSolver(), max_turns=0)
    assert status == 0
    assert payload["solver_status"] == "turn_limit"


def test_play_game_gives_up_on_intractable_boards():
    game = Minesweeper.from_rows("1111111", "*  *  *")
    status, payload = play_game(game, ExactSolver(max_frontier_size=1))
    assert status == 0
    assert payload["solver_status"] == "intractable"


def test_single_test_payload():
    out = run_solver_single_test(9, 9, 10, "safe_neighborhood_rule", seed=11)
    assert out["status"] in (-1, 1)
    assert out["reveal_moves_count"] >= 1
    assert out["opening_moves_count"] == 1


def test_many_tests_are_reproducible():
    first = run_solver_many_tests(6, 6, 4, 3, "safe_first_action_rule", seed=2)
    second = run_solver_many_tests(6, 6, 4, 3, "safe_first_action_rule", seed=2)
    assert first == second
    assert 0.0 <= first["win_rate"] <= 1.0
    assert first["win_rate"] + first["give_up_rate"] <= 1.0
    assert "avg_reveal_moves_count" in first
    with pytest.raises(ValueError):
        run_solver_many_tests(6, 6, 4, 0, "safe_first_action_rule")


def test_level_analysis_builds_figures():
    results = run_solver_expert_level_analysis(
        2,
        "safe_neighborhood_rule",
        levels={"tiny": (6, 6, 3), "small": (8, 8, 6)},
        seed=0,
        show=False,
    )
    assert set(results) == {"tiny", "small"}
    assert len(plt.get_fignums()) == 3


def test_format_distribution():
    view = BoardView.from_rows(["12F", "   "], total_mines=2)
    distribution, _ = ExactSolver().compute_distribution(view)
    text = format_distribution(view, distribution, show_coords=False)
    assert text.splitlines() == ["  1   2   F", " 50  50   S"]


def test_plot_probability_heatmap():
    view = BoardView.from_rows(["12F", "   "], total_mines=2)
    distribution, _ = ExactSolver().compute_distribution(view)
    ax = plot_probability_heatmap(view, distribution)
    assert ax.get_title() == "Mine probability"
    assert [t.get_text() for t in ax.texts] == ["1", "2", "F"]
