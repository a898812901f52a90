import pytest

from minesolver.csp import ConstraintSystem
from minesolver.errors import IntractableError, SolveCancelled
from minesolver.frontier import frontier_profile
from minesolver.ordering import SearchNode, find_elimination_order
from minesolver.progress import ProgressChannel


def test_order_is_a_permutation(known_system):
    system, _, _ = known_system
    order = find_elimination_order(system)
    assert sorted(order) == list(range(system.num_variables))


def test_variables_without_rules_come_last(system_factory):
    system = system_factory(6, [(1, [0, 1, 2]), (2, [4, 5])])
    order = find_elimination_order(system)
    assert order[-1] == 3


def test_no_rules_gives_trivial_order():
    assert find_elimination_order(ConstraintSystem(4)) == [0, 1, 2, 3]


def test_chain_order_keeps_frontier_small(chain_system):
    stats = {}
    order = find_elimination_order(chain_system, stats=stats)
    assert sorted(order) == list(range(60))
    assert frontier_profile(chain_system, order) <= 12
    assert stats["search_nodes"] >= 2


def test_search_node_budget(system_factory):
    system = system_factory(6, [(1, [0, 1]), (1, [2, 3]), (1, [4, 5])])
    with pytest.raises(IntractableError):
        find_elimination_order(system, max_search_nodes=1)
    assert len(find_elimination_order(system, max_search_nodes=None)) == 6


def test_search_honours_cancellation(system_factory):
    system = system_factory(4, [(1, [0, 1]), (1, [2, 3])])
    channel = ProgressChannel(interval=0)
    channel.cancel()
    with pytest.raises(SolveCancelled):
        find_elimination_order(system, channel=channel)


def test_search_reports_frontier_annotations(system_factory):
    system = system_factory(4, [(1, [0, 1]), (1, [1, 2]), (1, [2, 3])])
    channel = ProgressChannel(interval=0)
    coords = [(i, 0) for i in range(4)]
    find_elimination_order(system, channel=channel, coords=coords)
    events = channel.drain()
    assert events and events[0].message.startswith("A* in progress")
    labels = {label for e in events for label in e.annotations.values()}
    assert labels <= {"frontier"}


def test_search_node_path_and_heuristic():
    root = SearchNode(frozenset(), frozenset())
    child = SearchNode(frozenset({0}), frozenset({1, 2}), 4, (0, 1, 2), 3, root)
    assert [n.introduced for n in child.path()] == [(), (0, 1, 2)]
    assert root.heuristic(2) == 2 * 500 * 5
    assert child.heuristic(2) == 1 * 500 * 7


def test_search_respects_frontier_limit(chain_system):
    stats = {}
    order = find_elimination_order(chain_system, stats=stats, max_frontier_size=12)
    assert sorted(order) == list(range(60))
    assert frontier_profile(chain_system, order) <= stats["search_peak"] <= 12


def test_unreachable_frontier_limit_fails_fast(system_factory):
    system = system_factory(4, [(1, [0, 1, 2, 3])])
    stats = {}
    with pytest.raises(IntractableError, match="frontier within 3"):
        find_elimination_order(system, stats=stats, max_frontier_size=3)
    assert stats["search_nodes"] == 1
    assert len(find_elimination_order(system, max_frontier_size=4)) == 4


def test_search_node_tracks_introduced_variables():
    root = SearchNode(frozenset(), frozenset())
    child = SearchNode(frozenset({0}), frozenset({1}), 2, (0, 1), 2, root)
    grandchild = SearchNode(frozenset({0, 1}), frozenset({2}), 4, (2,), 2, child)
    assert root.variables == frozenset()
    assert grandchild.variables == frozenset({0, 1, 2})
