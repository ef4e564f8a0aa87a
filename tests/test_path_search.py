from __future__ import annotations

import pytest

from invite_router.path_search import (
    SearchQuery,
    TrackerPath,
    enumerate_paths,
    enumerate_paths_with_stats,
    group_by_source,
    path_routes,
    rank_paths,
    search_paths,
    shortest_path,
)
from invite_router.route_graph import RouteEdge, RouteGraph


def _graph() -> RouteGraph:
    return RouteGraph(
        route_info={
            "A": {"B": RouteEdge(days=10), "C": RouteEdge(days=30)},
            "B": {"C": RouteEdge(days=10)},
        }
    )


def _nodes(paths: tuple[TrackerPath, ...]) -> list[tuple[str, ...]]:
    return [path.nodes for path in paths]


def test_finds_direct_and_two_hop_routes() -> None:
    paths = enumerate_paths(_graph(), "A", "C", max_hops=2)

    assert _nodes(paths) == [("A", "C"), ("A", "B", "C")]
    assert [p.total_days for p in paths] == [30.0, 20.0]
    assert _nodes(rank_paths(paths, "weight")) == [("A", "B", "C"), ("A", "C")]
    assert _nodes(rank_paths(paths, "hops")) == [("A", "C"), ("A", "B", "C")]


def test_max_days_excludes_expensive_route() -> None:
    paths = enumerate_paths(_graph(), "A", "C", max_hops=2, max_days=25)
    assert _nodes(paths) == [("A", "B", "C")]


def test_max_hops_bounds_expansion() -> None:
    assert _nodes(enumerate_paths(_graph(), "A", "C", max_hops=1)) == [("A", "C")]
    assert enumerate_paths(_graph(), "A", "C", max_hops=0) == ()


def test_path_records_source_target_and_routes() -> None:
    graph = _graph()
    two_hop = enumerate_paths(graph, "a", "c", max_hops=2)[1]

    assert two_hop.source == "A"
    assert two_hop.target == "C"
    assert two_hop.hops == 2
    assert two_hop.routes == (graph.route_info["A"]["B"], graph.route_info["B"]["C"])


def test_empty_target_reports_every_reachable_path() -> None:
    paths = enumerate_paths(_graph(), "A", "", max_hops=2)
    assert _nodes(paths) == [("A", "B"), ("A", "C"), ("A", "B", "C")]


def test_empty_source_starts_from_every_node_with_routes() -> None:
    paths = enumerate_paths(_graph(), "", "C", max_hops=2)

    # Other start nodes are not re-entered, so A -> B -> C is not reported.
    assert _nodes(paths) == [("A", "C"), ("B", "C")]
    assert group_by_source(paths) == {"A": (paths[0],), "B": (paths[1],)}


def test_empty_query_and_unknown_source_yield_nothing() -> None:
    paths, stats = enumerate_paths_with_stats(_graph(), "", "  ")
    assert paths == ()
    assert stats["termination_reason"] == "empty_query"

    paths, stats = enumerate_paths_with_stats(_graph(), "zzz", "C")
    assert paths == ()
    assert stats["termination_reason"] == "no_start_nodes"


def test_start_nodes_are_not_reentered_unless_they_are_the_target() -> None:
    graph = RouteGraph(
        route_info={
            "A": {"B": RouteEdge(days=1)},
            "B": {"A": RouteEdge(days=1), "C": RouteEdge(days=1)},
        }
    )

    assert _nodes(enumerate_paths(graph, "a, b", "", max_hops=3)) == [("B", "C")]
    assert _nodes(enumerate_paths(graph, "a, b", "a", max_hops=3)) == [("B", "A")]


def test_cycles_and_self_loops_are_not_revisited() -> None:
    graph = RouteGraph(
        route_info={
            "A": {"B": RouteEdge(days=1)},
            "B": {"C": RouteEdge(days=1)},
            "C": {"A": RouteEdge(days=1), "C": RouteEdge(days=1)},
        }
    )
    paths, stats = enumerate_paths_with_stats(graph, "A", "", max_hops=5)

    assert _nodes(paths) == [("A", "B"), ("A", "B", "C")]
    assert stats["pruned_start_reentry"] == 1
    assert stats["pruned_revisits"] == 1
    assert stats["start_nodes"] == 1


def test_fuzzy_source_and_target_terms() -> None:
    graph = RouteGraph(
        route_info={
            "MoreThanTV": {"BroadcasTheNet": RouteEdge(days=30)},
            "Orpheus": {"BroadcasTheNet": RouteEdge(days=120)},
        },
        abbreviations={"BroadcasTheNet": "BTN", "MoreThanTV": "MTV", "Orpheus": "OPS"},
    )

    assert _nodes(enumerate_paths(graph, "mtv, orph", "btn")) == [
        ("MoreThanTV", "BroadcasTheNet"),
        ("Orpheus", "BroadcasTheNet"),
    ]
    assert _nodes(enumerate_paths(graph, "", "casthe")) == [
        ("MoreThanTV", "BroadcasTheNet"),
        ("Orpheus", "BroadcasTheNet"),
    ]
    # Codes only match whole; "bt" is neither a code nor part of a name.
    assert enumerate_paths(graph, "", "bt") == ()


def test_days_ties_fall_back_to_hop_count() -> None:
    graph = RouteGraph(
        route_info={
            "S": {"T": RouteEdge(days=5), "Y": RouteEdge(days=2)},
            "Y": {"T": RouteEdge(days=3)},
        }
    )
    paths = enumerate_paths(graph, "S", "T", max_hops=2)

    assert [p.total_days for p in paths] == [5.0, 5.0]
    assert _nodes(rank_paths(reversed(paths), "days")) == [("S", "T"), ("S", "Y", "T")]


def test_rank_paths_rejects_unknown_key() -> None:
    with pytest.raises(ValueError):
        rank_paths((), "distance")  # type: ignore[arg-type]


def test_search_paths_enumerates_then_ranks() -> None:
    query = SearchQuery(source="A", target="C", max_hops=2, sort_by="days")
    assert _nodes(search_paths(_graph(), query)) == [("A", "B", "C"), ("A", "C")]


def test_search_query_cache_key_is_normalized() -> None:
    query = SearchQuery(source=" A ", target="C", max_hops=2, max_days=25, sort_by="weight")
    assert query.cache_key("v1") == ("v1", "a", "c", 2, 25.0, "days")
    assert SearchQuery().cache_key("v1") == ("v1", "", "", 1, None, "hops")


def test_shortest_path_trivial_and_unreachable() -> None:
    graph = _graph()

    assert shortest_path(graph, "A", "A") == ("A",)
    assert shortest_path(graph, "Z", "Z") == ("Z",)
    assert shortest_path(graph, "C", "A") is None
    assert shortest_path(graph, "A", "Z") is None


def test_shortest_path_is_hop_minimal_and_ignores_days() -> None:
    graph = RouteGraph(
        route_info={
            "A": {"B": RouteEdge(days=1), "D": RouteEdge(days=500)},
            "B": {"C": RouteEdge(days=1)},
            "C": {"D": RouteEdge(days=1)},
        }
    )

    assert shortest_path(graph, "A", "D") == ("A", "D")
    assert shortest_path(graph, "B", "D") == ("B", "C", "D")


def test_path_routes_follows_edges() -> None:
    graph = _graph()

    assert path_routes(graph, ("A", "B", "C")) == (graph.route_info["A"]["B"], graph.route_info["B"]["C"])
    assert path_routes(graph, ("A",)) == ()
    with pytest.raises(ValueError):
        path_routes(graph, ("C", "A"))


def test_empty_graph_is_total() -> None:
    graph = RouteGraph(route_info={})

    assert enumerate_paths(graph, "a", "b", max_hops=3) == ()
    assert enumerate_paths(graph, "", "b") == ()
    assert shortest_path(graph, "a", "b") is None
