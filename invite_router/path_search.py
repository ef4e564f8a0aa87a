from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Literal

from .matching import MatchMode, match_mode_for, matching_nodes, node_matches, normalize_term, split_terms
from .route_graph import RouteEdge, RouteGraph

SortKey = Literal["hops", "days", "weight"]

CacheKey = tuple[str, str, str, int, float | None, str]


@dataclass(frozen=True)
class TrackerPath:
    source: str
    target: str
    nodes: tuple[str, ...]
    total_days: float
    routes: tuple[RouteEdge, ...]

    @property
    def hops(self) -> int:
        return len(self.routes)


@dataclass(frozen=True)
class SearchQuery:
    source: str = ""
    target: str = ""
    max_hops: int = 1
    max_days: float | None = None
    sort_by: SortKey = "hops"

    def cache_key(self, graph_version: str) -> CacheKey:
        return (
            graph_version,
            normalize_term(self.source),
            normalize_term(self.target),
            int(self.max_hops),
            None if self.max_days is None else float(self.max_days),
            _normalize_sort_key(self.sort_by),
        )


def _normalize_sort_key(sort_by: str) -> str:
    key = str(sort_by or "").strip().lower()
    if key in {"days", "weight"}:
        return "days"
    if key in {"hops", "jumps"}:
        return "hops"
    raise ValueError(f"unsupported sort key: {sort_by!r}")


def _resolve_start_nodes(graph: RouteGraph, source_term: str, target_term: str) -> tuple[str, ...]:
    keys = tuple(graph.route_info)
    if split_terms(source_term):
        return matching_nodes(source_term, graph.node_index, graph.abbreviations, candidates=keys)
    if target_term:
        # Open-ended "where can I reach X from" query.
        return keys
    return ()


def enumerate_paths_with_stats(
    graph: RouteGraph,
    source_term: str,
    target_term: str,
    *,
    max_hops: int = 1,
    max_days: float | None = None,
) -> tuple[tuple[TrackerPath, ...], dict[str, Any]]:
    target = normalize_term(target_term)
    stats: dict[str, Any] = {
        "start_nodes": 0,
        "explored_paths": 0,
        "enqueued_paths": 0,
        "pruned_start_reentry": 0,
        "pruned_revisits": 0,
        "pruned_days": 0,
        "termination_reason": "queue_exhausted",
    }
    if not split_terms(source_term) and not target:
        stats["termination_reason"] = "empty_query"
        return (), stats

    start_nodes = _resolve_start_nodes(graph, source_term, target)
    stats["start_nodes"] = len(start_nodes)
    if not start_nodes:
        stats["termination_reason"] = "no_start_nodes"
        return (), stats

    target_mode = (
        match_mode_for(target, graph.node_index, graph.abbreviations)
        if target
        else MatchMode.SUBSTRING
    )
    start_set = frozenset(start_nodes)

    queue: deque[TrackerPath] = deque(
        TrackerPath(source=start, target=start, nodes=(start,), total_days=0.0, routes=())
        for start in start_nodes
    )
    results: list[TrackerPath] = []

    while queue:
        current = queue.popleft()
        stats["explored_paths"] += 1
        node = current.nodes[-1]

        if len(current.nodes) > 1:
            is_target = not target or node_matches(node, target, target_mode, graph.abbreviations)
            if is_target and (max_days is None or current.total_days <= max_days):
                results.append(current)

        if current.hops >= max_hops:
            continue

        for nxt, edge in graph.outgoing(node).items():
            # A start node may still be the destination itself.
            if nxt in start_set and nxt.lower() != target:
                stats["pruned_start_reentry"] += 1
                continue
            if nxt in current.nodes:
                stats["pruned_revisits"] += 1
                continue
            total_days = current.total_days + edge.days
            if max_days is not None and total_days > max_days:
                stats["pruned_days"] += 1
                continue
            queue.append(
                TrackerPath(
                    source=current.source,
                    target=nxt,
                    nodes=(*current.nodes, nxt),
                    total_days=total_days,
                    routes=(*current.routes, edge),
                )
            )
            stats["enqueued_paths"] += 1

    return tuple(results), stats


def enumerate_paths(
    graph: RouteGraph,
    source_term: str,
    target_term: str,
    *,
    max_hops: int = 1,
    max_days: float | None = None,
) -> tuple[TrackerPath, ...]:
    paths, _stats = enumerate_paths_with_stats(
        graph,
        source_term,
        target_term,
        max_hops=max_hops,
        max_days=max_days,
    )
    return paths


def rank_paths(paths: Iterable[TrackerPath], sort_by: SortKey = "hops") -> tuple[TrackerPath, ...]:
    """Stable ascending sort by hop count or by cumulative days.

    Equal-day paths fall back to hop count; anything still tied keeps
    enumeration order.
    """
    if _normalize_sort_key(sort_by) == "days":
        return tuple(sorted(paths, key=lambda p: (p.total_days, p.hops)))
    return tuple(sorted(paths, key=lambda p: p.hops))


def search_paths_with_stats(
    graph: RouteGraph,
    query: SearchQuery,
) -> tuple[tuple[TrackerPath, ...], dict[str, Any]]:
    paths, stats = enumerate_paths_with_stats(
        graph,
        query.source,
        query.target,
        max_hops=query.max_hops,
        max_days=query.max_days,
    )
    return rank_paths(paths, query.sort_by), stats


def search_paths(graph: RouteGraph, query: SearchQuery) -> tuple[TrackerPath, ...]:
    paths, _stats = search_paths_with_stats(graph, query)
    return paths


def group_by_source(paths: Iterable[TrackerPath]) -> dict[str, tuple[TrackerPath, ...]]:
    groups: dict[str, list[TrackerPath]] = {}
    for path in paths:
        groups.setdefault(path.source, []).append(path)
    return {source: tuple(items) for source, items in groups.items()}


def shortest_path(graph: RouteGraph, start: str, end: str) -> tuple[str, ...] | None:
    """Hop-minimal path from ``start`` to ``end``, or None when unreachable.

    Edge days are ignored; every route counts as one hop.
    """
    if start == end:
        return (start,)

    queue: deque[tuple[str, ...]] = deque([(start,)])
    visited = {start}
    while queue:
        path = queue.popleft()
        for neighbor in graph.outgoing(path[-1]):
            if neighbor in visited:
                continue
            visited.add(neighbor)
            new_path = (*path, neighbor)
            if neighbor == end:
                return new_path
            queue.append(new_path)
    return None


def path_routes(graph: RouteGraph, nodes: tuple[str, ...]) -> tuple[RouteEdge, ...]:
    routes: list[RouteEdge] = []
    for src, dst in zip(nodes, nodes[1:]):
        edge = graph.outgoing(src).get(dst)
        if edge is None:
            raise ValueError(f"no route from {src!r} to {dst!r}")
        routes.append(edge)
    return tuple(routes)
