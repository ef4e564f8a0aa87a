from __future__ import annotations

import hashlib
import json
import math
from dataclasses import dataclass, field
from decimal import Decimal
from functools import cached_property, lru_cache
from pathlib import Path
from typing import Any

from .graph_errors import GraphDataError
from .logging_utils import log_event
from .matching import short_code
from .settings import settings


@dataclass(frozen=True)
class RouteEdge:
    days: float
    reqs: str = ""
    active: str = ""
    updated: str = ""


@dataclass(frozen=True)
class UnlockClass:
    days: float
    tier: str


@dataclass(frozen=True)
class RouteGraph:
    """Immutable snapshot of the invite network.

    ``route_info`` maps a tracker to the trackers it can invite to. Nodes that
    only ever appear as a target have no key of their own.
    """

    route_info: dict[str, dict[str, RouteEdge]]
    unlock_info: dict[str, UnlockClass] = field(default_factory=dict)
    abbreviations: dict[str, str] = field(default_factory=dict)
    version: str = "inline"
    source: str = "inline"

    @cached_property
    def node_index(self) -> tuple[str, ...]:
        return all_nodes(self)

    def outgoing(self, node: str) -> dict[str, RouteEdge]:
        return self.route_info.get(node, {})


@dataclass(frozen=True)
class GraphNode:
    id: str
    group: int
    val: float


@dataclass(frozen=True)
class GraphLink:
    source: str
    target: str


@dataclass(frozen=True)
class GraphView:
    nodes: tuple[GraphNode, ...]
    links: tuple[GraphLink, ...]


@dataclass(frozen=True)
class NodeDetails:
    name: str
    abbreviation: str
    unlock: UnlockClass | None
    outgoing: dict[str, RouteEdge]
    incoming: dict[str, RouteEdge]


def all_nodes(graph: RouteGraph) -> tuple[str, ...]:
    seen: set[str] = set()
    for src, targets in graph.route_info.items():
        seen.add(src)
        seen.update(targets)
    return tuple(sorted(seen))


def _parse_days(raw: object) -> float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str, Decimal)):
        return None
    try:
        days = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(days):
        return None
    return max(0.0, days)


def _parse_edge(raw: object) -> RouteEdge | None:
    if not isinstance(raw, dict):
        return None
    days = _parse_days(raw.get("days"))
    if days is None:
        return None
    return RouteEdge(
        days=days,
        reqs=str(raw.get("reqs") or ""),
        active=str(raw.get("active") or ""),
        updated=str(raw.get("updated") or ""),
    )


def _parse_unlock(raw: object) -> UnlockClass | None:
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        return None
    days = _parse_days(raw[0])
    if days is None:
        return None
    return UnlockClass(days=days, tier=str(raw[1]))


def parse_route_graph(
    raw: Any,
    *,
    version: str = "inline",
    source: str = "inline",
) -> RouteGraph:
    if not isinstance(raw, dict):
        raise GraphDataError("route_graph_invalid", "route graph payload must be a JSON object")
    route_info_raw = raw.get("routeInfo")
    if not isinstance(route_info_raw, dict):
        raise GraphDataError(
            "route_graph_invalid",
            "route graph payload is missing 'routeInfo'",
            details={"keys": sorted(str(k) for k in raw)},
        )

    route_info: dict[str, dict[str, RouteEdge]] = {}
    for src, targets in route_info_raw.items():
        if not isinstance(targets, dict):
            continue
        out: dict[str, RouteEdge] = {}
        for dst, edge_raw in targets.items():
            edge = _parse_edge(edge_raw)
            if edge is not None:
                out[str(dst)] = edge
        route_info[str(src)] = out

    unlock_info: dict[str, UnlockClass] = {}
    unlock_raw = raw.get("unlockInviteClass")
    if isinstance(unlock_raw, dict):
        for name, value in unlock_raw.items():
            parsed = _parse_unlock(value)
            if parsed is not None:
                unlock_info[str(name)] = parsed

    abbreviations: dict[str, str] = {}
    abbr_raw = raw.get("abbrList")
    if isinstance(abbr_raw, dict):
        for name, abbr in abbr_raw.items():
            if isinstance(abbr, str) and abbr.strip():
                abbreviations[str(name)] = abbr.strip()

    return RouteGraph(
        route_info=route_info,
        unlock_info=unlock_info,
        abbreviations=abbreviations,
        version=version,
        source=source,
    )


def _graph_asset_path() -> Path:
    return Path(settings.graph_path)


def read_route_graph(path: Path) -> RouteGraph:
    payload = path.read_bytes()
    try:
        raw = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise GraphDataError(
            "route_graph_invalid",
            f"route graph file is not valid JSON: {exc}",
            details={"graph_path": str(path)},
        ) from exc
    return parse_route_graph(
        raw,
        version=hashlib.sha1(payload).hexdigest()[:12],
        source=str(path),
    )


@lru_cache(maxsize=1)
def load_route_graph() -> RouteGraph | None:
    path = _graph_asset_path()
    if not path.exists():
        return None
    graph = read_route_graph(path)
    log_event(
        "graph_loaded",
        graph_path=str(path),
        graph_version=graph.version,
        node_count=len(graph.node_index),
        source_count=len(graph.route_info),
        edge_count=sum(len(targets) for targets in graph.route_info.values()),
    )
    return graph


def route_graph_status() -> tuple[bool, str]:
    try:
        graph = load_route_graph()
    except GraphDataError:
        return False, "invalid"
    if graph is None:
        return False, "unavailable"
    if not graph.node_index:
        return False, "empty"
    return True, "ok"


def graph_view(graph: RouteGraph) -> GraphView:
    vals: dict[str, float] = {}
    links: list[GraphLink] = []

    def add_node(node_id: str) -> None:
        if node_id in vals:
            vals[node_id] += 0.5
        else:
            vals[node_id] = 1.0

    for src, targets in graph.route_info.items():
        add_node(src)
        for dst in targets:
            add_node(dst)
            links.append(GraphLink(source=src, target=dst))

    return GraphView(
        nodes=tuple(GraphNode(id=node_id, group=1, val=val) for node_id, val in vals.items()),
        links=tuple(links),
    )


def node_details(graph: RouteGraph, node: str) -> NodeDetails | None:
    if node not in graph.node_index:
        return None
    incoming = {
        src: targets[node]
        for src, targets in graph.route_info.items()
        if node in targets
    }
    return NodeDetails(
        name=node,
        abbreviation=short_code(node, graph.abbreviations),
        unlock=graph.unlock_info.get(node),
        outgoing=dict(graph.outgoing(node)),
        incoming=incoming,
    )


def collection_neighbors(graph: RouteGraph, collection: str) -> tuple[str, ...]:
    known = set(graph.node_index)
    members = {name.strip() for name in collection.split(",") if name.strip() in known}
    if not members:
        return ()
    neighbors: set[str] = set()
    for src, targets in graph.route_info.items():
        if src in members:
            neighbors.update(targets)
        for dst in targets:
            if dst in members:
                neighbors.add(src)
    return tuple(sorted(neighbors - members))
