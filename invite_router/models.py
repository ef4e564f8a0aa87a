from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from .path_search import TrackerPath, group_by_source
from .route_details import StatusKind, requirement_links, status_kind, status_label
from .route_graph import GraphView, NodeDetails, RouteEdge, UnlockClass
from .settings import settings

SortBy = Literal["hops", "days", "weight"]


class RouteDetail(BaseModel):
    days: float = Field(..., ge=0)
    reqs: str = ""
    active: str = ""
    updated: str = ""
    status_kind: StatusKind = "other"
    status_label: str = ""
    links: list[str] = Field(default_factory=list)

    @classmethod
    def from_edge(cls, edge: RouteEdge) -> "RouteDetail":
        return cls(
            days=edge.days,
            reqs=edge.reqs,
            active=edge.active,
            updated=edge.updated,
            status_kind=status_kind(edge.active),
            status_label=status_label(edge.active),
            links=requirement_links(edge.reqs),
        )


class PathOut(BaseModel):
    source: str
    target: str
    nodes: list[str]
    total_days: float
    hops: int
    routes: list[RouteDetail]

    @classmethod
    def from_path(cls, path: TrackerPath) -> "PathOut":
        return cls(
            source=path.source,
            target=path.target,
            nodes=list(path.nodes),
            total_days=path.total_days,
            hops=path.hops,
            routes=[RouteDetail.from_edge(edge) for edge in path.routes],
        )


class SearchRequest(BaseModel):
    """Route search parameters. Blank source means "from anywhere"."""

    source: str = Field(default="", max_length=1000)
    target: str = Field(default="", max_length=200)
    max_hops: int | None = Field(default=None, ge=0)
    max_days: float | None = Field(default=None, ge=0)
    sort_by: SortBy = "hops"

    @field_validator("max_hops")
    @classmethod
    def within_cap(cls, v: int | None) -> int | None:
        if v is not None and v > settings.max_hops_cap:
            raise ValueError(f"max_hops must be <= {settings.max_hops_cap}")
        return v

    @field_validator("max_days")
    @classmethod
    def finite(cls, v: float | None) -> float | None:
        if v is not None and not math.isfinite(v):
            raise ValueError("max_days must be finite")
        return v


class SearchResponse(BaseModel):
    graph_version: str
    total: int
    paths: list[PathOut]
    groups: dict[str, list[PathOut]]
    stats: dict[str, Any] = Field(default_factory=dict)
    cached: bool = False

    @classmethod
    def from_paths(
        cls,
        paths: tuple[TrackerPath, ...],
        *,
        graph_version: str,
        stats: dict[str, Any] | None = None,
        cached: bool = False,
    ) -> "SearchResponse":
        return cls(
            graph_version=graph_version,
            total=len(paths),
            paths=[PathOut.from_path(path) for path in paths],
            groups={
                source: [PathOut.from_path(path) for path in items]
                for source, items in group_by_source(paths).items()
            },
            stats=dict(stats or {}),
            cached=cached,
        )


class ShortestPathResponse(BaseModel):
    start: str
    end: str
    found: bool
    nodes: list[str] | None = None
    routes: list[RouteDetail] = Field(default_factory=list)


class TrackerEntry(BaseModel):
    name: str
    abbreviation: str


class TrackerListResponse(BaseModel):
    total: int
    trackers: list[TrackerEntry]


class SuggestResponse(BaseModel):
    query: str
    suggestions: list[TrackerEntry]


class UnlockOut(BaseModel):
    days: float
    tier: str

    @classmethod
    def from_unlock(cls, unlock: UnlockClass) -> "UnlockOut":
        return cls(days=unlock.days, tier=unlock.tier)


class NodeDetailsResponse(BaseModel):
    name: str
    abbreviation: str
    unlock: UnlockOut | None = None
    outgoing: dict[str, RouteDetail]
    incoming: dict[str, RouteDetail]

    @classmethod
    def from_details(cls, details: NodeDetails) -> "NodeDetailsResponse":
        return cls(
            name=details.name,
            abbreviation=details.abbreviation,
            unlock=UnlockOut.from_unlock(details.unlock) if details.unlock is not None else None,
            outgoing={name: RouteDetail.from_edge(edge) for name, edge in details.outgoing.items()},
            incoming={name: RouteDetail.from_edge(edge) for name, edge in details.incoming.items()},
        )


class GraphNodeOut(BaseModel):
    id: str
    group: int
    val: float


class GraphLinkOut(BaseModel):
    source: str
    target: str


class GraphViewResponse(BaseModel):
    nodes: list[GraphNodeOut]
    links: list[GraphLinkOut]

    @classmethod
    def from_view(cls, view: GraphView) -> "GraphViewResponse":
        return cls(
            nodes=[GraphNodeOut(id=n.id, group=n.group, val=n.val) for n in view.nodes],
            links=[GraphLinkOut(source=link.source, target=link.target) for link in view.links],
        )


class NeighborsResponse(BaseModel):
    collection: list[str]
    neighbors: list[str]
