from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from .graph_errors import GraphDataError, http_status_for
from .logging_utils import log_event
from .matching import directory, short_code, suggestions
from .models import (
    GraphViewResponse,
    NeighborsResponse,
    NodeDetailsResponse,
    RouteDetail,
    SearchRequest,
    SearchResponse,
    ShortestPathResponse,
    SuggestResponse,
    TrackerEntry,
    TrackerListResponse,
)
from .path_search import SearchQuery, path_routes, search_paths_with_stats, shortest_path
from .query_cache import clear_query_cache, get_cached_search, query_cache_stats, set_cached_search
from .route_graph import RouteGraph, collection_neighbors, graph_view, load_route_graph, node_details
from .settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.graph = None
    app.state.graph_reason = "route_graph_unavailable"
    try:
        graph = load_route_graph()
    except GraphDataError as exc:
        app.state.graph_reason = exc.reason_code
        log_event(
            "graph_load_failed",
            level=logging.ERROR,
            reason_code=exc.reason_code,
            error=exc.message,
            graph_path=settings.graph_path,
        )
    else:
        if graph is None:
            log_event("graph_missing", level=logging.WARNING, graph_path=settings.graph_path)
        elif not graph.node_index:
            app.state.graph_reason = "route_graph_empty"
            log_event("graph_empty", level=logging.WARNING, graph_path=settings.graph_path)
        else:
            app.state.graph = graph
            app.state.graph_reason = "ok"
    yield


app = FastAPI(title="Tracker Invite Router", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _http_error(err: GraphDataError) -> HTTPException:
    return HTTPException(
        status_code=http_status_for(err.reason_code),
        detail={"reason_code": err.reason_code, "message": err.message},
    )


def route_graph(request: Request) -> RouteGraph:
    graph: RouteGraph | None = getattr(request.app.state, "graph", None)
    if graph is None:
        reason = getattr(request.app.state, "graph_reason", "route_graph_unavailable")
        raise _http_error(GraphDataError(reason, "route graph not loaded"))
    return graph


GraphDep = Annotated[RouteGraph, Depends(route_graph)]


@app.get("/health")
async def health(request: Request) -> dict[str, str]:
    graph: RouteGraph | None = getattr(request.app.state, "graph", None)
    return {
        "status": "ok",
        "graph": "ok" if graph is not None else getattr(request.app.state, "graph_reason", "route_graph_unavailable"),
        "graph_version": graph.version if graph is not None else "",
    }


@app.get("/trackers", response_model=TrackerListResponse)
def list_trackers(graph: GraphDep, search: str = "") -> TrackerListResponse:
    entries = [TrackerEntry(name=name, abbreviation=abbr) for name, abbr in directory(graph.abbreviations, search)]
    return TrackerListResponse(total=len(entries), trackers=entries)


@app.get("/trackers/{name}", response_model=NodeDetailsResponse)
def get_tracker(name: str, graph: GraphDep) -> NodeDetailsResponse:
    details = node_details(graph, name)
    if details is None:
        raise _http_error(GraphDataError("tracker_not_found", f"unknown tracker: {name}"))
    return NodeDetailsResponse.from_details(details)


@app.get("/suggest", response_model=SuggestResponse)
def suggest(graph: GraphDep, q: str = "") -> SuggestResponse:
    names = suggestions(q, graph.node_index, graph.abbreviations, limit=settings.suggestion_limit)
    return SuggestResponse(
        query=q,
        suggestions=[TrackerEntry(name=name, abbreviation=short_code(name, graph.abbreviations)) for name in names],
    )


@app.post("/search", response_model=SearchResponse)
def search(req: SearchRequest, graph: GraphDep) -> SearchResponse:
    request_id = str(uuid.uuid4())
    t0 = time.perf_counter()

    query = SearchQuery(
        source=req.source,
        target=req.target,
        max_hops=settings.default_max_hops if req.max_hops is None else req.max_hops,
        max_days=req.max_days,
        sort_by=req.sort_by,
    )
    key = query.cache_key(graph.version)
    cached = get_cached_search(key)
    if cached is None:
        paths, stats = search_paths_with_stats(graph, query)
        set_cached_search(key, paths, stats)
    else:
        paths, stats = cached

    log_event(
        "search_request",
        request_id=request_id,
        graph_version=graph.version,
        source=query.source,
        target=query.target,
        max_hops=query.max_hops,
        max_days=query.max_days,
        sort_by=query.sort_by,
        cached=cached is not None,
        result_count=len(paths),
        explored_paths=stats.get("explored_paths", 0),
        duration_ms=round((time.perf_counter() - t0) * 1000, 2),
    )

    return SearchResponse.from_paths(
        paths,
        graph_version=graph.version,
        stats=stats,
        cached=cached is not None,
    )


@app.get("/shortest-path", response_model=ShortestPathResponse)
def get_shortest_path(
    graph: GraphDep,
    start: Annotated[str, Query(min_length=1)],
    end: Annotated[str, Query(min_length=1)],
) -> ShortestPathResponse:
    t0 = time.perf_counter()
    nodes = shortest_path(graph, start, end)

    log_event(
        "shortest_path_request",
        graph_version=graph.version,
        start=start,
        end=end,
        found=nodes is not None,
        hops=len(nodes) - 1 if nodes is not None else None,
        duration_ms=round((time.perf_counter() - t0) * 1000, 2),
    )

    if nodes is None:
        return ShortestPathResponse(start=start, end=end, found=False)
    return ShortestPathResponse(
        start=start,
        end=end,
        found=True,
        nodes=list(nodes),
        routes=[RouteDetail.from_edge(edge) for edge in path_routes(graph, nodes)],
    )


@app.get("/graph", response_model=GraphViewResponse)
def get_graph(graph: GraphDep) -> GraphViewResponse:
    return GraphViewResponse.from_view(graph_view(graph))


@app.get("/graph/neighbors", response_model=NeighborsResponse)
def get_neighbors(graph: GraphDep, collection: str = "") -> NeighborsResponse:
    known = set(graph.node_index)
    members = [name.strip() for name in collection.split(",") if name.strip() in known]
    return NeighborsResponse(
        collection=members,
        neighbors=list(collection_neighbors(graph, collection)),
    )


@app.get("/cache/stats")
async def cache_stats() -> dict[str, int]:
    return query_cache_stats()


@app.delete("/cache")
async def clear_cache() -> dict[str, int]:
    cleared = clear_query_cache()
    log_event("query_cache_cleared", cleared=cleared)
    return {"cleared": cleared}
