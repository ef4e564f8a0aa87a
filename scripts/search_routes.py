from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Sequence

import httpx

from invite_router.models import SearchRequest, SearchResponse
from invite_router.path_search import SearchQuery, search_paths_with_stats
from invite_router.route_graph import RouteGraph, read_route_graph


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find invite routes between trackers, locally or through a running backend."
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--graph-json", default=None)
    group.add_argument("--backend-url", default=None)
    parser.add_argument("--source", default="")
    parser.add_argument("--target", default="")
    parser.add_argument("--max-hops", type=int, default=1)
    parser.add_argument("--max-days", type=float, default=None)
    parser.add_argument("--sort-by", choices=("hops", "days", "weight"), default="hops")
    parser.add_argument("--out-file", default=None)
    return parser


def load_graph_file(path: str) -> RouteGraph:
    return read_route_graph(Path(path))


def run_local_search(graph: RouteGraph, payload: dict[str, Any]) -> dict[str, Any]:
    req = SearchRequest.model_validate(payload)
    query = SearchQuery(
        source=req.source,
        target=req.target,
        max_hops=1 if req.max_hops is None else req.max_hops,
        max_days=req.max_days,
        sort_by=req.sort_by,
    )
    paths, stats = search_paths_with_stats(graph, query)
    return SearchResponse.from_paths(paths, graph_version=graph.version, stats=stats).model_dump()


def run_remote_search(
    payload: dict[str, Any],
    *,
    backend_url: str,
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    base = backend_url.rstrip("/")
    own_client = client is None
    if client is None:
        client = httpx.Client(timeout=30.0)

    try:
        resp = client.post(f"{base}/search", json=payload)
        resp.raise_for_status()
        return resp.json()
    finally:
        if own_client:
            client.close()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    payload = {
        "source": args.source,
        "target": args.target,
        "max_hops": args.max_hops,
        "max_days": args.max_days,
        "sort_by": args.sort_by,
    }
    if args.graph_json:
        result = run_local_search(load_graph_file(args.graph_json), payload)
    else:
        result = run_remote_search(payload, backend_url=args.backend_url)

    text = json.dumps(result, indent=2)
    if args.out_file:
        out = Path(args.out_file)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
    print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
