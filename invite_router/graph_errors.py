from __future__ import annotations

from dataclasses import dataclass
from typing import Any

FROZEN_REASON_CODES: frozenset[str] = frozenset(
    {
        "route_graph_unavailable",
        "route_graph_invalid",
        "route_graph_empty",
        "tracker_not_found",
    }
)

# Reason codes that mean the service cannot answer anything yet.
UNAVAILABLE_REASON_CODES: frozenset[str] = frozenset(
    {"route_graph_unavailable", "route_graph_invalid", "route_graph_empty"}
)


@dataclass
class GraphDataError(ValueError):
    reason_code: str
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


def normalize_reason_code(reason_code: str, *, default: str = "route_graph_unavailable") -> str:
    code = str(reason_code or "").strip()
    if code in FROZEN_REASON_CODES:
        return code
    return default


def http_status_for(reason_code: str) -> int:
    if normalize_reason_code(reason_code) == "tracker_not_found":
        return 404
    return 503
