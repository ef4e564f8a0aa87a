from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Keep JSONL logs out of the working tree; must run before invite_router imports.
os.environ.setdefault("OUT_DIR", str(Path(tempfile.gettempdir()) / "invite-router-tests"))

import pytest  # noqa: E402

from invite_router.route_graph import RouteGraph, read_route_graph  # noqa: E402

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_graph_path() -> Path:
    return FIXTURES / "trackers_sample.json"


@pytest.fixture
def sample_graph(sample_graph_path: Path) -> RouteGraph:
    return read_route_graph(sample_graph_path)
