from __future__ import annotations

import re
from typing import Literal

StatusKind = Literal["open", "closed", "other"]

_URL_RE = re.compile(r"https?://[^\s]+")

_OPEN_STATUSES = frozenset({"yes", "open"})
_CLOSED_STATUSES = frozenset({"no", "closed"})


def status_kind(active: str) -> StatusKind:
    status = (active or "").strip().lower()
    if status in _OPEN_STATUSES:
        return "open"
    if status in _CLOSED_STATUSES:
        return "closed"
    return "other"


def status_label(active: str) -> str:
    status = (active or "").strip().lower()
    if status == "yes":
        return "Recruiting"
    if status == "no":
        return "Closed"
    return active


def requirement_links(reqs: str) -> list[str]:
    return _URL_RE.findall(reqs or "")
