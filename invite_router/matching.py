"""Resolve free-text tracker queries to concrete node names.

A query term is compared against each tracker's full name and its short code.
Whether a term is matched exactly or as a substring is decided once per term:
if the term equals some tracker's name or code, only exact hits count, so
``"red"`` selects ``RED`` and not ``Redacted``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum

SUGGESTION_LIMIT = 8

_CAPITALS_RE = re.compile(r"[A-Z]")


class MatchMode(str, Enum):
    EXACT = "exact"
    SUBSTRING = "substring"


def short_code(name: str, abbreviations: Mapping[str, str]) -> str:
    explicit = abbreviations.get(name)
    if explicit:
        return explicit
    capitals = _CAPITALS_RE.findall(name)
    if len(capitals) >= 2:
        return "".join(capitals)
    return name[:3].upper()


def normalize_term(term: str) -> str:
    return term.strip().lower()


def split_terms(query: str) -> list[str]:
    return [term for term in (normalize_term(part) for part in query.split(",")) if term]


def match_mode_for(term: str, nodes: Iterable[str], abbreviations: Mapping[str, str]) -> MatchMode:
    needle = normalize_term(term)
    for node in nodes:
        if node.lower() == needle or short_code(node, abbreviations).lower() == needle:
            return MatchMode.EXACT
    return MatchMode.SUBSTRING


def node_matches(node: str, term: str, mode: MatchMode, abbreviations: Mapping[str, str]) -> bool:
    needle = normalize_term(term)
    name = node.lower()
    code = short_code(node, abbreviations).lower()
    if mode is MatchMode.EXACT:
        return name == needle or code == needle
    # Codes are 2-3 letters; substring matching them would hit nearly everything.
    return needle in name or code == needle


def matching_nodes(
    query: str,
    nodes: Sequence[str],
    abbreviations: Mapping[str, str],
    *,
    candidates: Sequence[str] | None = None,
) -> tuple[str, ...]:
    """Nodes from ``candidates`` (default ``nodes``) matching any comma-separated term.

    Strictness of each term is decided against ``nodes``, the full universe,
    even when the candidates are narrower. Candidate order is preserved.
    """
    terms = split_terms(query)
    if not terms:
        return ()
    modes = [(term, match_mode_for(term, nodes, abbreviations)) for term in terms]
    pool = nodes if candidates is None else candidates
    return tuple(
        node
        for node in pool
        if any(node_matches(node, term, mode, abbreviations) for term, mode in modes)
    )


def resolve_query_term(
    query: str,
    nodes: Sequence[str],
    abbreviations: Mapping[str, str],
    *,
    candidates: Sequence[str] | None = None,
) -> frozenset[str]:
    return frozenset(matching_nodes(query, nodes, abbreviations, candidates=candidates))


def suggestions(
    query: str,
    nodes: Sequence[str],
    abbreviations: Mapping[str, str],
    *,
    limit: int = SUGGESTION_LIMIT,
) -> tuple[str, ...]:
    if not query:
        return ()
    last_term = normalize_term(query.split(",")[-1])
    if not last_term:
        return ()
    out: list[str] = []
    for node in nodes:
        if node_matches(node, last_term, MatchMode.SUBSTRING, abbreviations):
            out.append(node)
            if len(out) >= limit:
                break
    return tuple(out)


def apply_suggestion(query: str, selected: str) -> str:
    kept = [part.strip() for part in query.split(",")[:-1]]
    return ", ".join([*(part for part in kept if part), selected])


def directory(abbreviations: Mapping[str, str], search: str = "") -> list[tuple[str, str]]:
    entries = sorted(abbreviations.items(), key=lambda item: (item[0].casefold(), item[0]))
    needle = normalize_term(search)
    if not needle:
        return entries
    return [
        (name, abbr)
        for name, abbr in entries
        if needle in name.lower() or needle in abbr.lower()
    ]
