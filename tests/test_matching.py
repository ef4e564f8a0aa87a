from __future__ import annotations

from invite_router.matching import (
    MatchMode,
    apply_suggestion,
    directory,
    match_mode_for,
    matching_nodes,
    node_matches,
    resolve_query_term,
    short_code,
    split_terms,
    suggestions,
)

NODES = ("BroadcasTheNet", "HDBits", "MoreThanTV", "Orpheus", "PassThePopcorn", "RED")
ABBR = {
    "Orpheus": "OPS",
    "MoreThanTV": "MTV",
    "BroadcasTheNet": "BTN",
    "PassThePopcorn": "PTP",
    "HDBits": "HDB",
}


def test_short_code_prefers_explicit_then_capitals_then_prefix() -> None:
    assert short_code("MoreThanTV", ABBR) == "MTV"
    assert short_code("MoreThanTV", {}) == "MTTV"
    assert short_code("RED", {}) == "RED"
    assert short_code("Redacted", {}) == "RED"
    assert short_code("anthelion", {}) == "ANT"
    assert short_code("xy", {}) == "XY"


def test_split_terms_trims_lowercases_and_drops_blanks() -> None:
    assert split_terms(" RED , mtv,, ") == ["red", "mtv"]
    assert split_terms("") == []
    assert split_terms(" , ") == []


def test_match_mode_is_exact_only_for_full_name_or_code() -> None:
    assert match_mode_for(" RED ", NODES, ABBR) is MatchMode.EXACT
    assert match_mode_for("ops", NODES, ABBR) is MatchMode.EXACT
    assert match_mode_for("orpheus", NODES, ABBR) is MatchMode.EXACT
    assert match_mode_for("rph", NODES, ABBR) is MatchMode.SUBSTRING
    assert match_mode_for("anything", (), {}) is MatchMode.SUBSTRING


def test_codes_are_never_substring_matched() -> None:
    assert node_matches("Orpheus", "ops", MatchMode.SUBSTRING, ABBR)
    assert not node_matches("Orpheus", "op", MatchMode.SUBSTRING, ABBR)
    assert node_matches("Orpheus", "phe", MatchMode.SUBSTRING, ABBR)
    assert not node_matches("Orpheus", "phe", MatchMode.EXACT, ABBR)


def test_strict_term_degrades_to_exact_mode() -> None:
    nodes = ("RED", "Redacted")
    abbr = {"Redacted": "RDT"}

    assert resolve_query_term("red", nodes, abbr) == frozenset({"RED"})
    assert resolve_query_term("reda", nodes, abbr) == frozenset({"Redacted"})
    assert resolve_query_term("re", nodes, abbr) == frozenset({"RED", "Redacted"})


def test_derived_code_collision_matches_both_nodes() -> None:
    # Without an explicit abbreviation "Redacted" derives the code "RED".
    assert resolve_query_term("red", ("RED", "Redacted"), {}) == frozenset({"RED", "Redacted"})


def test_composite_query_unions_terms() -> None:
    assert resolve_query_term("red, mtv", NODES, ABBR) == frozenset({"RED", "MoreThanTV"})
    assert resolve_query_term("the", NODES, ABBR) == frozenset({"BroadcasTheNet", "PassThePopcorn"})
    assert resolve_query_term("nothing-like-this", NODES, ABBR) == frozenset()
    assert resolve_query_term("", NODES, ABBR) == frozenset()


def test_strictness_is_decided_against_full_universe() -> None:
    candidates = ("RED", "Orpheus", "MoreThanTV")
    # "hdb" is a code in the universe, so it stays exact and finds no candidate.
    assert matching_nodes("hdb", NODES, ABBR, candidates=candidates) == ()
    assert matching_nodes("or", NODES, ABBR, candidates=candidates) == ("Orpheus", "MoreThanTV")


def test_suggestions_use_last_term_and_cap() -> None:
    assert suggestions("red, p", NODES, ABBR) == ("Orpheus", "PassThePopcorn")
    assert suggestions("e", NODES, ABBR, limit=2) == ("BroadcasTheNet", "MoreThanTV")
    assert suggestions("mtv", NODES, ABBR) == ("MoreThanTV",)
    assert suggestions("red, ", NODES, ABBR) == ()
    assert suggestions("", NODES, ABBR) == ()


def test_suggestions_default_cap_is_eight() -> None:
    nodes = tuple(f"tracker{idx:02d}" for idx in range(20))
    assert len(suggestions("tracker", nodes, {})) == 8


def test_apply_suggestion_replaces_partial_term() -> None:
    assert apply_suggestion("RED, orp", "Orpheus") == "RED, Orpheus"
    assert apply_suggestion("orp", "Orpheus") == "Orpheus"
    assert apply_suggestion("RED,  MTV ,bt", "BroadcasTheNet") == "RED, MTV, BroadcasTheNet"


def test_directory_sorts_and_filters_by_name_or_abbreviation() -> None:
    names = [name for name, _abbr in directory(ABBR)]
    assert names == ["BroadcasTheNet", "HDBits", "MoreThanTV", "Orpheus", "PassThePopcorn"]
    assert directory(ABBR, "tv") == [("MoreThanTV", "MTV")]
    assert directory(ABBR, "btn") == [("BroadcasTheNet", "BTN")]
    assert directory(ABBR, "zzz") == []
