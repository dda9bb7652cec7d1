from __future__ import annotations

import pytest

from factories import batting, bowling, innings, report
from scorecard_api.reconciler import apply_match
from scorecard_api.renames import rename_player


def _match():
    m = report(innings_list=[
        innings(
            "Team Alpha",
            batsmen=[
                batting("R Sharma", runs=50, balls=40, out="not out"),
                batting("A Kumar", runs=20, balls=10, out="c R Sharm b V Singh"),
            ],
            bowlers=[bowling("V Singh", overs=2, runs=15)],
        ),
    ])
    m.innings[0].fall_of_wickets = ["1-30 (A Kumar, 4.2)", "2-44 (AR Kumarr, 6.1)"]
    return m


def _stored(store):
    m = _match()
    apply_match(store, m)
    return store.insert_match(m)


def test_rename_moves_stats_and_rewrites_matches(store):
    stored = _stored(store)

    out = rename_player(store, "A Kumar", "Amit Kumar")

    assert out.stats_moved and not out.stats_merged
    assert store.find_player("A Kumar") is None
    assert store.find_player("Amit Kumar").batting.runs == 20

    match = store.latest_match()
    assert match.id == stored.id
    assert match.innings[0].batsmen[1].name == "Amit Kumar"
    assert match.innings[0].fall_of_wickets == ["1-30 (Amit Kumar, 4.2)", "2-44 (AR Kumarr, 6.1)"]
    assert out.name_fields == 1
    assert out.text_fields == 1
    assert out.matches_updated == 1


def test_rename_fixes_dismissal_text_and_player_of_match(store):
    _stored(store)

    out = rename_player(store, "V Singh", "Vikram Singh")

    match = store.latest_match()
    assert match.innings[0].batsmen[1].out_desc == "c R Sharm b Vikram Singh"
    assert match.innings[0].bowlers[0].name == "Vikram Singh"
    assert out.name_fields == 1 and out.text_fields == 1

    rename_player(store, "R Sharma", "Rohit Sharma")
    assert store.latest_match().match_info.player_of_match == "Rohit Sharma"


def test_rename_merges_into_existing_record(store):
    _stored(store)
    apply_match(store, report(innings_list=[
        innings(
            "Team Beta",
            batsmen=[batting("Amit Kumar", runs=30, balls=30, out="b Sharma")],
            bowlers=[],
        ),
    ]))

    out = rename_player(store, "A Kumar", "Amit Kumar")

    assert out.stats_merged
    merged = store.find_player("Amit Kumar")
    assert merged.batting.matches == 2
    assert merged.batting.runs == 50
    assert merged.batting.balls == 40
    assert merged.batting.strike_rate == 125.0


def test_rename_normalizes_inputs(store):
    _stored(store)
    out = rename_player(store, "AKumar", "AmitKumar")
    assert (out.old_name, out.new_name) == ("A Kumar", "Amit Kumar")
    assert store.find_player("Amit Kumar") is not None


def test_rename_to_same_name_is_a_noop(store):
    _stored(store)
    out = rename_player(store, "A Kumar", "A  Kumar")
    assert not out.stats_moved
    assert out.matches_updated == 0


def test_rename_requires_both_names(store):
    with pytest.raises(ValueError):
        rename_player(store, "", "Someone")
