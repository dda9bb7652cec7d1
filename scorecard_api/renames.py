# scorecard_api/renames.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, fields
from typing import Any

from scorecard_api.models import PlayerStats
from scorecard_api.names import normalize_name
from scorecard_api.store import RecordStore

logger = logging.getLogger(__name__)

# derived, never summed
_DERIVED = {"strike_rate", "economy"}


@dataclass
class RenameReport:
    old_name: str
    new_name: str
    stats_moved: bool = False
    stats_merged: bool = False
    name_fields: int = 0
    text_fields: int = 0
    matches_updated: int = 0


def _sum_counters(into: Any, other: Any) -> None:
    for f in fields(into):
        if f.name in _DERIVED:
            continue
        setattr(into, f.name, getattr(into, f.name) + getattr(other, f.name))


def _name_pattern(name: str) -> re.Pattern:
    # word-bounded so "R Sharma" does not hit inside "AR Sharman"
    return re.compile(r"(?<!\w)" + re.escape(name) + r"(?!\w)")


def rename_player(store: RecordStore, old: str, new: str) -> RenameReport:
    """
    Propagate a corrected player name.

    - PlayerStats: the record moves to the new name; if a record already
      exists there, counters are summed and derived rates recomputed.
    - Stored matches: exact `name` fields (and playerOfMatch) are rewritten,
      and occurrences inside dismissal / fall-of-wicket texts are substituted.

    Text substitution is best-effort: two players sharing the same
    name string cannot be told apart.
    """
    old_n = normalize_name(old)
    new_n = normalize_name(new)
    if not old_n or not new_n:
        raise ValueError("Both old and new player names are required")

    report = RenameReport(old_name=old_n, new_name=new_n)
    if old_n == new_n:
        return report

    # -----------------------
    # Career record
    # -----------------------
    src = store.find_player(old_n)
    if src is not None:
        dst = store.find_player(new_n)
        if dst is None:
            dst = PlayerStats(name=new_n, batting=src.batting, bowling=src.bowling)
        else:
            _sum_counters(dst.batting, src.batting)
            _sum_counters(dst.bowling, src.bowling)
            report.stats_merged = True
        dst.recompute()
        store.upsert_player(dst)
        store.delete_player(old_n)
        report.stats_moved = True

    # -----------------------
    # Match documents
    # -----------------------
    pattern = _name_pattern(old_n)

    for match in store.all_matches():
        changed = False

        if normalize_name(match.match_info.player_of_match) == old_n:
            match.match_info.player_of_match = new_n
            report.name_fields += 1
            changed = True

        for inn in match.innings:
            for line in list(inn.batsmen) + list(inn.bowlers):
                if normalize_name(line.name) == old_n:
                    line.name = new_n
                    report.name_fields += 1
                    changed = True

            for line in inn.batsmen:
                updated, n = pattern.subn(new_n, line.out_desc)
                if n:
                    line.out_desc = updated
                    report.text_fields += 1
                    changed = True

            for i, fow in enumerate(inn.fall_of_wickets):
                updated, n = pattern.subn(new_n, fow)
                if n:
                    inn.fall_of_wickets[i] = updated
                    report.text_fields += 1
                    changed = True

        if changed:
            store.replace_match(match)
            report.matches_updated += 1

    logger.info(
        "Renamed player %r -> %r (stats_moved=%s, merged=%s, matches=%d)",
        old_n, new_n, report.stats_moved, report.stats_merged, report.matches_updated,
    )
    return report
