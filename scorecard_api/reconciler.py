# scorecard_api/reconciler.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple, Union

from scorecard_api.models import BattingLine, BowlingLine, MatchReport, PlayerStats
from scorecard_api.names import normalize_name
from scorecard_api.store import RecordStore

logger = logging.getLogger(__name__)

NOT_OUT_RE = re.compile(r"not[\s-]?out", re.IGNORECASE)
EXTRAS_ROW = "extras"


@dataclass
class ReconcileReport:
    """What one apply/revert pass did, in the order it did it."""
    touched: List[str] = field(default_factory=list)
    new_players: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def last_player(self) -> Optional[str]:
        return self.touched[-1] if self.touched else None


def is_not_out(out_desc: str) -> bool:
    return bool(NOT_OUT_RE.search(out_desc or ""))


def _apply_batting(player: PlayerStats, line: BattingLine, sign: int) -> None:
    b = player.batting
    b.matches += sign
    b.runs += sign * line.runs
    b.balls += sign * line.balls
    b.fours += sign * line.fours
    b.sixes += sign * line.sixes
    if is_not_out(line.out_desc):
        b.not_outs += sign


def _apply_bowling(player: PlayerStats, line: BowlingLine, sign: int) -> None:
    w = player.bowling
    w.matches += sign
    w.balls += sign * line.balls
    w.runs += sign * line.runs
    w.wickets += sign * line.wickets
    w.maidens += sign * line.maidens
    w.dots += sign * line.dots
    w.fours += sign * line.fours
    w.sixes += sign * line.sixes
    w.wd += sign * line.wd
    w.nb += sign * line.nb


_LineFn = Callable[[PlayerStats, Union[BattingLine, BowlingLine], int], None]


def _lines(match: MatchReport) -> Iterator[Tuple[str, _LineFn, Union[BattingLine, BowlingLine]]]:
    """Every creditable line of the match, in a fixed order."""
    for inn in match.innings:
        for line in inn.batsmen:
            if line.name.strip().lower() == EXTRAS_ROW:
                continue
            yield line.name, _apply_batting, line
        for line in inn.bowlers:
            yield line.name, _apply_bowling, line


def _walk(
    store: RecordStore,
    match: MatchReport,
    sign: int,
    report: Optional[ReconcileReport] = None,
    limit: Optional[int] = None,
) -> ReconcileReport:
    """
    One read-modify-write per line. Each write is a delta, so two players
    in the same match never interfere with each other.

    `report` is filled as lines are written, so a caller holding it still
    knows how far the walk got when a write raises. With `limit`, the walk
    stops after that many lines were written.
    """
    if report is None:
        report = ReconcileReport()

    for raw_name, fn, line in _lines(match):
        if limit is not None and len(report.touched) >= limit:
            break

        name = normalize_name(raw_name)
        if not name:
            report.warnings.append("Skipped a line with an empty player name")
            continue

        player = store.find_player(name)
        created = False
        if player is None:
            if sign < 0:
                msg = f"No stats record for '{name}' while reverting; skipped"
                logger.warning(msg)
                report.warnings.append(msg)
                continue
            player = PlayerStats(name=name)
            created = True

        fn(player, line, sign)
        player.recompute()
        store.upsert_player(player)

        report.touched.append(name)
        if created:
            report.new_players.append(name)
            logger.info("New player credited: %s", name)

    return report


def apply_match(
    store: RecordStore, match: MatchReport, report: Optional[ReconcileReport] = None
) -> ReconcileReport:
    """Credit every batting/bowling line of `match` to the players' career totals."""
    return _walk(store, match, +1, report)


def revert_match(
    store: RecordStore, match: MatchReport, report: Optional[ReconcileReport] = None
) -> ReconcileReport:
    """
    Exact inverse of apply_match for the same record.

    Only ever call this for the most recently applied match. Missing players
    are reported in `warnings` and skipped; the rest are still reverted.
    """
    return _walk(store, match, -1, report)


def revert_lines(store: RecordStore, match: MatchReport, count: int) -> ReconcileReport:
    """
    Undo the first `count` lines of an apply_match that stopped part way
    (`count` == len(report.touched) of that apply).
    """
    return _walk(store, match, -1, limit=count)
