# scorecard_api/standings.py
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from scorecard_api.config import SCORE_WINDOW
from scorecard_api.errors import AmbiguousRevertError, UnresolvableResultError
from scorecard_api.models import TEAM_IDS, Team
from scorecard_api.names import normalize_name, same_name
from scorecard_api.store import RecordStore, utc_now_iso

logger = logging.getLogger(__name__)

# "won" as a word end: matches "TeamAwon by 5 runs" but not "Wonderers"
_WON_RE = re.compile(r"won\b", re.IGNORECASE)


# -----------------------------
# Result text -> winner / loser
# -----------------------------
def resolve_result(result_text: str, candidates: Sequence[str]) -> Tuple[str, str]:
    """
    Free-text result -> (winner, loser), both taken from `candidates`.

    Examples:
      "Team Alpha won by 5 runs"   -> ("Team Alpha", "Team Beta")
      "TeamAlphawon by 3 wickets"  -> ("Team Alpha", "Team Beta")
      "Match drawn"                -> UnresolvableResultError
    """
    if len(candidates) != 2:
        raise UnresolvableResultError(f"Expected exactly two teams, got {len(candidates)}")

    text = str(result_text or "")
    m = _WON_RE.search(text)
    if not m:
        raise UnresolvableResultError(f"No winner in result text: {text!r}")

    prefix = normalize_name(text[: m.start()]).casefold()
    if not prefix:
        raise UnresolvableResultError(f"No team name before 'won' in: {text!r}")

    names = [normalize_name(c).casefold() for c in candidates]
    if names[0] == names[1]:
        raise UnresolvableResultError(f"Both teams are named {candidates[0]!r}")

    # exact match first, then a trailing match ("Result: Team Alpha won ...")
    for idx in (0, 1):
        if prefix == names[idx]:
            return candidates[idx], candidates[1 - idx]
    for idx in (0, 1):
        if names[idx] and prefix.endswith(" " + names[idx]):
            return candidates[idx], candidates[1 - idx]

    raise UnresolvableResultError(
        f"Result {text!r} matches neither {candidates[0]!r} nor {candidates[1]!r}"
    )


def winner_from_result(result_text: str, candidates: Sequence[str]) -> str:
    return resolve_result(result_text, candidates)[0]


# -----------------------------
# Team slots
# -----------------------------
def get_teams(store: RecordStore) -> Dict[str, Team]:
    """Both slots, with empty defaults for slots that were never saved."""
    return {tid: store.find_team(tid) or Team(team_id=tid) for tid in TEAM_IDS}


def save_team(
    store: RecordStore,
    team_id: str,
    team_name: str,
    captain: str = "",
    core_team: Optional[List[str]] = None,
) -> Team:
    """Configure a slot. Points, score and the revert marker are kept."""
    if team_id not in TEAM_IDS:
        raise ValueError(f"team_id must be one of {TEAM_IDS}, got {team_id!r}")

    team = store.find_team(team_id) or Team(team_id=team_id)
    team.team_name = normalize_name(team_name)
    team.captain = normalize_name(captain)
    team.core_team = [normalize_name(p) for p in (core_team or []) if normalize_name(p)]
    store.upsert_team(team)
    return team


def resolve_slots(store: RecordStore, winner_name: str, loser_name: str) -> Tuple[Team, Team]:
    """
    Map the two match teams onto the two slots.

    A slot whose teamName matches is used; a slot with no name yet is claimed
    (team1 first). Raises UnresolvableResultError when a team fits no slot.
    """
    slots = [store.find_team(tid) or Team(team_id=tid) for tid in TEAM_IDS]

    def _named(name: str) -> Optional[Team]:
        for t in slots:
            if t.team_name and same_name(t.team_name, name):
                return t
        return None

    def _claim(name: str, taken: Optional[Team]) -> Team:
        free = [t for t in slots if not t.team_name and t is not taken]
        if not free:
            raise UnresolvableResultError(
                f"Team {name!r} is not one of the configured teams "
                f"({', '.join(t.team_name for t in slots)})"
            )
        free[0].team_name = normalize_name(name)
        return free[0]

    winner = _named(winner_name)
    loser = _named(loser_name)
    if winner is None:
        winner = _claim(winner_name, taken=loser)
    if loser is None:
        loser = _claim(loser_name, taken=winner)

    if winner is loser:
        raise UnresolvableResultError(f"{winner_name!r} and {loser_name!r} map to the same team slot")

    return winner, loser


def _push(score: List[str], mark: str, window: int) -> None:
    score.append(mark)
    while len(score) > window:
        score.pop(0)


def apply_result(
    store: RecordStore,
    winner_name: str,
    loser_name: str,
    *,
    window: int = SCORE_WINDOW,
    now: Optional[str] = None,
) -> Tuple[Team, Team]:
    """
    Winner +1 point, W/L appended (oldest dropped beyond `window`),
    revert marker moved to the winner. Both slots are persisted.
    """
    winner, loser = resolve_slots(store, winner_name, loser_name)

    if winner.points == 0 and loser.points == 0:
        stamp = now or utc_now_iso()
        winner.series_started_at = stamp
        loser.series_started_at = stamp

    winner.points += 1
    _push(winner.score, "W", window)
    _push(loser.score, "L", window)

    winner.is_revert = True
    loser.is_revert = False

    store.upsert_team(winner)
    store.upsert_team(loser)
    logger.info("Standings: %s beat %s (points %d-%d)",
                winner.team_name, loser.team_name, winner.points, loser.points)
    return winner, loser


def revert_target(store: RecordStore) -> Tuple[Team, Optional[Team]]:
    """
    (last winner, other team) from the revert marker. No mutation.
    Raises AmbiguousRevertError unless exactly one team carries the marker.
    """
    teams = [t for t in (store.find_team(tid) for tid in TEAM_IDS) if t is not None]
    flagged = [t for t in teams if t.is_revert]
    if len(flagged) != 1:
        raise AmbiguousRevertError(
            f"Expected exactly one team marked for revert, found {len(flagged)}"
        )

    winner = flagged[0]
    others = [t for t in teams if t.team_id != winner.team_id]
    return winner, (others[0] if others else None)


def revert_result(store: RecordStore) -> Tuple[Team, Optional[Team]]:
    """
    Undo the last apply_result: trailing W/L popped, winner's point removed
    (never below 0), markers cleared on both teams.
    """
    winner, loser = revert_target(store)

    if winner.score and winner.score[-1] == "W":
        winner.score.pop()
    winner.points = max(0, winner.points - 1)
    winner.is_revert = False
    store.upsert_team(winner)

    if loser is not None:
        if loser.score and loser.score[-1] == "L":
            loser.score.pop()
        loser.is_revert = False
        store.upsert_team(loser)

    logger.info("Standings: reverted last win of %s", winner.team_name)
    return winner, loser
