# scorecard_api/store.py
from __future__ import annotations

import copy
import itertools
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from scorecard_api.models import MatchReport, PlayerStats, Team


class RecordStore(Protocol):
    """
    Keyed record store the engine reads and writes through.

    Records handed out are copies: mutating one has no effect until it is
    written back with the matching upsert.
    """

    # players (keyed by normalized name)
    def find_player(self, name: str) -> Optional[PlayerStats]: ...
    def all_players(self) -> List[PlayerStats]: ...
    def upsert_player(self, player: PlayerStats) -> None: ...
    def delete_player(self, name: str) -> None: ...

    # teams (keyed by teamId)
    def find_team(self, team_id: str) -> Optional[Team]: ...
    def all_teams(self) -> List[Team]: ...
    def upsert_team(self, team: Team) -> None: ...

    # matches (keyed by id, ordered by insertion)
    def insert_match(self, match: MatchReport) -> MatchReport: ...
    def replace_match(self, match: MatchReport) -> None: ...
    def latest_match(self) -> Optional[MatchReport]: ...
    def all_matches(self) -> List[MatchReport]: ...
    def find_match_by_hash(self, content_hash: str) -> Optional[MatchReport]: ...
    def delete_match(self, match_id: str) -> None: ...


def utc_now_iso() -> str:
    return datetime.utcnow().isoformat() + "Z"


class InMemoryStore:
    """
    Dict-backed RecordStore (sufficient for single-instance deploys and tests).
    """

    def __init__(self) -> None:
        self._players: Dict[str, PlayerStats] = {}
        self._teams: Dict[str, Team] = {}
        # _order keeps insertion order; the last id is the most recent match
        self._matches: Dict[str, MatchReport] = {}
        self._order: List[str] = []
        self._ids = itertools.count(1)

    # -----------------------
    # Players
    # -----------------------
    def find_player(self, name: str) -> Optional[PlayerStats]:
        p = self._players.get(name)
        return copy.deepcopy(p) if p is not None else None

    def all_players(self) -> List[PlayerStats]:
        return [copy.deepcopy(p) for p in self._players.values()]

    def upsert_player(self, player: PlayerStats) -> None:
        self._players[player.name] = copy.deepcopy(player)

    def delete_player(self, name: str) -> None:
        self._players.pop(name, None)

    # -----------------------
    # Teams
    # -----------------------
    def find_team(self, team_id: str) -> Optional[Team]:
        t = self._teams.get(team_id)
        return copy.deepcopy(t) if t is not None else None

    def all_teams(self) -> List[Team]:
        return [copy.deepcopy(t) for t in self._teams.values()]

    def upsert_team(self, team: Team) -> None:
        self._teams[team.team_id] = copy.deepcopy(team)

    # -----------------------
    # Matches
    # -----------------------
    def insert_match(self, match: MatchReport) -> MatchReport:
        stored = match.model_copy(deep=True)
        stored.id = f"m{next(self._ids)}"
        stored.created_at = utc_now_iso()
        self._matches[stored.id] = stored
        self._order.append(stored.id)
        return stored.model_copy(deep=True)

    def replace_match(self, match: MatchReport) -> None:
        if match.id is None or match.id not in self._matches:
            raise KeyError(f"Unknown match id: {match.id}")
        self._matches[match.id] = match.model_copy(deep=True)

    def latest_match(self) -> Optional[MatchReport]:
        if not self._order:
            return None
        return self._matches[self._order[-1]].model_copy(deep=True)

    def all_matches(self) -> List[MatchReport]:
        return [self._matches[mid].model_copy(deep=True) for mid in self._order]

    def find_match_by_hash(self, content_hash: str) -> Optional[MatchReport]:
        for mid in self._order:
            m = self._matches[mid]
            if m.content_hash == content_hash:
                return m.model_copy(deep=True)
        return None

    def delete_match(self, match_id: str) -> None:
        if match_id in self._matches:
            del self._matches[match_id]
            self._order.remove(match_id)
