# scorecard_api/sql_store.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from scorecard_api.models import MatchReport, PlayerStats, Team
from scorecard_api.store import utc_now_iso

logger = logging.getLogger(__name__)

# Records are stored as their JSON wire form; keys are broken out for lookups
_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS player_stats (
        name TEXT PRIMARY KEY,
        data TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS teams (
        team_id TEXT PRIMARY KEY,
        data TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS score_cards (
        seq INTEGER PRIMARY KEY,
        id TEXT NOT NULL UNIQUE,
        content_hash TEXT,
        data TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_score_cards_content_hash ON score_cards (content_hash)",
    """
    CREATE TABLE IF NOT EXISTS counters (
        name TEXT PRIMARY KEY,
        value INTEGER NOT NULL
    )
    """,
)

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def get_engine(db_url: str) -> Engine:
    """
    Sync engine for any SQLAlchemy URL.
    SQLite gets cross-thread connections (FastAPI runs sync endpoints in a threadpool),
    and in-memory SQLite a single shared connection.
    """
    if not db_url:
        raise RuntimeError("Missing DATABASE_URL")

    kwargs: Dict[str, Any] = {"pool_pre_ping": True}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if db_url in _MEMORY_URLS:
            kwargs["poolclass"] = StaticPool

    return create_engine(db_url, **kwargs)


def _dumps(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True)


def _load_match(raw: str) -> MatchReport:
    return MatchReport.model_validate(json.loads(raw))


class SqlStore:
    """
    RecordStore on a relational database.

    Every read builds fresh objects from the stored JSON, so callers never
    share state with the database until they write back. Match ids come from
    a counter that is never rewound, so a deleted id is not handed out again.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session = sessionmaker(bind=engine, expire_on_commit=False)

    def create_schema(self) -> None:
        with self._session.begin() as s:
            for stmt in _SCHEMA:
                s.execute(text(stmt))
        logger.info("Schema ready on %s", self.engine.url.render_as_string(hide_password=True))

    def _replace(self, table: str, key_col: str, key: str, payload: Dict[str, Any]) -> None:
        with self._session.begin() as s:
            s.execute(text(f"DELETE FROM {table} WHERE {key_col} = :key"), {"key": key})
            s.execute(
                text(f"INSERT INTO {table} ({key_col}, data) VALUES (:key, :data)"),
                {"key": key, "data": _dumps(payload)},
            )

    # -----------------------
    # Players
    # -----------------------
    def find_player(self, name: str) -> Optional[PlayerStats]:
        with self._session() as s:
            row = s.execute(text("SELECT data FROM player_stats WHERE name = :name"), {"name": name}).first()
        return PlayerStats.from_dict(json.loads(row[0])) if row else None

    def all_players(self) -> List[PlayerStats]:
        with self._session() as s:
            rows = s.execute(text("SELECT data FROM player_stats ORDER BY name")).all()
        return [PlayerStats.from_dict(json.loads(r[0])) for r in rows]

    def upsert_player(self, player: PlayerStats) -> None:
        self._replace("player_stats", "name", player.name, player.to_dict())

    def delete_player(self, name: str) -> None:
        with self._session.begin() as s:
            s.execute(text("DELETE FROM player_stats WHERE name = :name"), {"name": name})

    # -----------------------
    # Teams
    # -----------------------
    def find_team(self, team_id: str) -> Optional[Team]:
        with self._session() as s:
            row = s.execute(text("SELECT data FROM teams WHERE team_id = :tid"), {"tid": team_id}).first()
        return Team.from_dict(json.loads(row[0])) if row else None

    def all_teams(self) -> List[Team]:
        with self._session() as s:
            rows = s.execute(text("SELECT data FROM teams ORDER BY team_id")).all()
        return [Team.from_dict(json.loads(r[0])) for r in rows]

    def upsert_team(self, team: Team) -> None:
        self._replace("teams", "team_id", team.team_id, team.to_dict())

    # -----------------------
    # Matches
    # -----------------------
    def _next_seq(self, s: Session) -> int:
        current = s.execute(text("SELECT value FROM counters WHERE name = 'score_cards'")).scalar()
        if current is None:
            s.execute(text("INSERT INTO counters (name, value) VALUES ('score_cards', 1)"))
            return 1
        s.execute(text("UPDATE counters SET value = :v WHERE name = 'score_cards'"), {"v": current + 1})
        return int(current) + 1

    def insert_match(self, match: MatchReport) -> MatchReport:
        stored = match.model_copy(deep=True)
        stored.created_at = utc_now_iso()

        with self._session.begin() as s:
            seq = self._next_seq(s)
            stored.id = f"m{seq}"
            s.execute(
                text(
                    "INSERT INTO score_cards (seq, id, content_hash, data) "
                    "VALUES (:seq, :id, :hash, :data)"
                ),
                {"seq": seq, "id": stored.id, "hash": stored.content_hash, "data": _dumps(stored.to_dict())},
            )
        return stored

    def replace_match(self, match: MatchReport) -> None:
        with self._session.begin() as s:
            res = s.execute(
                text("UPDATE score_cards SET data = :data, content_hash = :hash WHERE id = :id"),
                {"id": match.id, "hash": match.content_hash, "data": _dumps(match.to_dict())},
            )
            if res.rowcount == 0:
                raise KeyError(f"Unknown match id: {match.id}")

    def latest_match(self) -> Optional[MatchReport]:
        with self._session() as s:
            row = s.execute(text("SELECT data FROM score_cards ORDER BY seq DESC LIMIT 1")).first()
        return _load_match(row[0]) if row else None

    def all_matches(self) -> List[MatchReport]:
        with self._session() as s:
            rows = s.execute(text("SELECT data FROM score_cards ORDER BY seq")).all()
        return [_load_match(r[0]) for r in rows]

    def find_match_by_hash(self, content_hash: str) -> Optional[MatchReport]:
        with self._session() as s:
            row = s.execute(
                text("SELECT data FROM score_cards WHERE content_hash = :hash ORDER BY seq LIMIT 1"),
                {"hash": content_hash},
            ).first()
        return _load_match(row[0]) if row else None

    def delete_match(self, match_id: str) -> None:
        with self._session.begin() as s:
            s.execute(text("DELETE FROM score_cards WHERE id = :id"), {"id": match_id})
