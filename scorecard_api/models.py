# scorecard_api/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scorecard_api.overs import balls_to_overs, overs_to_balls


def _none_to_zero(v: Any) -> Any:
    return 0 if v is None or (isinstance(v, str) and not v.strip()) else v


def _as_text(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()


# -----------------------------
# Scorecard shape (what extraction must produce)
# -----------------------------
class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BattingLine(_Wire):
    name: str
    runs: int = Field(0, ge=0)
    balls: int = Field(0, ge=0)
    fours: int = Field(0, ge=0)
    sixes: int = Field(0, ge=0)
    sr: float = 0.0
    out_desc: str = Field("", alias="outDesc")

    @field_validator("runs", "balls", "fours", "sixes", "sr", mode="before")
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        return _none_to_zero(v)

    @field_validator("name", "out_desc", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _as_text(v)


class BowlingLine(_Wire):
    name: str
    overs: float = Field(0.0, ge=0)
    maidens: int = Field(0, ge=0)
    runs: int = Field(0, ge=0)
    wickets: int = Field(0, ge=0)
    eco: float = 0.0
    dots: int = Field(0, ge=0)
    fours: int = Field(0, ge=0)
    sixes: int = Field(0, ge=0)
    wd: int = Field(0, ge=0)
    nb: int = Field(0, ge=0)

    @field_validator(
        "overs", "maidens", "runs", "wickets", "eco", "dots", "fours", "sixes", "wd", "nb",
        mode="before",
    )
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        return _none_to_zero(v)

    @field_validator("name", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("overs")
    @classmethod
    def check_overs_notation(cls, v: float) -> float:
        # raises ValueError for "3.7" style values, surfaced as a validation error
        overs_to_balls(v)
        return v

    @property
    def balls(self) -> int:
        return overs_to_balls(self.overs)


class Innings(_Wire):
    team: str
    total: str = ""
    overs: str = ""
    run_rate: str = Field("", alias="runRate")
    extras: str = ""
    batsmen: List[BattingLine] = Field(default_factory=list)
    bowlers: List[BowlingLine] = Field(default_factory=list)
    fall_of_wickets: List[str] = Field(default_factory=list, alias="fallOfWickets")

    @field_validator("team", "total", "overs", "run_rate", "extras", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("fall_of_wickets", mode="before")
    @classmethod
    def coerce_fall_of_wickets(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        if isinstance(v, list):
            return [_as_text(p) for p in v]
        return v


class MatchInfo(_Wire):
    teams: List[str] = Field(..., min_length=2, max_length=2)
    date: str = ""
    venue: str = ""
    format: str = ""
    toss: str = ""
    result: str = ""
    player_of_match: str = Field("", alias="playerOfMatch")

    @field_validator("date", "venue", "format", "toss", "result", "player_of_match", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("teams", mode="before")
    @classmethod
    def coerce_teams(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [_as_text(t) for t in v]
        return v


class MatchReport(_Wire):
    match_info: MatchInfo = Field(..., alias="matchInfo")
    innings: List[Innings] = Field(..., min_length=1)

    # Assigned by the store / orchestrator, never by extraction
    id: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    content_hash: Optional[str] = Field(None, alias="contentHash")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# -----------------------------
# Career aggregates
# -----------------------------
@dataclass
class BattingAggregate:
    matches: int = 0
    runs: int = 0
    balls: int = 0
    fours: int = 0
    sixes: int = 0
    not_outs: int = 0
    strike_rate: float = 0.0

    def recompute(self) -> None:
        self.strike_rate = round(self.runs / self.balls * 100, 2) if self.balls else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matches": self.matches,
            "runs": self.runs,
            "balls": self.balls,
            "fours": self.fours,
            "sixes": self.sixes,
            "NOs": self.not_outs,
            "strikeRate": self.strike_rate,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> BattingAggregate:
        agg = cls(
            matches=int(d.get("matches", 0)),
            runs=int(d.get("runs", 0)),
            balls=int(d.get("balls", 0)),
            fours=int(d.get("fours", 0)),
            sixes=int(d.get("sixes", 0)),
            not_outs=int(d.get("NOs", 0)),
        )
        agg.recompute()
        return agg


_BOWLING_COUNTERS = ("matches", "balls", "runs", "wickets", "maidens", "dots", "fours", "sixes", "wd", "nb")


@dataclass
class BowlingAggregate:
    """
    Overs are stored as BALLS so that apply/revert deltas are exact integers.
    `overs` is the cricket-notation view (22 balls -> 3.4).
    """
    matches: int = 0
    balls: int = 0
    runs: int = 0
    wickets: int = 0
    maidens: int = 0
    dots: int = 0
    fours: int = 0
    sixes: int = 0
    wd: int = 0
    nb: int = 0
    economy: float = 0.0

    @property
    def overs(self) -> float:
        return balls_to_overs(self.balls)

    def recompute(self) -> None:
        # runs per six legal balls
        self.economy = round(self.runs * 6 / self.balls, 2) if self.balls else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matches": self.matches,
            "overs": self.overs,
            "balls": self.balls,
            "runs": self.runs,
            "wickets": self.wickets,
            "economy": self.economy,
            "maidens": self.maidens,
            "dots": self.dots,
            "fours": self.fours,
            "sixes": self.sixes,
            "wd": self.wd,
            "nb": self.nb,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> BowlingAggregate:
        # `overs` and `economy` in the dict are views; balls is the counter
        agg = cls(**{k: int(d.get(k, 0)) for k in _BOWLING_COUNTERS})
        agg.recompute()
        return agg


@dataclass
class PlayerStats:
    name: str
    batting: BattingAggregate = field(default_factory=BattingAggregate)
    bowling: BowlingAggregate = field(default_factory=BowlingAggregate)

    def recompute(self) -> None:
        self.batting.recompute()
        self.bowling.recompute()

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "batting": self.batting.to_dict(), "bowling": self.bowling.to_dict()}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> PlayerStats:
        return cls(
            name=str(d["name"]),
            batting=BattingAggregate.from_dict(d.get("batting") or {}),
            bowling=BowlingAggregate.from_dict(d.get("bowling") or {}),
        )


# -----------------------------
# Team slots
# -----------------------------
TEAM_IDS = ("team1", "team2")


@dataclass
class Team:
    team_id: str
    team_name: str = ""
    captain: str = ""
    core_team: List[str] = field(default_factory=list)
    points: int = 0
    score: List[str] = field(default_factory=list)
    is_revert: bool = False
    series_started_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teamId": self.team_id,
            "teamName": self.team_name,
            "captain": self.captain,
            "coreTeam": list(self.core_team),
            "points": self.points,
            "score": list(self.score),
            "isRevert": self.is_revert,
            "seriesStartedAt": self.series_started_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Team:
        return cls(
            team_id=str(d["teamId"]),
            team_name=d.get("teamName") or "",
            captain=d.get("captain") or "",
            core_team=list(d.get("coreTeam") or []),
            points=int(d.get("points", 0)),
            score=list(d.get("score") or []),
            is_revert=bool(d.get("isRevert", False)),
            series_started_at=d.get("seriesStartedAt"),
        )
