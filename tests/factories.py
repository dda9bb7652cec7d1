from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from scorecard_api.models import MatchReport


def batting(name: str, runs: int = 0, balls: int = 0, fours: int = 0, sixes: int = 0,
            out: str = "c Kumar b Singh") -> Dict[str, Any]:
    sr = round(runs / balls * 100, 2) if balls else 0.0
    return {"name": name, "runs": runs, "balls": balls, "fours": fours, "sixes": sixes,
            "sr": sr, "outDesc": out}


def bowling(name: str, overs: float = 4, runs: int = 20, wickets: int = 1, maidens: int = 0,
            dots: int = 10, fours: int = 2, sixes: int = 0, wd: int = 1, nb: int = 0) -> Dict[str, Any]:
    return {"name": name, "overs": overs, "maidens": maidens, "runs": runs, "wickets": wickets,
            "eco": 0.0, "dots": dots, "fours": fours, "sixes": sixes, "wd": wd, "nb": nb}


def innings(team: str, batsmen: List[Dict[str, Any]], bowlers: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "team": team,
        "total": "120/5",
        "overs": "20.0",
        "runRate": "6.00",
        "extras": "Extras (WD 1)",
        "batsmen": batsmen,
        "bowlers": bowlers,
        "fallOfWickets": ["1-23 (A Kumar, 3.4)"],
    }


def scorecard(
    teams: Sequence[str] = ("Team Alpha", "Team Beta"),
    result: str = "Team Alpha won by 5 runs",
    innings_list: Optional[List[Dict[str, Any]]] = None,
    date: str = "2025-05-04",
) -> Dict[str, Any]:
    if innings_list is None:
        innings_list = [
            innings(
                teams[0],
                batsmen=[batting("R Sharma", runs=50, balls=40, fours=5, sixes=2, out="not out")],
                bowlers=[bowling("R Sharma", overs=4, runs=20, wickets=1)],
            )
        ]
    return {
        "matchInfo": {
            "teams": list(teams),
            "date": date,
            "venue": "Central Ground",
            "format": "T20",
            "toss": f"{teams[0]} won the toss and elected to bat",
            "result": result,
            "playerOfMatch": "R Sharma",
        },
        "innings": innings_list,
    }


def scorecard_json(**kwargs: Any) -> str:
    return json.dumps(scorecard(**kwargs))


def report(**kwargs: Any) -> MatchReport:
    return MatchReport.model_validate(scorecard(**kwargs))


class FakeGenerate:
    """
    Stand-in for gemini_client.generate.

    `outcomes` maps model id -> str (returned) or Exception (raised).
    Every call is recorded in `calls` as the model id.
    """

    def __init__(self, outcomes: Dict[str, Any]):
        self.outcomes = outcomes
        self.calls: List[str] = []
        self.prompts: List[str] = []

    def __call__(self, model_id: str, prompt: str) -> str:
        self.calls.append(model_id)
        self.prompts.append(prompt)
        out = self.outcomes[model_id]
        if isinstance(out, BaseException):
            raise out
        return out


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[tuple] = []

    def notify(self, subject: str, body: str) -> None:
        self.sent.append((subject, body))
        if self.fail:
            raise RuntimeError("smtp down")
