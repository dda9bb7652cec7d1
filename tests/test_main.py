from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import main
from factories import FakeGenerate, RecordingNotifier, scorecard_json
from scorecard_api.errors import PdfTextError
from scorecard_api.orchestrator import IngestionEngine
from scorecard_api.store import InMemoryStore


@pytest.fixture
def client(monkeypatch):
    engine = IngestionEngine(
        InMemoryStore(),
        FakeGenerate({"m1": scorecard_json()}),
        lambda: ["m1"],
        preferred_model="m1",
        notifier=RecordingNotifier(),
    )
    monkeypatch.setattr(main, "engine", engine)
    main.limiter.reset()
    return TestClient(main.app)


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_upload_text_then_list(client):
    res = client.post("/api/uploadScorecard/text", json={"text": "Team Alpha 120/5"})
    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "Scorecard stored"
    assert body["match"]["matchInfo"]["teams"] == ["Team Alpha", "Team Beta"]

    res = client.get("/api/uploadScorecard")
    assert res.status_code == 200
    assert [m["id"] for m in res.json()] == [body["match"]["id"]]


def test_upload_duplicate_is_conflict(client):
    client.post("/api/uploadScorecard/text", json={"text": "x"})
    res = client.post("/api/uploadScorecard/text", json={"text": "x"})
    assert res.status_code == 409


def test_upload_empty_text_is_rejected(client):
    res = client.post("/api/uploadScorecard/text", json={"text": ""})
    assert res.status_code == 422


def test_upload_unresolvable_result(client):
    main.engine.generate = FakeGenerate({"m1": scorecard_json(result="No result")})
    res = client.post("/api/uploadScorecard/text", json={"text": "x"})
    assert res.status_code == 400


def test_upload_extraction_outage(client):
    from scorecard_api.gemini_client import GenerationError

    main.engine.generate = FakeGenerate({"m1": GenerationError("HTTP 503", status_code=503)})
    res = client.post("/api/uploadScorecard/text", json={"text": "x"})
    assert res.status_code == 502
    assert "extraction failed" in res.json()["detail"]


def test_upload_pdf(client, monkeypatch):
    seen = []

    def fake_pdf_text(data):
        seen.append(data)
        return "Team Alpha 120/5"

    monkeypatch.setattr(main, "extract_pdf_text", fake_pdf_text)

    res = client.post(
        "/api/uploadScorecard",
        files={"pdf": ("card.pdf", b"%PDF-1.4 fake", "application/pdf")},
    )
    assert res.status_code == 200
    assert seen == [b"%PDF-1.4 fake"]


def test_upload_unreadable_pdf(client, monkeypatch):
    def broken(data):
        raise PdfTextError("Could not read PDF")

    monkeypatch.setattr(main, "extract_pdf_text", broken)
    res = client.post(
        "/api/uploadScorecard",
        files={"pdf": ("card.pdf", b"garbage", "application/pdf")},
    )
    assert res.status_code == 400


def test_revert_last(client):
    client.post("/api/uploadScorecard/text", json={"text": "x"})

    res = client.delete("/api/uploadScorecard/last")
    assert res.status_code == 200
    assert res.json()["players"] == ["R Sharma", "R Sharma"]
    assert res.json()["warnings"] == []

    res = client.delete("/api/uploadScorecard/last")
    assert res.status_code == 404


def test_player_stats(client):
    client.post("/api/uploadScorecard/text", json={"text": "x"})
    res = client.get("/api/players/stats")
    assert res.status_code == 200
    (sharma,) = res.json()
    assert sharma["name"] == "R Sharma"
    assert sharma["batting"]["strikeRate"] == 125.0
    assert sharma["bowling"]["overs"] == 4.0


def test_rename_player(client):
    client.post("/api/uploadScorecard/text", json={"text": "x"})
    res = client.post("/api/players/rename", json={"old_name": "R Sharma", "new_name": "Rohit Sharma"})
    assert res.status_code == 200
    assert res.json()["stats_moved"] is True
    names = [p["name"] for p in client.get("/api/players/stats").json()]
    assert names == ["Rohit Sharma"]


def test_teams_roundtrip(client):
    res = client.get("/api/teams")
    assert res.status_code == 200
    assert res.json()["team1"]["points"] == 0

    res = client.post("/api/team", json={"teamId": "team2", "teamName": "TeamBeta", "captain": "V Singh"})
    assert res.status_code == 200
    assert res.json()["message"] == "Team team2 saved successfully!"
    assert res.json()["team"]["teamName"] == "Team Beta"

    client.post("/api/uploadScorecard/text", json={"text": "x"})
    teams = client.get("/api/teams").json()
    assert teams["team1"]["teamName"] == "Team Alpha"
    assert teams["team1"]["score"] == ["W"]
    assert teams["team2"]["score"] == ["L"]
    assert teams["team2"]["captain"] == "V Singh"


def test_save_team_rejects_unknown_slot(client):
    res = client.post("/api/team", json={"teamId": "team9", "teamName": "Nope"})
    assert res.status_code == 400


def test_text_uploads_are_rate_limited(client):
    for i in range(10):
        res = client.post("/api/uploadScorecard/text", json={"text": f"card {i}"})
        assert res.status_code in (200, 409)

    res = client.post("/api/uploadScorecard/text", json={"text": "one more"})
    assert res.status_code == 429


def test_pdf_and_text_uploads_share_one_budget(client, monkeypatch):
    monkeypatch.setattr(main, "extract_pdf_text", lambda data: "Team Alpha 120/5")

    for i in range(10):
        res = client.post("/api/uploadScorecard/text", json={"text": f"card {i}"})
        assert res.status_code in (200, 409)

    res = client.post(
        "/api/uploadScorecard",
        files={"pdf": ("card.pdf", b"%PDF-1.4 fake", "application/pdf")},
    )
    assert res.status_code == 429
    assert client.get("/api/uploadScorecard").status_code == 200
