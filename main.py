# main.py
import logging
import threading
from datetime import datetime
from typing import Any, Dict, List

from fastapi import FastAPI, File, HTTPException, Request, UploadFile, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from scorecard_api import gemini_client
from scorecard_api.broadcast import Broadcaster
from scorecard_api.config import DATABASE_URL, LOG_LEVEL, UPLOAD_RATE_LIMIT, validate_config
from scorecard_api.errors import (
    AllProvidersExhaustedError,
    AmbiguousRevertError,
    DuplicateMatchError,
    MalformedExtractionError,
    NoCandidatesError,
    NothingToRevertError,
    PartialIngestionError,
    PdfTextError,
    ProviderFatalError,
    ScorecardError,
    UnresolvableResultError,
)
from scorecard_api.notify import default_notifier
from scorecard_api.orchestrator import IngestionEngine
from scorecard_api.pdf_text import extract_pdf_text
from scorecard_api.renames import rename_player
from scorecard_api.standings import get_teams, save_team
from scorecard_api.sql_store import SqlStore, get_engine

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# -----------------------
# App
# -----------------------
app = FastAPI(
    title="Scorecard Ingestion API",
    version="0.1.0",
    description="Turns uploaded match scorecards into player career stats and series standings",
)

# Both upload endpoints draw on one per-client budget
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

store = SqlStore(get_engine(DATABASE_URL))
broadcaster = Broadcaster()
engine = IngestionEngine(
    store,
    gemini_client.generate,
    gemini_client.list_models,
    notifier=default_notifier(),
    broadcaster=broadcaster,
)

# The engine assumes a single writer: every mutating endpoint holds this lock
_write_lock = threading.Lock()


@app.on_event("startup")
def on_startup():
    validate_config()
    store.create_schema()


@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


# -----------------------
# Helpers
# -----------------------
def _http_error(e: ScorecardError) -> HTTPException:
    if isinstance(e, (MalformedExtractionError, UnresolvableResultError, PdfTextError)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NothingToRevertError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (AmbiguousRevertError, DuplicateMatchError)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (AllProvidersExhaustedError, ProviderFatalError, NoCandidatesError)):
        return HTTPException(status_code=502, detail=f"Scorecard extraction failed: {e}")
    if isinstance(e, PartialIngestionError):
        return HTTPException(
            status_code=500,
            detail={
                "message": str(e),
                "step": e.step,
                "last_player": e.last_player,
                "last_team": e.last_team,
                "rolled_back": e.rolled_back,
            },
        )
    return HTTPException(status_code=500, detail=str(e))


def _ingest(text: str) -> Dict[str, Any]:
    with _write_lock:
        try:
            match = engine.ingest(text)
        except ScorecardError as e:
            logger.warning("Ingestion rejected: %s", e)
            raise _http_error(e)
    return {"message": "Scorecard stored", "match": match.to_dict()}


# -----------------------
# Scorecards
# -----------------------
class ScorecardTextIn(BaseModel):
    text: str = Field(..., min_length=1, description="Raw scorecard text (already extracted from the PDF)")


@app.post("/api/uploadScorecard")
@limiter.shared_limit(UPLOAD_RATE_LIMIT, scope="scorecard-upload")
def upload_scorecard(request: Request, pdf: UploadFile = File(...)):
    try:
        text = extract_pdf_text(pdf.file.read())
    except PdfTextError as e:
        raise _http_error(e)
    return _ingest(text)


@app.post("/api/uploadScorecard/text")
@limiter.shared_limit(UPLOAD_RATE_LIMIT, scope="scorecard-upload")
def upload_scorecard_text(request: Request, req: ScorecardTextIn):
    return _ingest(req.text)


@app.get("/api/uploadScorecard")
def get_all_matches():
    return [m.to_dict() for m in engine.get_all_matches()]


@app.delete("/api/uploadScorecard/last")
def revert_last_match():
    with _write_lock:
        try:
            report = engine.revert_last()
        except ScorecardError as e:
            raise _http_error(e)
    return {
        "message": "Last match reverted",
        "players": report.touched,
        "warnings": report.warnings,
    }


# -----------------------
# Players
# -----------------------
class RenamePlayerIn(BaseModel):
    old_name: str = Field(..., min_length=1)
    new_name: str = Field(..., min_length=1)


@app.get("/api/players/stats")
def get_player_stats():
    return [p.to_dict() for p in engine.get_player_stats()]


@app.post("/api/players/rename")
def rename(req: RenamePlayerIn):
    with _write_lock:
        try:
            out = rename_player(engine.store, req.old_name, req.new_name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return {
        "old_name": out.old_name,
        "new_name": out.new_name,
        "stats_moved": out.stats_moved,
        "stats_merged": out.stats_merged,
        "matches_updated": out.matches_updated,
    }


# -----------------------
# Teams
# -----------------------
class TeamIn(BaseModel):
    teamId: str = Field(..., description="team1 or team2")
    teamName: str = Field(..., min_length=1)
    captain: str = ""
    coreTeam: List[str] = Field(default_factory=list)


@app.get("/api/teams")
def list_teams():
    return {tid: t.to_dict() for tid, t in get_teams(engine.store).items()}


@app.post("/api/team")
def upsert_team(req: TeamIn):
    with _write_lock:
        try:
            team = save_team(engine.store, req.teamId, req.teamName, req.captain, req.coreTeam)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return {"message": f"Team {team.team_id} saved successfully!", "team": team.to_dict()}


# -----------------------
# Live feed
# -----------------------
@app.websocket("/ws/matches")
async def match_feed(websocket: WebSocket) -> None:
    await websocket.accept()
    q = broadcaster.subscribe()
    try:
        while True:
            message = await q.get()
            await websocket.send_json(message)
    except WebSocketDisconnect:
        logger.info("Match feed subscriber disconnected")
    finally:
        broadcaster.unsubscribe(q)
