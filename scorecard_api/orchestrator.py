# scorecard_api/orchestrator.py
from __future__ import annotations

import hashlib
import json
import logging
from typing import Callable, Dict, Iterable, List, Optional

from scorecard_api.broadcast import Broadcaster
from scorecard_api.config import GEMINI_PRIMARY_MODEL, SCORE_WINDOW
from scorecard_api.errors import (
    AllProvidersExhaustedError,
    DuplicateMatchError,
    NoCandidatesError,
    NothingToRevertError,
    PartialIngestionError,
    ProviderFatalError,
    UnresolvableResultError,
)
from scorecard_api.extractor import GenerateFn, extract_report
from scorecard_api.models import MatchReport, PlayerStats, Team
from scorecard_api.names import normalize_name, same_name
from scorecard_api.notify import Notifier, new_player_message, safe_notify
from scorecard_api.providers import ProviderRotation, build_candidates
from scorecard_api.reconciler import ReconcileReport, apply_match, revert_lines, revert_match
from scorecard_api.standings import (
    apply_result,
    get_teams,
    resolve_result,
    resolve_slots,
    revert_result,
    revert_target,
)
from scorecard_api.store import RecordStore

logger = logging.getLogger(__name__)


def normalize_report(report: MatchReport) -> MatchReport:
    """Normalizes every team / player name of the report in place."""
    info = report.match_info
    info.teams = [normalize_name(t) for t in info.teams]
    info.player_of_match = normalize_name(info.player_of_match)

    for inn in report.innings:
        inn.team = normalize_name(inn.team)
        for b in inn.batsmen:
            b.name = normalize_name(b.name)
        for w in inn.bowlers:
            w.name = normalize_name(w.name)
    return report


def content_hash(report: MatchReport) -> str:
    """sha256 over the canonical JSON of the report (store-owned fields excluded)."""
    body = report.model_dump(by_alias=True, exclude={"id", "created_at", "content_hash"})
    raw = json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class IngestionEngine:
    """
    Sequences extraction, name normalization, stats and standings for one
    scorecard, and walks them backwards for revert_last().

    The engine does not serialize callers: at most one ingest / revert may
    run at a time (the HTTP layer holds a lock around it).
    """

    def __init__(
        self,
        store: RecordStore,
        generate: GenerateFn,
        list_models: Optional[Callable[[], Iterable[str]]] = None,
        *,
        preferred_model: Optional[str] = GEMINI_PRIMARY_MODEL,
        notifier: Optional[Notifier] = None,
        broadcaster: Optional[Broadcaster] = None,
        score_window: int = SCORE_WINDOW,
    ):
        self.store = store
        self.generate = generate
        self.list_models = list_models
        self.preferred_model = preferred_model
        self.notifier = notifier
        self.broadcaster = broadcaster
        self.score_window = score_window

    # -----------------------
    # Extraction
    # -----------------------
    def candidates(self) -> List[str]:
        available: List[str] = []
        if self.list_models is not None:
            try:
                available = list(self.list_models())
            except Exception as e:
                # discovery is best-effort; the preferred model alone is still worth a try
                logger.warning("Model discovery failed (%s); falling back to preferred model", e)
        return build_candidates(available, self.preferred_model)

    def extract(self, raw_text: str) -> MatchReport:
        rotation = ProviderRotation(self.candidates())
        report, _ = extract_report(raw_text, rotation, self.generate)
        return report

    # -----------------------
    # Ingest
    # -----------------------
    def ingest(self, raw_text: str) -> MatchReport:
        try:
            report = self.extract(raw_text)
        except (AllProvidersExhaustedError, ProviderFatalError, NoCandidatesError) as e:
            safe_notify(self.notifier, "Scorecard extraction failed", str(e))
            raise

        normalize_report(report)
        info = report.match_info

        # Everything below up to apply_match is read-only: failures leave no trace
        winner, loser = resolve_result(info.result, info.teams)
        resolve_slots(self.store, winner, loser)

        report.content_hash = content_hash(report)
        existing = self.store.find_match_by_hash(report.content_hash)
        if existing is not None:
            raise DuplicateMatchError(existing.id or "?")

        # revert_result() clears both markers, so compensation restores the
        # slots as they were instead of replaying the inverse
        teams_before = get_teams(self.store)

        # Filled line by line, so it still says how far the walk got if a write raises
        stats = ReconcileReport()
        try:
            apply_match(self.store, report, stats)
        except Exception as e:
            rolled_back = self._undo_stats(report, len(stats.touched))
            logger.error("Stats update failed after %d lines (rolled_back=%s): %s",
                         len(stats.touched), rolled_back, e)
            raise PartialIngestionError(
                "stats", e,
                last_player=stats.last_player,
                rolled_back=rolled_back,
            ) from e

        standings_applied = False
        last_team: Optional[str] = None
        try:
            w_team, _ = apply_result(self.store, winner, loser, window=self.score_window)
            standings_applied = True
            last_team = w_team.team_id
            stored = self.store.insert_match(report)
        except Exception as e:
            step = "persist" if standings_applied else "standings"
            rolled_back = self._compensate(report, teams_before)
            logger.error("Ingestion failed at %s (rolled_back=%s): %s", step, rolled_back, e)
            raise PartialIngestionError(
                step, e,
                last_player=stats.last_player,
                last_team=last_team,
                rolled_back=rolled_back,
            ) from e

        logger.info("Stored match %s: %s vs %s (%s)", stored.id, info.teams[0], info.teams[1], info.result)

        for name in stats.new_players:
            subject, body = new_player_message(name)
            safe_notify(self.notifier, subject, body)

        self._broadcast("match_added", stored.to_dict())
        return stored

    def _undo_stats(self, report: MatchReport, count: int) -> bool:
        try:
            revert_lines(self.store, report, count)
            return True
        except Exception as e:
            logger.error("Could not undo %d stats lines; manual reconciliation needed: %s", count, e)
            return False

    def _compensate(self, report: MatchReport, teams_before: Dict[str, Team]) -> bool:
        """Reverts the applied stats and restores both team slots. Each half is attempted."""
        ok = True
        try:
            revert_match(self.store, report)
        except Exception as e:
            logger.error("Could not revert player stats; manual reconciliation needed: %s", e)
            ok = False
        try:
            for team in teams_before.values():
                self.store.upsert_team(team)
        except Exception as e:
            logger.error("Could not restore team slots; manual reconciliation needed: %s", e)
            ok = False
        return ok

    # -----------------------
    # Revert
    # -----------------------
    def revert_last(self) -> ReconcileReport:
        match = self.store.latest_match()
        if match is None:
            raise NothingToRevertError("No match to revert")

        # Precondition before any write: exactly one team carries the marker
        flagged, _ = revert_target(self.store)

        stats = revert_match(self.store, match)

        try:
            winner, _ = resolve_result(match.match_info.result, match.match_info.teams)
            if not same_name(winner, flagged.team_name):
                msg = f"Revert marker is on {flagged.team_name!r} but match {match.id} was won by {winner!r}"
                logger.warning(msg)
                stats.warnings.append(msg)
        except UnresolvableResultError as e:
            stats.warnings.append(f"Could not cross-check winner of match {match.id}: {e}")

        revert_result(self.store)
        self.store.delete_match(match.id)
        logger.info("Reverted match %s (%d players, %d warnings)", match.id, len(stats.touched), len(stats.warnings))

        self._broadcast("match_reverted", {"id": match.id})
        return stats

    # -----------------------
    # Reads
    # -----------------------
    def get_player_stats(self) -> List[PlayerStats]:
        return sorted(self.store.all_players(), key=lambda p: p.name.casefold())

    def get_all_matches(self) -> List[MatchReport]:
        return list(reversed(self.store.all_matches()))

    def _broadcast(self, event: str, payload: dict) -> None:
        if self.broadcaster is None:
            return
        try:
            self.broadcaster.publish(event, payload)
        except Exception as e:
            logger.warning("Broadcast of %s failed: %s", event, e)


