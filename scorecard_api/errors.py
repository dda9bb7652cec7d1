# scorecard_api/errors.py
from __future__ import annotations

from typing import List, Optional


class ScorecardError(Exception):
    """Base class for every error raised by the ingestion engine."""
    pass


# -----------------------------
# Provider rotation / extraction
# -----------------------------
class NoCandidatesError(ScorecardError):
    """Raised when there is no generation model to try."""
    pass


class ProviderRecoverableError(ScorecardError):
    """
    Transient provider failure (overload, 503, timeout, stale model id).
    The rotation controller moves on to the next candidate.
    """
    pass


class ProviderFatalError(ScorecardError):
    """Provider failure that must abort extraction without rotating."""
    pass


class AllProvidersExhaustedError(ScorecardError):
    """Raised when every candidate model failed with a recoverable error."""

    def __init__(self, attempted: List[str], last_error: Optional[BaseException] = None):
        self.attempted = list(attempted)
        self.last_error = last_error
        msg = f"All generation models failed: {', '.join(self.attempted) or '-'}"
        if last_error is not None:
            msg += f" (last error: {last_error})"
        super().__init__(msg)


class MalformedExtractionError(ScorecardError):
    """Extraction produced data that does not match the scorecard shape."""
    pass


class PdfTextError(ScorecardError):
    """Raised when text cannot be pulled out of an uploaded PDF."""
    pass


# -----------------------------
# Standings / reversal
# -----------------------------
class UnresolvableResultError(ScorecardError):
    """Result text names neither of the two teams as the winner."""
    pass


class AmbiguousRevertError(ScorecardError):
    """Zero or both teams carry the revert marker."""
    pass


class NothingToRevertError(ScorecardError):
    """Raised when there is no stored match to undo."""
    pass


# -----------------------------
# Orchestration
# -----------------------------
class DuplicateMatchError(ScorecardError):
    """The same scorecard was already ingested."""

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Scorecard already ingested as match {match_id}")


class PartialIngestionError(ScorecardError):
    """
    A step failed after at least one record may have been written.

    `step` is the step that failed, `last_player` / `last_team` name the last
    records touched, and `rolled_back` says whether compensation succeeded.
    """

    def __init__(
        self,
        step: str,
        cause: BaseException,
        *,
        last_player: Optional[str] = None,
        last_team: Optional[str] = None,
        rolled_back: bool = False,
    ):
        self.step = step
        self.cause = cause
        self.last_player = last_player
        self.last_team = last_team
        self.rolled_back = rolled_back
        super().__init__(
            f"Ingestion failed at step '{step}': {cause} "
            f"(last_player={last_player}, last_team={last_team}, rolled_back={rolled_back})"
        )
