# scorecard_api/providers.py
from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, List, Optional, TypeVar

from scorecard_api.errors import (
    AllProvidersExhaustedError,
    NoCandidatesError,
    ProviderFatalError,
    ProviderRecoverableError,
    ScorecardError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# HTTP statuses that mean "this model, right now" rather than "this request"
_RECOVERABLE_STATUS = {404, 429, 503, 504}
_RECOVERABLE_MESSAGE_RE = re.compile(r"overload|\b503\b|unavailable|not found|timed?\s?out", re.IGNORECASE)


def advance(cursor: int, n: int) -> int:
    if n <= 0:
        raise NoCandidatesError("No generation models to rotate through")
    return (cursor + 1) % n


def dedupe(ids: Iterable[str]) -> List[str]:
    out: List[str] = []
    seen = set()
    for i in ids:
        i = str(i or "").strip()
        if i and i not in seen:
            seen.add(i)
            out.append(i)
    return out


def build_candidates(available: Iterable[str], preferred: Optional[str] = None) -> List[str]:
    """
    Candidate order for one extraction:
      - preferred model first, if discovery lists it (or discovery found nothing)
      - then every other discovered model, in discovery order
    """
    available = dedupe(available)
    ordered: List[str] = []
    if preferred and (preferred in available or not available):
        ordered.append(preferred)
    ordered.extend(available)
    return dedupe(ordered)


def is_recoverable(exc: BaseException) -> bool:
    """
    Recoverable == worth trying the next model:
      - provider overloaded / rate limited
      - 503-class transient failure or a timeout
      - model/resource not found (stale model id)
    Everything else (bad key, bad request, malformed output, ...) is fatal.
    """
    if isinstance(exc, ProviderRecoverableError):
        return True
    if isinstance(exc, ScorecardError):
        return False
    if getattr(exc, "timeout", False) or isinstance(exc, TimeoutError):
        return True

    status = getattr(exc, "status_code", None)
    if status is not None:
        return int(status) in _RECOVERABLE_STATUS

    return bool(_RECOVERABLE_MESSAGE_RE.search(str(exc)))


class ProviderRotation:
    """
    Candidate list + cursor + retry budget for ONE extraction.

    The budget equals the number of candidates, so every model is tried at
    most once per extraction.
    """

    def __init__(self, candidates: Iterable[str]):
        self.candidates: List[str] = dedupe(candidates)
        if not self.candidates:
            raise NoCandidatesError("No generation models available")
        self.cursor = 0
        self.remaining = len(self.candidates)
        self.rotations = 0
        self.attempted: List[str] = []

    @property
    def current(self) -> str:
        return self.candidates[self.cursor]

    def rotate(self) -> str:
        self.cursor = advance(self.cursor, len(self.candidates))
        self.rotations += 1
        return self.current

    def run(self, attempt: Callable[[str], T]) -> T:
        """
        Call `attempt(model_id)` until one succeeds.

        - recoverable error: rotate, spend one unit of budget, retry
        - ScorecardError (e.g. malformed extraction): re-raised untouched
        - any other error: wrapped in ProviderFatalError, no rotation
        """
        last_error: Optional[BaseException] = None

        while self.remaining > 0:
            model_id = self.current
            self.attempted.append(model_id)
            self.remaining -= 1
            logger.info("Extraction attempt %d/%d with model=%s",
                        len(self.attempted), len(self.candidates), model_id)

            try:
                return attempt(model_id)
            except Exception as e:
                if not is_recoverable(e):
                    if isinstance(e, ScorecardError):
                        raise
                    logger.error("Fatal provider error on model=%s: %s", model_id, e)
                    raise ProviderFatalError(f"{model_id}: {e}") from e

                last_error = e
                logger.warning("Recoverable provider error on model=%s: %s", model_id, e)
                if self.remaining > 0:
                    self.rotate()

        raise AllProvidersExhaustedError(self.attempted, last_error)
