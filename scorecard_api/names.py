# scorecard_api/names.py
from __future__ import annotations

import re
from typing import Any

_CAMEL_GAP_RE = re.compile(r"(?<=[a-z])(?=[A-Z])")
_DIGITS_RE = re.compile(r"\d+")
_SPACES_RE = re.compile(r"\s+")


def normalize_name(raw: Any) -> str:
    """
    Canonical display form for team / player names coming out of PDF text.

    Examples:
      "RohitSharma"      -> "Rohit Sharma"
      "  R  Sharma 45 "  -> "R Sharma"
      "WCCKavaliers2"    -> "WCCKavaliers"   (no lower->upper gap)
      "TeamAlpha"        -> "Team Alpha"

    Idempotent: normalize_name(normalize_name(s)) == normalize_name(s).
    """
    if raw is None:
        return ""

    s = str(raw)

    # Digits go first so "Ab1Cd" still gets its lower->upper gap
    s = _DIGITS_RE.sub("", s)
    s = _CAMEL_GAP_RE.sub(" ", s)
    s = _SPACES_RE.sub(" ", s).strip()
    return s


def same_name(a: Any, b: Any) -> bool:
    """Case-insensitive comparison of two names after normalization."""
    return normalize_name(a).casefold() == normalize_name(b).casefold()
