# scorecard_api/overs.py
from __future__ import annotations

import re
from typing import Union

OversLike = Union[str, int, float]

# "<overs>[.<balls>]", either part may be omitted ("4", ".5", "3.")
_OVERS_RE = re.compile(r"^(\d*)(?:\.(\d*))?$")


def overs_to_balls(overs: OversLike) -> int:
    """
    Cricket overs notation -> legal balls.

      "3.4" / 3.4 -> 22    (3 overs and 4 balls)
      "4" / 4     -> 24
      "0.5"       -> 5

    Floats are read through their one-decimal repr so 3.4000000001 counts
    as 3.4. The ball part must be 0-5.
    """
    if overs is None:
        raise ValueError("Overs cannot be None")

    text = repr(round(overs, 1)) if isinstance(overs, float) else str(overs).strip()
    m = _OVERS_RE.match(text)
    if not m or not (m.group(1) or m.group(2)):
        raise ValueError(f"Invalid overs: {overs!r}")

    whole = int(m.group(1) or 0)
    part = int(m.group(2) or 0)
    if part > 5:
        raise ValueError(f"Invalid overs: {overs!r} (balls part must be 0-5)")

    return whole * 6 + part


def balls_to_overs(balls: int) -> float:
    """
    Balls back to overs notation as a float: 22 -> 3.4, 24 -> 4.0.
    Negative totals keep their sign (only reachable through a bad revert).
    """
    sign = -1 if balls < 0 else 1
    full, rest = divmod(abs(int(balls)), 6)
    return sign * float(f"{full}.{rest}")
