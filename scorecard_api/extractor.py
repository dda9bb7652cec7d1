# scorecard_api/extractor.py
from __future__ import annotations

import json
import logging
import re
from typing import Callable, Tuple

from pydantic import ValidationError

from scorecard_api.errors import MalformedExtractionError
from scorecard_api.models import MatchReport
from scorecard_api.providers import ProviderRotation

logger = logging.getLogger(__name__)

GenerateFn = Callable[[str, str], str]

# first fenced block anywhere in the reply ("Here is the JSON:\n```json ...```")
_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```", re.DOTALL)

_PROMPT_TEMPLATE = """You convert cricket match scorecards into JSON.

Return ONLY a JSON object (no markdown, no commentary) with exactly this shape:

{{
  "matchInfo": {{
    "teams": ["<team batting first>", "<other team>"],
    "date": "", "venue": "", "format": "", "toss": "",
    "result": "<e.g. 'Team A won by 5 runs'>",
    "playerOfMatch": ""
  }},
  "innings": [
    {{
      "team": "<batting team>",
      "total": "<e.g. 145/6>", "overs": "<e.g. 20.0>", "runRate": "", "extras": "",
      "batsmen": [
        {{"name": "", "runs": 0, "balls": 0, "fours": 0, "sixes": 0, "sr": 0.0, "outDesc": ""}}
      ],
      "bowlers": [
        {{"name": "", "overs": 0.0, "maidens": 0, "runs": 0, "wickets": 0, "eco": 0.0,
          "dots": 0, "fours": 0, "sixes": 0, "wd": 0, "nb": 0}}
      ],
      "fallOfWickets": ["<e.g. 1-23 (R Sharma, 3.4)>"]
    }}
  ]
}}

Rules:
- Keep every team and player name EXACTLY as spelled in the scorecard, including
  spacing and capitalisation.
- If a name has clearly lost the space between words (e.g. "RohitSharma"),
  restore the space ("Rohit Sharma").
- Write dismissals as "<code> <name>" with single spaces, e.g. "c Kumar b Singh",
  "b Singh", "lbw b Singh", "st Rao b Singh", "run out (Kumar)", "retired hurt",
  "not out".
- Overs use cricket notation (3.4 = 3 overs and 4 balls).
- Numbers must be JSON numbers; use 0 when a value is missing.
- Do not include an "Extras" row in batsmen.

Scorecard text:
<<<
{text}
>>>
"""


def build_prompt(text: str) -> str:
    return _PROMPT_TEMPLATE.format(text=text.strip())


def strip_code_fences(raw: str) -> str:
    """
    "```json\\n{...}\\n```" -> "{...}", also when prose surrounds the fence.
    Text without a fence is returned trimmed.
    """
    if raw is None:
        return ""
    s = str(raw).strip()
    m = _FENCE_RE.search(s)
    if m:
        return m.group(1).strip()
    return s


def parse_report(raw: str) -> MatchReport:
    """Decode a generation response into a validated MatchReport."""
    body = strip_code_fences(raw)
    if not body:
        raise MalformedExtractionError("Extraction returned an empty response")

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise MalformedExtractionError(f"Extraction is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedExtractionError(f"Extraction must be a JSON object, got {type(data).__name__}")

    # Never let the model pick store-owned fields
    for k in ("id", "createdAt", "contentHash"):
        data.pop(k, None)

    try:
        return MatchReport.model_validate(data)
    except ValidationError as e:
        raise MalformedExtractionError(f"Extraction does not match the scorecard shape: {e}") from e


def extract_report(text: str, rotation: ProviderRotation, generate: GenerateFn) -> Tuple[MatchReport, str]:
    """
    Runs extraction through the rotation. Returns (report, model_id_used).

    Malformed output is a data problem: it is raised straight away and never
    rotated. Provider errors follow ProviderRotation.run().
    """
    if not text or not text.strip():
        raise MalformedExtractionError("Scorecard text is empty")

    prompt = build_prompt(text)

    def _attempt(model_id: str) -> Tuple[MatchReport, str]:
        raw = generate(model_id, prompt)
        return parse_report(raw), model_id

    report, model_id = rotation.run(_attempt)
    logger.info(
        "Extracted scorecard with model=%s (innings=%d, rotations=%d)",
        model_id, len(report.innings), rotation.rotations,
    )
    return report, model_id
