# scorecard_api/gemini_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from scorecard_api.cache import get_or_load, make_key
from scorecard_api.config import (
    GEMINI_API_KEY,
    GEMINI_BASE_URL,
    GENERATION_TIMEOUT_SECONDS,
    MODELS_CACHE_TTL_SECONDS,
)

logger = logging.getLogger(__name__)

# Model ids containing any of these are never offered as extraction candidates
_EXCLUDED_MODEL_MARKERS = ("deprecated", "lite", "embed")


class GenerationError(Exception):
    """Raised when a Gemini REST call fails or is misconfigured."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, timeout: bool = False):
        self.status_code = status_code
        self.timeout = timeout
        super().__init__(message)


def _url(path: str) -> str:
    if not GEMINI_API_KEY:
        raise GenerationError("GEMINI_API_KEY is not configured")
    if not GEMINI_BASE_URL.startswith("http"):
        raise GenerationError("GEMINI_BASE_URL must start with http/https")
    return f"{GEMINI_BASE_URL.rstrip('/')}/{path.lstrip('/')}"


def _raise_for_response(resp: requests.Response) -> None:
    if resp.status_code == 200:
        return
    try:
        detail = resp.json().get("error", {}).get("message") or resp.text
    except Exception:
        detail = resp.text
    raise GenerationError(f"HTTP {resp.status_code}: {detail}", status_code=resp.status_code)


def filter_model_ids(names: List[str]) -> List[str]:
    """
    "models/gemini-2.0-flash" -> "gemini-2.0-flash", drops deprecated/lite/embedding
    models and returns the rest newest-first (the API lists oldest first).
    """
    ids = [str(n).split("/")[-1] for n in names if n]
    ids = [i for i in ids if not any(marker in i for marker in _EXCLUDED_MODEL_MARKERS)]
    ids.reverse()
    return ids


def _fetch_models() -> List[str]:
    try:
        resp = requests.get(_url("models"), params={"key": GEMINI_API_KEY}, timeout=15)
    except requests.Timeout as e:
        raise GenerationError(f"Model listing timed out: {e}", timeout=True) from e
    except requests.RequestException as e:
        raise GenerationError(f"Network error: {e}") from e

    _raise_for_response(resp)

    try:
        data = resp.json()
    except Exception as e:
        raise GenerationError(f"Invalid JSON response: {e}") from e

    names = [m.get("name", "") for m in data.get("models", []) if isinstance(m, dict)]
    ids = filter_model_ids(names)
    if not ids:
        raise GenerationError("No models found.")

    logger.info("Discovered %d generation models", len(ids))
    return ids


def list_models() -> List[str]:
    """Available model ids, cached for MODELS_CACHE_TTL_SECONDS."""
    return get_or_load(make_key("gemini", "models"), _fetch_models, MODELS_CACHE_TTL_SECONDS)


def _response_text(data: Dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        feedback = data.get("promptFeedback") or {}
        raise GenerationError(f"Empty generation response (feedback={feedback})")

    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))
    if not text.strip():
        raise GenerationError("Generation response contained no text")
    return text


def generate(model_id: str, prompt: str) -> str:
    """
    Single-shot text generation.

    A request-level timeout is always applied; it surfaces as
    GenerationError(timeout=True) so the rotation treats it as recoverable.
    """
    body = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

    try:
        resp = requests.post(
            _url(f"models/{model_id}:generateContent"),
            params={"key": GEMINI_API_KEY},
            json=body,
            timeout=GENERATION_TIMEOUT_SECONDS,
        )
    except requests.Timeout as e:
        raise GenerationError(f"Generation timed out for {model_id}: {e}", timeout=True) from e
    except requests.RequestException as e:
        raise GenerationError(f"Network error: {e}") from e

    _raise_for_response(resp)

    try:
        data = resp.json()
    except Exception as e:
        raise GenerationError(f"Invalid JSON response: {e}") from e

    return _response_text(data)
