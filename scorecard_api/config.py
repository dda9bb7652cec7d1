# scorecard_api/config.py
from __future__ import annotations

import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


# -------------------------
# Text generation (Gemini REST) config
# -------------------------
GEMINI_API_KEY: str = _get_env("GEMINI_API_KEY")
GEMINI_BASE_URL: str = _get_env("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1")

# Tried first whenever it shows up in the discovered model list
GEMINI_PRIMARY_MODEL: str = _get_env("GEMINI_PRIMARY_MODEL", "gemini-2.0-flash")

# Extraction calls can block for a long time on big scorecards
GENERATION_TIMEOUT_SECONDS: float = _get_env_float("GENERATION_TIMEOUT_SECONDS", 60.0)
MODELS_CACHE_TTL_SECONDS: int = _get_env_int("MODELS_CACHE_TTL_SECONDS", 600)


# -------------------------
# Standings
# -------------------------
# Number of recent W/L results kept per team
SCORE_WINDOW: int = _get_env_int("SCORE_WINDOW", 15)


# -------------------------
# Storage
# -------------------------
# Any SQLAlchemy URL; the default is a SQLite file next to the app
DATABASE_URL: str = _get_env("DATABASE_URL", "sqlite:///./scorecards.db")


# -------------------------
# Upload rate limit (per client address)
# -------------------------
# Every upload costs generation quota
UPLOAD_RATE_LIMIT: str = _get_env("UPLOAD_RATE_LIMIT", "10/minute")


# -------------------------
# Notifications (OPTIONAL)
# -------------------------
# If SMTP_HOST is empty, notifications are only logged
SMTP_HOST: str = _get_env("SMTP_HOST")
SMTP_PORT: int = _get_env_int("SMTP_PORT", 587)
SMTP_USER: str = _get_env("SMTP_USER")
SMTP_PASSWORD: str = _get_env("SMTP_PASSWORD")
NOTIFY_TO: str = _get_env("NOTIFY_TO")

LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO").upper()


def validate_config() -> None:
    if not GEMINI_BASE_URL.startswith("http"):
        raise RuntimeError("GEMINI_BASE_URL must start with http/https")

    if not GEMINI_PRIMARY_MODEL:
        raise RuntimeError("GEMINI_PRIMARY_MODEL must not be empty")

    if GENERATION_TIMEOUT_SECONDS <= 0:
        raise RuntimeError("GENERATION_TIMEOUT_SECONDS must be positive")

    if MODELS_CACHE_TTL_SECONDS <= 0:
        raise RuntimeError("MODELS_CACHE_TTL_SECONDS must be positive")

    if SCORE_WINDOW <= 0:
        raise RuntimeError("SCORE_WINDOW must be positive")

    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL must not be empty")

    if not UPLOAD_RATE_LIMIT:
        raise RuntimeError("UPLOAD_RATE_LIMIT must not be empty (e.g. 10/minute)")

    # If SMTP is enabled, a recipient is mandatory
    if SMTP_HOST and not NOTIFY_TO:
        raise RuntimeError("NOTIFY_TO missing but SMTP_HOST is set")

    if LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise RuntimeError(f"LOG_LEVEL must be a standard logging level, got {LOG_LEVEL!r}")
