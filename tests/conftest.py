from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from scorecard_api import cache  # noqa: E402
from scorecard_api.sql_store import SqlStore, get_engine  # noqa: E402
from scorecard_api.store import InMemoryStore  # noqa: E402


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def sql_store() -> SqlStore:
    s = SqlStore(get_engine("sqlite://"))
    s.create_schema()
    return s


@pytest.fixture(params=["memory", "sql"])
def any_store(request):
    """Runs a test once per RecordStore implementation."""
    if request.param == "memory":
        return InMemoryStore()
    return request.getfixturevalue("sql_store")


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()
