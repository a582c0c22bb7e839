from __future__ import annotations

import itertools
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Makes the votes_api package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from votes_api.core import config as core_config  # noqa: E402


@pytest.fixture()
def data_file(tmp_path):
    return tmp_path / "votes.json"


@pytest.fixture()
def ticking_clock():
    """Clock that advances one second per call so created_at order is deterministic."""
    start = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    ticks = itertools.count()
    return lambda: start + timedelta(seconds=next(ticks))


@pytest.fixture()
def app_env(data_file, monkeypatch):
    """Point settings at a temporary data file and reset the settings cache."""
    monkeypatch.setenv("VOTES_DATA_FILE", str(data_file))
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.delenv("VOTES_STRICT_NOT_FOUND", raising=False)
    monkeypatch.delenv("VOTES_STRICT_UPDATE", raising=False)
    monkeypatch.delenv("METRICS_ENABLED", raising=False)
    core_config.get_settings.cache_clear()
    yield data_file
    core_config.get_settings.cache_clear()
