"""
Pytest fixtures and test configuration for wakeful tests.
"""

import pytest
from factories import make_observation

from wakeful import Wakeful
from wakeful.storage import SQLiteObservationStore, SQLiteSoulfileStore


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "observations.db"


@pytest.fixture
def store(db_path):
    """Empty SQLite observation store in a temp directory."""
    return SQLiteObservationStore(db_path)


@pytest.fixture
def soulfiles(db_path):
    return SQLiteSoulfileStore(db_path)


@pytest.fixture
def memory(db_path):
    """Wakeful facade over a temp database."""
    return Wakeful(db_path=db_path)


@pytest.fixture
def salience_scenario(store):
    """Three active records at 90/50/10 plus a low-salience correction."""
    records = [
        make_observation("obs-90", salience=90, created_days_ago=4, accessed_days_ago=1),
        make_observation("obs-50", salience=50, created_days_ago=3, accessed_days_ago=1),
        make_observation("obs-10", salience=10, created_days_ago=2, accessed_days_ago=1),
        make_observation(
            "obs-corr", kind="correction", salience=20, created_days_ago=5, accessed_days_ago=1
        ),
    ]
    for obs in records:
        store.insert(obs)
    return records
