"""Tests for the SQLite observation and soulfile stores."""

import sqlite3
from datetime import datetime, timedelta, timezone

from factories import NOW, make_observation

from wakeful.storage import SQLiteObservationStore, escape_like_pattern, soulfile_key
from wakeful.storage.schema import SCHEMA_VERSION


class TestSchema:
    def test_creates_database_and_version(self, store, db_path):
        assert db_path.exists()
        with store._connect() as conn:
            version = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]
        assert version == SCHEMA_VERSION

    def test_reopen_is_idempotent(self, store, db_path):
        store.insert(make_observation("a"))
        reopened = SQLiteObservationStore(db_path)
        assert reopened.get("a") is not None

    def test_migrates_missing_pinned_column(self, tmp_path):
        path = tmp_path / "old.db"
        conn = sqlite3.connect(path)
        conn.executescript(
            """
            CREATE TABLE observations (
                id TEXT PRIMARY KEY, agent_id TEXT NOT NULL, author TEXT NOT NULL,
                perspective TEXT NOT NULL, kind TEXT NOT NULL, content TEXT NOT NULL,
                salience INTEGER NOT NULL DEFAULT 0,
                emotion_intimacy INTEGER NOT NULL DEFAULT 0,
                emotion_conflict INTEGER NOT NULL DEFAULT 0,
                emotion_joy INTEGER NOT NULL DEFAULT 0,
                emotion_fear INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL, updated_at TEXT NOT NULL,
                last_accessed TEXT, deleted_at TEXT, status TEXT DEFAULT 'active',
                superseded_by TEXT, source_platform TEXT, source_ref TEXT
            );
            INSERT INTO observations (id, agent_id, author, perspective, kind, content,
                                      created_at, updated_at)
            VALUES ('legacy', 'agent-a', 'me', 'self', 'project', 'x',
                    '2024-01-01T00:00:00.000000+00:00', '2024-01-01T00:00:00.000000+00:00');
            """
        )
        conn.commit()
        conn.close()

        store = SQLiteObservationStore(path)
        obs = store.get("legacy")
        assert obs.pinned is False
        assert store.set_pinned("legacy", True, NOW)


class TestRoundTrip:
    def test_insert_and_get(self, store):
        original = make_observation(
            "a",
            salience=42,
            accessed_days_ago=2,
            emotion_joy=7,
            source_platform="discord",
            source_ref="msg-1",
        )
        store.insert(original)
        loaded = store.get("a")
        assert loaded == original

    def test_naive_timestamps_stored_as_utc(self, store):
        obs = make_observation("a")
        obs.created_at = datetime(2025, 1, 2, 3, 4, 5)
        store.insert(obs)
        assert store.get("a").created_at == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_get_hides_deleted_unless_asked(self, store):
        store.insert(make_observation("a"))
        store.soft_delete("a", NOW)
        assert store.get("a") is None
        assert store.get("a", include_deleted=True).deleted_at == NOW


class TestTieredQueries:
    def test_recent_order_and_limit(self, store):
        for i, days in enumerate((3, 1, 2, 1)):
            store.insert(make_observation(f"o{i}", created_days_ago=days))
        assert [o.id for o in store.fetch_recent("agent-a", 3)] == ["o1", "o3", "o2"]

    def test_salient_order(self, store):
        store.insert(make_observation("low", salience=10))
        store.insert(make_observation("high-old", salience=80, created_days_ago=9))
        store.insert(make_observation("high-new", salience=80, created_days_ago=1))
        assert [o.id for o in store.fetch_salient("agent-a", 10)] == ["high-new", "high-old", "low"]

    def test_critical_threshold_or_correction(self, store):
        store.insert(make_observation("big", salience=80))
        store.insert(make_observation("corr", kind="correction", salience=5))
        store.insert(make_observation("mid", salience=79))
        assert {o.id for o in store.fetch_critical("agent-a", 10, 80)} == {"big", "corr"}

    def test_queries_skip_inactive(self, store):
        store.insert(make_observation("live"))
        store.insert(make_observation("gone", deleted_at=NOW))
        store.insert(make_observation("old", status="superseded", salience=99))
        for rows in (
            store.fetch_recent("agent-a", 10),
            store.fetch_salient("agent-a", 10),
            store.fetch_critical("agent-a", 10, 0),
        ):
            assert [o.id for o in rows] == ["live"]


class TestWrites:
    def test_reinforce_skips_inactive(self, store):
        store.insert(make_observation("a", salience=10))
        store.insert(make_observation("b", salience=10, status="superseded"))
        touched = store.reinforce(["a", "b", "missing"], NOW, 2)
        assert touched == 1
        assert store.get("a").salience == 12
        assert store.get("b").salience == 10

    def test_mark_superseded_only_when_active(self, store):
        store.insert(make_observation("a"))
        assert store.mark_superseded("a", "b", NOW) is True
        assert store.mark_superseded("a", "c", NOW) is False
        assert store.get("a").superseded_by == "b"

    def test_update_fields_coalesce_and_bump(self, store):
        store.insert(make_observation("a", salience=40, content="before", emotion_joy=3))
        later = NOW + timedelta(minutes=5)
        assert store.update_fields("a", later, 5, content="after")
        obs = store.get("a")
        assert obs.content == "after"
        assert obs.salience == 45
        assert obs.emotion_joy == 3
        assert obs.last_accessed == later

    def test_update_fields_clamps(self, store):
        store.insert(make_observation("a", salience=40))
        store.update_fields("a", NOW, 5, salience=98)
        assert store.get("a").salience == 100

    def test_update_missing_or_deleted(self, store):
        store.insert(make_observation("a"))
        store.soft_delete("a", NOW)
        assert store.update_fields("a", NOW, 5, content="x") is False
        assert store.update_fields("missing", NOW, 5) is False

    def test_pin_refreshes_access_unpin_does_not(self, store):
        store.insert(make_observation("a", accessed_days_ago=40))
        store.set_pinned("a", True, NOW)
        assert store.get("a").pinned is True
        assert store.get("a").last_accessed == NOW

        later = NOW + timedelta(days=1)
        store.set_pinned("a", False, later)
        obs = store.get("a")
        assert obs.pinned is False
        assert obs.last_accessed == NOW
        assert obs.updated_at == later

    def test_soft_delete_once(self, store):
        store.insert(make_observation("a"))
        assert store.soft_delete("a", NOW) is True
        assert store.soft_delete("a", NOW + timedelta(days=1)) is False
        assert store.get("a", include_deleted=True).deleted_at == NOW

    def test_hard_delete(self, store):
        store.insert(make_observation("a"))
        assert store.hard_delete("a") is True
        assert store.get("a", include_deleted=True) is None
        assert store.hard_delete("a") is False


class TestSearch:
    def test_substring_and_filters(self, store):
        store.insert(make_observation("a", content="Atlas launch", salience=70))
        store.insert(make_observation("b", content="atlas retro", salience=30, kind="emotional"))
        store.insert(make_observation("c", content="unrelated", salience=90))

        assert [o.id for o in store.search("agent-a", "atlas")] == ["a", "b"]
        assert [o.id for o in store.search("agent-a", "atlas", kind="emotional")] == ["b"]
        assert [o.id for o in store.search("agent-a", "", min_salience=50, max_salience=80)] == ["a"]

    def test_wildcards_are_literal(self, store):
        store.insert(make_observation("pct", content="100% done"))
        store.insert(make_observation("plain", content="1000 done"))
        assert [o.id for o in store.search("agent-a", "0%")] == ["pct"]
        assert [o.id for o in store.search("agent-a", "_")] == []

    def test_superseded_hidden_by_default(self, store):
        store.insert(make_observation("old", content="note", status="superseded"))
        assert store.search("agent-a", "note") == []
        assert [o.id for o in store.search("agent-a", "note", include_superseded=True)] == ["old"]

    def test_escape_like_pattern(self):
        assert escape_like_pattern(r"50%_off\now") == r"50\%\_off\\now"


class TestSupersededAndAnniversaries:
    def test_list_superseded_order(self, store):
        store.insert(make_observation("a"))
        store.insert(make_observation("b"))
        store.mark_superseded("a", "x", NOW)
        store.mark_superseded("b", "y", NOW + timedelta(hours=1))
        assert [o.id for o in store.list_superseded("agent-a", 10)] == ["b", "a"]

    def test_anniversaries(self, store):
        dates = {
            "last-year": datetime(2024, 6, 15, 8, 0, tzinfo=timezone.utc),
            "two-years": datetime(2023, 6, 15, 20, 0, tzinfo=timezone.utc),
            "today": datetime(2025, 6, 15, 9, 0, tzinfo=timezone.utc),
            "other-day": datetime(2024, 6, 14, 8, 0, tzinfo=timezone.utc),
        }
        for obs_id, created in dates.items():
            obs = make_observation(obs_id)
            obs.created_at = created
            store.insert(obs)
        found = store.fetch_anniversaries("agent-a", NOW.strftime("%m-%d"), NOW.year, 5)
        assert [o.id for o in found] == ["last-year", "two-years"]


class TestSoulfileStore:
    def test_put_get_overwrite_delete(self, soulfiles):
        key = soulfile_key("agent-a")
        assert key == "agent-a:active"
        assert soulfiles.get(key) is None
        soulfiles.put(key, "## Core\nFirst")
        soulfiles.put(key, "## Core\nSecond")
        assert soulfiles.get(key) == "## Core\nSecond"
        assert soulfiles.delete(key) is True
        assert soulfiles.get(key) is None

    def test_ping(self, store):
        assert store.ping() is True
