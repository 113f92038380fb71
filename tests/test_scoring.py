"""Tests for salience decay and hot scoring."""

from datetime import timedelta

import pytest
from factories import NOW, make_observation

from wakeful.config import WakeLimits
from wakeful.scoring import compute_decayed_salience, compute_hot_score


class TestDecayedSalience:
    def test_no_decay_within_first_period(self):
        obs = make_observation("a", salience=70, accessed_days_ago=29.9)
        assert compute_decayed_salience(obs, NOW) == 70

    def test_one_period_costs_ten(self):
        obs = make_observation("a", salience=70, accessed_days_ago=30)
        assert compute_decayed_salience(obs, NOW) == 60

    def test_periods_are_whole(self):
        obs = make_observation("a", salience=70, accessed_days_ago=89)
        assert compute_decayed_salience(obs, NOW) == 50

    def test_floored_at_zero(self):
        obs = make_observation("a", salience=15, accessed_days_ago=365)
        assert compute_decayed_salience(obs, NOW) == 0

    def test_never_accessed_has_not_decayed(self):
        obs = make_observation("a", salience=40, created_days_ago=400, accessed_days_ago=None)
        assert compute_decayed_salience(obs, NOW) == 40

    def test_pinned_returns_raw_salience(self):
        obs = make_observation("a", salience=40, accessed_days_ago=1000, pinned=True)
        assert compute_decayed_salience(obs, NOW) == 40

    def test_age_alone_does_not_decay(self):
        # Old record, recently accessed
        obs = make_observation("a", salience=40, created_days_ago=900, accessed_days_ago=2)
        assert compute_decayed_salience(obs, NOW) == 40

    def test_future_access_never_adds(self):
        obs = make_observation("a", salience=40, accessed_days_ago=-45)
        assert compute_decayed_salience(obs, NOW) == 40

    def test_custom_limits(self):
        limits = WakeLimits(decay_period_days=7, decay_per_period=5)
        obs = make_observation("a", salience=40, accessed_days_ago=14)
        assert compute_decayed_salience(obs, NOW, limits) == 30


class TestHotScore:
    def test_plain_record_past_window(self):
        obs = make_observation("a", salience=50, created_days_ago=20, accessed_days_ago=1)
        assert compute_hot_score(obs, NOW) == pytest.approx(50.0)

    def test_new_record_gets_full_recency_boost(self):
        obs = make_observation("a", salience=50, created_days_ago=0, accessed_days_ago=0)
        assert compute_hot_score(obs, NOW) == pytest.approx(51.0)

    def test_recency_boost_is_linear(self):
        obs = make_observation("a", salience=50, created_days_ago=7, accessed_days_ago=1)
        assert compute_hot_score(obs, NOW) == pytest.approx(50.5)

    def test_warm_emotions_add_cold_emotions_subtract(self):
        obs = make_observation(
            "a",
            salience=50,
            created_days_ago=30,
            accessed_days_ago=1,
            emotion_intimacy=10,
            emotion_joy=20,
            emotion_fear=10,
            emotion_conflict=40,
        )
        # 50 + 0.4 * 30 - 0.2 * 50
        assert compute_hot_score(obs, NOW) == pytest.approx(52.0)

    def test_uses_decayed_salience(self):
        obs = make_observation("a", salience=50, created_days_ago=100, accessed_days_ago=61)
        assert compute_hot_score(obs, NOW) == pytest.approx(30.0)

    def test_can_go_negative(self):
        obs = make_observation(
            "a", salience=0, created_days_ago=30, emotion_fear=100, emotion_conflict=100
        )
        assert compute_hot_score(obs, NOW) == pytest.approx(-40.0)

    def test_decay_days_override(self):
        obs = make_observation("a", salience=0, created_days_ago=1)
        score = compute_hot_score(obs, NOW, decay_days=2)
        assert score == pytest.approx(0.5)

    def test_created_in_future_boost_exceeds_one(self):
        obs = make_observation("a", salience=0)
        obs.created_at = NOW + timedelta(days=7)
        # Negative age yields a boost above 1; nothing clamps it
        assert compute_hot_score(obs, NOW) == pytest.approx(1.5)
