"""Tests for invariant checks and load explanations."""

import math

from factories import NOW, make_observation

from wakeful.invariants import assert_invariants, explain_loading
from wakeful.lenses import parse_lenses
from wakeful.types import ScoredObservation


def scored(obs, decayed=None, hot=1.0):
    return ScoredObservation(
        observation=obs,
        decayed_salience=obs.salience if decayed is None else decayed,
        hot_score=hot,
    )


def loaded_of(*tiers):
    result = {}
    for tier in tiers:
        for s in tier:
            result.setdefault(s.id, s)
    return result


class TestAssertInvariants:
    def test_healthy_tiers_have_no_violations(self):
        tier = [scored(make_observation(f"o{i}")) for i in range(3)]
        assert assert_invariants(tier, tier, tier, loaded_of(tier)) == []

    def test_deleted_record_flagged(self):
        s = scored(make_observation("gone", deleted_at=NOW))
        violations = assert_invariants([s], [], [], loaded_of([s]))
        assert violations == ["DELETED_IN_ACTIVE: gone"]

    def test_superseded_record_flagged(self):
        s = scored(make_observation("old", status="superseded", superseded_by="new"))
        violations = assert_invariants([], [s], [], loaded_of([s]))
        assert violations == ["SUPERSEDED_IN_ACTIVE: old"]

    def test_non_finite_hot_score_flagged(self):
        bad = [scored(make_observation("a"), hot=math.nan), scored(make_observation("b"), hot=math.inf)]
        violations = assert_invariants([], [], bad, loaded_of(bad))
        assert violations == ["INVALID_HOT_SCORE: a", "INVALID_HOT_SCORE: b"]

    def test_tier_caps(self):
        many = [scored(make_observation(f"o{i:02d}")) for i in range(11)]
        violations = assert_invariants(many, many, many, loaded_of(many))
        assert "RECENT_EXCEEDS_LIMIT: 11" in violations
        assert "SALIENT_EXCEEDS_LIMIT: 11" in violations
        assert "HOT_EXCEEDS_LIMIT: 11" in violations
        assert not any(v.startswith("WAKE_TOTAL") for v in violations)

    def test_total_cap(self):
        recent = [scored(make_observation(f"r{i}")) for i in range(10)]
        salient = [scored(make_observation(f"s{i}")) for i in range(10)]
        hot = [scored(make_observation(f"h{i}")) for i in range(6)]
        violations = assert_invariants(recent, salient, hot, loaded_of(recent, salient, hot))
        assert violations == ["WAKE_TOTAL_EXCEEDS_LIMIT: 26"]

    def test_violations_logged_not_raised(self, caplog):
        s = scored(make_observation("gone", deleted_at=NOW))
        with caplog.at_level("WARNING"):
            assert_invariants([s], [], [], loaded_of([s]))
        assert "invariant violations" in caplog.text


class TestExplainLoading:
    def explain(self, s, recent=(), salient=(), hot=(), critical=(), lens=None):
        return explain_loading(
            s,
            recent_ids=set(recent),
            salient_ids=set(salient),
            hot_ids=set(hot),
            critical_ids=set(critical),
            lenses=parse_lenses(lens),
        )

    def test_critical_salience_suppresses_salience_rank(self):
        s = scored(make_observation("a", salience=90))
        reasons = self.explain(s, salient={"a"}, critical={"a"})
        assert reasons == ["salience_critical"]

    def test_correction_kind(self):
        s = scored(make_observation("c", kind="correction", salience=20))
        assert self.explain(s, critical={"c"}) == ["correction_kind"]

    def test_critical_correction_gets_both(self):
        s = scored(make_observation("c", kind="correction", salience=85))
        assert self.explain(s, critical={"c"}) == ["correction_kind", "salience_critical"]

    def test_order_of_tier_reasons(self):
        s = scored(make_observation("a", salience=40))
        reasons = self.explain(s, recent={"a"}, salient={"a"}, hot={"a"})
        assert reasons == ["hot_score", "salience_rank", "recency"]

    def test_lens_and_survived_tags(self):
        s = scored(make_observation("a"))
        reasons = self.explain(s, recent={"a"}, lens="project:atlas+-operational+-emotional")
        assert reasons == ["recency", "lens:project:atlas", "survived:operational,emotional"]

    def test_fallback_reason(self):
        s = scored(make_observation("a"))
        assert self.explain(s) == ["merged_dedup"]

    def test_high_salience_outside_critical_set_is_ranked(self):
        s = scored(make_observation("a", salience=95))
        assert self.explain(s, salient={"a"}) == ["salience_rank"]
