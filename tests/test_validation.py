"""Tests for wakeful.validation input helpers."""

import pytest

from wakeful.validation import sanitize_score, sanitize_string, validate_observation_id


class TestSanitizeString:
    def test_valid_string_passes(self):
        assert sanitize_string("hello", "field") == "hello"

    def test_strips_control_characters(self):
        assert sanitize_string("obs\x00erv\x07ation", "field") == "observation"

    def test_preserves_newlines_and_tabs(self):
        assert sanitize_string("a\nb\tc", "field") == "a\nb\tc"

    def test_rejects_none_when_required(self):
        with pytest.raises(ValueError, match="must be a string"):
            sanitize_string(None, "content")

    def test_optional_none(self):
        assert sanitize_string(None, "content", required=False) == ""

    def test_rejects_blank(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            sanitize_string("   ", "content")

    def test_rejects_too_long(self):
        with pytest.raises(ValueError, match="too long"):
            sanitize_string("x" * 11, "content", max_length=10)


class TestSanitizeScore:
    @pytest.mark.parametrize("value", [0, 50, 100, 42.0])
    def test_accepts_range(self, value):
        assert sanitize_score(value, "salience") == int(value)

    def test_none_uses_default(self):
        assert sanitize_score(None, "salience") is None
        assert sanitize_score(None, "salience", default=0) == 0

    @pytest.mark.parametrize("value", [-1, 101, 1000])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ValueError, match="between 0 and 100"):
            sanitize_score(value, "salience")

    @pytest.mark.parametrize("value", ["50", True, [1]])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValueError, match="must be a number"):
            sanitize_score(value, "salience")

    def test_rejects_fractional(self):
        with pytest.raises(ValueError, match="whole number"):
            sanitize_score(12.5, "salience")

    def test_rejects_nan(self):
        with pytest.raises(ValueError, match="finite"):
            sanitize_score(float("nan"), "salience")


class TestValidateObservationId:
    @pytest.mark.parametrize("value", ["abc", "4f1c-9a2e", "obs_1.2:3"])
    def test_accepts(self, value):
        assert validate_observation_id(value) == value

    @pytest.mark.parametrize("value", ["", None, 12])
    def test_required(self, value):
        with pytest.raises(ValueError, match="required"):
            validate_observation_id(value)

    @pytest.mark.parametrize("value", ["has space", "semi;colon", "x" * 129])
    def test_malformed(self, value):
        with pytest.raises(ValueError, match="malformed"):
            validate_observation_id(value, "superseded_by")
