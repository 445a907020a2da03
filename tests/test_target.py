"""Tests for target arithmetic."""

import pytest

from wisdom.services.target import (
    BASE_TARGET,
    InvalidDifficultyError,
    InvalidTargetError,
    digest_below_threshold,
    threshold,
    to_hex,
)


class TestThreshold:
    def test_zero_difficulty_is_base_target(self):
        assert int(threshold(0), 16) == BASE_TARGET

    def test_fixed_width_lowercase_hex(self):
        for difficulty in (0, 1, 50, 199, 200):
            t = threshold(difficulty)
            assert len(t) == 64
            assert t == t.lower()

    def test_strictly_decreasing_over_domain(self):
        values = [int(threshold(d), 16) for d in range(0, 201)]
        assert all(a > b for a, b in zip(values, values[1:], strict=False))

    def test_exact_integer_arithmetic(self):
        assert int(threshold(100), 16) == BASE_TARGET // 2
        assert int(threshold(200), 16) == BASE_TARGET * 100 // 300
        assert int(threshold(50), 16) == BASE_TARGET * 100 // 150

    def test_deterministic(self):
        assert threshold(37) == threshold(37)

    @pytest.mark.parametrize("difficulty", [-1, 201, 1000])
    def test_out_of_range_rejected(self, difficulty):
        with pytest.raises(InvalidDifficultyError):
            threshold(difficulty)

    @pytest.mark.parametrize("difficulty", [1.5, "10", None, True])
    def test_non_integer_rejected(self, difficulty):
        with pytest.raises(InvalidDifficultyError):
            threshold(difficulty)

    def test_to_hex_keeps_low_bytes_when_too_wide(self):
        assert to_hex((1 << 256) + 5) == "00" * 31 + "05"


class TestDigestBelowThreshold:
    def test_below_equal_above(self):
        target = "00" * 31 + "10"
        assert digest_below_threshold(bytes(31) + b"\x0f", target) is True
        assert digest_below_threshold(bytes(31) + b"\x10", target) is False
        assert digest_below_threshold(bytes(31) + b"\x11", target) is False

    def test_big_endian_comparison(self):
        target = "01" + "00" * 31
        assert digest_below_threshold(b"\x00" + b"\xff" * 31, target) is True
        assert digest_below_threshold(b"\x01" + b"\x00" * 31, target) is False

    def test_length_mismatch_is_an_error(self):
        with pytest.raises(InvalidTargetError, match="length"):
            digest_below_threshold(bytes(32), "abcd")

    @pytest.mark.parametrize("target", ["zz" * 32, "0" * 63, "00 " * 32, ""])
    def test_malformed_hex_is_an_error(self, target):
        with pytest.raises(InvalidTargetError):
            digest_below_threshold(bytes(32), target)

    def test_uppercase_hex_accepted(self):
        assert digest_below_threshold(bytes(32), "FF" * 32) is True
