"""Tests for load-based difficulty calibration."""

import pytest

from wisdom.services.difficulty_service import calibrate


@pytest.mark.parametrize(
    ("active", "expected"),
    [
        (-1, 0),
        (0, 0),
        (1, 0),
        (2, 10),
        (5, 40),
        (10, 90),
        # Quadratic penalty starts past 10 connections: 100 + 1
        (11, 101),
        (12, 114),
        (15, 165),
        (20, 200),
        (1000, 200),
    ],
)
def test_calibrate(active, expected):
    assert calibrate(active) == expected


def test_calibrate_is_monotonic_and_bounded():
    values = [calibrate(n) for n in range(0, 100)]
    assert all(a <= b for a, b in zip(values, values[1:], strict=False))
    assert max(values) == 200
