from datetime import date

import pytest

from attendance.classifier import (
    ABSENT,
    LATE,
    MISSED,
    MODERATE,
    ON_TIME,
    clamp_grace,
    classify,
)

from .conftest import at

DAY = date(2025, 1, 6)
START = at(DAY, 9)
END = at(DAY, 12)


def test_scenario_on_time_within_grace():
    result = classify(START, END, 15, at(DAY, 9, 10))
    assert result.status == ON_TIME
    assert result.late_minutes is None
    assert result.severity is None


def test_scenario_late_after_grace():
    result = classify(START, END, 15, at(DAY, 9, 20))
    assert result.status == LATE
    assert result.late_minutes == 5
    assert result.severity == MODERATE


def test_scenario_late_after_session_end():
    result = classify(START, END, 15, at(DAY, 12, 5))
    assert result.status == LATE
    assert result.severity == MISSED
    assert result.late_minutes == 170
    assert "after session ended" in result.message


def test_no_check_in_is_absent():
    assert classify(START, END, 15, None).status == ABSENT


@pytest.mark.parametrize("minute", [0, 1, 7, 15])
def test_anything_up_to_grace_end_is_on_time(minute):
    assert classify(START, END, 15, at(DAY, 9, minute)).status == ON_TIME


def test_zero_grace_requires_exact_start():
    assert classify(START, END, 0, START).status == ON_TIME
    late = classify(START, END, 0, at(DAY, 9, 0, 1))
    assert late.status == LATE
    assert late.late_minutes == 1


def test_partial_minutes_round_up():
    result = classify(START, END, 15, at(DAY, 9, 16, 30))
    assert result.late_minutes == 2


def test_check_in_exactly_at_session_end_is_moderate():
    assert classify(START, END, 15, END).severity == MODERATE


@pytest.mark.parametrize("grace,expected", [(-5, 0), (None, 0), (30, 30), (90, 60)])
def test_grace_is_clamped(grace, expected):
    assert clamp_grace(grace) == expected


def test_oversized_grace_is_capped_at_an_hour():
    assert classify(START, END, 240, at(DAY, 10, 0)).status == ON_TIME
    result = classify(START, END, 240, at(DAY, 10, 5))
    assert result.status == LATE
    assert result.late_minutes == 5


def test_session_without_end_time_is_never_missed():
    result = classify(START, None, 15, at(DAY, 9, 20))
    assert result.status == LATE
    assert result.late_minutes == 5
    assert result.severity == MODERATE
    assert classify(START, None, 15, at(DAY, 18, 0)).severity == MODERATE
