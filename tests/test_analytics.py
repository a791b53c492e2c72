from datetime import date, time, timedelta
from types import SimpleNamespace

import pytest

from academics.schedule import is_scheduled, session_dates, session_window
from attendance.analytics import (
    absence_streaks,
    consistency_index,
    cumulative_rates,
    date_statistics,
    enrollment_insights,
    trend,
)
from attendance.classifier import ABSENT, EXCUSED, LATE, NOT_ENROLLED, ON_TIME

from .conftest import MONDAY, at


def day_records(*statuses, start=MONDAY):
    return [
        SimpleNamespace(date=start + timedelta(days=i), status=status)
        for i, status in enumerate(statuses)
    ]


def test_perfect_attendance_is_fully_consistent():
    assert consistency_index(day_records(ON_TIME, LATE, ON_TIME)) == 1.0


def test_alternating_attendance_is_inconsistent():
    records = day_records(ON_TIME, ABSENT, ON_TIME, ABSENT)
    assert consistency_index(records) == pytest.approx(0.0)


def test_consistency_ignores_excused_days_and_short_histories():
    assert consistency_index(day_records(ON_TIME, EXCUSED, ON_TIME)) == 1.0
    assert consistency_index(day_records(ABSENT)) == 1.0
    assert consistency_index(day_records(ABSENT, ABSENT)) == 1.0


def test_cumulative_rates():
    rates = cumulative_rates(day_records(ON_TIME, ABSENT, NOT_ENROLLED, LATE))
    assert rates == pytest.approx([100.0, 50.0, 200 / 3])


def test_trend_classification():
    assert trend([50, 60, 70, 80])["classification"] == "IMPROVING"
    assert trend([80, 70, 60, 50])["classification"] == "DECLINING"
    assert trend([70, 70, 70])["classification"] == "STABLE"
    assert trend([50, 90, 40, 95, 45])["classification"] == "VOLATILE"
    assert trend([80]) == {"slope": 0.0, "r_squared": 1.0, "classification": "STABLE"}


def test_trend_slope_is_rounded():
    result = trend([50, 60, 70, 80])
    assert result["slope"] == 10.0
    assert result["r_squared"] == 1.0


def test_absence_streaks():
    records = day_records(ABSENT, ABSENT, ABSENT, ON_TIME, ABSENT, EXCUSED, ABSENT)
    assert absence_streaks(records) == {"longest": 3, "current": 2}
    assert absence_streaks([]) == {"longest": 0, "current": 0}


def test_enrollment_insights_without_history():
    insights = enrollment_insights([])
    assert insights["latest_rate"] is None
    assert insights["trend"]["classification"] == "STABLE"


def test_date_statistics():
    records = day_records(ON_TIME) + day_records(LATE) + day_records(NOT_ENROLLED) + day_records(ABSENT)
    records += day_records(EXCUSED, start=MONDAY + timedelta(days=2))
    rows = date_statistics(records)
    assert [r["date"] for r in rows] == ["2025-01-06", "2025-01-08"]
    assert rows[0]["attendance_rate"] == pytest.approx(2 / 3)
    assert rows[0]["not_enrolled"] == 1
    assert rows[1]["attendance_rate"] == 1.0


def schedule(**overrides):
    values = dict(
        start_date=MONDAY,
        end_date=date(2025, 1, 19),
        weekday_names=["monday", "wednesday"],
        start_time=time(9, 0),
        end_time=time(12, 0),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_session_dates_follow_weekdays():
    assert session_dates(schedule()) == [
        date(2025, 1, 6),
        date(2025, 1, 8),
        date(2025, 1, 13),
        date(2025, 1, 15),
    ]
    assert session_dates(schedule(), until=date(2025, 1, 10)) == [date(2025, 1, 6), date(2025, 1, 8)]
    assert session_dates(schedule(), since=date(2025, 1, 14)) == [date(2025, 1, 15)]
    assert len(session_dates(schedule(weekday_names=[]))) == 14


def test_is_scheduled():
    assert is_scheduled(schedule(), MONDAY)
    assert not is_scheduled(schedule(), MONDAY + timedelta(days=1))
    assert not is_scheduled(schedule(), date(2025, 1, 20))


def test_session_window():
    assert session_window(schedule(), MONDAY) == (at(MONDAY, 9), at(MONDAY, 12))
    start, end = session_window(schedule(start_time=time(22, 0), end_time=time(1, 0)), MONDAY)
    assert end - start == timedelta(hours=3)
    assert session_window(schedule(start_time=None), MONDAY) == (None, None)
    assert session_window(schedule(end_time=None), MONDAY) == (at(MONDAY, 9), None)
