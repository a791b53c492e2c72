from __future__ import annotations

import math
from collections import Counter
from typing import Any, Dict, Iterable, List

from .classifier import ABSENT, EXCUSED, LATE, NOT_ENROLLED, ON_TIME, PRESENT_STATUSES

TREND_WINDOW = 6
VOLATILE_R2 = 0.3
TREND_SLOPE = 2.0


def _counted(records) -> List:
    """Records that count toward a student's pattern, ordered by date."""
    return sorted(
        (r for r in records if r.status not in (EXCUSED, NOT_ENROLLED)),
        key=lambda r: r.date,
    )


def consistency_index(records: Iterable) -> float:
    """1 - coefficient of variation of the present/absent pattern, floored at 0."""
    pattern = [1 if r.status in PRESENT_STATUSES else 0 for r in _counted(records)]
    if len(pattern) < 2:
        return 1.0
    mean = sum(pattern) / len(pattern)
    if mean == 0:
        return 1.0
    variance = sum((v - mean) ** 2 for v in pattern) / len(pattern)
    return max(0.0, 1 - math.sqrt(variance) / mean)


def cumulative_rates(records: Iterable) -> List[float]:
    rates = []
    present = 0
    for i, record in enumerate(_counted(records), start=1):
        if record.status in PRESENT_STATUSES:
            present += 1
        rates.append(present / i * 100)
    return rates


def trend(rates: List[float]) -> Dict[str, Any]:
    """Least-squares trend of a rate series (percent points per day)."""
    n = len(rates)
    if n < 2:
        return {"slope": 0.0, "r_squared": 1.0, "classification": "STABLE"}
    xs = range(1, n + 1)
    x_mean = (n + 1) / 2
    y_mean = sum(rates) / n
    num = sum((x - x_mean) * (y - y_mean) for x, y in zip(xs, rates))
    den = sum((x - x_mean) ** 2 for x in xs)
    slope = num / den if den else 0.0
    intercept = y_mean - slope * x_mean
    ss_res = sum((y - (slope * x + intercept)) ** 2 for x, y in zip(xs, rates))
    ss_tot = sum((y - y_mean) ** 2 for y in rates)
    r_squared = 1 - ss_res / ss_tot if ss_tot else 1.0

    if r_squared < VOLATILE_R2:
        label = "VOLATILE"
    elif slope > TREND_SLOPE:
        label = "IMPROVING"
    elif slope < -TREND_SLOPE:
        label = "DECLINING"
    else:
        label = "STABLE"
    return {
        "slope": round(slope, 1),
        "r_squared": round(r_squared, 2),
        "classification": label,
    }


def absence_streaks(records: Iterable) -> Dict[str, int]:
    longest = current = 0
    for record in _counted(records):
        if record.status == ABSENT:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return {"longest": longest, "current": current}


def enrollment_insights(records: Iterable) -> Dict[str, Any]:
    records = list(records)
    rates = cumulative_rates(records)
    return {
        "consistency_index": round(consistency_index(records), 2),
        "trend": trend(rates[-TREND_WINDOW:]),
        "absence_streak": absence_streaks(records),
        "latest_rate": rates[-1] if rates else None,
    }


def date_statistics(records: Iterable) -> List[Dict[str, Any]]:
    """Per-date counts for a session, oldest first."""
    by_date: Dict[Any, Counter] = {}
    for record in records:
        by_date.setdefault(record.date, Counter())[record.status] += 1
    rows = []
    for day in sorted(by_date):
        counts = by_date[day]
        expected = sum(counts.values()) - counts[NOT_ENROLLED]
        attended = counts[ON_TIME] + counts[LATE] + counts[EXCUSED]
        rows.append(
            {
                "date": day.isoformat(),
                "on_time": counts[ON_TIME],
                "late": counts[LATE],
                "excused": counts[EXCUSED],
                "absent": counts[ABSENT],
                "not_enrolled": counts[NOT_ENROLLED],
                "attendance_rate": (attended / expected) if expected else None,
            }
        )
    return rows
