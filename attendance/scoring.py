from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .classifier import ABSENT, EXCUSED, LATE, NOT_ENROLLED, ON_TIME
from .errors import InvalidScoringConfig

COVERAGE_METHODS = ("sqrt", "linear", "log", "none")
WEIGHT_TOLERANCE = 0.01
# on-site days counted as one week for the streak bonus
DAYS_PER_WEEK = 5

NUMERIC_FIELDS = (
    "weight_quality",
    "weight_attendance",
    "weight_punctuality",
    "late_decay_constant",
    "late_minimum_credit",
    "late_null_estimate",
    "coverage_minimum",
    "perfect_attendance_bonus",
    "streak_bonus_per_week",
    "absence_penalty_multiplier",
)

DEFAULT_LATE_BRACKETS: Tuple[Tuple[str, int, int], ...] = (
    ("Minor", 1, 5),
    ("Moderate", 6, 15),
    ("Significant", 16, 30),
    ("Severe", 31, 60),
    ("Very Late", 61, 999),
)


@dataclass(frozen=True)
class ScoringParams:
    """
    Immutable scoring configuration passed to every aggregation call.

    Weights are percentages and must sum to 100; anything else is rejected
    at construction with ``InvalidScoringConfig``.
    """

    weight_quality: float = 55.0
    weight_attendance: float = 35.0
    weight_punctuality: float = 10.0
    late_decay_constant: float = 43.3
    late_minimum_credit: float = 0.05
    late_null_estimate: float = 0.60
    coverage_enabled: bool = True
    coverage_method: str = "sqrt"
    coverage_minimum: float = 0.10
    late_brackets: Tuple[Tuple[str, int, int], ...] = DEFAULT_LATE_BRACKETS
    # percentage points added or removed after coverage
    perfect_attendance_bonus: float = 0.0
    streak_bonus_per_week: float = 0.0
    absence_penalty_multiplier: float = 1.0

    def __post_init__(self):
        for name in NUMERIC_FIELDS:
            if not math.isfinite(getattr(self, name)):
                raise InvalidScoringConfig(f"{name} must be a finite number")
        weights = (
            self.weight_quality,
            self.weight_attendance,
            self.weight_punctuality,
        )
        if any(w < 0 for w in weights):
            raise InvalidScoringConfig("Weights cannot be negative")
        total = sum(weights)
        if abs(total - 100) > WEIGHT_TOLERANCE:
            raise InvalidScoringConfig(
                f"Weights must total 100% (currently {total:g}%)",
                weight_total=total,
            )
        if self.late_decay_constant <= 0:
            raise InvalidScoringConfig("Late decay constant must be positive")
        for name in ("late_minimum_credit", "late_null_estimate", "coverage_minimum"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise InvalidScoringConfig(f"{name} must be between 0 and 1")
        if self.coverage_method not in COVERAGE_METHODS:
            raise InvalidScoringConfig(
                f"Unknown coverage method '{self.coverage_method}'"
            )
        if self.perfect_attendance_bonus < 0 or self.streak_bonus_per_week < 0:
            raise InvalidScoringConfig("Bonuses cannot be negative")
        if self.absence_penalty_multiplier < 1:
            raise InvalidScoringConfig("Absence penalty multiplier must be at least 1")

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "ScoringParams":
        kwargs = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        brackets = kwargs.get("late_brackets")
        if brackets is not None:
            kwargs["late_brackets"] = _normalize_brackets(brackets)
        return cls(**kwargs)


def _normalize_brackets(brackets) -> Tuple[Tuple[str, int, int], ...]:
    out = []
    for b in brackets:
        if isinstance(b, dict):
            out.append((str(b["label"]), int(b["min"]), int(b["max"])))
        else:
            label, lo, hi = b
            out.append((str(label), int(lo), int(hi)))
    return tuple(out)


@dataclass(frozen=True)
class DayMark:
    status: str
    late_minutes: Optional[float] = None


@dataclass
class ScoreResult:
    on_time: int = 0
    late: int = 0
    absent: int = 0
    excused: int = 0
    not_enrolled: int = 0
    total: int = 0
    effective_days: int = 0
    total_possible_days: Optional[int] = None
    late_credit: float = 0.0
    attendance_rate: Optional[float] = None
    punctuality_rate: Optional[float] = None
    quality_score: Optional[float] = None
    coverage_factor: float = 1.0
    weighted_score: Optional[float] = None
    bonus: float = 0.0
    penalty: float = 0.0
    adjusted_score: Optional[float] = None
    late_breakdown: Dict[str, int] = field(default_factory=dict)

    @property
    def insufficient_data(self) -> bool:
        return self.effective_days == 0

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["insufficient_data"] = self.insufficient_data
        return data


def late_credit(late_minutes, params: ScoringParams) -> float:
    """Credit in [late_minimum_credit, 1] for a single late day."""
    if late_minutes is None:
        return params.late_null_estimate
    if late_minutes <= 0:
        return 1.0
    decayed = math.exp(-float(late_minutes) / params.late_decay_constant)
    return max(params.late_minimum_credit, decayed)


def coverage_factor(effective_days, total_possible_days, params: ScoringParams) -> float:
    if not params.coverage_enabled or not total_possible_days:
        return 1.0
    ratio = max(0.0, effective_days / total_possible_days)
    method = params.coverage_method
    if method == "none":
        return 1.0
    if method == "linear":
        factor = ratio
    elif method == "log":
        factor = math.log(1 + ratio * (math.e - 1))
    else:
        factor = math.sqrt(ratio)
    return max(params.coverage_minimum, min(factor, 1.0))


def late_bracket(late_minutes, brackets=DEFAULT_LATE_BRACKETS) -> Optional[str]:
    if late_minutes is None or late_minutes <= 0:
        return None
    for label, lo, hi in brackets:
        if lo <= late_minutes <= hi:
            return label
    return brackets[-1][0] if brackets else None


def score(
    records: Iterable,
    params: ScoringParams,
    total_possible_days: Optional[int] = None,
) -> ScoreResult:
    """
    Aggregate per-date records into attendance, punctuality and a weighted
    score.

    ``records`` are attendance records or ``DayMark`` values; only ``status``
    and ``late_minutes`` are read. Rates are fractions in [0, 1]. With no
    effective days the rates stay ``None`` and ``insufficient_data`` is set;
    this function does not raise for in-range input.
    """
    result = ScoreResult(total_possible_days=total_possible_days)
    for record in records:
        status = record.status
        result.total += 1
        if status == ON_TIME:
            result.on_time += 1
        elif status == LATE:
            result.late += 1
            minutes = getattr(record, "late_minutes", None)
            result.late_credit += late_credit(minutes, params)
            label = late_bracket(minutes, params.late_brackets) or "Unknown"
            result.late_breakdown[label] = result.late_breakdown.get(label, 0) + 1
        elif status == EXCUSED:
            result.excused += 1
        elif status == NOT_ENROLLED:
            result.not_enrolled += 1
        elif status == ABSENT:
            result.absent += 1
        else:
            # unrecognized statuses are expected days with no attendance
            result.absent += 1

    result.effective_days = result.total - result.not_enrolled
    result.coverage_factor = coverage_factor(
        result.effective_days, total_possible_days, params
    )
    if result.insufficient_data:
        return result

    days = result.effective_days
    result.attendance_rate = (result.on_time + result.late + result.excused) / days
    result.punctuality_rate = result.on_time / days
    result.quality_score = (result.on_time * 1.0 + result.late_credit) / days
    raw = (
        params.weight_quality * result.quality_score
        + params.weight_attendance * result.attendance_rate
        + params.weight_punctuality * result.punctuality_rate
    ) / 100
    result.weighted_score = result.coverage_factor * raw
    apply_modifiers(result, params)
    return result


def apply_modifiers(result: ScoreResult, params: ScoringParams) -> ScoreResult:
    """
    Fill ``adjusted_score``: the weighted score plus bonuses, minus the extra
    absence penalty, clamped to [0, 1]. Defaults leave it equal to
    ``weighted_score``.
    """
    if result.weighted_score is None:
        return result
    bonus = 0.0
    if result.attendance_rate >= 1 and params.perfect_attendance_bonus > 0:
        bonus += params.perfect_attendance_bonus
    if params.streak_bonus_per_week > 0:
        weeks = (result.on_time + result.late) // DAYS_PER_WEEK
        bonus += weeks * params.streak_bonus_per_week
    penalty = 0.0
    if params.absence_penalty_multiplier > 1 and result.absent:
        absent_pct = result.absent / result.effective_days * 100
        penalty = absent_pct * (params.absence_penalty_multiplier - 1)
    result.bonus = bonus / 100
    result.penalty = penalty / 100
    adjusted = result.weighted_score + result.bonus - result.penalty
    result.adjusted_score = min(1.0, max(0.0, adjusted))
    return result


def decay_curve(params: ScoringParams, max_minutes=120, points=24) -> List[Dict[str, float]]:
    curve = []
    for i in range(points + 1):
        minutes = max_minutes * i / points
        curve.append(
            {
                "minutes": round(minutes),
                "credit": round(late_credit(minutes, params) * 100, 1),
            }
        )
    return curve


def coverage_curve(params: ScoringParams, total_sessions=30) -> List[Dict[str, float]]:
    return [
        {
            "days": days,
            "factor": round(coverage_factor(days, total_sessions, params), 3),
        }
        for days in range(total_sessions + 1)
    ]
