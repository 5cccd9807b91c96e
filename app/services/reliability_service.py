"""
Submission reliability: how many reports came in against how many the
projects' reporting frequencies call for.

    expected(project) = ceil(days * multiplier(frequency) * goal_count)
    rate              = clamp(actual / expected * 100, 0, 100)

Custom frequencies have no fixed expectation and count as 0.
"""
import math
from fractions import Fraction
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from app.models.project import ReportFrequency
from app.schemas.report import SubmissionReliability

FREQUENCY_MULTIPLIERS: Dict[str, Fraction] = {
    ReportFrequency.DAILY.value: Fraction(1),
    ReportFrequency.WEEKLY.value: Fraction(1, 7),
    ReportFrequency.BI_WEEKLY.value: Fraction(1, 14),
    ReportFrequency.MONTHLY.value: Fraction(1, 30),
    ReportFrequency.CUSTOM.value: Fraction(0),
}

TREND_WEEKS = 4


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _multiplier(project: Any) -> Fraction:
    frequency = project.report_frequency
    if isinstance(frequency, ReportFrequency):
        frequency = frequency.value
    return FREQUENCY_MULTIPLIERS.get(frequency, Fraction(0))


def _goals_by_project(projects: Iterable[Any], goals: Iterable[Any]) -> Dict[Any, List[Any]]:
    grouped: Dict[Any, List[Any]] = {}
    for goal in goals:
        grouped.setdefault(goal.project_id, []).append(goal)
    return {p.id: grouped[p.id] for p in projects if grouped.get(p.id)}


def _count(reports: Iterable[Any], goal_ids: set, start: datetime, end: datetime) -> int:
    return sum(
        1 for r in reports
        if r.goal_id in goal_ids and start <= _as_utc(r.submission_date) <= end
    )


def calculate_reliability(
    projects: Iterable[Any],
    goals: Iterable[Any],
    reports: Iterable[Any],
    start: date,
    end: date,
) -> Optional[SubmissionReliability]:
    """None when no report is expected over the period."""
    projects = list(projects)
    reports = list(reports)
    by_project = _goals_by_project(projects, goals)
    multipliers = {p.id: _multiplier(p) for p in projects}

    period_start = datetime.combine(start, time.min, tzinfo=timezone.utc)
    period_end = datetime.combine(end, time.max, tzinfo=timezone.utc)
    days = (end - start).days + 1

    expected = actual = 0
    for project_id, project_goals in by_project.items():
        expected += math.ceil(days * multipliers[project_id] * len(project_goals))
        actual += _count(reports, {g.id for g in project_goals}, period_start, period_end)

    if expected == 0:
        return None

    trend = []
    for weeks_back in range(TREND_WEEKS - 1, -1, -1):
        week_end = period_end - timedelta(days=7 * weeks_back)
        week_start = week_end - timedelta(days=7)
        week_expected = week_actual = 0
        for project_id, project_goals in by_project.items():
            week_expected += math.ceil(7 * multipliers[project_id] * len(project_goals))
            week_actual += _count(reports, {g.id for g in project_goals}, week_start, week_end)
        week_rate = week_actual / week_expected * 100 if week_expected else 0.0
        trend.append(round(min(100.0, max(0.0, week_rate)), 2))

    rate = min(100.0, max(0.0, actual / expected * 100))
    return SubmissionReliability(rate=round(rate, 2), expected=expected, actual=actual, trend=trend)
