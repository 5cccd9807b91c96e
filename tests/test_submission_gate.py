from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.core.exceptions import SubmissionBlockedError
from app.schemas.settings import ManagerSettings
from app.services.submission_gate import blocked_goals, check_submission, is_submission_blocked

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def goal(name, deadline=None):
    return SimpleNamespace(name=name, deadline=deadline)


@pytest.mark.parametrize(
    "deadline, allow_late, blocked",
    [
        (None, False, False),
        (NOW + timedelta(days=1), False, False),
        (NOW - timedelta(days=1), False, True),
        (NOW - timedelta(days=1), True, False),
        (NOW - timedelta(days=1), None, False),
    ],
)
def test_is_submission_blocked(deadline, allow_late, blocked):
    settings = ManagerSettings(allow_late_submissions=allow_late)
    assert is_submission_blocked(goal("G", deadline), settings, NOW) is blocked


def test_deadline_equal_to_now_is_not_passed():
    assert is_submission_blocked(goal("G", NOW), ManagerSettings(allow_late_submissions=False), NOW) is False


def test_missing_settings_allow_late_submissions():
    assert is_submission_blocked(goal("G", NOW - timedelta(days=3)), None, NOW) is False


def test_naive_deadlines_are_treated_as_utc():
    naive = (NOW - timedelta(hours=1)).replace(tzinfo=None)
    assert is_submission_blocked(goal("G", naive), ManagerSettings(allow_late_submissions=False), NOW) is True


def test_check_submission_lists_every_blocked_goal_in_order():
    settings = ManagerSettings(allow_late_submissions=False)
    goals = [
        goal("Late B", NOW - timedelta(days=2)),
        goal("On time", NOW + timedelta(days=2)),
        goal("Late A", NOW - timedelta(days=1)),
    ]
    assert [g.name for g in blocked_goals(goals, settings, NOW)] == ["Late B", "Late A"]
    with pytest.raises(SubmissionBlockedError) as exc:
        check_submission(goals, settings, NOW)
    assert exc.value.goal_names == ["Late B", "Late A"]
    assert exc.value.status_code == 409
    assert "Late B, Late A" in exc.value.message


def test_check_submission_passes_when_late_allowed():
    check_submission([goal("Late", NOW - timedelta(days=1))], ManagerSettings(allow_late_submissions=True), NOW)
