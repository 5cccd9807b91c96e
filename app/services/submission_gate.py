"""
Deadline / late-policy admission control for report submission.

A goal is blocked iff it has a deadline that is already in the past AND the
organization does not allow late submissions. Evaluated for every selected
goal before any AI call is made.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from app.core.exceptions import SubmissionBlockedError
from app.schemas.settings import ManagerSettings

logger = logging.getLogger(__name__)


def _as_aware(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def deadline_passed(goal: Any, now: Optional[datetime] = None) -> bool:
    deadline = getattr(goal, "deadline", None)
    if deadline is None:
        return False
    now = _as_aware(now or datetime.now(timezone.utc))
    return _as_aware(deadline) < now


def is_submission_blocked(goal: Any, settings: Optional[ManagerSettings], now: Optional[datetime] = None) -> bool:
    late_allowed = settings.late_submissions_allowed if settings is not None else True
    return deadline_passed(goal, now) and not late_allowed


def blocked_goals(goals: Iterable[Any], settings: Optional[ManagerSettings], now: Optional[datetime] = None) -> List[Any]:
    """Blocked goals, in selection order."""
    return [g for g in goals if is_submission_blocked(g, settings, now)]


def check_submission(goals: Iterable[Any], settings: Optional[ManagerSettings], now: Optional[datetime] = None) -> None:
    """Reject the whole selection if any goal is blocked, naming every offender."""
    blocked = blocked_goals(goals, settings, now)
    if blocked:
        names = [g.name for g in blocked]
        logger.warning(f"Submission rejected by deadline policy for goals: {names}")
        raise SubmissionBlockedError(names)
