from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.employee import Employee
from app.routers.deps import get_current_employee, get_scope_resolver, require_manager
from app.schemas.goal import GoalCreate, GoalResponse, SubmissionStatus
from app.services.goal_service import GoalService
from app.services.scope_resolver import ScopeResolver
from app.services.settings_service import SettingsService
from app.services.submission_gate import deadline_passed, is_submission_blocked

router = APIRouter(prefix="/goals", tags=["Goals"])


@router.get("", response_model=List[GoalResponse])
def list_goals(
    current: Employee = Depends(get_current_employee),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    db: Session = Depends(get_db),
):
    """
    Managers see goals they created plus goals of projects their direct
    reports are assigned to. Employees see the goals of their own projects.
    """
    service = GoalService(db, current.organization_id)
    if current.is_manager or resolver.is_manager(current.id):
        return service.list_for_manager(resolver, current.id)
    return service.list_for_employee(current)


@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
def create_goal(
    payload: GoalCreate,
    current: Employee = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return GoalService(db, current.organization_id).create_goal(payload, current)


@router.get("/{goal_id}/submission-status", response_model=SubmissionStatus)
def submission_status(
    goal_id: int,
    current: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    goal = GoalService(db, current.organization_id).get_goal(goal_id)
    manager_settings = SettingsService(db, current.organization_id).load()
    now = datetime.now(timezone.utc)
    return SubmissionStatus(
        goal_id=goal.id,
        goal_name=goal.name,
        deadline=goal.deadline,
        deadline_passed=deadline_passed(goal, now),
        late_submissions_allowed=manager_settings.late_submissions_allowed,
        blocked=is_submission_blocked(goal, manager_settings, now),
    )
