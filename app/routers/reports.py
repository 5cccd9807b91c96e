from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.exceptions import AccessDeniedError
from app.database import get_db
from app.models.employee import Employee
from app.models.project import Project
from app.models.report import Report
from app.routers.deps import (
    get_capabilities,
    get_current_employee,
    get_org_employee,
    get_scope_resolver,
    get_scoring_client,
)
from app.schemas.permissions import Capabilities, ScopeFilter
from app.schemas.report import (
    GoalEvaluation,
    GoalOutcome,
    HolisticScore,
    OverrideRequest,
    ReportFeedbackRequest,
    ReportFeedbackResponse,
    ReportResponse,
    ReportSubmit,
    SubmissionReliability,
)
from app.services.ai_scoring import strip_html
from app.services.evaluation_service import (
    EvaluationAggregator,
    filter_reports_by_period,
    red_flag_reports,
    to_response,
)
from app.services.goal_service import GoalService
from app.services.reliability_service import calculate_reliability
from app.services.scope_resolver import ScopeResolver
from app.services.settings_service import SettingsService

router = APIRouter(prefix="/reports", tags=["Reports"])

DEFAULT_PERIOD_DAYS = 30


def _org_reports(db: Session, organization_id: int) -> List[Report]:
    return (
        db.query(Report)
        .join(Employee, Report.employee_id == Employee.id)
        .filter(Employee.organization_id == organization_id)
        .order_by(Report.submission_date.desc(), Report.id.desc())
        .all()
    )


def _resolve_author(payload: ReportSubmit, current: Employee, resolver: ScopeResolver, db: Session) -> Employee:
    """Reports are filed by the caller, or by a manager for someone in their scope."""
    if payload.employee_id is None or payload.employee_id == current.id:
        return current
    employee = get_org_employee(payload.employee_id, current, db)
    if not resolver.is_in_scope(employee, current.id):
        raise AccessDeniedError("You can only submit reports for employees in your scope.")
    return employee


@router.get("", response_model=List[ReportResponse])
def list_reports(
    scope: ScopeFilter = Query(ScopeFilter.DIRECT_REPORTS),
    employee_id: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    red_flags_only: bool = False,
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    db: Session = Depends(get_db),
):
    reports = _org_reports(db, current.organization_id)
    visible = resolver.filter_reports(reports, resolver.resolve_scope(current.id, scope, (), capabilities), current.id)
    if employee_id is not None:
        visible = [r for r in visible if r.employee_id == employee_id]
    visible = filter_reports_by_period(visible, start, end)
    if red_flags_only:
        visible = red_flag_reports(visible)
    return [to_response(r) for r in visible]


@router.post("/preview", response_model=List[GoalEvaluation])
def preview_report(
    payload: ReportSubmit,
    current: Employee = Depends(get_current_employee),
    scorer=Depends(get_scoring_client),
    db: Session = Depends(get_db),
):
    """Evaluate a draft against each goal without saving anything. Blocked goals get a 409 first."""
    goals = GoalService(db, current.organization_id).get_goals(payload.goal_ids)
    manager_settings = SettingsService(db, current.organization_id).load()
    return EvaluationAggregator(db, scorer, current.organization_id).preview(
        payload.report_text, goals, manager_settings
    )


@router.post("", response_model=List[ReportResponse], status_code=status.HTTP_201_CREATED)
def submit_report(
    payload: ReportSubmit,
    current: Employee = Depends(get_current_employee),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    scorer=Depends(get_scoring_client),
    db: Session = Depends(get_db),
):
    """
    One report per selected goal, all saved together or none at all.
    Rejected up front with 409 if any goal is past its deadline and late
    submissions are disabled.
    """
    author = _resolve_author(payload, current, resolver, db)
    goals = GoalService(db, current.organization_id).get_goals(payload.goal_ids)
    manager_settings = SettingsService(db, current.organization_id).load()
    reports = EvaluationAggregator(db, scorer, current.organization_id).submit(
        author, goals, payload.report_text, manager_settings
    )
    return [to_response(r) for r in reports]


@router.post("/independent", response_model=List[GoalOutcome], status_code=status.HTTP_207_MULTI_STATUS)
def submit_report_independent(
    payload: ReportSubmit,
    current: Employee = Depends(get_current_employee),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    scorer=Depends(get_scoring_client),
    db: Session = Depends(get_db),
):
    """Like POST /reports, but each goal succeeds or fails on its own."""
    author = _resolve_author(payload, current, resolver, db)
    goals = GoalService(db, current.organization_id).get_goals(payload.goal_ids)
    manager_settings = SettingsService(db, current.organization_id).load()
    return EvaluationAggregator(db, scorer, current.organization_id).submit_independent(
        author, goals, payload.report_text, manager_settings
    )


@router.post("/feedback", response_model=ReportFeedbackResponse)
def report_feedback(
    payload: ReportFeedbackRequest,
    current: Employee = Depends(get_current_employee),
    scorer=Depends(get_scoring_client),
    db: Session = Depends(get_db),
):
    goal = GoalService(db, current.organization_id).get_goal(payload.goal_id)
    return ReportFeedbackResponse(feedback=scorer.get_report_feedback(strip_html(payload.report_text), goal.criteria or []))


@router.put("/{report_id}/override", response_model=ReportResponse)
def apply_override(
    report_id: int,
    payload: OverrideRequest,
    current: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    report = EvaluationAggregator(db, org_id=current.organization_id).apply_override(
        report_id, current, payload.score, payload.reasoning
    )
    return to_response(report)


@router.delete("/{report_id}/override", response_model=ReportResponse)
def clear_override(
    report_id: int,
    current: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    report = EvaluationAggregator(db, org_id=current.organization_id).clear_override(report_id, current)
    return to_response(report)


@router.get("/holistic/{employee_id}", response_model=HolisticScore)
def holistic(
    employee_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    scope: ScopeFilter = Query(ScopeFilter.DIRECT_REPORTS),
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    scorer=Depends(get_scoring_client),
    db: Session = Depends(get_db),
):
    employee = get_org_employee(employee_id, current, db)
    if employee.id != current.id:
        visible, _ = resolver.resolve_employee_ids(current.id, scope, capabilities)
        if employee.id not in visible:
            raise AccessDeniedError("This employee is outside your scope.")
    return EvaluationAggregator(db, scorer, current.organization_id).holistic_for(employee, start, end)


@router.get("/reliability", response_model=Optional[SubmissionReliability])
def reliability(
    start: Optional[date] = None,
    end: Optional[date] = None,
    scope: ScopeFilter = Query(ScopeFilter.DIRECT_REPORTS),
    current: Employee = Depends(get_current_employee),
    capabilities: Capabilities = Depends(get_capabilities),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    db: Session = Depends(get_db),
):
    """Expected vs. actual submissions across the caller's goals; null when nothing is expected."""
    end = end or datetime.now(timezone.utc).date()
    start = start or end - timedelta(days=DEFAULT_PERIOD_DAYS)

    result = resolver.resolve_scope(current.id, scope, (), capabilities)
    reports = resolver.filter_reports(_org_reports(db, current.organization_id), result, current.id)
    service = GoalService(db, current.organization_id)
    if current.is_manager or resolver.is_manager(current.id):
        goals = service.list_for_manager(resolver, current.id)
    else:
        goals = service.list_for_employee(current)
    projects = db.query(Project).filter(Project.organization_id == current.organization_id).all()
    return calculate_reliability(projects, goals, reports, start, end)
