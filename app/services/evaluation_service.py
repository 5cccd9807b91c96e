"""
Evaluation Service Layer

Turns per-criterion AI scores into one weighted evaluation per goal and
persists them as Reports.

- Router -> EvaluationAggregator (this module) -> AI scoring client / Models
- The weighted average divides by the goal's actual weight total, not 100
- Multi-goal submission is all-or-nothing: either every goal gets a Report or none does
- After creation only the manager override pair is ever written
"""
import math
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AccessDeniedError, AIError, AppException, NotFoundError, ValidationError
from app.core.metrics_catalog import metrics_for
from app.models.employee import Employee
from app.models.goal import Goal
from app.models.organization import Organization
from app.models.project import Project
from app.models.report import Report
from app.schemas.report import (
    GoalEvaluation,
    GoalOutcome,
    HolisticScore,
    KeySkill,
    ReportResponse,
    ScoreConsistency,
)
from app.schemas.settings import ManagerSettings
from app.services.ai_scoring import strip_html
from app.services.audit import AuditService
from app.services.base import BaseService
from app.services.scope_resolver import ScopeResolver
from app.services.submission_gate import check_submission

OVERRIDE_MIN_SCORE = 0.0
OVERRIDE_MAX_SCORE = 10.0


# ----------------------------------------------------------------------
# Pure scoring helpers
# ----------------------------------------------------------------------

def _scores_by_name(criterion_scores: Iterable[Any]) -> Dict[str, float]:
    """First score per criterion name. Accepts CriterionScore models or stored dicts."""
    scores: Dict[str, float] = {}
    for item in criterion_scores or []:
        if isinstance(item, dict):
            name, score = item.get("criterion_name", item.get("criterionName")), item.get("score")
        else:
            name, score = item.criterion_name, item.score
        if name is None or score is None or name in scores:
            continue
        scores[name] = float(score)
    return scores


def missing_criteria(criteria: Iterable[Dict[str, Any]], criterion_scores: Iterable[Any]) -> List[str]:
    """Names of goal criteria the AI left unscored, in criteria order."""
    scored = _scores_by_name(criterion_scores)
    return [c["name"] for c in criteria if c["name"] not in scored]


def weighted_score(criteria: Iterable[Dict[str, Any]], criterion_scores: Iterable[Any]) -> float:
    """
    sum(score * weight) / sum(weight), rounded to 2 decimals.

    Scores for names that are not criteria are ignored. An unscored criterion
    adds 0 to the numerator but its weight still counts. Scores are not clamped.

    The result stays within [min score, max score] only up to the 2-decimal
    rounding: three criteria all scored 6.666 give 6.67.
    """
    criteria = list(criteria)
    total_weight = sum(c.get("weight", 0) for c in criteria)
    if not criteria or total_weight == 0:
        return 0.0

    scored = _scores_by_name(criterion_scores)
    numerator = sum(scored.get(c["name"], 0.0) * c.get("weight", 0) for c in criteria)
    return round(numerator / total_weight, 2)


def display_score(report: Any) -> float:
    """The manager's override when one exists, otherwise the AI evaluation."""
    if report.manager_overall_score is not None:
        return report.manager_overall_score
    return report.evaluation_score


def _day(moment: Any) -> date:
    return moment.date() if isinstance(moment, datetime) else moment


def filter_reports_by_period(reports: Iterable[Any], start: Optional[date] = None, end: Optional[date] = None) -> List[Any]:
    """Reports submitted within [start, end], compared on whole days."""
    return [
        r for r in reports
        if (start is None or _day(r.submission_date) >= start)
        and (end is None or _day(r.submission_date) <= end)
    ]


def average_evaluation_score(reports: Iterable[Any]) -> float:
    scores = [r.evaluation_score for r in reports]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def holistic_score(reports: Iterable[Any], metric_scores: Optional[Dict[str, float]] = None) -> float:
    """
    Average evaluation score, blended 50/50 with the average standardized
    metric score when there is one.
    """
    report_avg = average_evaluation_score(reports)
    if metric_scores:
        metric_avg = sum(metric_scores.values()) / len(metric_scores)
        return round((report_avg + metric_avg) / 2, 2)
    return round(report_avg, 2)


def red_flag_reports(reports: Iterable[Any], threshold: Optional[float] = None) -> List[Any]:
    """Reports whose display score falls below the red-flag threshold."""
    threshold = settings.red_flag_threshold if threshold is None else threshold
    return [r for r in reports if display_score(r) < threshold]


def _criterion_totals(reports: Iterable[Any]) -> Dict[str, List[float]]:
    """Every score given per criterion name, in first-seen order."""
    totals: Dict[str, List[float]] = {}
    for report in reports:
        for name, score in _scores_by_name(report.criterion_scores).items():
            totals.setdefault(name, []).append(score)
    return totals


def key_skills(
    reports: Iterable[Any],
    limit: Optional[int] = None,
    coaching_threshold: Optional[float] = None,
) -> List[KeySkill]:
    """
    Criteria scored most often across `reports`, then by average score.
    Skills averaging below the coaching threshold are flagged.
    """
    limit = settings.key_skill_limit if limit is None else limit
    threshold = settings.coaching_threshold if coaching_threshold is None else coaching_threshold

    skills = [
        (name, len(values), sum(values) / len(values))
        for name, values in _criterion_totals(reports).items()
    ]
    skills.sort(key=lambda s: (-s[1], -s[2]))
    return [
        KeySkill(name=name, frequency=count, average_score=round(avg, 2), needs_coaching=avg < threshold)
        for name, count, avg in skills[:limit]
    ]


def team_criterion_averages(employee_id: int, reports: Iterable[Any], team_reports: Iterable[Any]) -> Dict[str, float]:
    """Per-criterion averages of peers' reports on the goals the employee reported on."""
    goal_ids = {r.goal_id for r in reports}
    peers = [r for r in team_reports if r.employee_id != employee_id and r.goal_id in goal_ids]
    return {name: round(sum(values) / len(values), 2) for name, values in _criterion_totals(peers).items()}


def score_consistency(reports: Iterable[Any]) -> Optional[ScoreConsistency]:
    scores = [r.evaluation_score for r in reports]
    if len(scores) < 2:
        return None

    mean = sum(scores) / len(scores)
    std_dev = math.sqrt(sum((s - mean) ** 2 for s in scores) / len(scores))
    cv = std_dev / mean * 100 if mean > 0 else 0.0
    value = min(100.0, max(0.0, 100 - cv * 10))
    return ScoreConsistency(value=round(value, 2), std_dev=round(std_dev, 2), cv=round(cv, 2))


def to_response(report: Report) -> ReportResponse:
    response = ReportResponse.model_validate(report)
    return response.model_copy(update={"display_score": display_score(report)})


# ----------------------------------------------------------------------
# Aggregator
# ----------------------------------------------------------------------

class EvaluationAggregator(BaseService):
    """
    Orchestrates evaluation and persistence of reports.
    The scoring client is injected so tests and routers choose the backend.
    """

    def __init__(self, db: Session, scorer: Any = None, org_id: Optional[int] = None):
        super().__init__(db, org_id)
        self.scorer = scorer

    # --- Evaluation ---

    def evaluate_goal(self, report_text: str, goal: Goal, knowledge_base: Optional[str] = None) -> GoalEvaluation:
        """One AI call for one goal. AIError propagates to the caller untouched."""
        criteria = goal.criteria or []
        evaluation = self.scorer.evaluate_report(
            report_text,
            criteria,
            instructions=goal.instructions,
            knowledge_base=knowledge_base,
        )

        missing = missing_criteria(criteria, evaluation.criteria_scores)
        if missing:
            self.log_warning(
                f"AI left criteria unscored for goal {goal.id}: {missing}",
                goal_id=goal.id,
            )

        return GoalEvaluation(
            goal_id=goal.id,
            goal_name=goal.name,
            evaluation_score=weighted_score(criteria, evaluation.criteria_scores),
            evaluation_reasoning=evaluation.reasoning,
            criterion_scores=evaluation.criteria_scores,
            missing_criteria=missing,
        )

    def _knowledge_base(self, goal: Goal) -> Optional[str]:
        project = goal.project or self.db.get(Project, goal.project_id)
        return project.knowledge_base if project is not None else None

    def _evaluate_named(self, report_text: str, goal: Goal) -> GoalEvaluation:
        """Scores the plain text of the report; markup never reaches the model."""
        try:
            return self.evaluate_goal(strip_html(report_text), goal, self._knowledge_base(goal))
        except AIError as e:
            self.log_error(f"Evaluation failed for goal '{goal.name}': {e.message}", goal_id=goal.id)
            raise AIError(
                f"Evaluation failed for goal '{goal.name}': {e.message}",
                details={"goal_id": goal.id, "goal": goal.name},
            ) from e

    def _validate_submission(self, goals: List[Goal], report_text: str) -> None:
        if not goals:
            raise ValidationError("Select at least one goal.", field="goal_ids")
        seen = set()
        for goal in goals:
            if goal.id in seen:
                raise ValidationError(f"Goal '{goal.name}' is selected more than once.", field="goal_ids")
            seen.add(goal.id)

        length = len(strip_html(report_text))
        if length < settings.min_report_length:
            raise ValidationError(
                f"Report must be at least {settings.min_report_length} characters long.",
                field="report_text",
            )
        if length > settings.max_report_length:
            raise ValidationError(
                f"Report must be at most {settings.max_report_length} characters long (currently {length}).",
                field="report_text",
            )

    def preview(
        self,
        report_text: str,
        goals: List[Goal],
        manager_settings: Optional[ManagerSettings] = None,
        now: Optional[datetime] = None,
    ) -> List[GoalEvaluation]:
        """Evaluate every goal in order, persisting nothing. Blocked goals are rejected first."""
        check_submission(goals, manager_settings, now)
        self._validate_submission(goals, report_text)
        return [self._evaluate_named(report_text, goal) for goal in goals]

    # --- Submission ---

    def _build_report(self, employee: Employee, evaluation: GoalEvaluation, report_text: str, submitted_at: datetime) -> Report:
        return Report(
            employee_id=employee.id,
            goal_id=evaluation.goal_id,
            report_text=report_text,
            submission_date=submitted_at,
            criterion_scores=[s.model_dump() for s in evaluation.criterion_scores],
            evaluation_score=evaluation.evaluation_score,
            evaluation_reasoning=evaluation.evaluation_reasoning,
        )

    def submit(
        self,
        employee: Employee,
        goals: List[Goal],
        report_text: str,
        manager_settings: Optional[ManagerSettings],
        now: Optional[datetime] = None,
    ) -> List[Report]:
        """
        All-or-nothing submission: deadline gate for every goal, then one AI
        call per goal in order, then one commit for all reports.
        """
        check_submission(goals, manager_settings, now)
        self._validate_submission(goals, report_text)

        evaluations = [self._evaluate_named(report_text, goal) for goal in goals]

        submitted_at = now or datetime.now(timezone.utc)
        reports = [self._build_report(employee, ev, report_text, submitted_at) for ev in evaluations]
        self.db.add_all(reports)
        self.commit()
        for report in reports:
            self.db.refresh(report)

        self.log_info(
            f"Employee {employee.id} submitted {len(reports)} report(s)",
            employee_id=employee.id,
        )
        return reports

    def submit_independent(
        self,
        employee: Employee,
        goals: List[Goal],
        report_text: str,
        manager_settings: Optional[ManagerSettings],
        now: Optional[datetime] = None,
    ) -> List[GoalOutcome]:
        """Each goal is its own unit of work; a failed goal does not undo the others."""
        check_submission(goals, manager_settings, now)
        self._validate_submission(goals, report_text)

        submitted_at = now or datetime.now(timezone.utc)
        outcomes = []
        for goal in goals:
            try:
                evaluation = self._evaluate_named(report_text, goal)
                report = self._build_report(employee, evaluation, report_text, submitted_at)
                self.db.add(report)
                self.commit()
                self.db.refresh(report)
            except AppException as e:
                outcomes.append(GoalOutcome(goal_id=goal.id, goal_name=goal.name, error=e.message))
                continue
            outcomes.append(GoalOutcome(goal_id=goal.id, goal_name=goal.name, report=to_response(report)))
        return outcomes

    # --- Override ---

    def _require_direct_manager(self, employee: Employee, actor_id: int) -> None:
        if not ScopeResolver.can_override(employee, actor_id):
            self.log_warning(
                f"Employee {actor_id} tried to override a report of employee {employee.id} without being their manager",
                actor_id=actor_id,
            )
            raise AccessDeniedError("Only the employee's direct manager can override this evaluation.")

    def _get_report(self, report_id: int) -> Report:
        report = self.db.get(Report, report_id)
        if report is None:
            raise NotFoundError("Report", report_id)
        return report

    @staticmethod
    def _override_state(report: Report) -> dict:
        return {
            "manager_overall_score": report.manager_overall_score,
            "manager_override_reasoning": report.manager_override_reasoning,
        }

    def apply_override(self, report_id: int, actor: Employee, score: float, reasoning: str) -> Report:
        report = self._get_report(report_id)
        employee = report.employee or self.db.get(Employee, report.employee_id)
        self._require_direct_manager(employee, actor.id)

        if not OVERRIDE_MIN_SCORE <= score <= OVERRIDE_MAX_SCORE:
            raise ValidationError(
                f"Override score must be between {OVERRIDE_MIN_SCORE:g} and {OVERRIDE_MAX_SCORE:g}.",
                field="score",
            )
        reasoning = (reasoning or "").strip()
        if not reasoning:
            raise ValidationError("Override reasoning is required.", field="reasoning")

        before = self._override_state(report)
        report.manager_overall_score = score
        report.manager_override_reasoning = reasoning

        AuditService(self.db, employee.organization_id).log_action(
            action="REPORT_OVERRIDE_APPLIED",
            entity_type="report",
            entity_id=report.id,
            actor_id=actor.id,
            actor_role=actor.role.value,
            details={"employee_id": employee.id, "evaluation_score": report.evaluation_score},
            before_state=before,
            after_state=self._override_state(report),
        )
        self.commit()
        self.db.refresh(report)
        self.log_info(f"Override applied to report {report.id}", report_id=report.id, actor_id=actor.id)
        return report

    def clear_override(self, report_id: int, actor: Employee) -> Report:
        report = self._get_report(report_id)
        employee = report.employee or self.db.get(Employee, report.employee_id)
        self._require_direct_manager(employee, actor.id)

        before = self._override_state(report)
        report.manager_overall_score = None
        report.manager_override_reasoning = None

        AuditService(self.db, employee.organization_id).log_action(
            action="REPORT_OVERRIDE_CLEARED",
            entity_type="report",
            entity_id=report.id,
            actor_id=actor.id,
            actor_role=actor.role.value,
            details={"employee_id": employee.id},
            before_state=before,
            after_state=self._override_state(report),
        )
        self.commit()
        self.db.refresh(report)
        return report

    # --- Holistic ---

    def _team_reports(
        self, employee: Employee, reports: List[Report], start: Optional[date], end: Optional[date]
    ) -> List[Report]:
        """Peers' reports over the same period on the goals the employee reported on."""
        goal_ids = {r.goal_id for r in reports}
        if not goal_ids:
            return []
        peers = (
            self.db.query(Report)
            .join(Employee, Report.employee_id == Employee.id)
            .filter(
                Employee.organization_id == employee.organization_id,
                Report.employee_id != employee.id,
                Report.goal_id.in_(goal_ids),
            )
            .all()
        )
        return filter_reports_by_period(peers, start, end)

    def holistic_for(
        self,
        employee: Employee,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> HolisticScore:
        """
        Headline figure for an employee over a period. With standardized
        metrics selected, the AI scores them across the recent reports.
        """
        reports = (
            self.db.query(Report)
            .filter(Report.employee_id == employee.id)
            .order_by(Report.submission_date.desc())
            .all()
        )
        reports = filter_reports_by_period(reports, start, end)

        metric_scores: Dict[str, float] = {}
        organization = self.db.get(Organization, employee.organization_id)
        selected = metrics_for(organization.selected_metrics or []) if organization else []
        if selected and reports:
            knowledge_bases = {
                r.goal.project.knowledge_base
                for r in reports
                if r.goal is not None and r.goal.project is not None and r.goal.project.knowledge_base
            }
            metric_scores = self.scorer.analyze_skill_metrics(
                reports, selected, "\n\n".join(sorted(knowledge_bases)) or None
            )

        report_avg = average_evaluation_score(reports)
        team_reports = self._team_reports(employee, reports, start, end)
        return HolisticScore(
            employee_id=employee.id,
            period_start=start,
            period_end=end,
            report_count=len(reports),
            average_evaluation_score=round(report_avg, 2),
            metric_scores=metric_scores,
            average_metric_score=(
                round(sum(metric_scores.values()) / len(metric_scores), 2) if metric_scores else None
            ),
            holistic_score=holistic_score(reports, metric_scores),
            key_skills=key_skills(reports),
            team_criterion_averages=team_criterion_averages(employee.id, reports, team_reports),
            consistency=score_consistency(reports),
        )
