from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Dict, List, Optional


class CriterionScore(BaseModel):
    """One criterion score. Accepts the AI service's camelCase field name too."""
    criterion_name: str = Field(validation_alias=AliasChoices("criterion_name", "criterionName"))
    score: float


class AIEvaluation(BaseModel):
    """Response contract of the AI scoring service."""
    reasoning: str
    criteria_scores: List[CriterionScore] = Field(validation_alias=AliasChoices("criteria_scores", "criteriaScores"))


class GoalEvaluation(BaseModel):
    goal_id: int
    goal_name: str
    evaluation_score: float
    evaluation_reasoning: str
    criterion_scores: List[CriterionScore]
    missing_criteria: List[str] = Field(default_factory=list)


class ReportSubmit(BaseModel):
    goal_ids: List[int]
    report_text: str
    # Managers may submit on behalf of an in-scope employee; defaults to the actor
    employee_id: Optional[int] = None


class ReportFeedbackRequest(BaseModel):
    goal_id: int
    report_text: str


class ReportFeedbackResponse(BaseModel):
    feedback: str


class ReportResponse(BaseModel):
    id: int
    employee_id: int
    goal_id: int
    report_text: str
    submission_date: datetime
    criterion_scores: List[CriterionScore]
    evaluation_score: float
    evaluation_reasoning: Optional[str] = None
    manager_overall_score: Optional[float] = None
    manager_override_reasoning: Optional[str] = None
    display_score: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class GoalOutcome(BaseModel):
    """Per-goal result of an independent (non-atomic) submission."""
    goal_id: int
    goal_name: str
    report: Optional[ReportResponse] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.report is not None


class OverrideRequest(BaseModel):
    score: float
    reasoning: str


class KeySkill(BaseModel):
    """Average AI score of one criterion name across a set of reports."""
    name: str
    frequency: int
    average_score: float
    needs_coaching: bool = False


class ScoreConsistency(BaseModel):
    """100 - 10 * coefficient of variation of evaluation scores, clamped to [0, 100]."""
    value: float
    std_dev: float
    cv: float


class HolisticScore(BaseModel):
    employee_id: int
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    report_count: int
    average_evaluation_score: float
    metric_scores: Dict[str, float] = Field(default_factory=dict)
    average_metric_score: Optional[float] = None
    holistic_score: float
    key_skills: List[KeySkill] = Field(default_factory=list)
    team_criterion_averages: Dict[str, float] = Field(default_factory=dict)
    consistency: Optional[ScoreConsistency] = None


class SubmissionReliability(BaseModel):
    rate: float
    expected: int
    actual: int
    trend: List[float] = Field(default_factory=list)
