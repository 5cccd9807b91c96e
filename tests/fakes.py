"""Test doubles shared by conftest and test modules."""
from app.core.exceptions import AIError
from app.schemas.report import AIEvaluation, CriterionScore


class FakeScorer:
    """
    Stand-in for AIScoringClient.
    Scores each criterion from `scores` (default 7.0), can skip criteria and
    can fail on the n-th evaluation call.
    """

    def __init__(self, scores=None, default_score=7.0, skip=(), fail_on_call=None, metric_scores=None):
        self.scores = dict(scores or {})
        self.default_score = default_score
        self.skip = set(skip)
        self.fail_on_call = fail_on_call
        self.metric_scores = dict(metric_scores or {})
        self.calls = []
        self.feedback_calls = []

    def evaluate_report(self, report_text, criteria, instructions=None, knowledge_base=None):
        self.calls.append({"report_text": report_text, "criteria": criteria, "knowledge_base": knowledge_base})
        if self.fail_on_call == len(self.calls):
            raise AIError("AI service reached timeout limit.")
        return AIEvaluation(
            reasoning="Clear progress with measurable outcomes.",
            criteria_scores=[
                CriterionScore(criterion_name=c["name"], score=self.scores.get(c["name"], self.default_score))
                for c in criteria
                if c["name"] not in self.skip
            ],
        )

    def get_report_feedback(self, report_text, criteria):
        self.feedback_calls.append({"report_text": report_text, "criteria": criteria})
        return "Add concrete metrics for each criterion."

    def analyze_skill_metrics(self, reports, metrics, knowledge_base=None):
        return {m["id"]: self.metric_scores[m["id"]] for m in metrics if m["id"] in self.metric_scores}
