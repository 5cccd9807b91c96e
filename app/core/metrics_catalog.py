"""
Standardized cross-project metrics an organization may opt into.
When any are selected, an employee's headline figure blends report scores
with AI-analyzed scores for these metrics.
"""
from typing import Dict, Iterable, List

from app.core.exceptions import ValidationError

STANDARD_METRICS: List[Dict[str, str]] = [
    {"id": "cycle-time", "name": "Cycle Time", "friendly_name": "Delivery Speed",
     "description": 'How quickly work goes from "started" to "submitted".'},
    {"id": "mttr", "name": "MTTR", "friendly_name": "Fix-it Rate",
     "description": "How fast the person resolves bugs or errors mentioned in reports."},
    {"id": "scope-completion", "name": "Scope Completion", "friendly_name": "Goal Progress",
     "description": "The percentage of the assigned goal or task actually finished."},
    {"id": "innovation-velocity", "name": "Innovation Velocity", "friendly_name": "New Value",
     "description": 'Frequency of mentions of "new features," "ideas," or "improvements".'},
    {"id": "business-value", "name": "Business Value", "friendly_name": "Impact Level",
     "description": "Estimate of how much this work helps the company's bottom line."},
    {"id": "documentation", "name": "Documentation", "friendly_name": "Clarity",
     "description": "How well the report explains the work."},
    {"id": "collaboration", "name": "Collaboration", "friendly_name": "Teamwork",
     "description": "Mentions of helping others, code reviews, or cross-department syncs."},
    {"id": "compliance", "name": "Compliance", "friendly_name": "Policy Adherence",
     "description": "Following specific instructions or brand guidelines set in the goal."},
    {"id": "quality", "name": "Quality", "friendly_name": "Work Excellence",
     "description": "Technical or descriptive accuracy of the work."},
    {"id": "reliability", "name": "Reliability", "friendly_name": "Consistency",
     "description": "How often they submit reports on the required schedule without gaps."},
]

METRICS_BY_ID = {m["id"]: m for m in STANDARD_METRICS}


def validate_metric_ids(metric_ids: Iterable[str]) -> List[str]:
    ids = []
    for metric_id in metric_ids:
        if metric_id not in METRICS_BY_ID:
            raise ValidationError(f"Unknown metric '{metric_id}'", field="metric_ids")
        if metric_id not in ids:
            ids.append(metric_id)
    return ids


def metrics_for(metric_ids: Iterable[str]) -> List[Dict[str, str]]:
    return [METRICS_BY_ID[m] for m in metric_ids if m in METRICS_BY_ID]
