"""
Client for the AI scoring service.

Builds prompts from goals/reports and validates what comes back. Anything the
model returns is untrusted: a response that does not match the evaluation
contract is an upstream failure (AIError). Scores are not clamped here.
"""
import html
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core import prompts
from app.core.config import settings
from app.core.exceptions import AIError
from app.schemas.report import AIEvaluation
from app.services.ai_orchestrator import AIOrchestrator, AIDomain

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")


def strip_html(text: str) -> str:
    """Plain text of a rich-text report."""
    return html.unescape(_TAG_RE.sub("", text or "")).strip()


def _criteria_lines(criteria: Iterable[Dict[str, Any]], with_weights: bool = True) -> str:
    if with_weights:
        return "\n".join(f"- {c['name']} (Weight: {c['weight']}%)" for c in criteria)
    return "\n".join(f"- {c['name']}" for c in criteria)


class AIScoringClient:
    def __init__(self, orchestrator=AIOrchestrator):
        self.orchestrator = orchestrator

    def evaluate_report(
        self,
        report_text: str,
        criteria: List[Dict[str, Any]],
        instructions: Optional[str] = None,
        knowledge_base: Optional[str] = None,
    ) -> AIEvaluation:
        user_content = prompts.get_prompt(
            prompts.REPORT_EVALUATION_USER_TEMPLATE,
            knowledge_base_section=(
                prompts.get_prompt(prompts.KNOWLEDGE_BASE_SECTION, knowledge_base=knowledge_base)
                if knowledge_base else ""
            ),
            instructions_section=(
                prompts.get_prompt(prompts.INSTRUCTIONS_SECTION, instructions=instructions)
                if instructions else ""
            ),
            report_text=report_text,
            criteria_lines=_criteria_lines(criteria),
        )
        raw = self.orchestrator.analyze_text(
            prompts.REPORT_EVALUATION_SYSTEM,
            user_content,
            temperature=settings.ai.evaluation_temperature,
            domain=AIDomain.EVALUATION,
        )
        try:
            return AIEvaluation.model_validate(raw)
        except PydanticValidationError as e:
            logger.error(f"AI evaluation response does not match contract: {e.errors()}")
            raise AIError("AI service returned a malformed evaluation.")

    def get_report_feedback(self, report_text: str, criteria: List[Dict[str, Any]]) -> str:
        user_content = prompts.get_prompt(
            prompts.REPORT_FEEDBACK_USER_TEMPLATE,
            report_text=report_text,
            criteria_lines=_criteria_lines(criteria, with_weights=False),
        )
        return self.orchestrator.complete_text(
            prompts.REPORT_FEEDBACK_SYSTEM,
            user_content,
            temperature=settings.ai.feedback_temperature,
            domain=AIDomain.FEEDBACK,
        )

    def analyze_skill_metrics(
        self,
        reports: List[Any],
        metrics: List[Dict[str, str]],
        knowledge_base: Optional[str] = None,
    ) -> Dict[str, float]:
        """Score each metric 1-10 across recent reports. Non-numeric values are dropped."""
        if not metrics:
            return {}

        limit = settings.skill_analysis_report_limit
        excerpt = settings.skill_analysis_excerpt_chars
        summaries = "\n\n".join(
            f"Date: {r.submission_date:%Y-%m-%d}\n"
            f"Text: {strip_html(r.report_text)[:excerpt]}\n"
            f"Original Score: {r.evaluation_score}/10"
            for r in reports[:limit]
        )
        user_content = prompts.get_prompt(
            prompts.SKILL_METRICS_USER_TEMPLATE,
            knowledge_base_section=(
                prompts.get_prompt(prompts.KNOWLEDGE_BASE_SECTION, knowledge_base=knowledge_base)
                if knowledge_base else ""
            ),
            report_summaries=summaries or "No reports available yet.",
            metric_lines="\n".join(f"- {m['name']} (ID: {m['id']})" for m in metrics),
        )
        raw = self.orchestrator.analyze_text(
            prompts.SKILL_METRICS_SYSTEM,
            user_content,
            temperature=settings.ai.evaluation_temperature,
            domain=AIDomain.SKILLS,
        )

        wanted = {m["id"] for m in metrics}
        scores = {}
        for metric_id, value in raw.items():
            if metric_id not in wanted:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                logger.warning(f"Dropping non-numeric score for metric {metric_id}: {value!r}")
                continue
            scores[metric_id] = float(value)
        return scores
