"""
Turns a model's raw JSON answer into the canonical AuditData document.

Every provider (OpenRouter, Gemini) feeds its parsed JSON through
build_audit_data, so scoring, grading and issue backfilling live in one place.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from errors import InvalidAIResponseError
from models import (
    AnalysisMetadata,
    AuditData,
    AuditIssue,
    AuditScores,
    CategoryScore,
    MaturityScorecard,
    OverallScore,
)
from utils.images.processor import to_data_url

logger = logging.getLogger(__name__)

CORE_CATEGORIES = ["heuristics", "uxLaws", "copywriting", "accessibility"]
NON_CATEGORY_KEYS = {"overall", "maturityScorecard"}
DEFAULT_MAX_SCORE = 5.0
DEFAULT_CONFIDENCE = 0.8

DEFAULT_EVIDENCE = {
    "type": "screenshot",
    "reference": "general-observation",
    "description": "Based on visual analysis",
}

GRADE_THRESHOLDS = [(90, "A"), (80, "B"), (70, "C"), (60, "D")]
MATURITY_THRESHOLDS = [
    (90, "expert"),
    (80, "advanced"),
    (70, "proficient"),
    (60, "developing"),
]


def calculate_grade(percentage: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return "F"


def maturity_level(percentage: float) -> str:
    for threshold, level in MATURITY_THRESHOLDS:
        if percentage >= threshold:
            return level
    return "novice"


def _percentage(score: float, max_score: float) -> float:
    return score / max_score * 100 if max_score else 0.0


def issue_category(score_key: str) -> str:
    """Score keys are camelCase, issue categories are kebab-case (uxLaws -> ux-laws)."""
    return "ux-laws" if score_key == "uxLaws" else score_key.lower()


def _number(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidAIResponseError(f"Score value is not a number: {value!r}")


def normalize_issues(raw_issues: Any) -> List[AuditIssue]:
    """Backfill id, evidence, impact and effort on every issue."""
    if not isinstance(raw_issues, list):
        return []

    issues = []
    for raw in raw_issues:
        if not isinstance(raw, dict):
            logger.warning(f"⚠️  Skipping malformed issue: {raw!r}")
            continue
        issue = dict(raw)
        issue["id"] = issue.get("id") or str(uuid.uuid4())
        issue["evidence"] = issue.get("evidence") or [dict(DEFAULT_EVIDENCE)]
        issue["impact"] = issue.get("impact") or "medium"
        issue["effort"] = issue.get("effort") or "medium"
        issues.append(AuditIssue.model_validate(issue))
    return issues


def extract_evidence_files(issues: List[AuditIssue]) -> List[str]:
    """Screenshot evidence references, deduplicated, in first-seen order."""
    files: List[str] = []
    for issue in issues:
        for evidence in issue.evidence:
            if evidence.type == "screenshot" and evidence.reference != "general-observation":
                if evidence.reference not in files:
                    files.append(evidence.reference)
    return files


def _findings_text(findings: Any) -> Optional[str]:
    """Models sometimes return findings as a list of bullet strings."""
    if findings is None or isinstance(findings, str):
        return findings
    if isinstance(findings, (list, tuple)):
        return "; ".join(str(item) for item in findings if item is not None) or None
    return str(findings)


def _category(raw_category: Any, key: str, issues: List[AuditIssue]) -> CategoryScore:
    if raw_category is None:
        raw_category = {}
    if not isinstance(raw_category, dict):
        raise InvalidAIResponseError(f"Score category '{key}' is not an object")

    score = _number(raw_category.get("score"), 0.0)
    max_score = _number(raw_category.get("maxScore"), DEFAULT_MAX_SCORE)
    findings = _findings_text(raw_category.get("findings"))

    extra = {
        k: v
        for k, v in raw_category.items()
        if k not in ("score", "maxScore", "percentage", "issues", "findings", "insights")
    }
    wanted = issue_category(key)

    return CategoryScore(
        score=score,
        max_score=max_score,
        percentage=_percentage(score, max_score),
        issues=[issue for issue in issues if issue.category == wanted],
        findings=findings,
        insights=findings or "Analysis completed",
        **extra,
    )


def build_audit_data(
    raw: Dict[str, Any],
    *,
    model: str,
    url: Optional[str] = None,
    image_base64: Optional[str] = None,
    pages_analyzed: Optional[List[str]] = None,
    processing_time: float = 0,
) -> AuditData:
    """
    Build the canonical AuditData from a parsed model response.

    Raises:
        InvalidAIResponseError: when the response does not have the expected shape
    """
    if not isinstance(raw, dict):
        raise InvalidAIResponseError("AI response is not a JSON object")

    raw_scores = raw.get("scores")
    if not isinstance(raw_scores, dict):
        raise InvalidAIResponseError("AI response has no scores object")

    try:
        issues = normalize_issues(raw.get("issues"))

        categories: Dict[str, CategoryScore] = {}
        for key in CORE_CATEGORIES:
            categories[key] = _category(raw_scores.get(key), key, issues)
        for key, value in raw_scores.items():
            if key not in categories and key not in NON_CATEGORY_KEYS:
                categories[key] = _category(value, key, issues)

        total_score = sum(c.score for c in categories.values())
        total_max = sum(c.max_score for c in categories.values())
        overall_percentage = _percentage(total_score, total_max)
        confidence = raw.get("confidence") or DEFAULT_CONFIDENCE

        scores = AuditScores(
            overall=OverallScore(
                score=total_score,
                max_score=total_max,
                percentage=overall_percentage,
                grade=calculate_grade(overall_percentage),
                confidence=confidence,
            ),
            heuristics=categories["heuristics"],
            ux_laws=categories["uxLaws"],
            copywriting=categories["copywriting"],
            accessibility=categories["accessibility"],
            maturity_scorecard=MaturityScorecard(
                overall=overall_percentage,
                heuristics=categories["heuristics"].percentage,
                ux_laws=categories["uxLaws"].percentage,
                copywriting=categories["copywriting"].percentage,
                accessibility=categories["accessibility"].percentage,
                maturity_level=maturity_level(overall_percentage),
            ),
            **{
                key: category.model_dump(by_alias=True)
                for key, category in categories.items()
                if key not in CORE_CATEGORIES
            },
        )

        prioritized_fixes = [f for f in raw.get("prioritizedFixes") or [] if isinstance(f, dict)]
        key_insights = raw.get("keyInsights") or []
        journey = raw.get("personaDrivenJourney") or None
        analysis_log = raw.get("analysisLog") if isinstance(raw.get("analysisLog"), dict) else {}

        return AuditData(
            id=str(uuid.uuid4()),
            url=url,
            image_url=to_data_url(image_base64) if image_base64 else None,
            timestamp=datetime.now(timezone.utc).isoformat(),
            scores=scores,
            issues=issues,
            summary=raw.get("executiveSummary") or raw.get("summary") or "UX analysis completed",
            recommendations=[f["recommendation"] for f in prioritized_fixes if f.get("recommendation")],
            insights=key_insights,
            user_journeys=[journey] if journey else [],
            heuristic_violations=raw.get("heuristicViolations") or [],
            prioritized_fixes=prioritized_fixes,
            executive_summary=raw.get("executiveSummary") or "",
            key_insights=key_insights,
            persona_driven_journey=journey,
            evidence_files=extract_evidence_files(issues),
            analysis_metadata=AnalysisMetadata(
                model=model,
                processing_time=processing_time,
                pages_analyzed=pages_analyzed or ([url] if url else ["screenshot-analysis"]),
                confidence_score=confidence,
                site_business_goal=analysis_log.get("siteBusinessGoal") or "",
                navigation_path=analysis_log.get("navigationPath") or [],
            ),
        )
    except ValidationError as e:
        logger.error(f"❌ AI response did not match the audit schema: {str(e)}")
        raise InvalidAIResponseError("AI response parsing failed") from e
