from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LooseCamelModel(CamelModel):
    """Wire models that also carry whatever extra keys the LLM produced."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


# Site context models
class SitemapUrl(CamelModel):
    url: str
    priority: Optional[float] = None
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None


class PageHead(CamelModel):
    title: str = ""
    meta_description: str = ""
    canonical: Optional[str] = None
    json_ld: Optional[List[Any]] = None


class NavLink(CamelModel):
    text: str
    href: str = ""


class MainContent(CamelModel):
    headings: List[str] = Field(default_factory=list)
    first_paragraphs: str = ""
    selectors: List[str] = Field(default_factory=list)


class FormInfo(CamelModel):
    selector: str
    fields: List[str] = Field(default_factory=list)


class CtaInfo(CamelModel):
    text: str
    selector: str
    href: Optional[str] = None


class FormsAndCtas(CamelModel):
    forms: List[FormInfo] = Field(default_factory=list)
    primary_ctas: List[CtaInfo] = Field(default_factory=list)


class PageContext(CamelModel):
    url: str
    head: PageHead = Field(default_factory=PageHead)
    nav: List[NavLink] = Field(default_factory=list)
    main_content: MainContent = Field(default_factory=MainContent)
    forms_and_ctas: FormsAndCtas = Field(default_factory=FormsAndCtas)


class AnalysisRequest(CamelModel):
    image_base64: Optional[str] = None
    url: Optional[str] = None
    analysis_type: Literal["url", "screenshot", "multi_page"] = "url"
    target_audience: Optional[str] = None
    user_goals: Optional[str] = None
    business_objectives: Optional[str] = None


# Audit result models
class Evidence(LooseCamelModel):
    type: str = "screenshot"
    reference: str = "general-observation"
    description: Optional[str] = None


class AuditIssue(LooseCamelModel):
    id: str
    title: str = ""
    description: str = ""
    severity: str = "minor"
    category: str = "heuristics"
    heuristic: Optional[str] = None
    recommendation: str = ""
    element: Optional[str] = None
    evidence: List[Evidence] = Field(default_factory=list)
    impact: str = "medium"
    effort: str = "medium"
    page: Optional[str] = None


class CategoryScore(LooseCamelModel):
    score: float = 0.0
    max_score: float = 5.0
    percentage: float = 0.0
    issues: List[AuditIssue] = Field(default_factory=list)
    findings: Optional[str] = None
    insights: str = "Analysis completed"


class OverallScore(CamelModel):
    score: float
    max_score: float
    percentage: float
    grade: str
    confidence: float


class MaturityScorecard(CamelModel):
    overall: float
    heuristics: float
    ux_laws: float
    copywriting: float
    accessibility: float
    maturity_level: Literal["novice", "developing", "proficient", "advanced", "expert"]


class AuditScores(LooseCamelModel):
    overall: OverallScore
    heuristics: CategoryScore
    ux_laws: CategoryScore
    copywriting: CategoryScore
    accessibility: CategoryScore
    maturity_scorecard: MaturityScorecard


class AnalysisMetadata(LooseCamelModel):
    model: str
    processing_time: float = 0
    pages_analyzed: List[str] = Field(default_factory=list)
    confidence_score: float = 0.8
    site_business_goal: str = ""
    navigation_path: List[str] = Field(default_factory=list)
    degraded_reason: Optional[str] = None


class AuditData(CamelModel):
    id: str
    url: Optional[str] = None
    image_url: Optional[str] = None
    timestamp: str
    scores: AuditScores
    issues: List[AuditIssue] = Field(default_factory=list)
    summary: str = ""
    recommendations: List[str] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    user_journeys: List[Dict[str, Any]] = Field(default_factory=list)
    heuristic_violations: List[Dict[str, Any]] = Field(default_factory=list)
    prioritized_fixes: List[Dict[str, Any]] = Field(default_factory=list)
    executive_summary: str = ""
    key_insights: List[str] = Field(default_factory=list)
    persona_driven_journey: Optional[Dict[str, Any]] = None
    evidence_files: List[str] = Field(default_factory=list)
    analysis_metadata: AnalysisMetadata


class AuditOutcome(BaseModel):
    """
    Result of one audit run.

    ok: the full contextual pipeline produced the data.
    degraded: the data came from the baseline single-page path; reason says why.
    failed: no data; reason carries the error.
    """

    status: Literal["ok", "degraded", "failed"]
    data: Optional[AuditData] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, data: AuditData) -> "AuditOutcome":
        return cls(status="ok", data=data)

    @classmethod
    def degraded(cls, data: AuditData, reason: str) -> "AuditOutcome":
        return cls(status="degraded", data=data, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "AuditOutcome":
        return cls(status="failed", reason=reason)


# Request bodies
class ShareReportRequest(CamelModel):
    audit_data: Optional[Dict[str, Any]] = None
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    platform_name: Optional[str] = None


class ShareReportResponse(CamelModel):
    success: bool
    message: str
    to: str
    timestamp: str
    db_status: Literal["saved", "failed", "skipped"]


# Supporting models
class CaseStudy(CamelModel):
    id: str
    title: str
    url: str
    industry: str
    description: str
    work_type: List[str]
    keywords: List[str]
    priority: int


class FaviconResult(CamelModel):
    success: bool
    favicon_url: Optional[str] = None
    fallback_letter: Optional[str] = None
