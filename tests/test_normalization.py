import pytest

from analyzer.normalization import (
    build_audit_data,
    calculate_grade,
    extract_evidence_files,
    maturity_level,
    normalize_issues,
)
from errors import InvalidAIResponseError


@pytest.mark.parametrize(
    "percentage,grade,level",
    [
        (95, "A", "expert"),
        (90, "A", "expert"),
        (80, "B", "advanced"),
        (70, "C", "proficient"),
        (60, "D", "developing"),
        (59.9, "F", "novice"),
        (0, "F", "novice"),
    ],
)
def test_grade_and_maturity_thresholds(percentage, grade, level):
    assert calculate_grade(percentage) == grade
    assert maturity_level(percentage) == level


def test_build_audit_data_scores(ai_response):
    data = build_audit_data(ai_response, model="test-model", url="https://acme.test/pricing")
    scores = data.scores

    assert scores.heuristics.percentage == pytest.approx(80)
    assert scores.ux_laws.percentage == pytest.approx(60)
    assert scores.overall.score == pytest.approx(14)
    assert scores.overall.max_score == pytest.approx(20)
    assert scores.overall.percentage == pytest.approx(70)
    assert scores.overall.grade == "C"
    assert scores.overall.confidence == pytest.approx(0.9)
    assert scores.maturity_scorecard.maturity_level == "proficient"
    assert scores.maturity_scorecard.copywriting == pytest.approx(90)


def test_build_audit_data_attaches_issues_by_category(ai_response):
    data = build_audit_data(ai_response, model="test-model", url="https://acme.test/pricing")

    assert [i.title for i in data.scores.heuristics.issues] == ["Hidden CTA"]
    assert [i.title for i in data.scores.ux_laws.issues] == ["Vague headline"]
    assert [i.title for i in data.scores.accessibility.issues] == ["Low contrast footer"]
    assert data.scores.copywriting.issues == []


def test_build_audit_data_top_level_fields(ai_response):
    data = build_audit_data(
        ai_response, model="test-model", url="https://acme.test/pricing", processing_time=1234
    )

    assert data.url == "https://acme.test/pricing"
    assert data.summary == ai_response["executiveSummary"]
    assert data.recommendations == [
        "Move the trial CTA above the plan tables",
        "Rename plans consistently",
    ]
    assert data.insights == data.key_insights
    assert data.user_journeys == [ai_response["personaDrivenJourney"]]
    assert data.evidence_files == ["pricing-hero.png"]
    assert data.analysis_metadata.model == "test-model"
    assert data.analysis_metadata.pages_analyzed == ["https://acme.test/pricing"]
    assert data.analysis_metadata.site_business_goal == "Convert visitors to trials"
    assert data.analysis_metadata.navigation_path == ["/", "/pricing"]
    assert data.analysis_metadata.processing_time == 1234
    assert data.image_url is None


def test_build_audit_data_wire_format_is_camel_case(ai_response):
    data = build_audit_data(ai_response, model="test-model", image_base64="aGVsbG8=")
    wire = data.model_dump(by_alias=True, exclude_none=True)

    assert wire["imageUrl"] == "data:image/jpeg;base64,aGVsbG8="
    assert "uxLaws" in wire["scores"]
    assert "maturityScorecard" in wire["scores"]
    assert wire["analysisMetadata"]["pagesAnalyzed"] == ["screenshot-analysis"]


def test_extra_score_categories_count_toward_overall(ai_response):
    ai_response["scores"]["performance"] = {"score": 1, "maxScore": 5}
    data = build_audit_data(ai_response, model="m")

    assert data.scores.overall.max_score == pytest.approx(25)
    wire = data.scores.model_dump(by_alias=True)
    assert wire["performance"]["percentage"] == pytest.approx(20)


def test_missing_category_defaults_to_zero(ai_response):
    del ai_response["scores"]["accessibility"]
    data = build_audit_data(ai_response, model="m")

    assert data.scores.accessibility.score == 0
    assert data.scores.accessibility.max_score == 5
    assert data.scores.overall.max_score == pytest.approx(20)


def test_summary_fallback():
    data = build_audit_data({"scores": {}}, model="m")
    assert data.summary == "UX analysis completed"
    assert data.scores.overall.grade == "F"


@pytest.mark.parametrize(
    "raw",
    [
        [],
        {"issues": []},
        {"scores": "great"},
        {"scores": {"heuristics": "4/5"}},
        {"scores": {"heuristics": {"score": "four"}}},
    ],
)
def test_malformed_responses_raise(raw):
    with pytest.raises(InvalidAIResponseError):
        build_audit_data(raw, model="m")


def test_normalize_issues_backfills_defaults():
    issues = normalize_issues([{"title": "No id"}, "not an issue", {"id": "keep", "impact": "high"}])

    assert len(issues) == 2
    assert issues[0].id
    assert issues[0].evidence[0].reference == "general-observation"
    assert issues[0].impact == "medium"
    assert issues[0].effort == "medium"
    assert issues[1].id == "keep"
    assert issues[1].impact == "high"


def test_extract_evidence_files_deduplicates():
    issues = normalize_issues(
        [
            {"evidence": [{"type": "screenshot", "reference": "a.png"}]},
            {"evidence": [{"type": "screenshot", "reference": "a.png"}, {"type": "dom", "reference": "b"}]},
            {"evidence": [{"type": "screenshot", "reference": "c.png"}]},
            {},
        ]
    )
    assert extract_evidence_files(issues) == ["a.png", "c.png"]


def test_list_findings_are_joined(ai_response):
    ai_response["scores"]["heuristics"]["findings"] = ["Nav is clear", "CTA hidden"]
    ai_response["scores"]["uxLaws"]["findings"] = []

    scores = build_audit_data(ai_response, model="test-model").scores

    assert scores.heuristics.findings == "Nav is clear; CTA hidden"
    assert scores.heuristics.insights == "Nav is clear; CTA hidden"
    assert scores.ux_laws.findings is None
    assert scores.ux_laws.insights == "Analysis completed"
