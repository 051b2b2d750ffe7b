import pytest

from services.case_studies import (
    CASE_STUDIES,
    calculate_relevance_score,
    extract_keywords_from_url,
    get_relevant_case_studies,
)


def _study(study_id):
    return next(s for s in CASE_STUDIES if s.id == study_id)


def test_catalog_urls():
    assert len(CASE_STUDIES) == 18
    assert len({s.id for s in CASE_STUDIES}) == 18
    assert _study("rxil-saas").url == "https://lemonyellow.design/work/rxil"
    assert _study("vayana").url == "https://lemonyellow.design/work/vayana"


def test_extract_keywords_from_url():
    assert extract_keywords_from_url("https://shop.acme.io/new-arrivals?x=1") == [
        "https",
        "shop",
        "acme",
        "new",
        "arrivals",
        "x=1",
    ]


@pytest.mark.parametrize(
    "url,first",
    [
        ("https://stripe.com", "pay-unified"),
        ("https://www.healthclinic.test", "curebay"),
        ("https://bigshop.test", "tata-neu"),
    ],
)
def test_domain_industry_ranking(url, first):
    assert get_relevant_case_studies(url)[0].id == first


def test_fintech_domain_scores_fintech_only():
    assert calculate_relevance_score(_study("vayana"), "https://stripe.com") == 60 + 7
    assert calculate_relevance_score(_study("mkcl"), "https://stripe.com") == 6


def test_summary_matches():
    results = get_relevant_case_studies(
        None, "An online learning academy with course pages for university students", limit=3
    )
    assert {s.industry for s in results} == {"edtech"}


def test_no_signal_prefers_high_priority():
    results = get_relevant_case_studies()
    assert {s.id for s in results} == {"pay-unified", "tata-neu"}


@pytest.mark.parametrize("limit", [1, 2, 5])
def test_limit(limit):
    assert len(get_relevant_case_studies("https://example.com", limit=limit)) == limit
