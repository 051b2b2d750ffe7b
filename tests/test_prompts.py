from analyzer.prompts import (
    build_analysis_prompt,
    build_contextual_prompt,
    format_page_context,
)
from models import AnalysisRequest, CtaInfo, FormInfo, FormsAndCtas, NavLink, PageContext, PageHead


def _context(url="https://acme.test/pricing"):
    return PageContext(
        url=url,
        head=PageHead(title="Pricing | Acme", meta_description="Plans for every team"),
        nav=[NavLink(text="Pricing", href="/pricing"), NavLink(text="Docs", href="/docs")],
        forms_and_ctas=FormsAndCtas(
            forms=[FormInfo(selector="#signup", fields=["email", "submit"])],
            primary_ctas=[CtaInfo(text="Start free trial", selector="a.cta")],
        ),
    )


def test_url_prompt_names_site_and_context():
    request = AnalysisRequest(url="https://acme.test", analysis_type="url", target_audience="CTOs")
    prompt = build_analysis_prompt(request)

    assert "the website at `https://acme.test`" in prompt
    assert "- Target Audience: CTOs" in prompt
    assert "User Goals" not in prompt.split("## CONTEXT")[1].split("##")[0]
    assert prompt.endswith("Analyze the website now: https://acme.test")


def test_screenshot_prompt():
    prompt = build_analysis_prompt(AnalysisRequest(image_base64="abc", analysis_type="screenshot"))

    assert "the provided design/screenshot" in prompt
    assert "## CONTEXT" not in prompt
    assert prompt.endswith("Analyze the provided screenshot/image for UX issues and opportunities.")


def test_format_page_context_lists_user_facing_elements():
    text = format_page_context(_context())

    assert text.startswith("=== USER EXPERIENCE ON: https://acme.test/pricing ===")
    assert '"Pricing", "Docs"' in text
    assert '"Start free trial"' in text
    assert "form with fields: [email, submit]" in text
    assert 'Search description: "Plans for every team"' in text


def test_format_page_context_empty_page():
    text = format_page_context(PageContext(url="https://acme.test/"))

    assert "No navigation menu visible to users" in text
    assert "No clear call-to-action buttons available" in text
    assert "No forms for user interaction" in text
    assert "Missing - users won't see description in search results" in text


def test_contextual_prompt_sections():
    request = AnalysisRequest(
        url="https://acme.test/pricing", user_goals="Compare plans", business_objectives="More trials"
    )
    sitemap = [f"https://acme.test/page-{i}" for i in range(30)]
    prompt = build_contextual_prompt(request, sitemap, [_context()])

    assert prompt.startswith("As a senior UX consultant, analyze https://acme.test/pricing")
    assert "[Site Structure] - https://acme.test/page-0" in prompt
    assert "https://acme.test/page-19" in prompt
    assert "https://acme.test/page-20" not in prompt
    assert "[Page Content] === USER EXPERIENCE ON: https://acme.test/pricing" in prompt
    assert "User Goals: Compare plans" in prompt
    assert "Business Impact: More trials" in prompt
    assert "Target Users" not in prompt
    assert prompt.rstrip().endswith("Return ONLY valid JSON starting with { and ending with }")
