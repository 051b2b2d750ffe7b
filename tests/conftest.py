import copy

import httpx
import pytest


SAMPLE_AI_RESPONSE = {
    "executiveSummary": "Acme's pricing page buries the 'Start free trial' button below three plan tables.",
    "confidence": 0.9,
    "keyInsights": ["The hero headline 'Build faster' never says what Acme builds."],
    "personaDrivenJourney": {
        "persona": "Engineering lead comparing plans",
        "steps": [
            {
                "action": "Clicks 'Pricing' in the top nav",
                "issues": ["Plan names do not match the feature table"],
                "improvements": ["Align plan names across the page"],
            }
        ],
        "overallExperience": "fair",
    },
    "heuristicViolations": [
        {
            "heuristic": "Consistency and standards",
            "element": "Plan cards",
            "violation": "Two different names for the same plan",
            "businessImpact": "Visitors hesitate before choosing a plan",
            "evidence": "'Team' vs 'Business'",
        }
    ],
    "prioritizedFixes": [
        {"recommendation": "Move the trial CTA above the plan tables", "priority": "high"},
        {"recommendation": "Rename plans consistently", "priority": "medium"},
    ],
    "issues": [
        {
            "id": "nav-1",
            "title": "Hidden CTA",
            "category": "heuristics",
            "severity": "major",
            "evidence": [{"type": "screenshot", "reference": "pricing-hero.png"}],
        },
        {"title": "Vague headline", "category": "ux-laws", "severity": "minor"},
        {"title": "Low contrast footer", "category": "accessibility"},
    ],
    "scores": {
        "heuristics": {"score": 4.0, "maxScore": 5.0, "findings": "Mostly consistent"},
        "uxLaws": {"score": 3.0, "maxScore": 5.0},
        "copywriting": {"score": 4.5, "maxScore": 5.0, "findings": "Clear copy"},
        "accessibility": {"score": 2.5, "maxScore": 5.0},
    },
    "analysisLog": {
        "siteBusinessGoal": "Convert visitors to trials",
        "navigationPath": ["/", "/pricing"],
    },
}


@pytest.fixture
def ai_response():
    return copy.deepcopy(SAMPLE_AI_RESPONSE)


@pytest.fixture
def mock_client():
    """Build an AsyncClient whose requests are answered by handler(request)."""
    clients = []

    def factory(handler):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    return factory
