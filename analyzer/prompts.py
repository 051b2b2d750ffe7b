"""
UX Audit Prompts

Builds the single-page audit prompt and the contextual (multi-page) prompt
that carries sitemap and parsed page content.
"""

from datetime import datetime, timezone
from typing import List

from models import AnalysisRequest, PageContext

MAX_SITEMAP_LINES = 20
MAX_NAV_IN_PROMPT = 10


def _context_lines(request: AnalysisRequest, labels=("Target Audience", "User Goals", "Business Objectives")) -> List[str]:
    values = (request.target_audience, request.user_goals, request.business_objectives)
    return [f"{label}: {value}" for label, value in zip(labels, values) if value]


BASE_AUDIT_PROMPT = """## ROLE & GOAL
You are a senior UX consultant from Lemon Yellow, renowned for delivering contextual, business-focused UX audits that go beyond generic templates. Your reputation depends on providing unique insights that directly connect UX friction to business impact.

You are analyzing {subject} to deliver a comprehensive UX audit following Lemon Yellow's signature audit flow. Every output must be specific, contextual, and demonstrate deep understanding of this particular experience.

## CRITICAL CONTEXTUAL REQUIREMENTS
ABSOLUTELY FORBIDDEN:
- Generic percentages or business impact claims (like "+24% conversion rate")
- Template language that could apply to any website
- Fake competitive benchmarks or industry comparisons
- Made-up statistics or projected improvements
- Generic user personas like "busy professional" or "first-time visitor"

REQUIRED FOR EVERY INSIGHT:
- Quote actual text you see on the site
- Reference specific UI elements by their exact appearance/color/position
- Name actual pages or sections you analyzed
- Identify the real business model/industry from what you observe
- Base persona on the actual target audience evident from content

## AUDIT FLOW REQUIREMENTS

### 1. Executive Summary
- 1-2 sentences based ONLY on what you actually observed
- High-level UX state tied to the site's actual primary business goal
- Must reference specific elements or content from THIS site

### 2. Key Insights (Holistic Patterns)
- 2-3 insights that emerge from analyzing THIS specific experience
- Quote actual text or describe specific visual elements as evidence
- Focus on patterns you can prove exist across multiple pages/flows

### 3. Persona-Driven User Journey
- Define ONE realistic persona based on the actual content/industry you observe
- Reference actual pages, buttons, forms, or content you can see
- Each step must reference specific elements: actual button text, form fields, page titles
- Issues must be observable problems, not theoretical ones

### 4. Heuristic Violations (Nielsen's 10)
- Reference specific elements you can actually see
- Quote actual text or describe exact visual problems
- Example: "Error Prevention → The contact form shows 'Required' labels only after submission attempt, not before"

### 5. Recommended Fixes (Prioritized)
- Based ONLY on problems you actually identified
- Reference specific elements that need changing
- No business impact projections or conversion rate estimates

## EVIDENCE REQUIREMENTS
Every single finding must include:
- Exact text you can read on the site (in quotes)
- Specific UI element descriptions (button color, position, size)
- Actual page names or URLs where you found the issue
- Real business context derived from the site's actual content/purpose

## ANALYSIS APPROACH
1. First, determine what this website/app actually does from the content
2. Identify the real target audience from the language, imagery, and features
3. Navigate through actual user flows visible in the interface
4. Document only observable problems with specific evidence
5. Create persona based on who this site is clearly designed for
{context}
## OUTPUT FORMAT (strict JSON schema)
Respond ONLY with a JSON object matching this new Lemon Yellow audit structure:

{{
  "executiveSummary": "1-2 sentences referencing specific elements or content you observed on this site. Must mention actual business model/purpose.",
  "confidence": 0.0,
  "keyInsights": [
    "Quote actual text or reference specific visual elements you observed",
    "Describe specific patterns you found across actual pages/sections",
    "Reference real navigation paths or user flows you analyzed"
  ],
  "personaDrivenJourney": {{
    "persona": "Specific persona based on actual target audience evident from site content (not generic)",
    "personaReasoning": "Evidence from actual site content showing why this persona fits (reference specific text/features)",
    "steps": [
      {{
        "action": "Specific action referencing actual page names, button text, or content you can see",
        "issues": ["Observable problem with specific UI element or text you can quote"],
        "improvements": ["Specific fix for actual element you identified"]
      }}
    ],
    "overallExperience": "excellent|good|fair|poor|broken"
  }},
  "heuristicViolations": [
    {{
      "heuristic": "Specific Nielsen heuristic name",
      "element": "Exact UI element with specific description (color, position, text)",
      "violation": "Observable problem you can see on this specific site",
      "businessImpact": "Impact based on this site's actual business model (no fake percentages)",
      "evidence": "Quote actual text in quotes or describe specific visual element in detail"
    }}
  ],
  "prioritizedFixes": [
    {{
      "recommendation": "Specific fix referencing actual elements that need changing",
      "priority": "high|medium|low",
      "businessImpact": "Qualitative impact description (no percentage claims or conversion estimates)",
      "effort": "high|medium|low",
      "timeframe": "immediate|short-term|long-term"
    }}
  ],
  "scores": {{
    "heuristics": {{ "score": 0.0, "maxScore": 5.0, "findings": "Assessment based on specific heuristic violations you found with evidence" }},
    "uxLaws": {{ "score": 0.0, "maxScore": 5.0, "findings": "Assessment referencing specific UX law violations you observed" }},
    "copywriting": {{ "score": 0.0, "maxScore": 5.0, "findings": "Assessment of actual text and copy you read on the site" }},
    "accessibility": {{ "score": 0.0, "maxScore": 5.0, "findings": "Assessment based on accessibility issues you can observe" }}
  }},
  "analysisLog": {{
    "siteBusinessGoal": "Primary business objective you determined from actual site content and features",
    "navigationPath": ["List actual pages/sections you analyzed - use real page names or URLs"],
    "keyObservations": ["Specific observation 1 with quoted text or element descriptions", "Specific observation 2 with evidence"],
    "testingApproach": "Describe what specific flows, pages, or elements you actually analyzed"
  }}
}}

FINAL VALIDATION CHECKLIST - Every response must pass:
✓ Executive summary mentions specific site content or business model
✓ Key insights quote actual text or reference specific visual elements
✓ Persona is based on evidence from the actual site (not generic)
✓ User journey steps reference actual buttons, forms, or page elements
✓ Heuristic violations quote specific text or describe exact visual problems
✓ Recommendations reference specific elements that need changing
✓ NO generic percentages, conversion claims, or competitive benchmarks
✓ NO template language that could apply to any website

Output requirements:
- Valid JSON only (no markdown, no prose outside JSON)
- All content specific to {target}
- If analysis is limited, be transparent in analysisLog about what you could/couldn't observe
"""


def build_analysis_prompt(request: AnalysisRequest) -> str:
    """
    Generate the single-page audit prompt.

    URL audits end with an instruction to analyze the site; screenshot audits
    ask for an analysis of the attached image instead.
    """
    is_url = request.analysis_type == "url" and bool(request.url)
    subject = f"the website at `{request.url}`" if is_url else "the provided design/screenshot"

    context_lines = _context_lines(request)
    context = ""
    if context_lines:
        context = "\n## CONTEXT\n" + "\n".join(f"- {line}" for line in context_lines) + "\n"

    prompt = BASE_AUDIT_PROMPT.format(
        subject=subject,
        context=context,
        target=f"`{request.url}`" if is_url else "this image",
    )

    if is_url:
        prompt += f"\n\nAnalyze the website now: {request.url}"
    else:
        prompt += "\n\nAnalyze the provided screenshot/image for UX issues and opportunities."

    return prompt


def format_page_context(context: PageContext) -> str:
    """Describe one parsed page in user-facing terms."""
    nav_items = context.nav[:MAX_NAV_IN_PROMPT]
    nav_description = (
        ", ".join(f'"{nav.text}"' for nav in nav_items)
        if nav_items
        else "No navigation menu visible to users"
    )

    ctas = context.forms_and_ctas.primary_ctas
    cta_description = (
        ", ".join(f'"{cta.text}"' for cta in ctas)
        if ctas
        else "No clear call-to-action buttons available"
    )

    forms = context.forms_and_ctas.forms
    form_description = (
        ", ".join(f"form with fields: [{', '.join(form.fields)}]" for form in forms)
        if forms
        else "No forms for user interaction"
    )

    description = context.head.meta_description or "Missing - users won't see description in search results"
    headings = ", ".join(f'"{h}"' for h in context.main_content.headings)

    return f"""=== USER EXPERIENCE ON: {context.url} ===

PAGE TITLE & DESCRIPTION:
- Page title: "{context.head.title}"
- Search description: "{description}"

NAVIGATION EXPERIENCE:
- Available navigation: {nav_description}

MAIN CONTENT FOR USERS:
- Primary headings: [{headings}]
- Content preview: "{context.main_content.first_paragraphs}"

USER ACTIONS AVAILABLE:
- Call-to-action buttons: {cta_description}
- Interactive forms: {form_description}"""


CONTEXTUAL_GUIDELINES = """CONSULTATIVE LANGUAGE GUIDELINES:
✅ USE: "Users struggle to find navigation", "Trust barriers prevent conversion", "Poor color contrast affects readability"
❌ AVOID: "NAV is empty", "MAIN_CONTENT selector", "DOM element missing"

✅ USE: "Visual hierarchy confuses users", "Button placement reduces clicks", "Page loading frustrates visitors"
❌ AVOID: "CSS selector issues", "HTML structure problems", "Technical implementation errors"

ANALYSIS FOCUS AREAS:
1. **User Experience Impact** - How do findings affect real users?
2. **Business Consequences** - What revenue/conversion impact occurs?
3. **Emotional Journey** - What do users feel at each interaction?
4. **Visual Design Quality** - Hierarchy, contrast, typography, spacing issues
5. **Trust & Credibility** - What makes users confident or hesitant?
6. **Accessibility Barriers** - Who gets excluded and why?

VISUAL DESIGN EVALUATION CRITERIA:
- Visual hierarchy clarity and information prioritization
- Color contrast and accessibility compliance
- Typography readability and brand consistency
- Spacing, alignment, and visual breathing room
- Interactive element visibility and affordance

⚠️ CRITICAL INSTRUCTIONS - MUST FOLLOW:
1. **ANALYZE THE ACTUAL SITE** - Do NOT use generic examples or placeholder scores
2. **CALCULATE REAL SCORES** - Base scores (1.0-5.0) on ACTUAL observations from the page content provided
3. **BE SITE-SPECIFIC** - Every heuristic violation MUST reference specific elements you see in the page data
4. **VARY YOUR SCORES** - Different categories should have different scores based on actual quality
5. **INCLUDE businessImpact** - EVERY prioritizedFix MUST have a businessImpact field
6. **NO TEMPLATES** - Do not copy example text; write fresh analysis for THIS specific site

SCORING GUIDANCE:
- 4.5-5.0: Excellent (very few issues)
- 3.5-4.4: Good (minor improvements needed)
- 2.5-3.4: Fair (several issues to address)
- 1.5-2.4: Poor (significant problems)
- 1.0-1.4: Critical (major redesign needed)
"""

CONTEXTUAL_SCHEMA = """{
  "url": "%(subject)s",
  "timestamp": "%(timestamp)s",
  "executiveSummary": "Consultative summary of business value and user experience opportunities",

  "keyInsights": [
    "User-focused insight explaining visitor behavior and business impact",
    "Trust and credibility factors affecting conversion and engagement"
  ],

  "issues": [
    {
      "title": "User-friendly issue title focusing on impact",
      "category": "heuristics|ux-laws|copywriting|accessibility|visual-design|user-flow",
      "description": "How this issue affects real users and business outcomes",
      "recommendation": "Clear implementation guidance for improving user experience",
      "severity": "critical|major|minor",
      "impact": "high|medium|low",
      "effort": "low|medium|high",
      "userEmotionalImpact": "How users feel when encountering this issue"
    }
  ],

  "scores": {
    "heuristics": {"score": <SCORE_1_TO_5>, "maxScore": 5.0, "findings": "Site-specific assessment based on actual navigation, forms, and interaction patterns observed"},
    "uxLaws": {"score": <SCORE_1_TO_5>, "maxScore": 5.0, "findings": "Site-specific cognitive load and behavior principles evaluation based on actual content density"},
    "accessibility": {"score": <SCORE_1_TO_5>, "maxScore": 5.0, "findings": "Site-specific inclusive design assessment based on actual contrast, labels, and structure"},
    "copywriting": {"score": <SCORE_1_TO_5>, "maxScore": 5.0, "findings": "Site-specific content clarity evaluation based on actual headlines and CTAs"},
    "visualDesign": {"score": <SCORE_1_TO_5>, "maxScore": 5.0, "findings": "Site-specific visual hierarchy assessment based on actual layout and typography"}
  },

  "heuristicViolations": [
    {
      "heuristic": "Specific Nielsen heuristic name",
      "element": "Page element from the content provided",
      "violation": "What users run into",
      "businessImpact": "Effect on this site's goals",
      "evidence": "Quoted text or element description"
    }
  ],

  "prioritizedFixes": [
    {
      "recommendation": "High-impact improvement with clear business benefit",
      "priority": "high|medium|low",
      "businessImpact": "Revenue/conversion/user satisfaction impact",
      "effort": "low|medium|high",
      "timeframe": "immediate|short-term|long-term"
    }
  ],

  "personaDrivenJourney": {
    "persona": "SPECIFIC user type based on ACTUAL site content and business goals",
    "personaReasoning": "DETAILED explanation of why this persona matches the site's ACTUAL content, navigation, and CTAs",
    "steps": [
      {
        "step": 1,
        "stage": "awareness|exploration|trust|action|retention",
        "userGoal": "SPECIFIC goal based on ACTUAL page content",
        "emotionalState": "curious|cautious|frustrated|confident|hesitant|overwhelmed",
        "currentExperience": "DETAILED description of what user encounters at this stage on THIS specific site",
        "frictionPoints": ["SPECIFIC barriers from ACTUAL page"],
        "trustBarriers": ["SPECIFIC credibility issues from ACTUAL page"],
        "improvements": ["ACTIONABLE enhancements for THIS site"]
      }
    ],
    "overallExperience": "excellent|good|fair|poor|broken",
    "keyTakeaway": "One-sentence summary of the user journey quality and primary opportunity"
  },

  "analysisLog": {
    "siteBusinessGoal": "Primary business objective you determined from the page content",
    "navigationPath": ["Pages from the site structure you relied on"]
  }
}"""

CONTEXTUAL_CHECKLIST = """FINAL VALIDATION CHECKLIST - VERIFY BEFORE SUBMITTING:
✓ All scores are CALCULATED based on actual page analysis (NOT 3.0, 3.0, 3.0, 3.2)
✓ Every heuristicViolation mentions SPECIFIC page elements (headings, nav items, CTAs, forms)
✓ Every prioritizedFix has a NON-EMPTY businessImpact field
✓ Scores VARY across categories (different numbers for heuristics, accessibility, etc.)
✓ Analysis references the ACTUAL page content provided (titles, nav items, CTAs)
✓ personaDrivenJourney includes 3-5 journey steps with SITE-SPECIFIC details
✓ Each journey step references ACTUAL page elements and navigation flow

Return ONLY valid JSON starting with { and ending with }"""


def build_contextual_prompt(
    request: AnalysisRequest, sitemap_urls: List[str], contexts: List[PageContext]
) -> str:
    """
    Generate the multi-page audit prompt.

    Args:
        request: The original audit request (URL and optional business context)
        sitemap_urls: Ranked site URLs; only the first 20 are listed
        contexts: Parsed page contexts, audited page first

    Returns:
        Prompt string asking for a JSON-only answer
    """
    subject = request.url or "the uploaded image"
    sitemap_context = "\n".join(f"- {url}" for url in sitemap_urls[:MAX_SITEMAP_LINES])
    page_blocks = "\n\n".join(format_page_context(context) for context in contexts)

    business_lines = "\n".join(
        _context_lines(request, labels=("Target Users", "User Goals", "Business Impact"))
    )

    schema = CONTEXTUAL_SCHEMA % {
        "subject": subject,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return (
        f"As a senior UX consultant, analyze {subject} using consultative, user-impact language, "
        "not technical terms. Focus on user needs, business outcomes, and emotional barriers.\n\n"
        "BUSINESS CONTEXT PROVIDED:\n"
        f"[Site Structure] {sitemap_context}\n"
        f"[Page Content] {page_blocks}\n\n"
        f"{business_lines}\n\n"
        f"{CONTEXTUAL_GUIDELINES}\n"
        "Provide comprehensive UX consultancy-level analysis with ONLY a JSON response:\n\n"
        f"{schema}\n\n"
        f"{CONTEXTUAL_CHECKLIST}"
    )
