"""
UX Audit PDF Report Generator
Renders an AuditData dictionary (camelCase wire format) with reportlab
"""

import logging
from datetime import datetime
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    KeepTogether,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

logger = logging.getLogger(__name__)

FONT_NAME = "Helvetica"
FONT_NAME_BOLD = "Helvetica-Bold"
CONTENT_WIDTH = 7.5 * inch
MAX_ISSUES = 10

CATEGORY_LABELS = [
    ("heuristics", "Heuristics"),
    ("uxLaws", "UX Laws"),
    ("copywriting", "Copywriting"),
    ("accessibility", "Accessibility"),
]

COLORS = {
    "brand_pink": colors.HexColor("#EF4171"),
    "dark_gray": colors.HexColor("#1F2937"),
    "medium_gray": colors.HexColor("#6B7280"),
    "light_gray": colors.HexColor("#F3F4F6"),
    "pale_gray": colors.HexColor("#F9FAFB"),
    "warning_bg": colors.HexColor("#FEF3C7"),
    "warning_text": colors.HexColor("#92400E"),
    "success_bg": colors.HexColor("#D1FAE5"),
    "success_text": colors.HexColor("#047A55"),
    "white": colors.white,
    "poor_red": colors.HexColor("#DC3545"),
    "fair_yellow": colors.HexColor("#F59E0B"),
    "good_green": colors.HexColor("#10B981"),
}


def _text(value) -> str:
    """Escape model-provided text for reportlab's paragraph markup."""
    return escape(str(value)) if value is not None else ""


def _score_color(percentage):
    if percentage >= 80:
        return COLORS["good_green"]
    if percentage >= 60:
        return COLORS["fair_yellow"]
    return COLORS["poor_red"]


def _number(value, default=0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _boxed(paragraph, background):
    table = Table([[paragraph]], colWidths=[CONTENT_WIDTH])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), background),
                ("LEFTPADDING", (0, 0), (-1, -1), 10),
                ("RIGHTPADDING", (0, 0), (-1, -1), 10),
                ("TOPPADDING", (0, 0), (-1, -1), 6),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    return table


# name: (parent, font size, text color, bold, extra ParagraphStyle options)
STYLE_SPECS = {
    "CustomTitle": ("Heading1", 24, "dark_gray", True, {"spaceAfter": 6, "alignment": TA_CENTER}),
    "CustomSubtitle": ("Normal", 11, "medium_gray", False, {"spaceAfter": 20, "alignment": TA_CENTER}),
    "URLStyle": ("Normal", 14, "brand_pink", True, {"spaceAfter": 4, "alignment": TA_CENTER}),
    "DateStyle": ("Normal", 10, "medium_gray", False, {"spaceAfter": 20, "alignment": TA_CENTER}),
    "SectionHeading": ("Heading1", 16, "dark_gray", True, {"spaceAfter": 8, "spaceBefore": 8}),
    "SubsectionHeading": ("Heading2", 11, "dark_gray", True, {"spaceAfter": 3, "spaceBefore": 3}),
    "LabelStyle": ("Normal", 9, "medium_gray", True, {"spaceAfter": 4}),
    "CustomBodyText": ("Normal", 11, "dark_gray", False, {"spaceAfter": 4, "alignment": TA_JUSTIFY, "leading": 15}),
    "WarningText": ("Normal", 10, "warning_text", False, {"leading": 14}),
    "SuccessText": ("Normal", 10, "success_text", False, {"leading": 14}),
    "MetaStyle": ("Normal", 9, "medium_gray", False, {"alignment": TA_CENTER}),
}


def create_custom_styles():
    """Sample stylesheet plus the report's paragraph styles"""
    styles = getSampleStyleSheet()
    for name, (parent, size, color, bold, options) in STYLE_SPECS.items():
        styles.add(
            ParagraphStyle(
                name=name,
                parent=styles[parent],
                fontSize=size,
                textColor=COLORS[color],
                fontName=FONT_NAME_BOLD if bold else FONT_NAME,
                **options,
            )
        )
    return styles


def create_score_table(data):
    """Overall score and grade plus one card per core category"""
    scores = data.get("scores") or {}
    overall = scores.get("overall") or {}
    overall_pct = _number(overall.get("percentage"))

    values = [f"{overall_pct:.0f}% ({_text(overall.get('grade', 'N/A'))})"]
    labels = ["Overall"]
    card_colors = [_score_color(overall_pct)]

    for key, label in CATEGORY_LABELS:
        category = scores.get(key) or {}
        score = _number(category.get("score"))
        max_score = _number(category.get("maxScore"), 5.0)
        pct = _number(category.get("percentage"), score / max_score * 100 if max_score else 0)
        values.append(f"{score:.1f}/{max_score:.0f}")
        labels.append(label)
        card_colors.append(_score_color(pct))

    table = Table([values, labels], colWidths=[CONTENT_WIDTH / 5] * 5, hAlign="CENTER")
    style = [
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("FONTSIZE", (0, 0), (-1, 0), 14),
        ("FONTNAME", (0, 0), (-1, 0), FONT_NAME_BOLD),
        ("TEXTCOLOR", (0, 0), (-1, 0), COLORS["dark_gray"]),
        ("TOPPADDING", (0, 0), (-1, 0), 12),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 14),
        ("FONTSIZE", (0, 1), (-1, 1), 9),
        ("FONTNAME", (0, 1), (-1, 1), FONT_NAME),
        ("TEXTCOLOR", (0, 1), (-1, 1), COLORS["medium_gray"]),
        ("BOTTOMPADDING", (0, 1), (-1, 1), 10),
        ("BACKGROUND", (0, 0), (-1, -1), COLORS["white"]),
    ]
    for column, color in enumerate(card_colors):
        style.append(("BOX", (column, 0), (column, -1), 1, COLORS["light_gray"]))
        style.append(("BACKGROUND", (column, 0), (column, 0), color.clone(alpha=0.2)))
    table.setStyle(TableStyle(style))

    return table


def create_summary_section(data, styles):
    elements = [Paragraph("Executive Summary", styles["SectionHeading"])]
    summary = data.get("executiveSummary") or data.get("summary") or "No summary available."
    elements.append(_boxed(Paragraph(_text(summary), styles["CustomBodyText"]), COLORS["pale_gray"]))
    elements.append(Spacer(1, 0.12 * inch))

    insights = data.get("keyInsights") or data.get("insights") or []
    if insights:
        elements.append(Paragraph("Key Insights", styles["SubsectionHeading"]))
        for insight in insights:
            elements.append(Paragraph(f"• {_text(insight)}", styles["CustomBodyText"]))
        elements.append(Spacer(1, 0.12 * inch))

    return elements


def create_issue_section(issue, issue_number, styles):
    """Create a single issue block"""
    elements = []
    severity = _text(issue.get("severity", "")).upper()
    title = _text(issue.get("title") or "Untitled issue")
    elements.append(Paragraph(f"<b>{issue_number}.</b>   {title}", styles["SubsectionHeading"]))
    if severity:
        elements.append(
            Paragraph(
                f"{severity} | {_text(issue.get('category', ''))} | impact {_text(issue.get('impact', ''))}",
                styles["LabelStyle"],
            )
        )

    if issue.get("description"):
        elements.append(_boxed(Paragraph(_text(issue["description"]), styles["CustomBodyText"]), COLORS["pale_gray"]))
        elements.append(Spacer(1, 0.04 * inch))

    if issue.get("recommendation"):
        elements.append(_boxed(Paragraph(f"• {_text(issue['recommendation'])}", styles["SuccessText"]), COLORS["success_bg"]))

    elements.append(Spacer(1, 0.15 * inch))
    return elements


def create_violations_section(violations, styles):
    elements = [Paragraph("Heuristic Violations", styles["SectionHeading"])]
    for violation in violations:
        if not isinstance(violation, dict):
            continue
        block = [
            Paragraph(_text(violation.get("heuristic", "Heuristic")), styles["SubsectionHeading"]),
        ]
        if violation.get("element"):
            block.append(Paragraph(f"ELEMENT: {_text(violation['element'])}", styles["LabelStyle"]))
        block.append(_boxed(Paragraph(_text(violation.get("violation", "")), styles["WarningText"]), COLORS["warning_bg"]))
        if violation.get("businessImpact"):
            block.append(Paragraph(f"<i>{_text(violation['businessImpact'])}</i>", styles["CustomBodyText"]))
        block.append(Spacer(1, 0.1 * inch))
        elements.append(KeepTogether(block))
    return elements


def create_fixes_table(fixes, styles):
    rows = [["Recommendation", "Priority", "Effort", "Timeframe"]]
    for fix in fixes:
        if not isinstance(fix, dict):
            continue
        rows.append(
            [
                Paragraph(_text(fix.get("recommendation", "")), styles["CustomBodyText"]),
                _text(fix.get("priority", "")),
                _text(fix.get("effort", "")),
                _text(fix.get("timeframe", "")),
            ]
        )
    if len(rows) == 1:
        return []

    table = Table(rows, colWidths=[4.2 * inch, 1.0 * inch, 1.0 * inch, 1.3 * inch], repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), COLORS["brand_pink"]),
                ("TEXTCOLOR", (0, 0), (-1, 0), COLORS["white"]),
                ("FONTNAME", (0, 0), (-1, 0), FONT_NAME_BOLD),
                ("FONTNAME", (1, 1), (-1, -1), FONT_NAME),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [COLORS["white"], COLORS["pale_gray"]]),
                ("GRID", (0, 0), (-1, -1), 0.5, COLORS["light_gray"]),
            ]
        )
    )
    return [Paragraph("Prioritized Fixes", styles["SectionHeading"]), table, Spacer(1, 0.2 * inch)]


def create_journey_section(journey, styles):
    elements = [Paragraph("Persona-Driven Journey", styles["SectionHeading"])]
    if journey.get("persona"):
        elements.append(Paragraph(f"<b>Persona:</b> {_text(journey['persona'])}", styles["CustomBodyText"]))
    if journey.get("personaReasoning"):
        elements.append(Paragraph(_text(journey["personaReasoning"]), styles["CustomBodyText"]))

    for index, step in enumerate(journey.get("steps") or [], 1):
        if not isinstance(step, dict):
            continue
        action = step.get("action") or step.get("userGoal") or step.get("stage") or ""
        elements.append(Paragraph(f"<b>Step {index}.</b> {_text(action)}", styles["SubsectionHeading"]))
        for issue in (step.get("issues") or step.get("frictionPoints") or []):
            elements.append(Paragraph(f"• {_text(issue)}", styles["WarningText"]))
        for improvement in step.get("improvements") or []:
            elements.append(Paragraph(f"• {_text(improvement)}", styles["SuccessText"]))

    if journey.get("overallExperience"):
        elements.append(Spacer(1, 0.06 * inch))
        elements.append(
            Paragraph(f"Overall experience: <b>{_text(journey['overallExperience'])}</b>", styles["CustomBodyText"])
        )
    return elements


def _format_date(timestamp):
    try:
        return datetime.fromisoformat(str(timestamp).replace("Z", "+00:00")).strftime("%B %d, %Y")
    except ValueError:
        return datetime.now().strftime("%B %d, %Y")


def generate_pdf(audit_data, platform_name=None, output_path=None):
    """
    Generate the complete PDF report

    Args:
        audit_data: AuditData dictionary (camelCase keys); partial data is tolerated
        platform_name: Name shown in the title, defaults to the audited URL
        output_path: Optional file path to save PDF. If None, returns BytesIO buffer

    Returns:
        BytesIO buffer if output_path is None, otherwise None (saves to file)
    """
    pdf_file = output_path if output_path else BytesIO()

    doc = SimpleDocTemplate(
        pdf_file,
        pagesize=letter,
        rightMargin=0.5 * inch,
        leftMargin=0.5 * inch,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title="UX Audit Report",
    )

    styles = create_custom_styles()
    url = audit_data.get("url") or ""
    report_date = _format_date(audit_data.get("timestamp"))

    elements = [
        Paragraph("UX Audit Report", styles["CustomTitle"]),
        Paragraph(_text(platform_name or url or "Uploaded design"), styles["CustomSubtitle"]),
    ]
    if url:
        elements.append(Paragraph(_text(url), styles["URLStyle"]))
    elements.append(Paragraph(f"Analyzed: {report_date}", styles["DateStyle"]))

    if isinstance(audit_data.get("scores"), dict):
        elements.append(create_score_table(audit_data))
        elements.append(Spacer(1, 0.2 * inch))

    elements.extend(create_summary_section(audit_data, styles))

    issues = [i for i in audit_data.get("issues") or [] if isinstance(i, dict)]
    if issues:
        elements.append(PageBreak())
        elements.append(
            Paragraph(f"Issues Identified ({min(len(issues), MAX_ISSUES)} of {len(issues)})", styles["SectionHeading"])
        )
        for index, issue in enumerate(issues[:MAX_ISSUES], 1):
            elements.append(KeepTogether(create_issue_section(issue, index, styles)))

    violations = audit_data.get("heuristicViolations") or []
    if violations:
        elements.extend(create_violations_section(violations, styles))

    fixes = audit_data.get("prioritizedFixes") or []
    if fixes:
        elements.extend(create_fixes_table(fixes, styles))

    journey = audit_data.get("personaDrivenJourney")
    if isinstance(journey, dict) and journey:
        elements.extend(create_journey_section(journey, styles))

    elements.append(Spacer(1, 0.3 * inch))
    elements.append(Paragraph(f"UX Audit Report | Generated on {report_date}", styles["MetaStyle"]))
    elements.append(Paragraph("Lemon Yellow LLP | lemonyellow.design", styles["MetaStyle"]))

    doc.build(elements)

    if output_path:
        logger.info(f"✅ PDF Report created successfully: {output_path}")
        return None

    pdf_file.seek(0)
    return pdf_file
