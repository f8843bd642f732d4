"""CSV and PDF export of a scan's findings."""

import csv
import io
from datetime import datetime, timezone
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer
from reportlab.platypus.flowables import HRFlowable

from app.schemas.compliance import ComplianceFinding

CSV_HEADER = (
    "Product Title",
    "Status",
    "Compliance Score",
    "Violations",
    "Policy",
    "Law",
    "Severity",
    "Risk",
    "Why it matters",
    "AI guidance",
)

PDF_TITLE = "Google Ads Policy Copilot Report"
PDF_MARGIN = 40
_LINK_COLOR = "#1c6ff8"
_RULE_COLOR = colors.HexColor("#cccccc")


def format_risk(score: float) -> str:
    """Risk in [0, 1] as a whole percentage, e.g. 0.92 -> '92%'."""
    return f"{round(min(1.0, max(0.0, score)) * 100)}%"


def filter_by_market(findings: list[ComplianceFinding], market: str) -> list[ComplianceFinding]:
    key = market.strip().lower()
    return [f for f in findings if f.market.lower() == key]


def build_scan_csv(findings: list[ComplianceFinding]) -> str:
    """One row per violation; products without violations get a single Clean row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for finding in findings:
        if not finding.violations:
            writer.writerow([finding.product_title, "Clean", finding.compliance_score, 0, "", "", "", "", "", ""])
            continue
        for violation in finding.violations:
            writer.writerow(
                [
                    finding.product_title,
                    finding.status,
                    finding.compliance_score,
                    len(finding.violations),
                    violation.policy,
                    violation.law,
                    violation.severity,
                    format_risk(violation.risk_score),
                    violation.why_matters,
                    violation.suggestion,
                ]
            )
    return buffer.getvalue()


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def build_report_story(
    findings: list[ComplianceFinding],
    shop_domain: str,
    market: str,
    started_at: datetime,
    generated_at: datetime,
) -> list[Flowable]:
    """
    Flowables for the PDF report: a header block, then one numbered section per
    product with its numbered violations. Sections are separated by a rule.
    """
    styles = getSampleStyleSheet()
    heading, product_style, body, detail = styles["Heading1"], styles["Heading3"], styles["Normal"], styles["BodyText"]

    story: list[Flowable] = [
        Paragraph(escape(PDF_TITLE), heading),
        Paragraph(escape(f"Shop: {shop_domain}"), body),
        Paragraph(escape(f"Market: {market.upper()}"), body),
        Paragraph(escape(f"Generated: {_format_timestamp(generated_at)}"), body),
        Paragraph(escape(f"Scan started: {_format_timestamp(started_at)}"), body),
        Spacer(1, 12),
    ]

    for index, finding in enumerate(findings, start=1):
        story.append(Paragraph(escape(f"{index}. {finding.product_title}"), product_style))
        story.append(Paragraph(escape(f"Status: {finding.status} • Score: {finding.compliance_score}%"), body))
        if not finding.violations:
            story.append(Paragraph("No violations detected.", body))
        for number, violation in enumerate(finding.violations, start=1):
            story.append(Spacer(1, 4))
            story.append(
                Paragraph(
                    escape(
                        f"{number}) {violation.policy} – {violation.law} "
                        f"({violation.severity}, {format_risk(violation.risk_score)} risk)"
                    ),
                    body,
                )
            )
            story.append(Paragraph(escape(f"Issue: {violation.issue}"), detail))
            story.append(Paragraph(escape(f"Why it matters: {violation.why_matters}"), detail))
            story.append(Paragraph(escape(f"AI guidance: {violation.suggestion}"), detail))
            if violation.source_url:
                href = escape(violation.source_url, {'"': "&quot;"})
                story.append(
                    Paragraph(f'<a href="{href}" color="{_LINK_COLOR}">{escape(violation.source_url)}</a>', detail)
                )
        story.append(Spacer(1, 12))
        if index < len(findings):
            story.append(HRFlowable(width="100%", thickness=0.5, color=_RULE_COLOR, spaceBefore=6, spaceAfter=12))
    return story


def build_scan_pdf(
    findings: list[ComplianceFinding],
    shop_domain: str,
    market: str,
    started_at: datetime,
    generated_at: datetime | None = None,
) -> bytes:
    """Render the per-product compliance report as a PDF document."""
    generated_at = generated_at or datetime.now(timezone.utc)
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=LETTER,
        leftMargin=PDF_MARGIN,
        rightMargin=PDF_MARGIN,
        topMargin=PDF_MARGIN,
        bottomMargin=PDF_MARGIN,
        title=PDF_TITLE,
        author=shop_domain,
    )
    doc.build(build_report_story(findings, shop_domain, market, started_at, generated_at))
    return buffer.getvalue()


def export_filename(shop_domain: str, market: str, timestamp: str, extension: str = "csv") -> str:
    """compliance_scan_<shop>_<market>_<timestamp>.<ext> with ':' and '.' in the timestamp replaced."""
    safe_timestamp = timestamp.replace(":", "-").replace(".", "-")
    return f"compliance_scan_{shop_domain}_{market}_{safe_timestamp}.{extension}"
