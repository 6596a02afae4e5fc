"""Fixed HTML/CSS layout for generated SOP documents.

The skeleton carries everything deterministic (document control table,
authorization block, revision history, footer). Narrative sections are left
as ``{{PURPOSE}}``-style placeholders for the model to fill.
"""

import html
from dataclasses import dataclass, field
from datetime import date, timedelta
from string import Template

from app.core.config import Settings

SOP_SECTIONS: tuple[str, ...] = (
    "Purpose",
    "Scope",
    "Responsibility",
    "Definitions",
    "Procedure",
    "Documentation",
    "References",
)

EFFECTIVE_OFFSET_DAYS = 30
REVIEW_OFFSET_DAYS = 365

# Locale-independent month abbreviations
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def derive_document_number(chapter_code: str, objective_code: str | None = None) -> str:
    """``SOP-<chapter>-<objective with dots as dashes>``, ``001`` without an objective."""
    suffix = objective_code.replace(".", "-") if objective_code else "001"
    return f"SOP-{chapter_code}-{suffix}"


def format_sop_date(value: date) -> str:
    """Render as ``DD Mon YYYY``."""
    return f"{value.day:02d} {_MONTHS[value.month - 1]} {value.year}"


def derive_sop_dates(today: date | None = None) -> tuple[str, str]:
    """Effective date (today - 30 days) and review date (today + 365 days)."""
    today = today or date.today()
    effective = today - timedelta(days=EFFECTIVE_OFFSET_DAYS)
    review = today + timedelta(days=REVIEW_OFFSET_DAYS)
    return format_sop_date(effective), format_sop_date(review)


def placeholder_for(section: str) -> str:
    return "{{" + section.upper() + "}}"


@dataclass
class Signatory:
    role: str
    name: str
    designation: str
    signature_url: str


@dataclass
class SOPTemplateContext:
    """Values substituted into the SOP skeleton."""

    document_number: str
    title: str
    chapter_code: str
    chapter_name: str
    objective_code: str | None
    department: str
    category: str
    version: str
    effective_date: str
    review_date: str
    hospital_name: str
    hospital_address: str
    hospital_contact: str
    hospital_logo_url: str
    nabh_logo_url: str
    signatories: list[Signatory] = field(default_factory=list)


def build_template_context(
    settings: Settings,
    chapter_code: str,
    chapter_name: str,
    objective_code: str | None = None,
    title: str | None = None,
    today: date | None = None,
    version: str = "1.0",
) -> SOPTemplateContext:
    effective_date, review_date = derive_sop_dates(today)
    return SOPTemplateContext(
        document_number=derive_document_number(chapter_code, objective_code),
        title=title or f"{chapter_name} SOP",
        chapter_code=chapter_code,
        chapter_name=chapter_name,
        objective_code=objective_code,
        department=settings.SOP_DEPARTMENT,
        category=f"{chapter_code} - {chapter_name}",
        version=version,
        effective_date=effective_date,
        review_date=review_date,
        hospital_name=settings.HOSPITAL_NAME,
        hospital_address=settings.HOSPITAL_ADDRESS,
        hospital_contact=settings.HOSPITAL_CONTACT,
        hospital_logo_url=settings.HOSPITAL_LOGO_URL,
        nabh_logo_url=settings.NABH_LOGO_URL,
        signatories=[
            Signatory(
                "Prepared By",
                settings.PREPARED_BY_NAME,
                settings.PREPARED_BY_DESIGNATION,
                settings.SIGNATURE_PREPARED_URL,
            ),
            Signatory(
                "Reviewed By",
                settings.REVIEWED_BY_NAME,
                settings.REVIEWED_BY_DESIGNATION,
                settings.SIGNATURE_REVIEWED_URL,
            ),
            Signatory(
                "Approved By",
                settings.APPROVED_BY_NAME,
                settings.APPROVED_BY_DESIGNATION,
                settings.SIGNATURE_APPROVED_URL,
            ),
        ],
    )


_STYLE = """
  @page { size: A4 portrait; margin: 10mm; }
  body { font-family: 'Segoe UI', Arial, sans-serif; font-size: 11pt; color: #222; margin: 0; }
  .sop-header { display: flex; align-items: center; justify-content: space-between;
                border-bottom: 3px solid #1565C0; padding-bottom: 8px; }
  .sop-header img { height: 56px; }
  .sop-header h1 { font-size: 18pt; color: #1565C0; margin: 0; text-align: center; }
  .sop-title { text-align: center; font-size: 14pt; font-weight: 600; margin: 12px 0; }
  table { width: 100%; border-collapse: collapse; margin: 8px 0; page-break-inside: avoid; }
  tr { page-break-inside: avoid; }
  th, td { border: 1px solid #90A4AE; padding: 5px 8px; vertical-align: top; }
  th { background: #E3F2FD; text-align: left; }
  .auth-table td img { height: 36px; }
  .sop-section h2 { font-size: 12.5pt; color: #1565C0; border-bottom: 1px solid #BBDEFB;
                    padding-bottom: 3px; margin: 16px 0 6px; }
  .sop-footer { border-top: 2px solid #1565C0; margin-top: 24px; padding-top: 6px;
                font-size: 9pt; color: #555; text-align: center; }
"""

_SKELETON = Template(
    """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>${document_number} - ${title}</title>
<style>${style}</style>
</head>
<body>
<div class="sop-header">
  <img src="${hospital_logo_url}" alt="${hospital_name} logo">
  <h1>${hospital_name}</h1>
  <img src="${nabh_logo_url}" alt="NABH logo">
</div>
<div class="sop-title">STANDARD OPERATING PROCEDURE: ${title}</div>
<table class="meta-table">
  <tr><th>Document No</th><td>${document_number}</td><th>Version</th><td>${version}</td></tr>
  <tr><th>Department</th><td>${department}</td><th>Category</th><td>${category}</td></tr>
  <tr><th>Effective Date</th><td>${effective_date}</td><th>Review Date</th><td>${review_date}</td></tr>
</table>
<table class="auth-table">
  <tr><th></th>${auth_roles}</tr>
  <tr><th>Name</th>${auth_names}</tr>
  <tr><th>Designation</th>${auth_designations}</tr>
  <tr><th>Date</th>${auth_dates}</tr>
  <tr><th>Signature</th>${auth_signatures}</tr>
</table>
${sections}
<section class="sop-section">
  <h2>Revision History</h2>
  <table class="revision-table">
    <tr><th>Version</th><th>Date</th><th>Description of Change</th><th>Approved By</th></tr>
    <tr><td>1.0</td><td>${effective_date}</td><td>Initial release</td><td>${approver}</td></tr>
  </table>
</section>
<div class="sop-footer">
  ${hospital_name}${address_line}${contact_line}<br>
  Controlled document. Printed copies are uncontrolled unless stamped.
</div>
</body>
</html>"""
)


def _cells(values: list[str]) -> str:
    return "".join(f"<td>{v}</td>" for v in values)


def render_sop_template(ctx: SOPTemplateContext, sections: dict[str, str] | None = None) -> str:
    """
    Render the SOP skeleton.

    Args:
        ctx: Document control values
        sections: Optional HTML body per section name; missing sections keep
            their ``{{SECTION}}`` placeholder

    Returns:
        Complete HTML document
    """
    e = html.escape
    sections = sections or {}

    section_html = "\n".join(
        f'<section class="sop-section">\n'
        f"  <h2>{index}. {name}</h2>\n"
        f'  <div class="section-body">{sections.get(name, placeholder_for(name))}</div>\n'
        f"</section>"
        for index, name in enumerate(SOP_SECTIONS, start=1)
    )

    signatories = ctx.signatories
    approver = signatories[-1].name if signatories else ""

    return _SKELETON.substitute(
        style=_STYLE,
        document_number=e(ctx.document_number),
        title=e(ctx.title),
        version=e(ctx.version),
        department=e(ctx.department),
        category=e(ctx.category),
        effective_date=e(ctx.effective_date),
        review_date=e(ctx.review_date),
        hospital_name=e(ctx.hospital_name),
        hospital_logo_url=e(ctx.hospital_logo_url, quote=True),
        nabh_logo_url=e(ctx.nabh_logo_url, quote=True),
        auth_roles="".join(f"<th>{e(s.role)}</th>" for s in signatories),
        auth_names=_cells([e(s.name) for s in signatories]),
        auth_designations=_cells([e(s.designation) for s in signatories]),
        auth_dates=_cells([e(ctx.effective_date) for _ in signatories]),
        auth_signatures=_cells(
            [f'<img src="{e(s.signature_url, quote=True)}" alt="{e(s.role)} signature">'
             for s in signatories]
        ),
        sections=section_html,
        approver=e(approver),
        address_line=f" | {e(ctx.hospital_address)}" if ctx.hospital_address else "",
        contact_line=f" | {e(ctx.hospital_contact)}" if ctx.hospital_contact else "",
    )
