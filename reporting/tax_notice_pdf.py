"""
CivicEye - Vacant Property Tax Notice PDF

Renders a one-page enforcement notice for a confirmed tax notice.
Uses ReportLab for deterministic PDF generation: the same notice and
property always produce the same document content.

Output Structure:
1. Header (authority wordmark, notice reference)
2. Property details
3. Penalty details
4. Enforcement record (ledger transaction hash)
5. Payment instructions and disclaimer
"""

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    HRFlowable,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from core.models import Property, TaxNotice
from utils.formatting import format_currency


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class NoticeRendered:
    """Returned when the PDF was written."""
    path: Path
    notice_id: int


@dataclass
class NoticeNotConfirmed:
    """Returned when the notice has no confirmed enforcement record yet."""
    notice_id: int
    message: str = "Tax notice is not confirmed; no PDF generated."


NoticeRenderResult = Union[NoticeRendered, NoticeNotConfirmed]


PENALTY_TYPE_LABELS = {
    "vacancy-tax": "Vacancy Tax Penalty",
    "maintenance-violation": "Property Maintenance Violation",
    "registration-compliance": "Registration Non-Compliance",
}


# =============================================================================
# Color Palette
# =============================================================================

class Palette:
    """Print-friendly palette: charcoal text, civic blue accent."""
    BLACK = colors.Color(0.1, 0.1, 0.1)
    CHARCOAL = colors.Color(0.2, 0.2, 0.22)
    GRAY = colors.Color(0.5, 0.5, 0.5)
    LIGHT_GRAY = colors.Color(0.85, 0.85, 0.85)
    PALE_GRAY = colors.Color(0.95, 0.95, 0.95)

    ACCENT = colors.Color(0.12, 0.3, 0.6)
    WARNING = colors.Color(0.6, 0.2, 0.15)


def get_notice_styles():
    """Paragraph styles for the notice."""
    styles = getSampleStyleSheet()

    styles.add(ParagraphStyle(
        name='NoticeBrand',
        parent=styles['Normal'],
        fontSize=10,
        leading=13,
        textColor=Palette.ACCENT,
        alignment=TA_LEFT,
        fontName='Helvetica-Bold',
    ))

    styles.add(ParagraphStyle(
        name='NoticeTitle',
        parent=styles['Normal'],
        fontSize=20,
        leading=26,
        textColor=Palette.CHARCOAL,
        fontName='Helvetica-Bold',
        spaceAfter=4*mm,
    ))

    styles.add(ParagraphStyle(
        name='NoticeSection',
        parent=styles['Normal'],
        fontSize=12,
        leading=16,
        textColor=Palette.CHARCOAL,
        fontName='Helvetica-Bold',
        spaceBefore=14,
        spaceAfter=8,
    ))

    styles.add(ParagraphStyle(
        name='NoticeBody',
        parent=styles['Normal'],
        fontSize=9.5,
        leading=13,
        textColor=Palette.BLACK,
        fontName='Helvetica',
    ))

    styles.add(ParagraphStyle(
        name='NoticeHash',
        parent=styles['Normal'],
        fontSize=7.5,
        leading=10,
        textColor=Palette.CHARCOAL,
        fontName='Courier',
    ))

    styles.add(ParagraphStyle(
        name='NoticeDisclaimer',
        parent=styles['Normal'],
        fontSize=7.5,
        leading=10,
        textColor=Palette.GRAY,
        fontName='Helvetica',
    ))

    return styles


# =============================================================================
# Generator
# =============================================================================


class TaxNoticePDFGenerator:
    """
    Generates tax notice PDFs.

    Usage:
        generator = TaxNoticePDFGenerator(output_dir="reports")
        result = generator.render(notice, property)
    """

    MARGIN = 20*mm

    def __init__(self, output_dir: Union[str, Path] = "reports"):
        self.output_dir = Path(output_dir) / "tax-notices"
        self.styles = get_notice_styles()

    def path_for(self, notice_id: int) -> Path:
        return self.output_dir / f"notice-{notice_id}.pdf"

    def render(self, notice: TaxNotice, prop: Optional[Property]) -> NoticeRenderResult:
        """
        Write the PDF for a confirmed notice.

        Args:
            notice: The tax notice; must be confirmed
            prop: The property the notice is issued against

        Returns:
            NoticeRendered with the output path, or NoticeNotConfirmed
        """
        if not notice.is_confirmed:
            return NoticeNotConfirmed(notice_id=notice.id)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.path_for(notice.id)
        output_path.write_bytes(self.render_to_bytes(notice, prop))
        return NoticeRendered(path=output_path, notice_id=notice.id)

    def render_to_bytes(self, notice: TaxNotice, prop: Optional[Property]) -> bytes:
        """Generate PDF and return as bytes (for testing or streaming)."""
        buffer = BytesIO()
        self._build_document(notice, prop, buffer)
        return buffer.getvalue()

    def _build_document(self, notice: TaxNotice, prop: Optional[Property], buffer: BytesIO):
        doc = SimpleDocTemplate(
            buffer,
            pagesize=LETTER,
            leftMargin=self.MARGIN,
            rightMargin=self.MARGIN,
            topMargin=self.MARGIN,
            bottomMargin=self.MARGIN,
            title=f"Tax Notice {notice.id}",
            author="CivicEye",
            subject="Vacant Property Tax Notice",
        )

        story = []
        story.extend(self._build_header(notice))
        story.extend(self._build_property_section(notice, prop))
        story.extend(self._build_penalty_section(notice))
        story.extend(self._build_enforcement_section(notice))
        story.extend(self._build_footer())

        doc.build(story, onFirstPage=self._draw_frame, onLaterPages=self._draw_frame)

    def _draw_frame(self, canvas_obj: canvas.Canvas, doc):
        """Footer: wordmark left, page number right."""
        canvas_obj.saveState()
        canvas_obj.setFont('Helvetica', 7)
        canvas_obj.setFillColor(Palette.GRAY)
        canvas_obj.drawString(self.MARGIN, self.MARGIN - 8*mm, "CIVICEYE ENFORCEMENT")
        canvas_obj.drawRightString(
            doc.pagesize[0] - self.MARGIN,
            self.MARGIN - 8*mm,
            f"{doc.page}",
        )
        canvas_obj.restoreState()

    def _table(self, rows: list) -> Table:
        table = Table(rows, colWidths=[50*mm, None])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('TEXTCOLOR', (0, 0), (-1, -1), Palette.BLACK),
            ('BACKGROUND', (0, 0), (0, -1), Palette.PALE_GRAY),
            ('LINEBELOW', (0, 0), (-1, -1), 0.5, Palette.LIGHT_GRAY),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('TOPPADDING', (0, 0), (-1, -1), 5),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
        ]))
        return table

    def _build_header(self, notice: TaxNotice) -> list:
        return [
            Paragraph("CIVICEYE · MUNICIPAL REVENUE ENFORCEMENT", self.styles['NoticeBrand']),
            Spacer(1, 6*mm),
            Paragraph("Vacant Property Tax Notice", self.styles['NoticeTitle']),
            Paragraph(
                f"Notice reference: TN-{notice.id:06d} &nbsp;&nbsp; "
                f"Issued: {notice.created_at.strftime('%B %d, %Y')}",
                self.styles['NoticeBody'],
            ),
            Spacer(1, 4*mm),
            HRFlowable(width="100%", thickness=0.75, color=Palette.ACCENT),
        ]

    def _build_property_section(self, notice: TaxNotice, prop: Optional[Property]) -> list:
        rows = [["Property ID", str(notice.property_id)]]
        if prop is not None:
            rows.extend([
                ["Address", prop.address],
                ["Property type", prop.property_type],
                ["Verification status", prop.status.value],
                ["Reports on file", str(prop.report_count)],
            ])
        return [
            Paragraph("Property", self.styles['NoticeSection']),
            self._table(rows),
        ]

    def _build_penalty_section(self, notice: TaxNotice) -> list:
        penalty_label = PENALTY_TYPE_LABELS.get(notice.penalty_type, notice.penalty_type)
        due = notice.due_date.strftime('%B %d, %Y') if notice.due_date else "On receipt"
        rows = [
            ["Penalty type", penalty_label],
            ["Amount due", format_currency(notice.penalty_amount)],
            ["Due date", due],
        ]
        return [
            Paragraph("Penalty", self.styles['NoticeSection']),
            self._table(rows),
        ]

    def _build_enforcement_section(self, notice: TaxNotice) -> list:
        return [
            Paragraph("Enforcement Record", self.styles['NoticeSection']),
            Paragraph(
                f"Status: <b>{notice.status.value}</b>. This notice has been recorded "
                "on the enforcement ledger under the transaction below.",
                self.styles['NoticeBody'],
            ),
            Spacer(1, 3*mm),
            Paragraph(notice.transaction_hash or "", self.styles['NoticeHash']),
        ]

    def _build_footer(self) -> list:
        return [
            Spacer(1, 10*mm),
            HRFlowable(width="100%", thickness=0.5, color=Palette.LIGHT_GRAY),
            Spacer(1, 3*mm),
            Paragraph(
                "Payment must be received by the due date to avoid further penalties. "
                "To dispute this notice, contact the municipal revenue office and quote "
                "the notice reference.",
                self.styles['NoticeBody'],
            ),
            Spacer(1, 4*mm),
            Paragraph(
                "This notice was generated from citizen reports and a simulated ledger "
                "record. It is provided for demonstration purposes.",
                self.styles['NoticeDisclaimer'],
            ),
        ]
