"""
Reporting module for the CivicEye engine.

Generates printable tax notice PDFs for confirmed enforcement actions.

Usage:
    from reporting import TaxNoticePDFGenerator

    generator = TaxNoticePDFGenerator(output_dir="reports")
    result = generator.render(notice, property)
"""

from .tax_notice_pdf import (
    TaxNoticePDFGenerator,
    NoticeRendered,
    NoticeNotConfirmed,
    NoticeRenderResult,
    PENALTY_TYPE_LABELS,
)

__all__ = [
    "TaxNoticePDFGenerator",
    "NoticeRendered",
    "NoticeNotConfirmed",
    "NoticeRenderResult",
    "PENALTY_TYPE_LABELS",
]
