"""
Tests for Tax Notice PDF generation

Tests covering:
1. Only confirmed notices are rendered
2. Output lands under tax-notices/ with a stable name
3. Documents render with and without property details
"""

import tempfile
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from core.models import Property, PropertyStatus, TaxNotice, TaxNoticeStatus
from reporting import NoticeNotConfirmed, NoticeRendered, TaxNoticePDFGenerator
from utils.formatting import format_currency


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def output_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def generator(output_dir):
    return TaxNoticePDFGenerator(output_dir=output_dir)


@pytest.fixture
def prop():
    return Property(
        id=4,
        address="789 Industrial Way, West Side",
        property_type="Industrial",
        status=PropertyStatus.CONFIRMED_VACANT,
        report_count=12,
    )


@pytest.fixture
def confirmed_notice():
    return TaxNotice(
        id=3,
        property_id=4,
        penalty_type="vacancy-tax",
        penalty_amount=Decimal("5000.00"),
        due_date=datetime(2025, 6, 30),
        status=TaxNoticeStatus.CONFIRMED,
        transaction_hash="0x" + "ab" * 32,
    )


# =============================================================================
# Render Tests
# =============================================================================


class TestRender:

    def test_pending_notice_not_rendered(self, generator):
        pending = TaxNotice(id=1, property_id=4, penalty_type="vacancy-tax", penalty_amount=Decimal("10.00"))

        result = generator.render(pending, None)

        assert isinstance(result, NoticeNotConfirmed)
        assert result.notice_id == 1
        assert not generator.path_for(1).exists()

    def test_confirmed_notice_written(self, generator, output_dir, confirmed_notice, prop):
        result = generator.render(confirmed_notice, prop)

        assert isinstance(result, NoticeRendered)
        assert result.path == Path(output_dir) / "tax-notices" / "notice-3.pdf"
        assert result.path.read_bytes().startswith(b"%PDF")

    def test_render_without_property(self, generator, confirmed_notice):
        content = generator.render_to_bytes(confirmed_notice, None)
        assert content.startswith(b"%PDF")

    def test_unknown_penalty_type_renders(self, generator, confirmed_notice, prop):
        confirmed_notice.penalty_type = "custom-levy"
        confirmed_notice.due_date = None
        assert generator.render_to_bytes(confirmed_notice, prop).startswith(b"%PDF")


class TestFormatting:

    def test_currency(self):
        assert format_currency(Decimal("5000")) == "$5,000.00"
        assert format_currency(1234.5, "GBP") == "£1,234.50"
