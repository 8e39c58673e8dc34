"""
Tests for the In-Memory Entity Store

Tests covering:
1. Per-entity auto-incrementing ids
2. NotFoundError on unknown ids for getters and mutators
3. Uniqueness of usernames and emails
4. Status promotion never moves backwards
5. Tax notice status is Pending -> Confirmed only
6. File persistence survives a restart
"""

from __future__ import annotations

import tempfile
import threading
from dataclasses import FrozenInstanceError
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from core.credentials import verify_password
from core.errors import ConflictError, InternalError, NotFoundError
from core.models import (
    NewProperty,
    NewReport,
    NewTaxNotice,
    NewUser,
    PropertyStatus,
    TaxNoticeStatus,
)
from core.store import InMemoryEntityStore


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_persist_path():
    """Create a temporary file path for persistence."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield str(Path(tmpdir) / "store.json")


@pytest.fixture
def store():
    return InMemoryEntityStore()


@pytest.fixture
def prop(store):
    return store.create_property(
        NewProperty(
            address="12 Maple Row",
            property_type="Residential - Single Family",
            latitude=Decimal("40.7128"),
            longitude=Decimal("-74.0060"),
            estimated_tax_loss=Decimal("8450.00"),
        )
    )


@pytest.fixture
def user(store):
    return store.create_user(
        NewUser(username="reporter", email="reporter@example.com", password="password1")
    )


def _report(property_id=None) -> NewReport:
    return NewReport(reason="no-occupancy", duration="6-12-months", property_id=property_id)


# =============================================================================
# Identifier Tests
# =============================================================================


class TestIdentifiers:
    """Ids are positive, start at 1 and are independent per entity."""

    def test_first_ids_start_at_one(self, store, prop, user):
        assert prop.id == 1
        assert user.id == 1

    def test_ids_increment_per_entity(self, store, prop):
        second = store.create_property(NewProperty(address="14 Maple Row", property_type="Commercial"))
        report = store.create_report(_report(prop.id), user_id=None)

        assert second.id == 2
        assert report.id == 1


# =============================================================================
# Not Found Tests
# =============================================================================


class TestNotFound:
    """Unknown ids raise NotFoundError, never return silently."""

    def test_get_property_unknown(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.get_property(999)
        assert exc_info.value.public_message == "Property not found"

    def test_get_user_unknown(self, store):
        with pytest.raises(NotFoundError):
            store.get_user(42)

    def test_get_user_by_username_unknown(self, store):
        with pytest.raises(NotFoundError):
            store.get_user_by_username("nobody")

    def test_get_user_by_email_unknown(self, store, user):
        with pytest.raises(NotFoundError) as exc_info:
            store.get_user_by_email("nobody@example.com")
        assert exc_info.value.public_message == "User not found"

    def test_mutators_raise_for_unknown_property(self, store):
        with pytest.raises(NotFoundError):
            store.increment_report_count(5)
        with pytest.raises(NotFoundError):
            store.update_property_status(5, PropertyStatus.INVESTIGATING)
        with pytest.raises(NotFoundError):
            store.update_vacancy_score(5, 50)

    def test_update_points_unknown_user(self, store):
        with pytest.raises(NotFoundError):
            store.update_user_points(7, 50)

    def test_report_for_unknown_property_is_rejected(self, store):
        with pytest.raises(NotFoundError):
            store.create_report(_report(property_id=3), user_id=None)
        assert store.list_reports() == []

    def test_tax_notice_for_unknown_property_is_rejected(self, store):
        with pytest.raises(NotFoundError):
            store.create_tax_notice(
                NewTaxNotice(property_id=3, penalty_type="vacancy-tax", penalty_amount=Decimal("100.00"))
            )


# =============================================================================
# User Tests
# =============================================================================


class TestUsers:

    def test_password_is_hashed(self, user):
        assert user.password_hash != "password1"
        assert "$" in user.password_hash
        assert verify_password("password1", user.password_hash)
        assert not verify_password("password2", user.password_hash)

    def test_public_dict_omits_password(self, user):
        data = user.to_dict(rank=1, badge="Newcomer")
        assert "passwordHash" not in data
        assert "password_hash" not in data
        assert data["rank"] == 1

    def test_duplicate_username_conflicts(self, store, user):
        with pytest.raises(ConflictError) as exc_info:
            store.create_user(NewUser(username="Reporter", email="other@example.com", password="password1"))
        assert exc_info.value.field == "username"

    def test_duplicate_email_conflicts(self, store, user):
        with pytest.raises(ConflictError) as exc_info:
            store.create_user(NewUser(username="other", email="REPORTER@example.com", password="password1"))
        assert exc_info.value.field == "email"

    def test_get_user_by_email_ignores_case(self, store, user):
        found = store.get_user_by_email("Reporter@EXAMPLE.com")
        assert found.id == user.id
        assert found.email == "reporter@example.com"

    def test_points_are_additive(self, store, user):
        assert store.update_user_points(user.id, 50) == 50
        assert store.update_user_points(user.id, 50) == 100
        assert store.get_user(user.id).points == 100

    def test_points_cannot_go_negative(self, store, user):
        with pytest.raises(ValueError):
            store.update_user_points(user.id, -10)
        assert store.get_user(user.id).points == 0


# =============================================================================
# Property Tests
# =============================================================================


class TestProperties:

    def test_new_property_defaults(self, prop):
        assert prop.status == PropertyStatus.REPORTED
        assert prop.report_count == 0
        assert prop.vacancy_score == 0
        assert prop.created_at.tzinfo == timezone.utc
        assert prop.to_dict()["createdAt"].endswith("+00:00")

    def test_wire_format(self, prop):
        data = prop.to_dict()
        assert data["latitude"] == "40.7128"
        assert data["estimatedTaxLoss"] == "8450.00"
        assert data["status"] == "Reported"
        assert data["propertyType"] == "Residential - Single Family"

    def test_increment_returns_new_count(self, store, prop):
        assert store.increment_report_count(prop.id) == 1
        assert store.increment_report_count(prop.id) == 2

    def test_concurrent_increments_are_not_lost(self, store, prop):
        def bump():
            for _ in range(100):
                store.increment_report_count(prop.id)

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get_property(prop.id).report_count == 400

    def test_promote_never_moves_backwards(self, store, prop):
        store.update_property_status(prop.id, PropertyStatus.PENALTY_ISSUED)
        result = store.promote_property_status(prop.id, PropertyStatus.CONFIRMED_VACANT)

        assert result == PropertyStatus.PENALTY_ISSUED
        assert store.get_property(prop.id).status == PropertyStatus.PENALTY_ISSUED

    def test_promote_moves_forwards(self, store, prop):
        result = store.promote_property_status(prop.id, PropertyStatus.CONFIRMED_VACANT)
        assert result == PropertyStatus.CONFIRMED_VACANT

    def test_vacancy_score_bounds(self, store, prop):
        with pytest.raises(ValueError):
            store.update_vacancy_score(prop.id, 101)
        store.update_vacancy_score(prop.id, 100)
        assert store.get_property(prop.id).vacancy_score == 100

    def test_list_filters_by_status_and_limit(self, store, prop):
        for n in range(3):
            p = store.create_property(NewProperty(address=f"{n} Elm Street", property_type="Commercial"))
            store.update_property_status(p.id, PropertyStatus.CONFIRMED_VACANT)

        confirmed = store.list_properties(status=PropertyStatus.CONFIRMED_VACANT, limit=2)

        assert len(confirmed) == 2
        assert all(p.status == PropertyStatus.CONFIRMED_VACANT for p in confirmed)

    def test_find_by_address_ignores_case_and_spacing(self, store, prop):
        found = store.find_property_by_address("  12  maple ROW ")
        assert found is not None
        assert found.id == prop.id
        assert store.find_property_by_address("99 Nowhere Lane") is None


# =============================================================================
# Report Tests
# =============================================================================


class TestReports:

    def test_report_defaults_to_fifty_points(self, store, prop):
        report = store.create_report(_report(prop.id), user_id=None)
        assert report.points == 50
        assert report.user_id is None

    def test_report_without_property_is_allowed(self, store):
        report = store.create_report(_report(), user_id=None)
        assert report.property_id is None

    def test_list_filters(self, store, prop, user):
        store.create_report(_report(prop.id), user_id=user.id)
        store.create_report(_report(prop.id), user_id=None)
        store.create_report(_report(), user_id=user.id)

        assert len(store.list_reports(property_id=prop.id)) == 2
        assert len(store.list_reports(user_id=user.id)) == 2
        assert len(store.list_reports(property_id=prop.id, user_id=user.id)) == 1

    def test_report_is_immutable(self, store, prop):
        report = store.create_report(_report(prop.id), user_id=None)
        with pytest.raises(FrozenInstanceError):
            report.points = 500


# =============================================================================
# Tax Notice Tests
# =============================================================================


class TestTaxNotices:

    @pytest.fixture
    def notice(self, store, prop):
        return store.create_tax_notice(
            NewTaxNotice(
                property_id=prop.id,
                penalty_type="vacancy-tax",
                penalty_amount=Decimal("5000.00"),
            )
        )

    def test_new_notice_is_pending(self, notice):
        assert notice.status == TaxNoticeStatus.PENDING
        assert notice.transaction_hash is None

    def test_confirm_sets_hash(self, store, notice):
        updated = store.update_tax_notice_status(
            notice.id, TaxNoticeStatus.CONFIRMED, transaction_hash="0xabc"
        )
        assert updated.status == TaxNoticeStatus.CONFIRMED
        assert updated.transaction_hash == "0xabc"

    def test_confirmed_cannot_return_to_pending(self, store, notice):
        store.update_tax_notice_status(notice.id, TaxNoticeStatus.CONFIRMED, transaction_hash="0xabc")
        with pytest.raises(ValueError):
            store.update_tax_notice_status(notice.id, TaxNoticeStatus.PENDING)

    def test_unknown_notice(self, store):
        with pytest.raises(NotFoundError):
            store.update_tax_notice_status(9, TaxNoticeStatus.CONFIRMED)


# =============================================================================
# Persistence Tests
# =============================================================================


class TestPersistence:

    def test_data_survives_restart(self, temp_persist_path):
        first = InMemoryEntityStore(persist_path=temp_persist_path)
        user = first.create_user(NewUser(username="keeper", email="keeper@example.com", password="password1"))
        prop = first.create_property(
            NewProperty(address="1 Harbour Road", property_type="Industrial", estimated_tax_loss=Decimal("12.50"))
        )
        first.create_report(_report(prop.id), user_id=user.id)
        first.increment_report_count(prop.id)
        first.update_user_points(user.id, 50)
        first.update_last_utility_reading(prop.id, datetime(2024, 1, 15, 9, 30))

        second = InMemoryEntityStore(persist_path=temp_persist_path)

        reloaded = second.get_property(prop.id)
        assert reloaded.report_count == 1
        assert reloaded.estimated_tax_loss == Decimal("12.50")
        assert reloaded.last_utility_reading == datetime(2024, 1, 15, 9, 30)
        assert second.get_user(user.id).points == 50
        assert len(second.list_reports(property_id=prop.id)) == 1

    def test_ids_continue_after_restart(self, temp_persist_path):
        first = InMemoryEntityStore(persist_path=temp_persist_path)
        first.create_property(NewProperty(address="1 Harbour Road", property_type="Industrial"))

        second = InMemoryEntityStore(persist_path=temp_persist_path)
        prop = second.create_property(NewProperty(address="2 Harbour Road", property_type="Industrial"))

        assert prop.id == 2

    def test_corrupt_file_starts_empty(self, temp_persist_path):
        Path(temp_persist_path).write_text("{not json")
        store = InMemoryEntityStore(persist_path=temp_persist_path)
        assert store.list_properties() == []

    def test_failed_write_leaves_no_report(self, temp_persist_path):
        store = InMemoryEntityStore(persist_path=temp_persist_path)
        prop = store.create_property(NewProperty(address="1 Harbour Road", property_type="Industrial"))
        # A directory in place of the file makes every write fail
        Path(temp_persist_path).unlink()
        Path(temp_persist_path).mkdir()

        with pytest.raises(InternalError):
            store.create_report(_report(prop.id), user_id=None)

        assert store.list_reports() == []
        assert store.get_property(prop.id).report_count == len(store.list_reports(property_id=prop.id))

        Path(temp_persist_path).rmdir()
        report = store.create_report(_report(prop.id), user_id=None)
        assert report.id == 1

    def test_failed_write_allows_user_retry(self, temp_persist_path):
        store = InMemoryEntityStore(persist_path=temp_persist_path)
        Path(temp_persist_path).mkdir()
        new_user = NewUser(username="retry", email="retry@example.com", password="password1")

        with pytest.raises(InternalError):
            store.create_user(new_user)
        with pytest.raises(InternalError):
            store.create_property(NewProperty(address="3 Harbour Road", property_type="Industrial"))
        assert store.list_users() == []
        assert store.list_properties() == []

        Path(temp_persist_path).rmdir()
        user = store.create_user(new_user)
        assert user.id == 1
        assert InMemoryEntityStore(persist_path=temp_persist_path).get_user(1).username == "retry"
