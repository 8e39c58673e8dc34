"""
CivicEye Workflow - Report Submission and Enforcement Orchestration

Runs the multi-entity operations against an EntityStore:

Report submission, in fixed order:
1. Resolve (or create) the property
2. Create the report row
3. Increment the property's report count
4. Apply the status rule
5. Award points to the submitter
6. Publish the reportCreated event
7. Return the report

Validation and reference checks happen before step 1, so a rejected request
writes nothing. Once the report row exists, steps 3-6 are best-effort: a
failure is logged and recorded as a degraded step, never rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

from core.errors import NotFoundError
from core.events import ChangeEvent, EventBus, EventType
from core.ledger import EnforcementLedger
from core.models import (
    NewProperty,
    Property,
    Report,
    TaxNotice,
    TaxNoticeStatus,
    User,
)
from core.scoring import RankedUser, ScoringEngine, rank_of, rank_users
from core.stats import compute_stats
from core.store import EntityStore
from core.validation import (
    check_limit,
    parse_property_input,
    parse_report_input,
    parse_status_filter,
    parse_tax_notice_input,
    parse_user_input,
)


logger = logging.getLogger(__name__)


# Step names reported when a best-effort step fails
STEP_INCREMENT_COUNT = "increment_report_count"
STEP_APPLY_STATUS = "apply_status_rule"
STEP_AWARD_POINTS = "award_points"
STEP_PUBLISH = "publish_event"
STEP_PROMOTE_PENALTY = "promote_penalty_status"

DEFAULT_LEADERBOARD_LIMIT = 10


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class ReportSubmissionResult:
    """Outcome of a report submission. Degraded if any later step failed."""

    report: Report
    property: Optional[Property]
    points_awarded: int
    degraded_steps: tuple[str, ...] = ()

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_steps)


@dataclass(frozen=True)
class TaxNoticeIssueResult:
    """Outcome of issuing a tax notice."""

    notice: TaxNotice
    degraded_steps: tuple[str, ...] = ()

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_steps)


# =============================================================================
# Workflow
# =============================================================================


class CivicWorkflow:
    """Entry point for every operation the API exposes."""

    def __init__(
        self,
        store: EntityStore,
        bus: Optional[EventBus] = None,
        engine: Optional[ScoringEngine] = None,
        ledger: Optional[EnforcementLedger] = None,
    ):
        self.store = store
        self.bus = bus or EventBus()
        self.engine = engine or ScoringEngine()
        self.ledger = ledger or EnforcementLedger()

    def _publish(self, event_type: EventType, payload: dict) -> None:
        self.bus.publish(ChangeEvent(event_type=event_type, payload=payload))

    # =========================================================================
    # Users
    # =========================================================================

    def register_user(self, payload: dict[str, Any]) -> User:
        """Create a user. Raises ValidationError or ConflictError."""
        user = self.store.create_user(parse_user_input(payload))
        logger.info("Registered user %d (%s)", user.id, user.username)
        return user

    def get_user_profile(self, user_id: int) -> RankedUser:
        """A user with current rank and badge. Raises NotFoundError."""
        self.store.get_user(user_id)
        ranked = rank_of(user_id, self.store.list_users())
        if ranked is None:
            raise NotFoundError("User", user_id)
        return ranked

    def leaderboard(self, limit: Optional[int] = DEFAULT_LEADERBOARD_LIMIT) -> list[RankedUser]:
        """Users by points descending, ties by id. Rank covers all users."""
        check_limit(limit)
        ranked = rank_users(self.store.list_users())
        return ranked[:limit] if limit is not None else ranked

    # =========================================================================
    # Properties
    # =========================================================================

    def register_property(self, payload: dict[str, Any]) -> Property:
        """Validate and create a property, then announce it."""
        prop = self.store.create_property(parse_property_input(payload))
        logger.info("Property %d created: %s", prop.id, prop.address)
        self._publish(EventType.PROPERTY_CREATED, prop.to_dict())
        return prop

    def list_properties(
        self,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Property]:
        return self.store.list_properties(
            status=parse_status_filter(status),
            limit=check_limit(limit),
        )

    # =========================================================================
    # Reports
    # =========================================================================

    def submit_report(
        self,
        payload: dict[str, Any],
        user_id: Optional[int] = None,
    ) -> ReportSubmissionResult:
        """
        Record a citizen report and apply its consequences.

        Args:
            payload: Raw report payload (camelCase keys)
            user_id: Submitting user, or None for an anonymous report

        Returns:
            ReportSubmissionResult with the created report

        Raises:
            ValidationError: payload rejected, nothing written
            NotFoundError: propertyId or user_id does not exist, nothing written
        """
        data = parse_report_input(payload)
        if user_id is not None:
            self.store.get_user(user_id)

        # 1. Resolve or create the property
        prop = self._resolve_property(data.property_id, data.address, data.property_type)

        # 2. Create the report row
        report = self.store.create_report(
            replace(data, property_id=prop.id if prop else None),
            user_id=user_id,
            points=self.engine.points_for_report(),
        )
        logger.info(
            "Report %d recorded for property %s by user %s",
            report.id,
            report.property_id,
            report.user_id,
        )

        degraded: list[str] = []
        points_awarded = 0

        if prop is not None:
            # 3. Increment report count
            try:
                self.store.increment_report_count(prop.id)
            except Exception:
                logger.exception("Report %d: could not increment report count", report.id)
                degraded.append(STEP_INCREMENT_COUNT)

            # 4. Apply status rule
            try:
                self._apply_status_rule(prop.id)
            except Exception:
                logger.exception("Report %d: could not apply status rule", report.id)
                degraded.append(STEP_APPLY_STATUS)

        # 5. Award points
        if user_id is not None:
            try:
                self.store.update_user_points(user_id, report.points)
                points_awarded = report.points
            except Exception:
                logger.exception("Report %d: could not award points to user %d", report.id, user_id)
                degraded.append(STEP_AWARD_POINTS)

        # 6. Publish
        try:
            self._publish(EventType.REPORT_CREATED, report.to_dict())
        except Exception:
            logger.exception("Report %d: could not publish event", report.id)
            degraded.append(STEP_PUBLISH)

        if degraded:
            logger.warning("Report %d completed with degraded steps: %s", report.id, degraded)

        current = self._refetch_property(prop)
        return ReportSubmissionResult(
            report=report,
            property=current,
            points_awarded=points_awarded,
            degraded_steps=tuple(degraded),
        )

    def _resolve_property(
        self,
        property_id: Optional[int],
        address: Optional[str],
        property_type: Optional[str],
    ) -> Optional[Property]:
        if property_id is not None:
            return self.store.get_property(property_id)
        if not address:
            return None

        existing = self.store.find_property_by_address(address)
        if existing is not None:
            return existing

        prop = self.store.create_property(
            NewProperty(address=address, property_type=property_type or "")
        )
        logger.info("Property %d created from report: %s", prop.id, prop.address)
        self._publish(EventType.PROPERTY_CREATED, prop.to_dict())
        return prop

    def _apply_status_rule(self, property_id: int) -> None:
        prop = self.store.get_property(property_id)
        target = self.engine.evaluate_status(prop.status, prop.report_count)
        if target != prop.status:
            previous = prop.status
            result = self.store.promote_property_status(property_id, target)
            logger.info(
                "Property %d status %s -> %s at %d reports",
                property_id,
                previous.value,
                result.value,
                prop.report_count,
            )

    def _refetch_property(self, prop: Optional[Property]) -> Optional[Property]:
        if prop is None:
            return None
        try:
            return self.store.get_property(prop.id)
        except NotFoundError:
            return prop

    def list_reports(
        self,
        property_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> list[Report]:
        return self.store.list_reports(property_id=property_id, user_id=user_id)

    # =========================================================================
    # Tax Notices
    # =========================================================================

    def issue_tax_notice(self, payload: dict[str, Any]) -> TaxNoticeIssueResult:
        """
        Issue a tax notice and record its enforcement transaction.

        The notice is created Pending, recorded on the ledger and immediately
        confirmed with the transaction hash. A property that is Confirmed
        Vacant moves to Penalty Issued.

        Raises:
            ValidationError: payload rejected
            NotFoundError: property does not exist
        """
        data = parse_tax_notice_input(payload)
        self.store.get_property(data.property_id)

        notice = self.store.create_tax_notice(data)
        transaction = self.ledger.record(notice)
        notice = self.store.update_tax_notice_status(
            notice.id,
            TaxNoticeStatus.CONFIRMED,
            transaction_hash=transaction.transaction_hash,
        )
        logger.info(
            "Tax notice %d confirmed for property %d (tx %s)",
            notice.id,
            notice.property_id,
            transaction.transaction_hash,
        )

        degraded: list[str] = []
        try:
            prop = self.store.get_property(notice.property_id)
            target = self.engine.status_after_penalty(prop.status)
            if target != prop.status:
                self.store.promote_property_status(prop.id, target)
        except Exception:
            logger.exception("Tax notice %d: could not update property status", notice.id)
            degraded.append(STEP_PROMOTE_PENALTY)

        try:
            self._publish(EventType.TAX_NOTICE_CREATED, notice.to_dict())
        except Exception:
            logger.exception("Tax notice %d: could not publish event", notice.id)
            degraded.append(STEP_PUBLISH)

        return TaxNoticeIssueResult(notice=notice, degraded_steps=tuple(degraded))

    def list_tax_notices(self, property_id: Optional[int] = None) -> list[TaxNotice]:
        return self.store.list_tax_notices(property_id=property_id)

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self) -> dict:
        return compute_stats(self.store)
