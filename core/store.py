"""
Entity Store - Storage for Users, Properties, Reports and Tax Notices

EntityStore is the abstract interface the workflow and API depend on.
InMemoryEntityStore keeps everything in process memory with optional JSON
file persistence; a database-backed store can replace it without touching
the scoring engine or the API.

Policy:
- Identifiers are per-entity auto-incrementing integers starting at 1.
- Lookups and mutators raise NotFoundError for unknown ids.
- Mutations are serialised by a re-entrant lock, so increments are atomic.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from core.credentials import hash_password
from core.errors import ConflictError, InternalError, NotFoundError
from core.models import (
    NewProperty,
    NewReport,
    NewTaxNotice,
    NewUser,
    Property,
    PropertyStatus,
    Report,
    TaxNotice,
    TaxNoticeStatus,
    User,
    utc_now,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Interface
# =============================================================================


class EntityStore(ABC):
    """Abstract storage for the four CivicEye entities."""

    # Users ------------------------------------------------------------------

    @abstractmethod
    def create_user(self, data: NewUser) -> User:
        """Create a user. Raises ConflictError on duplicate username/email."""

    @abstractmethod
    def get_user(self, user_id: int) -> User:
        """Raises NotFoundError when absent."""

    @abstractmethod
    def get_user_by_username(self, username: str) -> User:
        """Raises NotFoundError when absent."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> User:
        """Raises NotFoundError when absent."""

    @abstractmethod
    def list_users(self) -> list[User]:
        """All users in insertion (id) order."""

    @abstractmethod
    def update_user_points(self, user_id: int, delta: int) -> int:
        """Add delta to a user's points. Returns the new total."""

    # Properties -------------------------------------------------------------

    @abstractmethod
    def create_property(self, data: NewProperty) -> Property:
        """Create a property with status Reported and reportCount 0."""

    @abstractmethod
    def get_property(self, property_id: int) -> Property:
        """Raises NotFoundError when absent."""

    @abstractmethod
    def find_property_by_address(self, address: str) -> Optional[Property]:
        """Case-insensitive exact address match, or None."""

    @abstractmethod
    def list_properties(
        self,
        status: Optional[PropertyStatus] = None,
        limit: Optional[int] = None,
    ) -> list[Property]:
        """Filter by status (if given), capped at limit, in insertion order."""

    @abstractmethod
    def update_property_status(self, property_id: int, status: PropertyStatus) -> None:
        """Set a property's status unconditionally."""

    @abstractmethod
    def promote_property_status(
        self, property_id: int, status: PropertyStatus
    ) -> PropertyStatus:
        """
        Move a property to status only if that advances its lifecycle.

        Returns the status the property holds afterwards.
        """

    @abstractmethod
    def increment_report_count(self, property_id: int) -> int:
        """Atomically add one to reportCount. Returns the new count."""

    @abstractmethod
    def update_vacancy_score(self, property_id: int, score: int) -> None:
        """Set the externally computed vacancy score (0-100)."""

    @abstractmethod
    def update_last_utility_reading(self, property_id: int, reading: datetime) -> None:
        """Record when utilities were last read for a property."""

    # Reports ----------------------------------------------------------------

    @abstractmethod
    def create_report(
        self, data: NewReport, user_id: Optional[int], points: int = 50
    ) -> Report:
        """Create an immutable report row. Does not touch counts or points."""

    @abstractmethod
    def get_report(self, report_id: int) -> Report:
        """Raises NotFoundError when absent."""

    @abstractmethod
    def list_reports(
        self,
        property_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> list[Report]:
        """Filter by property and/or user (logical AND)."""

    # Tax notices ------------------------------------------------------------

    @abstractmethod
    def create_tax_notice(self, data: NewTaxNotice) -> TaxNotice:
        """Create a Pending notice."""

    @abstractmethod
    def get_tax_notice(self, notice_id: int) -> TaxNotice:
        """Raises NotFoundError when absent."""

    @abstractmethod
    def list_tax_notices(self, property_id: Optional[int] = None) -> list[TaxNotice]:
        """Filter by property (if given)."""

    @abstractmethod
    def update_tax_notice_status(
        self,
        notice_id: int,
        status: TaxNoticeStatus,
        transaction_hash: Optional[str] = None,
    ) -> TaxNotice:
        """Set notice status and (optionally) its transaction hash."""

    # Lifecycle --------------------------------------------------------------

    def flush(self) -> None:
        """Write pending state to durable storage. No-op by default."""

    def close(self) -> None:
        """Release resources. Flushes by default."""
        self.flush()


# =============================================================================
# In-Memory Implementation
# =============================================================================


class InMemoryEntityStore(EntityStore):
    """
    In-memory entity store.

    Provides CRUD and filtered queries over dicts keyed by id.
    Uses in-memory storage with optional file persistence.
    """

    def __init__(self, persist_path: Optional[str] = None):
        """
        Initialise store.

        Args:
            persist_path: Optional path to persist data to a JSON file
        """
        self._lock = threading.RLock()
        self._users: dict[int, User] = {}
        self._properties: dict[int, Property] = {}
        self._reports: dict[int, Report] = {}
        self._tax_notices: dict[int, TaxNotice] = {}
        self._next_ids = {"users": 1, "properties": 1, "reports": 1, "taxNotices": 1}
        self._persist_path = Path(persist_path) if persist_path else None

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    def _next_id(self, kind: str) -> int:
        next_id = self._next_ids[kind]
        self._next_ids[kind] = next_id + 1
        return next_id

    def _insert(self, table: dict, kind: str, entity):
        """Add a new row and persist it. The row is withdrawn if the write fails."""
        table[entity.id] = entity
        try:
            self._save_to_file()
        except InternalError:
            del table[entity.id]
            self._next_ids[kind] = entity.id
            raise
        return entity

    # =========================================================================
    # Persistence
    # =========================================================================

    def _save_to_file(self) -> None:
        """Persist data to file."""
        if not self._persist_path:
            return

        data = {
            "users": [u.to_record() for u in self._users.values()],
            "properties": [p.to_dict() for p in self._properties.values()],
            "reports": [r.to_dict() for r in self._reports.values()],
            "taxNotices": [n.to_dict() for n in self._tax_notices.values()],
            "nextIds": dict(self._next_ids),
            "savedAt": utc_now().isoformat(),
        }

        try:
            self._persist_path.parent.mkdir(parents=True, exist_ok=True)
            self._persist_path.write_text(json.dumps(data, indent=2))
        except OSError as e:
            raise InternalError(f"Could not persist store: {e}") from e

    def _load_from_file(self) -> None:
        """Load data from file."""
        try:
            data = json.loads(self._persist_path.read_text())
            for record in data.get("users", []):
                user = User.from_record(record)
                self._users[user.id] = user
            for record in data.get("properties", []):
                prop = Property.from_dict(record)
                self._properties[prop.id] = prop
            for record in data.get("reports", []):
                report = Report.from_dict(record)
                self._reports[report.id] = report
            for record in data.get("taxNotices", []):
                notice = TaxNotice.from_dict(record)
                self._tax_notices[notice.id] = notice
            self._next_ids.update(data.get("nextIds", {}))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            # Start fresh rather than refuse to boot
            logger.warning("Could not load store data from %s: %s", self._persist_path, e)

    def flush(self) -> None:
        with self._lock:
            self._save_to_file()

    # =========================================================================
    # Users
    # =========================================================================

    def create_user(self, data: NewUser) -> User:
        with self._lock:
            for existing in self._users.values():
                if existing.username.lower() == data.username.lower():
                    raise ConflictError("Username already taken", field="username")
                if existing.email.lower() == data.email.lower():
                    raise ConflictError("Email already registered", field="email")

            user = User(
                id=self._next_id("users"),
                username=data.username,
                email=data.email,
                password_hash=hash_password(data.password),
            )
            return self._insert(self._users, "users", user)

    def get_user(self, user_id: int) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def get_user_by_username(self, username: str) -> User:
        for user in list(self._users.values()):
            if user.username.lower() == username.lower():
                return user
        raise NotFoundError("User", username)

    def get_user_by_email(self, email: str) -> User:
        for user in list(self._users.values()):
            if user.email.lower() == email.lower():
                return user
        raise NotFoundError("User", email)

    def list_users(self) -> list[User]:
        with self._lock:
            return list(self._users.values())

    def update_user_points(self, user_id: int, delta: int) -> int:
        with self._lock:
            user = self.get_user(user_id)
            if user.points + delta < 0:
                raise ValueError("points cannot go below zero")
            user.points += delta
            self._save_to_file()
            return user.points

    # =========================================================================
    # Properties
    # =========================================================================

    def create_property(self, data: NewProperty) -> Property:
        with self._lock:
            prop = Property(
                id=self._next_id("properties"),
                address=data.address,
                property_type=data.property_type,
                latitude=data.latitude,
                longitude=data.longitude,
                estimated_tax_loss=data.estimated_tax_loss,
            )
            return self._insert(self._properties, "properties", prop)

    def get_property(self, property_id: int) -> Property:
        prop = self._properties.get(property_id)
        if prop is None:
            raise NotFoundError("Property", property_id)
        return prop

    def find_property_by_address(self, address: str) -> Optional[Property]:
        wanted = " ".join(address.split()).lower()
        for prop in list(self._properties.values()):
            if " ".join(prop.address.split()).lower() == wanted:
                return prop
        return None

    def list_properties(
        self,
        status: Optional[PropertyStatus] = None,
        limit: Optional[int] = None,
    ) -> list[Property]:
        with self._lock:
            result = list(self._properties.values())
        if status is not None:
            result = [p for p in result if p.status == status]
        if limit is not None:
            result = result[:limit]
        return result

    def update_property_status(self, property_id: int, status: PropertyStatus) -> None:
        with self._lock:
            prop = self.get_property(property_id)
            prop.status = status
            prop.touch()
            self._save_to_file()

    def promote_property_status(
        self, property_id: int, status: PropertyStatus
    ) -> PropertyStatus:
        with self._lock:
            prop = self.get_property(property_id)
            if prop.status.is_before(status):
                prop.status = status
                prop.touch()
                self._save_to_file()
            return prop.status

    def increment_report_count(self, property_id: int) -> int:
        with self._lock:
            prop = self.get_property(property_id)
            prop.report_count += 1
            prop.touch()
            self._save_to_file()
            return prop.report_count

    def update_vacancy_score(self, property_id: int, score: int) -> None:
        if not 0 <= score <= 100:
            raise ValueError("vacancy score must be between 0 and 100")
        with self._lock:
            prop = self.get_property(property_id)
            prop.vacancy_score = score
            prop.touch()
            self._save_to_file()

    def update_last_utility_reading(self, property_id: int, reading: datetime) -> None:
        with self._lock:
            prop = self.get_property(property_id)
            prop.last_utility_reading = reading
            prop.touch()
            self._save_to_file()

    # =========================================================================
    # Reports
    # =========================================================================

    def create_report(
        self, data: NewReport, user_id: Optional[int], points: int = 50
    ) -> Report:
        with self._lock:
            if data.property_id is not None:
                self.get_property(data.property_id)
            if user_id is not None:
                self.get_user(user_id)

            report = Report(
                id=self._next_id("reports"),
                reason=data.reason,
                duration=data.duration,
                property_id=data.property_id,
                user_id=user_id,
                description=data.description,
                image_url=data.image_url,
                contact_name=data.contact_name,
                contact_email=data.contact_email,
                points=points,
            )
            return self._insert(self._reports, "reports", report)

    def get_report(self, report_id: int) -> Report:
        report = self._reports.get(report_id)
        if report is None:
            raise NotFoundError("Report", report_id)
        return report

    def list_reports(
        self,
        property_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> list[Report]:
        with self._lock:
            result = list(self._reports.values())
        if property_id is not None:
            result = [r for r in result if r.property_id == property_id]
        if user_id is not None:
            result = [r for r in result if r.user_id == user_id]
        return result

    # =========================================================================
    # Tax Notices
    # =========================================================================

    def create_tax_notice(self, data: NewTaxNotice) -> TaxNotice:
        with self._lock:
            self.get_property(data.property_id)
            notice = TaxNotice(
                id=self._next_id("taxNotices"),
                property_id=data.property_id,
                penalty_type=data.penalty_type,
                penalty_amount=data.penalty_amount,
                due_date=data.due_date,
            )
            return self._insert(self._tax_notices, "taxNotices", notice)

    def get_tax_notice(self, notice_id: int) -> TaxNotice:
        notice = self._tax_notices.get(notice_id)
        if notice is None:
            raise NotFoundError("Tax notice", notice_id)
        return notice

    def list_tax_notices(self, property_id: Optional[int] = None) -> list[TaxNotice]:
        with self._lock:
            result = list(self._tax_notices.values())
        if property_id is not None:
            result = [n for n in result if n.property_id == property_id]
        return result

    def update_tax_notice_status(
        self,
        notice_id: int,
        status: TaxNoticeStatus,
        transaction_hash: Optional[str] = None,
    ) -> TaxNotice:
        with self._lock:
            notice = self.get_tax_notice(notice_id)
            if notice.is_confirmed and status != TaxNoticeStatus.CONFIRMED:
                raise ValueError("A confirmed tax notice cannot return to pending")
            notice.status = status
            if transaction_hash:
                notice.transaction_hash = transaction_hash
            self._save_to_file()
            return notice
