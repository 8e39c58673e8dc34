"""
Data models for the CivicEye engine.

Entities are plain dataclasses. API payloads use the camelCase keys of the
public JSON contract, produced by each entity's to_dict().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Optional


# =============================================================================
# Enums
# =============================================================================


class PropertyStatus(Enum):
    """Verification lifecycle of a reported property."""

    REPORTED = "Reported"
    INVESTIGATING = "Investigating"
    CONFIRMED_VACANT = "Confirmed Vacant"
    PENALTY_ISSUED = "Penalty Issued"

    @property
    def stage(self) -> int:
        """Position in the lifecycle (0 = initial)."""
        return _STATUS_STAGES[self]

    def is_before(self, other: "PropertyStatus") -> bool:
        return self.stage < other.stage


_STATUS_STAGES = {
    PropertyStatus.REPORTED: 0,
    PropertyStatus.INVESTIGATING: 1,
    PropertyStatus.CONFIRMED_VACANT: 2,
    PropertyStatus.PENALTY_ISSUED: 3,
}


class TaxNoticeStatus(Enum):
    """Enforcement state of a tax notice. Pending -> Confirmed only."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"


# =============================================================================
# Serialisation Helpers
# =============================================================================

CENTS = Decimal("0.01")


def utc_now() -> datetime:
    """Timezone-aware current time. All generated timestamps are UTC."""
    return datetime.now(timezone.utc)


def to_money(value: Any) -> Optional[Decimal]:
    """Coerce a currency amount to a 2dp Decimal."""
    if value is None or value == "":
        return None
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _decimal_str(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _from_decimal(value: Optional[str]) -> Optional[Decimal]:
    return Decimal(value) if value is not None else None


# =============================================================================
# Entities
# =============================================================================


@dataclass
class User:
    """
    A registered citizen reporter.

    Points only ever change through additive awards. Rank and badge are
    projections computed from points at read time and are not stored.
    """

    id: int
    username: str
    email: str
    password_hash: str
    points: int = 0
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if self.points < 0:
            raise ValueError("points must be non-negative")

    def to_dict(self, rank: Optional[int] = None, badge: Optional[str] = None) -> dict:
        """Public representation. The password hash is never included."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "points": self.points,
            "rank": rank,
            "badge": badge,
            "createdAt": _iso(self.created_at),
        }

    def to_record(self) -> dict:
        """Full representation for persistence."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "passwordHash": self.password_hash,
            "points": self.points,
            "createdAt": _iso(self.created_at),
        }

    @classmethod
    def from_record(cls, data: dict) -> "User":
        return cls(
            id=data["id"],
            username=data["username"],
            email=data["email"],
            password_hash=data["passwordHash"],
            points=data.get("points", 0),
            created_at=_from_iso(data.get("createdAt")) or utc_now(),
        )


@dataclass
class Property:
    """A real-world address tracked for suspected vacancy."""

    id: int
    address: str
    property_type: str
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    status: PropertyStatus = PropertyStatus.REPORTED
    vacancy_score: int = 0  # 0-100, set externally
    report_count: int = 0
    last_utility_reading: Optional[datetime] = None
    estimated_tax_loss: Optional[Decimal] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not 0 <= self.vacancy_score <= 100:
            raise ValueError("vacancy_score must be between 0 and 100")
        if self.report_count < 0:
            raise ValueError("report_count must be non-negative")

    def touch(self) -> None:
        self.updated_at = utc_now()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "address": self.address,
            "latitude": _decimal_str(self.latitude),
            "longitude": _decimal_str(self.longitude),
            "propertyType": self.property_type,
            "status": self.status.value,
            "vacancyScore": self.vacancy_score,
            "reportCount": self.report_count,
            "lastUtilityReading": _iso(self.last_utility_reading),
            "estimatedTaxLoss": _decimal_str(self.estimated_tax_loss),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Property":
        return cls(
            id=data["id"],
            address=data["address"],
            property_type=data["propertyType"],
            latitude=_from_decimal(data.get("latitude")),
            longitude=_from_decimal(data.get("longitude")),
            status=PropertyStatus(data.get("status", PropertyStatus.REPORTED.value)),
            vacancy_score=data.get("vacancyScore", 0),
            report_count=data.get("reportCount", 0),
            last_utility_reading=_from_iso(data.get("lastUtilityReading")),
            estimated_tax_loss=_from_decimal(data.get("estimatedTaxLoss")),
            created_at=_from_iso(data.get("createdAt")) or utc_now(),
            updated_at=_from_iso(data.get("updatedAt")) or utc_now(),
        )


@dataclass(frozen=True)
class Report:
    """
    A single citizen claim that a property is vacant.

    Immutable once created. The points value is fixed at creation time.
    """

    id: int
    reason: str
    duration: str
    property_id: Optional[int] = None
    user_id: Optional[int] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    points: int = 50
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "propertyId": self.property_id,
            "userId": self.user_id,
            "reason": self.reason,
            "duration": self.duration,
            "description": self.description,
            "imageUrl": self.image_url,
            "contactName": self.contact_name,
            "contactEmail": self.contact_email,
            "points": self.points,
            "createdAt": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Report":
        return cls(
            id=data["id"],
            reason=data["reason"],
            duration=data["duration"],
            property_id=data.get("propertyId"),
            user_id=data.get("userId"),
            description=data.get("description"),
            image_url=data.get("imageUrl"),
            contact_name=data.get("contactName"),
            contact_email=data.get("contactEmail"),
            points=data.get("points", 50),
            created_at=_from_iso(data.get("createdAt")) or utc_now(),
        )


@dataclass
class TaxNotice:
    """An enforcement record against a property."""

    id: int
    property_id: int
    penalty_type: str
    penalty_amount: Decimal
    due_date: Optional[datetime] = None
    status: TaxNoticeStatus = TaxNoticeStatus.PENDING
    transaction_hash: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_confirmed(self) -> bool:
        return self.status == TaxNoticeStatus.CONFIRMED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "propertyId": self.property_id,
            "penaltyType": self.penalty_type,
            "penaltyAmount": _decimal_str(self.penalty_amount),
            "dueDate": _iso(self.due_date),
            "status": self.status.value,
            "transactionHash": self.transaction_hash,
            "createdAt": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TaxNotice":
        return cls(
            id=data["id"],
            property_id=data["propertyId"],
            penalty_type=data["penaltyType"],
            penalty_amount=Decimal(data["penaltyAmount"]),
            due_date=_from_iso(data.get("dueDate")),
            status=TaxNoticeStatus(data.get("status", TaxNoticeStatus.PENDING.value)),
            transaction_hash=data.get("transactionHash"),
            created_at=_from_iso(data.get("createdAt")) or utc_now(),
        )


# =============================================================================
# Input Records
# =============================================================================
# Validated, normalised inputs accepted by the store's create operations.


@dataclass(frozen=True)
class NewProperty:
    address: str
    property_type: str
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    estimated_tax_loss: Optional[Decimal] = None


@dataclass(frozen=True)
class NewReport:
    reason: str
    duration: str
    property_id: Optional[int] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    # Used only to create a property when property_id is absent
    address: Optional[str] = None
    property_type: Optional[str] = None


@dataclass(frozen=True)
class NewTaxNotice:
    property_id: int
    penalty_type: str
    penalty_amount: Decimal
    due_date: Optional[datetime] = None


@dataclass(frozen=True)
class NewUser:
    username: str
    email: str
    password: str
