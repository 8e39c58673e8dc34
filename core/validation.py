"""
Input Validation - Checks for Untrusted API Payloads

Every create operation validates its raw payload here before anything is
written. Validation collects all field problems at once so callers can show
them together; nothing is ever partially applied.

Payload keys follow the public JSON contract (camelCase).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Final, Optional

from core.errors import ValidationError
from core.models import (
    NewProperty,
    NewReport,
    NewTaxNotice,
    NewUser,
    PropertyStatus,
    to_money,
)


# =============================================================================
# Constants
# =============================================================================

MAX_TEXT_LENGTH: Final[int] = 500
MAX_DESCRIPTION_LENGTH: Final[int] = 5000

EMAIL_REGEX: Final = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_REGEX: Final = re.compile(r"^[A-Za-z0-9_.-]{3,32}$")
MIN_PASSWORD_LENGTH: Final[int] = 8

# Currency columns hold decimal(10,2)
MAX_MONEY: Final = Decimal("99999999.99")

REQUIRED_PROPERTY_FIELDS: Final[tuple[str, ...]] = ("address", "propertyType")
REQUIRED_REPORT_FIELDS: Final[tuple[str, ...]] = ("reason", "duration")
REQUIRED_USER_FIELDS: Final[tuple[str, ...]] = ("username", "email", "password")


# =============================================================================
# Validation Result
# =============================================================================


@dataclass(frozen=True)
class InputValidationResult:
    """Outcome of validating one payload."""

    field_errors: dict[str, str]

    @property
    def valid(self) -> bool:
        return not self.field_errors

    def raise_for_errors(self) -> None:
        if self.field_errors:
            raise ValidationError(self.field_errors)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "fields": dict(self.field_errors)}


# =============================================================================
# Field Helpers
# =============================================================================


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_required_text(
    data: dict[str, Any],
    key: str,
    errors: dict[str, str],
    max_length: int = MAX_TEXT_LENGTH,
) -> None:
    value = data.get(key)
    if _is_blank(value):
        errors[key] = "This field is required"
    elif not isinstance(value, str):
        errors[key] = "Must be a string"
    elif len(value.strip()) > max_length:
        errors[key] = f"Must be at most {max_length} characters"


def _check_optional_text(
    data: dict[str, Any],
    key: str,
    errors: dict[str, str],
    max_length: int = MAX_TEXT_LENGTH,
) -> None:
    value = data.get(key)
    if value is None:
        return
    if not isinstance(value, str):
        errors[key] = "Must be a string"
    elif len(value) > max_length:
        errors[key] = f"Must be at most {max_length} characters"


def _parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a decimal from str/int/float. Returns None when unparseable."""
    if isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def _check_coordinate(
    data: dict[str, Any],
    key: str,
    bound: int,
    errors: dict[str, str],
) -> None:
    value = data.get(key)
    if value is None or value == "":
        return
    parsed = _parse_decimal(value)
    if parsed is None:
        errors[key] = "Must be a decimal number"
    elif not -bound <= parsed <= bound:
        errors[key] = f"Must be between -{bound} and {bound}"


def _check_money(
    data: dict[str, Any],
    key: str,
    errors: dict[str, str],
    required: bool = False,
) -> None:
    value = data.get(key)
    if value is None or value == "":
        if required:
            errors[key] = "This field is required"
        return
    parsed = _parse_decimal(value)
    if parsed is None:
        errors[key] = "Must be a decimal amount"
    elif parsed < 0:
        errors[key] = "Must not be negative"
    elif parsed > MAX_MONEY:
        errors[key] = "Amount too large"


def _check_id(
    data: dict[str, Any],
    key: str,
    errors: dict[str, str],
    required: bool = False,
) -> None:
    value = data.get(key)
    if value is None:
        if required:
            errors[key] = "This field is required"
        return
    if isinstance(value, bool) or not isinstance(value, int):
        errors[key] = "Must be an integer id"
    elif value < 1:
        errors[key] = "Must be a positive integer id"


def _parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    text = value.strip()
    # Accept the trailing "Z" that JavaScript clients send
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _optional_str(data: dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _coordinate(data: dict[str, Any], key: str) -> Optional[Decimal]:
    value = data.get(key)
    if value is None or value == "":
        return None
    return _parse_decimal(value)


# =============================================================================
# Validation Functions
# =============================================================================


def validate_property_data(data: dict[str, Any]) -> InputValidationResult:
    """
    Validate a property payload.

    Args:
        data: Raw payload with address, propertyType and optional
              latitude, longitude, estimatedTaxLoss

    Returns:
        InputValidationResult with per-field messages
    """
    errors: dict[str, str] = {}
    for key in REQUIRED_PROPERTY_FIELDS:
        _check_required_text(data, key, errors)
    _check_coordinate(data, "latitude", 90, errors)
    _check_coordinate(data, "longitude", 180, errors)
    _check_money(data, "estimatedTaxLoss", errors)
    return InputValidationResult(field_errors=errors)


def validate_report_data(data: dict[str, Any]) -> InputValidationResult:
    """
    Validate a report payload.

    A report either names an existing propertyId, or may carry an address
    (plus propertyType) so the property can be resolved or created. Whether
    the referenced property exists is checked later by the workflow.
    """
    errors: dict[str, str] = {}
    for key in REQUIRED_REPORT_FIELDS:
        _check_required_text(data, key, errors)
    _check_id(data, "propertyId", errors)
    _check_optional_text(data, "description", errors, MAX_DESCRIPTION_LENGTH)
    _check_optional_text(data, "imageUrl", errors, 2048)
    _check_optional_text(data, "contactName", errors)
    _check_optional_text(data, "contactEmail", errors)
    _check_optional_text(data, "address", errors)
    _check_optional_text(data, "propertyType", errors)

    contact_email = data.get("contactEmail")
    if (
        "contactEmail" not in errors
        and isinstance(contact_email, str)
        and contact_email.strip()
        and not EMAIL_REGEX.match(contact_email.strip())
    ):
        errors["contactEmail"] = "Must be a valid email address"

    if data.get("propertyId") is None and not _is_blank(data.get("address")):
        if _is_blank(data.get("propertyType")):
            errors["propertyType"] = "Required when reporting a new address"

    return InputValidationResult(field_errors=errors)


def validate_tax_notice_data(data: dict[str, Any]) -> InputValidationResult:
    """Validate a tax notice payload."""
    errors: dict[str, str] = {}
    _check_id(data, "propertyId", errors, required=True)
    _check_required_text(data, "penaltyType", errors)
    _check_money(data, "penaltyAmount", errors, required=True)

    due_date = data.get("dueDate")
    if due_date not in (None, "") and _parse_date(due_date) is None:
        errors["dueDate"] = "Must be an ISO-8601 date"

    return InputValidationResult(field_errors=errors)


def validate_user_data(data: dict[str, Any]) -> InputValidationResult:
    """Validate a registration payload."""
    errors: dict[str, str] = {}
    for key in REQUIRED_USER_FIELDS:
        _check_required_text(data, key, errors)

    username = data.get("username")
    if "username" not in errors and not USERNAME_REGEX.match(username.strip()):
        errors["username"] = (
            "Must be 3-32 characters: letters, digits, '_', '.' or '-'"
        )

    email = data.get("email")
    if "email" not in errors and not EMAIL_REGEX.match(email.strip()):
        errors["email"] = "Must be a valid email address"

    password = data.get("password")
    if "password" not in errors and len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Must be at least {MIN_PASSWORD_LENGTH} characters"

    return InputValidationResult(field_errors=errors)


# =============================================================================
# Parse Functions
# =============================================================================
# Validate and normalise into the store's input records. Raise
# ValidationError when the payload is rejected.


def parse_property_input(data: dict[str, Any]) -> NewProperty:
    validate_property_data(data).raise_for_errors()
    return NewProperty(
        address=data["address"].strip(),
        property_type=data["propertyType"].strip(),
        latitude=_coordinate(data, "latitude"),
        longitude=_coordinate(data, "longitude"),
        estimated_tax_loss=to_money(data.get("estimatedTaxLoss")),
    )


def parse_report_input(data: dict[str, Any]) -> NewReport:
    validate_report_data(data).raise_for_errors()
    return NewReport(
        reason=data["reason"].strip(),
        duration=data["duration"].strip(),
        property_id=data.get("propertyId"),
        description=_optional_str(data, "description"),
        image_url=_optional_str(data, "imageUrl"),
        contact_name=_optional_str(data, "contactName"),
        contact_email=_optional_str(data, "contactEmail"),
        address=_optional_str(data, "address"),
        property_type=_optional_str(data, "propertyType"),
    )


def parse_tax_notice_input(data: dict[str, Any]) -> NewTaxNotice:
    validate_tax_notice_data(data).raise_for_errors()
    due_date = data.get("dueDate")
    return NewTaxNotice(
        property_id=data["propertyId"],
        penalty_type=data["penaltyType"].strip(),
        penalty_amount=to_money(data["penaltyAmount"]),
        due_date=_parse_date(due_date) if due_date not in (None, "") else None,
    )


def parse_user_input(data: dict[str, Any]) -> NewUser:
    validate_user_data(data).raise_for_errors()
    return NewUser(
        username=data["username"].strip(),
        email=data["email"].strip().lower(),
        password=data["password"],
    )


# =============================================================================
# Query Parameters
# =============================================================================


def parse_status_filter(value: Optional[str]) -> Optional[PropertyStatus]:
    """Map a status query value ("Confirmed Vacant") to the enum."""
    if value is None or not value.strip():
        return None
    try:
        return PropertyStatus(value.strip())
    except ValueError:
        allowed = ", ".join(s.value for s in PropertyStatus)
        raise ValidationError({"status": f"Must be one of: {allowed}"})


def check_limit(limit: Optional[int]) -> Optional[int]:
    """A result cap must be a positive integer when given."""
    if limit is not None and limit < 1:
        raise ValidationError({"limit": "Must be a positive integer"})
    return limit
