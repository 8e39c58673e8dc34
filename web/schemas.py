"""
API request bodies.

These models only shape the JSON (types and field names, camelCase as the
clients send them). Which fields are required, and every content rule, is
decided by core.validation so there is one set of messages for all callers.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


Amount = Union[str, int, float]


class _Body(BaseModel):
    model_config = ConfigDict(extra="ignore")

    def to_payload(self) -> dict:
        return self.model_dump()


class PropertyCreateRequest(_Body):
    """POST /api/properties"""
    address: Optional[str] = None
    latitude: Optional[Amount] = None
    longitude: Optional[Amount] = None
    propertyType: Optional[str] = None
    estimatedTaxLoss: Optional[Amount] = None


class ReportCreateRequest(_Body):
    """POST /api/reports"""
    propertyId: Optional[int] = None
    reason: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None
    imageUrl: Optional[str] = None
    contactName: Optional[str] = None
    contactEmail: Optional[str] = None
    # Report a new address instead of an existing propertyId
    address: Optional[str] = None
    propertyType: Optional[str] = None


class TaxNoticeCreateRequest(_Body):
    """POST /api/tax-notices"""
    propertyId: Optional[int] = None
    penaltyType: Optional[str] = None
    penaltyAmount: Optional[Amount] = None
    dueDate: Optional[str] = None


class UserCreateRequest(_Body):
    """POST /api/users"""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class GeneratePdfRequest(_Body):
    """POST /api/generate-pdf"""
    taxNoticeId: int
