"""
Domain exceptions.

Raised by the store, validation and workflow layers. The web layer maps each
kind to an HTTP status; nothing in core knows about HTTP.
"""

from __future__ import annotations

from typing import Optional


class CivicEyeError(Exception):
    """Base class for all domain errors."""


class ValidationError(CivicEyeError):
    """Malformed or missing input. Carries per-field messages."""

    def __init__(self, field_errors: dict[str, str]):
        self.field_errors = dict(field_errors)
        fields = ", ".join(sorted(self.field_errors))
        super().__init__(f"Validation failed: {fields}")


class NotFoundError(CivicEyeError):
    """A referenced entity id does not exist."""

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")

    @property
    def public_message(self) -> str:
        return f"{self.entity} not found"


class ConflictError(CivicEyeError):
    """A uniqueness constraint would be violated."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InternalError(CivicEyeError):
    """Unexpected store failure. Detail is logged, never returned to callers."""
