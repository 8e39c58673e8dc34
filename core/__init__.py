"""
CivicEye - Core Business Logic

This module provides the report-to-enforcement pipeline:
1. Validation (field-level errors, parsed input records)
2. Entity Store (users, properties, reports, tax notices)
3. Scoring (points, badges, status promotion at the report threshold)
4. Workflow (report submission, tax notice issuance)
5. Events (change notifications for push subscribers)
"""

from .errors import (
    CivicEyeError,
    ValidationError,
    NotFoundError,
    ConflictError,
    InternalError,
)
from .models import (
    PropertyStatus,
    TaxNoticeStatus,
    User,
    Property,
    Report,
    TaxNotice,
    NewUser,
    NewProperty,
    NewReport,
    NewTaxNotice,
)
from .store import EntityStore, InMemoryEntityStore
from .scoring import ScoringEngine, RankedUser, badge_for_points, rank_users
from .events import EventBus, ChangeEvent, EventType
from .ledger import EnforcementLedger, LedgerTransaction
from .workflow import CivicWorkflow, ReportSubmissionResult, TaxNoticeIssueResult

__all__ = [
    # Errors
    "CivicEyeError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "InternalError",
    # Entities
    "PropertyStatus",
    "TaxNoticeStatus",
    "User",
    "Property",
    "Report",
    "TaxNotice",
    "NewUser",
    "NewProperty",
    "NewReport",
    "NewTaxNotice",
    # Storage
    "EntityStore",
    "InMemoryEntityStore",
    # Scoring
    "ScoringEngine",
    "RankedUser",
    "badge_for_points",
    "rank_users",
    # Events
    "EventBus",
    "ChangeEvent",
    "EventType",
    # Ledger
    "EnforcementLedger",
    "LedgerTransaction",
    # Workflow
    "CivicWorkflow",
    "ReportSubmissionResult",
    "TaxNoticeIssueResult",
]
