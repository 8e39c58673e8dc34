"""
Aggregate statistics for the public dashboard.
"""

from decimal import Decimal

from utils.formatting import format_millions

from .models import PropertyStatus
from .store import EntityStore


def compute_stats(store: EntityStore) -> dict:
    """
    Summarise the store for GET /api/stats.

    Tax recovered is the estimated tax loss summed over properties currently
    confirmed vacant, shown in millions.
    """
    properties = store.list_properties()
    reports = store.list_reports()
    users = store.list_users()

    confirmed = [p for p in properties if p.status == PropertyStatus.CONFIRMED_VACANT]
    tax_recovered = sum(
        (p.estimated_tax_loss or Decimal("0") for p in confirmed),
        Decimal("0"),
    )

    return {
        "propertiesReported": len(properties),
        "taxRecovered": format_millions(tax_recovered),
        "activeReporters": sum(1 for u in users if u.points > 0),
        "confirmedVacant": len(confirmed),
        "investigating": sum(
            1 for p in properties if p.status == PropertyStatus.INVESTIGATING
        ),
        "totalReports": len(reports),
    }
