"""
Sample data for demos and local development.

Seeded properties get one anonymous report per unit of their report count,
so reportCount always matches the reports on file. Seeded users receive their
points as award events rather than as stored totals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from core.models import NewProperty, NewReport, NewUser, PropertyStatus, utc_now
from core.store import EntityStore


logger = logging.getLogger(__name__)

SAMPLE_PASSWORD = "password"

# (username, email, points)
SAMPLE_USERS: tuple[tuple[str, str, int], ...] = (
    ("junaid", "junaid@example.com", 2847),
    ("sarah_martinez", "sarah@example.com", 2156),
    ("emily_chen", "emily@example.com", 1923),
    ("david_johnson", "david@example.com", 847),
)


@dataclass(frozen=True)
class SampleProperty:
    address: str
    latitude: str
    longitude: str
    property_type: str
    status: PropertyStatus
    vacancy_score: int
    report_count: int
    months_since_utility_reading: int
    estimated_tax_loss: str


SAMPLE_PROPERTIES: tuple[SampleProperty, ...] = (
    SampleProperty("1247 Oak Street, District 5", "40.7128", "-74.0060",
                   "Residential - Single Family", PropertyStatus.INVESTIGATING,
                   87, 3, 8, "8450.00"),
    SampleProperty("892 Commercial Ave, Downtown", "40.7589", "-73.9851",
                   "Commercial", PropertyStatus.CONFIRMED_VACANT,
                   94, 7, 14, "23680.00"),
    SampleProperty("456 Residential Blvd, Midtown", "40.7614", "-73.9776",
                   "Residential - Multi-Family", PropertyStatus.REPORTED,
                   72, 2, 3, "5230.00"),
    SampleProperty("789 Industrial Way, West Side", "40.7505", "-74.0138",
                   "Industrial", PropertyStatus.PENALTY_ISSUED,
                   96, 12, 18, "45200.00"),
    SampleProperty("321 Elm Avenue, Eastside", "40.7282", "-73.9942",
                   "Residential - Single Family", PropertyStatus.CONFIRMED_VACANT,
                   89, 5, 11, "12750.00"),
    SampleProperty("567 Mixed Use Plaza, Central", "40.7440", "-73.9903",
                   "Mixed Use", PropertyStatus.INVESTIGATING,
                   78, 4, 6, "18920.00"),
    SampleProperty("134 Pine Street, Northside", "40.7690", "-73.9820",
                   "Residential - Multi-Family", PropertyStatus.REPORTED,
                   65, 1, 2, "7340.00"),
    SampleProperty("890 Warehouse District, South", "40.7090", "-74.0130",
                   "Industrial", PropertyStatus.CONFIRMED_VACANT,
                   92, 8, 16, "38650.00"),
)


def seed_sample_data(store: EntityStore, now: Optional[datetime] = None) -> None:
    """
    Populate an empty store with the sample users and properties.

    Does nothing if the store already holds users or properties.
    """
    if store.list_users() or store.list_properties():
        logger.info("Store already populated, skipping sample data")
        return

    now = now or utc_now()

    for username, email, points in SAMPLE_USERS:
        user = store.create_user(NewUser(username=username, email=email, password=SAMPLE_PASSWORD))
        store.update_user_points(user.id, points)

    for sample in SAMPLE_PROPERTIES:
        prop = store.create_property(
            NewProperty(
                address=sample.address,
                property_type=sample.property_type,
                latitude=Decimal(sample.latitude),
                longitude=Decimal(sample.longitude),
                estimated_tax_loss=Decimal(sample.estimated_tax_loss),
            )
        )
        for _ in range(sample.report_count):
            store.create_report(
                NewReport(
                    reason="no-occupancy",
                    duration="6-12-months",
                    property_id=prop.id,
                ),
                user_id=None,
                points=0,
            )
            store.increment_report_count(prop.id)
        store.update_property_status(prop.id, sample.status)
        store.update_vacancy_score(prop.id, sample.vacancy_score)
        store.update_last_utility_reading(
            prop.id,
            now - timedelta(days=30 * sample.months_since_utility_reading),
        )

    logger.info(
        "Seeded %d users and %d properties",
        len(SAMPLE_USERS),
        len(SAMPLE_PROPERTIES),
    )
