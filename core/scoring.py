"""
Scoring and status rules.

Links report volume to property status, and report submissions to user
reputation (points, rank, badge). Everything here is pure: no store access.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .models import PropertyStatus, User


# Badge table: (minimum points, label), ascending
BADGE_TIERS: Tuple[Tuple[int, str], ...] = (
    (0, "Newcomer"),
    (500, "Rising Star"),
    (1500, "Civic Champion"),
    (2000, "Community Hero"),
    (2500, "Urban Guardian"),
)


def badge_for_points(points: int) -> str:
    """Highest badge whose threshold the points reach. Non-decreasing in points."""
    label = BADGE_TIERS[0][1]
    for threshold, tier_label in BADGE_TIERS:
        if points >= threshold:
            label = tier_label
        else:
            break
    return label


@dataclass(frozen=True)
class RankedUser:
    """A user with read-time rank and badge projections."""

    user: User
    rank: int
    badge: str

    def to_dict(self) -> dict:
        return self.user.to_dict(rank=self.rank, badge=self.badge)


def rank_users(users: Iterable[User]) -> List[RankedUser]:
    """
    Order users for the leaderboard.

    Points descending, ties broken by id ascending. Rank is the 1-indexed
    position, so it is always consistent with current points.
    """
    ordered = sorted(users, key=lambda u: (-u.points, u.id))
    return [
        RankedUser(user=u, rank=position, badge=badge_for_points(u.points))
        for position, u in enumerate(ordered, start=1)
    ]


def rank_of(user_id: int, users: Iterable[User]) -> Optional[RankedUser]:
    """Ranked view of a single user, or None if not present."""
    for ranked in rank_users(users):
        if ranked.user.id == user_id:
            return ranked
    return None


class ScoringEngine:
    """
    Business rules for report submissions.

    Status rule: once a property's report count reaches the confirmation
    threshold, it is promoted straight to Confirmed Vacant from any earlier
    status. Status never moves backwards, and there is no automatic step
    through Investigating.

    Point rule: a flat award per report, independent of property or history.
    """

    DEFAULT_CONFIRMATION_THRESHOLD = 3
    DEFAULT_REPORT_POINTS = 50

    def __init__(
        self,
        confirmation_threshold: int = DEFAULT_CONFIRMATION_THRESHOLD,
        report_points: int = DEFAULT_REPORT_POINTS,
    ):
        if confirmation_threshold < 1:
            raise ValueError("confirmation_threshold must be at least 1")
        if report_points < 0:
            raise ValueError("report_points must be non-negative")
        self.confirmation_threshold = confirmation_threshold
        self.report_points = report_points

    def points_for_report(self) -> int:
        """Points awarded to the submitter of one report."""
        return self.report_points

    def evaluate_status(
        self,
        current: PropertyStatus,
        report_count: int,
    ) -> PropertyStatus:
        """
        Status a property should hold after reaching report_count reports.

        Args:
            current: The property's present status.
            report_count: Report count after the latest increment.

        Returns:
            Confirmed Vacant if the threshold is met and the property has not
            already passed that stage, otherwise the current status.
        """
        if (
            report_count >= self.confirmation_threshold
            and current.is_before(PropertyStatus.CONFIRMED_VACANT)
        ):
            return PropertyStatus.CONFIRMED_VACANT
        return current

    def status_after_penalty(self, current: PropertyStatus) -> PropertyStatus:
        """Issuing a penalty closes out a Confirmed Vacant property only."""
        if current == PropertyStatus.CONFIRMED_VACANT:
            return PropertyStatus.PENALTY_ISSUED
        return current
