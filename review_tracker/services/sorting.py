"""Ordering rules for review lists and the per-user "my reviews" view."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable

from ..models import ReviewStatus
from .aggregates import ReviewAggregate, as_utc


# Lower rank means less progressed; the lowest rank is the effective status.
STATUS_RANK: dict[ReviewStatus, int] = {
    ReviewStatus.PENDING: 1,
    ReviewStatus.ANSWERED: 2,
    ReviewStatus.COMMENTED: 3,
    ReviewStatus.LGTM: 4,
}


class SortKey(str, Enum):
    CREATED_AT = "createdAt"
    DUE_DATE = "dueDate"


@dataclass
class MyAssignment:
    stage_id: str
    stage_name: str
    repository_url: str
    status: ReviewStatus


@dataclass
class MyReviewGroup:
    review: ReviewAggregate
    assignments: list[MyAssignment]
    effective_status: ReviewStatus

    @property
    def all_lgtm(self) -> bool:
        return all(a.status == ReviewStatus.LGTM for a in self.assignments)


def effective_status(statuses: Iterable[ReviewStatus]) -> ReviewStatus | None:
    """Return the least progressed status, or None when there is none."""
    return min(statuses, key=STATUS_RANK.__getitem__, default=None)


def earliest_due_date(review: ReviewAggregate) -> datetime | None:
    """Nearest due date across the review's stages; stages without one are ignored."""
    due_dates = [as_utc(s.due_date) for s in review.stages if s.due_date is not None]
    return min(due_dates, default=None)


def _newest_first(review: ReviewAggregate) -> float:
    return -as_utc(review.created_at).timestamp()


def sort_reviews(
    reviews: Iterable[ReviewAggregate],
    key: SortKey = SortKey.CREATED_AT,
) -> list[ReviewAggregate]:
    """Order reviews by creation date (newest first) or by nearest due date.

    With ``SortKey.DUE_DATE`` reviews without any due date go last; ties and
    the undated tail fall back to newest first.
    """
    if key == SortKey.DUE_DATE:
        def due_key(review: ReviewAggregate):
            due = earliest_due_date(review)
            return (due is None, due.timestamp() if due else 0.0, _newest_first(review))

        return sorted(reviews, key=due_key)

    return sorted(reviews, key=_newest_first)


def my_reviews(reviews: Iterable[ReviewAggregate], user_id: str) -> list[MyReviewGroup]:
    """Group a user's assignments per review and order by urgency.

    Reviews where the user has no assignment are dropped. The rest are
    ordered by effective status rank ascending, then creation date descending.
    """
    groups: list[MyReviewGroup] = []
    for review in reviews:
        mine = [
            MyAssignment(
                stage_id=stage.id,
                stage_name=stage.name,
                repository_url=stage.repository_url,
                status=assignment.status,
            )
            for stage in review.stages
            for assignment in stage.assignments
            if assignment.reviewer.id == user_id
        ]
        if not mine:
            continue
        groups.append(
            MyReviewGroup(
                review=review,
                assignments=mine,
                effective_status=effective_status(a.status for a in mine),
            )
        )

    groups.sort(key=lambda g: (STATUS_RANK[g.effective_status], _newest_first(g.review)))
    return groups
