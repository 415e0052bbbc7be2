"""Read-side data structures for the review aggregate.

A loaded review is a plain tree of dataclasses, detached from the session.
User references are explicit: either the user row was found (``KnownUser``)
or only its id is known (``UnknownUser``), so every consumer decides how to
render a missing user.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..models import ActivityLogType, ReviewStatus, User


UNKNOWN_USER_NAME = "Unknown User"


@dataclass(frozen=True)
class KnownUser:
    user: User

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def name(self) -> str:
        return self.user.name


@dataclass(frozen=True)
class UnknownUser:
    id: str | None

    @property
    def name(self) -> str:
        return UNKNOWN_USER_NAME


UserRef = KnownUser | UnknownUser


@dataclass
class AssignmentView:
    reviewer: UserRef
    status: ReviewStatus


@dataclass
class CommentNode:
    id: str
    author: UserRef
    content: str
    created_at: datetime
    line_number: int | None = None
    parent_comment_id: str | None = None
    replies: list["CommentNode"] = field(default_factory=list)


@dataclass
class StageView:
    id: str
    name: str
    stage_order: int
    repository_url: str
    reviewer_count: int
    due_date: datetime | None
    assignments: list[AssignmentView] = field(default_factory=list)
    comments: list[CommentNode] = field(default_factory=list)


@dataclass
class ActivityLogView:
    id: str
    type: ActivityLogType
    user: UserRef
    details: str
    created_at: datetime


@dataclass
class ReviewAggregate:
    """A review with its author, stages and activity log resolved."""
    id: str
    title: str
    url: str
    author: UserRef
    created_at: datetime
    stages: list[StageView] = field(default_factory=list)
    activity_logs: list[ActivityLogView] = field(default_factory=list)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so stored and submitted values compare."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def thread_comments(comments: list[CommentNode]) -> list[CommentNode]:
    """Attach replies to their parents and return the top-level comments.

    Replies may nest to any depth. A reply whose parent is not among
    ``comments`` is kept as a top-level comment.
    """
    by_id = {c.id: c for c in comments}
    top_level: list[CommentNode] = []
    for comment in sorted(comments, key=lambda c: as_utc(c.created_at)):
        parent = by_id.get(comment.parent_comment_id) if comment.parent_comment_id else None
        if parent is not None and parent is not comment:
            parent.replies.append(comment)
        else:
            top_level.append(comment)
    return top_level
