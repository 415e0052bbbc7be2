"""Pydantic schemas for review requests, stages, assignments and comments."""

from datetime import datetime
from typing import Any

from pydantic import Field, model_validator

from ..models import ActivityLogType, ReviewStatus
from ..services.aggregates import (
    ActivityLogView,
    AssignmentView,
    CommentNode,
    ReviewAggregate,
    StageView,
)
from ..services.review_engine import (
    AssignmentInput,
    CommentInput,
    ReviewInput,
    StageInput,
)
from ..services.sorting import MyReviewGroup
from .base import ApiModel, UserResponse


# =============================================================================
# REQUESTS
# =============================================================================


class AssignmentRequest(ApiModel):
    """A reviewer on a stage. Accepts ``reviewerId`` or ``reviewer: {id}``."""

    reviewer_id: str = Field(..., min_length=1)
    status: ReviewStatus = ReviewStatus.PENDING

    @model_validator(mode="before")
    @classmethod
    def accept_nested_reviewer(cls, data: Any) -> Any:
        if isinstance(data, dict) and "reviewerId" not in data and "reviewer_id" not in data:
            reviewer = data.get("reviewer")
            if isinstance(reviewer, dict) and reviewer.get("id"):
                return {**data, "reviewerId": reviewer["id"]}
        return data


class StageRequest(ApiModel):
    name: str = ""
    repository_url: str = ""
    reviewer_count: int = Field(default=0, ge=0)
    due_date: datetime | None = None
    assignments: list[AssignmentRequest] = Field(default_factory=list)
    reviewer_ids: list[str] = Field(
        default_factory=list,
        description="Shorthand for pending assignments when assignments is empty",
    )

    def to_input(self) -> StageInput:
        assignments = [
            AssignmentInput(reviewer_id=a.reviewer_id, status=a.status)
            for a in self.assignments
        ] or [AssignmentInput(reviewer_id=rid) for rid in self.reviewer_ids]
        return StageInput(
            name=self.name,
            repository_url=self.repository_url,
            reviewer_count=self.reviewer_count,
            due_date=self.due_date,
            assignments=assignments,
        )


class ReviewRequestBody(ApiModel):
    """Body of POST /reviews and PUT /reviews/{id} (full replace)."""

    title: str
    url: str = ""
    stages: list[StageRequest] = Field(default_factory=list)

    def to_input(self) -> ReviewInput:
        return ReviewInput(
            title=self.title,
            url=self.url,
            stages=[s.to_input() for s in self.stages],
        )


class StatusChangeRequest(ApiModel):
    status: ReviewStatus


class CommentRequest(ApiModel):
    content: str
    line_number: int | None = Field(default=None, ge=1)
    parent_comment_id: str | None = None

    def to_input(self) -> CommentInput:
        return CommentInput(
            content=self.content,
            line_number=self.line_number,
            parent_comment_id=self.parent_comment_id,
        )


# =============================================================================
# RESPONSES
# =============================================================================


class AssignmentResponse(ApiModel):
    reviewer: UserResponse
    status: ReviewStatus

    @classmethod
    def from_view(cls, view: AssignmentView) -> "AssignmentResponse":
        return cls(reviewer=UserResponse.from_ref(view.reviewer), status=view.status)


class CommentResponse(ApiModel):
    id: str
    author: UserResponse
    content: str
    created_at: datetime
    line_number: int | None = None
    parent_comment_id: str | None = None
    replies: list["CommentResponse"] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: CommentNode) -> "CommentResponse":
        return cls(
            id=node.id,
            author=UserResponse.from_ref(node.author),
            content=node.content,
            created_at=node.created_at,
            line_number=node.line_number,
            parent_comment_id=node.parent_comment_id,
            replies=[cls.from_node(r) for r in node.replies],
        )


CommentResponse.model_rebuild()


class StageResponse(ApiModel):
    id: str
    name: str
    stage_order: int
    repository_url: str
    reviewer_count: int
    due_date: datetime | None = None
    assignments: list[AssignmentResponse]
    comments: list[CommentResponse]

    @classmethod
    def from_view(cls, view: StageView) -> "StageResponse":
        return cls(
            id=view.id,
            name=view.name,
            stage_order=view.stage_order,
            repository_url=view.repository_url,
            reviewer_count=view.reviewer_count,
            due_date=view.due_date,
            assignments=[AssignmentResponse.from_view(a) for a in view.assignments],
            comments=[CommentResponse.from_node(c) for c in view.comments],
        )


class ActivityLogResponse(ApiModel):
    id: str
    type: ActivityLogType
    user: UserResponse
    details: str
    created_at: datetime

    @classmethod
    def from_view(cls, view: ActivityLogView) -> "ActivityLogResponse":
        return cls(
            id=view.id,
            type=view.type,
            user=UserResponse.from_ref(view.user),
            details=view.details,
            created_at=view.created_at,
        )


class ReviewResponse(ApiModel):
    """A fully hydrated review."""

    id: str
    title: str
    url: str
    author: UserResponse
    created_at: datetime
    stages: list[StageResponse]
    activity_logs: list[ActivityLogResponse]

    @classmethod
    def from_aggregate(cls, review: ReviewAggregate) -> "ReviewResponse":
        return cls(
            id=review.id,
            title=review.title,
            url=review.url,
            author=UserResponse.from_ref(review.author),
            created_at=review.created_at,
            stages=[StageResponse.from_view(s) for s in review.stages],
            activity_logs=[ActivityLogResponse.from_view(log) for log in review.activity_logs],
        )


class MyAssignmentResponse(ApiModel):
    stage_id: str
    stage_name: str
    repository_url: str
    status: ReviewStatus


class MyReviewResponse(ApiModel):
    """One entry of the current user's review queue."""

    review: ReviewResponse
    my_assignments: list[MyAssignmentResponse]
    effective_status: ReviewStatus
    all_lgtm: bool

    @classmethod
    def from_group(cls, group: MyReviewGroup) -> "MyReviewResponse":
        return cls(
            review=ReviewResponse.from_aggregate(group.review),
            my_assignments=[
                MyAssignmentResponse(
                    stage_id=a.stage_id,
                    stage_name=a.stage_name,
                    repository_url=a.repository_url,
                    status=a.status,
                )
                for a in group.assignments
            ],
            effective_status=group.effective_status,
            all_lgtm=group.all_lgtm,
        )


class ShareLinkResponse(ApiModel):
    url: str
    message: str
