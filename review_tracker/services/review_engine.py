"""
Review Engine: loading and writing the review aggregate.

A review is stored across five tables (review_requests, review_stages,
review_assignments, comments, activity_logs) and is always returned as one
hydrated ``ReviewAggregate``.

Write rules:
- Edits replace the whole stage/assignment set (delete and reinsert);
  comments on the replaced stages are discarded with them
- Status changes and comments append an activity log entry
- The caller's session transaction makes each operation all-or-nothing
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import (
    ActivityLog,
    ActivityLogType,
    Comment,
    ReviewAssignment,
    ReviewRequest,
    ReviewStage,
    ReviewStatus,
    User,
    new_id,
)
from .aggregates import (
    ActivityLogView,
    AssignmentView,
    CommentNode,
    KnownUser,
    ReviewAggregate,
    StageView,
    UnknownUser,
    UserRef,
    as_utc,
    thread_comments,
)
from .errors import (
    AssignmentNotFoundError,
    CommentNotFoundError,
    ReviewNotFoundError,
    StageNotFoundError,
    ValidationError,
)
from .sorting import MyReviewGroup, SortKey, my_reviews, sort_reviews

logger = logging.getLogger(__name__)

COMMENT_PREVIEW_LENGTH = 50


# =============================================================================
# DATA TRANSFER OBJECTS
# =============================================================================


@dataclass
class AssignmentInput:
    reviewer_id: str
    status: ReviewStatus = ReviewStatus.PENDING


@dataclass
class StageInput:
    name: str
    repository_url: str = ""
    reviewer_count: int = 0
    due_date: datetime | None = None
    assignments: list[AssignmentInput] = field(default_factory=list)


@dataclass
class ReviewInput:
    """Input for creating a review or replacing its contents."""
    title: str
    url: str = ""
    stages: list[StageInput] = field(default_factory=list)


@dataclass
class CommentInput:
    content: str
    line_number: int | None = None
    parent_comment_id: str | None = None


# =============================================================================
# REVIEW ENGINE
# =============================================================================


class ReviewEngine:
    """Loads and mutates review aggregates within one session."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._user_cache: dict[str, User | None] = {}

    # =========================================================================
    # LOADER
    # =========================================================================

    async def get_review(self, review_id: str) -> ReviewAggregate:
        """Load one review with everything it owns."""
        review = await self._get_review_row(review_id)
        return await self._hydrate(review)

    async def list_reviews(self, sort: SortKey = SortKey.CREATED_AT) -> list[ReviewAggregate]:
        """Load every review, hydrated, in the requested order."""
        result = await self._session.execute(
            select(ReviewRequest).order_by(ReviewRequest.created_at.desc())
        )
        reviews = [await self._hydrate(r) for r in result.scalars().all()]
        return sort_reviews(reviews, sort)

    async def list_reviews_for_user(self, user_id: str) -> list[MyReviewGroup]:
        """Reviews the user is assigned to, most urgent first."""
        return my_reviews(await self.list_reviews(), user_id)

    async def _hydrate(self, review: ReviewRequest) -> ReviewAggregate:
        stages_result = await self._session.execute(
            select(ReviewStage)
            .where(ReviewStage.review_request_id == review.id)
            .order_by(ReviewStage.stage_order, ReviewStage.name)
        )
        stages = [await self._load_stage(s) for s in stages_result.scalars().all()]

        logs_result = await self._session.execute(
            select(ActivityLog)
            .where(ActivityLog.review_request_id == review.id)
            .order_by(ActivityLog.created_at.desc())
        )
        activity_logs = [
            ActivityLogView(
                id=log.id,
                type=log.type,
                user=await self._resolve_user(log.user_id),
                details=log.details,
                created_at=log.created_at,
            )
            for log in logs_result.scalars().all()
        ]

        return ReviewAggregate(
            id=review.id,
            title=review.title,
            url=review.url or "",
            author=await self._resolve_user(review.author_id),
            created_at=review.created_at,
            stages=stages,
            activity_logs=activity_logs,
        )

    async def _load_stage(self, stage: ReviewStage) -> StageView:
        assignments_result = await self._session.execute(
            select(ReviewAssignment, User)
            .outerjoin(User, User.id == ReviewAssignment.reviewer_id)
            .where(ReviewAssignment.review_stage_id == stage.id)
            .order_by(User.name, ReviewAssignment.reviewer_id)
        )
        assignments = [
            AssignmentView(
                reviewer=KnownUser(user) if user else UnknownUser(assignment.reviewer_id),
                status=assignment.status,
            )
            for assignment, user in assignments_result.all()
        ]

        comments_result = await self._session.execute(
            select(Comment)
            .where(Comment.review_stage_id == stage.id)
            .order_by(Comment.created_at)
        )
        comments = [
            CommentNode(
                id=c.id,
                author=await self._resolve_user(c.author_id),
                content=c.content,
                created_at=c.created_at,
                line_number=c.line_number,
                parent_comment_id=c.parent_comment_id,
            )
            for c in comments_result.scalars().all()
        ]

        return StageView(
            id=stage.id,
            name=stage.name,
            stage_order=stage.stage_order,
            repository_url=stage.repository_url or "",
            reviewer_count=stage.reviewer_count,
            due_date=stage.due_date,
            assignments=assignments,
            comments=thread_comments(comments),
        )

    async def _resolve_user(self, user_id: str | None) -> UserRef:
        """Resolve a weak user reference; a missing row never raises."""
        if user_id is None:
            return UnknownUser(None)
        if user_id not in self._user_cache:
            self._user_cache[user_id] = await self._session.get(User, user_id)
        user = self._user_cache[user_id]
        return KnownUser(user) if user else UnknownUser(user_id)

    # =========================================================================
    # WRITER
    # =========================================================================

    async def create_review(self, input: ReviewInput, author_id: str | None) -> ReviewAggregate:
        """
        Create a review with its stages and assignments.

        Flow:
        1. Insert the review row
        2. Insert stages in payload order, then their assignments
        3. Append a CREATE activity log entry
        """
        title = _require_text(input.title, "title")

        review = ReviewRequest(
            id=new_id(),
            title=title,
            url=input.url or "",
            author_id=author_id,
        )
        self._session.add(review)
        await self._session.flush()

        await self._insert_stages(review.id, input.stages)

        self._log_activity(
            review_id=review.id,
            type=ActivityLogType.CREATE,
            user_id=author_id,
            details=f'Created review request "{title}".',
            created_at=review.created_at,
        )
        await self._session.flush()

        logger.info(f"Created review {review.id} with {len(input.stages)} stage(s)")
        return await self._hydrate(review)

    async def update_review(self, review_id: str, input: ReviewInput) -> ReviewAggregate:
        """
        Replace a review's title, url and full stage set.

        Every existing stage is deleted together with its assignments and
        comments before the new stages are inserted. Comments do not survive
        an edit.
        """
        review = await self._get_review_row(review_id)
        review.title = _require_text(input.title, "title")
        review.url = input.url or ""

        discarded_comments = await self._delete_stages(review_id)
        await self._insert_stages(review_id, input.stages)
        await self._session.flush()

        if discarded_comments:
            logger.warning(
                f"Edit of review {review_id} discarded {discarded_comments} comment(s)"
            )
        logger.info(f"Replaced stages of review {review_id} ({len(input.stages)} stage(s))")
        return await self._hydrate(review)

    async def delete_review(self, review_id: str) -> None:
        """Delete a review and everything it owns."""
        await self._get_review_row(review_id)
        await self._delete_stages(review_id)
        await self._session.execute(
            delete(ActivityLog).where(ActivityLog.review_request_id == review_id)
        )
        await self._session.execute(
            delete(ReviewRequest).where(ReviewRequest.id == review_id)
        )
        await self._session.flush()
        logger.info(f"Deleted review {review_id}")

    async def change_assignment_status(
        self,
        review_id: str,
        stage_id: str,
        reviewer_id: str,
        status: ReviewStatus,
        actor_id: str | None,
    ) -> ReviewAggregate:
        """Set one reviewer's status on a stage and log the transition."""
        review = await self._get_review_row(review_id)
        stage = await self._get_stage_row(review_id, stage_id)

        assignment = await self._session.scalar(
            select(ReviewAssignment).where(
                ReviewAssignment.review_stage_id == stage_id,
                ReviewAssignment.reviewer_id == reviewer_id,
            )
        )
        if assignment is None:
            raise AssignmentNotFoundError(
                f"Reviewer {reviewer_id} is not assigned to stage {stage_id}"
            )

        old_status = ReviewStatus(assignment.status)
        assignment.status = status

        reviewer = await self._resolve_user(reviewer_id)
        self._log_activity(
            review_id=review.id,
            type=ActivityLogType.STATUS_CHANGE,
            user_id=actor_id,
            details=(
                f'{reviewer.name}\'s status changed from "{old_status.value}" '
                f'to "{status.value}" (stage: {stage.name}).'
            ),
        )
        await self._session.flush()

        logger.info(
            f"Review {review_id} stage {stage_id}: {reviewer_id} "
            f"{old_status.value} -> {status.value}"
        )
        return await self._hydrate(review)

    async def add_comment(
        self,
        review_id: str,
        stage_id: str,
        input: CommentInput,
        author_id: str | None,
    ) -> ReviewAggregate:
        """Post a comment (or a reply) on a stage and log it."""
        review = await self._get_review_row(review_id)
        stage = await self._get_stage_row(review_id, stage_id)
        content = _require_text(input.content, "content")

        if input.parent_comment_id is not None:
            parent = await self._session.scalar(
                select(Comment).where(
                    Comment.id == input.parent_comment_id,
                    Comment.review_stage_id == stage_id,
                )
            )
            if parent is None:
                raise CommentNotFoundError(
                    f"Comment {input.parent_comment_id} not found on stage {stage_id}"
                )

        self._session.add(
            Comment(
                id=new_id(),
                review_stage_id=stage_id,
                author_id=author_id,
                content=content,
                line_number=input.line_number,
                parent_comment_id=input.parent_comment_id,
            )
        )

        preview = content[:COMMENT_PREVIEW_LENGTH]
        if len(content) > COMMENT_PREVIEW_LENGTH:
            preview += "..."
        self._log_activity(
            review_id=review.id,
            type=ActivityLogType.COMMENT,
            user_id=author_id,
            details=f'Added a comment (stage: {stage.name}): "{preview}"',
        )
        await self._session.flush()
        return await self._hydrate(review)

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    async def _get_review_row(self, review_id: str) -> ReviewRequest:
        review = await self._session.get(ReviewRequest, review_id)
        if review is None:
            raise ReviewNotFoundError(f"Review {review_id} not found")
        return review

    async def _get_stage_row(self, review_id: str, stage_id: str) -> ReviewStage:
        stage = await self._session.scalar(
            select(ReviewStage).where(
                ReviewStage.id == stage_id,
                ReviewStage.review_request_id == review_id,
            )
        )
        if stage is None:
            raise StageNotFoundError(f"Stage {stage_id} not found in review {review_id}")
        return stage

    async def _insert_stages(self, review_id: str, stages: list[StageInput]) -> None:
        new_stages: list[tuple[ReviewStage, StageInput]] = []
        for position, stage_input in enumerate(stages):
            stage = ReviewStage(
                id=new_id(),
                review_request_id=review_id,
                name=stage_input.name,
                stage_order=position,
                repository_url=stage_input.repository_url or "",
                reviewer_count=stage_input.reviewer_count,
                due_date=as_utc(stage_input.due_date),
            )
            self._session.add(stage)
            new_stages.append((stage, stage_input))

        # Stage rows must exist before their assignments reference them
        await self._session.flush()

        for stage, stage_input in new_stages:
            seen: set[str] = set()
            for assignment in stage_input.assignments:
                if assignment.reviewer_id in seen:
                    continue
                seen.add(assignment.reviewer_id)
                self._session.add(
                    ReviewAssignment(
                        id=new_id(),
                        review_stage_id=stage.id,
                        reviewer_id=assignment.reviewer_id,
                        status=assignment.status,
                    )
                )

    async def _delete_stages(self, review_id: str) -> int:
        """Delete all stages of a review with their assignments and comments.

        Returns the number of comments removed.
        """
        stage_ids = list(
            (
                await self._session.execute(
                    select(ReviewStage.id).where(ReviewStage.review_request_id == review_id)
                )
            ).scalars()
        )
        if not stage_ids:
            return 0

        await self._session.execute(
            delete(ReviewAssignment).where(ReviewAssignment.review_stage_id.in_(stage_ids))
        )
        comments_result = await self._session.execute(
            delete(Comment).where(Comment.review_stage_id.in_(stage_ids))
        )
        await self._session.execute(
            delete(ReviewStage).where(ReviewStage.id.in_(stage_ids))
        )
        return comments_result.rowcount or 0

    def _log_activity(
        self,
        review_id: str,
        type: ActivityLogType,
        user_id: str | None,
        details: str,
        created_at: datetime | None = None,
    ) -> None:
        log = ActivityLog(
            id=new_id(),
            review_request_id=review_id,
            type=type,
            user_id=user_id,
            details=details,
        )
        if created_at is not None:
            log.created_at = created_at
        self._session.add(log)


def _require_text(value: str | None, field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} is required")
    return text
