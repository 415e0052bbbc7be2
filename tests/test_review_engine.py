"""
Tests for the Review Engine - loading and writing the review aggregate.

These tests verify:
1. CREATE: stages keep payload order, assignments and a CREATE log are stored
2. STATUS CHANGE: exactly one log entry, newest first
3. COMMENTS: replies nest under their parent, previews are truncated
4. EDIT: the stage set is replaced wholesale and comments are discarded
5. WEAK USER REFERENCES: deleted users render as unknown
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from review_tracker.models import (
    ActivityLog,
    ActivityLogType,
    Comment,
    ReviewAssignment,
    ReviewStatus,
    User,
)
from review_tracker.services import (
    AssignmentInput,
    AssignmentNotFoundError,
    CommentInput,
    CommentNotFoundError,
    KnownUser,
    ReviewEngine,
    ReviewInput,
    ReviewNotFoundError,
    StageInput,
    StageNotFoundError,
    UnknownUser,
    UserService,
    ValidationError,
)
from review_tracker.services.aggregates import UNKNOWN_USER_NAME


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def two_stage_input(alice: User, bob: User) -> ReviewInput:
    """A review with two stages; Bob reviews both, Alice only the second."""
    return ReviewInput(
        title="Add billing export",
        url="https://git.example.com/pr/42",
        stages=[
            StageInput(
                name="Round 1",
                repository_url="https://git.example.com/billing",
                reviewer_count=1,
                assignments=[AssignmentInput(reviewer_id=bob.id)],
            ),
            StageInput(
                name="Round 2",
                repository_url="https://git.example.com/billing",
                reviewer_count=2,
                due_date=datetime(2030, 1, 15, tzinfo=timezone.utc),
                assignments=[
                    AssignmentInput(reviewer_id=bob.id),
                    AssignmentInput(reviewer_id=alice.id, status=ReviewStatus.COMMENTED),
                ],
            ),
        ],
    )


# =============================================================================
# TEST: CREATE REVIEW
# =============================================================================


class TestCreateReview:
    """Tests for creating and re-fetching a review."""

    async def test_create_then_fetch_keeps_stage_order(
        self,
        session: AsyncSession,
        alice: User,
        two_stage_input: ReviewInput,
    ):
        """Fetching by id returns every stage in stored order with its assignments."""
        engine = ReviewEngine(session)
        created = await engine.create_review(two_stage_input, author_id=alice.id)

        fetched = await ReviewEngine(session).get_review(created.id)

        assert [s.name for s in fetched.stages] == ["Round 1", "Round 2"]
        assert [s.stage_order for s in fetched.stages] == [0, 1]
        assert [a.reviewer.id for a in fetched.stages[0].assignments] == ["bob"]
        # Assignments are ordered by reviewer name
        assert [
            (a.reviewer.name, a.status) for a in fetched.stages[1].assignments
        ] == [("Alice", ReviewStatus.COMMENTED), ("Bob", ReviewStatus.PENDING)]
        assert fetched.stages[1].due_date is not None

    async def test_create_appends_create_log(
        self,
        session: AsyncSession,
        alice: User,
        two_stage_input: ReviewInput,
    ):
        """A new review has exactly one CREATE entry, attributed to its author."""
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)

        assert isinstance(review.author, KnownUser)
        assert review.author.name == "Alice"
        assert len(review.activity_logs) == 1
        log = review.activity_logs[0]
        assert log.type == ActivityLogType.CREATE
        assert log.details == 'Created review request "Add billing export".'
        assert log.user.id == alice.id

    async def test_create_without_author(self, session: AsyncSession):
        """An anonymous creator yields an unknown author, not an error."""
        engine = ReviewEngine(session)
        review = await engine.create_review(ReviewInput(title="Anonymous"), author_id=None)

        assert isinstance(review.author, UnknownUser)
        assert review.author.name == UNKNOWN_USER_NAME
        assert review.stages == []

    async def test_create_requires_title(self, session: AsyncSession):
        engine = ReviewEngine(session)
        with pytest.raises(ValidationError):
            await engine.create_review(ReviewInput(title="   "), author_id=None)

    async def test_duplicate_reviewers_on_a_stage_are_collapsed(
        self,
        session: AsyncSession,
        bob: User,
    ):
        engine = ReviewEngine(session)
        review = await engine.create_review(
            ReviewInput(
                title="Dupes",
                stages=[
                    StageInput(
                        name="Only",
                        assignments=[
                            AssignmentInput(reviewer_id=bob.id),
                            AssignmentInput(reviewer_id=bob.id, status=ReviewStatus.LGTM),
                        ],
                    )
                ],
            ),
            author_id=None,
        )

        assert len(review.stages[0].assignments) == 1
        assert review.stages[0].assignments[0].status == ReviewStatus.PENDING


# =============================================================================
# TEST: STATUS CHANGE
# =============================================================================


class TestChangeAssignmentStatus:
    """Tests for PUT /reviews/{id}/stages/{stage_id}/assignments/{reviewer_id}."""

    async def test_status_change_appends_one_log_entry(
        self,
        session: AsyncSession,
        alice: User,
        bob: User,
        two_stage_input: ReviewInput,
    ):
        """Exactly one STATUS_CHANGE entry naming reviewer, old and new status."""
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)
        stage = review.stages[0]

        updated = await engine.change_assignment_status(
            review_id=review.id,
            stage_id=stage.id,
            reviewer_id=bob.id,
            status=ReviewStatus.LGTM,
            actor_id=bob.id,
        )

        status_logs = [
            log for log in updated.activity_logs if log.type == ActivityLogType.STATUS_CHANGE
        ]
        assert len(status_logs) == 1
        assert status_logs[0].details == (
            'Bob\'s status changed from "pending" to "lgtm" (stage: Round 1).'
        )
        assert status_logs[0].user.id == bob.id
        assert updated.stages[0].assignments[0].status == ReviewStatus.LGTM

    async def test_logs_are_newest_first(
        self,
        session: AsyncSession,
        alice: User,
        bob: User,
        two_stage_input: ReviewInput,
    ):
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)

        for new_status in (ReviewStatus.COMMENTED, ReviewStatus.ANSWERED):
            review = await engine.change_assignment_status(
                review.id, review.stages[0].id, bob.id, new_status, actor_id=bob.id
            )

        timestamps = [log.created_at for log in review.activity_logs]
        assert timestamps == sorted(timestamps, reverse=True)
        assert review.activity_logs[-1].type == ActivityLogType.CREATE
        assert '"commented" to "answered"' in review.activity_logs[0].details

    async def test_unknown_review_stage_or_assignment(
        self,
        session: AsyncSession,
        alice: User,
        two_stage_input: ReviewInput,
    ):
        """Each missing link raises its own not-found error."""
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)
        first_stage = review.stages[0]

        with pytest.raises(ReviewNotFoundError):
            await engine.change_assignment_status(
                "missing", first_stage.id, "bob", ReviewStatus.LGTM, actor_id=None
            )
        with pytest.raises(StageNotFoundError):
            await engine.change_assignment_status(
                review.id, "missing", "bob", ReviewStatus.LGTM, actor_id=None
            )
        # Alice is only assigned to the second stage
        with pytest.raises(AssignmentNotFoundError):
            await engine.change_assignment_status(
                review.id, first_stage.id, alice.id, ReviewStatus.LGTM, actor_id=None
            )


# =============================================================================
# TEST: COMMENTS
# =============================================================================


class TestComments:
    """Tests for POST /reviews/{id}/stages/{stage_id}/comments."""

    async def test_reply_nests_under_parent(
        self,
        session: AsyncSession,
        alice: User,
        bob: User,
        two_stage_input: ReviewInput,
    ):
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)
        stage_id = review.stages[0].id

        review = await engine.add_comment(
            review.id, stage_id, CommentInput(content="Why a new table?", line_number=12), bob.id
        )
        parent = review.stages[0].comments[0]

        review = await engine.add_comment(
            review.id,
            stage_id,
            CommentInput(content="Keeps exports isolated.", parent_comment_id=parent.id),
            alice.id,
        )
        review = await engine.add_comment(
            review.id, stage_id, CommentInput(content="Separate thought"), bob.id
        )

        refetched = await ReviewEngine(session).get_review(review.id)
        comments = refetched.stages[0].comments
        assert [c.content for c in comments] == ["Why a new table?", "Separate thought"]
        assert comments[0].line_number == 12
        assert [r.content for r in comments[0].replies] == ["Keeps exports isolated."]
        assert comments[0].replies[0].author.name == "Alice"
        assert comments[1].replies == []

    async def test_comment_log_preview(
        self,
        session: AsyncSession,
        alice: User,
        two_stage_input: ReviewInput,
    ):
        """The COMMENT log quotes at most 50 characters of the content."""
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)
        long_text = "x" * 60

        review = await engine.add_comment(
            review.id, review.stages[0].id, CommentInput(content="short"), alice.id
        )
        assert review.activity_logs[0].details == 'Added a comment (stage: Round 1): "short"'

        review = await engine.add_comment(
            review.id, review.stages[0].id, CommentInput(content=long_text), alice.id
        )
        assert review.activity_logs[0].details == (
            f'Added a comment (stage: Round 1): "{"x" * 50}..."'
        )

    async def test_parent_must_be_on_same_stage(
        self,
        session: AsyncSession,
        alice: User,
        two_stage_input: ReviewInput,
    ):
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)
        first, second = review.stages

        review = await engine.add_comment(
            review.id, first.id, CommentInput(content="On stage one"), alice.id
        )
        parent_id = review.stages[0].comments[0].id

        with pytest.raises(CommentNotFoundError):
            await engine.add_comment(
                review.id,
                second.id,
                CommentInput(content="Wrong stage", parent_comment_id=parent_id),
                alice.id,
            )

    async def test_comment_requires_content(
        self,
        session: AsyncSession,
        alice: User,
        two_stage_input: ReviewInput,
    ):
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)

        with pytest.raises(ValidationError):
            await engine.add_comment(
                review.id, review.stages[0].id, CommentInput(content=""), alice.id
            )


# =============================================================================
# TEST: EDIT (FULL REPLACE)
# =============================================================================


class TestUpdateReview:
    """Tests for PUT /reviews/{id} - the stage set is replaced wholesale."""

    async def test_removed_stages_disappear(
        self,
        session: AsyncSession,
        alice: User,
        bob: User,
        two_stage_input: ReviewInput,
    ):
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)
        old_stage_ids = {s.id for s in review.stages}

        updated = await engine.update_review(
            review.id,
            ReviewInput(
                title="Add billing export v2",
                url=review.url,
                stages=[
                    StageInput(name="Final", assignments=[AssignmentInput(reviewer_id=alice.id)])
                ],
            ),
        )

        fetched = await ReviewEngine(session).get_review(review.id)
        assert fetched.title == "Add billing export v2"
        assert [s.name for s in fetched.stages] == ["Final"]
        assert fetched.stages[0].id not in old_stage_ids
        assert [a.reviewer.id for a in fetched.stages[0].assignments] == [alice.id]
        assert [s.name for s in updated.stages] == ["Final"]

        remaining = await session.scalar(
            select(func.count()).select_from(ReviewAssignment)
        )
        assert remaining == 1

    async def test_edit_discards_comments(
        self,
        session: AsyncSession,
        alice: User,
        two_stage_input: ReviewInput,
    ):
        """Comments on replaced stages do not survive an edit."""
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)
        review = await engine.add_comment(
            review.id, review.stages[0].id, CommentInput(content="Will be lost"), alice.id
        )

        updated = await engine.update_review(review.id, two_stage_input)

        assert all(stage.comments == [] for stage in updated.stages)
        assert await session.scalar(select(func.count()).select_from(Comment)) == 0
        # Activity history is kept
        assert len(updated.activity_logs) == 2

    async def test_update_unknown_review(self, session: AsyncSession):
        engine = ReviewEngine(session)
        with pytest.raises(ReviewNotFoundError):
            await engine.update_review("missing", ReviewInput(title="Nope"))


# =============================================================================
# TEST: DELETE AND WEAK USER REFERENCES
# =============================================================================


class TestDeleteAndUnknownUsers:

    async def test_delete_review_removes_everything(
        self,
        session: AsyncSession,
        alice: User,
        two_stage_input: ReviewInput,
    ):
        engine = ReviewEngine(session)
        review = await engine.create_review(two_stage_input, author_id=alice.id)

        await engine.delete_review(review.id)

        with pytest.raises(ReviewNotFoundError):
            await engine.get_review(review.id)
        assert await session.scalar(select(func.count()).select_from(ActivityLog)) == 0
        assert await session.scalar(select(func.count()).select_from(ReviewAssignment)) == 0

    async def test_deleted_user_renders_as_unknown(
        self,
        session: AsyncSession,
        alice: User,
        bob: User,
        two_stage_input: ReviewInput,
    ):
        """Deleting a user keeps their reviews; the reference becomes unknown."""
        review = await ReviewEngine(session).create_review(two_stage_input, author_id=alice.id)

        await UserService(session).delete_user(alice.id)

        fetched = await ReviewEngine(session).get_review(review.id)
        assert isinstance(fetched.author, UnknownUser)
        assert fetched.author.id == "alice"
        assert fetched.author.name == UNKNOWN_USER_NAME
        assert fetched.activity_logs[0].user.name == UNKNOWN_USER_NAME
        reviewers = {a.reviewer.name for a in fetched.stages[1].assignments}
        assert reviewers == {"Bob", UNKNOWN_USER_NAME}


# =============================================================================
# TEST: LISTING
# =============================================================================


class TestListReviews:

    async def test_list_for_user_orders_by_effective_status(
        self,
        session: AsyncSession,
        alice: User,
        bob: User,
    ):
        engine = ReviewEngine(session)
        done = await engine.create_review(
            ReviewInput(
                title="Done",
                stages=[
                    StageInput(
                        name="R1",
                        assignments=[AssignmentInput(bob.id, ReviewStatus.LGTM)],
                    )
                ],
            ),
            author_id=alice.id,
        )
        waiting = await engine.create_review(
            ReviewInput(
                title="Waiting",
                stages=[
                    StageInput(name="R1", assignments=[AssignmentInput(bob.id, ReviewStatus.LGTM)]),
                    StageInput(name="R2", assignments=[AssignmentInput(bob.id)]),
                ],
            ),
            author_id=alice.id,
        )
        await engine.create_review(
            ReviewInput(
                title="Not Bob's",
                stages=[StageInput(name="R1", assignments=[AssignmentInput(alice.id)])],
            ),
            author_id=alice.id,
        )

        groups = await ReviewEngine(session).list_reviews_for_user(bob.id)

        assert [g.review.id for g in groups] == [waiting.id, done.id]
        assert groups[0].effective_status == ReviewStatus.PENDING
        assert [a.stage_name for a in groups[0].assignments] == ["R1", "R2"]
        assert groups[1].all_lgtm is True
