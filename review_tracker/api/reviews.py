"""
Review API Routes: review requests, their stages, assignments and comments.

Every mutation returns the fully hydrated review so clients can replace
their copy in one step:
1. POST /reviews - Create a review with stages and assignments
2. PUT /reviews/{id} - Replace title, url and the whole stage set
3. PUT /reviews/{id}/stages/{stage_id}/assignments/{reviewer_id} - Change a status
4. POST /reviews/{id}/stages/{stage_id}/comments - Comment or reply
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from ..core import CurrentUserDep, SessionDep
from ..schemas import (
    CommentRequest,
    MyReviewResponse,
    ReviewRequestBody,
    ReviewResponse,
    ShareLinkResponse,
    StatusChangeRequest,
)
from ..services import (
    NotFoundError,
    ReviewEngine,
    SettingsService,
    SortKey,
    ValidationError,
)
from .errors import http_error

router = APIRouter(prefix="/reviews", tags=["reviews"])


# =============================================================================
# DEPENDENCIES
# =============================================================================


def get_review_engine(session: SessionDep) -> ReviewEngine:
    return ReviewEngine(session)


ReviewEngineDep = Annotated[ReviewEngine, Depends(get_review_engine)]


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.get(
    "",
    response_model=list[ReviewResponse],
    summary="List all reviews",
    description="""
    List every review, fully hydrated.

    Query parameters:
    - sort: `createdAt` (newest first, default) or `dueDate` (earliest stage
      due date first, reviews without a due date last)
    """,
)
async def list_reviews(
    engine: ReviewEngineDep,
    sort: SortKey = Query(default=SortKey.CREATED_AT, description="Sort order"),
):
    reviews = await engine.list_reviews(sort)
    return [ReviewResponse.from_aggregate(r) for r in reviews]


@router.get(
    "/mine",
    response_model=list[MyReviewResponse],
    summary="Reviews assigned to the current user",
    description="""
    Reviews where the current user holds at least one assignment, grouped per
    review and ordered by the user's least advanced status, then newest first.
    Anonymous callers get an empty list.
    """,
)
async def list_my_reviews(
    current_user: CurrentUserDep,
    engine: ReviewEngineDep,
):
    if current_user.is_anonymous:
        return []
    groups = await engine.list_reviews_for_user(current_user.id)
    return [MyReviewResponse.from_group(g) for g in groups]


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
)
async def create_review(
    request: ReviewRequestBody,
    current_user: CurrentUserDep,
    engine: ReviewEngineDep,
):
    """Create a review authored by the current user (or nobody, if anonymous)."""
    try:
        review = await engine.create_review(request.to_input(), author_id=current_user.id)
    except ValidationError as e:
        raise http_error(e)
    return ReviewResponse.from_aggregate(review)


@router.get(
    "/{review_id}",
    response_model=ReviewResponse,
    summary="Get a review",
)
async def get_review(review_id: str, engine: ReviewEngineDep):
    try:
        review = await engine.get_review(review_id)
    except NotFoundError as e:
        raise http_error(e)
    return ReviewResponse.from_aggregate(review)


@router.put(
    "/{review_id}",
    response_model=ReviewResponse,
    summary="Replace a review",
    description="""
    Replace the title, url and the complete stage set of a review.

    **Existing stages are deleted and recreated.** Comments attached to the
    previous stages are discarded.
    """,
)
async def update_review(
    review_id: str,
    request: ReviewRequestBody,
    engine: ReviewEngineDep,
):
    try:
        review = await engine.update_review(review_id, request.to_input())
    except (NotFoundError, ValidationError) as e:
        raise http_error(e)
    return ReviewResponse.from_aggregate(review)


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a review",
)
async def delete_review(review_id: str, engine: ReviewEngineDep):
    try:
        await engine.delete_review(review_id)
    except NotFoundError as e:
        raise http_error(e)


@router.get(
    "/{review_id}/share",
    response_model=ShareLinkResponse,
    summary="Share link and message for a review",
)
async def get_share_link(
    review_id: str,
    engine: ReviewEngineDep,
    session: SessionDep,
):
    try:
        review = await engine.get_review(review_id)
    except NotFoundError as e:
        raise http_error(e)
    link = await SettingsService(session).share_link(review)
    return ShareLinkResponse(url=link.url, message=link.message)


@router.put(
    "/{review_id}/stages/{stage_id}/assignments/{reviewer_id}",
    response_model=ReviewResponse,
    summary="Change a reviewer's status on a stage",
)
async def change_assignment_status(
    review_id: str,
    stage_id: str,
    reviewer_id: str,
    request: StatusChangeRequest,
    current_user: CurrentUserDep,
    engine: ReviewEngineDep,
):
    try:
        review = await engine.change_assignment_status(
            review_id=review_id,
            stage_id=stage_id,
            reviewer_id=reviewer_id,
            status=request.status,
            actor_id=current_user.id,
        )
    except NotFoundError as e:
        raise http_error(e)
    return ReviewResponse.from_aggregate(review)


@router.post(
    "/{review_id}/stages/{stage_id}/comments",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a stage",
)
async def add_comment(
    review_id: str,
    stage_id: str,
    request: CommentRequest,
    current_user: CurrentUserDep,
    engine: ReviewEngineDep,
):
    """Post a comment, or a reply when parentCommentId is given."""
    try:
        review = await engine.add_comment(
            review_id=review_id,
            stage_id=stage_id,
            input=request.to_input(),
            author_id=current_user.id,
        )
    except (NotFoundError, ValidationError) as e:
        raise http_error(e)
    return ReviewResponse.from_aggregate(review)
