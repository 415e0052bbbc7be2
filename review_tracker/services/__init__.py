"""Business logic services for Review Tracker."""

from .aggregates import (
    ActivityLogView,
    AssignmentView,
    CommentNode,
    KnownUser,
    ReviewAggregate,
    StageView,
    UnknownUser,
    UserRef,
)
from .errors import (
    AssignmentNotFoundError,
    CommentNotFoundError,
    NotFoundError,
    ReviewNotFoundError,
    ReviewTrackerError,
    StageNotFoundError,
    TemplateNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from .review_engine import (
    AssignmentInput,
    CommentInput,
    ReviewEngine,
    ReviewInput,
    StageInput,
)
from .settings import SettingsService, SettingsValues, ShareLink
from .sorting import MyAssignment, MyReviewGroup, SortKey
from .templates import TemplateInput, TemplateService, TemplateStageInput
from .users import UserService

__all__ = [
    # Review engine (primary)
    "ReviewEngine",
    "ReviewInput",
    "StageInput",
    "AssignmentInput",
    "CommentInput",
    # Aggregate views
    "ReviewAggregate",
    "StageView",
    "AssignmentView",
    "CommentNode",
    "ActivityLogView",
    "KnownUser",
    "UnknownUser",
    "UserRef",
    # Sorting
    "SortKey",
    "MyAssignment",
    "MyReviewGroup",
    # Other services
    "TemplateService",
    "TemplateInput",
    "TemplateStageInput",
    "UserService",
    "SettingsService",
    "SettingsValues",
    "ShareLink",
    # Errors
    "ReviewTrackerError",
    "NotFoundError",
    "ReviewNotFoundError",
    "StageNotFoundError",
    "AssignmentNotFoundError",
    "CommentNotFoundError",
    "UserNotFoundError",
    "TemplateNotFoundError",
    "ValidationError",
]
