"""SQLAlchemy ORM Models for Review Tracker."""

from .base import Base, CreatedAtMixin, IDMixin, new_id, utcnow
from .models import (
    # Enums
    ActivityLogType,
    ReviewStatus,
    # Users
    User,
    # Review aggregate
    ActivityLog,
    Comment,
    ReviewAssignment,
    ReviewRequest,
    ReviewStage,
    # Templates
    StageTemplate,
    TemplateStage,
    # Settings
    GlobalSettings,
)

__all__ = [
    # Base
    "Base",
    "IDMixin",
    "CreatedAtMixin",
    "new_id",
    "utcnow",
    # Enums
    "ReviewStatus",
    "ActivityLogType",
    # Users
    "User",
    # Review aggregate
    "ReviewRequest",
    "ReviewStage",
    "ReviewAssignment",
    "Comment",
    "ActivityLog",
    # Templates
    "StageTemplate",
    "TemplateStage",
    # Settings
    "GlobalSettings",
]
