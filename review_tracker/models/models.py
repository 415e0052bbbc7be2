"""SQLAlchemy ORM Models for Review Tracker.

Tables: users, review_requests, review_stages, review_assignments, comments,
activity_logs, stage_templates, template_stages, global_settings.

References to users are weak (plain id columns without a foreign key): a
deleted user leaves its reviews, comments and logs in place and is rendered
as an unknown user when the review is loaded.
"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, IDMixin


# =============================================================================
# ENUMS
# =============================================================================


class ReviewStatus(str, PyEnum):
    """Per-reviewer progress on one stage."""
    PENDING = "pending"
    COMMENTED = "commented"
    ANSWERED = "answered"
    LGTM = "lgtm"


class ActivityLogType(str, PyEnum):
    CREATE = "CREATE"
    STATUS_CHANGE = "STATUS_CHANGE"
    COMMENT = "COMMENT"


# =============================================================================
# USERS
# =============================================================================


class User(Base, IDMixin):
    """Application user."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str] = mapped_column(String(500), default="")

    __table_args__ = (
        Index("idx_users_name", "name"),
    )


# =============================================================================
# REVIEW AGGREGATE
# =============================================================================


class ReviewRequest(Base, IDMixin, CreatedAtMixin):
    """A review request; owns its stages and activity log."""

    __tablename__ = "review_requests"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(Text, default="")
    author_id: Mapped[str | None] = mapped_column(String(64))

    __table_args__ = (
        Index("idx_review_requests_author", "author_id"),
        Index("idx_review_requests_created_at", "created_at"),
    )


class ReviewStage(Base, IDMixin):
    """One sequential phase of a review."""

    __tablename__ = "review_stages"

    review_request_id: Mapped[str] = mapped_column(
        ForeignKey("review_requests.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    stage_order: Mapped[int] = mapped_column(Integer, default=0)
    repository_url: Mapped[str] = mapped_column(Text, default="")
    reviewer_count: Mapped[int] = mapped_column(Integer, default=0)
    due_date: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("idx_review_stages_review", "review_request_id", "stage_order"),
    )


class ReviewAssignment(Base, IDMixin):
    """Pairing of one reviewer to one stage, carrying a status."""

    __tablename__ = "review_assignments"

    review_stage_id: Mapped[str] = mapped_column(
        ForeignKey("review_stages.id", ondelete="CASCADE"), nullable=False
    )
    reviewer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[ReviewStatus] = mapped_column(
        Enum(ReviewStatus, name="review_status", values_callable=lambda x: [e.value for e in x]),
        default=ReviewStatus.PENDING,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("review_stage_id", "reviewer_id"),
        Index("idx_review_assignments_reviewer", "reviewer_id"),
    )


class Comment(Base, IDMixin, CreatedAtMixin):
    """Stage comment; replies point at their parent. Never edited."""

    __tablename__ = "comments"

    review_stage_id: Mapped[str] = mapped_column(
        ForeignKey("review_stages.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[str | None] = mapped_column(String(64))
    content: Mapped[str] = mapped_column(Text, nullable=False)
    line_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    parent_comment_id: Mapped[str | None] = mapped_column(
        ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )

    __table_args__ = (
        Index("idx_comments_stage", "review_stage_id", "created_at"),
    )


class ActivityLog(Base, IDMixin, CreatedAtMixin):
    """Append-only audit trail entry for a review."""

    __tablename__ = "activity_logs"

    review_request_id: Mapped[str] = mapped_column(
        ForeignKey("review_requests.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[ActivityLogType] = mapped_column(
        Enum(ActivityLogType, name="activity_log_type", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    user_id: Mapped[str | None] = mapped_column(String(64))
    details: Mapped[str] = mapped_column(Text, default="")

    __table_args__ = (
        Index("idx_activity_logs_review_time", "review_request_id", "created_at"),
    )


# =============================================================================
# STAGE TEMPLATES
# =============================================================================


class StageTemplate(Base, IDMixin):
    """Reusable blueprint of stages applied when creating a review."""

    __tablename__ = "stage_templates"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_default: Mapped[bool] = mapped_column(default=False, nullable=False)

    stages: Mapped[list["TemplateStage"]] = relationship(
        back_populates="template",
        order_by="TemplateStage.stage_order",
        cascade="all, delete-orphan",
    )


class TemplateStage(Base, IDMixin):
    """One stage definition inside a template."""

    __tablename__ = "template_stages"

    stage_template_id: Mapped[str] = mapped_column(
        ForeignKey("stage_templates.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    stage_order: Mapped[int] = mapped_column(Integer, default=0)
    reviewer_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    reviewer_count: Mapped[int] = mapped_column(Integer, default=0)

    template: Mapped["StageTemplate"] = relationship(back_populates="stages")


# =============================================================================
# GLOBAL SETTINGS
# =============================================================================


class GlobalSettings(Base):
    """Singleton settings row, always id 1."""

    __tablename__ = "global_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    service_domain: Mapped[str] = mapped_column(String(500), nullable=False)
    default_reviewer_count: Mapped[int] = mapped_column(Integer, nullable=False)
    slack_message_template: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        CheckConstraint("id = 1", name="singleton"),
    )
