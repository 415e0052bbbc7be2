"""Pydantic schemas for API request/response validation."""

from .base import ApiModel, ErrorDetail, ErrorResponse, UserResponse
from .reviews import (
    ActivityLogResponse,
    AssignmentRequest,
    AssignmentResponse,
    CommentRequest,
    CommentResponse,
    MyAssignmentResponse,
    MyReviewResponse,
    ReviewRequestBody,
    ReviewResponse,
    ShareLinkResponse,
    StageRequest,
    StageResponse,
    StatusChangeRequest,
)
from .settings import SettingsResponse, UpdateSettingsRequest
from .templates import TemplateRequest, TemplateResponse, TemplateStageSchema
from .users import CreateUserRequest, UpdateUserRequest

__all__ = [
    # Base
    "ApiModel",
    "ErrorDetail",
    "ErrorResponse",
    "UserResponse",
    # Reviews
    "ReviewRequestBody",
    "StageRequest",
    "AssignmentRequest",
    "StatusChangeRequest",
    "CommentRequest",
    "ReviewResponse",
    "StageResponse",
    "AssignmentResponse",
    "CommentResponse",
    "ActivityLogResponse",
    "MyAssignmentResponse",
    "MyReviewResponse",
    "ShareLinkResponse",
    # Users
    "CreateUserRequest",
    "UpdateUserRequest",
    # Templates
    "TemplateRequest",
    "TemplateResponse",
    "TemplateStageSchema",
    # Settings
    "SettingsResponse",
    "UpdateSettingsRequest",
]
