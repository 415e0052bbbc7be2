"""Pydantic schemas for the user directory."""

from pydantic import Field

from .base import ApiModel


class CreateUserRequest(ApiModel):
    id: str | None = Field(
        default=None,
        description="Optional explicit id; generated when omitted",
    )
    name: str = Field(..., min_length=1, max_length=255)
    avatar_url: str | None = None


class UpdateUserRequest(ApiModel):
    """Partial update; omitted fields keep their value."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    avatar_url: str | None = None
