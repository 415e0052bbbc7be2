"""Base schemas and common types for the Review Tracker API."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..models import User
from ..services.aggregates import KnownUser, UserRef


# =============================================================================
# BASE SCHEMAS
# =============================================================================


class ApiModel(BaseModel):
    """Base model: camelCase on the wire, snake_case accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,  # Enable ORM mode
    )


# =============================================================================
# ERROR RESPONSES
# =============================================================================


class ErrorDetail(ApiModel):
    """Detailed error information."""

    field: str | None = None
    message: str
    code: str


class ErrorResponse(ApiModel):
    """Standard error response format."""

    error: str
    message: str
    details: list[ErrorDetail] = []


# =============================================================================
# COMMON REFERENCE SCHEMAS
# =============================================================================


class UserResponse(ApiModel):
    """User as embedded in responses."""

    id: str | None
    name: str
    avatar_url: str = ""

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(id=user.id, name=user.name, avatar_url=user.avatar_url or "")

    @classmethod
    def from_ref(cls, ref: UserRef) -> "UserResponse":
        """Render a user reference; unknown users get a placeholder identity."""
        if isinstance(ref, KnownUser):
            return cls.from_model(ref.user)
        return cls(id=ref.id, name=ref.name, avatar_url="")
