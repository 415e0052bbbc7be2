"""Pydantic schemas for global settings."""

from pydantic import Field, StrictInt, StrictStr

from ..services.settings import SettingsValues
from .base import ApiModel


class SettingsResponse(ApiModel):
    service_domain: str
    default_reviewer_count: int
    slack_message_template: str

    @classmethod
    def from_values(cls, values: SettingsValues) -> "SettingsResponse":
        return cls(
            service_domain=values.service_domain,
            default_reviewer_count=values.default_reviewer_count,
            slack_message_template=values.slack_message_template,
        )


class UpdateSettingsRequest(ApiModel):
    """Settings update. The share message template is kept when omitted."""
    service_domain: StrictStr = Field(..., min_length=1)
    default_reviewer_count: StrictInt = Field(..., ge=0)
    slack_message_template: StrictStr | None = None
