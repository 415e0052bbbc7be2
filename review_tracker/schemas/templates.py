"""Pydantic schemas for stage templates."""

from pydantic import Field

from ..models import StageTemplate
from ..services.templates import TemplateInput, TemplateStageInput
from .base import ApiModel


class TemplateStageSchema(ApiModel):
    """One stage blueprint inside a template."""
    name: str
    reviewer_ids: list[str] = Field(default_factory=list)
    reviewer_count: int = Field(default=0, ge=0)


class TemplateRequest(ApiModel):
    name: str
    stages: list[TemplateStageSchema] = Field(default_factory=list)
    is_default: bool = False

    def to_input(self) -> TemplateInput:
        return TemplateInput(
            name=self.name,
            stages=[
                TemplateStageInput(
                    name=s.name,
                    reviewer_ids=s.reviewer_ids,
                    reviewer_count=s.reviewer_count,
                )
                for s in self.stages
            ],
            is_default=self.is_default,
        )


class TemplateResponse(ApiModel):
    id: str
    name: str
    is_default: bool
    stages: list[TemplateStageSchema]

    @classmethod
    def from_model(cls, template: StageTemplate) -> "TemplateResponse":
        return cls(
            id=template.id,
            name=template.name,
            is_default=template.is_default,
            stages=[
                TemplateStageSchema(
                    name=s.name,
                    reviewer_ids=list(s.reviewer_ids or []),
                    reviewer_count=s.reviewer_count,
                )
                for s in template.stages
            ],
        )
