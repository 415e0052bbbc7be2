"""Stage template service.

Invariant: at most one template has ``is_default`` set. Whenever a template
becomes the default, the flag is cleared on every other template first,
inside the same transaction, so a failure leaves the previous default intact.
"""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import StageTemplate, TemplateStage, new_id
from .errors import TemplateNotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class TemplateStageInput:
    name: str
    reviewer_ids: list[str] = field(default_factory=list)
    reviewer_count: int = 0


@dataclass
class TemplateInput:
    name: str
    stages: list[TemplateStageInput] = field(default_factory=list)
    is_default: bool = False


class TemplateService:
    """CRUD for stage templates plus default selection."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_templates(self) -> Sequence[StageTemplate]:
        result = await self._session.execute(
            select(StageTemplate)
            .options(selectinload(StageTemplate.stages))
            .order_by(StageTemplate.name)
        )
        return result.scalars().all()

    async def get_template(self, template_id: str) -> StageTemplate:
        result = await self._session.execute(
            select(StageTemplate)
            .where(StageTemplate.id == template_id)
            .options(selectinload(StageTemplate.stages))
        )
        template = result.scalar_one_or_none()
        if template is None:
            raise TemplateNotFoundError(f"Template {template_id} not found")
        return template

    async def get_default_template(self) -> StageTemplate:
        result = await self._session.execute(
            select(StageTemplate)
            .where(StageTemplate.is_default.is_(True))
            .options(selectinload(StageTemplate.stages))
        )
        template = result.scalars().first()
        if template is None:
            raise TemplateNotFoundError("No default template is set")
        return template

    async def create_template(self, input: TemplateInput) -> StageTemplate:
        name = _require_name(input.name)
        if input.is_default:
            await self._clear_default()

        template = StageTemplate(
            id=new_id(),
            name=name,
            is_default=input.is_default,
            stages=_build_stages(input.stages),
        )
        self._session.add(template)
        await self._session.flush()

        logger.info(f"Created stage template {template.id} ({name})")
        return template

    async def update_template(self, template_id: str, input: TemplateInput) -> StageTemplate:
        """Replace a template's name, stages and default flag."""
        template = await self.get_template(template_id)
        template.name = _require_name(input.name)

        if input.is_default and not template.is_default:
            await self._clear_default(exclude_id=template_id)
        template.is_default = input.is_default

        # delete-orphan cascade removes the previous stage rows
        template.stages = _build_stages(input.stages)
        await self._session.flush()
        return template

    async def delete_template(self, template_id: str) -> None:
        template = await self.get_template(template_id)
        await self._session.delete(template)
        await self._session.flush()
        logger.info(f"Deleted stage template {template_id}")

    async def set_default(self, template_id: str) -> StageTemplate:
        """Make one template the default and clear the flag everywhere else."""
        template = await self.get_template(template_id)
        await self._clear_default(exclude_id=template_id)
        template.is_default = True
        await self._session.flush()

        logger.info(f"Stage template {template_id} is now the default")
        return template

    async def _clear_default(self, exclude_id: str | None = None) -> None:
        stmt = (
            update(StageTemplate)
            .where(StageTemplate.is_default.is_(True))
            .values(is_default=False)
        )
        if exclude_id is not None:
            stmt = stmt.where(StageTemplate.id != exclude_id)
        await self._session.execute(stmt)


def _build_stages(stages: list[TemplateStageInput]) -> list[TemplateStage]:
    return [
        TemplateStage(
            id=new_id(),
            name=stage.name,
            stage_order=position,
            reviewer_ids=list(stage.reviewer_ids),
            reviewer_count=stage.reviewer_count,
        )
        for position, stage in enumerate(stages)
    ]


def _require_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Template name is required")
    return name
