"""
Tests for stage templates and the single-default invariant.

At most one template may be the default, whichever path sets the flag:
create, update, or the dedicated set-default action.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from review_tracker.models import StageTemplate
from review_tracker.services import (
    TemplateInput,
    TemplateNotFoundError,
    TemplateService,
    TemplateStageInput,
    ValidationError,
)


async def count_defaults(session: AsyncSession) -> int:
    return await session.scalar(
        select(func.count()).select_from(StageTemplate).where(StageTemplate.is_default.is_(True))
    )


async def default_ids(session: AsyncSession) -> set[str]:
    result = await session.execute(
        select(StageTemplate.id).where(StageTemplate.is_default.is_(True))
    )
    return set(result.scalars())


# =============================================================================
# TEST: CRUD
# =============================================================================


class TestTemplateCrud:

    async def test_create_keeps_stage_order(self, session: AsyncSession):
        service = TemplateService(session)
        created = await service.create_template(
            TemplateInput(
                name="Backend",
                stages=[
                    TemplateStageInput(name="Peer", reviewer_ids=["bob"], reviewer_count=1),
                    TemplateStageInput(name="Lead", reviewer_ids=["alice", "bob"], reviewer_count=2),
                ],
            )
        )

        fetched = await TemplateService(session).get_template(created.id)
        assert [s.name for s in fetched.stages] == ["Peer", "Lead"]
        assert fetched.stages[1].reviewer_ids == ["alice", "bob"]
        assert fetched.is_default is False

    async def test_update_replaces_stages(self, session: AsyncSession):
        service = TemplateService(session)
        created = await service.create_template(
            TemplateInput(name="Backend", stages=[TemplateStageInput(name="Peer")])
        )

        updated = await service.update_template(
            created.id,
            TemplateInput(name="Backend v2", stages=[TemplateStageInput(name="Security")]),
        )

        assert updated.name == "Backend v2"
        assert [s.name for s in updated.stages] == ["Security"]

    async def test_name_is_required(self, session: AsyncSession):
        with pytest.raises(ValidationError):
            await TemplateService(session).create_template(TemplateInput(name=" "))

    async def test_delete_and_missing(self, session: AsyncSession):
        service = TemplateService(session)
        created = await service.create_template(TemplateInput(name="Temp"))

        await service.delete_template(created.id)

        with pytest.raises(TemplateNotFoundError):
            await service.get_template(created.id)
        with pytest.raises(TemplateNotFoundError):
            await service.delete_template(created.id)


# =============================================================================
# TEST: DEFAULT INVARIANT
# =============================================================================


class TestDefaultTemplate:
    """Exactly one template is the default after any default-setting call."""

    async def test_create_as_default_clears_previous(self, session: AsyncSession):
        service = TemplateService(session)
        first = await service.create_template(TemplateInput(name="First", is_default=True))
        second = await service.create_template(TemplateInput(name="Second", is_default=True))

        assert await default_ids(session) == {second.id}
        await session.refresh(first)
        assert first.is_default is False

    async def test_update_to_default_clears_previous(self, session: AsyncSession):
        service = TemplateService(session)
        await service.create_template(TemplateInput(name="First", is_default=True))
        second = await service.create_template(TemplateInput(name="Second"))

        await service.update_template(second.id, TemplateInput(name="Second", is_default=True))

        assert await default_ids(session) == {second.id}

    async def test_set_default_leaves_exactly_one(self, session: AsyncSession):
        service = TemplateService(session)
        templates = [
            await service.create_template(TemplateInput(name=f"T{i}", is_default=(i == 0)))
            for i in range(3)
        ]

        await service.set_default(templates[2].id)

        assert await count_defaults(session) == 1
        assert await default_ids(session) == {templates[2].id}
        assert (await service.get_default_template()).id == templates[2].id

    async def test_set_default_on_missing_template_keeps_current(self, session: AsyncSession):
        service = TemplateService(session)
        current = await service.create_template(TemplateInput(name="Current", is_default=True))

        with pytest.raises(TemplateNotFoundError):
            await service.set_default("missing")

        assert await default_ids(session) == {current.id}

    async def test_no_default(self, session: AsyncSession):
        with pytest.raises(TemplateNotFoundError):
            await TemplateService(session).get_default_template()
