"""Tests for the user directory and global settings services."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from review_tracker.core import get_settings
from review_tracker.models import User
from review_tracker.services import (
    ReviewEngine,
    ReviewAggregate,
    ReviewInput,
    SettingsService,
    SettingsValues,
    UserNotFoundError,
    UnknownUser,
    UserService,
    ValidationError,
)
from review_tracker.services.settings import render_share_message


# =============================================================================
# TEST: USERS
# =============================================================================


class TestUserService:

    async def test_create_generates_id_and_avatar(self, session: AsyncSession):
        user = await UserService(session).create_user(name="  Carol ")

        assert user.id
        assert user.name == "Carol"
        assert user.avatar_url == f"https://i.pravatar.cc/150?u={user.id}"

    async def test_create_with_explicit_id(self, session: AsyncSession, alice: User):
        service = UserService(session)
        user = await service.create_user(name="Dave", user_id="dave", avatar_url="https://a/d.png")

        assert user.id == "dave"
        assert user.avatar_url == "https://a/d.png"
        with pytest.raises(ValidationError):
            await service.create_user(name="Alice again", user_id=alice.id)

    async def test_create_requires_name(self, session: AsyncSession):
        with pytest.raises(ValidationError):
            await UserService(session).create_user(name="")

    async def test_list_is_ordered_by_name(self, session: AsyncSession, alice: User, bob: User):
        await UserService(session).create_user(name="Aaron", user_id="aaron")

        users = await UserService(session).list_users()

        assert [u.name for u in users] == ["Aaron", "Alice", "Bob"]

    async def test_partial_update(self, session: AsyncSession, alice: User):
        service = UserService(session)
        original_avatar = alice.avatar_url

        updated = await service.update_user(alice.id, name="Alice Liddell")

        assert updated.name == "Alice Liddell"
        assert updated.avatar_url == original_avatar

    async def test_missing_user(self, session: AsyncSession):
        service = UserService(session)
        with pytest.raises(UserNotFoundError):
            await service.get_user("ghost")
        with pytest.raises(UserNotFoundError):
            await service.delete_user("ghost")


# =============================================================================
# TEST: SETTINGS AND SHARE LINKS
# =============================================================================


class TestSettingsService:

    async def test_defaults_before_first_save(self, session: AsyncSession):
        values = await SettingsService(session).get_settings()
        defaults = get_settings()

        assert values.service_domain == "http://localhost:5174"
        assert values.default_reviewer_count == 3
        assert values.slack_message_template == defaults.default_slack_message_template

    async def test_update_upserts_single_row(self, session: AsyncSession):
        service = SettingsService(session)
        first = SettingsValues("https://reviews.example.com", 2, "{title} by {author}: {url}")
        second = SettingsValues("https://reviews.example.com", 4, "{title}")

        await service.update_settings(first)
        saved = await service.update_settings(second)

        assert saved.default_reviewer_count == 4
        assert (await SettingsService(session).get_settings()) == second

    async def test_share_link(self, session: AsyncSession, alice: User):
        review = await ReviewEngine(session).create_review(
            ReviewInput(title="Cache layer"), author_id=alice.id
        )
        service = SettingsService(session)
        await service.update_settings(
            SettingsValues("https://reviews.example.com/", 3, "{author} asks: {title} -> {url}")
        )

        link = await service.share_link(review)

        assert link.url == f"https://reviews.example.com/reviews/{review.id}"
        assert link.message == f"Alice asks: Cache layer -> {link.url}"


class TestRenderShareMessage:

    def test_unknown_placeholders_are_left_alone(self):
        review = ReviewAggregate(
            id="r1",
            title="T",
            url="",
            author=UnknownUser(None),
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        message = render_share_message("{title} {url} {author} {other}", review, "U")
        assert message == "T U Unknown User {other}"
