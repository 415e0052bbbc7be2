"""Global settings: the singleton row and review share links built from it."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..models import GlobalSettings
from .aggregates import ReviewAggregate

SETTINGS_ROW_ID = 1


@dataclass
class SettingsValues:
    service_domain: str
    default_reviewer_count: int
    slack_message_template: str


@dataclass
class ShareLink:
    url: str
    message: str


class SettingsService:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_settings(self) -> SettingsValues:
        """Return the stored settings, or configured defaults if none are stored."""
        row = await self._session.get(GlobalSettings, SETTINGS_ROW_ID)
        if row is None:
            defaults = get_settings()
            return SettingsValues(
                service_domain=defaults.default_service_domain,
                default_reviewer_count=defaults.default_reviewer_count,
                slack_message_template=defaults.default_slack_message_template,
            )
        return SettingsValues(
            service_domain=row.service_domain,
            default_reviewer_count=row.default_reviewer_count,
            slack_message_template=row.slack_message_template,
        )

    async def update_settings(self, values: SettingsValues) -> SettingsValues:
        """Write the singleton row, creating it on first save."""
        row = await self._session.get(GlobalSettings, SETTINGS_ROW_ID)
        if row is None:
            row = GlobalSettings(id=SETTINGS_ROW_ID)
            self._session.add(row)
        row.service_domain = values.service_domain
        row.default_reviewer_count = values.default_reviewer_count
        row.slack_message_template = values.slack_message_template
        await self._session.flush()
        return await self.get_settings()

    async def share_link(self, review: ReviewAggregate) -> ShareLink:
        values = await self.get_settings()
        url = f"{values.service_domain.rstrip('/')}/reviews/{review.id}"
        return ShareLink(url=url, message=render_share_message(values.slack_message_template, review, url))


def render_share_message(template: str, review: ReviewAggregate, url: str) -> str:
    """Substitute {title}, {url} and {author}; other braces are left alone."""
    return (
        template.replace("{title}", review.title)
        .replace("{url}", url)
        .replace("{author}", review.author.name)
    )
