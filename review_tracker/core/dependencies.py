"""FastAPI dependencies for identity resolution and database sessions.

There is no login flow. The acting user is resolved from the request by one
of two strategies, selected with the ``AUTH_MODE`` setting:

- ``header``: the client sends ``X-User-Id``
- ``token``: the client sends ``Authorization: Bearer <jwt>`` whose ``sub``
  is the user id

A missing, malformed or unknown identity never fails the request; it yields
an anonymous actor.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import User
from .config import get_settings
from .database import get_session
from .security import decode_token

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"


class CurrentUser:
    """The acting user of a request, or an anonymous actor."""

    def __init__(self, user: User | None = None):
        self.user = user

    @property
    def id(self) -> str | None:
        return self.user.id if self.user else None

    @property
    def is_anonymous(self) -> bool:
        return self.user is None


def user_id_from_header(request: Request) -> str | None:
    value = request.headers.get(USER_ID_HEADER, "").strip()
    return value or None


def user_id_from_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    payload = decode_token(token.strip())
    return payload.sub if payload else None


async def resolve_current_user(request: Request, session: AsyncSession) -> CurrentUser:
    """Resolve the acting user for a request."""
    if get_settings().auth_mode == "token":
        user_id = user_id_from_token(request)
    else:
        user_id = user_id_from_header(request)

    if not user_id:
        return CurrentUser()

    user = await session.get(User, user_id)
    if user is None:
        logger.info(f"Unknown user id {user_id!r}; treating request as anonymous")
    return CurrentUser(user)


async def get_current_user(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CurrentUser:
    """Dependency to get the current (possibly anonymous) user."""
    return await resolve_current_user(request, session)


# Type aliases for cleaner dependency injection
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
SessionDep = Annotated[AsyncSession, Depends(get_session)]
