"""User directory routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from ..core import SessionDep
from ..schemas import CreateUserRequest, UpdateUserRequest, UserResponse
from ..services import UserNotFoundError, UserService, ValidationError
from .errors import http_error

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(session: SessionDep) -> UserService:
    return UserService(session)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.get("", response_model=list[UserResponse], summary="List users")
async def list_users(service: UserServiceDep):
    users = await service.list_users()
    return [UserResponse.from_model(u) for u in users]


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(request: CreateUserRequest, service: UserServiceDep):
    try:
        user = await service.create_user(
            name=request.name,
            avatar_url=request.avatar_url,
            user_id=request.id,
        )
    except ValidationError as e:
        raise http_error(e)
    return UserResponse.from_model(user)


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(user_id: str, service: UserServiceDep):
    try:
        user = await service.get_user(user_id)
    except UserNotFoundError as e:
        raise http_error(e)
    return UserResponse.from_model(user)


@router.put("/{user_id}", response_model=UserResponse, summary="Update a user")
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    service: UserServiceDep,
):
    try:
        user = await service.update_user(
            user_id,
            name=request.name,
            avatar_url=request.avatar_url,
        )
    except (UserNotFoundError, ValidationError) as e:
        raise http_error(e)
    return UserResponse.from_model(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user",
    description="""
    Delete a user. Reviews, assignments, comments and activity entries that
    reference the user are kept and show an unknown user from then on.
    """,
)
async def delete_user(user_id: str, service: UserServiceDep):
    try:
        await service.delete_user(user_id)
    except UserNotFoundError as e:
        raise http_error(e)
