"""
Stage template routes.

At most one template is the default. Creating or updating a template with
``isDefault: true``, or calling PUT /stage-templates/{id}/default, clears the
flag on every other template in the same transaction.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from ..core import SessionDep
from ..schemas import TemplateRequest, TemplateResponse
from ..services import TemplateNotFoundError, TemplateService, ValidationError
from .errors import http_error

router = APIRouter(prefix="/stage-templates", tags=["stage-templates"])


def get_template_service(session: SessionDep) -> TemplateService:
    return TemplateService(session)


TemplateServiceDep = Annotated[TemplateService, Depends(get_template_service)]


@router.get("", response_model=list[TemplateResponse], summary="List stage templates")
async def list_templates(service: TemplateServiceDep):
    templates = await service.list_templates()
    return [TemplateResponse.from_model(t) for t in templates]


@router.get(
    "/default",
    response_model=TemplateResponse,
    summary="Get the default stage template",
)
async def get_default_template(service: TemplateServiceDep):
    try:
        template = await service.get_default_template()
    except TemplateNotFoundError as e:
        raise http_error(e)
    return TemplateResponse.from_model(template)


@router.post(
    "",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a stage template",
)
async def create_template(request: TemplateRequest, service: TemplateServiceDep):
    try:
        template = await service.create_template(request.to_input())
    except ValidationError as e:
        raise http_error(e)
    return TemplateResponse.from_model(template)


@router.put(
    "/{template_id}",
    response_model=TemplateResponse,
    summary="Replace a stage template",
)
async def update_template(
    template_id: str,
    request: TemplateRequest,
    service: TemplateServiceDep,
):
    try:
        template = await service.update_template(template_id, request.to_input())
    except (TemplateNotFoundError, ValidationError) as e:
        raise http_error(e)
    return TemplateResponse.from_model(template)


@router.put(
    "/{template_id}/default",
    response_model=TemplateResponse,
    summary="Make a stage template the default",
)
async def set_default_template(template_id: str, service: TemplateServiceDep):
    try:
        template = await service.set_default(template_id)
    except TemplateNotFoundError as e:
        raise http_error(e)
    return TemplateResponse.from_model(template)


@router.delete(
    "/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a stage template",
)
async def delete_template(template_id: str, service: TemplateServiceDep):
    try:
        await service.delete_template(template_id)
    except TemplateNotFoundError as e:
        raise http_error(e)
