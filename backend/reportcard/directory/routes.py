"""Directory routes for provisioning invites and managing accounts.

Every route answers with the operation's result envelope and an HTTP
status derived from its error category.
"""

import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from reportcard.common import Account, ActionResult

from .models import (
    CreateInviteRequest,
    UpdateInviteRequest,
    UpdateStatusRequest,
    UpdateUserRequest,
)

if TYPE_CHECKING:
    from reportcard.auth.validation import Validate

    from .service import DirectoryService

LOGGER = logging.getLogger(__name__)


def to_response(result: ActionResult) -> JSONResponse:
    """Serialize an operation result with its matching HTTP status."""
    content = result.model_dump(mode="json")
    return JSONResponse(
        status_code=result.status_code,
        content={key: value for key, value in content.items() if value is not None},
    )


def configure_directory_router(
    router: APIRouter,
    service: "DirectoryService",
    validate: "Validate",
) -> APIRouter:
    """Configure the directory router.

    :param router: The APIRouter to configure
    :param service: Directory operations
    :param validate: Validator dependencies resolving the acting account
    :return: The configured APIRouter
    """

    @router.post("/invites")
    async def create_invite(
        request: CreateInviteRequest,
        actor: Annotated[Account, Depends(validate.actor)],
    ) -> JSONResponse:
        return to_response(
            await service.create_invite(
                actor,
                request.email,
                request.role,
                request.to_fields(),
            ),
        )

    @router.get("/invites")
    async def list_invites(
        actor: Annotated[Account, Depends(validate.actor)],
    ) -> JSONResponse:
        return to_response(await service.list_invites(actor))

    @router.patch("/invites/{invite_id}")
    async def update_invite(
        invite_id: str,
        request: UpdateInviteRequest,
        actor: Annotated[Account, Depends(validate.actor)],
    ) -> JSONResponse:
        return to_response(
            await service.update_invite(
                actor,
                invite_id,
                request.role,
                request.to_fields(),
            ),
        )

    @router.delete("/invites/{invite_id}")
    async def delete_invite(
        invite_id: str,
        actor: Annotated[Account, Depends(validate.actor)],
    ) -> JSONResponse:
        return to_response(await service.delete_invite(actor, invite_id))

    @router.get("/users")
    async def list_users(
        actor: Annotated[Account, Depends(validate.actor)],
    ) -> JSONResponse:
        return to_response(await service.list_users(actor))

    @router.patch("/users/{user_id}")
    async def update_user(
        user_id: str,
        request: UpdateUserRequest,
        actor: Annotated[Account, Depends(validate.actor)],
    ) -> JSONResponse:
        return to_response(
            await service.update_user_role_and_scope(
                actor,
                user_id,
                request.role,
                request.to_fields(),
            ),
        )

    @router.patch("/users/{user_id}/status")
    async def update_user_status(
        user_id: str,
        request: UpdateStatusRequest,
        actor: Annotated[Account, Depends(validate.actor)],
    ) -> JSONResponse:
        return to_response(
            await service.update_user_status(actor, user_id, request.status),
        )

    @router.delete("/users/{user_id}")
    async def delete_user(
        user_id: str,
        actor: Annotated[Account, Depends(validate.actor)],
    ) -> JSONResponse:
        return to_response(await service.delete_user(actor, user_id))

    return router
