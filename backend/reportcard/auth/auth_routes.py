"""Authentication routes: login, self-registration, and account info."""

import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse

from reportcard.common import Account
from reportcard.directory.models import AccountResponse, RegisterRequest
from reportcard.directory.routes import to_response

from .validation import Validate

if TYPE_CHECKING:
    from reportcard.directory.service import DirectoryService

LOGGER = logging.getLogger(__name__)


def configure_auth_router(
    router: APIRouter,
    service: "DirectoryService",
    validate: Validate,
) -> APIRouter:
    """Configure the authentication router.

    :param router: The APIRouter to configure
    :param service: Directory operations
    :param validate: Validator dependencies
    :return: The configured APIRouter
    """

    @router.post("/login")
    async def login(
        email: Annotated[str, Form()],
        password: Annotated[str, Form()],
    ) -> JSONResponse:
        return to_response(await service.login(email, password))

    @router.post("/register")
    async def register(request: RegisterRequest) -> JSONResponse:
        """Complete registration for an invited email."""
        return to_response(
            await service.register_user(
                request.email,
                request.password,
                request.name,
                request.telephone,
            ),
        )

    @router.post("/logout")
    def logout() -> str:
        """With JWT, logout is handled client-side by discarding the token."""
        return "Success"

    @router.get("/account", response_model=AccountResponse)
    def get_account_info(
        account: Annotated[Account, Depends(validate.actor)],
    ) -> AccountResponse:
        return AccountResponse.from_account(account)

    return router
