"""FastAPI dependency validators for authentication."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from reportcard.common import Account  # noqa: TC001

if TYPE_CHECKING:
    from reportcard.directory.queries import DirectoryQueries

    from .security_manager import SecurityManager


bearer_scheme = HTTPBearer(auto_error=True)

LOGGER = logging.getLogger(__name__)


class Validate:
    """Holds validator dependencies for FastAPI authentication."""

    def __init__(
        self,
        queries: DirectoryQueries,
        security_manager: SecurityManager,
    ) -> None:
        """Create a new validator instance.

        :param queries: Directory store used to load the acting account
        :param security_manager: JWT security manager
        """
        self.queries = queries
        self.security_manager = security_manager

    async def actor(
        self,
        credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),  # noqa: B008
    ) -> Account:
        """Resolve the bearer token to the current directory account.

        The account is read from the store on every request so role, scope
        and status changes take effect without a new token.
        """
        claims = self.security_manager.verify_token(credentials.credentials)
        if claims is None:
            LOGGER.debug("JWT token validation failed")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )

        account = await self.queries.get_account(claims.account_id)
        if account is None:
            LOGGER.debug("Token for %s refers to a missing account", claims.email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if not account.is_active:
            LOGGER.debug("Inactive account %s rejected", account.email)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="This account is inactive",
            )

        LOGGER.debug("JWT token validated for %s", account.email)
        return account
