"""Password hashing and JWT utilities.

Includes password requirement checks, password hashing, and access token
creation and verification.
"""

import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from bcrypt import checkpw, gensalt, hashpw

from reportcard.common import Account, Role

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a verified access token."""

    account_id: str
    email: str
    role: Role


@dataclass
class SecurityManager:
    """Manager for security configurations and validations.

    :param str secret_key: Secret key for JWT signing (generated if not provided)
    :param str algorithm: JWT signing algorithm
    :param int expire_minutes: Token expiration time in minutes
    :param int password_min_length: Minimum length for passwords
    """

    DEFAULT_JWT_ALGORITHM = "HS512"
    DEFAULT_TOKEN_EXPIRE_MINUTES = 60 * 24
    DEFAULT_PASSWORD_MIN_LENGTH = 6
    MINIMUM_JWT_SECRET_KEY_LENGTH = 32
    # bcrypt refuses longer input
    MAX_PASSWORD_BYTES = 72

    secret_key: str | None = None
    algorithm: str = DEFAULT_JWT_ALGORITHM
    expire_minutes: int = DEFAULT_TOKEN_EXPIRE_MINUTES
    password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH

    def __post_init__(self) -> None:
        """Generate secret key if not provided."""
        if (
            self.secret_key is None
            or len(self.secret_key) < self.MINIMUM_JWT_SECRET_KEY_LENGTH
        ):
            self.secret_key = os.urandom(64).hex()

    def validate_password(self, password: str) -> str | None:
        """Validate password against configured requirements.

        :param str password: The password to validate
        :return: An error message if the password does not meet requirements,
        None otherwise
        """
        if len(password) < self.password_min_length:
            return f"Password must be at least {self.password_min_length} characters long"

        if len(password.encode()) > self.MAX_PASSWORD_BYTES:
            return f"Password must be at most {self.MAX_PASSWORD_BYTES} bytes long"

        return None

    @staticmethod
    def hash_password(password: str) -> bytes:
        return hashpw(password.encode(), gensalt())

    @classmethod
    def check_password(cls, password: str, hashed_password: bytes) -> bool:
        encoded = password.encode()
        if len(encoded) > cls.MAX_PASSWORD_BYTES:
            return False
        return checkpw(encoded, hashed_password)

    def create_access_token(self, account: Account) -> str:
        """Create a new JWT access token for the account.

        :param Account account: The account for whom to create the token
        :return: A JWT access token as a string
        """
        now = datetime.now(UTC)

        payload = {
            "sub": account.id,
            "email": account.email,
            "role": str(account.role),
            "exp": now + timedelta(minutes=self.expire_minutes),
            "iat": now,
            "type": "access_token",
        }

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenClaims | None:
        """Verify and decode a JWT token.

        :param token: The JWT token string to verify
        :return: The token claims if the token is valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
        except jwt.ExpiredSignatureError:
            LOGGER.debug("Rejected expired access token")
            return None
        except jwt.InvalidTokenError:
            return None

        if payload.get("type") != "access_token":
            return None

        account_id = payload.get("sub")
        email = payload.get("email")
        role = payload.get("role")
        if account_id is None or email is None or role is None:
            return None

        try:
            return TokenClaims(account_id=account_id, email=email, role=Role(role))
        except ValueError:
            return None
