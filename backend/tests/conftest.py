"""Pytest configuration file for setting up test environment."""

import sys
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

# Add the backend directory to Python path so tests can import reportcard
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from reportcard.auth import SecurityManager  # noqa: E402
from reportcard.common import (  # noqa: E402
    Account,
    AccountStatus,
    Role,
    ScopeFields,
    scope_for_role,
)
from reportcard.directory import DirectoryQueries, DirectoryService  # noqa: E402
from reportcard.directory.queries import new_id  # noqa: E402

TEST_SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs512-signing"
TEST_PASSWORD = "correct-horse"  # noqa: S105


def make_account(
    role: Role,
    email: str | None = None,
    status: AccountStatus = AccountStatus.ACTIVE,
    **scope: object,
) -> Account:
    """Build an in-memory account with the scope variant of its role."""
    account_id = new_id()
    return Account(
        id=account_id,
        email=email or f"{role}-{account_id[:8]}@school.test",
        role=role,
        status=status,
        scope=scope_for_role(role, ScopeFields.create(**scope)),
        name=f"Test {role}",
    )


@pytest_asyncio.fixture
async def queries() -> AsyncGenerator[DirectoryQueries, None]:
    """Directory store over a fresh in-memory database."""
    store = await DirectoryQueries.create(":memory:")
    await store.initialize_tables()
    yield store
    await store.close()


@pytest.fixture
def security_manager() -> SecurityManager:
    return SecurityManager(secret_key=TEST_SECRET_KEY)


@pytest.fixture
def service(
    queries: DirectoryQueries,
    security_manager: SecurityManager,
) -> DirectoryService:
    return DirectoryService(queries, security_manager)


@pytest_asyncio.fixture
async def super_admin(queries: DirectoryQueries) -> Account:
    return await queries.add_account(
        make_account(Role.SUPER_ADMIN, email="root@school.test"),
    )


@pytest_asyncio.fixture
async def big_admin(queries: DirectoryQueries) -> Account:
    """District administrator for Kumasi Metro in Ashanti."""
    return await queries.add_account(
        make_account(
            Role.BIG_ADMIN,
            email="district@school.test",
            region="Ashanti",
            district="Kumasi Metro",
        ),
    )


@pytest_asyncio.fixture
async def admin(queries: DirectoryQueries) -> Account:
    """School administrator of Prempeh College in Kumasi Metro."""
    return await queries.add_account(
        make_account(
            Role.ADMIN,
            email="head@school.test",
            region="Ashanti",
            district="Kumasi Metro",
            circuit="Circuit A",
            school_name="Prempeh College",
        ),
    )


@pytest_asyncio.fixture
async def user(queries: DirectoryQueries) -> Account:
    return await queries.add_account(
        make_account(
            Role.USER,
            email="tutor@school.test",
            region="Ashanti",
            district="Kumasi Metro",
            circuit="Circuit A",
            school_name="Prempeh College",
            class_names=["Form 1A"],
        ),
    )
