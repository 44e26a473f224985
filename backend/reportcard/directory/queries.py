"""All queries related to directory accounts, credentials and invitations.

Using the DirectoryQueries class as a repository over one aiosqlite
connection. The directory record of an account and its login credential
live in separate tables and are written separately, the way a profile
document and an identity provider record would be.
"""

import asyncio
import json
import logging
import uuid
from datetime import UTC, datetime

import aiosqlite
from aiosqlite import Connection

from reportcard.common import (
    Account,
    AccountStatus,
    ConflictError,
    ConflictKind,
    Invitation,
    InviteStatus,
    NotFoundError,
    Role,
    ScopeFields,
)
from reportcard.common.user import stored_scope

LOGGER = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)


def _to_text(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _to_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _scope_params(fields: ScopeFields) -> tuple:
    return (
        fields.region,
        fields.district,
        fields.circuit,
        fields.school_name,
        json.dumps(list(fields.class_names)) if fields.class_names else None,
    )


def _scope_from_row(row: aiosqlite.Row) -> ScopeFields:
    class_names = json.loads(row["class_names"]) if row["class_names"] else None
    return ScopeFields.create(
        region=row["region"],
        district=row["district"],
        circuit=row["circuit"],
        school_name=row["school_name"],
        class_names=class_names,
    )


def _account_from_row(row: aiosqlite.Row) -> Account:
    role = Role(row["role"])
    return Account(
        id=row["id"],
        email=row["email"],
        role=role,
        status=AccountStatus(row["status"]),
        scope=stored_scope(role, _scope_from_row(row)),
        name=row["name"],
        telephone=row["telephone"],
        created_at=_to_datetime(row["created_at"]),
    )


def _invitation_from_row(row: aiosqlite.Row) -> Invitation:
    role = Role(row["role"]) if row["role"] else None
    return Invitation(
        id=row["id"],
        email=row["email"],
        status=InviteStatus(row["status"]),
        role=role,
        scope=stored_scope(role, _scope_from_row(row)),
        created_at=_to_datetime(row["created_at"]),
        completed_at=_to_datetime(row["completed_at"]),
    )


class DirectoryQueries:
    """Repository for directory-related queries."""

    CREATE_ACCOUNTS_TABLE = """
        CREATE TABLE IF NOT EXISTS accounts (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            name TEXT,
            telephone TEXT,
            role TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'active',
            region TEXT,
            district TEXT,
            circuit TEXT,
            school_name TEXT,
            class_names TEXT, -- JSON array
            created_at TEXT
        );
        """

    CREATE_CREDENTIALS_TABLE = """
        CREATE TABLE IF NOT EXISTS credentials (
            email TEXT PRIMARY KEY,
            hashed_password BLOB NOT NULL,
            created_at TEXT
        );
        """

    CREATE_INVITES_TABLE = """
        CREATE TABLE IF NOT EXISTS invites (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            role TEXT, -- NULL until a role is assigned
            region TEXT,
            district TEXT,
            circuit TEXT,
            school_name TEXT,
            class_names TEXT,
            created_at TEXT,
            completed_at TEXT
        );
        """

    # at most one pending invite per address
    CREATE_PENDING_INVITE_INDEX = """
        CREATE UNIQUE INDEX IF NOT EXISTS invites_one_pending_per_email
        ON invites (email) WHERE status = 'pending';
        """

    GET_ACCOUNT = """SELECT * FROM accounts WHERE id = ?;"""

    GET_ACCOUNT_BY_EMAIL = """SELECT * FROM accounts WHERE email = ?;"""

    LIST_ACCOUNTS = """SELECT * FROM accounts;"""

    ADD_ACCOUNT = """
        INSERT INTO accounts (
            id, email, name, telephone, role, status,
            region, district, circuit, school_name, class_names, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
        """

    UPDATE_ACCOUNT_ROLE_AND_SCOPE = """
        UPDATE accounts
        SET role = ?, region = ?, district = ?, circuit = ?,
            school_name = ?, class_names = ?
        WHERE id = ?;
        """

    UPDATE_ACCOUNT_STATUS = """UPDATE accounts SET status = ? WHERE id = ?;"""

    DELETE_ACCOUNT = """DELETE FROM accounts WHERE id = ?;"""

    GET_CREDENTIAL = """SELECT hashed_password FROM credentials WHERE email = ?;"""

    ADD_CREDENTIAL = """
        INSERT INTO credentials (email, hashed_password, created_at) VALUES (?, ?, ?);
        """

    DELETE_CREDENTIAL = """DELETE FROM credentials WHERE email = ?;"""

    GET_INVITE = """SELECT * FROM invites WHERE id = ?;"""

    GET_PENDING_INVITE_BY_EMAIL = """
        SELECT * FROM invites WHERE email = ? AND status = 'pending';
        """

    LIST_INVITES = """SELECT * FROM invites;"""

    ADD_INVITE = """
        INSERT INTO invites (
            id, email, status, role,
            region, district, circuit, school_name, class_names, created_at
        ) VALUES (?, ?, 'pending', ?, ?, ?, ?, ?, ?, ?);
        """

    UPDATE_PENDING_INVITE = """
        UPDATE invites
        SET role = ?, region = ?, district = ?, circuit = ?,
            school_name = ?, class_names = ?
        WHERE id = ? AND status = 'pending';
        """

    COMPLETE_PENDING_INVITE = """
        UPDATE invites SET status = 'completed', completed_at = ?
        WHERE id = ? AND status = 'pending';
        """

    DELETE_INVITE = """DELETE FROM invites WHERE id = ?;"""

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self.connection.row_factory = aiosqlite.Row
        # statements of one write transaction must not interleave with another
        self._write_lock = asyncio.Lock()

    @classmethod
    async def create(cls, db_path: str) -> "DirectoryQueries":
        """Create a DirectoryQueries instance with its own aiosqlite connection.

        :param db_path: Path to the SQLite database file
        :return: Configured DirectoryQueries instance
        """
        connection = await aiosqlite.connect(db_path)
        return cls(connection)

    async def close(self) -> None:
        await self.connection.close()

    async def initialize_tables(self) -> None:
        """Create the directory tables and indexes if they do not exist.

        This method should be called during application startup.
        """
        async with self._write_lock:
            try:
                await self.connection.execute(DirectoryQueries.CREATE_ACCOUNTS_TABLE)
                await self.connection.execute(
                    DirectoryQueries.CREATE_CREDENTIALS_TABLE,
                )
                await self.connection.execute(DirectoryQueries.CREATE_INVITES_TABLE)
                await self.connection.execute(
                    DirectoryQueries.CREATE_PENDING_INVITE_INDEX,
                )
                await self.connection.commit()
            except aiosqlite.Error:
                await self.connection.rollback()
                LOGGER.exception("Error initializing directory tables")
                raise

    async def _fetch_one(self, query: str, params: tuple) -> aiosqlite.Row | None:
        async with self.connection.execute(query, params) as cursor:
            return await cursor.fetchone()

    async def _fetch_all(self, query: str) -> list[aiosqlite.Row]:
        async with self.connection.execute(query) as cursor:
            return list(await cursor.fetchall())

    async def _write(self, query: str, params: tuple) -> int:
        """Run one write statement in its own transaction.

        :return: Number of rows affected
        """
        async with self._write_lock:
            try:
                cursor = await self.connection.execute(query, params)
                await self.connection.commit()
            except aiosqlite.Error:
                await self.connection.rollback()
                raise
            return cursor.rowcount

    # accounts

    async def get_account(self, account_id: str) -> Account | None:
        row = await self._fetch_one(DirectoryQueries.GET_ACCOUNT, (account_id,))
        return _account_from_row(row) if row else None

    async def get_account_by_email(self, email: str) -> Account | None:
        row = await self._fetch_one(DirectoryQueries.GET_ACCOUNT_BY_EMAIL, (email,))
        return _account_from_row(row) if row else None

    async def list_accounts(self) -> list[Account]:
        rows = await self._fetch_all(DirectoryQueries.LIST_ACCOUNTS)
        return [_account_from_row(row) for row in rows]

    async def add_account(self, account: Account) -> Account:
        """Insert a new directory account.

        :param account: The account to store; its created_at is set if missing
        :return: The stored account
        :raises ConflictError: If an account with the email already exists
        """
        if account.created_at is None:
            account.created_at = utcnow()
        async with self._write_lock:
            try:
                await self._insert_account(account)
                await self.connection.commit()
            except aiosqlite.IntegrityError as e:
                await self.connection.rollback()
                raise ConflictError(
                    ConflictKind.EXISTING_ACCOUNT,
                    f"An account for {account.email} already exists",
                ) from e
            except aiosqlite.Error:
                await self.connection.rollback()
                raise
        return account

    async def _insert_account(self, account: Account) -> None:
        await self.connection.execute(
            DirectoryQueries.ADD_ACCOUNT,
            (
                account.id,
                account.email,
                account.name,
                account.telephone,
                str(account.role),
                str(account.status),
                *_scope_params(account.fields),
                _to_text(account.created_at),
            ),
        )

    async def update_account_role_and_scope(
        self,
        account_id: str,
        role: Role,
        fields: ScopeFields,
    ) -> int:
        return await self._write(
            DirectoryQueries.UPDATE_ACCOUNT_ROLE_AND_SCOPE,
            (str(role), *_scope_params(fields), account_id),
        )

    async def update_account_status(
        self,
        account_id: str,
        status: AccountStatus,
    ) -> int:
        return await self._write(
            DirectoryQueries.UPDATE_ACCOUNT_STATUS,
            (str(status), account_id),
        )

    async def delete_account(self, account_id: str) -> int:
        return await self._write(DirectoryQueries.DELETE_ACCOUNT, (account_id,))

    # credentials

    async def get_credential(self, email: str) -> bytes | None:
        """Return the stored password hash for an email, if any."""
        row = await self._fetch_one(DirectoryQueries.GET_CREDENTIAL, (email,))
        return row["hashed_password"] if row else None

    async def add_credential(self, email: str, hashed_password: bytes) -> None:
        """Store a login credential.

        :raises ConflictError: If a credential for the email already exists
        """
        async with self._write_lock:
            try:
                await self.connection.execute(
                    DirectoryQueries.ADD_CREDENTIAL,
                    (email, hashed_password, _to_text(utcnow())),
                )
                await self.connection.commit()
            except aiosqlite.IntegrityError as e:
                await self.connection.rollback()
                raise ConflictError(
                    ConflictKind.EXISTING_ACCOUNT,
                    f"{email} is already registered",
                ) from e
            except aiosqlite.Error:
                await self.connection.rollback()
                raise

    async def delete_credential(self, email: str) -> int:
        return await self._write(DirectoryQueries.DELETE_CREDENTIAL, (email,))

    # invitations

    async def get_invite(self, invite_id: str) -> Invitation | None:
        row = await self._fetch_one(DirectoryQueries.GET_INVITE, (invite_id,))
        return _invitation_from_row(row) if row else None

    async def get_pending_invite_by_email(self, email: str) -> Invitation | None:
        row = await self._fetch_one(
            DirectoryQueries.GET_PENDING_INVITE_BY_EMAIL,
            (email,),
        )
        return _invitation_from_row(row) if row else None

    async def list_invites(self) -> list[Invitation]:
        rows = await self._fetch_all(DirectoryQueries.LIST_INVITES)
        return [_invitation_from_row(row) for row in rows]

    async def add_invite(self, invite: Invitation) -> Invitation:
        """Insert a new pending invitation.

        :raises ConflictError: If a pending invite for the email already exists
        """
        if invite.created_at is None:
            invite.created_at = utcnow()
        async with self._write_lock:
            try:
                await self.connection.execute(
                    DirectoryQueries.ADD_INVITE,
                    (
                        invite.id,
                        invite.email,
                        str(invite.role) if invite.role else None,
                        *_scope_params(invite.fields),
                        _to_text(invite.created_at),
                    ),
                )
                await self.connection.commit()
            except aiosqlite.IntegrityError as e:
                await self.connection.rollback()
                raise ConflictError(
                    ConflictKind.PENDING_INVITE,
                    f"A pending invite for {invite.email} already exists",
                ) from e
            except aiosqlite.Error:
                await self.connection.rollback()
                raise
        return invite

    async def update_pending_invite(
        self,
        invite_id: str,
        role: Role | None,
        fields: ScopeFields,
    ) -> int:
        """Overwrite role and scope of an invite that is still pending.

        :return: Number of rows updated, 0 if the invite is gone or completed
        """
        return await self._write(
            DirectoryQueries.UPDATE_PENDING_INVITE,
            (str(role) if role else None, *_scope_params(fields), invite_id),
        )

    async def delete_invite(self, invite_id: str) -> int:
        return await self._write(DirectoryQueries.DELETE_INVITE, (invite_id,))

    async def consume_invite(
        self,
        invite: Invitation,
        account: Account,
        hashed_password: bytes,
    ) -> Account:
        """Complete an invite and create its credential and account atomically.

        The invite is completed with a conditional update, so of two
        registrations racing for the same invite exactly one commits.

        :param invite: The pending invite being consumed
        :param account: The account to create from it
        :param hashed_password: Password hash for the new credential
        :return: The created account
        :raises NotFoundError: If the invite is no longer pending
        :raises ConflictError: If the email is already registered
        """
        now = utcnow()
        account.created_at = account.created_at or now
        async with self._write_lock:
            try:
                cursor = await self.connection.execute(
                    DirectoryQueries.COMPLETE_PENDING_INVITE,
                    (_to_text(now), invite.id),
                )
                if cursor.rowcount == 0:
                    await self.connection.rollback()
                    raise NotFoundError(
                        f"No pending invite found for {invite.email}",
                    )
                await self.connection.execute(
                    DirectoryQueries.ADD_CREDENTIAL,
                    (account.email, hashed_password, _to_text(now)),
                )
                await self._insert_account(account)
                await self.connection.commit()
            except aiosqlite.IntegrityError as e:
                await self.connection.rollback()
                raise ConflictError(
                    ConflictKind.EXISTING_ACCOUNT,
                    f"{account.email} is already registered",
                ) from e
            except aiosqlite.Error:
                await self.connection.rollback()
                raise
        invite.status = InviteStatus.COMPLETED
        invite.completed_at = now
        LOGGER.info("Invite %s consumed by %s", invite.id, account.email)
        return account
