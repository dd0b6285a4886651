"""
Account Store
=============

[ACCOUNTS] SQLite-backed user records keyed by wallet address.

The login flow only touches identity (id, username, display name),
authorization (role, status, group) and the zkp_hash link to the most recently
verified proof. Rows are soft-deleted: a deleted wallet still counts as taken,
but find_by_wallet_address() no longer returns it.
"""

import asyncio
import logging
import secrets
import string
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiosqlite

from core.errors import AccountStoreError

logger = logging.getLogger(__name__)

ROLE_COMMON_USER = 1

USER_STATUS_ENABLED = 1
USER_STATUS_DISABLED = 2

AFF_CODE_LENGTH = 4
_AFF_ALPHABET = string.ascii_letters + string.digits

_COLUMNS = (
    "id, username, display_name, role, status, group_name, "
    "wallet_address, zkp_hash, aff_code, inviter_id"
)


@dataclass
class Account:
    """User record. id == 0 means "no such account"."""

    id: int = 0
    username: str = ""
    display_name: str = ""
    role: int = ROLE_COMMON_USER
    status: int = USER_STATUS_ENABLED
    group: str = "default"
    wallet_address: str = ""
    zkp_hash: str = ""
    aff_code: str = ""
    inviter_id: int = 0

    @property
    def enabled(self) -> bool:
        return self.status == USER_STATUS_ENABLED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "role": self.role,
            "status": self.status,
            "group": self.group,
            "wallet_address": self.wallet_address,
            "zkp_hash": self.zkp_hash,
            "aff_code": self.aff_code,
            "inviter_id": self.inviter_id,
        }

    @classmethod
    def from_row(cls, row: tuple) -> "Account":
        return cls(
            id=row[0],
            username=row[1],
            display_name=row[2] or "",
            role=row[3],
            status=row[4],
            group=row[5] or "default",
            wallet_address=row[6] or "",
            zkp_hash=row[7] or "",
            aff_code=row[8] or "",
            inviter_id=row[9] or 0,
        )


def generate_aff_code() -> str:
    return "".join(secrets.choice(_AFF_ALPHABET) for _ in range(AFF_CODE_LENGTH))


class AccountStore:
    """
    Account persistence.

    [USAGE]
        store = AccountStore("accounts.db")
        await store.initialize()
        account = await store.find_by_wallet_address(address)
    """

    def __init__(self, db_path: str = "accounts.db"):
        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the database and create tables if missing."""
        if self._db is not None:
            return
        self._db = await aiosqlite.connect(self.db_path)

        await self._db.execute("PRAGMA journal_mode=WAL")

        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL UNIQUE,
                display_name TEXT,
                role INTEGER NOT NULL DEFAULT 1,
                status INTEGER NOT NULL DEFAULT 1,
                group_name TEXT DEFAULT 'default',
                wallet_address TEXT COLLATE NOCASE,
                zkp_hash TEXT,
                aff_code TEXT UNIQUE,
                inviter_id INTEGER DEFAULT 0,
                created_at REAL,
                deleted_at REAL
            )
        """)

        await self._db.execute(
            "CREATE INDEX IF NOT EXISTS idx_users_wallet ON users(wallet_address)"
        )

        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise AccountStoreError("account store not initialized")
        return self._db

    # --- Lookups ---

    async def is_wallet_address_taken(self, wallet_address: str) -> bool:
        """True if any row, deleted or not, uses this wallet."""
        try:
            cursor = await self._conn().execute(
                "SELECT 1 FROM users WHERE wallet_address = ? LIMIT 1",
                (wallet_address,)
            )
            return await cursor.fetchone() is not None
        except aiosqlite.Error as e:
            raise AccountStoreError(f"wallet lookup failed: {e}") from e

    async def find_by_wallet_address(self, wallet_address: str) -> Optional[Account]:
        """Active (not deleted) account for a wallet, or None."""
        try:
            cursor = await self._conn().execute(
                f"SELECT {_COLUMNS} FROM users "
                "WHERE wallet_address = ? AND deleted_at IS NULL LIMIT 1",
                (wallet_address,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise AccountStoreError(f"wallet lookup failed: {e}") from e
        return Account.from_row(row) if row else None

    async def get(self, account_id: int) -> Optional[Account]:
        try:
            cursor = await self._conn().execute(
                f"SELECT {_COLUMNS} FROM users WHERE id = ? AND deleted_at IS NULL",
                (account_id,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise AccountStoreError(f"account lookup failed: {e}") from e
        return Account.from_row(row) if row else None

    async def count(self) -> int:
        try:
            cursor = await self._conn().execute("SELECT COUNT(*) FROM users")
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise AccountStoreError(f"account count failed: {e}") from e
        return row[0]

    async def resolve_inviter_id(self, aff_code: str) -> Optional[int]:
        """Account id owning an affiliate code, or None."""
        if not aff_code:
            return None
        try:
            cursor = await self._conn().execute(
                "SELECT id FROM users WHERE aff_code = ? AND deleted_at IS NULL",
                (aff_code,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise AccountStoreError(f"affiliate lookup failed: {e}") from e
        return row[0] if row else None

    # --- Mutations ---

    async def create(self, account: Account, inviter_id: int = 0) -> Account:
        """
        Insert a new account. Sets account.id, aff_code and inviter_id.

        Raises:
            AccountStoreError: constraint violation or database failure
        """
        async with self._lock:
            db = self._conn()
            account.inviter_id = inviter_id or 0
            try:
                account.aff_code = account.aff_code or await self._unused_aff_code()
                cursor = await db.execute(
                    """
                    INSERT INTO users (username, display_name, role, status, group_name,
                                       wallet_address, zkp_hash, aff_code, inviter_id, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        account.username,
                        account.display_name,
                        account.role,
                        account.status,
                        account.group,
                        account.wallet_address,
                        account.zkp_hash,
                        account.aff_code,
                        account.inviter_id,
                        time.time(),
                    )
                )
                await db.commit()
            except aiosqlite.Error as e:
                await db.rollback()
                raise AccountStoreError(f"failed to create account: {e}") from e

            account.id = cursor.lastrowid
            logger.info(f"[ACCOUNTS] Created #{account.id} {account.username} (inviter={account.inviter_id})")
            return account

    async def update(self, account: Account) -> None:
        """Persist every mutable field of an existing account."""
        async with self._lock:
            db = self._conn()
            try:
                cursor = await db.execute(
                    """
                    UPDATE users SET username = ?, display_name = ?, role = ?, status = ?,
                                     group_name = ?, zkp_hash = ?
                    WHERE id = ? AND deleted_at IS NULL
                    """,
                    (
                        account.username,
                        account.display_name,
                        account.role,
                        account.status,
                        account.group,
                        account.zkp_hash,
                        account.id,
                    )
                )
                await db.commit()
            except aiosqlite.Error as e:
                await db.rollback()
                raise AccountStoreError(f"failed to update account: {e}") from e

            if cursor.rowcount == 0:
                raise AccountStoreError(f"account #{account.id} not found")

    async def set_status(self, account_id: int, status: int) -> None:
        async with self._lock:
            await self._conn().execute(
                "UPDATE users SET status = ? WHERE id = ?", (status, account_id)
            )
            await self._conn().commit()

    async def soft_delete(self, account_id: int) -> None:
        async with self._lock:
            await self._conn().execute(
                "UPDATE users SET deleted_at = ? WHERE id = ?", (time.time(), account_id)
            )
            await self._conn().commit()

    async def _unused_aff_code(self) -> str:
        for _ in range(10):
            code = generate_aff_code()
            cursor = await self._conn().execute(
                "SELECT 1 FROM users WHERE aff_code = ?", (code,)
            )
            if await cursor.fetchone() is None:
                return code
        raise AccountStoreError("could not allocate affiliate code")
