"""SQLite-backed persistence for RentSwipe user accounts."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from .models import AccountType, User


class DuplicateUserError(ValueError):
    """Raised when the unique email constraint rejects an insert."""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


class Database:
    """Simple wrapper around SQLite for persisting users."""

    def __init__(self, path: Path, *, timeout: float = 30.0) -> None:
        _ensure_directory(path)
        self._path = path
        self._timeout = timeout

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._path, timeout=self._timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    full_name TEXT NOT NULL,
                    email TEXT NOT NULL COLLATE NOCASE,
                    password_hash TEXT NOT NULL,
                    account_type TEXT NOT NULL CHECK (account_type IN ('tenant', 'landlord')),
                    created_at TEXT NOT NULL
                );

                -- One account per email. Also applied to tables from the first deployment.
                CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email ON users(email COLLATE NOCASE);
                """
            )

            columns = {
                row["name"]
                for row in conn.execute("PRAGMA table_info(users)").fetchall()
            }
            # Tables imported from the first deployment predate created_at.
            if "created_at" not in columns:
                conn.execute("ALTER TABLE users ADD COLUMN created_at TEXT NOT NULL DEFAULT ''")

    def create_user(
        self,
        full_name: str,
        email: str,
        password_hash: str,
        account_type: AccountType,
    ) -> User:
        """Insert a new user.

        The unique index on ``email`` is the authoritative duplicate check;
        a violation raises :class:`DuplicateUserError`.
        """

        created_at = _current_timestamp()
        normalized_email = normalize_email(email)

        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO users (full_name, email, password_hash, account_type, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        full_name,
                        normalized_email,
                        password_hash,
                        account_type.value,
                        _serialize_datetime(created_at),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                if "UNIQUE" not in str(exc):
                    raise
                raise DuplicateUserError("A user with that email already exists") from exc

            user_id = cursor.lastrowid

        return User(
            id=int(user_id),
            full_name=full_name,
            email=normalized_email,
            password_hash=password_hash,
            account_type=account_type,
            created_at=created_at,
        )

    def get_user(self, user_id: int) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?",
                (normalize_email(email),),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def count_users(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM users").fetchone()
        return int(row["total"])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        raw_created = str(row["created_at"] or "")
        created_at = _parse_datetime(raw_created) if raw_created else datetime.fromtimestamp(0, timezone.utc)
        return User(
            id=int(row["id"]),
            full_name=str(row["full_name"]),
            email=str(row["email"]),
            password_hash=str(row["password_hash"]),
            account_type=AccountType(str(row["account_type"])),
            created_at=created_at,
        )


__all__ = ["Database", "DuplicateUserError", "normalize_email"]
