from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from rentswipe.database import Database, DuplicateUserError
from rentswipe.models import AccountType


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db_path = tmp_path / "rentswipe.sqlite3"
    db = Database(db_path)
    db.initialize()
    return db


def test_create_and_fetch_user_by_normalized_email(database: Database) -> None:
    user = database.create_user("Jessica Lee", " Jessica.Lee@Example.com ", "digest", AccountType.TENANT)

    assert user.email == "jessica.lee@example.com"
    fetched = database.get_user_by_email("JESSICA.LEE@example.com")
    assert fetched is not None
    assert fetched.id == user.id
    assert fetched.account_type is AccountType.TENANT
    assert fetched.password_hash == "digest"
    assert database.get_user(user.id) == fetched


def test_unique_constraint_rejects_duplicate_email(database: Database) -> None:
    database.create_user("First", "a@b.com", "digest", AccountType.TENANT)

    with pytest.raises(DuplicateUserError):
        database.create_user("Second", "A@B.com", "digest", AccountType.LANDLORD)

    assert database.count_users() == 1


def test_unique_constraint_is_case_insensitive_at_storage_layer(database: Database) -> None:
    database.create_user("First", "a@b.com", "digest", AccountType.TENANT)

    with sqlite3.connect(database.path) as conn:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO users (full_name, email, password_hash, account_type, created_at)"
                " VALUES ('Raw', 'A@B.COM', 'digest', 'tenant', '')"
            )


def test_account_type_is_checked_by_storage(database: Database) -> None:
    with sqlite3.connect(database.path) as conn:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO users (full_name, email, password_hash, account_type, created_at)"
                " VALUES ('Admin', 'admin@b.com', 'digest', 'admin', '')"
            )


def test_initialize_upgrades_table_without_created_at(tmp_path: Path) -> None:
    db_path = tmp_path / "legacy.sqlite3"
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, full_name TEXT NOT NULL,"
            " email TEXT NOT NULL UNIQUE, password_hash TEXT NOT NULL, account_type TEXT NOT NULL)"
        )
        conn.execute(
            "INSERT INTO users (full_name, email, password_hash, account_type)"
            " VALUES ('Old User', 'old@example.com', 'digest', 'landlord')"
        )

    database = Database(db_path)
    database.initialize()

    user = database.get_user_by_email("old@example.com")
    assert user is not None
    assert user.account_type is AccountType.LANDLORD
    assert user.created_at.year == 1970


def test_missing_user_returns_none(database: Database) -> None:
    assert database.get_user_by_email("nobody@example.com") is None
    assert database.get_user(42) is None


def test_only_unique_violations_become_duplicate_errors(database: Database) -> None:
    with pytest.raises(sqlite3.IntegrityError) as excinfo:
        database.create_user(None, "a@b.com", "digest", AccountType.TENANT)  # type: ignore[arg-type]

    assert not isinstance(excinfo.value, DuplicateUserError)
    assert "NOT NULL" in str(excinfo.value)
    assert database.count_users() == 0


def test_fresh_table_has_a_single_unique_email_index(database: Database) -> None:
    with sqlite3.connect(database.path) as conn:
        unique_indexes = [row[1] for row in conn.execute("PRAGMA index_list(users)") if row[2]]

    assert unique_indexes == ["idx_users_email"]
