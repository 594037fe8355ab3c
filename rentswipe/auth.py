"""Signup and login against the persistent user store."""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from .database import Database, DuplicateUserError, normalize_email
from .errors import AuthError, ConflictError, InternalError, ValidationError
from .models import AccountType, UserProfile
from .security import PasswordHasher

logger = logging.getLogger("rentswipe.auth")

MISSING_FIELDS = "Missing required fields."
INVALID_ACCOUNT_TYPE = "Invalid account type."
MISSING_CREDENTIALS = "Missing email or password."
DUPLICATE_ACCOUNT = "An account with that email already exists."
INVALID_CREDENTIALS = "Invalid email or password."


def _clean(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).strip()


class AuthService:
    """Stateless signup/login operations.

    Every call is a single read, or a read followed by a write, against the
    database. Nothing is cached between calls.
    """

    def __init__(self, database: Database, hasher: PasswordHasher | None = None) -> None:
        self._database = database
        self._hasher = hasher or PasswordHasher()

    @property
    def hasher(self) -> PasswordHasher:
        return self._hasher

    def signup(
        self,
        full_name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        account_type: Optional[str],
    ) -> UserProfile:
        full_name = _clean(full_name)
        email = normalize_email(_clean(email))
        password = _clean(password)
        account_type_value = _clean(account_type)

        if not full_name or not email or not password or not account_type_value:
            raise ValidationError(MISSING_FIELDS)

        if account_type_value not in AccountType.values():
            raise ValidationError(INVALID_ACCOUNT_TYPE)

        try:
            # Early, friendly rejection. The unique index below is what
            # actually guarantees one account per email.
            if self._database.get_user_by_email(email) is not None:
                raise ConflictError(DUPLICATE_ACCOUNT)

            password_hash = self._hasher.hash(password)
            user = self._database.create_user(
                full_name,
                email,
                password_hash,
                AccountType(account_type_value),
            )
        except DuplicateUserError as exc:
            logger.info("Signup for %s lost the race to a concurrent signup", email)
            raise ConflictError(DUPLICATE_ACCOUNT) from exc
        except sqlite3.Error as exc:
            logger.exception("Signup failed for %s", email)
            raise InternalError() from exc

        logger.info("Created %s account %s for %s", user.account_type.value, user.id, email)
        return user.profile()

    def login(self, email: Optional[str], password: Optional[str]) -> UserProfile:
        email = normalize_email(_clean(email))
        password = _clean(password)

        if not email or not password:
            raise ValidationError(MISSING_CREDENTIALS)

        try:
            user = self._database.get_user_by_email(email)
        except sqlite3.Error as exc:
            logger.exception("Login lookup failed for %s", email)
            raise InternalError() from exc

        if user is None:
            # Unknown emails cost one hash verify, same as known ones.
            self._hasher.dummy_verify()
            verified = False
        else:
            verified = self._hasher.verify(password, user.password_hash)

        if not verified:
            logger.warning("Failed login attempt for %s", email)
            raise AuthError(INVALID_CREDENTIALS)

        logger.info("User %s signed in", user.id)
        return user.profile()


__all__ = [
    "AuthService",
    "DUPLICATE_ACCOUNT",
    "INVALID_ACCOUNT_TYPE",
    "INVALID_CREDENTIALS",
    "MISSING_CREDENTIALS",
    "MISSING_FIELDS",
]
