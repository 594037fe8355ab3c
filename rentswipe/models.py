"""Domain models for RentSwipe accounts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict


class AccountType(str, Enum):
    """Roles a user can sign up with."""

    TENANT = "tenant"
    LANDLORD = "landlord"

    @classmethod
    def values(cls) -> frozenset[str]:
        return frozenset(member.value for member in cls)


@dataclass(frozen=True)
class User:
    """Represents a user account stored in the RentSwipe database."""

    id: int
    full_name: str
    email: str
    password_hash: str
    account_type: AccountType
    created_at: datetime

    def profile(self) -> "UserProfile":
        return UserProfile(
            full_name=self.full_name,
            email=self.email,
            account_type=self.account_type,
        )


@dataclass(frozen=True)
class UserProfile:
    """Public view of a user returned by signup and login."""

    full_name: str
    email: str
    account_type: AccountType

    def to_dict(self) -> Dict[str, str]:
        return {
            "fullName": self.full_name,
            "email": self.email,
            "accountType": self.account_type.value,
        }


__all__ = ["AccountType", "User", "UserProfile"]
