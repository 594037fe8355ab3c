"""Password hashing helpers for the RentSwipe auth service."""
from __future__ import annotations

from passlib.context import CryptContext

DEFAULT_PASSWORD_SCHEME = "pbkdf2_sha256"
LEGACY_PASSWORD_SCHEME = "hex_sha256"
SUPPORTED_PASSWORD_SCHEMES = (DEFAULT_PASSWORD_SCHEME, LEGACY_PASSWORD_SCHEME)

_PBKDF2_ROUNDS = 600_000


class PasswordHasher:
    """Hash and verify passwords using a passlib context.

    New hashes use ``scheme``. Every supported scheme is accepted when
    verifying, so unsalted SHA-256 digests carried over from the first
    version of the service still authenticate.
    """

    def __init__(self, scheme: str = DEFAULT_PASSWORD_SCHEME, *, pbkdf2_rounds: int = _PBKDF2_ROUNDS) -> None:
        if scheme not in SUPPORTED_PASSWORD_SCHEMES:
            raise ValueError(
                f"Unsupported password scheme '{scheme}'. "
                f"Expected one of: {', '.join(SUPPORTED_PASSWORD_SCHEMES)}"
            )
        self._scheme = scheme
        self._context = CryptContext(
            schemes=list(SUPPORTED_PASSWORD_SCHEMES),
            default=scheme,
            pbkdf2_sha256__rounds=pbkdf2_rounds,
        )

    @property
    def scheme(self) -> str:
        return self._scheme

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("Password must not be empty")
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        if not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except ValueError:
            # Stored value is not a hash any configured scheme recognises.
            return False

    def dummy_verify(self) -> None:
        """Spend the time of a verify against the default scheme without a stored hash."""

        self._context.dummy_verify()


__all__ = [
    "DEFAULT_PASSWORD_SCHEME",
    "LEGACY_PASSWORD_SCHEME",
    "SUPPORTED_PASSWORD_SCHEMES",
    "PasswordHasher",
]
