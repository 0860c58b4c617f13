"""
Password hashing and verification.

Uses Argon2id (``argon2-cffi``) with a fresh random salt per hash.  The
encoded result is self-describing (PHC string format), so verification
always re-derives with the parameters the hash was made with.
"""

from __future__ import annotations

from argon2 import PasswordHasher, Type
from argon2.exceptions import HashingError as Argon2HashingError
from argon2.exceptions import InvalidHashError, VerificationError

from auth.errors import HashingError, InvalidCredentialsError


class SecretHasher:
    """Argon2id hasher configured once at startup and shared by all requests."""

    def __init__(
        self,
        *,
        time_cost: int = 2,
        memory_cost: int = 19456,
        parallelism: int = 1,
        hash_len: int = 32,
        salt_len: int = 16,
    ) -> None:
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=hash_len,
            salt_len=salt_len,
            type=Type.ID,
        )
        self._dummy_hash = self.hash("dummy-password")

    def hash(self, password: str) -> str:
        """Return the encoded Argon2id hash (parameters + salt + digest)."""
        try:
            return self._hasher.hash(password)
        except Argon2HashingError as exc:
            raise HashingError("password hashing failed") from exc

    def verify(self, password: str, encoded: str) -> None:
        """
        Raise ``InvalidCredentialsError`` unless *password* matches *encoded*.

        A malformed *encoded* value is reported the same way as a mismatch.
        """
        try:
            self._hasher.verify(encoded, password)
        except (VerificationError, InvalidHashError) as exc:
            raise InvalidCredentialsError("invalid credentials") from exc

    def dummy_verify(self, password: str) -> None:
        """Spend one verification on a throwaway hash; used for unknown accounts."""
        try:
            self._hasher.verify(self._dummy_hash, password)
        except (VerificationError, InvalidHashError):
            pass

    def needs_rehash(self, encoded: str) -> bool:
        return self._hasher.check_needs_rehash(encoded)
