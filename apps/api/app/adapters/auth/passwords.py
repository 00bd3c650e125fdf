"""bcrypt password hashing adapter."""

from __future__ import annotations

import bcrypt

from app.adapters.auth.base import PasswordHasher
from app.schemas.auth import MAX_PASSWORD_BYTES


class BcryptPasswordHasher(PasswordHasher):
    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("ascii")

    def verify_password(self, password: str, password_hash: str) -> bool:
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode("ascii"))
        except ValueError:
            # Stored value is not a bcrypt hash.
            return False


__all__ = ["BcryptPasswordHasher"]
