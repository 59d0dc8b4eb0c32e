"""bcrypt helpers for operator passwords."""

from __future__ import annotations

from functools import lru_cache

import bcrypt

BCRYPT_ROUNDS = 12


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


@lru_cache()
def _placeholder_hash() -> str:
    return hash_password("payrecon-placeholder")


def burn_password_check(plain_password: str) -> None:
    """Spend one bcrypt check so unknown usernames cost as much as wrong passwords."""
    verify_password(plain_password, _placeholder_hash())


__all__ = ["burn_password_check", "hash_password", "verify_password"]
