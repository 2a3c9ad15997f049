# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError

_PH = PasswordHasher()


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Empty password")
    return _PH.hash(plain)


def verify_password(plain: str, hash_value: str) -> bool:
    """Check ``plain`` against an argon2 hash.

    Mismatches and malformed hashes both come back as ``False``; callers must
    not be able to tell them apart.
    """
    if not plain or not hash_value or not isinstance(hash_value, str):
        return False
    try:
        return _PH.verify(hash_value, plain)
    except (VerificationError, ValueError):
        # ValueError covers InvalidHashError and non-ASCII hash text.
        return False


@lru_cache(maxsize=1)
def dummy_hash() -> str:
    """Hash checked when an email has no record, so both paths cost one verify."""
    return _PH.hash("quanta-unknown-account")
