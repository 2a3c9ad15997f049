# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""New admin accounts (admin signup)."""

from __future__ import annotations

import os
import uuid
from datetime import datetime, timezone

from quanta.auth.credentials import YamlCredentialStore
from quanta.auth.errors import EnrollmentError
from quanta.auth.models import AdminCredentialRecord, AdminIdentity
from quanta.auth.passwords import hash_password

MIN_PASSWORD_LENGTH = 6


def signup_enabled() -> bool:
    v = os.getenv("QUANTA_ADMIN_SIGNUP_ENABLED", "false")
    return v.lower() in {"1", "true", "yes", "y"}


def enroll_admin(
    store: YamlCredentialStore,
    *,
    email: str,
    password: str,
    confirm_password: str,
    full_name: str,
    role: str = "admin",
) -> AdminIdentity:
    email = (email or "").strip()
    full_name = (full_name or "").strip()
    role = (role or "admin").strip().lower()
    if not email or not full_name or not password:
        raise EnrollmentError("Please fill in all fields")
    if password != confirm_password:
        raise EnrollmentError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise EnrollmentError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )

    record = AdminCredentialRecord(
        id=str(uuid.uuid4()),
        email=email,
        full_name=full_name,
        role=role,
        password_hash=hash_password(password),
        created_at=datetime.now(timezone.utc),
    )
    store.add(record)
    return record.identity()
