# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Admin records and the session states published by the manager."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union


def coerce_datetime(value: Any) -> Optional[datetime]:
    """Accept a datetime, a date, an ISO-8601 string or None; anything else is malformed."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        # YAML reads a bare 2026-01-10 as a date.
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    raise ValueError(f"Invalid timestamp: {type(value).__name__}")


def _required_text(data: Dict[str, Any], key: str) -> str:
    v = str(data.get(key) or "").strip()
    if not v:
        raise ValueError(f"Missing '{key}'")
    return v


@dataclass(frozen=True)
class AdminIdentity:
    id: str
    email: str
    full_name: str
    role: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AdminIdentity":
        if not isinstance(data, dict):
            raise ValueError("Identity payload is not a mapping")
        return cls(
            id=_required_text(data, "id"),
            email=_required_text(data, "email"),
            full_name=str(data.get("full_name") or "").strip(),
            role=_required_text(data, "role"),
            created_at=coerce_datetime(data.get("created_at")),
        )


@dataclass(frozen=True)
class AdminCredentialRecord:
    id: str
    email: str
    full_name: str
    role: str
    password_hash: str = field(repr=False)
    created_at: Optional[datetime] = None

    def identity(self) -> AdminIdentity:
        return AdminIdentity(
            id=self.id,
            email=self.email,
            full_name=self.full_name,
            role=self.role,
            created_at=self.created_at,
        )


# --- Session states ---


@dataclass(frozen=True)
class Initializing:
    pass


@dataclass(frozen=True)
class Unauthenticated:
    pass


@dataclass(frozen=True)
class Authenticated:
    identity: AdminIdentity


SessionState = Union[Initializing, Unauthenticated, Authenticated]

INITIALIZING = Initializing()
UNAUTHENTICATED = Unauthenticated()
