# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Admin credential lookup.

The session manager only ever calls ``find_by_email``. Records live in a YAML
file keyed by email::

    version: 1
    admins:
      admin@quanta.edu:
        id: 6f1c...
        full_name: Ada Admin
        role: admin
        password_hash: $argon2id$...
        created_at: 2026-01-10T09:00:00+00:00
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Tuple

import yaml

from quanta.auth.errors import EnrollmentError, LookupFailed
from quanta.auth.models import AdminCredentialRecord, coerce_datetime

_log = logging.getLogger(__name__)

# Anchor the default admins.yml path to the project root, not the working directory.
BASE_DIR = Path(__file__).resolve().parents[3]
DEFAULT_ADMINS_PATH = Path(
    os.getenv("QUANTA_ADMINS_PATH", str(BASE_DIR / "data" / "admins.yml"))
).resolve()


class CredentialStore(Protocol):
    async def find_by_email(self, email: str) -> Optional[AdminCredentialRecord]:
        ...


def parse_record(email: str, data: Any) -> AdminCredentialRecord:
    """Build a typed record from one raw YAML entry; raises ValueError if malformed."""
    if not isinstance(data, dict):
        raise ValueError("Admin entry is not a mapping")
    rid = str(data.get("id") or "").strip()
    ph = str(data.get("password_hash") or "").strip()
    if not rid or not ph:
        raise ValueError("Admin entry lacks id or password_hash")
    return AdminCredentialRecord(
        id=rid,
        email=email,
        full_name=str(data.get("full_name") or "").strip(),
        role=str(data.get("role") or "admin").strip(),
        password_hash=ph,
        created_at=coerce_datetime(data.get("created_at")),
    )


class YamlCredentialStore:
    def __init__(self, path: Path = DEFAULT_ADMINS_PATH) -> None:
        self.path = Path(path)
        self._cache: Tuple[float, Dict[str, Any]] = (0.0, {})
        self._lock = threading.Lock()

    def _load_raw(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        mtime = self.path.stat().st_mtime
        cached_mtime, cached = self._cache
        if mtime and mtime == cached_mtime and cached:
            return cached
        raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        admins = (raw.get("admins") or {}) if isinstance(raw, dict) else {}
        if not isinstance(admins, dict):
            raise ValueError("'admins' is not a mapping")
        self._cache = (mtime, admins)
        return admins

    def get(self, email: str) -> Optional[AdminCredentialRecord]:
        key = (email or "").strip()
        if not key:
            return None
        try:
            with self._lock:
                entry = self._load_raw().get(key)
            if entry is None:
                return None
            return parse_record(key, entry)
        except (OSError, yaml.YAMLError, ValueError) as exc:
            _log.warning("Admin credential lookup failed: %s", type(exc).__name__)
            raise LookupFailed() from exc

    async def find_by_email(self, email: str) -> Optional[AdminCredentialRecord]:
        return await asyncio.to_thread(self.get, email)

    def add(self, record: AdminCredentialRecord) -> None:
        """Append a new admin entry. Used by enrollment only."""
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.path.exists():
                raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
            else:
                raw = {"version": 1, "admins": {}}
            if "admins" not in raw or not isinstance(raw["admins"], dict):
                raw["admins"] = {}

            if record.email in raw["admins"]:
                raise EnrollmentError("An admin with this email already exists")

            raw["admins"][record.email] = {
                "id": record.id,
                "full_name": record.full_name,
                "role": record.role,
                "password_hash": record.password_hash,
                "created_at": record.created_at.isoformat() if record.created_at else None,
            }
            self.path.write_text(
                yaml.safe_dump(raw, sort_keys=False, allow_unicode=True), encoding="utf-8"
            )
            self._cache = (0.0, {})
        _log.info("Enrolled admin %s", record.id)
