import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

import asyncio
import threading
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from quanta.auth.models import AdminCredentialRecord
from quanta.auth.passwords import hash_password

SECRET = "test-secret-key"
ADMIN_EMAIL = "admin@x.edu"
ADMIN_PASSWORD = "correct"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def secret_env(monkeypatch):
    monkeypatch.setenv("QUANTA_SECRET_KEY", SECRET)


@pytest.fixture(scope="session")
def admin_hash() -> str:
    # argon2 is deliberately slow; hash once per run.
    return hash_password(ADMIN_PASSWORD)


@pytest.fixture
def admin_record(admin_hash) -> AdminCredentialRecord:
    return AdminCredentialRecord(
        id="a-001",
        email=ADMIN_EMAIL,
        full_name="Ada Admin",
        role="admin",
        password_hash=admin_hash,
        created_at=datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def admins_path(tmp_path: Path, admin_record) -> Path:
    """admins.yml holding one admin (ADMIN_EMAIL / ADMIN_PASSWORD)."""
    path = tmp_path / "data" / "admins.yml"
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = {
        "version": 1,
        "admins": {
            admin_record.email: {
                "id": admin_record.id,
                "full_name": admin_record.full_name,
                "role": admin_record.role,
                "password_hash": admin_record.password_hash,
                "created_at": admin_record.created_at.isoformat(),
            }
        },
    }
    path.write_text(yaml.safe_dump(raw, sort_keys=False), encoding="utf-8")
    return path


class FakeCredentialStore:
    """In-memory store; set ``gate`` to hold lookups until it is set."""

    def __init__(self, *records: AdminCredentialRecord) -> None:
        self.records = {r.email: r for r in records}
        self.gate = None
        self.fail = False
        self.calls = 0

    async def find_by_email(self, email):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            from quanta.auth.errors import LookupFailed

            raise LookupFailed()
        return self.records.get(email)


class MemorySlot:
    def __init__(self, value=None) -> None:
        self.value = value
        self.erased = 0

    def load(self):
        return self.value

    def save(self, value):
        self.value = value

    def erase(self):
        self.value = None
        self.erased += 1


class BlockingSlot(MemorySlot):
    """Slot whose load blocks its worker thread until ``release`` is set."""

    def __init__(self, value=None) -> None:
        super().__init__(value)
        self.release = threading.Event()

    def load(self):
        self.release.wait(timeout=5)
        return self.value


@pytest.fixture
def store(admin_record) -> FakeCredentialStore:
    return FakeCredentialStore(admin_record)


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)
