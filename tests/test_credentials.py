from datetime import datetime, timezone

import pytest
import yaml

from quanta.auth.credentials import YamlCredentialStore
from quanta.auth.errors import EnrollmentError, LookupFailed


@pytest.mark.anyio
async def test_find_by_email_returns_typed_record(admins_path, admin_record):
    record = await YamlCredentialStore(admins_path).find_by_email("admin@x.edu")

    assert record == admin_record
    assert record.identity().email == "admin@x.edu"


@pytest.mark.anyio
async def test_lookup_is_case_sensitive_and_absent_is_none(admins_path):
    store = YamlCredentialStore(admins_path)

    assert await store.find_by_email("ADMIN@x.edu") is None
    assert await store.find_by_email("nobody@x.edu") is None
    assert await store.find_by_email("") is None


@pytest.mark.anyio
async def test_missing_file_means_no_admins(tmp_path):
    assert await YamlCredentialStore(tmp_path / "absent.yml").find_by_email("admin@x.edu") is None


@pytest.mark.anyio
async def test_malformed_record_is_lookup_failed(tmp_path):
    path = tmp_path / "admins.yml"
    path.write_text(yaml.safe_dump({"admins": {"admin@x.edu": {"full_name": "No Hash"}}}))

    with pytest.raises(LookupFailed):
        await YamlCredentialStore(path).find_by_email("admin@x.edu")


@pytest.mark.anyio
async def test_unparseable_file_is_lookup_failed(tmp_path):
    path = tmp_path / "admins.yml"
    path.write_text("admins: [unclosed")

    with pytest.raises(LookupFailed):
        await YamlCredentialStore(path).find_by_email("admin@x.edu")


def test_record_repr_hides_hash(admin_record):
    assert admin_record.password_hash not in repr(admin_record)


def test_add_rejects_duplicate_email(admins_path, admin_record):
    with pytest.raises(EnrollmentError):
        YamlCredentialStore(admins_path).add(admin_record)


@pytest.mark.anyio
async def test_bare_date_created_at_is_midnight_utc(tmp_path, admin_hash):
    path = tmp_path / "admins.yml"
    path.write_text(
        "admins:\n"
        "  admin@x.edu:\n"
        "    id: a-001\n"
        "    password_hash: '" + admin_hash + "'\n"
        "    created_at: 2026-01-10\n",
        encoding="utf-8",
    )

    record = await YamlCredentialStore(path).find_by_email("admin@x.edu")

    assert record.created_at == datetime(2026, 1, 10, tzinfo=timezone.utc)
