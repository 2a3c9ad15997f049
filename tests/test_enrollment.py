import pytest

from quanta.auth.credentials import YamlCredentialStore
from quanta.auth.enrollment import enroll_admin, signup_enabled
from quanta.auth.errors import EnrollmentError
from quanta.auth.passwords import verify_password


def _enroll(store, **overrides):
    fields = {
        "email": "new@x.edu",
        "password": "s3cret!",
        "confirm_password": "s3cret!",
        "full_name": "New Admin",
    }
    fields.update(overrides)
    return enroll_admin(store, **fields)


def test_enroll_stores_hashed_credential(tmp_path):
    store = YamlCredentialStore(tmp_path / "admins.yml")

    identity = _enroll(store)
    record = store.get("new@x.edu")

    assert record.id == identity.id
    assert record.role == "admin"
    assert record.created_at is not None
    assert record.password_hash != "s3cret!"
    assert verify_password("s3cret!", record.password_hash)


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"confirm_password": "other!"}, "Passwords do not match"),
        ({"password": "short", "confirm_password": "short"}, "at least 6"),
        ({"full_name": "  "}, "fill in all fields"),
        ({"email": ""}, "fill in all fields"),
    ],
)
def test_enroll_validation(tmp_path, overrides, message):
    store = YamlCredentialStore(tmp_path / "admins.yml")
    with pytest.raises(EnrollmentError, match=message):
        _enroll(store, **overrides)
    assert not (tmp_path / "admins.yml").exists()


def test_enroll_rejects_existing_email(tmp_path):
    store = YamlCredentialStore(tmp_path / "admins.yml")
    _enroll(store)
    with pytest.raises(EnrollmentError, match="already exists"):
        _enroll(store)


def test_signup_is_disabled_by_default(monkeypatch):
    monkeypatch.delenv("QUANTA_ADMIN_SIGNUP_ENABLED", raising=False)
    assert signup_enabled() is False
    monkeypatch.setenv("QUANTA_ADMIN_SIGNUP_ENABLED", "yes")
    assert signup_enabled() is True
