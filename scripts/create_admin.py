#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from quanta.auth.credentials import DEFAULT_ADMINS_PATH, YamlCredentialStore
from quanta.auth.enrollment import enroll_admin
from quanta.auth.errors import EnrollmentError


def main() -> None:
    store = YamlCredentialStore(DEFAULT_ADMINS_PATH)

    full_name = input("Full name: ").strip()
    email = input("Email: ").strip()
    role = (input("Role [admin]: ").strip().lower() or "admin")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    try:
        identity = enroll_admin(
            store,
            email=email,
            password=pw1,
            confirm_password=pw2,
            full_name=full_name,
            role=role,
        )
    except EnrollmentError as exc:
        raise SystemExit(str(exc))

    print(f"OK {identity.email} -> {store.path}")


if __name__ == "__main__":
    main()
