# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Persisted admin session slot.

The slot holds the last verified ``AdminIdentity`` as signed JSON, so a client
cannot mint an identity by writing the slot itself. Values older than
``QUANTA_SESSION_MAX_AGE`` read as absent.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Protocol

from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from quanta.auth.errors import CorruptedCache
from quanta.auth.models import AdminIdentity

_log = logging.getLogger(__name__)

COOKIE_NAME = os.getenv("QUANTA_COOKIE_NAME", "quanta_admin_session")
DEFAULT_MAX_AGE_SECONDS = int(os.getenv("QUANTA_SESSION_MAX_AGE", "28800"))  # 8 hours


def _serializer(secret: Optional[str] = None) -> URLSafeTimedSerializer:
    secret = secret or os.getenv("QUANTA_SECRET_KEY") or os.getenv("SECRET_KEY")
    if not secret:
        raise RuntimeError("Missing QUANTA_SECRET_KEY (or SECRET_KEY) in environment")
    salt = os.getenv("QUANTA_SESSION_SALT", "quanta.admin-session.v1")
    return URLSafeTimedSerializer(secret_key=secret, salt=salt)


class Slot(Protocol):
    def load(self) -> Optional[str]:
        ...

    def save(self, value: str) -> None:
        ...

    def erase(self) -> None:
        ...


class FileSlot:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        # Undecodable bytes become U+FFFD and then fail signature checks as corrupted.
        return self.path.read_bytes().decode("utf-8", errors="replace")

    def save(self, value: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(value, encoding="utf-8")

    def erase(self) -> None:
        self.path.unlink(missing_ok=True)


class CookieSlot:
    """Request-scoped slot backed by a cookie.

    Changes are recorded and applied to the response with ``apply``.
    """

    def __init__(self, value: Optional[str] = None) -> None:
        self._value = value or None
        self._dirty = False

    def load(self) -> Optional[str]:
        return self._value

    def save(self, value: str) -> None:
        self._value = value
        self._dirty = True

    def erase(self) -> None:
        self._value = None
        self._dirty = True

    @property
    def dirty(self) -> bool:
        return self._dirty

    def apply(self, response, *, max_age: int = DEFAULT_MAX_AGE_SECONDS, **cookie_kwargs) -> None:
        if not self._dirty:
            return
        if self._value is None:
            response.delete_cookie(COOKIE_NAME)
        else:
            response.set_cookie(COOKIE_NAME, self._value, max_age=max_age, **cookie_kwargs)


class SessionCache:
    def __init__(
        self,
        slot: Slot,
        *,
        secret_key: Optional[str] = None,
        max_age: int = DEFAULT_MAX_AGE_SECONDS,
    ) -> None:
        self._slot = slot
        self._serializer = _serializer(secret_key)
        self.max_age = max_age

    def _decode(self, raw: str) -> AdminIdentity:
        try:
            data = self._serializer.loads(raw, max_age=self.max_age)
            return AdminIdentity.from_dict(data)
        except SignatureExpired:
            raise
        except (BadData, ValueError, TypeError) as exc:
            raise CorruptedCache(type(exc).__name__) from exc

    def read(self) -> Optional[AdminIdentity]:
        try:
            raw = self._slot.load()
        except UnicodeDecodeError:
            _log.warning("Cached admin session is not text; clearing")
            self._forget()
            return None
        except OSError as exc:
            _log.warning("Session slot unreadable, treating as empty: %s", exc)
            return None
        if not raw:
            return None
        try:
            return self._decode(raw.strip())
        except SignatureExpired:
            _log.info("Cached admin session expired; clearing")
        except CorruptedCache as exc:
            _log.warning("Cached admin session is corrupted (%s); clearing", exc)
        self._forget()
        return None

    def _forget(self) -> None:
        try:
            self._slot.erase()
        except OSError as exc:
            _log.warning("Could not clear session slot: %s", exc)

    def write(self, identity: AdminIdentity) -> None:
        self._slot.save(self._serializer.dumps(identity.to_dict()))

    def clear(self) -> None:
        self._slot.erase()
