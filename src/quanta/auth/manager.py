# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Admin session state machine.

State starts at ``Initializing`` and is published to subscribers on every
change. Each operation takes a token from a counter when it starts; its
result is applied only if the manager is still open and no operation that
started later has already published. Cache writes and publishes happen in
the same synchronous step, so the slot always matches the published state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Set

from quanta.auth.channels import IdentityChange, IdentityChannel, ListenerHub, Subscription
from quanta.auth.credentials import CredentialStore
from quanta.auth.errors import AlreadySignedIn, InvalidCredentials, LookupFailed, SignInSuperseded
from quanta.auth.models import (
    INITIALIZING,
    UNAUTHENTICATED,
    AdminIdentity,
    Authenticated,
    SessionState,
)
from quanta.auth.passwords import dummy_hash, verify_password
from quanta.auth.session import SessionCache

_log = logging.getLogger(__name__)


class AuthSessionManager:
    def __init__(
        self,
        credentials: CredentialStore,
        cache: SessionCache,
        *,
        identity_channel: Optional[IdentityChannel] = None,
        verify: Callable[[str, str], bool] = verify_password,
    ) -> None:
        self._credentials = credentials
        self._cache = cache
        self._identity_channel = identity_channel
        self._verify = verify

        self._state: SessionState = INITIALIZING
        self._listeners: ListenerHub[SessionState] = ListenerHub()
        self._alive = True
        self._initialized = False
        self._issued = 0
        self._applied = 0
        self._channel_sub: Optional[Subscription] = None
        self._tasks: Set[asyncio.Task] = set()

    # --- reads ---

    def current_state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return not self._alive

    def subscribe(self, listener: Callable[[SessionState], None]) -> Subscription:
        return self._listeners.subscribe(listener)

    # --- internals ---

    def _begin(self) -> int:
        self._issued += 1
        return self._issued

    def _ensure_open(self) -> None:
        if not self._alive:
            raise RuntimeError("Session manager is closed")

    def _commit(
        self,
        token: int,
        state: SessionState,
        *,
        persist: Optional[AdminIdentity] = None,
        forget: bool = False,
        force: bool = False,
    ) -> bool:
        if not self._alive and not force:
            _log.debug("Discarding %s: manager closed", type(state).__name__)
            return False
        if token < self._applied:
            _log.debug(
                "Discarding stale %s (token %d, last applied %d)",
                type(state).__name__,
                token,
                self._applied,
            )
            return False

        if persist is not None:
            self._cache.write(persist)
        elif forget:
            self._cache.clear()

        self._applied = token
        changed = state != self._state
        self._state = state
        if changed and self._alive:
            self._listeners.emit(state)
        return True

    # --- operations ---

    async def initialize(self) -> SessionState:
        """Restore the cached identity, if any. May be called once."""
        self._ensure_open()
        if self._initialized:
            raise RuntimeError("Session manager already initialized")
        self._initialized = True
        token = self._begin()

        if self._identity_channel is not None:
            self._channel_sub = self._identity_channel.subscribe(self._on_identity_change)

        identity = await asyncio.to_thread(self._cache.read)
        if identity is None:
            self._commit(token, UNAUTHENTICATED)
        elif self._commit(token, Authenticated(identity)):
            _log.info("Restored admin session %s", identity.id)
        return self._state

    async def sign_in(self, email: str, password: str) -> AdminIdentity:
        self._ensure_open()
        if isinstance(self._state, Authenticated):
            raise AlreadySignedIn()
        token = self._begin()

        try:
            record = await self._credentials.find_by_email(email)
        except LookupFailed:
            _log.warning("Admin sign-in lookup failed")
            raise

        if record is None:
            await asyncio.to_thread(self._verify, password, dummy_hash())
            _log.info("Admin sign-in rejected")
            raise InvalidCredentials()

        if not await asyncio.to_thread(self._verify, password, record.password_hash):
            _log.info("Admin sign-in rejected")
            raise InvalidCredentials()

        identity = record.identity()
        current = self._state
        if isinstance(current, Authenticated) and current.identity.id != identity.id:
            raise AlreadySignedIn()
        if not self._commit(token, Authenticated(identity), persist=identity):
            raise SignInSuperseded()
        _log.info("Admin %s signed in", identity.id)
        return identity

    def sign_out(self) -> None:
        token = self._begin()
        current = self._state
        self._commit(token, UNAUTHENTICATED, forget=True, force=True)
        if isinstance(current, Authenticated):
            _log.info("Admin %s signed out", current.identity.id)

    async def revalidate(self) -> SessionState:
        """Check that the signed-in admin still has a credential record.

        A missing record, or one whose id changed, ends the session. A failed
        lookup leaves the state alone.
        """
        self._ensure_open()
        state = self._state
        if not isinstance(state, Authenticated):
            return state
        token = self._begin()
        identity = state.identity

        try:
            record = await self._credentials.find_by_email(identity.email)
        except LookupFailed:
            _log.warning("Admin revalidation skipped: credential lookup failed")
            return self._state

        if record is not None and record.id == identity.id:
            return self._state
        if self._commit(token, UNAUTHENTICATED, forget=True):
            _log.info("Admin %s no longer has a credential record; signed out", identity.id)
        return self._state

    def _on_identity_change(self, change: IdentityChange) -> None:
        if not self._alive:
            return
        _log.debug("Identity change notification (signed in: %s)", change.email is not None)
        task = asyncio.get_running_loop().create_task(self.revalidate())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def close(self) -> None:
        """Tear down: detach from notifications and drop in-flight results."""
        if not self._alive:
            return
        self._alive = False
        if self._channel_sub is not None:
            self._channel_sub.unsubscribe()
            self._channel_sub = None
        for task in list(self._tasks):
            task.cancel()
        self._listeners.clear()
