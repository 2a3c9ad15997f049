# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""What an admin-gated view should show for a given session state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from quanta.auth.channels import Subscription
from quanta.auth.models import AdminIdentity, Authenticated, Initializing, SessionState

SIGN_IN_PATH = "/admin/login"


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class RedirectToSignIn:
    location: str = SIGN_IN_PATH


@dataclass(frozen=True)
class Content:
    identity: AdminIdentity


@dataclass(frozen=True)
class AccessDenied:
    identity: AdminIdentity


Outcome = Union[Loading, RedirectToSignIn, Content, AccessDenied]


def evaluate(state: SessionState, *, required_role: Optional[str] = None) -> Outcome:
    if isinstance(state, Initializing):
        return Loading()
    if isinstance(state, Authenticated):
        identity = state.identity
        # Single tier today: any admin identity passes unless a role is requested.
        if required_role and identity.role.strip().lower() != required_role.strip().lower():
            return AccessDenied(identity)
        return Content(identity)
    return RedirectToSignIn()


class RouteGuard:
    """Keeps an outcome current for one view.

    ``on_change`` is called with the initial outcome and again after every
    state published by the manager.
    """

    def __init__(
        self,
        manager,
        on_change: Callable[[Outcome], None],
        *,
        required_role: Optional[str] = None,
    ) -> None:
        self.required_role = required_role
        self._on_change = on_change
        self.outcome: Outcome = evaluate(manager.current_state(), required_role=required_role)
        self._sub: Optional[Subscription] = manager.subscribe(self._refresh)
        on_change(self.outcome)

    def _refresh(self, state: SessionState) -> None:
        self.outcome = evaluate(state, required_role=self.required_role)
        self._on_change(self.outcome)

    def detach(self) -> None:
        if self._sub is not None:
            self._sub.unsubscribe()
            self._sub = None
