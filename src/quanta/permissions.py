# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from typing import Optional

from fastapi import HTTPException, Request

from quanta.auth.manager import AuthSessionManager
from quanta.auth.models import AdminIdentity, Authenticated
from quanta.guard import Content, Loading, evaluate


def current_manager(request: Request) -> AuthSessionManager:
    manager = getattr(request.state, "auth", None)
    if manager is None:
        raise RuntimeError("Auth middleware did not run for this request")
    return manager


def current_admin_optional(request: Request) -> Optional[AdminIdentity]:
    state = current_manager(request).current_state()
    if isinstance(state, Authenticated):
        return state.identity
    return None


def next_url_for(request: Request) -> str:
    next_url = str(request.url.path)
    if request.url.query:
        next_url += "?" + request.url.query
    return next_url


def require_admin(request: Request) -> AdminIdentity:
    outcome = evaluate(current_manager(request).current_state())
    if isinstance(outcome, Content):
        return outcome.identity
    if isinstance(outcome, Loading):
        raise HTTPException(
            status_code=503, detail="Session check in progress", headers={"Retry-After": "1"}
        )
    loc = f"{outcome.location}?next={next_url_for(request)}"
    raise HTTPException(status_code=303, headers={"Location": loc})


def cookie_settings() -> dict:
    secure = os.getenv("QUANTA_COOKIE_SECURE", "false").lower() in {"1", "true", "yes", "y"}
    return {"httponly": True, "samesite": "lax", "secure": secure}
