# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from quanta.auth.credentials import DEFAULT_ADMINS_PATH, YamlCredentialStore
from quanta.auth.enrollment import enroll_admin, signup_enabled
from quanta.auth.errors import (
    AlreadySignedIn,
    AuthError,
    EnrollmentError,
    InvalidCredentials,
    LookupFailed,
)
from quanta.auth.manager import AuthSessionManager
from quanta.auth.session import COOKIE_NAME, DEFAULT_MAX_AGE_SECONDS, CookieSlot, SessionCache
from quanta.guard import Content, Loading, evaluate
from quanta.permissions import (
    cookie_settings,
    current_admin_optional,
    current_manager,
    next_url_for,
    require_admin,
)

_log = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

ADMINS_PATH = Path(os.getenv("QUANTA_ADMINS_PATH", str(DEFAULT_ADMINS_PATH))).resolve()
INIT_TIMEOUT_SECONDS = float(os.getenv("QUANTA_AUTH_INIT_TIMEOUT", "5"))

DASHBOARD_PATH = "/admin/dashboard"

app = FastAPI()
app.state.credentials = YamlCredentialStore(ADMINS_PATH)


@app.middleware("http")
async def _auth_middleware(request: Request, call_next):
    slot = CookieSlot(request.cookies.get(COOKIE_NAME))
    manager = AuthSessionManager(request.app.state.credentials, SessionCache(slot))
    request.state.auth = manager
    try:
        await asyncio.wait_for(manager.initialize(), timeout=INIT_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        _log.warning("Admin session check timed out after %.1fs", INIT_TIMEOUT_SECONDS)
    try:
        response = await call_next(request)
    finally:
        manager.close()
    slot.apply(response, max_age=DEFAULT_MAX_AGE_SECONDS, **cookie_settings())
    return response


def _render(request: Request, template_name: str, ctx: dict, status_code: int = 200):
    """TemplateResponse wrapper injecting the signed-in admin."""
    base_ctx = {"current_admin": current_admin_optional(request)}
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


def _safe_next(next_url: str) -> str:
    # Only same-site paths; "//host" would leave the site.
    n = (next_url or "").strip()
    if not n.startswith("/") or n.startswith("//"):
        return DASHBOARD_PATH
    return n


# ------------------ Routes ------------------


@app.get("/")
def index():
    return RedirectResponse(url=DASHBOARD_PATH, status_code=303)


@app.get("/admin/login", response_class=HTMLResponse)
def login_get(request: Request, next: str = DASHBOARD_PATH, enrolled: bool = False):
    if current_admin_optional(request):
        return RedirectResponse(url=_safe_next(next), status_code=303)
    ctx = {"next": next, "error": "", "notice": ""}
    if enrolled:
        ctx["notice"] = "Admin account created successfully! You can now sign in."
    return _render(request, "login.html", ctx)


@app.post("/admin/login")
async def login_post(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form(DASHBOARD_PATH),
):
    ctx = {"next": next, "email": email, "notice": ""}
    if not email.strip() or not password:
        return _render(request, "login.html", {**ctx, "error": "Please fill in all fields"}, 400)

    manager = current_manager(request)
    try:
        await manager.sign_in(email, password)
    except AlreadySignedIn:
        return RedirectResponse(url=DASHBOARD_PATH, status_code=303)
    except InvalidCredentials as exc:
        return _render(request, "login.html", {**ctx, "error": str(exc)}, 401)
    except LookupFailed as exc:
        return _render(request, "login.html", {**ctx, "error": str(exc)}, 503)
    except AuthError as exc:
        return _render(request, "login.html", {**ctx, "error": str(exc)}, 409)
    return RedirectResponse(url=_safe_next(next), status_code=303)


@app.post("/admin/logout")
def logout_post(request: Request):
    current_manager(request).sign_out()
    return RedirectResponse(url="/admin/login", status_code=303)


@app.get("/admin/dashboard", response_class=HTMLResponse)
def dashboard(request: Request):
    outcome = evaluate(current_manager(request).current_state())
    if isinstance(outcome, Loading):
        return _render(request, "loading.html", {}, 503)
    if isinstance(outcome, Content):
        return _render(request, "dashboard.html", {"admin": outcome.identity})
    return RedirectResponse(url=f"{outcome.location}?next={next_url_for(request)}", status_code=303)


@app.get("/admin/api/me")
def api_me(admin=Depends(require_admin)):
    return admin.to_dict()


@app.get("/admin/signup", response_class=HTMLResponse)
def signup_get(request: Request):
    if not signup_enabled():
        return HTMLResponse("Not Found", status_code=404)
    if current_admin_optional(request):
        return RedirectResponse(url=DASHBOARD_PATH, status_code=303)
    return _render(request, "signup.html", {"error": "", "form": {}})


@app.post("/admin/signup")
def signup_post(
    request: Request,
    full_name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
):
    if not signup_enabled():
        return HTMLResponse("Not Found", status_code=404)
    if current_admin_optional(request):
        return RedirectResponse(url=DASHBOARD_PATH, status_code=303)
    try:
        enroll_admin(
            request.app.state.credentials,
            email=email,
            password=password,
            confirm_password=confirm_password,
            full_name=full_name,
        )
    except EnrollmentError as exc:
        form = {"full_name": full_name, "email": email}
        return _render(request, "signup.html", {"error": str(exc), "form": form}, 400)
    return RedirectResponse(url="/admin/login?enrolled=1", status_code=303)
