# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations


class AuthError(Exception):
    """Base for sign-in failures shown to the user."""

    code = "auth_error"
    message = "Sign-in failed"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.message)


class InvalidCredentials(AuthError):
    # Unknown email and wrong password both end here.
    code = "invalid_credentials"
    message = "Invalid email or password"


class LookupFailed(AuthError):
    code = "lookup_failed"
    message = "Sign-in is temporarily unavailable, try again later"


class AlreadySignedIn(AuthError):
    code = "already_signed_in"
    message = "An administrator is already signed in; sign out first"


class SignInSuperseded(AuthError):
    code = "sign_in_superseded"
    message = "Sign-in was interrupted by a newer session change"


class CorruptedCache(Exception):
    """Stored session value could not be decoded. Never leaves SessionCache."""


class EnrollmentError(ValueError):
    pass
