# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Admin authentication.

This package provides:
- Password hashing/verification (argon2)
- Admin credential lookup from data/admins.yml
- A signed, persisted session slot (itsdangerous)
- The session state machine consumed by the route guard
"""
