# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Password hashing/verification (argon2)
- The in-memory identity store (optionally seeded from a users YAML file)
- Server-side sessions with signed session cookies (itsdangerous)
"""
