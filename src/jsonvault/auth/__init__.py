# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication.

This package provides:
- Password hashing/verification (argon2)
- The credential store (SQLite users table)
- Server-side sessions with signed cookies (itsdangerous)
- The gate that ties them together
"""
