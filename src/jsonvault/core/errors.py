# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy.

Every failure the service can report maps to exactly one of these classes,
and the HTTP layer maps each class to a status code:

- ValidationError  -> 400
- PayloadTooLarge  -> 413
- AuthFailure      -> redirect back to /login
- Unauthenticated  -> 401 (API) or redirect to /login (pages)
- StorageError     -> 500
- ConfigError      -> refuses to start
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for all service errors."""


class ConfigError(VaultError):
    pass


class ValidationError(VaultError):
    pass


class PayloadTooLarge(ValidationError):
    pass


class AuthFailure(VaultError):
    """Bad credentials. The message never says which field was wrong."""

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class Unauthenticated(VaultError):
    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class StorageError(VaultError):
    """The backing store could not be reached or a query failed."""
