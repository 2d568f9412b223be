# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""FastAPI dependencies that gate routes behind a session.

API routes and page routes fail differently: API callers get a 401 JSON body,
browsers get redirected to the login form.
"""

from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request

from jsonvault.auth.gate import AuthGate, Principal
from jsonvault.core.errors import Unauthenticated


def get_gate(request: Request) -> AuthGate:
    return request.app.state.gate


def current_user_optional(request: Request) -> Optional[Principal]:
    try:
        return get_gate(request).require_session(request)
    except Unauthenticated:
        return None


def require_api_user(request: Request) -> Principal:
    # Unauthenticated propagates to the app's exception handler (401).
    return get_gate(request).require_session(request)


def require_user(request: Request) -> Principal:
    u = current_user_optional(request)
    if u:
        return u
    raise HTTPException(status_code=303, headers={"Location": "/login"})
