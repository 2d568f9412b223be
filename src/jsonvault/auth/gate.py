# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from loguru import logger

from jsonvault.auth.passwords import burn_verification, verify_password
from jsonvault.auth.session import Session, SessionStore
from jsonvault.auth.users import UserStore
from jsonvault.core.errors import AuthFailure, Unauthenticated


@dataclass(frozen=True)
class Principal:
    user_id: int
    username: str


class AuthGate:
    """Credential check, session creation and per-request session lookup."""

    def __init__(self, users: UserStore, sessions: SessionStore, *, cookie_name: str) -> None:
        self.users = users
        self.sessions = sessions
        self.cookie_name = cookie_name

    def login(self, username: str, password: str) -> Session:
        """Return a new session, or raise AuthFailure.

        Unknown user and wrong password raise the same error. StorageError
        from the credential store propagates unchanged.
        """
        u = self.users.find_by_username(username or "")
        if u is None:
            burn_verification(password)
            logger.warning("Login failed for {!r}", username)
            raise AuthFailure()
        if not verify_password(u.password_hash, password or ""):
            logger.warning("Login failed for {!r}", username)
            raise AuthFailure()
        sess = self.sessions.create(u.id)
        logger.info("User {} logged in", u.username)
        return sess

    def cookie_value(self, sess: Session) -> str:
        return self.sessions.sign(sess.session_id)

    def principal_for_token(self, token: str) -> Principal:
        sid = self.sessions.unsign(token)
        if not sid:
            raise Unauthenticated()
        user_id = self.sessions.resolve(sid)
        if user_id is None:
            raise Unauthenticated()
        u = self.users.find_by_id(user_id)
        if u is None:
            # The account was removed while the session was alive.
            self.sessions.destroy(sid)
            raise Unauthenticated()
        return Principal(user_id=u.id, username=u.username)

    def require_session(self, request: Request) -> Principal:
        return self.principal_for_token(request.cookies.get(self.cookie_name, ""))

    def logout(self, token: str) -> None:
        sid = self.sessions.unsign(token)
        if sid:
            self.sessions.destroy(sid)
            logger.info("Session closed")
