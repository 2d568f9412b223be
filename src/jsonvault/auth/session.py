# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Server-side sessions.

Sessions live in process memory and map a random session id to a user id.
The browser only ever sees the session id, signed with the session secret
(itsdangerous) so a forged or edited cookie is rejected before any lookup.
Destroying a session makes its cookie worthless even if it is replayed.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from itsdangerous import BadData, URLSafeSerializer

SESSION_SALT = "jsonvault.session.v1"


@dataclass(frozen=True)
class Session:
    session_id: str
    user_id: int
    created_at: float
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


class SessionStore:
    def __init__(
        self,
        secret: str,
        *,
        max_age: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("Session secret must not be empty")
        self.max_age = int(max_age)
        self._clock = clock
        self._signer = URLSafeSerializer(secret_key=secret, salt=SESSION_SALT)
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, user_id: int) -> Session:
        now = self._clock()
        self.purge_expired(now)
        sess = Session(
            session_id=secrets.token_urlsafe(32),
            user_id=int(user_id),
            created_at=now,
            expires_at=now + self.max_age,
        )
        self._sessions[sess.session_id] = sess
        return sess

    def resolve(self, session_id: str) -> Optional[int]:
        if not session_id:
            return None
        sess = self._sessions.get(session_id)
        if sess is None:
            return None
        if sess.expired(self._clock()):
            self._sessions.pop(session_id, None)
            return None
        return sess.user_id

    def destroy(self, session_id: str) -> None:
        if session_id:
            self._sessions.pop(session_id, None)

    def purge_expired(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        stale = [sid for sid, s in list(self._sessions.items()) if s.expired(now)]
        for sid in stale:
            self._sessions.pop(sid, None)
        return len(stale)

    # --- cookie encoding ---

    def sign(self, session_id: str) -> str:
        return self._signer.dumps(session_id)

    def unsign(self, token: str) -> Optional[str]:
        if not token:
            return None
        try:
            sid = self._signer.loads(token)
        except BadData:
            return None
        return sid if isinstance(sid, str) and sid else None
