# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Credential store: username -> password hash, in SQLite.

Usernames match exactly (case-sensitive). Lookups return None for unknown
users; storage problems raise StorageError, never None.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from jsonvault.auth.passwords import hash_password, verify_password
from jsonvault.core.errors import StorageError, ValidationError
from jsonvault.infra.db import Database

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT UNIQUE NOT NULL,
    password TEXT NOT NULL
);
"""


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: str
    password_hash: str


def _row_to_user(row: Optional[sqlite3.Row]) -> Optional[UserRecord]:
    if row is None:
        return None
    return UserRecord(id=int(row["id"]), username=str(row["username"]), password_hash=str(row["password"]))


class UserStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    def init_schema(self) -> None:
        self.db.executescript(SCHEMA)

    def find_by_username(self, username: str) -> Optional[UserRecord]:
        if not username:
            return None
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT id, username, password FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        return _row_to_user(row)

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT id, username, password FROM users WHERE id = ?",
                (int(user_id),),
            ).fetchone()
        return _row_to_user(row)

    def list_users(self) -> List[UserRecord]:
        with self.db.connect() as conn:
            rows = conn.execute("SELECT id, username, password FROM users ORDER BY id").fetchall()
        return [UserRecord(id=int(r["id"]), username=str(r["username"]), password_hash=str(r["password"])) for r in rows]

    # --- administrative operations (CLI only) ---

    def add_user(self, username: str, password: str) -> UserRecord:
        u = (username or "").strip()
        if not u:
            raise ValidationError("Username must not be empty")
        if not password:
            raise ValidationError("Password must not be empty")
        ph = hash_password(password)
        try:
            with self.db.connect() as conn:
                cur = conn.execute("INSERT INTO users (username, password) VALUES (?, ?)", (u, ph))
                user_id = int(cur.lastrowid)
        except StorageError as e:
            if isinstance(e.__cause__, sqlite3.IntegrityError):
                raise ValidationError(f"User '{u}' already exists") from None
            raise
        logger.info("Added user {} (id={})", u, user_id)
        return UserRecord(id=user_id, username=u, password_hash=ph)

    def remove_user(self, username: str) -> bool:
        with self.db.connect() as conn:
            cur = conn.execute("DELETE FROM users WHERE username = ?", (username,))
            removed = cur.rowcount > 0
        if removed:
            logger.info("Removed user {}", username)
        return removed

    def update_password(self, username: str, new_password: str) -> bool:
        if not new_password:
            raise ValidationError("Password must not be empty")
        ph = hash_password(new_password)
        with self.db.connect() as conn:
            cur = conn.execute("UPDATE users SET password = ? WHERE username = ?", (ph, username))
            updated = cur.rowcount > 0
        if updated:
            logger.info("Updated password for {}", username)
        return updated

    def check_password(self, username: str, password: str) -> bool:
        u = self.find_by_username(username)
        return bool(u) and verify_password(u.password_hash, password)
