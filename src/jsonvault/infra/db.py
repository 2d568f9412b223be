# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SQLite handle shared by the credential store and the record store.

A `Database` is constructed once at startup and handed to the stores that
need it. Each unit of work gets its own short-lived connection, so handlers
running in different threads never share a sqlite3 connection.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from loguru import logger

from jsonvault.core.errors import StorageError


class Database:
    def __init__(self, path: Union[str, Path], *, timeout: float = 5.0) -> None:
        self.path = Path(path)
        self.timeout = timeout
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> "Database":
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            sqlite3.connect(str(self.path), timeout=self.timeout).close()
        except (OSError, sqlite3.Error) as e:
            logger.error("Cannot open database {}: {}", self.path, e)
            raise StorageError(f"Cannot open database {self.path}: {e}") from e
        self._open = True
        logger.info("Opened database {}", self.path)
        return self

    def close(self) -> None:
        if self._open:
            logger.info("Closed database {}", self.path)
        self._open = False

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, roll back on error."""
        if not self._open:
            raise StorageError(f"Database {self.path} is not open")
        try:
            conn = sqlite3.connect(str(self.path), timeout=self.timeout)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot connect to {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Query failed on {self.path}: {e}") from e
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def executescript(self, sql: str) -> None:
        with self.connect() as conn:
            conn.executescript(sql)
