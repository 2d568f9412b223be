# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""The single shared JSON document.

The document is always a JSON array stored in row id 1 of the `store` table.
Writes replace the whole document in one statement.

Normalization applied by `normalize_payload` before every write:

- a list is stored unchanged;
- a non-empty object is wrapped into a one-element list;
- anything else (empty object, null, string, number, boolean) becomes [].

NaN and Infinity are not JSON and are refused on write (ValidationError).
"""

from __future__ import annotations

import json
from typing import Any, List

from loguru import logger

from jsonvault.core.errors import ValidationError
from jsonvault.infra.db import Database

SCHEMA = """
CREATE TABLE IF NOT EXISTS store (
    id INTEGER PRIMARY KEY,
    data TEXT
);
"""

RECORD_ID = 1


def _no_constants(name: str):
    raise ValueError(f"{name} is not valid JSON")


def normalize_payload(payload: Any) -> List[Any]:
    if isinstance(payload, list):
        return payload
    logger.warning("Received data is not an array, normalizing")
    if isinstance(payload, dict) and payload:
        return [payload]
    return []


class RecordStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    def init_schema(self) -> None:
        self.db.executescript(SCHEMA)

    def get(self) -> List[Any]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT data FROM store WHERE id = ?", (RECORD_ID,)).fetchone()
        if row is None or row["data"] is None:
            return []
        try:
            data = json.loads(row["data"], parse_constant=_no_constants)
        except (ValueError, RecursionError):
            logger.warning("Stored data is not valid JSON, returning an empty array")
            return []
        if not isinstance(data, list):
            logger.warning("Stored data is not an array, returning an empty array")
            return []
        return data

    def put(self, payload: Any) -> List[Any]:
        data = normalize_payload(payload)
        try:
            text = json.dumps(data, indent=2, allow_nan=False)
        except (TypeError, ValueError, RecursionError) as e:
            raise ValidationError(f"Data is not JSON-serializable: {e}") from None
        with self.db.connect() as conn:
            conn.execute(
                "INSERT INTO store (id, data) VALUES (?, ?) "
                "ON CONFLICT(id) DO UPDATE SET data = excluded.data",
                (RECORD_ID, text),
            )
        logger.info("Stored {} item(s)", len(data))
        return data
