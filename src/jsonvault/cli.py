# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Manage the credential store from the command line.

Usage:
  jsonvault-users [--db users.db] add <username> [--password P]
  jsonvault-users [--db users.db] remove <username>
  jsonvault-users [--db users.db] update <username> [--password P]
  jsonvault-users [--db users.db] list
  jsonvault-users [--db users.db] all
  jsonvault-users [--db users.db] get <username>
  jsonvault-users [--db users.db] check <username> [--password P]

Without --password the password is prompted for.
"""

from __future__ import annotations

import argparse
import os
import sys
from getpass import getpass
from typing import List, Optional

from dotenv import load_dotenv

from jsonvault.auth.users import UserStore
from jsonvault.core.errors import StorageError, ValidationError
from jsonvault.infra.db import Database
from jsonvault.log import setup_logging


def _read_password(given: Optional[str], *, confirm: bool) -> str:
    if given:
        return given
    pw1 = getpass("Password: ")
    if confirm:
        pw2 = getpass("Repeat password: ")
        if pw1 != pw2:
            raise ValidationError("Passwords do not match")
    return pw1


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="jsonvault-users", description="Manage jsonvault users.")
    ap.add_argument(
        "--db",
        default=os.getenv("JSONVAULT_USERS_DB", "users.db"),
        help="credential store file (default: $JSONVAULT_USERS_DB or users.db)",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add", help="create a user")
    p.add_argument("username")
    p.add_argument("--password")

    p = sub.add_parser("remove", help="delete a user")
    p.add_argument("username")

    p = sub.add_parser("update", help="change a user's password")
    p.add_argument("username")
    p.add_argument("--password")

    sub.add_parser("list", help="list usernames")
    sub.add_parser("all", help="list every user with its id")

    p = sub.add_parser("get", help="show one user")
    p.add_argument("username")

    p = sub.add_parser("check", help="test a password")
    p.add_argument("username")
    p.add_argument("--password")

    return ap


def _run(store: UserStore, args: argparse.Namespace) -> int:
    cmd = args.command

    if cmd == "add":
        u = store.add_user(args.username, _read_password(args.password, confirm=True))
        print(f"User added: {u.username} (id={u.id})")
        return 0

    if cmd == "remove":
        if not store.remove_user(args.username):
            print(f"User not found: {args.username}", file=sys.stderr)
            return 1
        print(f"User removed: {args.username}")
        return 0

    if cmd == "update":
        if store.find_by_username(args.username) is None:
            print(f"User not found: {args.username}", file=sys.stderr)
            return 1
        store.update_password(args.username, _read_password(args.password, confirm=True))
        print(f"User updated: {args.username}")
        return 0

    if cmd == "list":
        for u in store.list_users():
            print(u.username)
        return 0

    if cmd == "all":
        for u in store.list_users():
            print(f"id={u.id} username={u.username}")
        return 0

    if cmd == "get":
        u = store.find_by_username(args.username)
        if u is None:
            print(f"User not found: {args.username}", file=sys.stderr)
            return 1
        print(f"id={u.id} username={u.username}")
        return 0

    if cmd == "check":
        if store.check_password(args.username, _read_password(args.password, confirm=False)):
            print("Passwords match")
            return 0
        print("Passwords do not match", file=sys.stderr)
        return 1

    raise AssertionError(f"unhandled command {cmd}")


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging(os.getenv("JSONVAULT_LOG_LEVEL", "WARNING"))

    db = Database(args.db)
    try:
        with db:
            store = UserStore(db)
            store.init_schema()
            return _run(store, args)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except StorageError as e:
        print(f"Storage error: {e}", file=sys.stderr)
        return 2


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
