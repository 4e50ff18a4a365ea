#!/usr/bin/env python3
"""Add a user with a hashed password to the users YAML file read at startup.

The file location comes from INVPRO_USERS_PATH (default: data/users.yml).
"""
from __future__ import annotations

import os
from getpass import getpass
from pathlib import Path

import yaml

from invpro.auth.passwords import hash_password

USERS_PATH = Path(os.getenv("INVPRO_USERS_PATH") or "data/users.yml").resolve()


def main() -> None:
    USERS_PATH.parent.mkdir(parents=True, exist_ok=True)
    if USERS_PATH.exists():
        raw = yaml.safe_load(USERS_PATH.read_text(encoding="utf-8")) or {}
    else:
        raw = {"version": 1, "users": {}}

    if "users" not in raw or not isinstance(raw["users"], dict):
        raw["users"] = {}

    username = input("Username: ").strip()
    if not username:
        raise SystemExit("Username is required")
    if username in raw["users"]:
        raise SystemExit(f"User '{username}' already exists in {USERS_PATH}")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    raw["users"][username] = {"password_hash": hash_password(pw1)}

    USERS_PATH.write_text(yaml.safe_dump(raw, sort_keys=False, allow_unicode=True), encoding="utf-8")
    print(f"OK -> {USERS_PATH}")


if __name__ == "__main__":
    main()
