"""Storage of user accounts."""

from __future__ import annotations

import sqlite3
from enum import Enum
from typing import Any

import bcrypt

from .database import NotFoundError, RepositoryError
from .models import UserCreate, UserUpdate

DEFAULT_USER_ID = "A001"
BCRYPT_ROUNDS = 10

_ID_PREFIXES = {"admin": "A", "investigator": "I", "officer": "O", "auditor": "U"}


def _value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(BCRYPT_ROUNDS)).decode("ascii")


def _next_user_id(db: sqlite3.Connection, role: str) -> str:
    prefix = _ID_PREFIXES.get(role, "X")
    suffixes = (
        row["id"][1:]
        for row in db.execute("SELECT id FROM users WHERE id LIKE ?", (prefix + "%",))
    )
    highest = max((int(s) for s in suffixes if s.isdigit()), default=0)
    return f"{prefix}{highest + 1:03d}"


def create_user(db: sqlite3.Connection, user: UserCreate) -> str:
    """Create a user with a bcrypt-hashed password and return the new id."""
    hashed = _hash_password(user.password)
    role = _value(user.role)
    try:
        with db:
            user_id = _next_user_id(db, role)
            db.execute(
                "INSERT INTO users (id, name, password, role, clearance_level)"
                " VALUES (?, ?, ?, ?, ?)",
                (user_id, user.name, hashed, role, _value(user.clearance_level)),
            )
    except sqlite3.Error as exc:
        raise RepositoryError(str(exc)) from exc
    return user_id


def delete_user(db: sqlite3.Connection, user_id: str) -> None:
    """Mark a user as deleted; the default user cannot be deleted."""
    user_id = user_id.upper()
    if user_id == DEFAULT_USER_ID:
        raise ValueError("can't delete the default user")
    try:
        with db:
            db.execute("UPDATE users SET deleted = 1 WHERE id = ?", (user_id,))
    except sqlite3.Error as exc:
        raise RepositoryError(str(exc)) from exc


def update_user(db: sqlite3.Connection, update: UserUpdate) -> None:
    """Apply the set fields of a partial update to a live user."""
    if not update.id:
        raise ValueError("user ID is required")
    user_id = update.id.upper()
    if user_id == DEFAULT_USER_ID:
        raise ValueError("can't change the default user")

    changes = {
        "name": update.name,
        "password": None if update.password is None else _hash_password(update.password),
        "role": update.role,
        "clearance_level": update.clearance_level,
    }
    changes = {column: _value(v) for column, v in changes.items() if v is not None}
    if not changes:
        raise ValueError("no fields to update")

    assignments = ", ".join(f"{column} = ?" for column in changes)
    try:
        with db:
            db.execute(
                f"UPDATE users SET {assignments} WHERE id = ? AND deleted = 0",
                (*changes.values(), user_id),
            )
    except sqlite3.Error as exc:
        raise RepositoryError(str(exc)) from exc


def get_credentials(db: sqlite3.Connection, user_id: str) -> tuple[str, str, str]:
    """Return (password hash, role, clearance level) of a live user."""
    row = db.execute(
        "SELECT password, role, clearance_level FROM users WHERE id = ? AND deleted = 0",
        (user_id,),
    ).fetchone()
    if row is None:
        raise NotFoundError("invalid user ID or user is deleted")
    return row["password"], row["role"], row["clearance_level"]