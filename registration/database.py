"""SQLite-backed persistence for registered users."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol

from .models import MAX_AGE, MIN_AGE, User


class DuplicateNameError(ValueError):
    """Raised when a user with the requested name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"A user named '{name}' already exists")
        self.name = name


class UserStore(Protocol):
    """Operations the HTTP handlers need from the user store."""

    def insert_user(self, name: str, age: int) -> User:
        ...

    def list_users(self) -> List[User]:
        ...


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "registration.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _is_name_conflict(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed: users.name" in str(exc)


class Database:
    """Simple wrapper around SQLite for persisting registered users."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                f"""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    age INTEGER NOT NULL CHECK (age BETWEEN {MIN_AGE} AND {MAX_AGE}),
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(created_at);
                """
            )

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def insert_user(self, name: str, age: int) -> User:
        """Insert a new user and return the stored record.

        The UNIQUE constraint on ``users.name`` decides whether the name is
        free, so concurrent registrations of the same name cannot both
        succeed. The losing insert raises :class:`DuplicateNameError`.
        """

        created_at = _current_timestamp()
        serialized = _serialize_datetime(created_at)

        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO users (name, age, created_at, updated_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (name, age, serialized, serialized),
                )
            except sqlite3.IntegrityError as exc:
                if _is_name_conflict(exc):
                    raise DuplicateNameError(name) from exc
                raise

            user_id = cursor.lastrowid

        if user_id is None:
            raise RuntimeError("Failed to create user: no rowid returned")

        return User(id=user_id, name=name, age=age, created_at=created_at, updated_at=created_at)

    def get_user(self, user_id: int) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def list_users(self) -> List[User]:
        """Return every user, most recently registered first."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM users ORDER BY created_at DESC, id DESC"
            ).fetchall()
        return [self._row_to_user(row) for row in rows]

    def count_users(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM users").fetchone()
        return int(row["total"])

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            age=int(row["age"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
        )


__all__ = ["Database", "DuplicateNameError", "UserStore", "resolve_database_path"]
