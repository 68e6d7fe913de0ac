"""Domain models for the registration service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

NAME_MAX_LENGTH = 255
MIN_AGE = 1
MAX_AGE = 120


@dataclass(frozen=True)
class User:
    """Represents a registered user stored in the registration database."""

    id: int
    name: str
    age: int
    created_at: datetime
    updated_at: datetime


__all__ = ["MAX_AGE", "MIN_AGE", "NAME_MAX_LENGTH", "User"]
