"""Token helpers for the registration API."""
from __future__ import annotations

import secrets
import string

TOKEN_SEPARATOR = "|"
TOKEN_LENGTH = 40

_TOKEN_ALPHABET = string.ascii_letters + string.digits


def issue_registration_token(user_id: int) -> str:
    """Return an opaque ``"<user id>|<random>"`` token for a new registration.

    The token is handed to the client once and is not stored or checked by
    any endpoint.
    """

    secret = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))
    return f"{user_id}{TOKEN_SEPARATOR}{secret}"


__all__ = ["TOKEN_LENGTH", "TOKEN_SEPARATOR", "issue_registration_token"]
