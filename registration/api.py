"""FastAPI application that exposes the user registration endpoints."""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import Settings, load_settings
from .database import Database, DuplicateNameError, UserStore
from .models import MAX_AGE, MIN_AGE, NAME_MAX_LENGTH, User
from .security import issue_registration_token

logger = logging.getLogger("registration.api")

REGISTRATION_FIELDS = ("name", "age")
REGISTRATION_SUCCESS_MESSAGE = "Registration successful."
SERVER_ERROR_MESSAGE = "Server Error"


class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    age: int = Field(..., ge=MIN_AGE, le=MAX_AGE)

    @field_validator("age", mode="before")
    @classmethod
    def _reject_booleans(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("age must be an integer")
        return value


class UserResponse(BaseModel):
    id: int
    name: str
    age: int
    created_at: datetime
    updated_at: datetime


class RegisterResponse(BaseModel):
    user: UserResponse
    token: str
    message: str


class UserListResponse(BaseModel):
    users: List[UserResponse]


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        age=user.age,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _message_for_error(field: str, error: Mapping[str, Any]) -> str:
    """Translate a single pydantic error into a human readable message."""

    kind = error.get("type", "")
    if kind == "missing" or _is_blank(error.get("input")) or kind == "string_too_short":
        return f"The {field} field is required."

    if field == "name":
        if kind == "string_too_long":
            return f"The name field must not be greater than {NAME_MAX_LENGTH} characters."
        return "The name field must be a string."

    if field == "age":
        if kind == "greater_than_equal":
            return f"The age field must be at least {MIN_AGE}."
        if kind == "less_than_equal":
            return f"The age field must not be greater than {MAX_AGE}."
        return "The age field must be an integer."

    return str(error.get("msg") or f"The {field} field is invalid.")


def validation_errors_to_fields(errors: Iterable[Mapping[str, Any]]) -> Dict[str, List[str]]:
    """Group request validation errors into ``{field: [messages]}``."""

    fields: Dict[str, List[str]] = {}
    for error in errors:
        loc = tuple(error.get("loc") or ())
        if loc and loc[0] == "body":
            loc = loc[1:]
        if not loc or error.get("type") == "json_invalid":
            # The body itself was missing or not a JSON object.
            for field in REGISTRATION_FIELDS:
                fields.setdefault(field, []).append(f"The {field} field is required.")
            continue
        field = str(loc[0])
        message = _message_for_error(field, error)
        messages = fields.setdefault(field, [])
        if message not in messages:
            messages.append(message)
    return fields


def summarise_errors(errors: Mapping[str, List[str]]) -> str:
    messages = [message for field_messages in errors.values() for message in field_messages]
    if not messages:
        return "The given data was invalid."
    summary = messages[0]
    remaining = len(messages) - 1
    if remaining:
        noun = "error" if remaining == 1 else "errors"
        summary = f"{summary} (and {remaining} more {noun})"
    return summary


def validation_error_response(errors: Mapping[str, List[str]]) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"message": summarise_errors(errors), "errors": dict(errors)},
    )


def create_app(
    *,
    database: UserStore | None = None,
    settings: Settings | None = None,
    initialize_database: bool = False,
) -> FastAPI:
    if settings is None:
        settings = load_settings()

    if database is None:
        database = Database(settings.database_path)
        database.initialize()
    elif initialize_database and isinstance(database, Database):
        database.initialize()

    app = FastAPI(
        title=f"{settings.title} API",
        description="Register users and list the registered users",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.database = database

    def get_db() -> UserStore:
        return database

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/register",
        response_model=RegisterResponse,
        status_code=status.HTTP_201_CREATED,
        name="api_register",
    )
    def register(payload: RegisterRequest, db: UserStore = Depends(get_db)):
        try:
            user = db.insert_user(payload.name, payload.age)
        except DuplicateNameError:
            logger.info("Rejected registration for an existing name")
            return validation_error_response({"name": ["The name has already been taken."]})

        token = issue_registration_token(user.id)
        logger.info("Registered user %s", user.id)
        return RegisterResponse(
            user=user_to_response(user),
            token=token,
            message=REGISTRATION_SUCCESS_MESSAGE,
        )

    @app.get("/users", response_model=UserListResponse, name="api_list_users")
    def list_users(db: UserStore = Depends(get_db)) -> UserListResponse:
        return UserListResponse(users=[user_to_response(user) for user in db.list_users()])

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError):
        return validation_error_response(validation_errors_to_fields(exc.errors()))

    @app.exception_handler(sqlite3.Error)
    async def handle_store_error(request: Request, exc: sqlite3.Error):
        logger.error("User store failure while handling %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": SERVER_ERROR_MESSAGE},
        )

    return app


__all__ = [
    "RegisterRequest",
    "RegisterResponse",
    "UserListResponse",
    "UserResponse",
    "create_app",
    "summarise_errors",
    "user_to_response",
    "validation_errors_to_fields",
]
