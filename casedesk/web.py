"""Request and response types shared by the handlers, and the session handlers."""

from __future__ import annotations

import dataclasses
import json
import sqlite3
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Optional

import bcrypt
import jwt

from .auth import generate_jwt
from .database import NotFoundError
from .deletion import fetch_audit_logs
from .state import DeletionTracker
from .storage import ObjectStore
from .user_repo import get_credentials


@dataclass
class Request:
    """An incoming request after routing and authentication.

    ``locals`` carries what the authentication layer established about the
    caller: ``user_id``, ``role`` and ``clearance``. ``files`` maps a form
    field to ``(filename, data, content_type)``.
    """

    method: str = "GET"
    params: dict[str, str] = field(default_factory=dict)
    body: Any = None
    form: dict[str, str] = field(default_factory=dict)
    files: dict[str, tuple[str, bytes, str]] = field(default_factory=dict)
    locals: dict[str, Any] = field(default_factory=dict)

    def param(self, name: str) -> str:
        """A path parameter, or '' when absent."""
        return self.params.get(name, "")

    def json(self) -> dict[str, Any]:
        """The body as a JSON object; raise ValueError if it is not one."""
        body = self.body
        if isinstance(body, (bytes, bytearray)):
            body = bytes(body).decode("utf-8")
        if isinstance(body, str):
            body = json.loads(body)
        if not isinstance(body, dict):
            raise ValueError("request body must be a JSON object")
        return body

    def fields(self, **kinds: type) -> dict[str, Any]:
        """Pick typed fields from the JSON body; missing or null fields are None."""
        data = self.json()
        picked: dict[str, Any] = {}
        for name, kind in kinds.items():
            value = data.get(name)
            if value is not None:
                wrong_bool = kind is not bool and isinstance(value, bool)
                if wrong_bool or not isinstance(value, kind):
                    raise ValueError(f"field {name!r} must be of type {kind.__name__}")
            picked[name] = value
        return picked


@dataclass
class Response:
    status: int = HTTPStatus.OK
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def error(cls, status: int, message: str) -> "Response":
        return cls(status, {"error": message})


@dataclass
class Services:
    """What the handlers work against."""

    db: sqlite3.Connection
    store: ObjectStore
    tracker: DeletionTracker = field(default_factory=DeletionTracker)
    jwt_secret: Optional[str] = None
    storage_endpoint: Optional[str] = None


def login_handler(services: Services, request: Request) -> Response:
    """Check a user's password and issue a session token."""
    try:
        body = request.fields(user_id=str, password=str)
    except ValueError:
        return Response.error(HTTPStatus.BAD_REQUEST, "Invalid request body")
    user_id = body["user_id"] or ""
    password = body["password"] or ""

    try:
        password_hash, role, clearance = get_credentials(services.db, user_id)
    except NotFoundError:
        return Response.error(HTTPStatus.UNAUTHORIZED, "the repo not work")

    try:
        matches = bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        matches = False
    if not matches:
        return Response.error(HTTPStatus.UNAUTHORIZED, "Invalid user ID or password")

    try:
        token = generate_jwt(user_id, role, clearance, services.jwt_secret)
    except (jwt.PyJWTError, TypeError, ValueError):
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Could not generate token")

    return Response(HTTPStatus.OK, {"token": token, "userID": user_id, "role": role})


def logout_handler(services: Services, request: Request) -> Response:
    return Response(
        HTTPStatus.OK,
        {"message": "Successfully logged out. Please discard your token on the client side."},
    )


def get_audit_logs(services: Services, request: Request) -> Response:
    try:
        logs = fetch_audit_logs(services.db)
    except sqlite3.Error:
        return Response.error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to fetch audit logs")
    return Response(
        HTTPStatus.OK,
        [{**dataclasses.asdict(entry), "action": entry.action.value} for entry in logs],
    )