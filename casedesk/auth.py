"""Issuing of signed session tokens."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

import jwt

DEFAULT_JWT_SECRET = "secret"
TOKEN_LIFETIME = timedelta(minutes=30)


def get_jwt_secret(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return JWT_SECRET from the environment, or the built-in default."""
    env = os.environ if environ is None else environ
    return env.get("JWT_SECRET") or DEFAULT_JWT_SECRET


def generate_jwt(
    user_id: str,
    role: str,
    clearance: str,
    secret: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Sign an HS256 token carrying the user's id, role and clearance."""
    if secret is None:
        secret = get_jwt_secret()
    if now is None:
        now = datetime.now(timezone.utc)
    claims = {
        "user_id": str(user_id),
        "role": str(role),
        "clearance_level": str(clearance),
        "exp": int((now + TOKEN_LIFETIME).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm="HS256")