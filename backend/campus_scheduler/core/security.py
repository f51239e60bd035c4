from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from jose import jwt

from campus_scheduler.core.config import get_settings

# Tokens are issued by the portal's identity service; this module only needs to
# read them. ``create_access_token`` exists for local tooling and tests.


class UserRole(str, Enum):
    super_admin = "super_admin"
    admin = "admin"
    program_controller = "program_controller"
    teacher = "teacher"
    student = "student"


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    role: UserRole
    name: str | None = None


def decode_token(token: str) -> dict:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


def create_access_token(
    subject: str,
    *,
    role: str,
    name: str | None = None,
    expires_minutes: int = 60,
) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"sub": subject, "role": role, "exp": expire}
    if name:
        payload["name"] = name
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
