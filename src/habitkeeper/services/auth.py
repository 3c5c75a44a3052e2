"""Authentication and user management services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
from jose import JWTError, jwt
from sqlmodel import select

from ..infra.database import SessionFactory
from ..logging_config import get_logger
from ..models.user import User

_hasher = PasswordHasher()
logger = get_logger("services.auth")

TOKEN_ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "

USERNAME_MIN = 3
USERNAME_MAX = 30
PASSWORD_MIN = 6


class UsernameTaken(ValueError):
    """Raised when signing up with a username that already exists."""


@dataclass(frozen=True)
class SessionContext:
    """The authenticated caller, passed explicitly into request handlers."""

    user_id: int
    username: str


def normalize_username(username: str) -> str:
    """Usernames are unique case-insensitively; store and compare lower-cased."""

    return (username or "").strip().lower()


def get_user(user_id: int, session_factory: SessionFactory) -> Optional[User]:
    with session_factory() as session:
        user = session.get(User, user_id)
        if user:
            session.expunge(user)
        return user


def get_user_by_username(username: str, session_factory: SessionFactory) -> Optional[User]:
    """Fetch a user by username."""
    username = normalize_username(username)
    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user:
            session.expunge(user)
        return user


def create_user(
    *,
    username: str,
    password: str,
    session_factory: SessionFactory,
) -> User:
    """Create a new user with an argon2 password hash.

    Applies the same length rules as the signup form, so accounts created from
    the CLI obey them too.
    """

    username = normalize_username(username)
    if not username:
        raise ValueError("Username is required")
    if not password:
        raise ValueError("Password is required")
    if len(username) < USERNAME_MIN:
        raise ValueError(f"Username must be at least {USERNAME_MIN} characters long")
    if len(username) > USERNAME_MAX:
        raise ValueError(f"Username must be less than {USERNAME_MAX} characters")
    if len(password) < PASSWORD_MIN:
        raise ValueError(f"Password must be at least {PASSWORD_MIN} characters long")
    password_hash = _hasher.hash(password)
    with session_factory() as session:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing:
            raise UsernameTaken("Username already exists")
        user = User(username=username, password_hash=password_hash)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
    logger.info("User created", extra={"user_id": user.id, "username": user.username})
    return user


def authenticate(
    *,
    username: str,
    password: str,
    session_factory: SessionFactory,
) -> Optional[User]:
    """Validate credentials and return the user when correct."""

    username = normalize_username(username)
    if not username or not password:
        return None
    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user is None:
            logger.info("Login rejected: unknown user", extra={"username": username})
            return None
        try:
            _hasher.verify(user.password_hash, password)
        except (VerifyMismatchError, InvalidHash, VerificationError):
            logger.info("Login rejected: bad password", extra={"username": username})
            return None

        if _hasher.check_needs_rehash(user.password_hash):
            user.password_hash = _hasher.hash(password)
        user.last_login = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


def issue_token(
    user: User,
    *,
    secret: str,
    ttl_days: int = 30,
    now: Optional[datetime] = None,
) -> str:
    """Sign a bearer token carrying the user's id and username."""

    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "userId": str(user.id),
        "username": user.username,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(days=ttl_days)).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm=TOKEN_ALGORITHM)


def decode_token(token: str, *, secret: str) -> Optional[SessionContext]:
    """Verify signature and expiry; returns None for any invalid token."""

    try:
        payload = jwt.decode(token, secret, algorithms=[TOKEN_ALGORITHM])
    except JWTError:
        return None
    try:
        return SessionContext(user_id=int(payload["userId"]), username=str(payload["username"]))
    except (KeyError, TypeError, ValueError):
        return None


def token_from_header(header: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""

    if header and header.startswith(BEARER_PREFIX):
        token = header[len(BEARER_PREFIX):].strip()
        return token or None
    return None


def authenticate_token(
    token: str,
    *,
    secret: str,
    session_factory: SessionFactory,
) -> Optional[SessionContext]:
    """Resolve a bearer token to a session context for an existing user."""

    claims = decode_token(token, secret=secret)
    if claims is None:
        return None
    user = get_user(claims.user_id, session_factory)
    if user is None or user.id is None:
        return None
    return SessionContext(user_id=user.id, username=user.username)


def user_to_dict(user: User) -> dict:
    """Public user payload (never includes the password hash)."""

    created = user.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return {
        "id": str(user.id),
        "username": user.username,
        "createdAt": created.isoformat(),
    }


__all__ = [
    "SessionContext",
    "UsernameTaken",
    "authenticate",
    "authenticate_token",
    "create_user",
    "decode_token",
    "get_user",
    "get_user_by_username",
    "issue_token",
    "normalize_username",
    "token_from_header",
    "user_to_dict",
]
