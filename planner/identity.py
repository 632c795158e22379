"""
Identity services: who is signed in, and how they got there.

The hosted implementation lives in planner.hosted; the two here issue their
own HS256 access tokens and are used for local runs and tests.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Protocol

import jwt
from sqlalchemy import create_engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from werkzeug.security import check_password_hash, generate_password_hash

from planner.data import Base, UserRow
from planner.errors import AuthError
from shared.constants import MIN_PASSWORD_LENGTH
from shared.types import Identity

INVALID_CREDENTIALS = "Invalid login credentials"
ALREADY_REGISTERED = "User already registered"

logger = logging.getLogger(__name__)


class IdentityService(Protocol):
    """Interface for the authentication collaborator."""

    async def sign_in(self, email: str, password: str) -> Identity:
        ...

    async def sign_up(
        self, email: str, password: str, full_name: str
    ) -> Optional[Identity]:
        """Register a user. Returns None when the email must be verified first."""
        ...

    async def sign_out(self, access_token: str) -> None:
        ...

    async def get_user(self, access_token: str) -> Identity:
        ...


class TokenIssuer:
    """Issues and checks the JWT access tokens handed to signed-in users."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60,
        min_password_length: int = MIN_PASSWORD_LENGTH,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes
        self.min_password_length = min_password_length
        # jti -> exp (epoch seconds), pruned after expiry
        self._revoked: dict[str, float] = {}

    def _issue(self, user_id: str, email: str, full_name: str | None) -> Identity:
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        payload = {
            "sub": user_id,
            "email": email,
            "full_name": full_name,
            "exp": expires_at,
            "jti": uuid.uuid4().hex,
        }
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return Identity(
            user_id=user_id,
            email=email,
            full_name=full_name,
            access_token=token,
            expires_at=expires_at,
        )

    def _decode(self, access_token: str) -> dict:
        try:
            payload = jwt.decode(access_token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthError("Token has expired", status=401)
        except jwt.PyJWTError:
            raise AuthError("Invalid token", status=401)
        self._prune_revoked()
        if payload.get("jti") in self._revoked or not payload.get("sub"):
            raise AuthError("Invalid token", status=401)
        return payload

    def _revoke(self, access_token: str) -> None:
        payload = self._decode(access_token)
        self._revoked[payload["jti"]] = float(payload["exp"])

    def _prune_revoked(self) -> None:
        now = time.time()
        for jti in [jti for jti, exp in self._revoked.items() if exp <= now]:
            del self._revoked[jti]

    def _check_sign_up(self, email: str, password: str) -> str:
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise AuthError("Unable to validate email address: invalid format")
        if len(password or "") < self.min_password_length:
            raise AuthError(
                f"Password should be at least {self.min_password_length} characters"
            )
        return email

    def _identity_from_token(self, access_token: str) -> Identity:
        payload = self._decode(access_token)
        return Identity(
            user_id=payload["sub"],
            email=payload.get("email", ""),
            full_name=payload.get("full_name"),
            access_token=access_token,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


class InMemoryIdentityService(TokenIssuer):
    """Keeps registered users in a dict."""

    def __init__(self, secret: str = "in-memory-development-secret-key!", **kwargs):
        super().__init__(secret, **kwargs)
        self.users: Dict[str, dict] = {}

    def reset(self) -> None:
        self.users.clear()
        self._revoked.clear()

    async def sign_in(self, email: str, password: str) -> Identity:
        user = self.users.get((email or "").strip().lower())
        if not user or not check_password_hash(user["password_hash"], password or ""):
            raise AuthError(INVALID_CREDENTIALS)
        return self._issue(user["id"], user["email"], user["full_name"])

    async def sign_up(
        self, email: str, password: str, full_name: str
    ) -> Optional[Identity]:
        email = self._check_sign_up(email, password)
        if email in self.users:
            raise AuthError(ALREADY_REGISTERED)
        user = {
            "id": uuid.uuid4().hex,
            "email": email,
            "full_name": full_name,
            "password_hash": generate_password_hash(password),
        }
        self.users[email] = user
        return self._issue(user["id"], email, full_name)

    async def sign_out(self, access_token: str) -> None:
        self._revoke(access_token)

    async def get_user(self, access_token: str) -> Identity:
        return self._identity_from_token(access_token)


class SqlIdentityService(TokenIssuer):
    """Stores users in the `users` table of a SQLAlchemy database.

    Queries and password hashing run in a worker thread.
    """

    def __init__(self, database_url: str, secret: str, engine_options=None, **kwargs):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlIdentityService")
        super().__init__(secret, **kwargs)
        self.engine = create_engine(
            database_url, future=True, pool_pre_ping=True, **(engine_options or {})
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    async def _run(self, work, *args):
        try:
            return await asyncio.to_thread(work, *args)
        except SQLAlchemyError as exc:
            logger.error("Identity store request failed: %s", exc)
            raise AuthError("Authentication service unavailable", status=503) from exc

    def _find_user(self, email: str, password: str) -> UserRow:
        with self.Session() as session:
            user = session.execute(
                select(UserRow).where(UserRow.email == email)
            ).scalar_one_or_none()
        if not user or not check_password_hash(user.password_hash, password or ""):
            raise AuthError(INVALID_CREDENTIALS)
        return user

    async def sign_in(self, email: str, password: str) -> Identity:
        email = (email or "").strip().lower()
        user = await self._run(self._find_user, email, password)
        return self._issue(user.id, user.email, user.full_name)

    def _create_user(self, email: str, password: str, full_name: str) -> UserRow:
        user = UserRow(
            id=uuid.uuid4().hex,
            email=email,
            full_name=full_name,
            password_hash=generate_password_hash(password),
        )
        with self.Session() as session:
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise AuthError(ALREADY_REGISTERED)
        return user

    async def sign_up(
        self, email: str, password: str, full_name: str
    ) -> Optional[Identity]:
        email = self._check_sign_up(email, password)
        user = await self._run(self._create_user, email, password, full_name)
        return self._issue(user.id, email, full_name)

    async def sign_out(self, access_token: str) -> None:
        self._revoke(access_token)

    def _user_exists(self, user_id: str) -> bool:
        with self.Session() as session:
            return session.get(UserRow, user_id) is not None

    async def get_user(self, access_token: str) -> Identity:
        identity = self._identity_from_token(access_token)
        if not await self._run(self._user_exists, identity.user_id):
            raise AuthError("User not found", status=401)
        return identity
