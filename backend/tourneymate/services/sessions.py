"""Opaque-token login sessions cached in Redis with a fixed lifetime."""

from __future__ import annotations

import logging
import secrets

import redis.asyncio as redis
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select

from ..cache import DecodePolicy, session_key
from ..config import SESSION_TTL_SECONDS
from ..exceptions import AuthenticationFailure, StoreUnavailable, ValidationError
from ..graph import GraphStore
from ..models import User
from ..schemas import LoginResponse, SessionUser

logger = logging.getLogger(__name__)


def generate_token() -> str:
    return secrets.token_urlsafe(32)


class SessionStore:
    """Map tokens to the identity snapshot taken at login.

    The snapshot never changes after it is written: a role change on the user
    only shows up once they log in again. Expiry is left to Redis.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        decode_policy: DecodePolicy = DecodePolicy.DROP,
    ) -> None:
        self._redis = client
        self.ttl_seconds = ttl_seconds
        self.decode_policy = decode_policy

    async def create(self, user: SessionUser) -> str:
        token = generate_token()
        await self._redis.set(
            session_key(token), user.model_dump_json(by_alias=True), ex=self.ttl_seconds
        )
        return token

    async def resolve(self, token: str) -> SessionUser | None:
        """Return the snapshot for ``token``; ``None`` if absent or expired."""

        if not token:
            return None
        raw = await self._redis.get(session_key(token))
        if raw is None:
            return None
        try:
            return SessionUser.model_validate_json(raw)
        except PydanticValidationError as exc:
            if self.decode_policy is DecodePolicy.RAISE:
                raise StoreUnavailable("undecodable session value") from exc
            logger.warning("Discarding undecodable session value")
            return None

    async def remaining_ttl(self, token: str) -> int:
        """Seconds until ``token`` expires, ``0`` when it is gone."""

        ttl = await self._redis.ttl(session_key(token))
        return max(int(ttl), 0)

    async def delete(self, token: str) -> bool:
        return bool(await self._redis.delete(session_key(token)))


async def login(
    graph: GraphStore, sessions: SessionStore, username: str, password: str
) -> LoginResponse:
    """Check credentials against the user node and open a session.

    Passwords are stored and compared in plaintext, matching the existing
    user data.
    """

    username = (username or "").strip()
    if not username or not password:
        raise ValidationError(
            "Username and password are required.", code="auth_credentials_required"
        )

    row = await graph.query_one(
        select(User.username, User.display_name, User.role, User.password).where(
            User.username == username
        )
    )
    if row is None or not secrets.compare_digest(
        (row.password or "").encode("utf-8"), password.encode("utf-8")
    ):
        logger.info("Failed login for %r", username)
        raise AuthenticationFailure("Invalid credentials.", code="auth_invalid_credentials")

    user = SessionUser(
        username=row.username,
        display_name=row.display_name or row.username,
        role=row.role,
    )
    token = await sessions.create(user)
    return LoginResponse(
        token=token, expires_in_seconds=sessions.ttl_seconds, user=user
    )
