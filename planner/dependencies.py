"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException

from planner.config import get_settings
from planner.data import DataClient, InMemoryDataClient, SqlDataClient
from planner.hosted import RestDataClient, RestIdentityService
from planner.identity import IdentityService, InMemoryIdentityService, SqlIdentityService
from planner.session import SessionProvider

_data_client: DataClient | None = None
_identity_service: IdentityService | None = None


def get_data_client() -> DataClient:
    """
    Return a singleton data client so rows persist across requests.
    """
    global _data_client
    if _data_client:
        return _data_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _data_client = InMemoryDataClient()
    elif settings.hosted_url and settings.hosted_api_key:
        _data_client = RestDataClient(
            settings.hosted_url,
            settings.hosted_api_key,
            timeout=settings.request_timeout,
        )
    elif settings.database_url:
        _data_client = SqlDataClient(settings.database_url)
    else:
        _data_client = InMemoryDataClient()
    return _data_client


def get_identity_service() -> IdentityService:
    global _identity_service
    if _identity_service:
        return _identity_service

    settings = get_settings()
    token_options = dict(
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.access_token_expire_minutes,
        min_password_length=settings.min_password_length,
    )
    if settings.use_in_memory_backends:
        _identity_service = InMemoryIdentityService(settings.jwt_secret, **token_options)
    elif settings.hosted_url and settings.hosted_api_key:
        _identity_service = RestIdentityService(
            settings.hosted_url,
            settings.hosted_api_key,
            timeout=settings.request_timeout,
        )
    elif settings.database_url:
        _identity_service = SqlIdentityService(
            settings.database_url, settings.jwt_secret, **token_options
        )
    else:
        _identity_service = InMemoryIdentityService(settings.jwt_secret, **token_options)
    return _identity_service


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def get_session(
    authorization: str | None = Header(default=None),
    identity_service: IdentityService = Depends(get_identity_service),
) -> SessionProvider:
    """A session for this request, signed in when a valid bearer token is sent."""
    session = SessionProvider(identity_service)
    await session.restore(_bearer_token(authorization))
    return session


async def require_session(
    session: SessionProvider = Depends(get_session),
) -> SessionProvider:
    if not session.is_authenticated:
        raise HTTPException(status_code=401, detail="Could not validate credentials")
    return session


def get_user_data_client(
    session: SessionProvider = Depends(get_session),
    client: DataClient = Depends(get_data_client),
) -> DataClient:
    identity = session.identity
    return client.bind(identity.access_token if identity else None)
