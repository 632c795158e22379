"""
Clients for a hosted backend exposing PostgREST tables and GoTrue auth
(Supabase-compatible). Requests run in a worker thread so the event loop
stays free while they are outstanding.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import requests

from planner.data import Order, check_table
from planner.errors import AuthError, DataError
from shared.types import Identity

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("message", "error_description", "msg", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


def _encode(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class RestDataClient:
    """DataClient speaking the PostgREST dialect over HTTP."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout
        self.http = session or requests.Session()

    def bind(self, access_token: str | None) -> "RestDataClient":
        return RestDataClient(
            self.base_url,
            self.api_key,
            access_token=access_token,
            timeout=self.timeout,
            session=self.http,
        )

    def _headers(self) -> dict:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _request(self, method: str, table: str, params: dict, json=None):
        check_table(table)
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = self.http.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, table, exc)
            raise DataError(str(exc)) from exc
        if not response.ok:
            raise DataError(_error_message(response), code=str(response.status_code))
        if not response.content:
            return []
        try:
            return response.json()
        except ValueError as exc:
            raise DataError(f"Malformed response from {table}: {exc}") from exc

    async def select(
        self,
        table: str,
        *,
        columns: Optional[Iterable[str]] = None,
        filters: Optional[dict] = None,
        order: Optional[Order] = None,
    ) -> list[dict]:
        params = {"select": ",".join(columns) if columns else "*"}
        for key, value in (filters or {}).items():
            params[key] = f"eq.{_encode(value)}"
        if order:
            direction = "asc" if order.ascending else "desc"
            params["order"] = f"{order.column}.{direction}.nullslast"
        return await asyncio.to_thread(self._request, "GET", table, params)

    async def insert(self, table: str, rows: list[dict]) -> list[dict]:
        return await asyncio.to_thread(self._request, "POST", table, {}, rows)

    def _match(self, match_id: str, user_id: str | None) -> dict:
        params = {"id": f"eq.{match_id}"}
        if user_id is not None:
            params["user_id"] = f"eq.{user_id}"
        return params

    async def update(
        self, table: str, patch: dict, match_id: str, *, user_id: str | None = None
    ) -> list[dict]:
        return await asyncio.to_thread(
            self._request, "PATCH", table, self._match(match_id, user_id), patch
        )

    async def delete(
        self, table: str, match_id: str, *, user_id: str | None = None
    ) -> int:
        deleted = await asyncio.to_thread(
            self._request, "DELETE", table, self._match(match_id, user_id)
        )
        return len(deleted)


class RestIdentityService:
    """IdentityService backed by a GoTrue-compatible auth endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.http = session or requests.Session()

    def _call(self, method: str, path: str, *, token=None, params=None, json=None):
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            response = self.http.request(
                method,
                f"{self.base_url}/auth/v1/{path}",
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Auth request %s failed: %s", path, exc)
            raise AuthError(str(exc), status=503) from exc
        if not response.ok:
            raise AuthError(_error_message(response), status=response.status_code)
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as exc:
            raise AuthError(f"Malformed response from auth service: {exc}", status=502) from exc
        if not isinstance(body, dict):
            raise AuthError("Malformed response from auth service", status=502)
        return body

    @staticmethod
    def _identity(user, session: dict | None = None) -> Identity:
        if not isinstance(user, dict) or not user.get("id"):
            raise AuthError("Auth service response is missing the user", status=502)
        metadata = user.get("user_metadata") or {}
        identity = Identity(
            user_id=user["id"],
            email=user.get("email", ""),
            full_name=metadata.get("full_name"),
        )
        if session and session.get("access_token"):
            identity.access_token = session["access_token"]
            if session.get("expires_in"):
                identity.expires_at = datetime.now(timezone.utc) + timedelta(
                    seconds=int(session["expires_in"])
                )
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        body = await asyncio.to_thread(
            self._call,
            "POST",
            "token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return self._identity(body.get("user"), body)

    async def sign_up(
        self, email: str, password: str, full_name: str
    ) -> Optional[Identity]:
        body = await asyncio.to_thread(
            self._call,
            "POST",
            "signup",
            json={"email": email, "password": password, "data": {"full_name": full_name}},
        )
        if not body.get("access_token"):
            # Email confirmation pending: the user exists but has no session yet.
            return None
        return self._identity(body.get("user"), body)

    async def sign_out(self, access_token: str) -> None:
        await asyncio.to_thread(self._call, "POST", "logout", token=access_token)

    async def get_user(self, access_token: str) -> Identity:
        user = await asyncio.to_thread(self._call, "GET", "user", token=access_token)
        return self._identity(user, {"access_token": access_token})
