"""
Test doubles shared by the planner test suites.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from planner.data import InMemoryDataClient
from planner.errors import DataError
from planner.identity import InMemoryIdentityService
from planner.session import SessionProvider
from shared.types import Identity


class RecordingDataClient(InMemoryDataClient):
    """In-memory client that records every call and can fail or stall on demand.

    `failures` maps an operation name ("select", "insert", ...) to the error
    message it should raise. Each event in `gates` holds back one select
    response (taken from the rows as they were when the call started) until
    the event is set.
    """

    def __init__(self):
        super().__init__()
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[str, str] = {}
        self.gates: list[asyncio.Event] = []

    def _enter(self, op: str, table: str) -> None:
        self.calls.append((op, table))
        if op in self.failures:
            raise DataError(self.failures[op])

    def count(self, op: str, table: Optional[str] = None) -> int:
        return sum(
            1 for call_op, call_table in self.calls
            if call_op == op and (table is None or call_table == table)
        )

    async def select(self, table: str, **kwargs) -> list[dict]:
        self._enter("select", table)
        gate = self.gates.pop(0) if self.gates else None
        rows = await super().select(table, **kwargs)
        if gate is not None:
            await gate.wait()
        return rows

    async def insert(self, table: str, rows: list[dict]) -> list[dict]:
        self._enter("insert", table)
        return await super().insert(table, rows)

    async def update(self, table: str, patch: dict, match_id: str, **kwargs):
        self._enter("update", table)
        return await super().update(table, patch, match_id, **kwargs)

    async def delete(self, table: str, match_id: str, **kwargs) -> int:
        self._enter("delete", table)
        return await super().delete(table, match_id, **kwargs)


class RecordingIdentityService(InMemoryIdentityService):
    """Identity service that records calls; `gate` stalls sign-in/up until set."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls: list[str] = []
        self.gate: Optional[asyncio.Event] = None
        self.raise_unexpected = False

    async def _wait(self, op: str) -> None:
        self.calls.append(op)
        if self.gate is not None:
            await self.gate.wait()
        if self.raise_unexpected:
            raise RuntimeError("backend exploded")

    async def sign_in(self, email: str, password: str) -> Identity:
        await self._wait("sign_in")
        return await super().sign_in(email, password)

    async def sign_up(self, email: str, password: str, full_name: str):
        await self._wait("sign_up")
        return await super().sign_up(email, password, full_name)


async def signed_in_session(
    email: str = "couple@example.com",
    password: str = "secret1",
    full_name: str = "Sam Doe",
    identity_service: Optional[InMemoryIdentityService] = None,
) -> SessionProvider:
    """A SessionProvider already signed in as a freshly registered user."""
    session = SessionProvider(identity_service or InMemoryIdentityService())
    result = await session.sign_up(email, password, full_name)
    if not result.ok:
        raise AssertionError(result.error.message)
    return session
