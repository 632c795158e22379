"""
Base class for the list views: each one mirrors a single table for the
signed-in user and reloads it in full after every write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from planner.data import DataClient, Order
from planner.errors import DataError
from planner.session import SessionProvider
from shared.types import Identity

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Notice:
    """A non-blocking message for the user, e.g. a failed save."""

    level: str
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ResourceView(Generic[T]):
    table: str = ""
    order: Optional[Order] = None
    columns: Optional[tuple[str, ...]] = None

    def __init__(self, session: SessionProvider, client: DataClient):
        self.session = session
        self.client = client
        self.items: list[T] = []
        self.notices: list[Notice] = []
        self.loading = False
        self.mounted = False
        self._generation = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def identity(self) -> Optional[Identity]:
        return self.session.identity

    @property
    def user_id(self) -> Optional[str]:
        identity = self.session.identity
        return identity.user_id if identity else None

    def decode(self, row: dict) -> T:
        raise NotImplementedError

    async def mount(self) -> None:
        self.mounted = True
        self._unsubscribe = self.session.subscribe(self._on_identity_change)
        await self._on_identity_change(self.session.identity)

    def unmount(self) -> None:
        self.mounted = False
        self._generation += 1
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_identity_change(self, identity: Optional[Identity]) -> None:
        self._generation += 1
        if identity is None:
            self.clear()
            return
        await self.refresh()

    def clear(self) -> None:
        self.items = []
        self.loading = False

    async def fetch_rows(self, identity: Identity) -> list[dict]:
        return await self.client.select(
            self.table,
            columns=self.columns,
            filters={"user_id": identity.user_id},
            order=self.order,
        )

    async def refresh(self) -> None:
        """Reload the whole collection for the current identity."""
        identity = self.session.identity
        if identity is None or not self.mounted:
            return
        self._generation += 1
        generation = self._generation
        self.loading = True
        try:
            rows = await self.fetch_rows(identity)
        except DataError as exc:
            if generation == self._generation:
                self.loading = False
            self.report(f"Error fetching {self.table}", exc)
            return
        if generation != self._generation or not self.mounted:
            logger.debug("Discarding stale %s response", self.table)
            return
        self.items = [self.decode(row) for row in rows]
        self.loading = False

    async def mutate(self, label: str, action: Awaitable) -> bool:
        """Run a write; on success re-fetch, on failure record a notice."""
        try:
            await action
        except DataError as exc:
            self.report(f"Error {label}", exc)
            return False
        await self.refresh()
        return True

    def report(self, context: str, exc: DataError) -> None:
        logger.error("%s: %s", context, exc.message)
        self.notices.append(Notice("error", f"{context}: {exc.message}"))

    def dismiss_notices(self) -> None:
        self.notices.clear()
