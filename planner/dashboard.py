"""
Dashboard view: read-only summary across expenses, tasks and guests.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Callable, Optional

from planner.data import DataClient, Order
from planner.errors import DataError
from planner.session import SessionProvider
from planner.views import Notice
from shared.constants import (
    DEFAULT_TOTAL_BUDGET,
    EXPENSES_TABLE,
    GUESTS_TABLE,
    TASKS_TABLE,
    UPCOMING_PREVIEW_COUNT,
)
from shared.types import DashboardStats, Identity, RsvpStatus, Task, row_to

logger = logging.getLogger(__name__)

QUICK_ACTIONS = ("budget", "tasks", "gallery")


def compute_stats(
    expenses: list[dict],
    tasks: list[Task],
    guests: list[dict],
    total_budget: float = DEFAULT_TOTAL_BUDGET,
) -> DashboardStats:
    upcoming = [task for task in tasks if not task.completed]
    return DashboardStats(
        total_budget=total_budget,
        total_spent=math.fsum(float(row.get("actual") or 0) for row in expenses),
        upcoming_tasks=len(upcoming),
        completed_tasks=sum(1 for task in tasks if task.completed),
        total_guests=len(guests),
        rsvp_count=sum(
            1 for guest in guests if guest.get("rsvp_status") == RsvpStatus.ACCEPTED
        ),
        upcoming_list=upcoming[:UPCOMING_PREVIEW_COUNT],
    )


class DashboardView:
    def __init__(
        self,
        session: SessionProvider,
        client: DataClient,
        *,
        total_budget: float = DEFAULT_TOTAL_BUDGET,
        on_navigate: Callable[[str], None] | None = None,
    ):
        self.session = session
        self.client = client
        self.total_budget = total_budget
        self.on_navigate = on_navigate
        self.stats = DashboardStats(total_budget=total_budget)
        self.notices: list[Notice] = []
        self.mounted = False
        self._generation = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

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
            self.stats = DashboardStats(total_budget=self.total_budget)
            return
        await self.refresh()

    async def refresh(self) -> None:
        identity = self.session.identity
        if identity is None or not self.mounted:
            return
        self._generation += 1
        generation = self._generation
        owner = {"user_id": identity.user_id}
        try:
            expenses, task_rows, guests = await asyncio.gather(
                self.client.select(EXPENSES_TABLE, columns=["actual"], filters=owner),
                self.client.select(
                    TASKS_TABLE, filters=owner, order=Order("due_date", ascending=True)
                ),
                self.client.select(GUESTS_TABLE, columns=["rsvp_status"], filters=owner),
            )
        except DataError as exc:
            logger.error("Error fetching dashboard data: %s", exc.message)
            self.notices.append(
                Notice("error", f"Error fetching dashboard data: {exc.message}")
            )
            return
        if generation != self._generation or not self.mounted:
            logger.debug("Discarding stale dashboard response")
            return
        tasks = [row_to(Task, row) for row in task_rows]
        self.stats = compute_stats(expenses, tasks, guests, self.total_budget)

    def navigate(self, target: str) -> None:
        """Quick actions only ask the host to switch views."""
        if target not in QUICK_ACTIONS:
            raise ValueError(f"Unknown view: {target}")
        if self.on_navigate:
            self.on_navigate(target)
