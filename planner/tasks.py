"""
Task view: the planning checklist, with client-side filters.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from planner.data import Order, utcnow
from planner.errors import ValidationError
from planner.views import ResourceView
from shared.constants import DEFAULT_TASK_CATEGORY, TASKS_TABLE
from shared.types import Task, TaskFilter, TaskPriority, row_to


def filter_tasks(tasks: Iterable[Task], task_filter: TaskFilter | str) -> list[Task]:
    task_filter = TaskFilter(task_filter)
    if task_filter == TaskFilter.COMPLETED:
        return [task for task in tasks if task.completed]
    if task_filter == TaskFilter.UPCOMING:
        return [task for task in tasks if not task.completed]
    if task_filter == TaskFilter.HIGH:
        return [task for task in tasks if task.priority == TaskPriority.HIGH]
    return list(tasks)


@dataclass
class TaskDraft:
    title: str = ""
    description: str = ""
    due_date: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    category: str = DEFAULT_TASK_CATEGORY

    def to_row(self) -> dict:
        title = self.title.strip()
        if not title:
            raise ValidationError("Please enter a task title")
        due_date = self.due_date.strip() if self.due_date else ""
        if due_date:
            try:
                due_date = date.fromisoformat(due_date).isoformat()
            except ValueError:
                raise ValidationError(f"Invalid due date: {self.due_date}")
        try:
            priority = TaskPriority(self.priority)
        except ValueError:
            raise ValidationError(f"Unknown priority: {self.priority}")
        return {
            "title": title,
            "description": self.description.strip() or None,
            "due_date": due_date or None,
            "priority": priority.value,
            "category": self.category.strip() or DEFAULT_TASK_CATEGORY,
            "completed": False,
        }


class TaskView(ResourceView[Task]):
    table = TASKS_TABLE
    order = Order("due_date", ascending=True)

    def __init__(self, session, client):
        super().__init__(session, client)
        self.filter = TaskFilter.ALL
        self.draft = TaskDraft()
        self.error = ""

    def decode(self, row: dict) -> Task:
        return row_to(Task, row)

    @property
    def tasks(self) -> list[Task]:
        return self.items

    @property
    def visible(self) -> list[Task]:
        return filter_tasks(self.items, self.filter)

    def set_filter(self, task_filter: TaskFilter | str) -> None:
        self.filter = TaskFilter(task_filter)

    async def add(self, draft: TaskDraft | None = None) -> bool:
        identity = self.identity
        if identity is None:
            return False
        draft = draft or self.draft
        try:
            row = draft.to_row()
        except ValidationError as exc:
            self.error = exc.message
            return False
        self.error = ""
        saved = await self.mutate(
            "adding task",
            self.client.insert(self.table, [{"user_id": identity.user_id, **row}]),
        )
        if saved:
            self.draft = TaskDraft()
        return saved

    def _find(self, task_id: str) -> Task | None:
        return next((task for task in self.items if task.id == task_id), None)

    async def toggle_complete(self, task_id: str) -> bool:
        identity = self.identity
        task = self._find(task_id)
        if identity is None or task is None:
            return False
        patch = {"completed": not task.completed, "updated_at": utcnow().isoformat()}
        return await self.mutate(
            "updating task",
            self.client.update(self.table, patch, task_id, user_id=identity.user_id),
        )

    async def delete(self, task_id: str) -> bool:
        # No confirmation step, unlike expenses.
        identity = self.identity
        if identity is None:
            return False
        return await self.mutate(
            "deleting task",
            self.client.delete(self.table, task_id, user_id=identity.user_id),
        )
