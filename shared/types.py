# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import List, Optional

from dacite import Config, from_dict


class ExpenseStatus(StrEnum):
    PAID = "Paid"
    PENDING = "Pending"
    OVERDUE = "Overdue"


class TaskPriority(StrEnum):
    HIGH = "High Priority"
    MEDIUM = "Medium Priority"
    LOW = "Low Priority"


class TaskFilter(StrEnum):
    ALL = "all"
    UPCOMING = "upcoming"
    COMPLETED = "completed"
    HIGH = "high"


class RsvpStatus(StrEnum):
    ACCEPTED = "Accepted"
    DECLINED = "Declined"
    PENDING = "Pending"


@dataclass
class Identity:
    """The authenticated user context used to scope all owned records."""

    user_id: str
    email: str
    full_name: Optional[str] = None
    access_token: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass
class Expense:
    id: str
    category: str
    item: str
    estimated: float = 0.0
    actual: float = 0.0
    status: ExpenseStatus = ExpenseStatus.PENDING


@dataclass
class Task:
    id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    category: str = "General"
    completed: bool = False


@dataclass
class GalleryItem:
    id: str
    title: str
    image_url: str
    category: str
    is_favorite: bool = False


@dataclass
class Guest:
    id: str
    name: str = ""
    rsvp_status: Optional[str] = None


@dataclass(frozen=True)
class InspirationPhoto:
    """A compiled-in inspiration photo shown before anything is saved."""

    url: str
    alt: str
    category: str


@dataclass
class DashboardStats:
    total_budget: float
    total_spent: float = 0.0
    upcoming_tasks: int = 0
    completed_tasks: int = 0
    total_guests: int = 0
    rsvp_count: int = 0
    upcoming_list: List[Task] = field(default_factory=list)

    @property
    def budget_percentage(self) -> float:
        if not self.total_budget:
            return 0.0
        return self.total_spent / self.total_budget * 100

    @property
    def pending_rsvps(self) -> int:
        return self.total_guests - self.rsvp_count


def _as_date(value):
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _as_float(value):
    return float(value or 0)


ROW_CONFIG = Config(
    cast=[ExpenseStatus, TaskPriority],
    type_hooks={date: _as_date, float: _as_float},
)


def row_to(data_class, row: dict):
    """Decodes a backend row into one of the entity dataclasses.

    Extra columns such as user_id and the timestamps are ignored.
    """
    return from_dict(data_class=data_class, data=row, config=ROW_CONFIG)
