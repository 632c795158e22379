"""
Pydantic schemas for the planner HTTP API.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from shared.types import ExpenseStatus, TaskFilter, TaskPriority


class SignInRequest(BaseModel):
    email: str = Field(default="", max_length=320)
    password: str = ""


class SignUpRequest(SignInRequest):
    full_name: str = Field(default="", max_length=200)


class SessionResponse(BaseModel):
    user_id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    access_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    message: Optional[str] = None


class StatusResponse(BaseModel):
    status: Literal["ok"]


class ExpenseRequest(BaseModel):
    category: str = ""
    item: str = ""
    # Amounts arrive as free text from the form; unusable values are stored as 0.
    estimated: Union[str, float] = ""
    actual: Union[str, float] = ""
    status: ExpenseStatus = ExpenseStatus.PENDING


class ExpenseOut(BaseModel):
    id: str
    category: str
    item: str
    estimated: float
    actual: float
    status: ExpenseStatus


class BudgetResponse(BaseModel):
    expenses: list[ExpenseOut]
    total_budget: float
    total_actual: float
    total_estimated: float
    remaining: float


class TaskRequest(BaseModel):
    title: str = ""
    description: str = ""
    due_date: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    category: str = "General"


class TaskOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: TaskPriority
    category: str
    completed: bool


class TasksResponse(BaseModel):
    filter: TaskFilter
    tasks: list[TaskOut]
    total: int


class GalleryCardOut(BaseModel):
    title: str
    image_url: str
    category: str
    item_id: Optional[str] = None
    is_favorite: bool = False
    can_save: bool = False
    can_favorite: bool = False


class GalleryResponse(BaseModel):
    source: Literal["static", "saved"]
    category: str
    categories: list[str]
    cards: list[GalleryCardOut]


class SavePhotoRequest(BaseModel):
    url: str


class DashboardResponse(BaseModel):
    total_budget: float
    total_spent: float
    budget_percentage: float
    upcoming_tasks: int
    completed_tasks: int
    total_guests: int
    rsvp_count: int
    pending_rsvps: int
    upcoming_list: list[TaskOut]
