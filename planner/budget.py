"""
Budget view: the user's expenses and the running totals derived from them.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from planner.data import DataClient, Order, utcnow
from planner.errors import ValidationError
from planner.session import SessionProvider
from planner.views import ResourceView
from shared.constants import DEFAULT_TOTAL_BUDGET, EXPENSES_TABLE
from shared.types import Expense, ExpenseStatus, row_to

logger = logging.getLogger(__name__)

DELETE_PROMPT = "Are you sure you want to delete this expense?"
REQUIRED_FIELDS_MESSAGE = "Category, item and estimated amount are required"


def parse_amount(text) -> float:
    """Parse a currency field; anything unusable (or negative) becomes 0."""
    try:
        value = float(str(text).strip())
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def total_actual(expenses: list[Expense]) -> float:
    return math.fsum(expense.actual for expense in expenses)


def total_estimated(expenses: list[Expense]) -> float:
    return math.fsum(expense.estimated for expense in expenses)


@dataclass
class ExpenseForm:
    """Text fields backing the shared add/edit dialog."""

    category: str = ""
    item: str = ""
    estimated: str = ""
    actual: str = ""
    status: ExpenseStatus = ExpenseStatus.PENDING
    editing_id: Optional[str] = None
    is_open: bool = False
    error: str = ""

    @property
    def mode(self) -> str:
        return "edit" if self.editing_id else "add"

    @property
    def can_submit(self) -> bool:
        return bool(
            self.category.strip() and self.item.strip() and str(self.estimated).strip()
        )

    def validate(self) -> None:
        if not self.can_submit:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        if self.status not in set(ExpenseStatus):
            raise ValidationError(f"Unknown status: {self.status}")

    def to_row(self) -> dict:
        return {
            "category": self.category.strip(),
            "item": self.item.strip(),
            "estimated": parse_amount(self.estimated),
            "actual": parse_amount(self.actual),
            "status": ExpenseStatus(self.status).value,
            "updated_at": utcnow().isoformat(),
        }


class BudgetView(ResourceView[Expense]):
    table = EXPENSES_TABLE
    order = Order("created_at", ascending=False)

    def __init__(
        self,
        session: SessionProvider,
        client: DataClient,
        *,
        confirm: Callable[[str], bool] | None = None,
        total_budget: float = DEFAULT_TOTAL_BUDGET,
    ):
        super().__init__(session, client)
        self.confirm = confirm or (lambda prompt: False)
        self.total_budget = total_budget
        self.form = ExpenseForm()

    @property
    def expenses(self) -> list[Expense]:
        return self.items

    def decode(self, row: dict) -> Expense:
        return row_to(Expense, row)

    @property
    def total_actual(self) -> float:
        return total_actual(self.items)

    @property
    def total_estimated(self) -> float:
        return total_estimated(self.items)

    @property
    def remaining(self) -> float:
        # May go negative when spending exceeds the budget.
        return self.total_budget - self.total_actual

    def open_add(self) -> ExpenseForm:
        self.form = ExpenseForm(is_open=True)
        return self.form

    def open_edit(self, expense: Expense) -> ExpenseForm:
        self.form = ExpenseForm(
            category=expense.category,
            item=expense.item,
            estimated=str(expense.estimated),
            actual=str(expense.actual),
            status=expense.status,
            editing_id=expense.id,
            is_open=True,
        )
        return self.form

    def close_form(self) -> None:
        self.form.is_open = False

    async def submit(self) -> bool:
        """Save the open form; the form stays open when anything fails."""
        identity = self.identity
        if identity is None:
            return False
        form = self.form
        try:
            form.validate()
        except ValidationError as exc:
            form.error = exc.message
            return False
        form.error = ""
        row = form.to_row()
        if form.editing_id:
            action = self.client.update(
                self.table, row, form.editing_id, user_id=identity.user_id
            )
            label = "updating expense"
        else:
            action = self.client.insert(
                self.table, [{"user_id": identity.user_id, **row}]
            )
            label = "saving expense"
        self.close_form()
        saved = await self.mutate(label, action)
        if not saved:
            form.is_open = True
        return saved

    async def delete(self, expense_id: str) -> bool:
        identity = self.identity
        if identity is None or not self.confirm(DELETE_PROMPT):
            return False
        return await self.mutate(
            "deleting expense",
            self.client.delete(self.table, expense_id, user_id=identity.user_id),
        )
