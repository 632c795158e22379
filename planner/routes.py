"""
HTTP routes for the planner API.

Each request builds the matching view-model for the caller's session, mounts
it (which loads the table), applies the operation and returns the refreshed
state.
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from planner.auth_form import AuthForm, AuthMode
from planner.budget import BudgetView, ExpenseForm
from planner.config import get_settings
from planner.dashboard import DashboardView
from planner.data import DataClient
from planner.dependencies import get_session, get_user_data_client, require_session
from planner.gallery import GalleryView
from planner.schemas import (
    BudgetResponse,
    DashboardResponse,
    ExpenseOut,
    ExpenseRequest,
    GalleryCardOut,
    GalleryResponse,
    SavePhotoRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    StatusResponse,
    TaskOut,
    TaskRequest,
    TasksResponse,
)
from planner.session import SessionProvider
from planner.tasks import TaskDraft, TaskView
from shared.constants import INSPIRATION_PHOTOS
from shared.types import TaskFilter

router = APIRouter()


def _raise_notices(view) -> None:
    if view.notices:
        raise HTTPException(status_code=502, detail=view.notices[-1].message)


def _session_response(identity, message: str | None = None) -> SessionResponse:
    if identity is None:
        return SessionResponse(message=message)
    return SessionResponse(
        user_id=identity.user_id,
        email=identity.email,
        full_name=identity.full_name,
        access_token=identity.access_token,
        expires_at=identity.expires_at,
        message=message,
    )


async def _submit_auth_form(form: AuthForm) -> SessionResponse:
    ok = await form.submit()
    message, error = form.success, form.error
    form.close()
    if not ok:
        status = 401 if form.mode == AuthMode.SIGNIN else 400
        raise HTTPException(status_code=status, detail=error)
    return _session_response(form.session.identity, message)


# Authentication


@router.post("/auth/signin", response_model=SessionResponse)
async def sign_in(payload: SignInRequest, session: SessionProvider = Depends(get_session)):
    form = AuthForm(
        session,
        mode=AuthMode.SIGNIN,
        min_password_length=get_settings().min_password_length,
    )
    form.email, form.password = payload.email, payload.password
    return await _submit_auth_form(form)


@router.post("/auth/signup", response_model=SessionResponse, status_code=201)
async def sign_up(payload: SignUpRequest, session: SessionProvider = Depends(get_session)):
    form = AuthForm(
        session,
        mode=AuthMode.SIGNUP,
        min_password_length=get_settings().min_password_length,
    )
    form.email, form.password, form.full_name = (
        payload.email,
        payload.password,
        payload.full_name,
    )
    return await _submit_auth_form(form)


@router.post("/auth/signout", response_model=StatusResponse)
async def sign_out(session: SessionProvider = Depends(require_session)):
    await session.sign_out()
    return StatusResponse(status="ok")


@router.get("/auth/session", response_model=SessionResponse)
async def current_session(session: SessionProvider = Depends(get_session)):
    return _session_response(session.identity)


# Budget


async def _budget_view(session, client, confirm=None) -> BudgetView:
    view = BudgetView(
        session,
        client,
        confirm=confirm,
        total_budget=get_settings().total_budget,
    )
    await view.mount()
    _raise_notices(view)
    return view


def _budget_response(view: BudgetView) -> BudgetResponse:
    _raise_notices(view)
    return BudgetResponse(
        expenses=[ExpenseOut(**asdict(expense)) for expense in view.expenses],
        total_budget=view.total_budget,
        total_actual=view.total_actual,
        total_estimated=view.total_estimated,
        remaining=view.remaining,
    )


async def _save_expense(view: BudgetView, form: ExpenseForm, payload: ExpenseRequest):
    form.category = payload.category
    form.item = payload.item
    form.estimated = str(payload.estimated)
    form.actual = str(payload.actual)
    form.status = payload.status
    if not await view.submit():
        if view.form.error:
            raise HTTPException(status_code=400, detail=view.form.error)
        _raise_notices(view)


@router.get("/expenses", response_model=BudgetResponse)
async def list_expenses(
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    return _budget_response(await _budget_view(session, client))


@router.post("/expenses", response_model=BudgetResponse, status_code=201)
async def create_expense(
    payload: ExpenseRequest,
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    view = await _budget_view(session, client)
    await _save_expense(view, view.open_add(), payload)
    return _budget_response(view)


@router.put("/expenses/{expense_id}", response_model=BudgetResponse)
async def update_expense(
    expense_id: str,
    payload: ExpenseRequest,
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    view = await _budget_view(session, client)
    expense = next((e for e in view.expenses if e.id == expense_id), None)
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    await _save_expense(view, view.open_edit(expense), payload)
    return _budget_response(view)


@router.delete("/expenses/{expense_id}", response_model=BudgetResponse)
async def delete_expense(
    expense_id: str,
    confirm: bool = Query(False, description="Confirms the deletion"),
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    view = await _budget_view(session, client, confirm=lambda prompt: confirm)
    if not any(e.id == expense_id for e in view.expenses):
        raise HTTPException(status_code=404, detail="Expense not found")
    if not await view.delete(expense_id):
        _raise_notices(view)
        raise HTTPException(status_code=409, detail="Deletion must be confirmed")
    return _budget_response(view)


# Tasks


async def _task_view(session, client, task_filter=TaskFilter.ALL) -> TaskView:
    view = TaskView(session, client)
    view.set_filter(task_filter)
    await view.mount()
    _raise_notices(view)
    return view


def _tasks_response(view: TaskView) -> TasksResponse:
    _raise_notices(view)
    return TasksResponse(
        filter=view.filter,
        tasks=[TaskOut(**asdict(task)) for task in view.visible],
        total=len(view.tasks),
    )


@router.get("/tasks", response_model=TasksResponse)
async def list_tasks(
    task_filter: TaskFilter = Query(TaskFilter.ALL, alias="filter"),
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    return _tasks_response(await _task_view(session, client, task_filter))


@router.post("/tasks", response_model=TasksResponse, status_code=201)
async def create_task(
    payload: TaskRequest,
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    view = await _task_view(session, client)
    draft = TaskDraft(**payload.model_dump())
    if not await view.add(draft):
        if view.error:
            raise HTTPException(status_code=400, detail=view.error)
    return _tasks_response(view)


@router.post("/tasks/{task_id}/toggle", response_model=TasksResponse)
async def toggle_task(
    task_id: str,
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    view = await _task_view(session, client)
    if not any(task.id == task_id for task in view.tasks):
        raise HTTPException(status_code=404, detail="Task not found")
    await view.toggle_complete(task_id)
    return _tasks_response(view)


@router.delete("/tasks/{task_id}", response_model=TasksResponse)
async def delete_task(
    task_id: str,
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    view = await _task_view(session, client)
    if not any(task.id == task_id for task in view.tasks):
        raise HTTPException(status_code=404, detail="Task not found")
    await view.delete(task_id)
    return _tasks_response(view)


# Gallery


async def _gallery_view(session, client, category=None) -> GalleryView:
    view = GalleryView(session, client)
    view.set_category(category)
    await view.mount()
    _raise_notices(view)
    return view


def _gallery_response(view: GalleryView) -> GalleryResponse:
    _raise_notices(view)
    return GalleryResponse(
        source=view.source().name,
        category=view.selected_category,
        categories=list(view.categories),
        cards=[GalleryCardOut(**asdict(card)) for card in view.cards()],
    )


@router.get("/gallery", response_model=GalleryResponse)
async def list_gallery(
    category: str | None = Query(None),
    session: SessionProvider = Depends(get_session),
    client: DataClient = Depends(get_user_data_client),
):
    return _gallery_response(await _gallery_view(session, client, category))


@router.post("/gallery/save", response_model=GalleryResponse, status_code=201)
async def save_photo(
    payload: SavePhotoRequest,
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    photo = next((p for p in INSPIRATION_PHOTOS if p.url == payload.url), None)
    if photo is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    view = await _gallery_view(session, client)
    await view.save(photo)
    return _gallery_response(view)


@router.post("/gallery/{item_id}/favorite", response_model=GalleryResponse)
async def toggle_favorite(
    item_id: str,
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    view = await _gallery_view(session, client)
    if not any(item.id == item_id for item in view.saved):
        raise HTTPException(status_code=404, detail="Gallery item not found")
    await view.toggle_favorite(item_id)
    return _gallery_response(view)


# Dashboard


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    session: SessionProvider = Depends(require_session),
    client: DataClient = Depends(get_user_data_client),
):
    view = DashboardView(session, client, total_budget=get_settings().total_budget)
    await view.mount()
    _raise_notices(view)
    stats = view.stats
    return DashboardResponse(
        total_budget=stats.total_budget,
        total_spent=stats.total_spent,
        budget_percentage=stats.budget_percentage,
        upcoming_tasks=stats.upcoming_tasks,
        completed_tasks=stats.completed_tasks,
        total_guests=stats.total_guests,
        rsvp_count=stats.rsvp_count,
        pending_rsvps=stats.pending_rsvps,
        upcoming_list=[TaskOut(**asdict(task)) for task in stats.upcoming_list],
    )
