"""
HTTP routes for the users and todos resources.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from hello_api.db import DEFAULT_TODO_LIMIT, DbClient
from hello_api.dependencies import get_db_client
from hello_api.schemas import (
    CreateTodoRequest,
    CreateUserRequest,
    ErrorResponse,
    HealthResponse,
    TodoView,
    UpdateTodoRequest,
    UserView,
)
from hello_api.views import todo_view, user_view

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get("/", response_class=PlainTextResponse)
def root():
    return "Hello, World!"


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@router.post(
    "/users",
    response_model=UserView,
    status_code=201,
    responses={**_ERROR_RESPONSES, 409: {"model": ErrorResponse}},
)
def create_user(payload: CreateUserRequest, db: DbClient = Depends(get_db_client)):
    user = db.insert_user(payload.username)
    logger.info("Created user %s", user.user_id)
    return user_view(user)


@router.get("/users", response_model=list[UserView], responses=_ERROR_RESPONSES)
def list_users(db: DbClient = Depends(get_db_client)):
    return [user_view(user) for user in db.list_users()]


@router.post(
    "/todos", response_model=TodoView, status_code=201, responses=_ERROR_RESPONSES
)
def create_todo(payload: CreateTodoRequest, db: DbClient = Depends(get_db_client)):
    todo = db.insert_todo(payload.text)
    logger.info("Created todo %s", todo.id)
    return todo_view(todo)


@router.get("/todos", response_model=list[TodoView], responses=_ERROR_RESPONSES)
def list_todos(db: DbClient = Depends(get_db_client)):
    """
    Return the first todos ordered by id, capped at ten.
    """
    return [todo_view(todo) for todo in db.list_todos(limit=DEFAULT_TODO_LIMIT)]


@router.get(
    "/todos/{todo_id}",
    response_model=TodoView,
    responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse}},
)
def get_todo(todo_id: UUID, db: DbClient = Depends(get_db_client)):
    return todo_view(db.get_todo(todo_id))


@router.put(
    "/todos/{todo_id}",
    response_model=TodoView,
    responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse}},
)
def update_todo(
    todo_id: UUID,
    payload: UpdateTodoRequest,
    db: DbClient = Depends(get_db_client),
):
    todo = db.update_todo_done(todo_id, payload.is_done)
    logger.info("Marked todo %s is_done=%s", todo.id, todo.is_done)
    return todo_view(todo)
