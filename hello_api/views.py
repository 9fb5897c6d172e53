"""
Mappers from stored records to the shapes exposed over HTTP.
"""

from __future__ import annotations

from hello_api.db import TodoRecord, UserRecord
from hello_api.schemas import TodoView, UserView


def user_view(record: UserRecord) -> UserView:
    return UserView(user_id=record.user_id, username=record.username)


def todo_view(record: TodoRecord) -> TodoView:
    # Stored as todo_text, exposed as text.
    return TodoView(id=record.id, text=record.todo_text, is_done=record.is_done)
