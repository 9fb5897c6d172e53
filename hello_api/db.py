"""
Record store gateway: a SQLAlchemy-backed client and an in-memory test implementation.

Each gateway call issues exactly one statement and performs no retries.
Store failures surface as members of the ``hello_api.errors`` taxonomy.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import (
    Boolean,
    Column,
    String,
    UniqueConstraint,
    Uuid,
    create_engine,
    insert,
    select,
    update,
)
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from hello_api.errors import DuplicateKey, InternalFailure, NotFound, StoreUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TODO_LIMIT = 10


class DbClient(Protocol):
    """Interface for database access."""

    def init_schema(self) -> None:
        ...

    def insert_user(self, username: str) -> "UserRecord":
        ...

    def list_users(self) -> list["UserRecord"]:
        ...

    def insert_todo(self, text: str) -> "TodoRecord":
        ...

    def list_todos(self, limit: int = DEFAULT_TODO_LIMIT) -> list["TodoRecord"]:
        ...

    def get_todo(self, todo_id: uuid.UUID) -> "TodoRecord":
        ...

    def update_todo_done(self, todo_id: uuid.UUID, done: bool) -> "TodoRecord":
        ...


@dataclass(frozen=True)
class UserRecord:
    user_id: uuid.UUID
    username: str


@dataclass(frozen=True)
class TodoRecord:
    id: uuid.UUID
    todo_text: str
    is_done: bool = False


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.users: Dict[uuid.UUID, UserRecord] = {}
        self.todos: Dict[uuid.UUID, TodoRecord] = {}
        self._lock = threading.Lock()

    def init_schema(self) -> None:
        return None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.users.clear()
            self.todos.clear()

    def insert_user(self, username: str) -> UserRecord:
        with self._lock:
            if any(user.username == username for user in self.users.values()):
                raise DuplicateKey("username")
            record = UserRecord(user_id=uuid.uuid4(), username=username)
            self.users[record.user_id] = record
            return record

    def list_users(self) -> list[UserRecord]:
        with self._lock:
            return list(self.users.values())

    def insert_todo(self, text: str) -> TodoRecord:
        with self._lock:
            record = TodoRecord(id=uuid.uuid4(), todo_text=text, is_done=False)
            self.todos[record.id] = record
            return record

    def list_todos(self, limit: int = DEFAULT_TODO_LIMIT) -> list[TodoRecord]:
        with self._lock:
            ordered = sorted(self.todos.values(), key=lambda todo: todo.id)
            return ordered[:limit]

    def get_todo(self, todo_id: uuid.UUID) -> TodoRecord:
        with self._lock:
            record = self.todos.get(todo_id)
            if record is None:
                raise NotFound()
            return record

    def update_todo_done(self, todo_id: uuid.UUID, done: bool) -> TodoRecord:
        with self._lock:
            record = self.todos.get(todo_id)
            if record is None:
                raise NotFound()
            updated = TodoRecord(id=record.id, todo_text=record.todo_text, is_done=done)
            self.todos[todo_id] = updated
            return updated


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    The connection pool is bounded by ``max_connections`` and callers wait at
    most ``pool_timeout_seconds`` for a free connection before the call fails
    with ``StoreUnavailable``.
    """

    def __init__(
        self,
        database_url: str,
        *,
        max_connections: int = 20,
        pool_timeout_seconds: float = 30.0,
    ):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            **_engine_options(database_url, max_connections, pool_timeout_seconds),
        )

    def init_schema(self) -> None:
        """Create any tables that do not exist yet."""
        logger.info("Applying schema to %s", self.engine.url.render_as_string())
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    def _execute(self, operation: str, stmt, *, unique_field: str | None = None):
        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).all()
        except sa_exc.IntegrityError as exc:
            if unique_field:
                logger.info("Unique constraint violated during %s", operation)
                raise DuplicateKey(unique_field) from exc
            logger.warning("Integrity error during %s: %s", operation, exc.orig)
            raise InternalFailure() from exc
        except (
            sa_exc.OperationalError,
            sa_exc.InterfaceError,
            sa_exc.TimeoutError,
        ) as exc:
            logger.warning("Store unavailable during %s: %s", operation, exc)
            raise StoreUnavailable() from exc
        except sa_exc.SQLAlchemyError as exc:
            logger.warning("Store error during %s: %s", operation, exc)
            raise InternalFailure() from exc

    def insert_user(self, username: str) -> UserRecord:
        stmt = (
            insert(UserRow)
            .values(username=username)
            .returning(UserRow.user_id, UserRow.username)
        )
        row = self._execute("insert_user", stmt, unique_field="username")[0]
        return UserRecord(user_id=row.user_id, username=row.username)

    def list_users(self) -> list[UserRecord]:
        stmt = select(UserRow.user_id, UserRow.username)
        return [
            UserRecord(user_id=row.user_id, username=row.username)
            for row in self._execute("list_users", stmt)
        ]

    def insert_todo(self, text: str) -> TodoRecord:
        stmt = (
            insert(TodoRow)
            .values(todo_text=text)
            .returning(TodoRow.id, TodoRow.todo_text, TodoRow.is_done)
        )
        return _to_todo_record(self._execute("insert_todo", stmt)[0])

    def list_todos(self, limit: int = DEFAULT_TODO_LIMIT) -> list[TodoRecord]:
        stmt = (
            select(TodoRow.id, TodoRow.todo_text, TodoRow.is_done)
            .order_by(TodoRow.id.asc())
            .limit(limit)
        )
        return [_to_todo_record(row) for row in self._execute("list_todos", stmt)]

    def get_todo(self, todo_id: uuid.UUID) -> TodoRecord:
        stmt = select(TodoRow.id, TodoRow.todo_text, TodoRow.is_done).where(
            TodoRow.id == todo_id
        )
        rows = self._execute("get_todo", stmt)
        if not rows:
            raise NotFound()
        return _to_todo_record(rows[0])

    def update_todo_done(self, todo_id: uuid.UUID, done: bool) -> TodoRecord:
        stmt = (
            update(TodoRow)
            .where(TodoRow.id == todo_id)
            .values(is_done=done)
            .returning(TodoRow.id, TodoRow.todo_text, TodoRow.is_done)
        )
        rows = self._execute("update_todo_done", stmt)
        if not rows:
            raise NotFound()
        return _to_todo_record(rows[0])


def _to_todo_record(row) -> TodoRecord:
    return TodoRecord(id=row.id, todo_text=row.todo_text, is_done=bool(row.is_done))


def _engine_options(
    database_url: str, max_connections: int, pool_timeout_seconds: float
) -> dict[str, Any]:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # One shared connection, otherwise every pooled connection sees its own empty database.
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    options: dict[str, Any] = {
        "pool_size": max_connections,
        "max_overflow": 0,
        "pool_timeout": pool_timeout_seconds,
        "pool_recycle": 1800,
    }
    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    return options


def create_db_client(
    database_url: Optional[str],
    *,
    max_connections: int = 20,
    pool_timeout_seconds: float = 30.0,
    use_in_memory: bool = False,
) -> DbClient:
    """Build the store handle described by the given settings."""
    if use_in_memory or not database_url:
        logger.info("Using in-memory record store")
        return InMemoryDbClient()
    return SqlDbClient(
        database_url,
        max_connections=max_connections,
        pool_timeout_seconds=pool_timeout_seconds,
    )


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "user"
    __table_args__ = (UniqueConstraint("username", name="user_username_key"),)

    user_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String, nullable=False)


class TodoRow(Base):
    __tablename__ = "todo"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    todo_text = Column(String, nullable=False)
    is_done = Column(Boolean, nullable=False, default=False)
