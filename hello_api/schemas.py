"""
Pydantic schemas for request bodies and response views.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field, field_validator


def _reject_nul(value: str) -> str:
    # Postgres text columns cannot store NUL.
    if "\x00" in value:
        raise ValueError("NUL characters are not allowed")
    return value


class CreateUserRequest(BaseModel):
    username: str = Field(..., strict=True)

    @field_validator("username")
    @classmethod
    def reject_nul(cls, value: str) -> str:
        return _reject_nul(value)


class CreateTodoRequest(BaseModel):
    text: str = Field(..., strict=True)

    @field_validator("text")
    @classmethod
    def reject_nul(cls, value: str) -> str:
        return _reject_nul(value)


class UpdateTodoRequest(BaseModel):
    is_done: bool = Field(..., strict=True)


class UserView(BaseModel):
    user_id: UUID
    username: str


class TodoView(BaseModel):
    id: UUID
    text: str
    is_done: bool


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
