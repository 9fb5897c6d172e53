"""
Dependency wiring for the FastAPI app.

The store handle is built once by ``create_app`` and kept on ``app.state``;
handlers receive it through ``Depends(get_db_client)``.
"""

from __future__ import annotations

from fastapi import Request

from hello_api.config import Settings
from hello_api.db import DbClient, create_db_client


def build_db_client(settings: Settings) -> DbClient:
    return create_db_client(
        settings.database_url,
        max_connections=settings.max_connections,
        pool_timeout_seconds=settings.pool_timeout_seconds,
        use_in_memory=settings.use_in_memory_backends,
    )


def get_db_client(request: Request) -> DbClient:
    """Return the store handle the running app was constructed with."""
    return request.app.state.db
