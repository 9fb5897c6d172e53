"""
Serve the hello API: apply the schema, then run uvicorn.
"""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from sqlalchemy.exc import SQLAlchemyError

from hello_api.app import create_app
from hello_api.config import get_settings
from hello_api.dependencies import build_db_client
from hello_api.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Hello API server")
    parser.add_argument("--host", type=str, default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        help="Root log level (DEBUG, INFO, WARNING, ...)",
    )
    parser.add_argument(
        "--init-db-only",
        action="store_true",
        help="Apply the schema and exit without serving",
    )
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    db = build_db_client(settings)
    try:
        db.init_schema()
    except SQLAlchemyError:
        logger.exception("Failed to apply schema")
        return 1

    if args.init_db_only:
        logger.info("Schema applied")
        return 0

    app = create_app(db=db, settings=settings)
    logger.info("Listening on %s:%s", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
