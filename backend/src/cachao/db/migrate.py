"""Apply the Alembic migration history to the configured database."""

from __future__ import annotations

import os
from typing import Any, Mapping

from alembic import command
from alembic.config import Config

from cachao.db.connection import get_database_url
from cachao.utils.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

DEFAULT_SCRIPT_LOCATION = "/var/task/db/alembic"


def _escape_config(value: str) -> str:
    return value.replace("%", "%%")


def run_migrations(database_url: str, revision: str = "head") -> None:
    config = Config()
    config.set_main_option(
        "script_location",
        os.getenv("MIGRATIONS_SCRIPT_LOCATION", DEFAULT_SCRIPT_LOCATION),
    )
    config.set_main_option("sqlalchemy.url", _escape_config(database_url))
    command.upgrade(config, revision)


def lambda_handler(event: Mapping[str, Any] | None, context: Any) -> dict[str, Any]:
    """Upgrade the schema, optionally to ``event["revision"]``."""
    revision = str((event or {}).get("revision") or "head")
    logger.info("Running migrations", extra={"revision": revision})
    try:
        run_migrations(get_database_url(), revision)
    except Exception as exc:
        logger.error(
            "Migrations failed",
            extra={"error_type": type(exc).__name__, "error_message": str(exc)},
            exc_info=True,
        )
        return {"status": "failed", "revision": revision, "error": str(exc)}
    logger.info("Migrations completed", extra={"revision": revision})
    return {"status": "ok", "revision": revision}
