"""Tests for the migration runner."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "backend" / "src"))

from cachao.db import migrate  # noqa: E402


def test_upgrades_to_head(mocker, monkeypatch) -> None:
    monkeypatch.setenv("MIGRATIONS_SCRIPT_LOCATION", "/tmp/alembic")
    mocker.patch("cachao.db.migrate.get_database_url", return_value="postgresql+psycopg://u:p%40ss@db/cachao")
    upgrade = mocker.patch("cachao.db.migrate.command.upgrade")

    assert migrate.lambda_handler({}, None) == {"status": "ok", "revision": "head"}

    config, revision = upgrade.call_args.args
    assert revision == "head"
    assert config.get_main_option("script_location") == "/tmp/alembic"
    assert config.get_main_option("sqlalchemy.url") == "postgresql+psycopg://u:p%40ss@db/cachao"


def test_failure_is_reported(mocker) -> None:
    mocker.patch("cachao.db.migrate.get_database_url", return_value="sqlite://")
    mocker.patch("cachao.db.migrate.command.upgrade", side_effect=RuntimeError("locked"))

    result = migrate.lambda_handler({"revision": "0001"}, None)

    assert result == {"status": "failed", "revision": "0001", "error": "locked"}
