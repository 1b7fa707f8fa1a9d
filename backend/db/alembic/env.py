from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config
from sqlalchemy import pool

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

base_dir = Path(__file__).resolve().parents[2]
sys.path.append(str(base_dir / "src"))

from cachao.db import models  # noqa: F401,E402
from cachao.db.base import Base  # noqa: E402
from cachao.db.connection import get_database_url as _env_database_url  # noqa: E402

target_metadata = Base.metadata


def get_database_url() -> str:
    """Prefer ``sqlalchemy.url``; otherwise build it like the Lambdas do."""
    return config.get_main_option("sqlalchemy.url") or _env_database_url()


def run_migrations_offline() -> None:
    context.configure(
        url=get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # configparser interpolates "%", which appears in encoded passwords.
    config.set_main_option("sqlalchemy.url", get_database_url().replace("%", "%%"))
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
