"""Declarative base and shared column types for the SQLAlchemy models."""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import DeclarativeBase

# BIGINT identity on PostgreSQL, INTEGER on SQLite so autoincrement works in tests.
BigIntId = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    id: Any

    def to_dict(self) -> dict[str, Any]:
        """Return the mapped column values keyed by column name."""
        return {
            column.key: getattr(self, column.key)
            for column in self.__mapper__.column_attrs
        }
