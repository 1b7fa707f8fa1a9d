"""User profile model."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from cachao.db.base import Base


class User(Base):
    """Profile row keyed by the Cognito subject."""

    __tablename__ = "users"

    cognito_sub: Mapped[str] = mapped_column(sa.String(64), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(
        sa.String(255),
        nullable=True,
        index=True,
    )
    name: Mapped[Optional[str]] = mapped_column(sa.String(200), nullable=True)
    nickname: Mapped[Optional[str]] = mapped_column(
        sa.String(30),
        nullable=True,
        unique=True,
        comment="Lower-case public handle",
    )
    photo_url: Mapped[Optional[str]] = mapped_column(sa.String(1000), nullable=True)
    cover_photo_url: Mapped[Optional[str]] = mapped_column(
        sa.String(1000),
        nullable=True,
    )
    bio: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(sa.String(200), nullable=True)
    dance_styles: Mapped[Optional[list[Any]]] = mapped_column(
        sa.JSON(),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )
