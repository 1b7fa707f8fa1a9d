"""Album and video models."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from cachao.db.base import Base, BigIntId


class Album(Base):
    """Named grouping of videos within an event, optionally per day."""

    __tablename__ = "albums"
    __table_args__ = (
        sa.UniqueConstraint(
            "event_id",
            "name",
            "album_date",
            name="uq_albums_event_name_date",
        ),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    album_date: Mapped[Optional[date]] = mapped_column(sa.Date(), nullable=True)
    cognito_sub: Mapped[Optional[str]] = mapped_column(
        sa.String(64),
        nullable=True,
        comment="Cognito user sub of the album creator",
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


class Video(Base):
    """An uploaded video stored in S3."""

    __tablename__ = "videos"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    event_id: Mapped[Optional[int]] = mapped_column(
        BigIntId,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    album_id: Mapped[Optional[int]] = mapped_column(
        BigIntId,
        ForeignKey("albums.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    cognito_sub: Mapped[Optional[str]] = mapped_column(
        sa.String(64),
        nullable=True,
        index=True,
    )
    title: Mapped[Optional[str]] = mapped_column(sa.String(255), nullable=True)
    video_url: Mapped[str] = mapped_column(sa.String(1000), nullable=False)
    s3_key: Mapped[Optional[str]] = mapped_column(
        sa.String(500),
        nullable=True,
        index=True,
    )
    thumbnail_url: Mapped[Optional[str]] = mapped_column(
        sa.String(1000),
        nullable=True,
    )
    category: Mapped[Optional[str]] = mapped_column(sa.String(100), nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(sa.String(100), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(sa.BigInteger(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )
