"""Repositories for albums and videos."""

from __future__ import annotations

from datetime import date
from typing import Optional
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from cachao.db.models import Album, Event, Video
from cachao.db.repositories.base import BaseRepository


class AlbumRepository(BaseRepository[Album]):
    """Repository for video albums."""

    def __init__(self, session: Session):
        super().__init__(session, Album)

    def find_by_event(self, event_id: int) -> Sequence[Album]:
        """List an event's albums, latest date first then by name."""
        query = (
            select(Album)
            .where(Album.event_id == event_id)
            .order_by(Album.album_date.desc(), Album.name.asc())
        )
        return self._session.execute(query).scalars().all()

    def get_for_event(self, event_id: int, album_id: int) -> Optional[Album]:
        query = select(Album).where(
            Album.id == album_id,
            Album.event_id == event_id,
        )
        return self._session.execute(query).scalar_one_or_none()

    def find_existing(
        self,
        event_id: int,
        name: str,
        album_date: Optional[date],
    ) -> Optional[Album]:
        """Find the album matching the unique (event, name, date) triple."""
        query = select(Album).where(
            Album.event_id == event_id,
            Album.name == name,
        )
        if album_date is None:
            query = query.where(Album.album_date.is_(None))
        else:
            query = query.where(Album.album_date == album_date)
        return self._session.execute(query).scalars().first()


class VideoRepository(BaseRepository[Video]):
    """Repository for uploaded videos."""

    def __init__(self, session: Session):
        super().__init__(session, Video)

    def find_by_s3_key(self, s3_key: str) -> Optional[Video]:
        query = select(Video).where(Video.s3_key == s3_key)
        return self._session.execute(query).scalars().first()

    def find_owned(self, video_ids: Sequence[int], cognito_sub: str) -> Sequence[Video]:
        """Return the subset of ``video_ids`` uploaded by ``cognito_sub``."""
        if not video_ids:
            return []
        query = select(Video).where(
            Video.id.in_(video_ids),
            Video.cognito_sub == cognito_sub,
        )
        return self._session.execute(query).scalars().all()

    def find_by_owner(
        self,
        cognito_sub: str,
        limit: Optional[int] = None,
    ) -> Sequence[tuple[Video, Optional[str], Optional[str]]]:
        """List a user's videos, newest first, with event and album names."""
        query = (
            select(Video, Event.name, Album.name)
            .outerjoin(Event, Event.id == Video.event_id)
            .outerjoin(Album, Album.id == Video.album_id)
            .where(Video.cognito_sub == cognito_sub)
            .order_by(Video.created_at.desc(), Video.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [
            (row[0], row[1], row[2]) for row in self._session.execute(query).all()
        ]

    def all_s3_keys(self) -> list[str]:
        query = select(Video.s3_key).where(Video.s3_key.is_not(None))
        return [key for key in self._session.execute(query).scalars().all() if key]

    def delete_ids(self, video_ids: Sequence[int]) -> int:
        """Delete videos by id and return the number removed."""
        if not video_ids:
            return 0
        result = self._session.execute(delete(Video).where(Video.id.in_(video_ids)))
        self._session.flush()
        return result.rowcount or 0

    def delete_all(self) -> int:
        result = self._session.execute(delete(Video))
        self._session.flush()
        return result.rowcount or 0
