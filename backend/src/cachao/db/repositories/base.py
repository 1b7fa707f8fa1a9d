"""Base repository with common CRUD operations.

This module provides a generic base repository that can be extended
for specific entity types.
"""

from __future__ import annotations

from typing import Any
from typing import Generic
from typing import Mapping
from typing import Optional
from typing import Type
from typing import TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cachao.db.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Base repository with common CRUD operations.

    Provides standard database operations that can be inherited
    by entity-specific repositories.

    Type Parameters:
        T: The SQLAlchemy model type this repository manages.
    """

    def __init__(self, session: Session, model: Type[T]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy session for database operations.
            model: The SQLAlchemy model class.
        """
        self._session = session
        self._model = model

    def get_by_id(self, entity_id: Any) -> Optional[T]:
        """Get an entity by its primary key.

        Args:
            entity_id: The primary key value.

        Returns:
            The entity if found, None otherwise.
        """
        return self._session.get(self._model, entity_id)

    def exists(self, entity_id: Any) -> bool:
        """Check if an entity exists."""
        return self.get_by_id(entity_id) is not None

    def create(self, entity: T) -> T:
        """Create a new entity.

        Args:
            entity: The entity to create.

        Returns:
            The created entity with generated fields populated.
        """
        self._session.add(entity)
        self._session.flush()
        self._session.refresh(entity)
        return entity

    def update(self, entity: T) -> T:
        """Update an existing entity.

        Args:
            entity: The entity to update.

        Returns:
            The updated entity.
        """
        self._session.add(entity)
        self._session.flush()
        self._session.refresh(entity)
        return entity

    def apply_changes(self, entity: T, changes: Mapping[str, Any]) -> T:
        """Set the given attributes on an entity and flush.

        Only keys present in ``changes`` are touched, which gives PUT and
        PATCH handlers partial-update semantics.
        """
        for field, value in changes.items():
            setattr(entity, field, value)
        return self.update(entity)

    def delete(self, entity: T) -> None:
        """Delete an entity."""
        self._session.delete(entity)
        self._session.flush()

    def count(self) -> int:
        """Count total entities."""
        result = self._session.execute(select(func.count()).select_from(self._model))
        return result.scalar() or 0
