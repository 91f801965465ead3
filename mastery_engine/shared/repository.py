"""Base repository pattern for data access.

This module provides a base repository class used by the store module,
separating data access from the engine's business logic.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mastery_engine.shared.database import Base

# Generic type for SQLAlchemy models
ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(ABC, Generic[ModelT]):
    """Base repository providing common CRUD operations.

    Records are addressed by keyword filters on their key columns
    (e.g. ``learner_id=..., module_id=...``) rather than a surrogate id.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self._session = session

    @property
    @abstractmethod
    def _model_class(self) -> type[ModelT]:
        """Return the SQLAlchemy model class for this repository."""
        pass

    def _where(self, filters: dict[str, Any]):
        return and_(*(getattr(self._model_class, name) == value for name, value in filters.items()))

    async def get_one(self, **filters: Any) -> ModelT | None:
        """Get a single entity matching the key filters.

        Returns:
            Entity if found, None otherwise
        """
        result = await self._session.execute(
            select(self._model_class).where(self._where(filters))
        )
        return result.scalar_one_or_none()

    async def get_many(self, **filters: Any) -> Sequence[ModelT]:
        """Get all entities matching the filters."""
        result = await self._session.execute(
            select(self._model_class).where(self._where(filters))
        )
        return result.scalars().all()

    async def create(self, entity: ModelT) -> ModelT:
        """Create a new entity.

        Args:
            entity: Entity to create

        Returns:
            Created entity
        """
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def update_versioned(
        self,
        expected_version: int,
        values: dict[str, Any],
        **filters: Any,
    ) -> bool:
        """Compare-and-set update guarded by the record's version column.

        Args:
            expected_version: Version the caller read before modifying
            values: Column values to write
            **filters: Key filters identifying the record

        Returns:
            True if the row was updated, False if the version did not match
        """
        result = await self._session.execute(
            update(self._model_class)
            .where(self._where(filters))
            .where(self._model_class.version == expected_version)
            .values(**values, version=expected_version + 1)
        )
        return result.rowcount > 0
